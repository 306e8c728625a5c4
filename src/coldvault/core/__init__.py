"""Core domain for coldvault: value objects, entities, events, protocols and exceptions."""
