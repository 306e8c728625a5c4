"""Application layer for coldvault: commands, queries and services."""
