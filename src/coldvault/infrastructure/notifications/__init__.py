"""Event notifiers for coldvault."""

from .logging_notifier import LoggingEventNotifier

__all__ = ["LoggingEventNotifier"]
