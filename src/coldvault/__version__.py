"""Version information for coldvault."""

__version__ = "0.3.0"
