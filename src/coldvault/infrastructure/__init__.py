"""Infrastructure adapters for coldvault: storage providers, thumbnails, persistence and notifications."""
