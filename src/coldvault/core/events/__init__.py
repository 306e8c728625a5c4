"""Domain events for coldvault."""

from .file_events import (
    FileEvent,
    FileCreated,
    FileUploadStarted,
    FileUploadCompleted,
    FileArchived,
    FileUploadFailed,
    ThumbnailAttached,
)

__all__ = [
    "FileEvent",
    "FileCreated",
    "FileUploadStarted",
    "FileUploadCompleted",
    "FileArchived",
    "FileUploadFailed",
    "ThumbnailAttached",
]
