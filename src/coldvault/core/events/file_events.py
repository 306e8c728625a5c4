"""File domain events.

ONLY file lifecycle events - immutable facts returned by FileRecord methods
and forwarded to the configured EventNotifier by the application layer.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ...utils import utc_now
from ..value_objects import FileId, StorageLocation


@dataclass(frozen=True)
class FileEvent:
    """Base class for file lifecycle events."""
    file_id: FileId
    occurred_at: datetime = field(default_factory=utc_now, kw_only=True)

    @property
    def event_type(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class FileCreated(FileEvent):
    owner_id: str
    file_name: str
    mime_type: str
    size_bytes: int


@dataclass(frozen=True)
class FileUploadStarted(FileEvent):
    pass


@dataclass(frozen=True)
class FileUploadCompleted(FileEvent):
    location: StorageLocation


@dataclass(frozen=True)
class FileArchived(FileEvent):
    location: StorageLocation


@dataclass(frozen=True)
class FileUploadFailed(FileEvent):
    reason: Optional[str] = None


@dataclass(frozen=True)
class ThumbnailAttached(FileEvent):
    location: StorageLocation
