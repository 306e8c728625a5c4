"""File record aggregate.

ONLY file record - the archived file aggregate: identity, owner, metadata,
size, type, upload status, storage location and thumbnail location.

Following maximum separation architecture - one file = one purpose.

Every state-changing method returns the list of domain events it produced;
the application layer collects them into its result objects.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from ..events import (
    FileEvent,
    FileCreated,
    FileUploadStarted,
    FileUploadCompleted,
    FileArchived,
    FileUploadFailed,
    ThumbnailAttached,
)
from ..exceptions import (
    FileArchivedError,
    InvalidArgumentError,
    InvalidStateTransitionError,
)
from ..value_objects import (
    ContentDigest,
    FileId,
    FileSize,
    FileType,
    StorageLocation,
    UploadState,
    UploadStatus,
)
from .file_metadata import FileMetadata


@dataclass
class FileRecord:
    """File record aggregate root.

    Invariants:
    - the storage location is set once and never replaced
    - an archived record rejects status, progress and metadata changes
    - the thumbnail location is set once, independent of status
    - upload progress stays in [0, 100] and never decreases
    """

    id: FileId
    owner_id: str
    metadata: FileMetadata
    size: FileSize
    file_type: FileType
    status: UploadStatus = field(default_factory=UploadStatus.pending)
    location: Optional[StorageLocation] = None
    thumbnail_location: Optional[StorageLocation] = None
    upload_progress: int = 0
    # Owned by the record store; bumped on every committed update
    version: int = 0

    def __post_init__(self):
        if not isinstance(self.owner_id, str) or not self.owner_id.strip():
            raise InvalidArgumentError("Owner id cannot be empty")

    @classmethod
    def create(
        cls,
        owner_id: str,
        metadata: FileMetadata,
        size: FileSize,
        file_type: FileType,
        file_id: Optional[FileId] = None,
        location: Optional[StorageLocation] = None,
    ) -> Tuple['FileRecord', List[FileEvent]]:
        """Create a new record in PENDING state."""
        record = cls(
            id=file_id or FileId.generate(),
            owner_id=owner_id,
            metadata=metadata,
            size=size,
            file_type=file_type,
            location=location,
        )
        event = FileCreated(
            record.id,
            owner_id=record.owner_id,
            file_name=metadata.original_file_name,
            mime_type=file_type.mime_type,
            size_bytes=size.value,
        )
        return record, [event]

    # Status transitions

    @property
    def state(self) -> UploadState:
        return self.status.state

    @property
    def is_archived(self) -> bool:
        return self.status.state is UploadState.ARCHIVED

    @property
    def is_uploaded(self) -> bool:
        """True once the content sits at its final storage location."""
        return self.status.state in (UploadState.COMPLETED, UploadState.ARCHIVED)

    def _ensure_mutable(self) -> None:
        if self.is_archived:
            raise FileArchivedError(self.id)

    def _transition(self, target: UploadState) -> None:
        self._ensure_mutable()
        self.status = self.status.transition_to(target)

    def start_upload(self) -> List[FileEvent]:
        self._transition(UploadState.UPLOADING)
        return [FileUploadStarted(self.id)]

    def update_progress(self, progress: int) -> List[FileEvent]:
        self._ensure_mutable()
        if not isinstance(progress, int) or not 0 <= progress <= 100:
            raise InvalidArgumentError(f"Progress must be between 0 and 100: {progress}")
        if progress < self.upload_progress:
            raise InvalidArgumentError(
                f"Progress cannot decrease from {self.upload_progress} to {progress}"
            )
        self.upload_progress = progress
        return []

    def complete_upload(self, location: StorageLocation) -> List[FileEvent]:
        """Attach the final location and move UPLOADING -> COMPLETED."""
        self._ensure_mutable()
        completed = self.status.transition_to(UploadState.COMPLETED)
        self.set_location(location)
        self.status = completed
        self.upload_progress = 100
        return [FileUploadCompleted(self.id, location=location)]

    def mark_as_archived(self) -> List[FileEvent]:
        self._ensure_mutable()
        if self.location is None:
            raise InvalidStateTransitionError(
                "Cannot archive a file without a storage location",
                from_state=self.status.state.value,
                to_state=UploadState.ARCHIVED.value,
            )
        self._transition(UploadState.ARCHIVED)
        return [FileArchived(self.id, location=self.location)]

    def mark_as_failed(self, reason: Optional[str] = None) -> List[FileEvent]:
        self._transition(UploadState.FAILED)
        return [FileUploadFailed(self.id, reason=reason)]

    def retry(self) -> List[FileEvent]:
        """FAILED -> PENDING; progress restarts."""
        self._transition(UploadState.PENDING)
        self.upload_progress = 0
        return []

    # Locations

    def set_location(self, location: StorageLocation) -> None:
        """Set the storage location; a location is never replaced."""
        self._ensure_mutable()
        if self.location is not None:
            raise InvalidStateTransitionError("Storage location is already set")
        self.location = location

    def set_thumbnail(self, location: StorageLocation) -> List[FileEvent]:
        if self.thumbnail_location is not None:
            raise InvalidStateTransitionError("Thumbnail location is already set")
        self.thumbnail_location = location
        return [ThumbnailAttached(self.id, location=location)]

    # Metadata

    def resolve_digest(self, digest: ContentDigest) -> List[FileEvent]:
        self._ensure_mutable()
        self.metadata.resolve_digest(digest)
        return []

    def add_tag(self, tag: str) -> List[FileEvent]:
        self._ensure_mutable()
        self.metadata.add_tag(tag)
        return []

    def add_tags(self, tags: Iterable[str]) -> List[FileEvent]:
        self._ensure_mutable()
        for tag in tags:
            self.metadata.add_tag(tag)
        return []

    def remove_tag(self, tag: str) -> List[FileEvent]:
        self._ensure_mutable()
        self.metadata.remove_tag(tag)
        return []

    def set_description(self, description: Optional[str]) -> List[FileEvent]:
        self._ensure_mutable()
        self.metadata.set_description(description)
        return []

    def set_gps_location(self, latitude: float, longitude: float) -> List[FileEvent]:
        self._ensure_mutable()
        self.metadata.set_gps_location(latitude, longitude)
        return []

    def set_device_model(self, device_model: Optional[str]) -> List[FileEvent]:
        self._ensure_mutable()
        self.metadata.set_device_model(device_model)
        return []

    @property
    def content_digest(self) -> ContentDigest:
        return self.metadata.content_digest

    @property
    def file_name(self) -> str:
        return self.metadata.original_file_name

    @property
    def captured_at(self) -> datetime:
        return self.metadata.captured_at
