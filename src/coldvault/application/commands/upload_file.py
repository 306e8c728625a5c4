"""Upload file command.

ONLY single-shot upload - hashes the stream, deduplicates by content
digest, selects a provider, uploads, attaches a best-effort thumbnail and
persists the archived record.

Following maximum separation architecture - one file = one purpose.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import BinaryIO, Callable, List, Optional

from ...core.entities import FileMetadata, FileRecord
from ...core.events import FileEvent
from ...core.exceptions import (
    ConcurrencyConflictError,
    InvalidArgumentError,
    NoProviderAvailableError,
)
from ...core.protocols import (
    EventNotifier,
    StorageProviderProtocol,
    UnitOfWork,
    UploadOptions,
)
from ...core.value_objects import (
    ContentDigest,
    FileId,
    FileSize,
    FileType,
    StorageLocation,
)
from ..services.content_hasher import ContentHasher
from ..services.event_dispatcher import dispatch_events
from ..services.storage_manager import StorageProviderSelector
from ..services.thumbnail_publisher import ThumbnailPublisher

logger = logging.getLogger(__name__)


@dataclass
class UploadFileData:
    """Data required to upload a file."""

    owner_id: str
    stream: BinaryIO
    file_name: str
    mime_type: str
    captured_at: datetime

    preferred_provider: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    device_model: Optional[str] = None


@dataclass
class UploadFileResult:
    """Result of file upload operation."""

    success: bool

    file_id: Optional[FileId] = None
    location: Optional[StorageLocation] = None
    thumbnail_location: Optional[StorageLocation] = None
    is_duplicate: bool = False
    events: List[FileEvent] = field(default_factory=list)

    # Error information
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    retryable: bool = False

    @classmethod
    def failed(cls, error_code: str, error_message: str, retryable: bool = False) -> 'UploadFileResult':
        return cls(success=False, error_code=error_code, error_message=error_message, retryable=retryable)


def measure_stream(stream: BinaryIO) -> int:
    """Byte length of a seekable stream; leaves it rewound."""
    size = stream.seek(0, os.SEEK_END)
    stream.seek(0)
    return size


def ensure_seekable(stream: Optional[BinaryIO]) -> None:
    if stream is None:
        raise InvalidArgumentError("Stream is required")
    seekable = getattr(stream, "seekable", None)
    if seekable is None or not seekable():
        raise InvalidArgumentError("Stream must support seek; buffer it before uploading")


async def discard_stored_objects(
    selector: StorageProviderSelector,
    *locations: Optional[StorageLocation]
) -> None:
    """Best-effort removal of objects written for a commit that lost."""
    for location in locations:
        if location is None:
            continue
        provider = selector.get(location.provider_name)
        if provider is None:
            logger.error(f"Cannot remove orphaned object {location}: provider not registered")
            continue
        try:
            await provider.delete(location)
        except Exception as e:
            logger.error(f"Could not remove orphaned object {location}: {e}")


class UploadFileCommand:
    """Command to upload a single file.

    Nothing is persisted unless the provider upload succeeds, so a failed
    attempt never leaves an UPLOADING record behind.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        selector: StorageProviderSelector,
        hasher: Optional[ContentHasher] = None,
        thumbnails: Optional[ThumbnailPublisher] = None,
        notifier: Optional[EventNotifier] = None,
        max_upload_size: Optional[int] = None
    ):
        """Initialize upload file command.

        Args:
            uow_factory: Creates a unit of work per execution
            selector: Provider selection service
            hasher: Content hasher (SHA-256)
            thumbnails: Optional best-effort thumbnail publisher
            notifier: Optional receiver of committed events
            max_upload_size: Optional single-upload byte limit
        """
        self._uow_factory = uow_factory
        self._selector = selector
        self._hasher = hasher or ContentHasher()
        self._thumbnails = thumbnails
        self._notifier = notifier
        self._max_upload_size = max_upload_size

    async def execute(self, data: UploadFileData) -> UploadFileResult:
        """Execute file upload operation.

        Raises:
            InvalidArgumentError: Empty name or MIME type, non-seekable
                stream, or size outside the archivable range
        """
        self._validate(data)
        stream = data.stream

        stream.seek(0)
        digest = await self._hasher.compute_digest(stream)

        async with self._uow_factory() as uow:
            existing = await uow.files.get_by_digest(digest)
            if existing is not None:
                logger.info(f"Duplicate upload of {digest} detected, returning file {existing.id}")
                return self._duplicate_result(existing)

            file_size = FileSize(measure_stream(stream))
            if self._max_upload_size is not None and file_size.value > self._max_upload_size:
                raise InvalidArgumentError(
                    f"File exceeds single upload limit of {self._max_upload_size} bytes; use a chunked upload"
                )
            file_type = FileType.from_mime_type(data.mime_type)
            metadata = FileMetadata.create(
                file_name=data.file_name,
                content_digest=ContentDigest(digest),
                captured_at=data.captured_at,
                description=data.description,
                tags=data.tags,
                device_model=data.device_model,
            )
            record, events = FileRecord.create(data.owner_id, metadata, file_size, file_type)
            events += record.start_upload()

            try:
                provider = self._selector.select_provider(
                    file_type.category, file_size, data.preferred_provider
                )
            except NoProviderAvailableError as e:
                logger.error(f"Upload of {data.file_name} aborted: {e.message}")
                return UploadFileResult.failed(e.error_code, e.message, retryable=False)

            location, error = await self._upload(provider, stream, record)
            if location is None:
                return UploadFileResult.failed("UploadFailed", error, retryable=True)

            events += record.complete_upload(location)
            events += record.mark_as_archived()

            if self._thumbnails is not None:
                events += await self._thumbnails.publish(record, stream)

            uow.files.add(record)
            try:
                await uow.save_changes()
            except ConcurrencyConflictError as e:
                return await self._resolve_commit_conflict(record, digest, e)

        logger.info(
            f"Uploaded file {record.id} ({file_size}) to {location.provider_name}"
        )
        await dispatch_events(self._notifier, events)

        return UploadFileResult(
            success=True,
            file_id=record.id,
            location=record.location,
            thumbnail_location=record.thumbnail_location,
            events=events,
        )

    def _validate(self, data: UploadFileData) -> None:
        if not data.owner_id or not data.owner_id.strip():
            raise InvalidArgumentError("Owner id cannot be empty")
        if not data.file_name or not data.file_name.strip():
            raise InvalidArgumentError("File name cannot be empty")
        if not data.mime_type or not data.mime_type.strip():
            raise InvalidArgumentError("MIME type cannot be empty")
        if data.captured_at is None:
            raise InvalidArgumentError("Capture time is required")
        ensure_seekable(data.stream)

    async def _upload(
        self,
        provider: StorageProviderProtocol,
        stream: BinaryIO,
        record: FileRecord
    ):
        """Upload the content; returns ``(location, error_message)``."""
        options = UploadOptions(
            file_name=record.metadata.sanitized_file_name,
            content_type=record.file_type.mime_type,
            category=record.file_type.category,
            metadata={
                "file-id": str(record.id),
                "owner-id": record.owner_id,
                "content-digest": str(record.content_digest),
            },
        )
        stream.seek(0)
        try:
            result = await provider.upload(stream, options)
        except Exception as e:
            logger.error(f"Provider {provider.provider_name} raised during upload of {record.id}: {e}")
            return None, f"Unexpected error during upload: {e}"

        if not result.success or result.location is None:
            message = result.error_message or "Provider upload failed"
            logger.warning(f"Provider {provider.provider_name} rejected upload of {record.id}: {message}")
            return None, message
        return result.location, None

    async def _resolve_commit_conflict(
        self,
        record: FileRecord,
        digest: str,
        error: ConcurrencyConflictError
    ) -> UploadFileResult:
        """A concurrent upload of the same content committed first."""
        logger.warning(f"Commit of file {record.id} conflicted: {error.message}")
        await discard_stored_objects(self._selector, record.location, record.thumbnail_location)

        async with self._uow_factory() as uow:
            existing = await uow.files.get_by_digest(digest)
        if existing is not None:
            return self._duplicate_result(existing)
        return UploadFileResult.failed(error.error_code, error.message, retryable=True)

    @staticmethod
    def _duplicate_result(existing: FileRecord) -> UploadFileResult:
        return UploadFileResult(
            success=True,
            file_id=existing.id,
            location=existing.location,
            thumbnail_location=existing.thumbnail_location,
            is_duplicate=True,
        )


# Factory function for dependency injection
def create_upload_file_command(
    uow_factory: Callable[[], UnitOfWork],
    selector: StorageProviderSelector,
    hasher: Optional[ContentHasher] = None,
    thumbnails: Optional[ThumbnailPublisher] = None,
    notifier: Optional[EventNotifier] = None,
    max_upload_size: Optional[int] = None
) -> UploadFileCommand:
    """Create upload file command."""
    return UploadFileCommand(
        uow_factory=uow_factory,
        selector=selector,
        hasher=hasher,
        thumbnails=thumbnails,
        notifier=notifier,
        max_upload_size=max_upload_size
    )
