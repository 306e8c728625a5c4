"""Complete upload command.

ONLY chunked upload completion - refuses incomplete sessions, hashes the
assembled content, deduplicates, uploads to the selected provider and
archives the record.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass, field
from typing import BinaryIO, Callable, List, Optional

from ...core.events import FileEvent
from ...core.exceptions import (
    ColdVaultError,
    ConcurrencyConflictError,
    FileRecordNotFoundError,
    InvalidArgumentError,
    NoProviderAvailableError,
    SessionCompletedError,
    SessionExpiredError,
    SessionNotFoundError,
    UploadIncompleteError,
)
from ...core.protocols import ChunkStore, EventNotifier, UnitOfWork, UploadOptions
from ...core.value_objects import (
    ContentDigest,
    FileId,
    StorageLocation,
    UploadSessionId,
    UploadState,
)
from ..services.content_hasher import ContentHasher
from ..services.event_dispatcher import dispatch_events
from ..services.storage_manager import StorageProviderSelector
from ..services.thumbnail_publisher import ThumbnailPublisher
from .upload_file import discard_stored_objects, ensure_seekable, measure_stream

logger = logging.getLogger(__name__)


@dataclass
class CompleteUploadData:
    """Data required to complete a chunked upload."""

    session_id: UploadSessionId
    # Assembled from the chunk store when omitted
    stream: Optional[BinaryIO] = None
    preferred_provider: Optional[str] = None


@dataclass
class CompleteUploadResult:
    """Result of upload completion."""

    success: bool
    file_id: Optional[FileId] = None
    location: Optional[StorageLocation] = None
    thumbnail_location: Optional[StorageLocation] = None
    is_duplicate: bool = False
    events: List[FileEvent] = field(default_factory=list)

    error_code: Optional[str] = None
    error_message: Optional[str] = None
    error_details: Optional[dict] = None
    retryable: bool = False

    @classmethod
    def failed(
        cls,
        error_code: str,
        error_message: str,
        retryable: bool = False,
        error_details: Optional[dict] = None,
        file_id: Optional[FileId] = None,
        events: Optional[List[FileEvent]] = None
    ) -> 'CompleteUploadResult':
        return cls(
            success=False,
            file_id=file_id,
            error_code=error_code,
            error_message=error_message,
            error_details=error_details,
            retryable=retryable,
            events=events or [],
        )


class CompleteUploadCommand:
    """Command to finish a chunked upload.

    Completion is refused unless every chunk index has been recorded. A
    provider failure marks the record FAILED and keeps the session open so
    the caller can complete again.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        selector: StorageProviderSelector,
        hasher: Optional[ContentHasher] = None,
        chunk_store: Optional[ChunkStore] = None,
        thumbnails: Optional[ThumbnailPublisher] = None,
        notifier: Optional[EventNotifier] = None
    ):
        self._uow_factory = uow_factory
        self._selector = selector
        self._hasher = hasher or ContentHasher()
        self._chunk_store = chunk_store
        self._thumbnails = thumbnails
        self._notifier = notifier

    async def execute(self, data: CompleteUploadData) -> CompleteUploadResult:
        """Execute upload completion.

        Raises:
            InvalidArgumentError: No stream given and no chunk store
                configured, or the stream is not seekable
        """
        async with self._uow_factory() as uow:
            session = await uow.upload_sessions.get_by_id(data.session_id)
            if session is None:
                error = SessionNotFoundError(data.session_id)
                return CompleteUploadResult.failed(error.error_code, error.message)

            if session.is_completed:
                error = SessionCompletedError(session.id)
                return CompleteUploadResult.failed(error.error_code, error.message)
            if session.is_expired:
                error = SessionExpiredError(session.id)
                return CompleteUploadResult.failed(error.error_code, error.message)
            if not session.is_complete:
                error = UploadIncompleteError(
                    len(session.uploaded_chunks), session.total_chunks, session.missing_chunks()
                )
                return CompleteUploadResult.failed(
                    error.error_code, error.message, error_details=error.details
                )

            record = await uow.files.get_by_id(session.file_id)
            if record is None:
                error = FileRecordNotFoundError(session.file_id)
                return CompleteUploadResult.failed(error.error_code, error.message)

            try:
                stream = await self._open_stream(data, session)
            except InvalidArgumentError:
                raise
            except ColdVaultError as e:
                logger.warning(f"Could not assemble content of session {session.id}: {e.message}")
                return CompleteUploadResult.failed(
                    e.error_code, e.message, error_details=e.details, file_id=record.id
                )

            assembled_size = measure_stream(stream)
            if assembled_size != session.total_size:
                return CompleteUploadResult.failed(
                    "SizeMismatch",
                    f"Assembled content is {assembled_size} bytes, expected {session.total_size}",
                    file_id=record.id,
                )

            digest = await self._hasher.compute_digest(stream)
            stream.seek(0)

            existing = await uow.files.get_by_digest(digest)
            if existing is not None and existing.id != record.id:
                session.complete()
                uow.upload_sessions.update(session)
                uow.files.delete(record)
                await uow.save_changes()
                await self._discard_chunks(session.id)
                logger.info(
                    f"Session {session.id} duplicates file {existing.id}; "
                    f"placeholder record {record.id} removed"
                )
                return CompleteUploadResult(
                    success=True,
                    file_id=existing.id,
                    location=existing.location,
                    thumbnail_location=existing.thumbnail_location,
                    is_duplicate=True,
                )

            events: List[FileEvent] = []
            if record.state is UploadState.FAILED:
                events += record.retry()
            events += record.start_upload()

            try:
                provider = self._selector.select_provider(
                    record.file_type.category, record.size, data.preferred_provider
                )
            except NoProviderAvailableError as e:
                logger.error(f"Completion of session {session.id} aborted: {e.message}")
                return CompleteUploadResult.failed(e.error_code, e.message, file_id=record.id)

            options = UploadOptions(
                file_name=record.metadata.sanitized_file_name,
                content_type=record.file_type.mime_type,
                category=record.file_type.category,
                metadata={
                    "file-id": str(record.id),
                    "owner-id": record.owner_id,
                    "content-digest": digest,
                },
            )
            try:
                result = await provider.upload(stream, options)
                error_message = result.error_message or "Provider upload failed"
                uploaded = result.success and result.location is not None
            except Exception as e:
                logger.error(f"Provider {provider.provider_name} raised completing session {session.id}: {e}")
                error_message = f"Unexpected error during upload: {e}"
                uploaded = False

            if not uploaded:
                events += record.mark_as_failed(error_message)
                uow.files.update(record)
                try:
                    await uow.save_changes()
                except ConcurrencyConflictError as e:
                    logger.warning(f"Could not persist failure of file {record.id}: {e.message}")
                await dispatch_events(self._notifier, events)
                return CompleteUploadResult.failed(
                    "UploadFailed", error_message, retryable=True, file_id=record.id, events=events
                )

            events += record.resolve_digest(ContentDigest(digest))
            events += record.complete_upload(result.location)
            events += record.mark_as_archived()

            if self._thumbnails is not None:
                events += await self._thumbnails.publish(record, stream)

            session.complete()
            uow.files.update(record)
            uow.upload_sessions.update(session)
            try:
                await uow.save_changes()
            except ConcurrencyConflictError as e:
                logger.warning(f"Completion of session {session.id} conflicted: {e.message}")
                await discard_stored_objects(self._selector, record.location, record.thumbnail_location)
                return CompleteUploadResult.failed(
                    e.error_code, e.message, retryable=True, file_id=record.id
                )

        await self._discard_chunks(session.id)
        logger.info(f"Completed session {session.id}: file {record.id} archived on {provider.provider_name}")
        await dispatch_events(self._notifier, events)

        return CompleteUploadResult(
            success=True,
            file_id=record.id,
            location=record.location,
            thumbnail_location=record.thumbnail_location,
            events=events,
        )

    async def _open_stream(self, data: CompleteUploadData, session) -> BinaryIO:
        if data.stream is not None:
            ensure_seekable(data.stream)
            return data.stream
        if self._chunk_store is None:
            raise InvalidArgumentError("An assembled stream is required when no chunk store is configured")
        return await self._chunk_store.assemble(session.id, session.total_chunks)

    async def _discard_chunks(self, session_id: UploadSessionId) -> None:
        if self._chunk_store is None:
            return
        try:
            await self._chunk_store.discard(session_id)
        except Exception as e:
            logger.warning(f"Could not discard chunks of session {session_id}: {e}")


def create_complete_upload_command(
    uow_factory: Callable[[], UnitOfWork],
    selector: StorageProviderSelector,
    hasher: Optional[ContentHasher] = None,
    chunk_store: Optional[ChunkStore] = None,
    thumbnails: Optional[ThumbnailPublisher] = None,
    notifier: Optional[EventNotifier] = None
) -> CompleteUploadCommand:
    """Create complete upload command."""
    return CompleteUploadCommand(
        uow_factory=uow_factory,
        selector=selector,
        hasher=hasher,
        chunk_store=chunk_store,
        thumbnails=thumbnails,
        notifier=notifier
    )
