"""Initiate upload command.

ONLY chunked upload initiation - creates the pending file record and the
upload session that tracks its chunks.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from ...core.entities import DEFAULT_CHUNK_SIZE, FileMetadata, FileRecord, UploadSession
from ...core.events import FileEvent
from ...core.exceptions import InvalidArgumentError
from ...core.protocols import EventNotifier, UnitOfWork
from ...core.value_objects import (
    ContentDigest,
    FileId,
    FileSize,
    FileType,
    UploadSessionId,
)
from ..services.event_dispatcher import dispatch_events

logger = logging.getLogger(__name__)


@dataclass
class InitiateUploadData:
    """Data required to start a chunked upload."""

    owner_id: str
    file_name: str
    mime_type: str
    total_size: int
    captured_at: datetime

    chunk_size: Optional[int] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    device_model: Optional[str] = None


@dataclass
class InitiateUploadResult:
    """Result of upload initiation."""

    success: bool
    session_id: Optional[UploadSessionId] = None
    file_id: Optional[FileId] = None
    chunk_size: int = 0
    total_chunks: int = 0
    expires_at: Optional[datetime] = None
    events: List[FileEvent] = field(default_factory=list)

    error_code: Optional[str] = None
    error_message: Optional[str] = None


class InitiateUploadCommand:
    """Command to start a chunked upload session."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        default_chunk_size: int = DEFAULT_CHUNK_SIZE,
        session_ttl: timedelta = timedelta(hours=24),
        notifier: Optional[EventNotifier] = None
    ):
        self._uow_factory = uow_factory
        self._default_chunk_size = default_chunk_size
        self._session_ttl = session_ttl
        self._notifier = notifier

    async def execute(self, data: InitiateUploadData) -> InitiateUploadResult:
        """Create the record (PENDING, placeholder digest) and its session.

        Raises:
            InvalidArgumentError: Empty file name or MIME type, or a total
                size outside the archivable range
        """
        if not data.file_name or not data.file_name.strip():
            raise InvalidArgumentError("File name cannot be empty")
        if isinstance(data.total_size, bool) or not isinstance(data.total_size, int) or data.total_size <= 0:
            raise InvalidArgumentError(f"Total size must be positive: {data.total_size}")
        if data.chunk_size is not None and data.chunk_size <= 0:
            raise InvalidArgumentError(f"Chunk size must be positive: {data.chunk_size}")

        file_size = FileSize(data.total_size)
        file_type = FileType.from_mime_type(data.mime_type)
        metadata = FileMetadata.create(
            file_name=data.file_name,
            content_digest=ContentDigest.placeholder(),
            captured_at=data.captured_at,
            description=data.description,
            tags=data.tags,
            device_model=data.device_model,
        )
        record, events = FileRecord.create(data.owner_id, metadata, file_size, file_type)
        session = UploadSession.create(
            file_id=record.id,
            owner_id=record.owner_id,
            total_size=file_size.value,
            chunk_size=data.chunk_size or self._default_chunk_size,
            ttl=self._session_ttl,
        )

        async with self._uow_factory() as uow:
            uow.files.add(record)
            uow.upload_sessions.add(session)
            await uow.save_changes()

        logger.info(
            f"Initiated upload session {session.id} for file {record.id}: "
            f"{session.total_chunks} chunk(s) of {session.chunk_size} bytes"
        )
        await dispatch_events(self._notifier, events)

        return InitiateUploadResult(
            success=True,
            session_id=session.id,
            file_id=record.id,
            chunk_size=session.chunk_size,
            total_chunks=session.total_chunks,
            expires_at=session.expires_at,
            events=events,
        )


def create_initiate_upload_command(
    uow_factory: Callable[[], UnitOfWork],
    default_chunk_size: int = DEFAULT_CHUNK_SIZE,
    session_ttl: timedelta = timedelta(hours=24),
    notifier: Optional[EventNotifier] = None
) -> InitiateUploadCommand:
    """Create initiate upload command."""
    return InitiateUploadCommand(uow_factory, default_chunk_size, session_ttl, notifier)
