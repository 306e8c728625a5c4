"""Upload chunk command.

ONLY chunk receipt - validates and records one chunk of a chunked upload
session, persisting the session after every chunk.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ...core.exceptions import (
    ColdVaultError,
    ConcurrencyConflictError,
    InvalidChunkSizeError,
    SessionNotFoundError,
)
from ...core.protocols import ChunkStore, UnitOfWork
from ...core.value_objects import UploadSessionId

logger = logging.getLogger(__name__)


@dataclass
class UploadChunkData:
    """Data for one chunk."""

    session_id: UploadSessionId
    chunk_index: int
    data: bytes


@dataclass
class UploadChunkResult:
    """Result of a chunk upload."""

    success: bool
    chunk_index: int
    progress: int = 0
    is_complete: bool = False

    error_code: Optional[str] = None
    error_message: Optional[str] = None


class UploadFileChunkCommand:
    """Command to record one chunk of an upload session.

    Concurrent chunks for the same session are reconciled by optimistic
    concurrency: a conflicting commit reloads the session and re-applies
    the chunk index, up to ``max_conflict_retries`` times.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        chunk_store: Optional[ChunkStore] = None,
        max_conflict_retries: int = 3
    ):
        self._uow_factory = uow_factory
        self._chunk_store = chunk_store
        self._max_conflict_retries = max_conflict_retries

    async def execute(self, data: UploadChunkData) -> UploadChunkResult:
        """Validate, store and record a chunk."""
        payload = bytes(data.data or b"")
        stored = False
        last_conflict: Optional[ConcurrencyConflictError] = None

        for attempt in range(self._max_conflict_retries + 1):
            try:
                async with self._uow_factory() as uow:
                    session = await uow.upload_sessions.get_by_id(data.session_id)
                    if session is None:
                        raise SessionNotFoundError(data.session_id)

                    expected = session.expected_chunk_length(data.chunk_index)
                    if len(payload) != expected:
                        raise InvalidChunkSizeError(data.chunk_index, expected, len(payload))

                    newly_marked = session.mark_chunk_uploaded(data.chunk_index)

                    if self._chunk_store is not None and not stored:
                        await self._chunk_store.put(session.id, data.chunk_index, payload)
                        stored = True

                    if newly_marked:
                        uow.upload_sessions.update(session)
                        await uow.save_changes()

                    logger.debug(
                        f"Chunk {data.chunk_index} of session {session.id} recorded "
                        f"({session.progress}%)"
                    )
                    return UploadChunkResult(
                        success=True,
                        chunk_index=data.chunk_index,
                        progress=session.progress,
                        is_complete=session.is_complete,
                    )

            except ConcurrencyConflictError as e:
                last_conflict = e
                logger.debug(
                    f"Chunk {data.chunk_index} of session {data.session_id} conflicted "
                    f"(attempt {attempt + 1}), reloading"
                )
            except ColdVaultError as e:
                logger.info(f"Chunk {data.chunk_index} of session {data.session_id} rejected: {e.message}")
                return UploadChunkResult(
                    success=False,
                    chunk_index=data.chunk_index,
                    error_code=e.error_code,
                    error_message=e.message,
                )

        logger.warning(
            f"Chunk {data.chunk_index} of session {data.session_id} gave up after "
            f"{self._max_conflict_retries + 1} conflicting attempts"
        )
        return UploadChunkResult(
            success=False,
            chunk_index=data.chunk_index,
            error_code=last_conflict.error_code,
            error_message=last_conflict.message,
        )


def create_upload_file_chunk_command(
    uow_factory: Callable[[], UnitOfWork],
    chunk_store: Optional[ChunkStore] = None,
    max_conflict_retries: int = 3
) -> UploadFileChunkCommand:
    """Create upload chunk command."""
    return UploadFileChunkCommand(uow_factory, chunk_store, max_conflict_retries)
