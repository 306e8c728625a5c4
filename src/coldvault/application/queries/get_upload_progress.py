"""Get upload progress query.

ONLY progress tracking - snapshot of a chunked upload session.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional

from ...core.entities import UploadSessionState
from ...core.protocols import UnitOfWork
from ...core.value_objects import FileId, UploadSessionId


@dataclass
class UploadProgress:
    """Status snapshot of an upload session."""

    session_id: UploadSessionId
    file_id: FileId
    progress: int
    total_chunks: int
    uploaded_chunks: List[int] = field(default_factory=list)
    missing_chunks: List[int] = field(default_factory=list)
    is_complete: bool = False
    is_expired: bool = False
    state: UploadSessionState = UploadSessionState.INITIATED
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class GetUploadProgressQuery:
    """Query to get upload progress."""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]):
        self._uow_factory = uow_factory

    async def execute(self, session_id: UploadSessionId) -> Optional[UploadProgress]:
        """Return the session snapshot, or None for an unknown session."""
        async with self._uow_factory() as uow:
            session = await uow.upload_sessions.get_by_id(session_id)

        if session is None:
            return None

        return UploadProgress(
            session_id=session.id,
            file_id=session.file_id,
            progress=session.progress,
            total_chunks=session.total_chunks,
            uploaded_chunks=sorted(session.uploaded_chunks),
            missing_chunks=session.missing_chunks(),
            is_complete=session.is_complete,
            is_expired=session.is_expired,
            state=session.state,
            created_at=session.created_at,
            expires_at=session.expires_at,
            completed_at=session.completed_at,
        )


def create_get_upload_progress_query(uow_factory: Callable[[], UnitOfWork]) -> GetUploadProgressQuery:
    """Create get upload progress query."""
    return GetUploadProgressQuery(uow_factory)
