"""Upload session entity.

ONLY upload session - represents a chunked upload session with chunk
tracking, progress calculation, expiry and completion handling.

Following maximum separation architecture - one file = one purpose.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import List, Optional, Set

from ...utils import utc_now
from ..exceptions import (
    InvalidArgumentError,
    InvalidChunkIndexError,
    SessionCompletedError,
    SessionExpiredError,
    UploadIncompleteError,
)
from ..value_objects import FileId, UploadSessionId


DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024  # 5MB
DEFAULT_SESSION_TTL = timedelta(hours=24)


class UploadSessionState(Enum):
    """Derived lifecycle state of an upload session."""
    INITIATED = "initiated"
    ACCUMULATING = "accumulating"
    COMPLETE = "complete"
    EXPIRED = "expired"


@dataclass
class UploadSession:
    """Upload session entity.

    Tracks which chunk indices of a file have been received. The session
    never holds chunk bytes itself; it only records their indices.
    """

    file_id: FileId
    owner_id: str
    total_size: int
    chunk_size: int = DEFAULT_CHUNK_SIZE
    id: UploadSessionId = field(default_factory=UploadSessionId.generate)
    uploaded_chunks: Set[int] = field(default_factory=set)
    created_at: datetime = field(default_factory=utc_now)
    expires_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    # Owned by the record store; bumped on every committed update
    version: int = 0

    def __post_init__(self):
        """Validate entity state after initialization."""
        if isinstance(self.total_size, bool) or not isinstance(self.total_size, int) or self.total_size <= 0:
            raise InvalidArgumentError(f"Total size must be positive: {self.total_size}")
        if isinstance(self.chunk_size, bool) or not isinstance(self.chunk_size, int) or self.chunk_size <= 0:
            raise InvalidArgumentError(f"Chunk size must be positive: {self.chunk_size}")
        if self.expires_at is None:
            self.expires_at = self.created_at + DEFAULT_SESSION_TTL
        self.uploaded_chunks = set(self.uploaded_chunks)

    @classmethod
    def create(
        cls,
        file_id: FileId,
        owner_id: str,
        total_size: int,
        chunk_size: Optional[int] = None,
        ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> 'UploadSession':
        now = utc_now()
        return cls(
            file_id=file_id,
            owner_id=owner_id,
            total_size=total_size,
            chunk_size=chunk_size if chunk_size is not None else DEFAULT_CHUNK_SIZE,
            created_at=now,
            expires_at=now + ttl,
        )

    @property
    def total_chunks(self) -> int:
        return math.ceil(self.total_size / self.chunk_size)

    @property
    def progress(self) -> int:
        """Percentage of chunks received, rounded to an integer."""
        return round(len(self.uploaded_chunks) * 100 / self.total_chunks)

    @property
    def is_complete(self) -> bool:
        """True when every chunk index has been received."""
        return len(self.uploaded_chunks) == self.total_chunks

    @property
    def is_completed(self) -> bool:
        """True once ``complete()`` has stamped the session."""
        return self.completed_at is not None

    @property
    def is_expired(self) -> bool:
        return not self.is_completed and utc_now() > self.expires_at

    @property
    def state(self) -> UploadSessionState:
        if self.is_completed:
            return UploadSessionState.COMPLETE
        if self.is_expired:
            return UploadSessionState.EXPIRED
        if self.uploaded_chunks:
            return UploadSessionState.ACCUMULATING
        return UploadSessionState.INITIATED

    def missing_chunks(self) -> List[int]:
        return [i for i in range(self.total_chunks) if i not in self.uploaded_chunks]

    def expected_chunk_length(self, chunk_index: int) -> int:
        """Byte length the chunk at ``chunk_index`` must have."""
        self._validate_index(chunk_index)
        if chunk_index < self.total_chunks - 1:
            return self.chunk_size
        return self.total_size - self.chunk_size * (self.total_chunks - 1)

    def _validate_index(self, chunk_index: int) -> None:
        if isinstance(chunk_index, bool) or not isinstance(chunk_index, int) \
                or not 0 <= chunk_index < self.total_chunks:
            raise InvalidChunkIndexError(chunk_index, self.total_chunks)

    def mark_chunk_uploaded(self, chunk_index: int) -> bool:
        """Record a received chunk.

        Returns:
            False when the index was already recorded (idempotent re-mark)

        Raises:
            InvalidChunkIndexError: Index outside [0, total_chunks)
            SessionCompletedError: Session already completed
            SessionExpiredError: Session past its expiry time
        """
        self._validate_index(chunk_index)
        if self.is_completed:
            raise SessionCompletedError(self.id)
        if self.is_expired:
            raise SessionExpiredError(self.id)
        if chunk_index in self.uploaded_chunks:
            return False
        self.uploaded_chunks.add(chunk_index)
        return True

    def complete(self) -> None:
        """Stamp the session complete.

        Raises:
            SessionCompletedError: Session already completed
            UploadIncompleteError: Chunks are still missing
        """
        if self.is_completed:
            raise SessionCompletedError(self.id)
        if not self.is_complete:
            raise UploadIncompleteError(
                len(self.uploaded_chunks), self.total_chunks, self.missing_chunks()
            )
        self.completed_at = utc_now()
