"""In-memory chunk store.

ONLY chunk payload storage - keeps received chunk bytes per session until
the session is completed and the file assembled.

Chunks live in process memory, so they do not survive a restart. A durable
record store paired with this store loses chunk payloads on restart;
completing such sessions then requires a caller-supplied stream.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from io import BytesIO
from typing import BinaryIO, Callable, Dict, Optional

from ...core.exceptions import UploadIncompleteError
from ...core.value_objects import UploadSessionId
from ...utils.timezone import utc_now

logger = logging.getLogger(__name__)


class InMemoryChunkStore:
    """Chunk store backed by a dict of byte strings.

    With a ``ttl``, chunks of a session that has not received a write for
    longer than the ttl are evicted on the next write or ``purge_expired``.
    Sessions expire a fixed time after creation, so a ttl equal to the
    session lifetime never evicts chunks of a live session.
    """

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self._chunks: Dict[UploadSessionId, Dict[int, bytes]] = {}
        self._touched: Dict[UploadSessionId, datetime] = {}
        self._ttl = ttl
        self._clock = clock
        self._lock = asyncio.Lock()

    async def put(self, session_id: UploadSessionId, chunk_index: int, data: bytes) -> None:
        async with self._lock:
            now = self._clock()
            self._evict_stale(now)
            self._chunks.setdefault(session_id, {})[chunk_index] = bytes(data)
            self._touched[session_id] = now

    async def assemble(self, session_id: UploadSessionId, total_chunks: int) -> BinaryIO:
        chunks = self._chunks.get(session_id, {})
        missing = [i for i in range(total_chunks) if i not in chunks]
        if missing:
            raise UploadIncompleteError(total_chunks - len(missing), total_chunks, missing)

        buffer = BytesIO()
        for index in range(total_chunks):
            buffer.write(chunks[index])
        buffer.seek(0)
        return buffer

    async def discard(self, session_id: UploadSessionId) -> None:
        async with self._lock:
            self._chunks.pop(session_id, None)
            self._touched.pop(session_id, None)

    async def purge_expired(self) -> int:
        """Drop chunks of sessions idle past the ttl; returns sessions dropped."""
        async with self._lock:
            return self._evict_stale(self._clock())

    def chunk_count(self, session_id: UploadSessionId) -> int:
        return len(self._chunks.get(session_id, {}))

    def _evict_stale(self, now: datetime) -> int:
        if self._ttl is None:
            return 0
        stale = [sid for sid, touched in self._touched.items() if now - touched > self._ttl]
        for session_id in stale:
            self._chunks.pop(session_id, None)
            self._touched.pop(session_id, None)
        if stale:
            logger.info(f"Evicted chunks of {len(stale)} idle upload session(s)")
        return len(stale)
