"""Chunk store protocol.

ONLY chunk byte storage contract - holds received chunk payloads until a
session is completed and its file assembled.

Following maximum separation architecture - one file = one purpose.
"""

from typing import BinaryIO
from typing_extensions import Protocol, runtime_checkable

from ..value_objects import UploadSessionId


@runtime_checkable
class ChunkStore(Protocol):

    async def put(self, session_id: UploadSessionId, chunk_index: int, data: bytes) -> None:
        """Store a chunk; re-putting an index overwrites it."""
        ...

    async def assemble(self, session_id: UploadSessionId, total_chunks: int) -> BinaryIO:
        """Concatenate chunks 0..total_chunks-1 into a seekable stream."""
        ...

    async def discard(self, session_id: UploadSessionId) -> None:
        ...
