"""Content hasher service.

ONLY content hashing - computes SHA-256 digests of streams in a worker
thread without buffering the whole content.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import hashlib
import hmac
from typing import BinaryIO

from ...core.value_objects import ContentDigest


class ContentHasher:
    """SHA-256 content hasher.

    Reads from the current stream position to EOF and leaves the stream
    there; callers rewind before reusing it.
    """

    BLOCK_SIZE = 64 * 1024

    def __init__(self, block_size: int = BLOCK_SIZE):
        if block_size <= 0:
            raise ValueError("Block size must be positive")
        self._block_size = block_size

    def _hash_stream(self, stream: BinaryIO) -> str:
        hasher = hashlib.sha256()
        while block := stream.read(self._block_size):
            hasher.update(block)
        return f"{ContentDigest.ALGORITHM}:{hasher.hexdigest()}"

    async def compute_digest(self, stream: BinaryIO) -> str:
        """Compute ``"sha256:<hex>"`` over the remaining stream content."""
        return await asyncio.to_thread(self._hash_stream, stream)

    async def verify(self, stream: BinaryIO, expected: str) -> bool:
        """Check the stream content against an expected digest."""
        actual = await self.compute_digest(stream)
        return hmac.compare_digest(actual, (expected or "").strip().lower())
