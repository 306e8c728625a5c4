"""Unit tests for ContentHasher."""

import hashlib
import pytest
from io import BytesIO

from coldvault.application.services import ContentHasher


class TestContentHasher:
    """Test SHA-256 digests over streams."""

    @pytest.mark.asyncio
    async def test_digest_format(self, hasher):
        data = b"hello coldvault"
        digest = await hasher.compute_digest(BytesIO(data))
        assert digest == "sha256:" + hashlib.sha256(data).hexdigest()

    @pytest.mark.asyncio
    async def test_small_blocks_give_same_digest(self):
        data = bytes(range(256)) * 100
        expected = await ContentHasher().compute_digest(BytesIO(data))
        assert await ContentHasher(block_size=7).compute_digest(BytesIO(data)) == expected

    @pytest.mark.asyncio
    async def test_reads_from_current_position(self, hasher):
        stream = BytesIO(b"headbody")
        stream.seek(4)
        digest = await hasher.compute_digest(stream)
        assert digest == "sha256:" + hashlib.sha256(b"body").hexdigest()

    @pytest.mark.asyncio
    async def test_verify(self, hasher):
        expected = "SHA256:" + hashlib.sha256(b"abc").hexdigest().upper()
        assert await hasher.verify(BytesIO(b"abc"), expected)
        assert not await hasher.verify(BytesIO(b"abd"), expected)
        assert not await hasher.verify(BytesIO(b"abc"), None)

    def test_rejects_non_positive_block_size(self):
        with pytest.raises(ValueError):
            ContentHasher(block_size=0)
