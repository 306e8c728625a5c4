"""Unit tests for InMemoryStorageProvider."""

import pytest
from datetime import datetime, timedelta, timezone
from io import BytesIO

from coldvault.core.exceptions import (
    InvalidArgumentError,
    RetrievalRequiredError,
    StorageObjectNotFoundError,
    StorageUnavailableError,
    UnsupportedOperationError,
)
from coldvault.core.protocols import RetrievalStatus, UploadOptions
from coldvault.core.value_objects import FileCategory, StorageLocation
from coldvault.infrastructure.storage import InMemoryStorageProvider, S3GlacierDeepArchiveProvider


OPTIONS = UploadOptions(file_name="a.jpg", content_type="image/jpeg", category=FileCategory.PHOTO)


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def archive(clock):
    """Delayed-access provider with a 12 hour restore delay."""
    return InMemoryStorageProvider(
        "s3-glacier-deep",
        capabilities=S3GlacierDeepArchiveProvider.CAPABILITIES,
        restore_window=timedelta(days=1),
        clock=clock,
    )


class TestInstantAccess:
    """Test the default instant-access behavior."""

    @pytest.mark.asyncio
    async def test_upload_download_delete(self):
        provider = InMemoryStorageProvider("hot")
        result = await provider.upload(BytesIO(b"data"), OPTIONS)

        assert result.success
        assert result.location.path.startswith("memory://hot/photo/")
        assert (await provider.download(result.location)).read() == b"data"
        assert await provider.delete(result.location)
        assert not await provider.delete(result.location)
        assert provider.object_count == 0

    @pytest.mark.asyncio
    async def test_missing_object(self):
        provider = InMemoryStorageProvider("hot")
        with pytest.raises(StorageObjectNotFoundError):
            await provider.download(StorageLocation("hot", "memory://hot/nothing"))

    @pytest.mark.asyncio
    async def test_foreign_location(self):
        provider = InMemoryStorageProvider("hot")
        with pytest.raises(InvalidArgumentError):
            await provider.download(StorageLocation("cold", "memory://cold/x"))

    @pytest.mark.asyncio
    async def test_retrieval_unsupported(self):
        provider = InMemoryStorageProvider("hot")
        result = await provider.upload(BytesIO(b"data"), OPTIONS)
        with pytest.raises(UnsupportedOperationError):
            await provider.initiate_retrieval(result.location)

    @pytest.mark.asyncio
    async def test_failure_injection(self):
        provider = InMemoryStorageProvider("hot")
        provider.upload_error = "disk full"
        result = await provider.upload(BytesIO(b"data"), OPTIONS)
        assert not result.success
        assert result.error_message == "disk full"

        provider.upload_error = None
        provider.unavailable = True
        with pytest.raises(StorageUnavailableError):
            await provider.download(StorageLocation("hot", "memory://hot/x"))
        assert not (await provider.check_health()).is_healthy


class TestDelayedAccess:
    """Test the simulated restore lifecycle."""

    @pytest.mark.asyncio
    async def test_download_requires_restore(self, archive, clock):
        location = (await archive.upload(BytesIO(b"cold"), OPTIONS)).location
        with pytest.raises(RetrievalRequiredError):
            await archive.download(location)

        result = await archive.initiate_retrieval(location)
        assert result.estimated_completion_time == timedelta(hours=12)
        assert result.retrieval_id.startswith("s3-glacier-deep:")

        clock.advance(timedelta(hours=6))
        detail = await archive.get_retrieval_status(result.retrieval_id)
        assert detail.status is RetrievalStatus.IN_PROGRESS
        assert detail.progress_percentage == 50
        with pytest.raises(RetrievalRequiredError):
            await archive.download(location)

        clock.advance(timedelta(hours=6))
        detail = await archive.get_retrieval_status(result.retrieval_id)
        assert detail.status is RetrievalStatus.READY
        assert (await archive.download(location)).read() == b"cold"

        clock.advance(timedelta(days=1))
        detail = await archive.get_retrieval_status(result.retrieval_id)
        assert detail.status is RetrievalStatus.EXPIRED
        with pytest.raises(RetrievalRequiredError):
            await archive.download(location)

    @pytest.mark.asyncio
    async def test_status_before_request(self, archive):
        location = (await archive.upload(BytesIO(b"cold"), OPTIONS)).location
        key = location.path[len("memory://s3-glacier-deep/"):]
        detail = await archive.get_retrieval_status(f"s3-glacier-deep:{key}")
        assert detail.status is RetrievalStatus.REQUESTED

    @pytest.mark.asyncio
    async def test_repeat_request_keeps_original_restore(self, archive, clock):
        location = (await archive.upload(BytesIO(b"cold"), OPTIONS)).location
        first = await archive.initiate_retrieval(location)
        clock.advance(timedelta(hours=11))
        await archive.initiate_retrieval(location)
        clock.advance(timedelta(hours=1))
        assert (await archive.get_retrieval_status(first.retrieval_id)).status is RetrievalStatus.READY
