"""Tests for UploadFileCommand."""

import pytest
from io import BytesIO
from unittest.mock import AsyncMock, MagicMock

from coldvault.application.commands import UploadFileCommand, UploadFileData, create_upload_file_command
from coldvault.application.services import StorageManagerConfig, StorageProviderSelector
from coldvault.core.exceptions import ConcurrencyConflictError, InvalidArgumentError
from coldvault.core.value_objects import UploadState
from tests.factories import CAPTURED_AT, make_jpeg


def upload_data(content: bytes, file_name: str = "test.jpg", mime_type: str = "image/jpeg", **kwargs):
    return UploadFileData(
        owner_id="owner-1",
        stream=BytesIO(content),
        file_name=file_name,
        mime_type=mime_type,
        captured_at=CAPTURED_AT,
        **kwargs,
    )


@pytest.fixture
def command(record_store, selector, hasher, thumbnails, mock_notifier):
    return create_upload_file_command(record_store, selector, hasher, thumbnails, mock_notifier)


async def stored(record_store, file_id):
    async with record_store() as uow:
        return await uow.files.get_by_id(file_id)


class TestUploadFile:
    """Test the single-request upload flow."""

    @pytest.mark.asyncio
    async def test_archives_photo_with_thumbnail(self, command, record_store, memory_providers, mock_notifier):
        result = await command.execute(upload_data(make_jpeg(), tags=["Trip"], description="hike"))

        assert result.success
        assert not result.is_duplicate
        assert result.location.provider_name == "s3-glacier-deep"
        assert result.thumbnail_location.provider_name == "idrive-e2"
        assert [e.event_type for e in result.events] == [
            "FileCreated", "FileUploadStarted", "FileUploadCompleted", "FileArchived", "ThumbnailAttached",
        ]

        record = await stored(record_store, result.file_id)
        assert record.state is UploadState.ARCHIVED
        assert record.metadata.tags == frozenset({"trip"})
        assert record.metadata.description == "hike"
        assert record.version == 1
        assert memory_providers["s3-glacier-deep"].contains(record.location)
        mock_notifier.notify.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_duplicate_content_is_not_uploaded_twice(self, command, memory_providers):
        content = make_jpeg()
        first = await command.execute(upload_data(content))
        second = await command.execute(upload_data(content, file_name="renamed.jpg"))

        assert second.success
        assert second.is_duplicate
        assert second.file_id == first.file_id
        assert second.location == first.location
        assert second.events == []
        assert memory_providers["s3-glacier-deep"].object_count == 1

    @pytest.mark.asyncio
    async def test_preferred_provider(self, command):
        result = await command.execute(upload_data(b"notes", "notes.txt", "text/plain", preferred_provider="s3-standard"))
        assert result.location.provider_name == "s3-standard"
        assert result.thumbnail_location is None

    @pytest.mark.asyncio
    async def test_provider_failure_persists_nothing(self, command, record_store, memory_providers, mock_notifier):
        memory_providers["s3-glacier-deep"].upload_error = "throttled"

        result = await command.execute(upload_data(make_jpeg()))

        assert not result.success
        assert result.error_code == "UploadFailed"
        assert result.error_message == "throttled"
        assert result.retryable
        assert record_store.files == {}
        mock_notifier.notify.assert_not_called()

    @pytest.mark.asyncio
    async def test_provider_exception_persists_nothing(self, record_store, hasher):
        provider = MagicMock()
        provider.provider_name = "broken"
        provider.capabilities.supports_instant_access = True
        provider.upload = AsyncMock(side_effect=RuntimeError("socket closed"))
        selector = StorageProviderSelector({"broken": provider}, StorageManagerConfig(default_provider="broken"))

        result = await UploadFileCommand(record_store, selector, hasher).execute(upload_data(b"abc", "a.bin", "application/octet-stream"))

        assert not result.success
        assert "socket closed" in result.error_message
        assert record_store.files == {}

    @pytest.mark.asyncio
    async def test_no_provider_available(self, record_store):
        selector = StorageProviderSelector({}, StorageManagerConfig())
        result = await UploadFileCommand(record_store, selector).execute(upload_data(b"abc"))
        assert not result.success
        assert result.error_code == "NoProviderAvailable"
        assert not result.retryable

    @pytest.mark.asyncio
    async def test_thumbnail_failure_does_not_fail_upload(self, command, memory_providers):
        memory_providers["idrive-e2"].upload_error = "thumbnail bucket full"
        result = await command.execute(upload_data(make_jpeg()))
        assert result.success
        assert result.thumbnail_location is None

    @pytest.mark.asyncio
    async def test_commit_conflict_resolves_to_duplicate(self, record_store, selector, hasher, memory_providers):
        content = make_jpeg()
        command = UploadFileCommand(record_store, selector, hasher)
        first = await command.execute(upload_data(content))

        # A concurrent upload misses the duplicate check, then loses the commit race
        find_committed = record_store.find_by_digest
        lookups = []

        def miss_first_lookup(digest):
            lookups.append(digest)
            return None if len(lookups) == 1 else find_committed(digest)

        record_store.find_by_digest = miss_first_lookup

        second = await command.execute(upload_data(content, file_name="race.jpg"))

        assert second.success
        assert second.is_duplicate
        assert second.file_id == first.file_id
        assert memory_providers["s3-glacier-deep"].object_count == 1

    @pytest.mark.asyncio
    async def test_lost_commit_removes_content_and_thumbnail(
        self, record_store, selector, hasher, thumbnails, memory_providers
    ):
        def conflicting_unit_of_work():
            uow = record_store.unit_of_work()
            uow.save_changes = AsyncMock(side_effect=ConcurrencyConflictError("FileRecord", "file-1", 1))
            return uow

        command = UploadFileCommand(conflicting_unit_of_work, selector, hasher, thumbnails)
        result = await command.execute(upload_data(make_jpeg()))

        assert not result.success
        assert result.error_code == "ConcurrencyConflict"
        assert result.retryable
        assert {name: p.object_count for name, p in memory_providers.items()} == {
            name: 0 for name in memory_providers
        }


class TestUploadFileValidation:
    """Test argument validation."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("overrides", [
        {"file_name": ""},
        {"mime_type": "  "},
        {"owner_id": ""},
        {"captured_at": None},
        {"stream": None},
    ])
    async def test_rejects_missing_arguments(self, command, overrides):
        data = upload_data(b"abc")
        for name, value in overrides.items():
            setattr(data, name, value)
        with pytest.raises(InvalidArgumentError):
            await command.execute(data)

    @pytest.mark.asyncio
    async def test_rejects_empty_content(self, command, record_store):
        with pytest.raises(InvalidArgumentError):
            await command.execute(upload_data(b""))
        assert record_store.files == {}

    @pytest.mark.asyncio
    async def test_rejects_non_seekable_stream(self, command):
        stream = MagicMock()
        stream.seekable.return_value = False
        data = upload_data(b"abc")
        data.stream = stream
        with pytest.raises(InvalidArgumentError):
            await command.execute(data)

    @pytest.mark.asyncio
    async def test_single_upload_limit(self, record_store, selector):
        command = UploadFileCommand(record_store, selector, max_upload_size=10)
        with pytest.raises(InvalidArgumentError):
            await command.execute(upload_data(b"x" * 11))
