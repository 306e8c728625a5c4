"""Pytest configuration and fixtures for coldvault tests."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from coldvault.application.services import (
    ContentHasher,
    StorageManagerConfig,
    StorageProviderSelector,
    ThumbnailPublisher,
)
from coldvault.config.settings import ALL_PROVIDERS, ColdVaultSettings
from coldvault.core.entities import UploadSession
from coldvault.core.value_objects import FileId
from coldvault.infrastructure.persistence import InMemoryChunkStore, InMemoryRecordStore
from coldvault.infrastructure.storage import PROVIDER_CLASSES, InMemoryStorageProvider
from coldvault.infrastructure.thumbnails import PillowThumbnailGenerator
from tests.factories import CAPTURED_AT, make_jpeg, make_record


@pytest.fixture
def captured_at():
    """Fixed capture time."""
    return CAPTURED_AT


@pytest.fixture
def jpeg_bytes():
    """Sample JPEG content."""
    return make_jpeg()


@pytest.fixture
def sample_record():
    """Fresh PENDING file record."""
    return make_record()


@pytest.fixture
def sample_session():
    """Session for a 12,000,000 byte upload in 5 MiB chunks."""
    return UploadSession.create(FileId.generate(), "owner-1", 12_000_000)


@pytest.fixture
def memory_providers():
    """One in-memory provider per configured provider name."""
    return {
        name: InMemoryStorageProvider(name, capabilities=PROVIDER_CLASSES[name].CAPABILITIES)
        for name in ALL_PROVIDERS
    }


@pytest.fixture
def settings():
    """Settings with in-memory storage and no database."""
    return ColdVaultSettings(
        _env_file=None,
        use_in_memory_storage=True,
        database_url=None,
    )


@pytest.fixture
def selector(memory_providers, settings):
    """Provider selector over the in-memory providers."""
    return StorageProviderSelector(memory_providers, StorageManagerConfig.from_settings(settings))


@pytest.fixture
def record_store():
    """Empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def chunk_store():
    """Empty in-memory chunk store."""
    return InMemoryChunkStore()


@pytest.fixture
def hasher():
    return ContentHasher()


@pytest.fixture
def thumbnails(selector):
    """Thumbnail publisher using Pillow."""
    return ThumbnailPublisher(selector, PillowThumbnailGenerator())


@pytest.fixture
def mock_notifier():
    """Mock event notifier."""
    notifier = MagicMock()
    notifier.notify = AsyncMock()
    return notifier
