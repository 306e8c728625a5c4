"""Protocols for coldvault."""

from .storage_provider import (
    StorageProviderProtocol,
    ProviderCapabilities,
    UploadOptions,
    UploadResult,
    RetrievalTier,
    RetrievalStatus,
    RetrievalResult,
    RetrievalStatusDetail,
    HealthStatus,
)
from .file_repository import (
    FileRepository,
    UploadSessionRepository,
    UnitOfWork,
    Page,
    FileSearchFilter,
)
from .thumbnail_generator import ThumbnailGeneratorProtocol
from .event_notifier import EventNotifier
from .chunk_store import ChunkStore

__all__ = [
    "StorageProviderProtocol",
    "ProviderCapabilities",
    "UploadOptions",
    "UploadResult",
    "RetrievalTier",
    "RetrievalStatus",
    "RetrievalResult",
    "RetrievalStatusDetail",
    "HealthStatus",
    "FileRepository",
    "UploadSessionRepository",
    "UnitOfWork",
    "Page",
    "FileSearchFilter",
    "ThumbnailGeneratorProtocol",
    "EventNotifier",
    "ChunkStore",
]
