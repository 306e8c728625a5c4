"""Application services for coldvault."""

from .storage_manager import (
    StorageProviderSelector,
    StorageManagerConfig,
    DEFAULT_PLACEMENT_TABLE,
    create_storage_provider_selector,
)
from .content_hasher import ContentHasher
from .thumbnail_publisher import ThumbnailPublisher
from .event_dispatcher import dispatch_events

__all__ = [
    "StorageProviderSelector",
    "StorageManagerConfig",
    "DEFAULT_PLACEMENT_TABLE",
    "create_storage_provider_selector",
    "ContentHasher",
    "ThumbnailPublisher",
    "dispatch_events",
]
