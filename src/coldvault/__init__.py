"""ColdVault - tiered cold-storage archive for photos and videos.

Files are deduplicated by content digest, placed on the cheapest suitable
storage provider (S3 Standard, S3 Glacier Flexible Retrieval, S3 Glacier
Deep Archive or IDrive e2), and retrieved asynchronously from archival
tiers. Large files go through resumable chunked upload sessions.
"""

from .__version__ import __version__

from .bootstrap import ColdVault, build_application, create_application

from .config import ColdVaultSettings, get_settings, setup_logging

from .core.exceptions import (
    ColdVaultError,
    InvalidArgumentError,
    InvalidStateTransitionError,
    ConcurrencyConflictError,
    NoProviderAvailableError,
    StorageError,
)

from .core.value_objects import (
    FileId,
    UploadSessionId,
    FileSize,
    FileType,
    FileCategory,
    ContentDigest,
    StorageLocation,
    UploadState,
    UploadStatus,
)

from .core.entities import FileRecord, FileMetadata, UploadSession

from .core.protocols import RetrievalTier, RetrievalStatus

from .application.commands import (
    UploadFileData,
    InitiateUploadData,
    UploadChunkData,
    CompleteUploadData,
)

__all__ = [
    "__version__",
    "ColdVault",
    "build_application",
    "create_application",
    "ColdVaultSettings",
    "get_settings",
    "setup_logging",
    "ColdVaultError",
    "InvalidArgumentError",
    "InvalidStateTransitionError",
    "ConcurrencyConflictError",
    "NoProviderAvailableError",
    "StorageError",
    "FileId",
    "UploadSessionId",
    "FileSize",
    "FileType",
    "FileCategory",
    "ContentDigest",
    "StorageLocation",
    "UploadState",
    "UploadStatus",
    "FileRecord",
    "FileMetadata",
    "UploadSession",
    "RetrievalTier",
    "RetrievalStatus",
    "UploadFileData",
    "InitiateUploadData",
    "UploadChunkData",
    "CompleteUploadData",
]
