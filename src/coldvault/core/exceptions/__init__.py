"""Exceptions for coldvault."""

from .base import ColdVaultError, create_error_payload
from .domain import (
    InvalidArgumentError,
    InvalidChunkIndexError,
    InvalidChunkSizeError,
    SessionNotFoundError,
    FileRecordNotFoundError,
    UnsupportedOperationError,
    UnsupportedFormatError,
    InvalidStateTransitionError,
    FileArchivedError,
    UploadIncompleteError,
    SessionExpiredError,
    SessionCompletedError,
    ConcurrencyConflictError,
    NoProviderAvailableError,
)
from .storage import (
    StorageError,
    StorageUnavailableError,
    StorageObjectNotFoundError,
    RetrievalRequiredError,
)

__all__ = [
    "ColdVaultError",
    "create_error_payload",
    "InvalidArgumentError",
    "InvalidChunkIndexError",
    "InvalidChunkSizeError",
    "SessionNotFoundError",
    "FileRecordNotFoundError",
    "UnsupportedOperationError",
    "UnsupportedFormatError",
    "InvalidStateTransitionError",
    "FileArchivedError",
    "UploadIncompleteError",
    "SessionExpiredError",
    "SessionCompletedError",
    "ConcurrencyConflictError",
    "NoProviderAvailableError",
    "StorageError",
    "StorageUnavailableError",
    "StorageObjectNotFoundError",
    "RetrievalRequiredError",
]
