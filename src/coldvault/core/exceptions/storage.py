"""Storage exceptions for coldvault.

Raised by storage providers for conditions callers are expected to handle:
missing objects, unrestored archival objects and unreachable backends.
"""

from typing import Any, Dict, Optional

from .base import ColdVaultError


class StorageError(ColdVaultError):
    """Base exception for provider-side failures."""

    def __init__(
        self,
        message: str,
        provider_name: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = details or {}
        if provider_name:
            details["provider_name"] = provider_name
        super().__init__(message, error_code=error_code, details=details)
        self.provider_name = provider_name


class StorageUnavailableError(StorageError):
    """Raised when the backend cannot be reached. Transient."""

    def __init__(self, message: str, provider_name: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, provider_name=provider_name, error_code="StorageUnavailable", details=details)


class StorageObjectNotFoundError(StorageError):
    """Raised when the object addressed by a location does not exist."""

    def __init__(self, path: str, provider_name: Optional[str] = None):
        super().__init__(
            f"Object not found: {path}",
            provider_name=provider_name,
            error_code="ObjectNotFound",
            details={"path": path},
        )
        self.path = path


class RetrievalRequiredError(StorageError):
    """Raised when a delayed-access object must be restored before download."""

    def __init__(self, path: str, provider_name: Optional[str] = None):
        super().__init__(
            f"Object {path} is archived; initiate a retrieval before downloading",
            provider_name=provider_name,
            error_code="RetrievalRequired",
            details={"path": path},
        )
        self.path = path
