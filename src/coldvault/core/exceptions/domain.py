"""Domain exceptions for coldvault.

Caller errors (bad arguments, unknown ids) and state errors (illegal
transitions on records and upload sessions). Application commands convert
most of these into failure results using ``error_code``.
"""

from typing import Any, Dict, List, Optional

from .base import ColdVaultError


# Caller errors

class InvalidArgumentError(ColdVaultError, ValueError):
    """Raised when an argument violates a documented contract."""


class InvalidChunkIndexError(ColdVaultError):
    """Raised when a chunk index is outside [0, total_chunks)."""

    def __init__(self, chunk_index: int, total_chunks: int):
        super().__init__(
            f"Chunk index {chunk_index} out of range [0, {total_chunks})",
            error_code="InvalidChunkIndex",
            details={"chunk_index": chunk_index, "total_chunks": total_chunks},
        )
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks


class InvalidChunkSizeError(ColdVaultError):
    """Raised when a chunk payload does not have the expected length."""

    def __init__(self, chunk_index: int, expected: int, actual: int):
        super().__init__(
            f"Chunk {chunk_index} has {actual} bytes, expected {expected}",
            error_code="InvalidChunkSize",
            details={"chunk_index": chunk_index, "expected": expected, "actual": actual},
        )
        self.chunk_index = chunk_index
        self.expected = expected
        self.actual = actual


class SessionNotFoundError(ColdVaultError):
    """Raised when an upload session id is unknown."""

    def __init__(self, session_id: Any):
        super().__init__(
            f"Upload session not found: {session_id}",
            error_code="SessionNotFound",
            details={"session_id": str(session_id)},
        )


class FileRecordNotFoundError(ColdVaultError):
    """Raised when a file record id is unknown."""

    def __init__(self, file_id: Any):
        super().__init__(
            "File not found",
            error_code="FileNotFound",
            details={"file_id": str(file_id)},
        )


class UnsupportedOperationError(ColdVaultError):
    """Raised when a provider is asked for an operation it does not support."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="UnsupportedOperation", details=details)


class UnsupportedFormatError(ColdVaultError):
    """Raised when content cannot be decoded in the requested format."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="UnsupportedFormat", details=details)


# State errors

class InvalidStateTransitionError(ColdVaultError):
    """Raised when a status or entity transition is not permitted."""

    def __init__(self, message: str, from_state: Optional[str] = None, to_state: Optional[str] = None):
        details = {}
        if from_state is not None:
            details["from_state"] = from_state
        if to_state is not None:
            details["to_state"] = to_state
        super().__init__(message, error_code="InvalidStateTransition", details=details)
        self.from_state = from_state
        self.to_state = to_state


class FileArchivedError(InvalidStateTransitionError):
    """Raised when mutating a record that has reached ARCHIVED."""

    def __init__(self, file_id: Any):
        super().__init__(f"File {file_id} is archived and cannot be modified", from_state="archived")
        self.error_code = "FileArchived"
        self.details["file_id"] = str(file_id)


class UploadIncompleteError(ColdVaultError):
    """Raised when completing a session that still has missing chunks."""

    def __init__(self, uploaded: int, total: int, missing: List[int]):
        super().__init__(
            f"Upload incomplete: {uploaded}/{total} chunks uploaded, missing chunks",
            error_code="UploadIncomplete",
            details={"uploaded": uploaded, "total": total, "missing_chunks": list(missing)},
        )
        self.uploaded = uploaded
        self.total = total
        self.missing_chunks = list(missing)


class SessionExpiredError(ColdVaultError):
    """Raised when a session is used after its expiry time."""

    def __init__(self, session_id: Any):
        super().__init__(
            f"Upload session {session_id} has expired",
            error_code="SessionExpired",
            details={"session_id": str(session_id)},
        )


class SessionCompletedError(ColdVaultError):
    """Raised when a completed session receives further writes."""

    def __init__(self, session_id: Any):
        super().__init__(
            f"Upload session {session_id} is already completed",
            error_code="SessionCompleted",
            details={"session_id": str(session_id)},
        )


class ConcurrencyConflictError(ColdVaultError):
    """Raised on commit when a stored version no longer matches."""

    def __init__(self, entity: str, entity_id: Any, expected_version: int):
        super().__init__(
            f"{entity} {entity_id} was modified concurrently (expected version {expected_version})",
            error_code="ConcurrencyConflict",
            details={"entity": entity, "entity_id": str(entity_id), "expected_version": expected_version},
        )
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version


# Selection

class NoProviderAvailableError(ColdVaultError):
    """Raised when no enabled provider can store a payload."""

    def __init__(self, message: str = "No storage provider available", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NoProviderAvailable", details=details)
