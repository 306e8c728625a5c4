"""Entities for coldvault."""

from .file_metadata import FileMetadata, sanitize_file_name
from .file_record import FileRecord
from .upload_session import (
    UploadSession,
    UploadSessionState,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_SESSION_TTL,
)

__all__ = [
    "FileMetadata",
    "sanitize_file_name",
    "FileRecord",
    "UploadSession",
    "UploadSessionState",
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_SESSION_TTL",
]
