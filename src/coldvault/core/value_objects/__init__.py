"""Value objects for coldvault."""

from .file_id import FileId
from .upload_session_id import UploadSessionId
from .file_size import FileSize
from .file_type import FileType, FileCategory, KNOWN_TYPES
from .content_digest import ContentDigest
from .storage_location import StorageLocation
from .upload_status import UploadStatus, UploadState

__all__ = [
    "FileId",
    "UploadSessionId",
    "FileSize",
    "FileType",
    "FileCategory",
    "KNOWN_TYPES",
    "ContentDigest",
    "StorageLocation",
    "UploadStatus",
    "UploadState",
]
