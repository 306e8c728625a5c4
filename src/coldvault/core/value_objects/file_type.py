"""File type value object.

ONLY file type - MIME type normalization, archive category derivation and
the preferred extension table.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from ..exceptions import InvalidArgumentError


class FileCategory(Enum):
    """Archive category used for provider routing."""
    PHOTO = "photo"
    VIDEO = "video"
    MISC = "misc"


# MIME type -> preferred extension
KNOWN_TYPES: Dict[str, str] = {
    # Images
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/heif": "heif",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/svg+xml": "svg",
    # Video
    "video/mp4": "mp4",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "video/mpeg": "mpeg",
    "video/webm": "webm",
    "video/x-matroska": "mkv",
    # Documents
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    # Archives
    "application/zip": "zip",
    "application/x-rar-compressed": "rar",
    "application/x-7z-compressed": "7z",
    "application/gzip": "gz",
    # Text
    "text/plain": "txt",
    "text/html": "html",
    "text/css": "css",
    "application/javascript": "js",
    "application/json": "json",
    "application/xml": "xml",
    "text/xml": "xml",
    "application/octet-stream": "bin",
}

# Extensions accepted as aliases for the preferred one
_EXTENSION_ALIASES: Dict[str, set] = {
    "jpg": {"jpg", "jpeg", "jpe"},
    "tiff": {"tiff", "tif"},
    "mpeg": {"mpeg", "mpg"},
    "html": {"html", "htm"},
}


@dataclass(frozen=True)
class FileType:
    """File type value object.

    Wraps a normalized MIME type (trimmed, lower-case) and derives the
    archive category from its primary type.
    """

    mime_type: str

    def __post_init__(self):
        if not isinstance(self.mime_type, str) or not self.mime_type.strip():
            raise InvalidArgumentError("MIME type cannot be empty")

        normalized = self.mime_type.strip().lower()
        primary, sep, sub = normalized.partition('/')
        if not sep or not primary or not sub:
            raise InvalidArgumentError(f"Invalid MIME type format: {self.mime_type}")

        object.__setattr__(self, 'mime_type', normalized)

    @classmethod
    def from_mime_type(cls, mime_type: str) -> 'FileType':
        """Create FileType from a MIME type string."""
        if mime_type is None:
            raise InvalidArgumentError("MIME type cannot be empty")
        return cls(mime_type)

    @property
    def primary_type(self) -> str:
        return self.mime_type.split('/', 1)[0]

    @property
    def category(self) -> FileCategory:
        primary = self.primary_type
        if primary == "image":
            return FileCategory.PHOTO
        if primary == "video":
            return FileCategory.VIDEO
        return FileCategory.MISC

    @property
    def is_image(self) -> bool:
        return self.category is FileCategory.PHOTO

    @property
    def is_video(self) -> bool:
        return self.category is FileCategory.VIDEO

    def file_extension(self) -> Optional[str]:
        """Preferred extension for this MIME type, or None when unknown."""
        return KNOWN_TYPES.get(self.mime_type)

    def is_extension_valid(self, extension: str) -> bool:
        """Check whether an extension (with or without dot) matches this type."""
        if not extension:
            return False
        ext = extension.strip().lower().lstrip('.')
        preferred = self.file_extension()
        if preferred is None:
            return False
        return ext in _EXTENSION_ALIASES.get(preferred, {preferred})

    def __str__(self) -> str:
        return self.mime_type
