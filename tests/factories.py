"""Builders shared by the test modules."""

from datetime import datetime, timezone
from io import BytesIO
from typing import Optional

from PIL import Image

from coldvault.core.entities import FileMetadata, FileRecord
from coldvault.core.value_objects import ContentDigest, FileSize, FileType


CAPTURED_AT = datetime(2024, 6, 1, 12, 30, tzinfo=timezone.utc)


def make_jpeg(width: int = 64, height: int = 48, color=(200, 30, 30)) -> bytes:
    """Small JPEG image as bytes."""
    buffer = BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="JPEG")
    return buffer.getvalue()


def make_record(
    file_name: str = "photo.jpg",
    mime_type: str = "image/jpeg",
    size: int = 1000,
    digest: Optional[ContentDigest] = None,
    owner_id: str = "owner-1",
) -> FileRecord:
    """PENDING file record with a resolved digest."""
    metadata = FileMetadata.create(
        file_name=file_name,
        content_digest=digest or ContentDigest.from_hex("ab" * 32),
        captured_at=CAPTURED_AT,
    )
    record, _ = FileRecord.create(owner_id, metadata, FileSize(size), FileType(mime_type))
    return record
