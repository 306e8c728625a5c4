"""Thumbnail publisher service.

ONLY thumbnail side-upload - generates a preview for a freshly stored
record and uploads it to the instant-access provider, best effort.

Following maximum separation architecture - one file = one purpose.
"""

import logging
import os
from typing import BinaryIO, List, Optional

from ...core.entities import FileRecord
from ...core.events import FileEvent
from ...core.protocols import ThumbnailGeneratorProtocol, UploadOptions
from .storage_manager import StorageProviderSelector

logger = logging.getLogger(__name__)


class ThumbnailPublisher:
    """Generates and stores thumbnails without ever failing the caller."""

    def __init__(
        self,
        selector: StorageProviderSelector,
        generator: Optional[ThumbnailGeneratorProtocol],
        width: int = 300,
        height: int = 300,
        quality: int = 80
    ):
        self._selector = selector
        self._generator = generator
        self._width = width
        self._height = height
        self._quality = quality

    def supports(self, mime_type: str) -> bool:
        return self._generator is not None and self._generator.is_supported(mime_type)

    async def publish(self, record: FileRecord, stream: BinaryIO) -> List[FileEvent]:
        """Attach a thumbnail to ``record``.

        Returns the events produced; an empty list when the type is not
        supported or any step failed.
        """
        mime_type = record.file_type.mime_type
        if not self.supports(mime_type):
            return []

        try:
            provider = self._selector.instant_access_provider()
            if provider is None:
                logger.warning(f"No instant-access provider for thumbnail of file {record.id}")
                return []

            stream.seek(0)
            thumbnail = await self._generator.generate(
                stream, self._width, self._height, self._quality
            )

            stem, _ = os.path.splitext(record.metadata.sanitized_file_name)
            options = UploadOptions(
                file_name=f"{stem}_thumb.jpg",
                content_type=self._generator.output_content_type,
                category=record.file_type.category,
                metadata={"file-id": str(record.id), "kind": "thumbnail"},
            )
            result = await provider.upload(thumbnail, options)
            if not result.success or result.location is None:
                logger.warning(
                    f"Thumbnail upload for file {record.id} failed: {result.error_message}"
                )
                return []

            return record.set_thumbnail(result.location)

        except Exception as e:
            logger.warning(f"Thumbnail generation for file {record.id} failed: {e}")
            return []
