"""Thumbnail generator protocol.

ONLY thumbnail generation contract.

Following maximum separation architecture - one file = one purpose.
"""

from io import BytesIO
from typing import BinaryIO
from typing_extensions import Protocol, runtime_checkable


@runtime_checkable
class ThumbnailGeneratorProtocol(Protocol):
    """Derives a small preview image from image content."""

    @property
    def output_content_type(self) -> str:
        ...

    def is_supported(self, mime_type: str) -> bool:
        ...

    async def generate(self, stream: BinaryIO, width: int, height: int, quality: int) -> BytesIO:
        """Generate a thumbnail fitting within ``width`` x ``height``.

        Raises:
            InvalidArgumentError: Width/height outside 1-5000 or quality outside 1-100
            UnsupportedFormatError: Input cannot be decoded
        """
        ...
