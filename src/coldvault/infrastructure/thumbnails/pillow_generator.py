"""Pillow thumbnail generator.

ONLY thumbnail rendering - decodes an image with Pillow, corrects EXIF
orientation, fits it within the requested box and encodes a JPEG.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import logging
from io import BytesIO
from typing import BinaryIO

from PIL import Image, ImageOps, UnidentifiedImageError

from ...core.exceptions import InvalidArgumentError, UnsupportedFormatError

logger = logging.getLogger(__name__)


SUPPORTED_MIME_TYPES = frozenset({
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/webp",
    "image/tiff",
})

MIN_DIMENSION = 1
MAX_DIMENSION = 5000


class PillowThumbnailGenerator:
    """JPEG thumbnails that keep the source aspect ratio."""

    output_content_type = "image/jpeg"

    def is_supported(self, mime_type: str) -> bool:
        if not mime_type:
            return False
        return mime_type.strip().lower() in SUPPORTED_MIME_TYPES

    @staticmethod
    def _validate(width: int, height: int, quality: int) -> None:
        for name, value in (("width", width), ("height", height)):
            if not isinstance(value, int) or not MIN_DIMENSION <= value <= MAX_DIMENSION:
                raise InvalidArgumentError(
                    f"Thumbnail {name} must be between {MIN_DIMENSION} and {MAX_DIMENSION}: {value}"
                )
        if not isinstance(quality, int) or not 1 <= quality <= 100:
            raise InvalidArgumentError(f"Thumbnail quality must be between 1 and 100: {quality}")

    def _render(self, stream: BinaryIO, width: int, height: int, quality: int) -> BytesIO:
        try:
            with Image.open(stream) as im:
                im = ImageOps.exif_transpose(im)
                if im.mode == "RGBA" or (im.mode == "P" and "transparency" in im.info):
                    im = im.convert("RGBA")
                    # white background for transparent images
                    bg = Image.new("RGB", im.size, (255, 255, 255))
                    bg.paste(im, mask=im.split()[-1])
                    im = bg
                elif im.mode != "RGB":
                    im = im.convert("RGB")

                im.thumbnail((width, height), Image.Resampling.LANCZOS)

                buf = BytesIO()
                im.save(buf, format="JPEG", quality=quality, optimize=True)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError) as e:
            raise UnsupportedFormatError(f"Cannot decode image: {e}") from e

        buf.seek(0)
        return buf

    async def generate(self, stream: BinaryIO, width: int, height: int, quality: int) -> BytesIO:
        """Render a thumbnail fitting within ``width`` x ``height``.

        Raises:
            InvalidArgumentError: Dimensions or quality out of range
            UnsupportedFormatError: Input is not a decodable image
        """
        self._validate(width, height, quality)
        return await asyncio.to_thread(self._render, stream, width, height, quality)
