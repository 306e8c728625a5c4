"""Thumbnail generation for coldvault."""

from .pillow_generator import PillowThumbnailGenerator, SUPPORTED_MIME_TYPES

__all__ = ["PillowThumbnailGenerator", "SUPPORTED_MIME_TYPES"]
