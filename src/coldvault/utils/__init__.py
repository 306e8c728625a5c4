"""Utilities module for coldvault."""

from .uuid import generate_uuid_v7, generate_short_id
from .timezone import utc_now, ensure_utc, to_utc_string, from_utc_string

__all__ = [
    "generate_uuid_v7",
    "generate_short_id",
    "utc_now",
    "ensure_utc",
    "to_utc_string",
    "from_utc_string",
]
