"""UUID utilities for coldvault."""

import uuid
import time


def generate_uuid_v7() -> str:
    """
    Generate a UUIDv7 with time-based ordering.

    Time-ordered identifiers keep file and session primary keys clustered in
    the record store indexes.

    Returns:
        String representation of UUIDv7
    """
    # 48-bit millisecond timestamp
    timestamp_ms = int(time.time() * 1000)
    timestamp_bytes = timestamp_ms.to_bytes(6, byteorder='big')

    # 80 random bits for the remainder
    random_bytes = uuid.uuid4().bytes[6:]

    uuid_bytes = timestamp_bytes + random_bytes

    # Version 7
    uuid_bytes = uuid_bytes[:6] + bytes([(uuid_bytes[6] & 0x0f) | 0x70]) + uuid_bytes[7:]

    # Variant 10
    uuid_bytes = uuid_bytes[:8] + bytes([(uuid_bytes[8] & 0x3f) | 0x80]) + uuid_bytes[9:]

    return str(uuid.UUID(bytes=uuid_bytes))


def generate_short_id(length: int = 8) -> str:
    """Generate a short random hex identifier (used in storage keys)."""
    if length <= 0 or length > 32:
        raise ValueError("Short id length must be between 1 and 32")
    return uuid.uuid4().hex[:length]
