"""Upload session identifier value object.

ONLY upload session identifier - UUIDv7 wrapper for chunked upload sessions.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass
from uuid import UUID

from ...utils import generate_uuid_v7


@dataclass(frozen=True)
class UploadSessionId:
    """Upload session identifier value object."""

    value: UUID

    def __post_init__(self):
        if not isinstance(self.value, UUID):
            raise ValueError(f"UploadSessionId must be a UUID, got {type(self.value).__name__}")

    @classmethod
    def generate(cls) -> 'UploadSessionId':
        """Generate a new time-ordered session ID using UUIDv7."""
        return cls(UUID(generate_uuid_v7()))

    @classmethod
    def from_string(cls, value: str) -> 'UploadSessionId':
        """Create UploadSessionId from string representation."""
        try:
            return cls(UUID(value))
        except (ValueError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid upload session ID format: {value}") from e

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"UploadSessionId('{self.value}')"
