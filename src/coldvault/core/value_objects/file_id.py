"""File identifier value object.

ONLY file identifier - represents unique file ID using UUIDv7 for time-ordered
performance benefits in database indexes.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass
from uuid import UUID

from ...utils import generate_uuid_v7


@dataclass(frozen=True)
class FileId:
    """File identifier value object.

    Immutable and hashable for use as dictionary keys and in sets.
    """

    value: UUID

    def __post_init__(self):
        """Validate file ID format."""
        if not isinstance(self.value, UUID):
            raise ValueError(f"FileId must be a UUID, got {type(self.value).__name__}")

    @classmethod
    def generate(cls) -> 'FileId':
        """Generate a new time-ordered file ID using UUIDv7."""
        return cls(UUID(generate_uuid_v7()))

    @classmethod
    def from_string(cls, value: str) -> 'FileId':
        """Create FileId from string representation."""
        try:
            return cls(UUID(value))
        except (ValueError, TypeError, AttributeError) as e:
            raise ValueError(f"Invalid file ID format: {value}") from e

    def __str__(self) -> str:
        return str(self.value)

    def __repr__(self) -> str:
        return f"FileId('{self.value}')"
