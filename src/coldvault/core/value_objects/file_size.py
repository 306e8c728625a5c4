"""File size value object.

ONLY file size - represents a validated, archivable file size with
formatting utilities and comparison operations.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass
from functools import total_ordering

from ..exceptions import InvalidArgumentError


@total_ordering
@dataclass(frozen=True)
class FileSize:
    """File size value object.

    Represents a file size in bytes. Archived files are never empty and are
    capped at 5 GiB, the single-object upload limit of the storage backends.
    """

    value: int  # Size in bytes

    KILOBYTE = 1024
    MEGABYTE = 1024 ** 2
    GIGABYTE = 1024 ** 3

    MIN_BYTES = 1
    MAX_BYTES = 5 * GIGABYTE

    UNIT_NAMES = ['B', 'KB', 'MB', 'GB']

    def __post_init__(self):
        """Validate file size value."""
        # bool is an int subclass but never a size
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise InvalidArgumentError(
                f"FileSize must be an integer, got {type(self.value).__name__}"
            )

        if self.value < self.MIN_BYTES:
            raise InvalidArgumentError(f"File size must be positive: {self.value}")

        if self.value > self.MAX_BYTES:
            raise InvalidArgumentError(
                f"File size too large: {self.value} bytes > 5 GB"
            )

    @classmethod
    def from_bytes(cls, bytes_value: int) -> 'FileSize':
        """Create FileSize from bytes value."""
        return cls(bytes_value)

    def to_bytes(self) -> int:
        """Get size in bytes."""
        return self.value

    def to_megabytes(self) -> float:
        """Get size in megabytes."""
        return self.value / self.MEGABYTE

    def to_gigabytes(self) -> float:
        """Get size in gigabytes."""
        return self.value / self.GIGABYTE

    def format_human_readable(self, precision: int = 2) -> str:
        """Format size as human-readable string (e.g. '1.50 MB')."""
        size = float(self.value)
        unit_index = 0
        while size >= self.KILOBYTE and unit_index < len(self.UNIT_NAMES) - 1:
            size /= self.KILOBYTE
            unit_index += 1

        if unit_index == 0:
            return f"{int(size)} B"
        return f"{size:.{precision}f} {self.UNIT_NAMES[unit_index]}"

    def __lt__(self, other: 'FileSize') -> bool:
        if not isinstance(other, FileSize):
            return NotImplemented
        return self.value < other.value

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return self.format_human_readable()
