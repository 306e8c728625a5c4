"""File metadata entity.

ONLY file metadata - descriptive information owned by a FileRecord: names,
content digest, capture time, tags, description, GPS position and device.

Following maximum separation architecture - one file = one purpose.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Iterable, Optional

from ...utils import utc_now, ensure_utc
from ..exceptions import InvalidArgumentError, InvalidStateTransitionError
from ..value_objects import ContentDigest


_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_REPEATED_UNDERSCORES = re.compile(r'_{2,}')


def sanitize_file_name(file_name: str) -> str:
    """Replace characters that are invalid on common filesystems.

    Returns ``"file"`` when nothing usable remains.
    """
    sanitized = _INVALID_FILENAME_CHARS.sub('_', file_name)
    sanitized = _REPEATED_UNDERSCORES.sub('_', sanitized)
    sanitized = sanitized.strip(' .')
    return sanitized or "file"


@dataclass
class FileMetadata:
    """File metadata entity.

    Filenames are fixed at creation. The digest is fixed too, except that a
    placeholder digest (chunked uploads) can be resolved exactly once.
    Tag, description, GPS and device mutators bump ``modified_at``.
    """

    original_file_name: str
    content_digest: ContentDigest
    captured_at: datetime
    sanitized_file_name: str = ""
    created_at: datetime = field(default_factory=utc_now)
    modified_at: datetime = field(default_factory=utc_now)
    tags: FrozenSet[str] = field(default_factory=frozenset)
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    device_model: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.original_file_name, str) or not self.original_file_name.strip():
            raise InvalidArgumentError("File name cannot be empty")
        if not isinstance(self.content_digest, ContentDigest):
            raise InvalidArgumentError("Content digest is required")
        if self.captured_at is None:
            raise InvalidArgumentError("Capture time is required")

        self.original_file_name = self.original_file_name.strip()
        if not self.sanitized_file_name:
            self.sanitized_file_name = sanitize_file_name(self.original_file_name)
        self.captured_at = ensure_utc(self.captured_at)
        self.tags = frozenset(self._normalize_tags(self.tags))

        if self.latitude is not None or self.longitude is not None:
            self._validate_gps(self.latitude, self.longitude)

    @classmethod
    def create(
        cls,
        file_name: str,
        content_digest: ContentDigest,
        captured_at: datetime,
        description: Optional[str] = None,
        tags: Optional[Iterable[str]] = None,
        device_model: Optional[str] = None,
    ) -> 'FileMetadata':
        now = utc_now()
        return cls(
            original_file_name=file_name,
            content_digest=content_digest,
            captured_at=captured_at,
            created_at=now,
            modified_at=now,
            tags=frozenset(tags or ()),
            description=description.strip() if description and description.strip() else None,
            device_model=device_model.strip() if device_model and device_model.strip() else None,
        )

    @staticmethod
    def _normalize_tags(tags: Iterable[str]) -> Iterable[str]:
        for tag in tags:
            if tag and tag.strip():
                yield tag.strip().lower()

    @staticmethod
    def _validate_gps(latitude: Optional[float], longitude: Optional[float]) -> None:
        if latitude is None or longitude is None:
            raise InvalidArgumentError("Latitude and longitude must be set together")
        if not -90 <= latitude <= 90:
            raise InvalidArgumentError(f"Latitude must be between -90 and 90: {latitude}")
        if not -180 <= longitude <= 180:
            raise InvalidArgumentError(f"Longitude must be between -180 and 180: {longitude}")

    def _touch(self) -> None:
        self.modified_at = utc_now()

    def add_tag(self, tag: str) -> None:
        if not tag or not tag.strip():
            raise InvalidArgumentError("Tag cannot be empty")
        normalized = tag.strip().lower()
        if normalized not in self.tags:
            self.tags = self.tags | {normalized}
            self._touch()

    def remove_tag(self, tag: str) -> bool:
        normalized = (tag or "").strip().lower()
        if normalized not in self.tags:
            return False
        self.tags = self.tags - {normalized}
        self._touch()
        return True

    def set_description(self, description: Optional[str]) -> None:
        self.description = description.strip() if description and description.strip() else None
        self._touch()

    def set_gps_location(self, latitude: float, longitude: float) -> None:
        self._validate_gps(latitude, longitude)
        self.latitude = latitude
        self.longitude = longitude
        self._touch()

    def set_device_model(self, device_model: Optional[str]) -> None:
        self.device_model = device_model.strip() if device_model and device_model.strip() else None
        self._touch()

    def resolve_digest(self, digest: ContentDigest) -> None:
        """Replace a placeholder digest with the real content digest."""
        if not self.content_digest.is_placeholder:
            raise InvalidStateTransitionError("Content digest is already resolved")
        if digest.is_placeholder:
            raise InvalidArgumentError("Cannot resolve a digest to another placeholder")
        self.content_digest = digest
        self._touch()

    @property
    def has_gps_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
