"""Content digest value object.

ONLY content digest - SHA-256 content hash used for deduplication, plus the
placeholder form used by chunked uploads before their content is known.

Following maximum separation architecture - one file = one purpose.
"""

import hmac
import re
import uuid
from dataclasses import dataclass

from ..exceptions import InvalidArgumentError


_DIGEST_PATTERN = re.compile(r'^sha256:[0-9a-f]{64}$')
_PLACEHOLDER_PATTERN = re.compile(r'^sha256:pending_[0-9a-f]{32}$')


@dataclass(frozen=True, eq=False)
class ContentDigest:
    """Content digest value object.

    Format ``"sha256:<64 lowercase hex>"``. Placeholders look like
    ``"sha256:pending_<32 hex>"`` and never collide with real digests.
    """

    value: str

    ALGORITHM = "sha256"

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise InvalidArgumentError("Content digest cannot be empty")

        normalized = self.value.strip().lower()
        if not (_DIGEST_PATTERN.match(normalized) or _PLACEHOLDER_PATTERN.match(normalized)):
            raise InvalidArgumentError(
                f"Invalid content digest: {self.value}. Expected format: 'sha256:<hex>'"
            )

        object.__setattr__(self, 'value', normalized)

    @classmethod
    def from_hex(cls, hexdigest: str) -> 'ContentDigest':
        """Create digest from a bare SHA-256 hex string."""
        return cls(f"{cls.ALGORITHM}:{hexdigest}")

    @classmethod
    def placeholder(cls) -> 'ContentDigest':
        """Create a unique placeholder digest for a pending chunked upload."""
        return cls(f"{cls.ALGORITHM}:pending_{uuid.uuid4().hex}")

    @property
    def is_placeholder(self) -> bool:
        return self.value.startswith(f"{self.ALGORITHM}:pending_")

    @property
    def hexdigest(self) -> str:
        return self.value.split(':', 1)[1]

    def matches(self, other: str) -> bool:
        """Constant-time comparison against a digest string."""
        if not isinstance(other, str):
            return False
        return hmac.compare_digest(self.value, other.strip().lower())

    def __eq__(self, other) -> bool:
        if isinstance(other, ContentDigest):
            return hmac.compare_digest(self.value, other.value)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __str__(self) -> str:
        return self.value
