"""Storage provider protocol.

ONLY storage backend contract - defines the interface every storage tier
implements, from instant-access object storage to multi-hour archival
classes, plus the data carried across it.

Following maximum separation architecture - one file = one purpose.

Callers never branch on vendor identity, only on ``capabilities``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, BinaryIO, Dict, Optional
from typing_extensions import Protocol, runtime_checkable

from ..value_objects import FileCategory, StorageLocation


class RetrievalTier(Enum):
    """Restore speed requested from a delayed-access provider."""
    BULK = "bulk"
    STANDARD = "standard"
    EXPEDITED = "expedited"


class RetrievalStatus(Enum):
    REQUESTED = "requested"
    IN_PROGRESS = "in_progress"
    READY = "ready"
    FAILED = "failed"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ProviderCapabilities:
    """Static description of what a provider supports."""
    supports_instant_access: bool
    supports_retrieval: bool
    supports_deletion: bool = True
    min_retrieval_time: timedelta = timedelta(0)
    max_retrieval_time: timedelta = timedelta(0)


@dataclass(frozen=True)
class UploadOptions:
    file_name: str
    content_type: str
    category: FileCategory
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class UploadResult:
    success: bool
    location: Optional[StorageLocation] = None
    uploaded_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, error_message: str) -> 'UploadResult':
        return cls(success=False, error_message=error_message)


@dataclass(frozen=True)
class RetrievalResult:
    success: bool
    retrieval_id: Optional[str] = None
    estimated_completion_time: Optional[timedelta] = None
    status: RetrievalStatus = RetrievalStatus.REQUESTED
    error_message: Optional[str] = None


@dataclass(frozen=True)
class RetrievalStatusDetail:
    retrieval_id: str
    status: RetrievalStatus
    progress_percentage: int = 0
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class HealthStatus:
    is_healthy: bool
    response_time: timedelta
    message: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@runtime_checkable
class StorageProviderProtocol(Protocol):
    """Storage provider protocol.

    Retrieval ids returned by ``initiate_retrieval`` start with
    ``"{provider_name}:"`` so status polls can be routed back to the
    issuing provider.
    """

    @property
    def provider_name(self) -> str:
        """Stable, unique provider name (e.g. ``s3-glacier-deep``)."""
        ...

    @property
    def capabilities(self) -> ProviderCapabilities:
        ...

    async def upload(self, stream: BinaryIO, options: UploadOptions) -> UploadResult:
        """Upload content from the current stream position.

        Ordinary backend failures are reported with ``success=False``
        rather than raised.
        """
        ...

    async def download(self, location: StorageLocation) -> BinaryIO:
        """Open the stored object for reading.

        Raises:
            StorageObjectNotFoundError: The object does not exist
            RetrievalRequiredError: Delayed-access object not restored yet
            StorageUnavailableError: Backend unreachable
        """
        ...

    async def delete(self, location: StorageLocation) -> bool:
        """Delete the object; False when it was already absent."""
        ...

    async def initiate_retrieval(
        self,
        location: StorageLocation,
        tier: RetrievalTier = RetrievalTier.STANDARD,
    ) -> RetrievalResult:
        """Ask the backend to restore an archived object.

        Raises:
            UnsupportedOperationError: Provider has no retrieval support
        """
        ...

    async def get_retrieval_status(self, retrieval_id: str) -> RetrievalStatusDetail:
        ...

    async def check_health(self) -> HealthStatus:
        ...
