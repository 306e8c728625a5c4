"""In-memory storage provider.

ONLY in-process storage - dict-backed provider with configurable name and
capabilities and a simulated restore clock. Used by tests and local
development in place of real buckets.

Following maximum separation architecture - one file = one purpose.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from io import BytesIO
from typing import BinaryIO, Callable, Dict, Optional

from ...core.exceptions import (
    InvalidArgumentError,
    RetrievalRequiredError,
    StorageObjectNotFoundError,
    StorageUnavailableError,
    UnsupportedOperationError,
)
from ...core.protocols import (
    HealthStatus,
    ProviderCapabilities,
    RetrievalResult,
    RetrievalStatus,
    RetrievalStatusDetail,
    RetrievalTier,
    UploadOptions,
    UploadResult,
)
from ...core.value_objects import StorageLocation
from ...utils import generate_short_id, utc_now

logger = logging.getLogger(__name__)


INSTANT_ACCESS = ProviderCapabilities(supports_instant_access=True, supports_retrieval=False)


@dataclass
class _Restore:
    key: str
    requested_at: datetime
    ready_at: datetime
    expires_at: datetime


class InMemoryStorageProvider:
    """Storage provider keeping objects in a dict.

    With ``supports_retrieval`` capabilities, downloads are refused until a
    restore has been requested and its simulated delay has elapsed on
    ``clock``; the restored copy stays readable for ``restore_window``.
    """

    def __init__(
        self,
        provider_name: str,
        capabilities: ProviderCapabilities = INSTANT_ACCESS,
        restore_delay: Optional[timedelta] = None,
        restore_window: timedelta = timedelta(days=1),
        clock: Callable[[], datetime] = utc_now
    ):
        if not provider_name or not provider_name.strip():
            raise InvalidArgumentError("Provider name cannot be empty")
        self._provider_name = provider_name.strip()
        self._capabilities = capabilities
        self._restore_delay = (
            restore_delay if restore_delay is not None else capabilities.min_retrieval_time
        )
        self._restore_window = restore_window
        self._clock = clock
        self._objects: Dict[str, bytes] = {}
        self._content_types: Dict[str, str] = {}
        self._restores: Dict[str, _Restore] = {}
        self._lock = asyncio.Lock()

        # Failure injection for tests and demos
        self.upload_error: Optional[str] = None
        self.unavailable: bool = False

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self._capabilities

    @property
    def object_count(self) -> int:
        return len(self._objects)

    def __repr__(self) -> str:
        return f"InMemoryStorageProvider(provider_name='{self._provider_name}')"

    def _key_for(self, location: StorageLocation) -> str:
        prefix = f"memory://{self._provider_name}/"
        if location.provider_name != self._provider_name or not location.path.startswith(prefix):
            raise InvalidArgumentError(f"Location not issued by {self._provider_name}: {location}")
        return location.path[len(prefix):]

    def _check_available(self) -> None:
        if self.unavailable:
            raise StorageUnavailableError(
                f"{self._provider_name} is unavailable", provider_name=self._provider_name
            )

    def contains(self, location: StorageLocation) -> bool:
        return self._key_for(location) in self._objects

    async def upload(self, stream: BinaryIO, options: UploadOptions) -> UploadResult:
        if self.upload_error:
            return UploadResult.failed(self.upload_error)
        if self.unavailable:
            return UploadResult.failed(f"{self._provider_name} is unavailable")

        date_path = self._clock().strftime("%Y/%m/%d")
        file_name = (options.file_name or "").strip() or "file"
        key = f"{options.category.value}/{date_path}/{generate_short_id()}_{file_name}"
        content = await asyncio.to_thread(stream.read)

        async with self._lock:
            self._objects[key] = bytes(content)
            self._content_types[key] = options.content_type

        return UploadResult(
            success=True,
            location=StorageLocation(self._provider_name, f"memory://{self._provider_name}/{key}"),
            uploaded_at=self._clock(),
        )

    async def download(self, location: StorageLocation) -> BinaryIO:
        self._check_available()
        key = self._key_for(location)
        content = self._objects.get(key)
        if content is None:
            raise StorageObjectNotFoundError(key, provider_name=self._provider_name)

        if not self._capabilities.supports_instant_access:
            restore = self._restores.get(key)
            now = self._clock()
            if restore is None or now < restore.ready_at or now >= restore.expires_at:
                raise RetrievalRequiredError(key, provider_name=self._provider_name)

        return BytesIO(content)

    async def delete(self, location: StorageLocation) -> bool:
        self._check_available()
        key = self._key_for(location)
        async with self._lock:
            if key not in self._objects:
                return False
            del self._objects[key]
            self._content_types.pop(key, None)
            self._restores.pop(key, None)
        return True

    async def initiate_retrieval(
        self,
        location: StorageLocation,
        tier: RetrievalTier = RetrievalTier.STANDARD
    ) -> RetrievalResult:
        if not self._capabilities.supports_retrieval:
            raise UnsupportedOperationError(
                f"Storage provider '{self._provider_name}' does not support retrieval"
            )
        self._check_available()
        key = self._key_for(location)
        if key not in self._objects:
            raise StorageObjectNotFoundError(key, provider_name=self._provider_name)

        now = self._clock()
        ready_at = now + self._restore_delay
        async with self._lock:
            existing = self._restores.get(key)
            if existing is None or now >= existing.expires_at:
                self._restores[key] = _Restore(key, now, ready_at, ready_at + self._restore_window)

        return RetrievalResult(
            success=True,
            retrieval_id=f"{self._provider_name}:{key}",
            estimated_completion_time=self._restore_delay,
            status=RetrievalStatus.IN_PROGRESS,
        )

    async def get_retrieval_status(self, retrieval_id: str) -> RetrievalStatusDetail:
        prefix = f"{self._provider_name}:"
        if not retrieval_id or not retrieval_id.startswith(prefix):
            raise InvalidArgumentError(f"Retrieval id was not issued by {self._provider_name}: {retrieval_id}")
        self._check_available()

        key = retrieval_id[len(prefix):]
        restore = self._restores.get(key)
        if key not in self._objects:
            raise StorageObjectNotFoundError(key, provider_name=self._provider_name)
        if restore is None:
            return RetrievalStatusDetail(retrieval_id=retrieval_id, status=RetrievalStatus.REQUESTED)

        now = self._clock()
        if now >= restore.expires_at:
            return RetrievalStatusDetail(retrieval_id=retrieval_id, status=RetrievalStatus.EXPIRED)
        if now >= restore.ready_at:
            return RetrievalStatusDetail(
                retrieval_id=retrieval_id,
                status=RetrievalStatus.READY,
                progress_percentage=100,
                completed_at=restore.ready_at,
            )

        total = (restore.ready_at - restore.requested_at).total_seconds()
        elapsed = (now - restore.requested_at).total_seconds()
        progress = min(99, int(elapsed * 100 / total)) if total > 0 else 99
        return RetrievalStatusDetail(
            retrieval_id=retrieval_id,
            status=RetrievalStatus.IN_PROGRESS,
            progress_percentage=progress,
        )

    async def check_health(self) -> HealthStatus:
        if self.unavailable:
            return HealthStatus(is_healthy=False, response_time=timedelta(0), message="unavailable")
        return HealthStatus(
            is_healthy=True,
            response_time=timedelta(0),
            message="In-memory storage available",
            details={"objects": len(self._objects)},
        )
