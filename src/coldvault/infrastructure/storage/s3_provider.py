"""S3 storage provider.

ONLY S3-compatible storage - shared boto3 implementation of the storage
provider protocol. Subclasses pin the storage class, capabilities and
restore estimates of one AWS storage class or S3-compatible vendor.

Following maximum separation architecture - one file = one purpose.

boto3 is blocking; every client call runs through ``asyncio.to_thread``.
"""

import asyncio
import base64
import json
import logging
import re
import shutil
import tempfile
import time
from datetime import datetime, timedelta
from email.utils import parsedate_to_datetime
from typing import Any, BinaryIO, Dict, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from ...core.exceptions import (
    InvalidArgumentError,
    RetrievalRequiredError,
    StorageError,
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
from ...utils import generate_short_id, utc_now, to_utc_string, from_utc_string

logger = logging.getLogger(__name__)


NOT_FOUND_CODES = {"NoSuchKey", "404", "NotFound", "NoSuchBucket"}
ARCHIVED_CODES = {"InvalidObjectState"}
RESTORE_IN_PROGRESS_CODES = {"RestoreAlreadyInProgress"}

_ONGOING_REQUEST = re.compile(r'ongoing-request="(true|false)"')
_EXPIRY_DATE = re.compile(r'expiry-date="([^"]+)"')

# Downloads larger than this spill from memory to a temporary file
SPOOL_MAX_MEMORY = 8 * 1024 * 1024


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3StorageProvider:
    """Storage provider backed by an S3-compatible bucket.

    Locations use the path form ``s3://{bucket}/{key}`` with keys laid out
    as ``{category}/{yyyy}/{mm}/{dd}/{random-id}_{file name}``.
    """

    PROVIDER_NAME: str = "s3"
    # None omits the StorageClass parameter (vendors without storage classes)
    STORAGE_CLASS: Optional[str] = "STANDARD"
    CAPABILITIES = ProviderCapabilities(
        supports_instant_access=True,
        supports_retrieval=False,
    )
    RETRIEVAL_ESTIMATES: Dict[RetrievalTier, timedelta] = {}
    TIER_NAMES: Dict[RetrievalTier, str] = {
        RetrievalTier.BULK: "Bulk",
        RetrievalTier.STANDARD: "Standard",
        RetrievalTier.EXPEDITED: "Expedited",
    }

    def __init__(
        self,
        client: Any,
        bucket_name: str,
        restore_days: int = 1,
        provider_name: Optional[str] = None
    ):
        """Initialize S3 storage provider.

        Args:
            client: boto3 S3 client
            bucket_name: Target bucket
            restore_days: Days a restored copy stays readable
            provider_name: Overrides the class provider name
        """
        if client is None:
            raise InvalidArgumentError("S3 client is required")
        if not bucket_name or not bucket_name.strip():
            raise InvalidArgumentError("Bucket name cannot be empty")
        if restore_days < 1:
            raise InvalidArgumentError("Restore days must be at least 1")

        self._client = client
        self._bucket_name = bucket_name.strip()
        self._restore_days = restore_days
        self._provider_name = provider_name or self.PROVIDER_NAME

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.CAPABILITIES

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def __repr__(self) -> str:
        return f"{type(self).__name__}(provider_name='{self._provider_name}', bucket='{self._bucket_name}')"

    # Keys and locations

    def generate_key(self, options: UploadOptions) -> str:
        date_path = utc_now().strftime("%Y/%m/%d")
        file_name = (options.file_name or "").strip() or "file"
        return f"{options.category.value}/{date_path}/{generate_short_id()}_{file_name}"

    def _location_for(self, key: str) -> StorageLocation:
        return StorageLocation(self._provider_name, f"s3://{self._bucket_name}/{key}")

    def extract_key(self, location: StorageLocation) -> str:
        """Key of a location issued by this provider."""
        prefix = f"s3://{self._bucket_name}/"
        if location.provider_name != self._provider_name:
            raise InvalidArgumentError(
                f"Location belongs to provider '{location.provider_name}', not '{self._provider_name}'"
            )
        if not location.path.startswith(prefix) or len(location.path) == len(prefix):
            raise InvalidArgumentError(f"Invalid S3 URI format: {location.path}")
        return location.path[len(prefix):]

    # Error mapping

    def _translate_error(self, error: Exception, key: str) -> StorageError:
        if isinstance(error, ClientError):
            code = _error_code(error)
            if code in NOT_FOUND_CODES:
                return StorageObjectNotFoundError(key, provider_name=self._provider_name)
            if code in ARCHIVED_CODES:
                return RetrievalRequiredError(key, provider_name=self._provider_name)
            return StorageError(
                f"S3 request failed ({code}): {error}",
                provider_name=self._provider_name,
                error_code="StorageError",
                details={"aws_error_code": code, "key": key},
            )
        return StorageUnavailableError(
            f"S3 endpoint unreachable: {error}", provider_name=self._provider_name, details={"key": key}
        )

    # Operations

    async def upload(self, stream: BinaryIO, options: UploadOptions) -> UploadResult:
        key = self.generate_key(options)
        params: Dict[str, Any] = {
            "Bucket": self._bucket_name,
            "Key": key,
            "Body": stream,
            "ContentType": options.content_type or "application/octet-stream",
        }
        if self.STORAGE_CLASS:
            params["StorageClass"] = self.STORAGE_CLASS
        if options.metadata:
            params["Metadata"] = dict(options.metadata)

        try:
            await asyncio.to_thread(self._client.put_object, **params)
        except (BotoCoreError, ClientError) as e:
            logger.warning(f"{self._provider_name}: upload of {key} failed: {e}")
            return UploadResult.failed(str(e))

        logger.debug(f"{self._provider_name}: uploaded {key} ({self.STORAGE_CLASS or 'default'} class)")
        return UploadResult(success=True, location=self._location_for(key), uploaded_at=utc_now())

    def _read_body(self, body: Any) -> BinaryIO:
        spool = tempfile.SpooledTemporaryFile(max_size=SPOOL_MAX_MEMORY)
        try:
            shutil.copyfileobj(body, spool)
        finally:
            body.close()
        spool.seek(0)
        return spool

    async def download(self, location: StorageLocation) -> BinaryIO:
        key = self.extract_key(location)
        try:
            response = await asyncio.to_thread(
                self._client.get_object, Bucket=self._bucket_name, Key=key
            )
            return await asyncio.to_thread(self._read_body, response["Body"])
        except (BotoCoreError, ClientError) as e:
            raise self._translate_error(e, key) from e

    async def delete(self, location: StorageLocation) -> bool:
        key = self.extract_key(location)
        try:
            await asyncio.to_thread(self._client.head_object, Bucket=self._bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            raise self._translate_error(e, key) from e
        except BotoCoreError as e:
            raise self._translate_error(e, key) from e

        try:
            await asyncio.to_thread(self._client.delete_object, Bucket=self._bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise self._translate_error(e, key) from e

        logger.info(f"{self._provider_name}: deleted {key}")
        return True

    # Retrieval

    def effective_tier(self, tier: RetrievalTier) -> RetrievalTier:
        """Tier actually requested from the backend for ``tier``."""
        return tier

    def estimate_for(self, tier: RetrievalTier) -> timedelta:
        return self.RETRIEVAL_ESTIMATES.get(
            self.effective_tier(tier), self.CAPABILITIES.max_retrieval_time
        )

    def _encode_retrieval_id(self, key: str, tier: RetrievalTier, requested_at: datetime) -> str:
        payload = json.dumps(
            {"key": key, "tier": tier.value, "requested_at": to_utc_string(requested_at)},
            separators=(",", ":"),
        )
        token = base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii").rstrip("=")
        return f"{self._provider_name}:{token}"

    def _decode_retrieval_id(self, retrieval_id: str) -> Tuple[str, RetrievalTier, datetime]:
        prefix = f"{self._provider_name}:"
        if not retrieval_id or not retrieval_id.startswith(prefix):
            raise InvalidArgumentError(f"Retrieval id was not issued by {self._provider_name}: {retrieval_id}")
        token = retrieval_id[len(prefix):]
        try:
            padded = token + "=" * (-len(token) % 4)
            payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
            return (
                payload["key"],
                RetrievalTier(payload["tier"]),
                from_utc_string(payload["requested_at"]),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise InvalidArgumentError(f"Malformed retrieval id: {retrieval_id}") from e

    async def initiate_retrieval(
        self,
        location: StorageLocation,
        tier: RetrievalTier = RetrievalTier.STANDARD
    ) -> RetrievalResult:
        if not self.CAPABILITIES.supports_retrieval:
            raise UnsupportedOperationError(
                f"Storage provider '{self._provider_name}' offers instant access and does not support retrieval",
                details={"provider_name": self._provider_name},
            )

        key = self.extract_key(location)
        backend_tier = self.effective_tier(tier)
        request = {
            "Days": self._restore_days,
            "GlacierJobParameters": {"Tier": self.TIER_NAMES[backend_tier]},
        }
        requested_at = utc_now()

        try:
            await asyncio.to_thread(
                self._client.restore_object,
                Bucket=self._bucket_name,
                Key=key,
                RestoreRequest=request,
            )
        except ClientError as e:
            code = _error_code(e)
            if code in NOT_FOUND_CODES:
                raise StorageObjectNotFoundError(key, provider_name=self._provider_name) from e
            if code not in RESTORE_IN_PROGRESS_CODES:
                logger.warning(f"{self._provider_name}: restore of {key} failed: {e}")
                return RetrievalResult(success=False, status=RetrievalStatus.FAILED, error_message=str(e))
            logger.info(f"{self._provider_name}: restore of {key} already in progress")
        except BotoCoreError as e:
            logger.warning(f"{self._provider_name}: restore of {key} failed: {e}")
            return RetrievalResult(success=False, status=RetrievalStatus.FAILED, error_message=str(e))

        logger.info(f"{self._provider_name}: restore of {key} requested ({backend_tier.value})")
        return RetrievalResult(
            success=True,
            retrieval_id=self._encode_retrieval_id(key, backend_tier, requested_at),
            estimated_completion_time=self.estimate_for(backend_tier),
            status=RetrievalStatus.IN_PROGRESS,
        )

    async def get_retrieval_status(self, retrieval_id: str) -> RetrievalStatusDetail:
        """Derive the restore status from the object's ``Restore`` header.

        - ``ongoing-request="true"``: IN_PROGRESS, progress estimated from
          elapsed time and capped at 99
        - ``ongoing-request="false"``: READY (or EXPIRED past expiry-date)
        - no header: REQUESTED, or EXPIRED once the restore window passed
        """
        if not self.CAPABILITIES.supports_retrieval:
            raise UnsupportedOperationError(
                f"Storage provider '{self._provider_name}' does not support retrieval"
            )

        key, tier, requested_at = self._decode_retrieval_id(retrieval_id)
        try:
            head = await asyncio.to_thread(self._client.head_object, Bucket=self._bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise self._translate_error(e, key) from e

        now = utc_now()
        restore = head.get("Restore")
        if restore:
            ongoing = _ONGOING_REQUEST.search(restore)
            if ongoing and ongoing.group(1) == "true":
                return RetrievalStatusDetail(
                    retrieval_id=retrieval_id,
                    status=RetrievalStatus.IN_PROGRESS,
                    progress_percentage=self._estimate_progress(tier, requested_at, now),
                )

            expiry = _EXPIRY_DATE.search(restore)
            if expiry:
                try:
                    expires_at = parsedate_to_datetime(expiry.group(1))
                except (TypeError, ValueError):
                    expires_at = None
                if expires_at is not None and expires_at <= now:
                    return RetrievalStatusDetail(retrieval_id=retrieval_id, status=RetrievalStatus.EXPIRED)

            return RetrievalStatusDetail(
                retrieval_id=retrieval_id,
                status=RetrievalStatus.READY,
                progress_percentage=100,
                completed_at=now,
            )

        window = self.CAPABILITIES.max_retrieval_time + timedelta(days=self._restore_days)
        if now > requested_at + window:
            return RetrievalStatusDetail(retrieval_id=retrieval_id, status=RetrievalStatus.EXPIRED)
        return RetrievalStatusDetail(retrieval_id=retrieval_id, status=RetrievalStatus.REQUESTED)

    def _estimate_progress(self, tier: RetrievalTier, requested_at: datetime, now: datetime) -> int:
        estimate = self.estimate_for(tier).total_seconds()
        if estimate <= 0:
            return 99
        elapsed = max((now - requested_at).total_seconds(), 0.0)
        return min(99, int(elapsed * 100 / estimate))

    # Health

    async def check_health(self) -> HealthStatus:
        started = time.perf_counter()
        try:
            await asyncio.to_thread(self._client.list_objects_v2, Bucket=self._bucket_name, MaxKeys=1)
        except (BotoCoreError, ClientError) as e:
            elapsed = timedelta(seconds=time.perf_counter() - started)
            logger.warning(f"{self._provider_name}: health check failed: {e}")
            return HealthStatus(is_healthy=False, response_time=elapsed, message=str(e))

        elapsed = timedelta(seconds=time.perf_counter() - started)
        return HealthStatus(
            is_healthy=True,
            response_time=elapsed,
            message="S3 connection successful",
            details={"bucket": self._bucket_name},
        )
