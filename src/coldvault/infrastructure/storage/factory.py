"""Storage provider factory.

ONLY provider construction - builds the provider map from settings: boto3
clients for the AWS storage classes and iDrive e2, or in-memory providers
for local development, plus providers contributed by installed plugins
through the ``coldvault.storage_providers`` entry point group.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from datetime import timedelta
from importlib.metadata import entry_points
from typing import Any, Callable, Dict, Optional, Type

import boto3
from botocore.config import Config

from ...config.settings import (
    ColdVaultSettings,
    PROVIDER_IDRIVE_E2,
    PROVIDER_S3_GLACIER_DEEP,
    PROVIDER_S3_GLACIER_FLEXIBLE,
    PROVIDER_S3_STANDARD,
)
from ...core.protocols import StorageProviderProtocol
from .idrive_e2 import IDriveE2Provider
from .memory_provider import InMemoryStorageProvider
from .s3_glacier_deep_archive import S3GlacierDeepArchiveProvider
from .s3_glacier_flexible import S3GlacierFlexibleRetrievalProvider
from .s3_provider import S3StorageProvider
from .s3_standard import S3StandardProvider

logger = logging.getLogger(__name__)


PROVIDER_CLASSES: Dict[str, Type[S3StorageProvider]] = {
    PROVIDER_S3_STANDARD: S3StandardProvider,
    PROVIDER_S3_GLACIER_FLEXIBLE: S3GlacierFlexibleRetrievalProvider,
    PROVIDER_S3_GLACIER_DEEP: S3GlacierDeepArchiveProvider,
    PROVIDER_IDRIVE_E2: IDriveE2Provider,
}

PLUGIN_ENTRY_POINT_GROUP = "coldvault.storage_providers"

_CLIENT_CONFIG = Config(retries={"max_attempts": 3, "mode": "standard"})


def create_s3_client(
    region_name: str,
    access_key_id: Optional[str] = None,
    secret_access_key: Optional[str] = None,
    endpoint_url: Optional[str] = None
) -> Any:
    """Create a boto3 S3 client; unset credentials fall back to the default chain."""
    return boto3.client(
        "s3",
        region_name=region_name,
        aws_access_key_id=access_key_id,
        aws_secret_access_key=secret_access_key,
        endpoint_url=endpoint_url,
        config=_CLIENT_CONFIG,
    )


def _secret(value) -> Optional[str]:
    return value.get_secret_value() if value is not None else None


class StorageProviderFactory:
    """Builds the provider map used by the selector."""

    def __init__(
        self,
        settings: ColdVaultSettings,
        client_factory: Callable[..., Any] = create_s3_client
    ):
        self._settings = settings
        self._client_factory = client_factory

    def create_providers(self) -> Dict[str, StorageProviderProtocol]:
        """Providers for every configured bucket (or every name in memory mode).

        Plugin providers are merged in afterwards; a plugin never replaces a
        built-in provider of the same name.
        """
        if self._settings.use_in_memory_storage:
            providers = self.create_in_memory_providers()
        else:
            providers = self.create_configured_providers()

        if self._settings.load_provider_plugins:
            for name, provider in self.load_plugin_providers().items():
                if name in providers:
                    logger.warning(f"Storage provider plugin {name} is already registered, skipping")
                    continue
                providers[name] = provider
        return providers

    def create_configured_providers(self) -> Dict[str, StorageProviderProtocol]:
        providers: Dict[str, StorageProviderProtocol] = {}
        aws_client = None
        for name, bucket in self._settings.bucket_by_provider.items():
            if not bucket:
                logger.debug(f"Storage provider {name} has no bucket configured, skipping")
                continue

            if name == PROVIDER_IDRIVE_E2:
                client = self._create_idrive_client()
                if client is None:
                    continue
            else:
                if aws_client is None:
                    aws_client = self._client_factory(
                        region_name=self._settings.aws_region,
                        access_key_id=self._settings.aws_access_key_id,
                        secret_access_key=_secret(self._settings.aws_secret_access_key),
                        endpoint_url=self._settings.aws_endpoint_url,
                    )
                client = aws_client

            providers[name] = PROVIDER_CLASSES[name](
                client, bucket, restore_days=self._settings.restore_days
            )
            logger.info(f"Registered storage provider {name} (bucket {bucket})")

        return providers

    def _create_idrive_client(self) -> Any:
        if not self._settings.idrive_endpoint_url:
            logger.warning(f"{PROVIDER_IDRIVE_E2} has a bucket but no endpoint URL, skipping")
            return None
        return self._client_factory(
            region_name=self._settings.idrive_region,
            access_key_id=self._settings.idrive_access_key_id,
            secret_access_key=_secret(self._settings.idrive_secret_access_key),
            endpoint_url=self._settings.idrive_endpoint_url,
        )

    def create_in_memory_providers(self) -> Dict[str, StorageProviderProtocol]:
        providers: Dict[str, StorageProviderProtocol] = {}
        for name, provider_class in PROVIDER_CLASSES.items():
            providers[name] = InMemoryStorageProvider(
                name,
                capabilities=provider_class.CAPABILITIES,
                restore_window=timedelta(days=self._settings.restore_days),
            )
        logger.info(f"Registered in-memory storage providers: {', '.join(providers)}")
        return providers

    def load_plugin_providers(self) -> Dict[str, StorageProviderProtocol]:
        """Instantiate providers advertised by installed distributions.

        Each entry point resolves to a callable taking the settings and
        returning a provider. A plugin that fails to load is logged and
        skipped.
        """
        providers: Dict[str, StorageProviderProtocol] = {}
        for entry_point in entry_points(group=PLUGIN_ENTRY_POINT_GROUP):
            try:
                plugin = entry_point.load()
                provider = plugin(self._settings)
            except Exception as e:
                logger.warning(f"Storage provider plugin {entry_point.name} failed to load: {e}")
                continue

            if not isinstance(provider, StorageProviderProtocol):
                logger.warning(
                    f"Storage provider plugin {entry_point.name} does not implement StorageProviderProtocol, skipping"
                )
                continue

            name = provider.provider_name.strip().lower()
            if name in providers:
                logger.warning(f"Storage provider plugin {name} is provided twice, keeping the first")
                continue
            providers[name] = provider
            logger.info(f"Registered storage provider plugin {name} from {entry_point.value}")
        return providers
