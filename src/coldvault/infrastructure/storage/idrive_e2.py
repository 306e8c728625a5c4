"""iDrive e2 storage provider.

ONLY iDrive e2 - S3-compatible hot storage reached through a custom
endpoint; instant access, no storage classes.

Following maximum separation architecture - one file = one purpose.
"""

from ...config.settings import PROVIDER_IDRIVE_E2
from ...core.protocols import ProviderCapabilities
from .s3_provider import S3StorageProvider


class IDriveE2Provider(S3StorageProvider):
    PROVIDER_NAME = PROVIDER_IDRIVE_E2
    STORAGE_CLASS = None
    CAPABILITIES = ProviderCapabilities(
        supports_instant_access=True,
        supports_retrieval=False,
        supports_deletion=True,
    )
