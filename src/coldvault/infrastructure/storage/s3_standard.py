"""S3 Standard storage provider.

ONLY S3 Standard - instant-access storage class.

Following maximum separation architecture - one file = one purpose.
"""

from ...config.settings import PROVIDER_S3_STANDARD
from ...core.protocols import ProviderCapabilities
from .s3_provider import S3StorageProvider


class S3StandardProvider(S3StorageProvider):
    PROVIDER_NAME = PROVIDER_S3_STANDARD
    STORAGE_CLASS = "STANDARD"
    CAPABILITIES = ProviderCapabilities(
        supports_instant_access=True,
        supports_retrieval=False,
        supports_deletion=True,
    )
