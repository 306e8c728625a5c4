"""S3 Glacier Flexible Retrieval storage provider.

ONLY Glacier Flexible Retrieval - archival class restored within minutes
(Expedited) to hours (Standard, Bulk).

Following maximum separation architecture - one file = one purpose.
"""

from datetime import timedelta

from ...config.settings import PROVIDER_S3_GLACIER_FLEXIBLE
from ...core.protocols import ProviderCapabilities, RetrievalTier
from .s3_provider import S3StorageProvider


class S3GlacierFlexibleRetrievalProvider(S3StorageProvider):
    PROVIDER_NAME = PROVIDER_S3_GLACIER_FLEXIBLE
    STORAGE_CLASS = "GLACIER"
    CAPABILITIES = ProviderCapabilities(
        supports_instant_access=False,
        supports_retrieval=True,
        supports_deletion=True,
        min_retrieval_time=timedelta(hours=3),
        max_retrieval_time=timedelta(hours=5),
    )
    RETRIEVAL_ESTIMATES = {
        RetrievalTier.BULK: timedelta(hours=5),
        RetrievalTier.STANDARD: timedelta(hours=4),
        RetrievalTier.EXPEDITED: timedelta(minutes=15),
    }
