"""S3 Glacier Deep Archive storage provider.

ONLY Glacier Deep Archive - lowest-cost archival class, restored in
12 to 48 hours.

Following maximum separation architecture - one file = one purpose.
"""

from datetime import timedelta

from ...config.settings import PROVIDER_S3_GLACIER_DEEP
from ...core.protocols import ProviderCapabilities, RetrievalTier
from .s3_provider import S3StorageProvider


class S3GlacierDeepArchiveProvider(S3StorageProvider):
    PROVIDER_NAME = PROVIDER_S3_GLACIER_DEEP
    STORAGE_CLASS = "DEEP_ARCHIVE"
    CAPABILITIES = ProviderCapabilities(
        supports_instant_access=False,
        supports_retrieval=True,
        supports_deletion=True,
        min_retrieval_time=timedelta(hours=12),
        max_retrieval_time=timedelta(hours=48),
    )
    RETRIEVAL_ESTIMATES = {
        RetrievalTier.BULK: timedelta(hours=48),
        RetrievalTier.STANDARD: timedelta(hours=12),
    }

    def effective_tier(self, tier: RetrievalTier) -> RetrievalTier:
        # AWS rejects Expedited restores for DEEP_ARCHIVE
        if tier is RetrievalTier.EXPEDITED:
            return RetrievalTier.STANDARD
        return tier
