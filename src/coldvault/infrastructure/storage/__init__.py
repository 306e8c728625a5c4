"""Storage providers for coldvault."""

from .s3_provider import S3StorageProvider
from .s3_standard import S3StandardProvider
from .s3_glacier_flexible import S3GlacierFlexibleRetrievalProvider
from .s3_glacier_deep_archive import S3GlacierDeepArchiveProvider
from .idrive_e2 import IDriveE2Provider
from .memory_provider import InMemoryStorageProvider
from .factory import StorageProviderFactory, PROVIDER_CLASSES, create_s3_client

__all__ = [
    "S3StorageProvider",
    "S3StandardProvider",
    "S3GlacierFlexibleRetrievalProvider",
    "S3GlacierDeepArchiveProvider",
    "IDriveE2Provider",
    "InMemoryStorageProvider",
    "StorageProviderFactory",
    "PROVIDER_CLASSES",
    "create_s3_client",
]
