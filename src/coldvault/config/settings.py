"""
Configuration management for coldvault.

Settings are read from the environment (prefix ``COLDVAULT_``) and an
optional ``.env`` file. ``get_settings()`` returns a cached instance.
"""
from typing import Dict, List, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, SecretStr, field_validator


PROVIDER_S3_STANDARD = "s3-standard"
PROVIDER_S3_GLACIER_FLEXIBLE = "s3-glacier-flexible"
PROVIDER_S3_GLACIER_DEEP = "s3-glacier-deep"
PROVIDER_IDRIVE_E2 = "idrive-e2"

ALL_PROVIDERS = [
    PROVIDER_S3_STANDARD,
    PROVIDER_S3_GLACIER_FLEXIBLE,
    PROVIDER_S3_GLACIER_DEEP,
    PROVIDER_IDRIVE_E2,
]


class ColdVaultSettings(BaseSettings):
    """Archive settings."""

    model_config = SettingsConfigDict(
        env_prefix="COLDVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    environment: str = Field(default="development")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="simple")  # simple | detailed | json

    # AWS Configuration
    aws_region: str = Field(default="us-east-1")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[SecretStr] = Field(default=None)
    aws_endpoint_url: Optional[str] = Field(default=None)

    # One bucket per storage class; a provider without a bucket is not registered
    s3_standard_bucket: Optional[str] = Field(default=None)
    s3_glacier_flexible_bucket: Optional[str] = Field(default=None)
    s3_glacier_deep_bucket: Optional[str] = Field(default=None)

    # iDrive e2 Configuration
    idrive_endpoint_url: Optional[str] = Field(default=None)
    idrive_region: str = Field(default="us-east-1")
    idrive_bucket: Optional[str] = Field(default=None)
    idrive_access_key_id: Optional[str] = Field(default=None)
    idrive_secret_access_key: Optional[SecretStr] = Field(default=None)

    # Use dict-backed providers instead of real buckets (local development)
    use_in_memory_storage: bool = Field(default=False)
    load_provider_plugins: bool = Field(default=True)

    # Provider Selection
    enabled_providers: List[str] = Field(default_factory=lambda: list(ALL_PROVIDERS))
    default_provider: Optional[str] = Field(default=PROVIDER_S3_STANDARD)
    thumbnail_provider: Optional[str] = Field(default=None)
    provider_costs: Dict[str, float] = Field(
        default_factory=lambda: {
            # USD per 1,000 PUT requests
            PROVIDER_S3_STANDARD: 0.005,
            PROVIDER_S3_GLACIER_FLEXIBLE: 0.03,
            PROVIDER_S3_GLACIER_DEEP: 0.05,
            PROVIDER_IDRIVE_E2: 0.0,
        }
    )
    large_payload_threshold: int = Field(default=1024 ** 3)

    # Upload Configuration
    max_single_upload_size: Optional[int] = Field(default=20 * 1024 * 1024)
    default_chunk_size: int = Field(default=5 * 1024 * 1024)
    session_ttl_hours: int = Field(default=24)
    chunk_conflict_retries: int = Field(default=3)

    # Retrieval Configuration
    restore_days: int = Field(default=1)

    # Thumbnail Configuration
    thumbnail_width: int = Field(default=300)
    thumbnail_height: int = Field(default=300)
    thumbnail_quality: int = Field(default=80)

    # Database Configuration (in-memory record store when unset)
    database_url: Optional[SecretStr] = Field(default=None)
    db_pool_min_size: int = Field(default=1)
    db_pool_max_size: int = Field(default=10)
    db_command_timeout: float = Field(default=30.0)

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @field_validator("enabled_providers")
    @classmethod
    def _normalize_providers(cls, value: List[str]) -> List[str]:
        return [name.strip().lower() for name in value if name and name.strip()]

    @field_validator("provider_costs")
    @classmethod
    def _normalize_costs(cls, value: Dict[str, float]) -> Dict[str, float]:
        return {name.strip().lower(): cost for name, cost in value.items()}

    @field_validator("default_provider", "thumbnail_provider")
    @classmethod
    def _normalize_provider_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip().lower()

    @field_validator("thumbnail_width", "thumbnail_height")
    @classmethod
    def _check_dimension(cls, value: int) -> int:
        if not 1 <= value <= 5000:
            raise ValueError("Thumbnail dimensions must be between 1 and 5000")
        return value

    @field_validator("thumbnail_quality")
    @classmethod
    def _check_quality(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("Thumbnail quality must be between 1 and 100")
        return value

    @property
    def bucket_by_provider(self) -> Dict[str, Optional[str]]:
        return {
            PROVIDER_S3_STANDARD: self.s3_standard_bucket,
            PROVIDER_S3_GLACIER_FLEXIBLE: self.s3_glacier_flexible_bucket,
            PROVIDER_S3_GLACIER_DEEP: self.s3_glacier_deep_bucket,
            PROVIDER_IDRIVE_E2: self.idrive_bucket,
        }


@lru_cache()
def get_settings() -> ColdVaultSettings:
    """Get cached settings instance."""
    return ColdVaultSettings()
