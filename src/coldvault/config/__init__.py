"""Configuration for coldvault."""

from .settings import (
    ColdVaultSettings,
    get_settings,
    PROVIDER_S3_STANDARD,
    PROVIDER_S3_GLACIER_FLEXIBLE,
    PROVIDER_S3_GLACIER_DEEP,
    PROVIDER_IDRIVE_E2,
    ALL_PROVIDERS,
)
from .logging_config import LoggingConfig, LogFormat, setup_logging

__all__ = [
    "ColdVaultSettings",
    "get_settings",
    "PROVIDER_S3_STANDARD",
    "PROVIDER_S3_GLACIER_FLEXIBLE",
    "PROVIDER_S3_GLACIER_DEEP",
    "PROVIDER_IDRIVE_E2",
    "ALL_PROVIDERS",
    "LoggingConfig",
    "LogFormat",
    "setup_logging",
]
