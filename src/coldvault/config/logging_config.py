"""Centralized logging configuration for coldvault.

Provides consistent logging with settings-based control over level and
format, and keeps the AWS SDK and imaging libraries quiet.
"""

import logging
import logging.config
from enum import Enum
from typing import Optional

from .settings import ColdVaultSettings, get_settings


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


_FORMATS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


class LoggingConfig:
    """Centralized logging configuration manager."""

    # Third-party modules that only log warnings and above
    QUIET_MODULES = [
        "botocore",
        "boto3",
        "s3transfer",
        "urllib3",
        "PIL",
    ]

    @classmethod
    def configure(cls, settings: Optional[ColdVaultSettings] = None) -> None:
        """Configure logging from settings."""
        settings = settings or get_settings()
        log_level = settings.log_level

        try:
            log_format = LogFormat(settings.log_format.lower())
        except ValueError:
            log_format = LogFormat.SIMPLE

        logging_config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": _FORMATS[log_format],
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": log_level,
                "handlers": ["console"],
            },
            "loggers": {},
        }

        for module in cls.QUIET_MODULES:
            logging_config["loggers"][module] = {
                "level": "WARNING" if log_level != "DEBUG" else "INFO",
                "handlers": ["console"],
                "propagate": False,
            }

        logging_config["loggers"]["asyncpg"] = {
            "level": "WARNING",
            "handlers": ["console"],
            "propagate": False,
        }

        logging.config.dictConfig(logging_config)

        logger = logging.getLogger(__name__)
        logger.debug(f"Logging configured: level={log_level}, format={log_format.value}")


def setup_logging(settings: Optional[ColdVaultSettings] = None) -> None:
    """Configure logging once at application startup."""
    LoggingConfig.configure(settings)
