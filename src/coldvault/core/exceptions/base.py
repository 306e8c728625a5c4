"""Base exceptions for coldvault.

This module defines the base exception hierarchy for the archive. All
exceptions inherit from ColdVaultError and carry an error code plus a
details dictionary so application results can surface them uniformly.
"""

from typing import Any, Dict, Optional


class ColdVaultError(Exception):
    """Base exception for all coldvault errors.

    All exceptions in the coldvault package inherit from this base class
    and include structured error information for result objects and logs.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        *args,
        **kwargs
    ):
        super().__init__(message, *args, **kwargs)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_payload(exception: ColdVaultError) -> Dict[str, Any]:
    """Create a structured error payload from an exception.

    Args:
        exception: The coldvault exception

    Returns:
        Error payload dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
