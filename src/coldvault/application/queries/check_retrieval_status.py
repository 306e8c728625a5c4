"""Check retrieval status query.

ONLY restore polling - routes a retrieval id back to the provider that
issued it and reports the restore status.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.exceptions import ColdVaultError, InvalidArgumentError
from ...core.protocols import RetrievalStatus
from ..services.storage_manager import StorageProviderSelector

logger = logging.getLogger(__name__)


@dataclass
class RetrievalStatusResult:
    """Result of a retrieval status poll."""

    success: bool
    retrieval_id: Optional[str] = None
    status: Optional[RetrievalStatus] = None
    progress_percentage: int = 0
    completed_at: Optional[datetime] = None

    error_code: Optional[str] = None
    error_message: Optional[str] = None


class CheckRetrievalStatusQuery:
    """Query to poll a retrieval."""

    def __init__(self, selector: StorageProviderSelector):
        self._selector = selector

    async def execute(self, retrieval_id: str) -> RetrievalStatusResult:
        """Poll the issuing provider.

        Raises:
            InvalidArgumentError: Empty retrieval id
        """
        if not retrieval_id or not retrieval_id.strip():
            raise InvalidArgumentError("RetrievalId cannot be null")

        provider_name, sep, _ = retrieval_id.partition(":")
        provider = self._selector.get(provider_name) if sep else None
        if provider is None:
            return RetrievalStatusResult(
                success=False,
                retrieval_id=retrieval_id,
                error_code="ProviderNotFound",
                error_message=f"No storage provider issued retrieval '{retrieval_id}'",
            )

        try:
            detail = await provider.get_retrieval_status(retrieval_id)
        except ColdVaultError as e:
            logger.warning(f"Status of retrieval {retrieval_id} unavailable: {e.message}")
            return RetrievalStatusResult(
                success=False, retrieval_id=retrieval_id, error_code=e.error_code, error_message=e.message
            )
        except Exception as e:
            logger.error(f"Provider {provider.provider_name} raised polling {retrieval_id}: {e}")
            return RetrievalStatusResult(
                success=False, retrieval_id=retrieval_id, error_code="RetrievalStatusFailed", error_message=str(e)
            )

        return RetrievalStatusResult(
            success=True,
            retrieval_id=detail.retrieval_id,
            status=detail.status,
            progress_percentage=detail.progress_percentage,
            completed_at=detail.completed_at,
        )


def create_check_retrieval_status_query(selector: StorageProviderSelector) -> CheckRetrievalStatusQuery:
    """Create check retrieval status query."""
    return CheckRetrievalStatusQuery(selector)
