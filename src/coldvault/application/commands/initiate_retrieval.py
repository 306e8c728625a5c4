"""Initiate retrieval command.

ONLY restore requests - asks the provider holding an archived file to make
it readable again.

Following maximum separation architecture - one file = one purpose.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ...core.exceptions import ColdVaultError
from ...core.protocols import RetrievalStatus, RetrievalTier, UnitOfWork
from ...core.value_objects import FileId
from ...utils import utc_now
from ..services.storage_manager import StorageProviderSelector

logger = logging.getLogger(__name__)


@dataclass
class InitiateRetrievalResult:
    """Result of a retrieval request."""

    success: bool
    retrieval_id: Optional[str] = None
    estimated_completion_at: Optional[datetime] = None
    status: Optional[RetrievalStatus] = None

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, error_code: str, error_message: str) -> 'InitiateRetrievalResult':
        return cls(success=False, error_code=error_code, error_message=error_message)


class InitiateRetrievalCommand:
    """Command to start restoring an archived file."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        selector: StorageProviderSelector
    ):
        self._uow_factory = uow_factory
        self._selector = selector

    async def execute(
        self,
        file_id: FileId,
        tier: RetrievalTier = RetrievalTier.STANDARD
    ) -> InitiateRetrievalResult:
        if not isinstance(tier, RetrievalTier):
            raise ValueError(f"Invalid retrieval tier: {tier}")

        async with self._uow_factory() as uow:
            record = await uow.files.get_by_id(file_id)

        if record is None:
            return InitiateRetrievalResult.failed("FileNotFound", "File not found")
        if not record.is_uploaded or record.location is None:
            return InitiateRetrievalResult.failed("FileNotUploaded", "File has not been uploaded yet")

        provider = self._selector.get(record.location.provider_name)
        if provider is None:
            return InitiateRetrievalResult.failed(
                "ProviderNotFound",
                f"Storage provider '{record.location.provider_name}' is not registered",
            )
        if not provider.capabilities.supports_retrieval:
            return InitiateRetrievalResult.failed(
                "UnsupportedOperation",
                f"Storage provider '{provider.provider_name}' does not support retrieval",
            )

        try:
            result = await provider.initiate_retrieval(record.location, tier)
        except ColdVaultError as e:
            logger.warning(f"Retrieval of file {file_id} failed: {e.message}")
            return InitiateRetrievalResult.failed(e.error_code, e.message)
        except Exception as e:
            logger.error(f"Provider {provider.provider_name} raised on retrieval of {file_id}: {e}")
            return InitiateRetrievalResult.failed("RetrievalFailed", str(e))

        if not result.success:
            return InitiateRetrievalResult.failed(
                "RetrievalFailed", result.error_message or "Retrieval request failed"
            )
        if not result.retrieval_id:
            return InitiateRetrievalResult.failed("RetrievalFailed", "RetrievalId cannot be null")

        estimate = result.estimated_completion_time or timedelta(0)
        logger.info(
            f"Retrieval {result.retrieval_id} of file {file_id} requested ({tier.value}), "
            f"estimated {estimate}"
        )
        return InitiateRetrievalResult(
            success=True,
            retrieval_id=result.retrieval_id,
            estimated_completion_at=utc_now() + estimate,
            status=result.status,
        )


def create_initiate_retrieval_command(
    uow_factory: Callable[[], UnitOfWork],
    selector: StorageProviderSelector
) -> InitiateRetrievalCommand:
    """Create initiate retrieval command."""
    return InitiateRetrievalCommand(uow_factory, selector)
