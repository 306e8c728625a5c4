"""Get file content query.

ONLY downloads - opens the stored content of an archived file.

Following maximum separation architecture - one file = one purpose.

No retrieval bookkeeping happens here: a delayed-access provider reports an
unrestored object with RetrievalRequiredError, surfaced as a
``RetrievalRequired`` failure.
"""

import logging
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from ...core.exceptions import ColdVaultError
from ...core.protocols import UnitOfWork
from ...core.value_objects import FileId
from ..services.storage_manager import StorageProviderSelector

logger = logging.getLogger(__name__)


@dataclass
class FileContentResult:
    """Result of a download."""

    success: bool
    stream: Optional[BinaryIO] = None
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    size: Optional[int] = None

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @classmethod
    def failed(cls, error_code: str, error_message: str) -> 'FileContentResult':
        return cls(success=False, error_code=error_code, error_message=error_message)


class GetFileContentQuery:
    """Query to download a file."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        selector: StorageProviderSelector
    ):
        self._uow_factory = uow_factory
        self._selector = selector

    async def execute(self, file_id: FileId) -> FileContentResult:
        async with self._uow_factory() as uow:
            record = await uow.files.get_by_id(file_id)

        if record is None:
            return FileContentResult.failed("FileNotFound", "File not found")
        if not record.is_uploaded or record.location is None:
            return FileContentResult.failed("FileNotUploaded", "File has not been uploaded yet")

        provider = self._selector.get(record.location.provider_name)
        if provider is None:
            return FileContentResult.failed(
                "ProviderNotFound",
                f"Storage provider '{record.location.provider_name}' is not registered",
            )

        try:
            stream = await provider.download(record.location)
        except ColdVaultError as e:
            logger.info(f"Download of file {file_id} refused: {e.message}")
            return FileContentResult.failed(e.error_code, e.message)
        except Exception as e:
            logger.error(f"Provider {provider.provider_name} raised downloading {file_id}: {e}")
            return FileContentResult.failed("DownloadFailed", str(e))

        return FileContentResult(
            success=True,
            stream=stream,
            file_name=record.metadata.original_file_name,
            mime_type=record.file_type.mime_type,
            size=record.size.value,
        )


def create_get_file_content_query(
    uow_factory: Callable[[], UnitOfWork],
    selector: StorageProviderSelector
) -> GetFileContentQuery:
    """Create get file content query."""
    return GetFileContentQuery(uow_factory, selector)
