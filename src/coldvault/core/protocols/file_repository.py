"""Record store protocols.

ONLY persistence contracts - repositories for file records and upload
sessions, and the unit of work that commits them together.

Following maximum separation architecture - one file = one purpose.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, TypeVar
from typing_extensions import Protocol, runtime_checkable

from ..entities import FileRecord, UploadSession
from ..value_objects import FileCategory, FileId, UploadSessionId, UploadState


T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of results."""
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


@dataclass(frozen=True)
class FileSearchFilter:
    """Criteria for ``FileRepository.search``; unset fields do not filter."""
    owner_id: Optional[str] = None
    category: Optional[FileCategory] = None
    state: Optional[UploadState] = None
    tags: frozenset = field(default_factory=frozenset)
    captured_from: Optional[datetime] = None
    captured_to: Optional[datetime] = None
    name_contains: Optional[str] = None
    limit: int = 100
    offset: int = 0


@runtime_checkable
class FileRepository(Protocol):
    """File record repository.

    Reads see committed state. Writes are staged and applied by the owning
    unit of work on ``save_changes()``.
    """

    async def get_by_id(self, file_id: FileId) -> Optional[FileRecord]:
        ...

    async def get_by_digest(self, digest: str) -> Optional[FileRecord]:
        ...

    def add(self, record: FileRecord) -> None:
        ...

    def update(self, record: FileRecord) -> None:
        """Stage an update; stale versions fail at commit."""
        ...

    def delete(self, record: FileRecord) -> None:
        ...

    async def get_by_owner(self, owner_id: str, page: int = 1, page_size: int = 50) -> Page[FileRecord]:
        ...

    async def search(self, criteria: FileSearchFilter) -> List[FileRecord]:
        ...


@runtime_checkable
class UploadSessionRepository(Protocol):
    """Upload session repository."""

    async def get_by_id(self, session_id: UploadSessionId) -> Optional[UploadSession]:
        ...

    def add(self, session: UploadSession) -> None:
        ...

    def update(self, session: UploadSession) -> None:
        ...


@runtime_checkable
class UnitOfWork(Protocol):
    """Unit of work over both repositories.

    Usage::

        async with uow:
            uow.files.add(record)
            await uow.save_changes()

    Leaving the block without ``save_changes()`` discards staged writes.
    """

    files: FileRepository
    upload_sessions: UploadSessionRepository

    async def save_changes(self) -> None:
        """Apply staged writes atomically.

        Raises:
            ConcurrencyConflictError: A staged update carries a stale version
        """
        ...

    async def rollback(self) -> None:
        ...

    async def __aenter__(self) -> 'UnitOfWork':
        ...

    async def __aexit__(self, exc_type, exc, tb) -> None:
        ...
