"""Record store implementations for coldvault."""

from .memory import (
    InMemoryRecordStore,
    InMemoryUnitOfWork,
    InMemoryFileRepository,
    InMemoryUploadSessionRepository,
)
from .memory_chunk_store import InMemoryChunkStore
from .asyncpg_unit_of_work import (
    AsyncPGRecordStore,
    AsyncPGUnitOfWork,
    AsyncPGFileRepository,
    AsyncPGUploadSessionRepository,
)

__all__ = [
    "InMemoryRecordStore",
    "InMemoryUnitOfWork",
    "InMemoryFileRepository",
    "InMemoryUploadSessionRepository",
    "InMemoryChunkStore",
    "AsyncPGRecordStore",
    "AsyncPGUnitOfWork",
    "AsyncPGFileRepository",
    "AsyncPGUploadSessionRepository",
]
