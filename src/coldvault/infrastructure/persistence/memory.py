"""In-memory record store.

ONLY in-process persistence - committed state kept in dicts, with a unit
of work that stages writes and applies them atomically with version
checks. Used by tests and local development.

Following maximum separation architecture - one file = one purpose.

Entities cross the store boundary as deep copies, so uncommitted changes
to a loaded entity are never visible to other units of work.
"""

import asyncio
import copy
import logging
from typing import Dict, List, Optional, Tuple

from ...core.entities import FileRecord, UploadSession
from ...core.exceptions import ConcurrencyConflictError
from ...core.protocols import FileSearchFilter, Page
from ...core.value_objects import FileId, UploadSessionId
from ...utils import ensure_utc

logger = logging.getLogger(__name__)


def matches_filter(record: FileRecord, criteria: FileSearchFilter) -> bool:
    if criteria.owner_id is not None and record.owner_id != criteria.owner_id:
        return False
    if criteria.category is not None and record.file_type.category is not criteria.category:
        return False
    if criteria.state is not None and record.state is not criteria.state:
        return False
    if criteria.tags and not {t.lower() for t in criteria.tags} <= record.metadata.tags:
        return False
    if criteria.captured_from is not None and record.captured_at < ensure_utc(criteria.captured_from):
        return False
    if criteria.captured_to is not None and record.captured_at > ensure_utc(criteria.captured_to):
        return False
    if criteria.name_contains and criteria.name_contains.lower() not in record.file_name.lower():
        return False
    return True


class InMemoryRecordStore:
    """Committed state shared by every unit of work created from it."""

    def __init__(self):
        self.files: Dict[FileId, FileRecord] = {}
        self.sessions: Dict[UploadSessionId, UploadSession] = {}
        self.lock = asyncio.Lock()

    def unit_of_work(self) -> 'InMemoryUnitOfWork':
        return InMemoryUnitOfWork(self)

    __call__ = unit_of_work

    def find_by_digest(self, digest: str) -> Optional[FileRecord]:
        for record in self.files.values():
            if record.content_digest.matches(digest):
                return record
        return None


class InMemoryFileRepository:
    """File repository over an InMemoryRecordStore."""

    def __init__(self, store: InMemoryRecordStore, staged: List[Tuple[str, object]]):
        self._store = store
        self._staged = staged

    async def get_by_id(self, file_id: FileId) -> Optional[FileRecord]:
        record = self._store.files.get(file_id)
        return copy.deepcopy(record) if record is not None else None

    async def get_by_digest(self, digest: str) -> Optional[FileRecord]:
        record = self._store.find_by_digest(digest)
        return copy.deepcopy(record) if record is not None else None

    def add(self, record: FileRecord) -> None:
        self._staged.append(("add_file", record))

    def update(self, record: FileRecord) -> None:
        self._staged.append(("update_file", record))

    def delete(self, record: FileRecord) -> None:
        self._staged.append(("delete_file", record))

    async def get_by_owner(self, owner_id: str, page: int = 1, page_size: int = 50) -> Page[FileRecord]:
        page = max(page, 1)
        records = sorted(
            (r for r in self._store.files.values() if r.owner_id == owner_id),
            key=lambda r: (r.metadata.created_at, str(r.id)),
            reverse=True,
        )
        start = (page - 1) * page_size
        items = [copy.deepcopy(r) for r in records[start:start + page_size]]
        return Page(items=items, total=len(records), page=page, page_size=page_size)

    async def search(self, criteria: FileSearchFilter) -> List[FileRecord]:
        records = sorted(
            (r for r in self._store.files.values() if matches_filter(r, criteria)),
            key=lambda r: (r.captured_at, str(r.id)),
            reverse=True,
        )
        return [copy.deepcopy(r) for r in records[criteria.offset:criteria.offset + criteria.limit]]


class InMemoryUploadSessionRepository:
    """Upload session repository over an InMemoryRecordStore."""

    def __init__(self, store: InMemoryRecordStore, staged: List[Tuple[str, object]]):
        self._store = store
        self._staged = staged

    async def get_by_id(self, session_id: UploadSessionId) -> Optional[UploadSession]:
        session = self._store.sessions.get(session_id)
        return copy.deepcopy(session) if session is not None else None

    def add(self, session: UploadSession) -> None:
        self._staged.append(("add_session", session))

    def update(self, session: UploadSession) -> None:
        self._staged.append(("update_session", session))


class InMemoryUnitOfWork:
    """Unit of work staging writes until ``save_changes()``."""

    def __init__(self, store: InMemoryRecordStore):
        self._store = store
        self._staged: List[Tuple[str, object]] = []
        self.files = InMemoryFileRepository(store, self._staged)
        self.upload_sessions = InMemoryUploadSessionRepository(store, self._staged)

    async def __aenter__(self) -> 'InMemoryUnitOfWork':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()

    async def rollback(self) -> None:
        self._staged.clear()

    def _check(self, files: Dict[FileId, FileRecord], sessions: Dict[UploadSessionId, UploadSession]) -> None:
        """Validate staged writes against a working copy of committed state."""
        for op, entity in self._staged:
            if op == "add_file":
                if entity.id in files:
                    raise ConcurrencyConflictError("FileRecord", entity.id, entity.version)
                self._check_unique_digest(files, entity)
                files[entity.id] = entity
            elif op in ("update_file", "delete_file"):
                current = files.get(entity.id)
                if current is None or current.version != entity.version:
                    raise ConcurrencyConflictError("FileRecord", entity.id, entity.version)
                if op == "update_file":
                    self._check_unique_digest(files, entity)
                    files[entity.id] = entity
                else:
                    del files[entity.id]
            elif op == "add_session":
                if entity.id in sessions:
                    raise ConcurrencyConflictError("UploadSession", entity.id, entity.version)
                sessions[entity.id] = entity
            elif op == "update_session":
                current = sessions.get(entity.id)
                if current is None or current.version != entity.version:
                    raise ConcurrencyConflictError("UploadSession", entity.id, entity.version)
                sessions[entity.id] = entity

    @staticmethod
    def _check_unique_digest(files: Dict[FileId, FileRecord], record: FileRecord) -> None:
        for other in files.values():
            if other.id != record.id and other.content_digest == record.content_digest:
                raise ConcurrencyConflictError("FileRecord", record.id, record.version)

    async def save_changes(self) -> None:
        if not self._staged:
            return

        async with self._store.lock:
            # Validate everything first so a conflict applies nothing
            self._check(dict(self._store.files), dict(self._store.sessions))

            applied: Dict[int, int] = {}
            for op, entity in self._staged:
                if id(entity) not in applied:
                    applied[id(entity)] = entity.version + (0 if op == "delete_file" else 1)
            for op, entity in self._staged:
                entity.version = applied[id(entity)]
                if op in ("add_file", "update_file"):
                    self._store.files[entity.id] = copy.deepcopy(entity)
                elif op == "delete_file":
                    self._store.files.pop(entity.id, None)
                else:
                    self._store.sessions[entity.id] = copy.deepcopy(entity)

        logger.debug(f"Committed {len(self._staged)} staged write(s)")
        self._staged.clear()
