"""AsyncPG record store implementation.

Concrete implementation of the FileRepository, UploadSessionRepository and
UnitOfWork protocols using AsyncPG. Reads go straight to the pool; writes
are staged and applied in one transaction by ``save_changes()``, so no
transaction is held open across storage provider I/O.
"""

import logging
from importlib import resources
from typing import Any, List, Optional, Tuple

import asyncpg

from ...core.entities import FileMetadata, FileRecord, UploadSession
from ...core.exceptions import ConcurrencyConflictError
from ...core.protocols import FileSearchFilter, Page
from ...core.value_objects import (
    ContentDigest,
    FileId,
    FileSize,
    FileType,
    StorageLocation,
    UploadSessionId,
    UploadState,
    UploadStatus,
)

logger = logging.getLogger(__name__)


FILE_COLUMNS = """
    id, owner_id, original_file_name, sanitized_file_name, content_digest,
    captured_at, created_at, modified_at, tags, description, latitude,
    longitude, device_model, size_bytes, mime_type, category, status,
    status_changed_at, provider_name, storage_path, thumbnail_provider_name,
    thumbnail_path, upload_progress, version
"""

SESSION_COLUMNS = """
    id, file_id, owner_id, total_size, chunk_size, uploaded_chunks,
    created_at, expires_at, completed_at, version
"""


def _location(provider_name: Optional[str], path: Optional[str]) -> Optional[StorageLocation]:
    if provider_name and path:
        return StorageLocation(provider_name, path)
    return None


def build_file_record(row: asyncpg.Record) -> FileRecord:
    """Build FileRecord entity from database row."""
    metadata = FileMetadata(
        original_file_name=row['original_file_name'],
        sanitized_file_name=row['sanitized_file_name'],
        content_digest=ContentDigest(row['content_digest']),
        captured_at=row['captured_at'],
        created_at=row['created_at'],
        modified_at=row['modified_at'],
        tags=frozenset(row['tags'] or ()),
        description=row['description'],
        latitude=row['latitude'],
        longitude=row['longitude'],
        device_model=row['device_model'],
    )
    return FileRecord(
        id=FileId(row['id']),
        owner_id=row['owner_id'],
        metadata=metadata,
        size=FileSize(row['size_bytes']),
        file_type=FileType(row['mime_type']),
        status=UploadStatus(UploadState(row['status']), row['status_changed_at']),
        location=_location(row['provider_name'], row['storage_path']),
        thumbnail_location=_location(row['thumbnail_provider_name'], row['thumbnail_path']),
        upload_progress=row['upload_progress'],
        version=row['version'],
    )


def file_record_values(record: FileRecord) -> Tuple[Any, ...]:
    """Column values in FILE_COLUMNS order, without the version."""
    metadata = record.metadata
    location = record.location
    thumbnail = record.thumbnail_location
    return (
        record.id.value,
        record.owner_id,
        metadata.original_file_name,
        metadata.sanitized_file_name,
        str(metadata.content_digest),
        metadata.captured_at,
        metadata.created_at,
        metadata.modified_at,
        sorted(metadata.tags),
        metadata.description,
        metadata.latitude,
        metadata.longitude,
        metadata.device_model,
        record.size.value,
        record.file_type.mime_type,
        record.file_type.category.value,
        record.status.state.value,
        record.status.changed_at,
        location.provider_name if location else None,
        location.path if location else None,
        thumbnail.provider_name if thumbnail else None,
        thumbnail.path if thumbnail else None,
        record.upload_progress,
    )


def build_upload_session(row: asyncpg.Record) -> UploadSession:
    """Build UploadSession entity from database row."""
    return UploadSession(
        id=UploadSessionId(row['id']),
        file_id=FileId(row['file_id']),
        owner_id=row['owner_id'],
        total_size=row['total_size'],
        chunk_size=row['chunk_size'],
        uploaded_chunks=set(row['uploaded_chunks'] or ()),
        created_at=row['created_at'],
        expires_at=row['expires_at'],
        completed_at=row['completed_at'],
        version=row['version'],
    )


class AsyncPGFileRepository:
    """AsyncPG implementation of FileRepository protocol."""

    def __init__(self, pool: asyncpg.Pool, schema: str, staged: List[Tuple[str, Any]]):
        self._pool = pool
        self._schema = schema
        self._staged = staged

    async def get_by_id(self, file_id: FileId) -> Optional[FileRecord]:
        query = f"SELECT {FILE_COLUMNS} FROM {self._schema}.files WHERE id = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, file_id.value)
        return build_file_record(row) if row else None

    async def get_by_digest(self, digest: str) -> Optional[FileRecord]:
        query = f"SELECT {FILE_COLUMNS} FROM {self._schema}.files WHERE content_digest = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, digest.strip().lower())
        return build_file_record(row) if row else None

    def add(self, record: FileRecord) -> None:
        self._staged.append(("add_file", record))

    def update(self, record: FileRecord) -> None:
        self._staged.append(("update_file", record))

    def delete(self, record: FileRecord) -> None:
        self._staged.append(("delete_file", record))

    async def get_by_owner(self, owner_id: str, page: int = 1, page_size: int = 50) -> Page[FileRecord]:
        page = max(page, 1)
        count_query = f"SELECT COUNT(*) FROM {self._schema}.files WHERE owner_id = $1"
        query = f"""
            SELECT {FILE_COLUMNS} FROM {self._schema}.files
            WHERE owner_id = $1
            ORDER BY created_at DESC, id DESC
            LIMIT $2 OFFSET $3
        """
        async with self._pool.acquire() as conn:
            total = await conn.fetchval(count_query, owner_id)
            rows = await conn.fetch(query, owner_id, page_size, (page - 1) * page_size)
        return Page(
            items=[build_file_record(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
        )

    async def search(self, criteria: FileSearchFilter) -> List[FileRecord]:
        conditions: List[str] = []
        params: List[Any] = []

        def param(value: Any) -> str:
            params.append(value)
            return f"${len(params)}"

        if criteria.owner_id is not None:
            conditions.append(f"owner_id = {param(criteria.owner_id)}")
        if criteria.category is not None:
            conditions.append(f"category = {param(criteria.category.value)}")
        if criteria.state is not None:
            conditions.append(f"status = {param(criteria.state.value)}")
        if criteria.tags:
            conditions.append(f"tags @> {param(sorted(t.lower() for t in criteria.tags))}::text[]")
        if criteria.captured_from is not None:
            conditions.append(f"captured_at >= {param(criteria.captured_from)}")
        if criteria.captured_to is not None:
            conditions.append(f"captured_at <= {param(criteria.captured_to)}")
        if criteria.name_contains:
            conditions.append(f"original_file_name ILIKE {param('%' + criteria.name_contains + '%')}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        query = f"""
            SELECT {FILE_COLUMNS} FROM {self._schema}.files
            {where}
            ORDER BY captured_at DESC, id DESC
            LIMIT {param(criteria.limit)} OFFSET {param(criteria.offset)}
        """
        async with self._pool.acquire() as conn:
            rows = await conn.fetch(query, *params)
        return [build_file_record(row) for row in rows]


class AsyncPGUploadSessionRepository:
    """AsyncPG implementation of UploadSessionRepository protocol."""

    def __init__(self, pool: asyncpg.Pool, schema: str, staged: List[Tuple[str, Any]]):
        self._pool = pool
        self._schema = schema
        self._staged = staged

    async def get_by_id(self, session_id: UploadSessionId) -> Optional[UploadSession]:
        query = f"SELECT {SESSION_COLUMNS} FROM {self._schema}.upload_sessions WHERE id = $1"
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(query, session_id.value)
        return build_upload_session(row) if row else None

    def add(self, session: UploadSession) -> None:
        self._staged.append(("add_session", session))

    def update(self, session: UploadSession) -> None:
        self._staged.append(("update_session", session))


class AsyncPGUnitOfWork:
    """AsyncPG implementation of UnitOfWork protocol."""

    def __init__(self, pool: asyncpg.Pool, schema: str = "public"):
        """Initialize with connection pool and target schema."""
        self._pool = pool
        self._schema = schema
        self._staged: List[Tuple[str, Any]] = []
        self.files = AsyncPGFileRepository(pool, schema, self._staged)
        self.upload_sessions = AsyncPGUploadSessionRepository(pool, schema, self._staged)

    async def __aenter__(self) -> 'AsyncPGUnitOfWork':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()

    async def rollback(self) -> None:
        self._staged.clear()

    async def save_changes(self) -> None:
        """Apply staged writes in one transaction.

        Raises:
            ConcurrencyConflictError: Stale version or duplicate digest
        """
        if not self._staged:
            return

        new_versions: List[Tuple[Any, int]] = []
        async with self._pool.acquire() as conn:
            try:
                async with conn.transaction():
                    for op, entity in self._staged:
                        version = await self._apply(conn, op, entity)
                        if version is not None:
                            new_versions.append((entity, version))
            except asyncpg.UniqueViolationError as e:
                entity = self._staged[0][1]
                logger.warning(f"Unique constraint violated on commit: {e}")
                raise ConcurrencyConflictError(type(entity).__name__, entity.id, entity.version) from e

        for entity, version in new_versions:
            entity.version = version
        logger.debug(f"Committed {len(self._staged)} staged write(s)")
        self._staged.clear()

    async def _apply(self, conn: asyncpg.Connection, op: str, entity: Any) -> Optional[int]:
        if op == "add_file":
            placeholders = ", ".join(f"${i}" for i in range(1, 24))
            query = f"""
                INSERT INTO {self._schema}.files ({FILE_COLUMNS})
                VALUES ({placeholders}, 1)
                RETURNING version
            """
            return await conn.fetchval(query, *file_record_values(entity))

        if op == "update_file":
            query = f"""
                UPDATE {self._schema}.files
                SET owner_id = $2,
                    original_file_name = $3,
                    sanitized_file_name = $4,
                    content_digest = $5,
                    captured_at = $6,
                    created_at = $7,
                    modified_at = $8,
                    tags = $9,
                    description = $10,
                    latitude = $11,
                    longitude = $12,
                    device_model = $13,
                    size_bytes = $14,
                    mime_type = $15,
                    category = $16,
                    status = $17,
                    status_changed_at = $18,
                    provider_name = $19,
                    storage_path = $20,
                    thumbnail_provider_name = $21,
                    thumbnail_path = $22,
                    upload_progress = $23,
                    version = version + 1
                WHERE id = $1 AND version = $24
                RETURNING version
            """
            version = await conn.fetchval(query, *file_record_values(entity), entity.version)
            if version is None:
                raise ConcurrencyConflictError("FileRecord", entity.id, entity.version)
            return version

        if op == "delete_file":
            query = f"DELETE FROM {self._schema}.files WHERE id = $1 AND version = $2 RETURNING id"
            deleted = await conn.fetchval(query, entity.id.value, entity.version)
            if deleted is None:
                raise ConcurrencyConflictError("FileRecord", entity.id, entity.version)
            return None

        if op == "add_session":
            query = f"""
                INSERT INTO {self._schema}.upload_sessions ({SESSION_COLUMNS})
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, 1)
                RETURNING version
            """
            return await conn.fetchval(
                query,
                entity.id.value,
                entity.file_id.value,
                entity.owner_id,
                entity.total_size,
                entity.chunk_size,
                sorted(entity.uploaded_chunks),
                entity.created_at,
                entity.expires_at,
                entity.completed_at,
            )

        if op == "update_session":
            query = f"""
                UPDATE {self._schema}.upload_sessions
                SET uploaded_chunks = $2,
                    expires_at = $3,
                    completed_at = $4,
                    version = version + 1
                WHERE id = $1 AND version = $5
                RETURNING version
            """
            version = await conn.fetchval(
                query,
                entity.id.value,
                sorted(entity.uploaded_chunks),
                entity.expires_at,
                entity.completed_at,
                entity.version,
            )
            if version is None:
                raise ConcurrencyConflictError("UploadSession", entity.id, entity.version)
            return version

        raise ValueError(f"Unknown staged operation: {op}")

    @staticmethod
    def schema_sql(schema: str = "public") -> str:
        """DDL for the record store tables."""
        template = resources.files(__package__).joinpath("schema.sql").read_text(encoding="utf-8")
        return template.replace("{schema}", schema)

    @classmethod
    async def create_schema(cls, pool: asyncpg.Pool, schema: str = "public") -> None:
        async with pool.acquire() as conn:
            await conn.execute(cls.schema_sql(schema))
        logger.info(f"Record store tables ensured in schema {schema}")


class AsyncPGRecordStore:
    """Owns the asyncpg pool and hands out units of work."""

    def __init__(self, pool: asyncpg.Pool, schema: str = "public"):
        self._pool = pool
        self._schema = schema

    @classmethod
    async def connect(
        cls,
        dsn: str,
        schema: str = "public",
        min_size: int = 1,
        max_size: int = 10,
        command_timeout: float = 30.0
    ) -> 'AsyncPGRecordStore':
        pool = await asyncpg.create_pool(
            dsn, min_size=min_size, max_size=max_size, command_timeout=command_timeout
        )
        return cls(pool, schema)

    def unit_of_work(self) -> AsyncPGUnitOfWork:
        return AsyncPGUnitOfWork(self._pool, self._schema)

    __call__ = unit_of_work

    async def create_schema(self) -> None:
        await AsyncPGUnitOfWork.create_schema(self._pool, self._schema)

    async def close(self) -> None:
        await self._pool.close()
