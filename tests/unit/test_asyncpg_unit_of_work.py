"""Unit tests for the AsyncPG record store with a mocked pool."""

import asyncpg
import pytest
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

from coldvault.core.exceptions import ConcurrencyConflictError
from coldvault.core.protocols import FileSearchFilter
from coldvault.core.value_objects import FileCategory, StorageLocation, UploadState
from coldvault.infrastructure.persistence import AsyncPGUnitOfWork
from coldvault.infrastructure.persistence.asyncpg_unit_of_work import (
    build_file_record,
    build_upload_session,
    file_record_values,
)
from tests.factories import make_record


@pytest.fixture
def mock_connection():
    """Mock asyncpg connection."""
    conn = MagicMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.fetchval = AsyncMock(return_value=1)
    conn.execute = AsyncMock()

    @asynccontextmanager
    async def transaction():
        yield

    conn.transaction = MagicMock(side_effect=transaction)
    return conn


@pytest.fixture
def mock_pool(mock_connection):
    """Mock asyncpg pool handing out the mock connection."""
    pool = MagicMock()

    @asynccontextmanager
    async def acquire():
        yield mock_connection

    pool.acquire = MagicMock(side_effect=acquire)
    return pool


def record_row(record):
    columns = [
        "id", "owner_id", "original_file_name", "sanitized_file_name", "content_digest",
        "captured_at", "created_at", "modified_at", "tags", "description", "latitude",
        "longitude", "device_model", "size_bytes", "mime_type", "category", "status",
        "status_changed_at", "provider_name", "storage_path", "thumbnail_provider_name",
        "thumbnail_path", "upload_progress",
    ]
    row = dict(zip(columns, file_record_values(record)))
    row["version"] = 4
    return row


class TestRowMapping:
    """Test entity <-> row mapping."""

    def test_file_record_round_trip(self):
        record = make_record()
        record.add_tags(["b", "a"])
        record.start_upload()
        record.complete_upload(StorageLocation("s3-glacier-deep", "s3://vault/k"))
        record.mark_as_archived()

        values = file_record_values(record)
        assert values[8] == ["a", "b"]
        assert values[16] == "archived"

        loaded = build_file_record(record_row(record))
        assert loaded.id == record.id
        assert loaded.state is UploadState.ARCHIVED
        assert loaded.location == record.location
        assert loaded.thumbnail_location is None
        assert loaded.metadata.tags == frozenset({"a", "b"})
        assert loaded.version == 4

    def test_upload_session_row(self, sample_session):
        row = {
            "id": sample_session.id.value,
            "file_id": sample_session.file_id.value,
            "owner_id": "owner-1",
            "total_size": sample_session.total_size,
            "chunk_size": sample_session.chunk_size,
            "uploaded_chunks": [0, 2],
            "created_at": sample_session.created_at,
            "expires_at": sample_session.expires_at,
            "completed_at": None,
            "version": 2,
        }
        session = build_upload_session(row)
        assert session.id == sample_session.id
        assert session.uploaded_chunks == {0, 2}
        assert session.missing_chunks() == [1]


class TestReads:
    """Test repository reads."""

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, mock_pool, mock_connection, sample_record):
        async with AsyncPGUnitOfWork(mock_pool, "vault") as uow:
            assert await uow.files.get_by_id(sample_record.id) is None
        query, file_id = mock_connection.fetchrow.call_args.args
        assert "FROM vault.files" in query
        assert file_id == sample_record.id.value

    @pytest.mark.asyncio
    async def test_get_by_digest_normalizes(self, mock_pool, mock_connection, sample_record):
        mock_connection.fetchrow.return_value = record_row(sample_record)
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            found = await uow.files.get_by_digest(" " + str(sample_record.content_digest).upper())
        assert found.id == sample_record.id
        assert mock_connection.fetchrow.call_args.args[1] == str(sample_record.content_digest)

    @pytest.mark.asyncio
    async def test_search_builds_parameters(self, mock_pool, mock_connection):
        criteria = FileSearchFilter(
            owner_id="owner-1",
            category=FileCategory.PHOTO,
            tags=frozenset({"Beach"}),
            name_contains="day",
            limit=10,
            offset=20,
        )
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            assert await uow.files.search(criteria) == []

        query, *params = mock_connection.fetch.call_args.args
        assert "owner_id = $1" in query
        assert "category = $2" in query
        assert "tags @> $3::text[]" in query
        assert "ILIKE $4" in query
        assert "LIMIT $5 OFFSET $6" in query
        assert params == ["owner-1", "photo", ["beach"], "%day%", 10, 20]

    @pytest.mark.asyncio
    async def test_get_by_owner(self, mock_pool, mock_connection, sample_record):
        mock_connection.fetchval.return_value = 3
        mock_connection.fetch.return_value = [record_row(sample_record)]
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            page = await uow.files.get_by_owner("owner-1", page=2, page_size=2)
        assert page.total == 3
        assert [r.id for r in page.items] == [sample_record.id]
        assert mock_connection.fetch.call_args.args[1:] == ("owner-1", 2, 2)


class TestSaveChanges:
    """Test staged writes."""

    @pytest.mark.asyncio
    async def test_nothing_staged_touches_nothing(self, mock_pool):
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            await uow.save_changes()
        mock_pool.acquire.assert_not_called()

    @pytest.mark.asyncio
    async def test_add_sets_version(self, mock_pool, mock_connection, sample_record):
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            uow.files.add(sample_record)
            await uow.save_changes()

        assert sample_record.version == 1
        query = mock_connection.fetchval.call_args.args[0]
        assert "INSERT INTO public.files" in query
        mock_connection.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_update_bumps_version(self, mock_pool, mock_connection, sample_record):
        sample_record.version = 1
        mock_connection.fetchval.return_value = 2
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            uow.files.update(sample_record)
            await uow.save_changes()

        assert sample_record.version == 2
        args = mock_connection.fetchval.call_args.args
        assert "WHERE id = $1 AND version = $24" in args[0]
        assert args[-1] == 1

    @pytest.mark.asyncio
    async def test_stale_update_conflicts(self, mock_pool, mock_connection, sample_record):
        sample_record.version = 1
        mock_connection.fetchval.return_value = None
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            uow.files.update(sample_record)
            with pytest.raises(ConcurrencyConflictError):
                await uow.save_changes()
        assert sample_record.version == 1

    @pytest.mark.asyncio
    async def test_unique_violation_conflicts(self, mock_pool, mock_connection, sample_record):
        mock_connection.fetchval.side_effect = asyncpg.UniqueViolationError("duplicate key")
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            uow.files.add(sample_record)
            with pytest.raises(ConcurrencyConflictError):
                await uow.save_changes()
        assert sample_record.version == 0

    @pytest.mark.asyncio
    async def test_session_writes(self, mock_pool, mock_connection, sample_session):
        sample_session.mark_chunk_uploaded(2)
        sample_session.mark_chunk_uploaded(0)
        async with AsyncPGUnitOfWork(mock_pool) as uow:
            uow.upload_sessions.add(sample_session)
            await uow.save_changes()
        assert mock_connection.fetchval.call_args.args[6] == [0, 2]

    @pytest.mark.asyncio
    async def test_rollback_discards_staged(self, mock_pool, sample_record):
        uow = AsyncPGUnitOfWork(mock_pool)
        uow.files.add(sample_record)
        await uow.rollback()
        await uow.save_changes()
        mock_pool.acquire.assert_not_called()


class TestSchema:
    """Test schema DDL loading."""

    def test_schema_sql_targets_schema(self):
        ddl = AsyncPGUnitOfWork.schema_sql("vault")
        assert "CREATE TABLE IF NOT EXISTS vault.files" in ddl
        assert "CREATE UNIQUE INDEX IF NOT EXISTS files_content_digest_uq ON vault.files" in ddl
        assert "{schema}" not in ddl

    @pytest.mark.asyncio
    async def test_create_schema(self, mock_pool, mock_connection):
        await AsyncPGUnitOfWork.create_schema(mock_pool, "vault")
        assert "vault.upload_sessions" in mock_connection.execute.call_args.args[0]
