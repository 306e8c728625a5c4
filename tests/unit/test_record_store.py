"""Unit tests for the in-memory record store and chunk store."""

import pytest
from datetime import timedelta

from coldvault.core.entities import UploadSession
from coldvault.core.exceptions import ConcurrencyConflictError, UploadIncompleteError
from coldvault.core.protocols import FileSearchFilter, UnitOfWork
from coldvault.core.value_objects import ContentDigest, FileCategory, UploadSessionId, UploadState
from coldvault.infrastructure.persistence import InMemoryChunkStore
from tests.factories import CAPTURED_AT, make_record


async def add(store, record):
    async with store() as uow:
        uow.files.add(record)
        await uow.save_changes()
    return record


class TestInMemoryUnitOfWork:
    """Test staging, versions and conflicts."""

    @pytest.mark.asyncio
    async def test_satisfies_protocol(self, record_store):
        async with record_store() as uow:
            assert isinstance(uow, UnitOfWork)

    @pytest.mark.asyncio
    async def test_writes_invisible_until_saved(self, record_store, sample_record):
        async with record_store() as uow:
            uow.files.add(sample_record)
            assert await uow.files.get_by_id(sample_record.id) is None
        async with record_store() as uow:
            assert await uow.files.get_by_id(sample_record.id) is None

    @pytest.mark.asyncio
    async def test_add_sets_version_one(self, record_store, sample_record):
        await add(record_store, sample_record)
        assert sample_record.version == 1
        async with record_store() as uow:
            loaded = await uow.files.get_by_id(sample_record.id)
        assert loaded.version == 1
        assert loaded is not sample_record

    @pytest.mark.asyncio
    async def test_stale_update_conflicts(self, record_store, sample_record):
        await add(record_store, sample_record)
        async with record_store() as uow:
            first = await uow.files.get_by_id(sample_record.id)
        async with record_store() as uow:
            second = await uow.files.get_by_id(sample_record.id)

        first.add_tag("one")
        async with record_store() as uow:
            uow.files.update(first)
            await uow.save_changes()
        assert first.version == 2

        second.add_tag("two")
        async with record_store() as uow:
            uow.files.update(second)
            with pytest.raises(ConcurrencyConflictError):
                await uow.save_changes()

        async with record_store() as uow:
            stored = await uow.files.get_by_id(sample_record.id)
        assert stored.metadata.tags == frozenset({"one"})

    @pytest.mark.asyncio
    async def test_duplicate_digest_conflicts(self, record_store):
        digest = ContentDigest.from_hex("99" * 32)
        await add(record_store, make_record(digest=digest))
        with pytest.raises(ConcurrencyConflictError):
            await add(record_store, make_record(file_name="copy.jpg", digest=digest))

    @pytest.mark.asyncio
    async def test_conflict_applies_nothing(self, record_store, sample_session):
        stale = make_record()
        await add(record_store, stale)
        stale.version = 0

        async with record_store() as uow:
            uow.upload_sessions.add(sample_session)
            uow.files.update(stale)
            with pytest.raises(ConcurrencyConflictError):
                await uow.save_changes()
        async with record_store() as uow:
            assert await uow.upload_sessions.get_by_id(sample_session.id) is None

    @pytest.mark.asyncio
    async def test_delete(self, record_store, sample_record):
        await add(record_store, sample_record)
        async with record_store() as uow:
            uow.files.delete(sample_record)
            await uow.save_changes()
        async with record_store() as uow:
            assert await uow.files.get_by_digest(str(sample_record.content_digest)) is None


class TestQueries:
    """Test lookup, paging and search."""

    @pytest.mark.asyncio
    async def test_get_by_digest(self, record_store, sample_record):
        await add(record_store, sample_record)
        async with record_store() as uow:
            found = await uow.files.get_by_digest(str(sample_record.content_digest).upper())
        assert found.id == sample_record.id

    @pytest.mark.asyncio
    async def test_get_by_owner_pages(self, record_store):
        for i in range(5):
            await add(record_store, make_record(file_name=f"{i}.jpg", digest=ContentDigest.from_hex(f"{i:02d}" * 32)))
        await add(record_store, make_record(owner_id="someone-else", digest=ContentDigest.from_hex("ff" * 32)))

        async with record_store() as uow:
            page = await uow.files.get_by_owner("owner-1", page=2, page_size=2)
        assert page.total == 5
        assert len(page.items) == 2
        assert page.total_pages == 3
        assert page.has_next

    @pytest.mark.asyncio
    async def test_search(self, record_store):
        photo = make_record(file_name="Beach Day.jpg", digest=ContentDigest.from_hex("01" * 32))
        photo.add_tags(["summer", "beach"])
        video = make_record(file_name="clip.mp4", mime_type="video/mp4", digest=ContentDigest.from_hex("02" * 32))
        await add(record_store, photo)
        await add(record_store, video)

        async with record_store() as uow:
            assert [r.id for r in await uow.files.search(FileSearchFilter(category=FileCategory.VIDEO))] == [video.id]
            assert [r.id for r in await uow.files.search(FileSearchFilter(tags=frozenset({"SUMMER"})))] == [photo.id]
            assert [r.id for r in await uow.files.search(FileSearchFilter(name_contains="beach"))] == [photo.id]
            assert await uow.files.search(FileSearchFilter(state=UploadState.ARCHIVED)) == []
            assert await uow.files.search(
                FileSearchFilter(captured_from=CAPTURED_AT + timedelta(days=1))
            ) == []
            assert len(await uow.files.search(FileSearchFilter(limit=1))) == 1


class TestInMemoryChunkStore:
    """Test chunk assembly."""

    @pytest.mark.asyncio
    async def test_assembles_in_index_order(self, chunk_store, sample_session):
        await chunk_store.put(sample_session.id, 1, b"world")
        await chunk_store.put(sample_session.id, 0, b"hello ")
        stream = await chunk_store.assemble(sample_session.id, 2)
        assert stream.read() == b"hello world"

    @pytest.mark.asyncio
    async def test_missing_chunks(self, chunk_store, sample_session):
        await chunk_store.put(sample_session.id, 0, b"a")
        with pytest.raises(UploadIncompleteError) as exc_info:
            await chunk_store.assemble(sample_session.id, 3)
        assert exc_info.value.details["missing_chunks"] == [1, 2]

    @pytest.mark.asyncio
    async def test_discard(self, chunk_store, sample_session):
        await chunk_store.put(sample_session.id, 0, b"a")
        await chunk_store.discard(sample_session.id)
        assert chunk_store.chunk_count(sample_session.id) == 0

    @pytest.mark.asyncio
    async def test_idle_sessions_are_evicted(self, sample_session):
        now = [CAPTURED_AT]
        store = InMemoryChunkStore(ttl=timedelta(hours=24), clock=lambda: now[0])
        active = UploadSessionId.generate()

        await store.put(sample_session.id, 0, b"stale")
        now[0] += timedelta(hours=20)
        await store.put(active, 0, b"fresh")
        now[0] += timedelta(hours=5)

        assert await store.purge_expired() == 1
        assert store.chunk_count(sample_session.id) == 0
        assert store.chunk_count(active) == 1

    @pytest.mark.asyncio
    async def test_writes_evict_idle_sessions(self, sample_session):
        now = [CAPTURED_AT]
        store = InMemoryChunkStore(ttl=timedelta(hours=1), clock=lambda: now[0])

        await store.put(sample_session.id, 0, b"stale")
        now[0] += timedelta(hours=2)
        await store.put(UploadSessionId.generate(), 0, b"fresh")

        assert store.chunk_count(sample_session.id) == 0

    @pytest.mark.asyncio
    async def test_no_ttl_keeps_everything(self, chunk_store, sample_session):
        await chunk_store.put(sample_session.id, 0, b"a")
        assert await chunk_store.purge_expired() == 0
        assert chunk_store.chunk_count(sample_session.id) == 1
