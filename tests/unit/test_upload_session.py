"""Unit tests for UploadSession."""

import pytest
from datetime import timedelta

from coldvault.core.entities import UploadSession, UploadSessionState
from coldvault.core.exceptions import (
    InvalidArgumentError,
    InvalidChunkIndexError,
    SessionCompletedError,
    SessionExpiredError,
    UploadIncompleteError,
)
from coldvault.core.value_objects import FileId
from coldvault.utils import utc_now


def session_for(total_size: int, chunk_size: int = 5_000_000) -> UploadSession:
    return UploadSession.create(FileId.generate(), "owner-1", total_size, chunk_size)


class TestChunkArithmetic:
    """Test chunk counting and expected lengths."""

    def test_total_chunks(self):
        assert session_for(10_000_000).total_chunks == 2
        assert session_for(10_000_001).total_chunks == 3
        assert session_for(1).total_chunks == 1

    def test_default_chunk_size_is_five_mib(self, sample_session):
        assert sample_session.chunk_size == 5 * 1024 * 1024
        assert sample_session.total_chunks == 3

    def test_expected_chunk_length(self):
        session = session_for(12_000_000)
        assert session.expected_chunk_length(0) == 5_000_000
        assert session.expected_chunk_length(2) == 2_000_000

    def test_rejects_non_positive_sizes(self):
        with pytest.raises(InvalidArgumentError):
            session_for(0)
        with pytest.raises(InvalidArgumentError):
            session_for(10, chunk_size=0)


class TestMarkChunkUploaded:
    """Test chunk bookkeeping."""

    def test_completeness_and_progress(self):
        session = session_for(10_000_000)
        assert session.state is UploadSessionState.INITIATED

        assert session.mark_chunk_uploaded(0)
        assert session.progress == 50
        assert session.state is UploadSessionState.ACCUMULATING
        with pytest.raises(UploadIncompleteError) as exc_info:
            session.complete()
        assert exc_info.value.details["missing_chunks"] == [1]
        assert "1/2" in exc_info.value.message

        session.mark_chunk_uploaded(1)
        session.complete()
        assert session.progress == 100
        assert session.completed_at is not None
        assert session.state is UploadSessionState.COMPLETE

    def test_re_mark_is_idempotent(self):
        session = session_for(10_000_000)
        session.mark_chunk_uploaded(0)
        assert not session.mark_chunk_uploaded(0)
        assert session.uploaded_chunks == {0}
        assert session.progress == 50

    @pytest.mark.parametrize("index", [-1, 2, 10, True])
    def test_invalid_index_does_not_mutate(self, index):
        session = session_for(10_000_000)
        with pytest.raises(InvalidChunkIndexError):
            session.mark_chunk_uploaded(index)
        assert session.uploaded_chunks == set()

    def test_expired_session_rejects_chunks(self):
        session = UploadSession.create(FileId.generate(), "owner-1", 100, 50, ttl=timedelta(seconds=-1))
        assert session.is_expired
        assert session.state is UploadSessionState.EXPIRED
        with pytest.raises(SessionExpiredError):
            session.mark_chunk_uploaded(0)

    def test_completed_session_rejects_chunks(self):
        session = session_for(100, 100)
        session.mark_chunk_uploaded(0)
        session.complete()
        with pytest.raises(SessionCompletedError):
            session.mark_chunk_uploaded(0)
        with pytest.raises(SessionCompletedError):
            session.complete()

    def test_completed_session_never_expires(self):
        session = session_for(100, 100)
        session.mark_chunk_uploaded(0)
        session.complete()
        session.expires_at = utc_now() - timedelta(days=1)
        assert not session.is_expired

    def test_missing_chunks(self, sample_session):
        sample_session.mark_chunk_uploaded(1)
        assert sample_session.missing_chunks() == [0, 2]
