"""Unit tests for FileRecord and FileMetadata."""

import pytest

from coldvault.core.entities import FileMetadata, FileRecord, sanitize_file_name
from coldvault.core.events import FileArchived, FileCreated, FileUploadCompleted, FileUploadStarted
from coldvault.core.exceptions import (
    FileArchivedError,
    InvalidArgumentError,
    InvalidStateTransitionError,
)
from coldvault.core.value_objects import (
    ContentDigest,
    FileSize,
    FileType,
    StorageLocation,
    UploadState,
)
from tests.factories import CAPTURED_AT, make_record


LOCATION = StorageLocation("s3-glacier-deep", "s3://bucket/photo/2024/06/01/abc_photo.jpg")


def archived_record():
    record = make_record()
    record.start_upload()
    record.complete_upload(LOCATION)
    record.mark_as_archived()
    return record


class TestFileMetadata:
    """Test FileMetadata normalization and mutators."""

    def test_sanitizes_file_name(self):
        assert sanitize_file_name('my:photo?.jpg') == "my_photo_.jpg"
        assert sanitize_file_name("...") == "file"

    def test_create_normalizes_tags_and_text(self):
        metadata = FileMetadata.create(
            file_name="  beach.jpg ",
            content_digest=ContentDigest.from_hex("cd" * 32),
            captured_at=CAPTURED_AT,
            description="   ",
            tags=["Summer", " beach ", ""],
        )
        assert metadata.original_file_name == "beach.jpg"
        assert metadata.tags == frozenset({"summer", "beach"})
        assert metadata.description is None

    def test_rejects_empty_file_name(self):
        with pytest.raises(InvalidArgumentError):
            FileMetadata.create("", ContentDigest.placeholder(), CAPTURED_AT)

    def test_gps_requires_both_coordinates_in_range(self):
        metadata = FileMetadata.create("a.jpg", ContentDigest.placeholder(), CAPTURED_AT)
        with pytest.raises(InvalidArgumentError):
            metadata.set_gps_location(91.0, 0.0)
        with pytest.raises(InvalidArgumentError):
            metadata.set_gps_location(0.0, -181.0)
        metadata.set_gps_location(48.85, 2.35)
        assert metadata.has_gps_location

    def test_resolve_placeholder_digest_once(self):
        metadata = FileMetadata.create("a.jpg", ContentDigest.placeholder(), CAPTURED_AT)
        real = ContentDigest.from_hex("ef" * 32)
        metadata.resolve_digest(real)
        assert metadata.content_digest == real
        with pytest.raises(InvalidStateTransitionError):
            metadata.resolve_digest(ContentDigest.from_hex("01" * 32))

    def test_cannot_resolve_to_placeholder(self):
        metadata = FileMetadata.create("a.jpg", ContentDigest.placeholder(), CAPTURED_AT)
        with pytest.raises(InvalidArgumentError):
            metadata.resolve_digest(ContentDigest.placeholder())

    def test_remove_tag_reports_presence(self):
        metadata = FileMetadata.create("a.jpg", ContentDigest.placeholder(), CAPTURED_AT, tags=["x"])
        assert metadata.remove_tag("X")
        assert not metadata.remove_tag("x")


class TestFileRecordLifecycle:
    """Test FileRecord transitions and the events they return."""

    def test_create_emits_file_created(self):
        record = make_record()
        assert record.state is UploadState.PENDING
        assert record.location is None

    def test_happy_path_events(self):
        record = make_record()
        events = record.start_upload()
        events += record.complete_upload(LOCATION)
        events += record.mark_as_archived()

        assert [type(e) for e in events] == [FileUploadStarted, FileUploadCompleted, FileArchived]
        assert record.is_archived
        assert record.is_uploaded
        assert record.location == LOCATION
        assert record.upload_progress == 100

    def test_create_returns_created_event(self):
        metadata = FileMetadata.create("clip.mp4", ContentDigest.placeholder(), CAPTURED_AT)
        record, events = FileRecord.create("owner-9", metadata, FileSize(10), FileType("video/mp4"))
        assert len(events) == 1
        assert isinstance(events[0], FileCreated)
        assert events[0].file_id == record.id
        assert events[0].event_type == "FileCreated"

    def test_cannot_archive_from_pending(self):
        record = make_record()
        with pytest.raises(InvalidStateTransitionError):
            record.mark_as_archived()
        assert record.state is UploadState.PENDING

    def test_complete_requires_uploading(self):
        record = make_record()
        with pytest.raises(InvalidStateTransitionError):
            record.complete_upload(LOCATION)
        assert record.location is None

    def test_failed_upload_can_retry(self):
        record = make_record()
        record.start_upload()
        record.update_progress(40)
        record.mark_as_failed("network down")
        assert record.state is UploadState.FAILED

        record.retry()
        assert record.state is UploadState.PENDING
        assert record.upload_progress == 0

    def test_progress_never_decreases(self):
        record = make_record()
        record.update_progress(50)
        with pytest.raises(InvalidArgumentError):
            record.update_progress(20)
        with pytest.raises(InvalidArgumentError):
            record.update_progress(101)
        assert record.upload_progress == 50

    def test_location_is_set_once(self):
        record = make_record()
        record.set_location(LOCATION)
        with pytest.raises(InvalidStateTransitionError):
            record.set_location(StorageLocation("other", "elsewhere"))
        assert record.location == LOCATION


class TestArchivedRecord:
    """Test that archived records are immutable except for the thumbnail."""

    @pytest.mark.parametrize("mutate", [
        lambda r: r.start_upload(),
        lambda r: r.mark_as_failed("x"),
        lambda r: r.add_tag("late"),
        lambda r: r.set_description("late"),
        lambda r: r.set_gps_location(1.0, 1.0),
        lambda r: r.set_device_model("cam"),
        lambda r: r.update_progress(100),
    ])
    def test_rejects_mutation(self, mutate):
        record = archived_record()
        with pytest.raises(FileArchivedError):
            mutate(record)
        assert record.is_archived
        assert record.metadata.tags == frozenset()

    def test_thumbnail_settable_once_after_archive(self):
        record = archived_record()
        thumb = StorageLocation("s3-standard", "s3://bucket/photo/thumb.jpg")
        events = record.set_thumbnail(thumb)
        assert record.thumbnail_location == thumb
        assert events[0].event_type == "ThumbnailAttached"
        with pytest.raises(InvalidStateTransitionError):
            record.set_thumbnail(thumb)
