"""Unit tests for first-seen tracking and file storage."""

import datetime as dt

from models import JobSource
from tracking import TrackingStore, tracking_file_name

UTC = dt.timezone.utc
NOW = dt.datetime(2025, 6, 1, 12, tzinfo=UTC)


class TestTrackingFileName:
    def test_board_platform_with_slug(self):
        assert tracking_file_name(JobSource.GREENHOUSE, "acme") == "greenhouse_acme_tracking.json"

    def test_fixed_platform(self):
        assert tracking_file_name(JobSource.TIKTOK) == "tiktokJobTracking.json"
        assert tracking_file_name(JobSource.MICROSOFT) == "microsoftJobTracking.json"


class TestTrackingStore:
    def test_first_seen_never_moves(self, tracking):
        tracking.record("x.json", ["a", "b"], NOW)
        later = NOW + dt.timedelta(days=2)
        records = tracking.record("x.json", ["a", "c"], later)
        assert records["a"] == NOW
        assert records["b"] == NOW
        assert records["c"] == later
        assert tracking.load("x.json") == records

    def test_save_prunes_records_older_than_sixty_days(self, tracking):
        records = {
            "old": NOW - dt.timedelta(days=61),
            "edge": NOW - dt.timedelta(days=60),
            "fresh": NOW - dt.timedelta(days=59),
        }
        kept = tracking.save("x.json", records, NOW)
        assert set(kept) == {"fresh"}
        assert set(tracking.load("x.json")) == {"fresh"}

    def test_missing_file_loads_empty(self, tracking):
        assert tracking.load("absent.json") == {}

    def test_corrupt_file_loads_empty(self, tracking, storage):
        storage.write("bad.json", b"{not json")
        assert tracking.load("bad.json") == {}

    def test_skips_malformed_entries(self, tracking, storage):
        storage.write_json("x.json", [{"id": "a", "firstSeenDate": "2025-06-01T12:00:00+00:00"}, {"id": "b"}, "junk"])
        assert tracking.load("x.json") == {"a": NOW}

    def test_merge_does_not_overwrite(self):
        merged = TrackingStore.merge({"a": NOW}, ["a", "b"], NOW + dt.timedelta(hours=1))
        assert merged["a"] == NOW
        assert merged["b"] == NOW + dt.timedelta(hours=1)

    def test_lock_is_per_file(self, tracking):
        assert tracking.lock_for("a.json") is tracking.lock_for("a.json")
        assert tracking.lock_for("a.json") is not tracking.lock_for("b.json")

    def test_record_while_holding_file_lock(self, tracking):
        with tracking.lock_for("x.json"):
            seen = tracking.load("x.json")
            records = tracking.record("x.json", ["a"], NOW)
        assert seen == {}
        assert records == {"a": NOW}
        assert tracking.load("x.json") == {"a": NOW}


class TestFileStorage:
    def test_write_replaces_atomically(self, storage, tmp_path):
        storage.write("blob.bin", b"one")
        storage.write("blob.bin", b"two")
        assert storage.read("blob.bin") == b"two"
        assert [p.name for p in tmp_path.iterdir()] == ["blob.bin"]

    def test_read_missing_is_none(self, storage):
        assert storage.read("nothing") is None

    def test_corrupt_board_file_is_empty(self, storage):
        storage.write("boardConfigs.json", b"[{]")
        assert storage.load_board_configs() == []
