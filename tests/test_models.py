"""Unit tests for the job and board config models."""

import datetime as dt

from models import BoardConfig, Job, JobSource, parse_datetime

UTC = dt.timezone.utc


def make_job(**overrides):
    fields = dict(
        id="gh-1",
        title="Engineer",
        location="Seattle, WA",
        url="https://boards.greenhouse.io/acme/jobs/1",
        source=JobSource.GREENHOUSE,
        first_seen_date=dt.datetime(2025, 1, 2, tzinfo=UTC),
    )
    fields.update(overrides)
    return Job(**fields)


class TestJobSource:
    def test_detects_board_platforms(self):
        assert JobSource.detect_from_url("https://boards.greenhouse.io/acme") is JobSource.GREENHOUSE
        assert JobSource.detect_from_url("https://jobs.lever.co/acme") is JobSource.LEVER
        assert JobSource.detect_from_url("https://jobs.ashbyhq.com/acme") is JobSource.ASHBY
        assert JobSource.detect_from_url("https://acme.wd5.myworkdayjobs.com/External") is JobSource.WORKDAY
        assert JobSource.detect_from_url("https://apply.workable.com/acme") is JobSource.WORKABLE

    def test_detection_is_case_insensitive_and_total(self):
        assert JobSource.detect_from_url("HTTPS://BOARDS.GREENHOUSE.IO/ACME") is JobSource.GREENHOUSE
        assert JobSource.detect_from_url("https://example.com/careers") is None
        assert JobSource.detect_from_url("") is None

    def test_support_flags_and_prefixes(self):
        assert JobSource.GREENHOUSE.is_supported
        assert JobSource.WORKDAY.is_supported
        assert not JobSource.BREEZYHR.is_supported
        assert JobSource.GREENHOUSE.id_prefix == "gh"
        assert JobSource.META.id_prefix == "meta"
        assert not JobSource.TIKTOK.is_board_platform
        assert JobSource.LEVER.is_board_platform


class TestJob:
    def test_sort_date_prefers_posting_date(self):
        posted = dt.datetime(2025, 1, 1, tzinfo=UTC)
        assert make_job(posting_date=posted).sort_date == posted
        assert make_job().sort_date == make_job().first_seen_date

    def test_is_recent(self):
        job = make_job()
        assert job.is_recent(now=job.first_seen_date + dt.timedelta(hours=5))
        assert not job.is_recent(now=job.first_seen_date + dt.timedelta(hours=30))

    def test_dict_uses_camel_case_keys(self):
        job = make_job(posting_date=dt.datetime(2025, 1, 1, tzinfo=UTC), company_name="Acme")
        data = job.to_dict()
        assert data["source"] == "Greenhouse"
        assert data["companyName"] == "Acme"
        assert data["firstSeenDate"].startswith("2025-01-02")
        assert Job.from_dict(data) == job

    def test_parse_datetime_handles_z_and_naive(self):
        assert parse_datetime("2025-01-01T10:00:00Z") == dt.datetime(2025, 1, 1, 10, tzinfo=UTC)
        assert parse_datetime("2025-01-01T10:00:00").tzinfo is not None
        assert parse_datetime("not a date") is None
        assert parse_datetime(None) is None


class TestBoardConfig:
    def test_from_url_detects_source(self):
        config = BoardConfig.from_url(" https://jobs.lever.co/acme ", name="Acme")
        assert config.source is JobSource.LEVER
        assert config.url == "https://jobs.lever.co/acme"
        assert config.is_enabled

    def test_from_url_rejects_unknown_host(self):
        assert BoardConfig.from_url("https://example.com/jobs") is None

    def test_display_name_falls_back_to_source(self):
        config = BoardConfig.from_url("https://boards.greenhouse.io/acme")
        assert config.display_name == "Greenhouse Board"

    def test_from_dict_defaults(self):
        config = BoardConfig.from_dict({"id": "X", "name": "", "url": "https://jobs.lever.co/a", "source": "Lever"})
        assert config.is_enabled is True
        assert config.last_fetched is None

    def test_mark_fetched_returns_copy(self):
        config = BoardConfig.from_url("https://jobs.lever.co/acme")
        when = dt.datetime(2025, 3, 1, tzinfo=UTC)
        updated = config.mark_fetched(when)
        assert updated.last_fetched == when
        assert config.last_fetched is None
        assert updated.id == config.id
