"""ATS detection from careers pages."""

import pytest
import requests

from conftest import FakeResponse, FakeSession
from detector import BoardDetector, Confidence, company_slug, is_careers_page, normalize_board_url
from errors import HTTPStatusError, NetworkError
from models import JobSource


def page_session(page, api_responses=None):
    api_responses = api_responses or {}

    def handler(method, url, kwargs):
        for prefix, response in api_responses.items():
            if url.startswith(prefix):
                return response
        return FakeResponse(text=page)

    return FakeSession(handler=handler)


class TestNormalize:
    def test_workday_strips_locale_and_job_path(self):
        url = "https://acme.wd5.myworkdayjobs.com/en-US/External/job/Seattle/Engineer_JR1"
        assert normalize_board_url(url, JobSource.WORKDAY) == "https://acme.wd5.myworkdayjobs.com/External"

    def test_ashby_strips_posting_uuid(self):
        url = "https://jobs.ashbyhq.com/linear/0f3a1c2d-1111-4abc-9def-0123456789ab"
        assert normalize_board_url(url, JobSource.ASHBY) == "https://jobs.ashbyhq.com/linear"

    def test_greenhouse_api_url_becomes_board(self):
        url = "https://boards-api.greenhouse.io/v1/boards/acme"
        assert normalize_board_url(url, JobSource.GREENHOUSE) == "https://boards.greenhouse.io/acme"

    def test_greenhouse_api_jobs_url_keeps_board_slug(self):
        for url in (
            "https://boards-api.greenhouse.io/v1/boards/acme/jobs",
            "https://boards-api.greenhouse.io/v1/boards/acme/jobs/4012345",
        ):
            assert normalize_board_url(url, JobSource.GREENHOUSE) == "https://boards.greenhouse.io/acme"

    def test_embedded_greenhouse_api_url(self):
        page = '<script>fetch("https://boards-api.greenhouse.io/v1/boards/acme/jobs?content=true")</script>'
        result = BoardDetector(page_session(page)).detect("https://acme.com/careers")
        assert result.source is JobSource.GREENHOUSE
        assert result.board_url == "https://boards.greenhouse.io/acme"

    def test_lever_keeps_company_segment(self):
        assert normalize_board_url("https://jobs.lever.co/beta/abc/apply", JobSource.LEVER) == "https://jobs.lever.co/beta"


def test_helpers():
    assert company_slug("https://www.acme.com/careers") == "acme"
    assert is_careers_page("https://acme.com/careers", "")
    assert is_careers_page("https://acme.com/", "<h1>Join our team</h1>")
    assert not is_careers_page("https://acme.com/", "<h1>Pricing</h1>")


class TestDetect:
    def test_known_url_is_certain_without_request(self):
        session = FakeSession()
        result = BoardDetector(session).detect("https://jobs.lever.co/beta")
        assert result.source is JobSource.LEVER
        assert result.confidence is Confidence.CERTAIN
        assert result.board_url == "https://jobs.lever.co/beta"
        assert session.calls == []

    def test_embedded_iframe(self):
        page = '<html><iframe src="https://boards.greenhouse.io/acme/jobs/42"></iframe></html>'
        result = BoardDetector(page_session(page)).detect("https://acme.com/careers")
        assert result.source is JobSource.GREENHOUSE
        assert result.confidence is Confidence.LIKELY
        assert result.board_url == "https://boards.greenhouse.io/acme"
        assert result.detected

    def test_link_in_inline_script(self):
        page = '<script>var cfg = {board: "https://acme.wd1.myworkdayjobs.com/en-US/Careers/details/x_JR9"};</script>'
        result = BoardDetector(page_session(page)).detect("https://acme.com/jobs")
        assert result.source is JobSource.WORKDAY
        assert result.board_url == "https://acme.wd1.myworkdayjobs.com/Careers"

    def test_js_redirect(self):
        page = '<script>window.location.href = "https://jobs.ashbyhq.com/acme";</script>'
        result = BoardDetector(page_session(page)).detect("https://acme.com/careers")
        assert result.source is JobSource.ASHBY

    def test_social_links_are_ignored(self):
        page = '<a href="https://www.tiktok.com/@acme">TikTok</a><p>Pricing</p>'
        result = BoardDetector(page_session(page)).detect("https://acme.com/")
        assert not result.detected
        assert result.confidence is Confidence.NOT_DETECTED
        assert result.message == "Could not detect ATS system from this page"

    def test_careers_page_checks_public_apis(self):
        api_responses = {
            "https://boards-api.greenhouse.io/": FakeResponse({"jobs": []}),
            "https://api.lever.co/": FakeResponse([{"id": "1"}]),
        }
        session = page_session("<h1>Open positions</h1>", api_responses)
        result = BoardDetector(session).detect("https://www.acme.com/careers")
        assert result.source is JobSource.LEVER
        assert result.board_url == "https://jobs.lever.co/acme"

    def test_page_errors(self):
        with pytest.raises(HTTPStatusError):
            BoardDetector(FakeSession([FakeResponse(text="", status_code=404)])).detect("https://acme.com/careers")
        with pytest.raises(NetworkError):
            BoardDetector(FakeSession([requests.ConnectionError("refused")])).detect("https://acme.com/careers")
