"""TikTok adapter: paging, api errors and location handling."""

import pytest

from conftest import FakeResponse, FakeSession
from errors import APIError
from fetchers.tiktok import PAGE_SIZE, TikTokFetcher, city_chain

SEATTLE = {"en_name": "Seattle", "parent": {"en_name": "Washington", "parent": {"en_name": "United States"}}}
TOKYO = {"en_name": "Tokyo", "parent": {"en_name": "Japan"}}


def posting(n, city=SEATTLE):
    return {
        "id": str(n),
        "title": f"Software Engineer {n}",
        "description": "Hybrid team in the office three days a week.",
        "requirement": "Python",
        "job_category": {"en_name": "R&D", "i18n_name": "Research"},
        "city_info": city,
    }


def paged_handler(sizes):
    def handler(method, url, kwargs):
        offset = kwargs["json"]["offset"]
        index = offset // PAGE_SIZE
        count = sizes[index] if index < len(sizes) else 0
        items = [posting(offset + i) for i in range(count)]
        return FakeResponse({"code": 0, "data": {"job_post_list": items}})

    return handler


class TestTikTokFetcher:
    def test_short_page_stops_paging(self, tracking, sleeps, fake_sleep):
        session = FakeSession(handler=paged_handler([12, 12, 5, 12]))
        jobs = TikTokFetcher(session, tracking, sleep=fake_sleep).fetch("", "", 10)
        assert len(session.calls) == 3
        assert len(jobs) == 29
        assert [call[2]["json"]["offset"] for call in session.calls] == [0, 12, 24]
        assert sleeps == [0.3, 0.3]

    def test_max_pages_caps_requests(self, tracking, fake_sleep):
        session = FakeSession(handler=paged_handler([12] * 10))
        TikTokFetcher(session, tracking, sleep=fake_sleep).fetch("", "", 2)
        assert len(session.calls) == 2

    def test_request_body(self, tracking, fake_sleep):
        session = FakeSession(handler=paged_handler([1]))
        TikTokFetcher(session, tracking, sleep=fake_sleep).fetch("engineer, data", "Seattle", 5)
        method, url, kwargs = session.calls[0]
        assert method == "POST"
        body = kwargs["json"]
        assert body["keyword"] == "engineer data"
        assert body["location_code_list"] == ["CT_157"]
        assert body["recruitment_id_list"] == ["1"]
        assert body["limit"] == 12
        assert kwargs["headers"]["website-path"] == "tiktok"

    def test_normalizes_posting(self, tracking, fake_sleep):
        session = FakeSession(handler=paged_handler([1]))
        job = TikTokFetcher(session, tracking, sleep=fake_sleep).fetch("", "", 5)[0]
        assert job.id == "tiktok-0"
        assert job.url == "https://lifeattiktok.com/search/0"
        assert job.location == "Seattle, Washington, United States"
        assert job.description.endswith("Requirements:\nPython")
        assert job.work_site_flexibility == "Hybrid"
        assert job.department == "R&D"
        assert job.category == "Research"
        assert job.posting_date is None

    def test_unmapped_location_filters_by_country(self, tracking, fake_sleep):
        items = [posting(1, SEATTLE), posting(2, TOKYO)]
        session = FakeSession([FakeResponse({"code": 0, "data": {"job_post_list": items}})])
        jobs = TikTokFetcher(session, tracking, sleep=fake_sleep).fetch("", "Osaka", 5)
        assert session.calls[0][2]["json"]["location_code_list"] == []
        assert [job.id for job in jobs] == ["tiktok-2"]

    def test_api_error_code(self, tracking):
        session = FakeSession([FakeResponse({"code": 1, "message": "bad", "data": None})])
        with pytest.raises(APIError, match="error code 1"):
            TikTokFetcher(session, tracking).fetch("", "", 5)


class TestCityChain:
    def test_missing(self):
        assert city_chain(None) == "Location not specified"

    def test_cycle_is_bounded(self):
        node = {"en_name": "Loop"}
        node["parent"] = node
        assert city_chain(node).count("Loop") == 10
