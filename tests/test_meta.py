"""Meta adapter: token bootstrap and GraphQL search."""

import json
import logging

import pytest

from conftest import FakeResponse, FakeSession
from errors import APIError, DecodingError, HTTPStatusError, InvalidResponseError
from fetchers.meta import FALLBACK_TOKENS, MetaFetcher, extract_tokens

BOOTSTRAP = '<script>{"lsd":"LIVE-LSD","server_revision":1,"rev":1234567,"hsi":"998877"}</script>'

RESULTS = {
    "data": {
        "job_search_with_featured_jobs": {
            "all_jobs": [
                {
                    "id": "555",
                    "title": "Production Engineer",
                    "locations": ["Seattle, WA", "Remote, US"],
                    "teams": ["Infrastructure"],
                    "sub_teams": ["Production Engineering"],
                },
                {"id": "556", "title": "Recruiter", "locations": ["Menlo Park, CA"], "teams": [], "sub_teams": []},
            ]
        }
    }
}


def handler_for(page, results=RESULTS):
    def handler(method, url, kwargs):
        if method == "GET":
            return FakeResponse(text=page)
        return FakeResponse(results)

    return handler


class TestTokens:
    def test_live_extraction(self):
        tokens = extract_tokens(BOOTSTRAP)
        assert (tokens.lsd, tokens.rev, tokens.hsi) == ("LIVE-LSD", "1234567", "998877")
        assert tokens.is_live

    def test_fallbacks_are_flagged_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fetchers.meta"):
            tokens = extract_tokens("<html>nothing</html>")
        assert tokens.lsd == FALLBACK_TOKENS["lsd"]
        assert tokens.fallbacks == {"lsd", "rev", "hsi"}
        assert not tokens.is_live
        assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 3

    def test_partial_fallback(self):
        tokens = extract_tokens('{"lsd":"abc"}')
        assert tokens.lsd == "abc"
        assert tokens.fallbacks == {"rev", "hsi"}


class TestMetaFetcher:
    def test_search_request_carries_tokens_and_offices(self, tracking):
        session = FakeSession(handler=handler_for(BOOTSTRAP))
        MetaFetcher(session, tracking).fetch("engineer", "Seattle", 5)

        assert session.calls[0][:2] == ("GET", "https://www.metacareers.com/jobs")
        method, url, kwargs = session.calls[1]
        assert (method, url) == ("POST", "https://www.metacareers.com/graphql")
        assert kwargs["headers"]["x-fb-lsd"] == "LIVE-LSD"
        form = kwargs["data"]
        assert form["lsd"] == "LIVE-LSD"
        assert form["__rev"] == form["__spin_r"] == "1234567"
        assert form["doc_id"] == "24330890369943030"
        search_input = json.loads(form["variables"])["search_input"]
        assert search_input["q"] == "engineer"
        assert search_input["offices"] == ["Seattle, WA"]
        assert search_input["results_per_page"] is None

    def test_normalizes_and_filters_titles(self, tracking):
        session = FakeSession(handler=handler_for(BOOTSTRAP))
        jobs = MetaFetcher(session, tracking).fetch("engineer", "", 5)
        assert len(jobs) == 1
        job = jobs[0]
        assert job.id == "meta-555"
        assert job.url == "https://www.metacareers.com/jobs/555"
        assert job.location == "Seattle, WA / Remote, US"
        assert job.work_site_flexibility == "Remote"
        assert job.department == "Production Engineering"
        assert job.category == "Infrastructure"
        assert job.company_name == "Meta"

    def test_fetch_proceeds_with_fallback_tokens(self, tracking):
        session = FakeSession(handler=handler_for("<html></html>"))
        jobs = MetaFetcher(session, tracking).fetch("", "", 5)
        assert len(jobs) == 2
        assert session.calls[1][2]["headers"]["x-fb-lsd"] == FALLBACK_TOKENS["lsd"]

    def test_graphql_errors_surface(self, tracking):
        session = FakeSession(handler=handler_for("<html></html>", {"errors": [{"message": "Rate limited"}]}))
        with pytest.raises(APIError, match="Rate limited"):
            MetaFetcher(session, tracking).fetch("", "", 5)

    def test_bootstrap_http_error_propagates(self, tracking):
        session = FakeSession([FakeResponse(text="", status_code=503)])
        with pytest.raises(HTTPStatusError):
            MetaFetcher(session, tracking).fetch("", "", 5)

    def test_non_object_payload_is_invalid(self, tracking):
        session = FakeSession(handler=handler_for(BOOTSTRAP, [{"id": "555"}]))
        with pytest.raises(InvalidResponseError, match="expected a JSON object"):
            MetaFetcher(session, tracking).fetch("", "", 5)

    def test_wrong_shape_inside_results_is_decoding_error(self, tracking):
        results = {"data": {"job_search_with_featured_jobs": {"all_jobs": ["555"]}}}
        session = FakeSession(handler=handler_for(BOOTSTRAP, results))
        with pytest.raises(DecodingError, match="unexpected Meta response shape"):
            MetaFetcher(session, tracking).fetch("", "", 5)
