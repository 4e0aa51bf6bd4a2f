"""Adapter for the Meta careers GraphQL endpoint."""

from __future__ import annotations

import json
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

from errors import APIError, InvalidResponseError
from fetchers.base import BaseFetcher, FetchContext
from filters import matches_any
from locations import meta_offices
from models import Job, JobSource

logger = logging.getLogger(__name__)

BOOTSTRAP_URL = "https://www.metacareers.com/jobs"
GRAPHQL_URL = "https://www.metacareers.com/graphql"
JOB_URL = "https://www.metacareers.com/jobs/{job_id}"
FRIENDLY_NAME = "CareersJobSearchResultsV3DataQuery"
DOC_ID = "24330890369943030"

# Last-known-good values, used when the bootstrap page stops exposing a token.
FALLBACK_TOKENS = {
    "lsd": "AdHIRfW3-F8",
    "rev": "1029904231",
    "hsi": "7572712374240723453",
}

TOKEN_PATTERNS = {
    "lsd": re.compile(r'"lsd":"([^"]+)"'),
    "rev": re.compile(r'"rev":(\d+)'),
    "hsi": re.compile(r'"hsi":"([^"]+)"'),
}

# Opaque client build fingerprints the endpoint expects alongside the tokens.
STATIC_FORM_FIELDS = {
    "__hs": "20406.BP:DEFAULT.2.0...0",
    "__s": "zxdy4b:m4u6iq:ceiap0",
    "__dyn": "7xeUmwkHg7ebwKBAg5S1Dxu13wqovzEdEc8uxa1twYwJw5ux609vCwjE1EE2Cwooa81VohwnU14E9k2C0iK0D82Ixe0DopyE3bwkE5G0zE5W0HU15o2syES4E3PwbS1Lwqo3cwio6O1FxG0lW1TwmU3yw5Pw",
    "__hsdp": "gIMX2bkjxWEti48gCsZ92qpk-7EO37xmGy8C9w8S1wwhk0IE0AS09mxi0HE5G5VWwoE19o3nxmm1Xxe0hO22UC0Jo9oN2oKUjCU0aKo5i",
    "__hblp": "0Vw9O1nw6Vw31E6e0bQw75w4ww2bU3Gw13a0o23e0nO0nC04aU3aO01Au0ckw0ymw2582pwbW04WQq07Po1r80JW",
}


@dataclass(frozen=True)
class MetaTokens:
    lsd: str
    rev: str
    hsi: str
    fallbacks: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_live(self) -> bool:
        return not self.fallbacks


def extract_tokens(page: str) -> MetaTokens:
    values: Dict[str, str] = {}
    fallbacks = set()
    for name, pattern in TOKEN_PATTERNS.items():
        match = pattern.search(page or "")
        if match:
            values[name] = match.group(1)
        else:
            values[name] = FALLBACK_TOKENS[name]
            fallbacks.add(name)
            logger.warning("Meta bootstrap page had no %s token; using fallback %s", name, FALLBACK_TOKENS[name])
    return MetaTokens(fallbacks=frozenset(fallbacks), **values)


class MetaFetcher(BaseFetcher):
    source = JobSource.META

    def bootstrap(self) -> MetaTokens:
        """Scrape the ephemeral session tokens; transport failures propagate."""
        page = self._request_text("GET", BOOTSTRAP_URL)
        return extract_tokens(page)

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        offices = meta_offices(ctx.location_filter)
        tokens = self.bootstrap()
        raw_jobs = self._search(" ".join(ctx.title_keywords), offices, tokens)
        location_keywords = ctx.location_keywords() if ctx.location_filter.strip() and not offices else []

        jobs: List[Job] = []
        for raw in raw_jobs:
            job = self._normalize(raw, ctx)
            if job is None:
                continue
            if not matches_any(job.title, ctx.title_keywords):
                continue
            if not matches_any(job.location, location_keywords):
                continue
            jobs.append(job)
        return jobs

    def _search(self, query: str, offices: List[str], tokens: MetaTokens) -> List[Dict[str, Any]]:
        search_input = {
            "q": query,
            "divisions": [],
            "offices": offices,
            "roles": [],
            "leadership_levels": [],
            "saved_jobs": [],
            "saved_searches": [],
            "sub_teams": [],
            "teams": [],
            "is_leadership": False,
            "is_remote_only": False,
            "sort_by_new": True,
            "results_per_page": None,
        }
        form = {
            "av": "0",
            "__user": "0",
            "__a": "1",
            "__req": "2",
            "__hs": STATIC_FORM_FIELDS["__hs"],
            "dpr": "2",
            "__ccg": "EXCELLENT",
            "__rev": tokens.rev,
            "__s": STATIC_FORM_FIELDS["__s"],
            "__hsi": tokens.hsi,
            "__dyn": STATIC_FORM_FIELDS["__dyn"],
            "__hsdp": STATIC_FORM_FIELDS["__hsdp"],
            "__hblp": STATIC_FORM_FIELDS["__hblp"],
            "lsd": tokens.lsd,
            "jazoest": "2803",
            "__spin_r": tokens.rev,
            "__spin_b": "trunk",
            "__spin_t": str(int(time.time())),
            "__jssesw": "1",
            "fb_api_caller_class": "RelayModern",
            "fb_api_req_friendly_name": FRIENDLY_NAME,
            "server_timestamps": "true",
            "variables": json.dumps({"search_input": search_input}),
            "doc_id": DOC_ID,
        }
        headers = {
            "Accept": "*/*",
            "Content-Type": "application/x-www-form-urlencoded",
            "Origin": "https://www.metacareers.com",
            "Sec-Fetch-Site": "same-origin",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Dest": "empty",
            "x-asbd-id": "359341",
            "x-fb-lsd": tokens.lsd,
            "x-fb-friendly-name": FRIENDLY_NAME,
        }
        payload = self._request_json("POST", GRAPHQL_URL, data=form, headers=headers)
        if not isinstance(payload, dict):
            raise InvalidResponseError("expected a JSON object from GraphQL")
        errors = payload.get("errors") or []
        data = payload.get("data") or {}
        if errors and not data:
            message = errors[0].get("message") if isinstance(errors[0], dict) else str(errors[0])
            if tokens.fallbacks:
                message = f"{message} (fallback tokens: {', '.join(sorted(tokens.fallbacks))})"
            raise APIError(message or "GraphQL error")
        search = data.get("job_search_with_featured_jobs") or {}
        return search.get("all_jobs") or []

    def _normalize(self, raw: Dict[str, Any], ctx: FetchContext) -> Optional[Job]:
        raw_id = str(raw.get("id") or "")
        title = (raw.get("title") or "").strip()
        if not raw_id or not title:
            return None
        locations = [loc for loc in raw.get("locations") or [] if loc]
        teams = ", ".join(raw.get("teams") or [])
        sub_teams = ", ".join(raw.get("sub_teams") or [])
        job_id = f"{self.source.id_prefix}-{raw_id}"
        return Job(
            id=job_id,
            title=title,
            location=" / ".join(locations),
            url=JOB_URL.format(job_id=raw_id),
            source=self.source,
            first_seen_date=ctx.first_seen_for(job_id),
            work_site_flexibility="Remote" if any("Remote" in loc for loc in locations) else None,
            company_name="Meta",
            department=sub_teams or None,
            category=teams or None,
        )
