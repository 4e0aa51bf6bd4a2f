"""Adapter for the Microsoft careers search API."""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Set, Tuple

from cleaning import clean_html
from fetchers.base import BaseFetcher, FetchContext, dig
from filters import matches_any
from locations import microsoft_location_params
from models import Job, JobSource, parse_datetime

logger = logging.getLogger(__name__)

SEARCH_URL = "https://gcsservices.careers.microsoft.com/search/api/v1/search"
JOB_URL = "https://careers.microsoft.com/us/en/job/{job_id}"
PAGE_SIZE = 20
MAX_PAGES_PER_COMBO = 3
COMBO_DELAY = 0.7

# Suffixes Microsoft tacks onto titles, e.g. "Software Engineer - Redmond".
KNOWN_LOCATIONS = (
    "Redmond",
    "Seattle",
    "Bellevue",
    "Mountain View",
    "San Francisco",
    "New York",
    "Atlanta",
    "Austin",
    "Boston",
    "Cambridge",
    "Vancouver",
    "Toronto",
    "London",
    "Dublin",
    "Remote",
    "Multiple Locations",
    "United States",
    "Canada",
)

_HYBRID_HINTS = ("days / week", "days/week", "hybrid")
_REMOTE_HINTS = ("100%", "remote", "work from home")


def split_title(raw_title: str) -> Tuple[str, Optional[str]]:
    """Strip a trailing location suffix from a title; returns (title, suffix)."""
    title = raw_title.strip()
    lowered_locations = {loc.lower() for loc in KNOWN_LOCATIONS}
    if " - " in title:
        head, _, tail = title.rpartition(" - ")
        if tail.strip().lower() in lowered_locations:
            return head.strip(), tail.strip()
    match = re.search(r"\(([^()]*)\)\s*$", title)
    if match and match.group(1).strip().lower() in lowered_locations:
        return title[: match.start()].strip(), match.group(1).strip()
    return title, None


def annotate_location(location: str, flexibility: Optional[str]) -> str:
    if not flexibility:
        return location
    lowered = flexibility.lower()
    if any(hint in lowered for hint in _HYBRID_HINTS):
        return f"{location} (Hybrid: {flexibility})"
    if any(hint in lowered for hint in _REMOTE_HINTS):
        return f"{location} (Remote)"
    return location


class MicrosoftFetcher(BaseFetcher):
    source = JobSource.MICROSOFT

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        titles: List[Optional[str]] = list(ctx.title_keywords) or [None]
        countries: List[Optional[str]] = list(microsoft_location_params(ctx.location_filter)) or [None]
        combos = [(title, country) for title in titles for country in countries]
        pages_per_combo = min(MAX_PAGES_PER_COMBO, max(1, ctx.max_pages // len(combos)))
        location_keywords = ctx.location_keywords(include_remote=True)

        jobs: List[Job] = []
        seen: Set[str] = set()
        for index, (title, country) in enumerate(combos):
            if index:
                self._pause(COMBO_DELAY)
            for raw in self._search(title, country, pages_per_combo):
                job = self._normalize(raw, ctx)
                if job is None or job.id in seen:
                    continue
                if not matches_any(job.title, ctx.title_keywords):
                    continue
                if not matches_any(job.location, location_keywords):
                    logger.debug("Dropping %s: location %r outside filter", job.id, job.location)
                    continue
                seen.add(job.id)
                jobs.append(job)
        return jobs

    def _search(self, query: Optional[str], country: Optional[str], pages: int) -> List[Dict[str, Any]]:
        results: List[Dict[str, Any]] = []
        for page in range(1, pages + 1):
            params: Dict[str, Any] = {"l": "en_us", "pg": page, "pgSz": PAGE_SIZE, "o": "Recent", "flt": "true"}
            terms = " ".join(term for term in (query, country) if term)
            if terms:
                params["q"] = terms
            payload = self._request_json("GET", SEARCH_URL, params=params, headers={"Accept": "application/json"})
            batch = dig(payload, "operationResult", "result", "jobs") or []
            logger.debug("Microsoft page %d for %r returned %d jobs", page, terms, len(batch))
            results.extend(batch)
            if len(batch) < PAGE_SIZE:
                break
            if page < pages:
                self._pause()
        return results

    def _normalize(self, raw: Dict[str, Any], ctx: FetchContext) -> Optional[Job]:
        job_id = raw.get("jobId")
        raw_title = raw.get("title") or ""
        if not job_id or not raw_title.strip():
            return None
        title, suffix = split_title(raw_title)
        props = raw.get("properties") or {}
        locations = props.get("locations") or []
        location = props.get("primaryLocation") or (locations[0] if locations else None) or suffix or "Location not specified"
        flexibility = props.get("workSiteFlexibility") or None
        job_key = f"{self.source.id_prefix}-{job_id}"
        return Job(
            id=job_key,
            title=title,
            location=annotate_location(location, flexibility),
            url=JOB_URL.format(job_id=job_id),
            source=self.source,
            first_seen_date=ctx.first_seen_for(job_key),
            description=clean_html(props.get("description")),
            posting_date=parse_datetime(raw.get("postingDate")),
            work_site_flexibility=flexibility,
            company_name="Microsoft",
            department=props.get("discipline"),
            category=props.get("profession"),
        )
