"""Adapter for Greenhouse hosted job boards."""

from __future__ import annotations

import html
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from cleaning import clean_html
from errors import InvalidURLError
from fetchers.base import BaseFetcher, FetchContext, dig
from filters import infer_work_flexibility, matches_any
from locations import ParsedLocation, extract_target_countries
from models import Job, JobSource, parse_datetime
from tracking import tracking_file_name

logger = logging.getLogger(__name__)

API_URL = "https://boards-api.greenhouse.io/v1/boards/{slug}/jobs"
FLEXIBILITY_KEYWORDS = ("remote", "hybrid", "flexible", "work from home", "onsite", "on-site")


def board_slug(board_url: Optional[str]) -> str:
    parsed = urlparse((board_url or "").strip())
    host = (parsed.hostname or "").lower()
    segments = [part for part in parsed.path.split("/") if part]
    if not host:
        raise InvalidURLError(board_url)
    if host.startswith(("boards.", "job-boards.")) or host in {"greenhouse.io", "www.greenhouse.io"}:
        slug = segments[0] if segments else ""
    elif host.endswith("greenhouse.io"):
        slug = host.split(".")[0]
    else:
        slug = segments[0] if segments else ""
    if not slug:
        raise InvalidURLError(board_url)
    return slug


def company_name(slug: str) -> str:
    return " ".join(part.capitalize() for part in slug.split("-") if part)


class GreenhouseFetcher(BaseFetcher):
    source = JobSource.GREENHOUSE

    def tracking_name(self, board_url: Optional[str] = None) -> str:
        return tracking_file_name(self.source, board_slug(board_url))

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        slug = board_slug(ctx.board_url)
        payload = self._request_json(
            "GET",
            API_URL.format(slug=slug),
            params={"content": "true"},
            headers={"Accept": "application/json"},
        )
        raw_jobs = dig(payload, "jobs") or []
        logger.info("Greenhouse board %s listed %d postings", slug, len(raw_jobs))

        has_location_filter = bool(ctx.location_filter.strip())
        countries = extract_target_countries(ctx.location_filter)
        location_keywords = ctx.location_keywords(include_remote=True)
        company = company_name(slug)

        jobs: List[Job] = []
        for raw in raw_jobs:
            title = (raw.get("title") or "").strip()
            url = (raw.get("absolute_url") or "").strip()
            if not title or not url or raw.get("id") is None:
                logger.debug("Skipping Greenhouse posting without title or url")
                continue
            parsed = ParsedLocation.parse((raw.get("location") or {}).get("name") or "")
            if has_location_filter and parsed.country not in countries:
                continue
            location = parsed.display_string + (" (Remote)" if parsed.is_remote else "")
            if not matches_any(title, ctx.title_keywords):
                continue
            if not matches_any(location, location_keywords):
                continue
            jobs.append(self._normalize(raw, title, url, location, company, ctx))
        return jobs

    def _normalize(
        self, raw: Dict[str, Any], title: str, url: str, location: str, company: str, ctx: FetchContext
    ) -> Job:
        description = clean_html(html.unescape(raw.get("content") or ""))
        departments = raw.get("departments") or []
        job_id = f"{self.source.id_prefix}-{raw['id']}"
        return Job(
            id=job_id,
            title=title,
            location=location,
            url=url,
            source=self.source,
            first_seen_date=ctx.first_seen_for(job_id),
            description=description,
            posting_date=parse_datetime(raw.get("updated_at")),
            work_site_flexibility=infer_work_flexibility(title, description, location, keywords=FLEXIBILITY_KEYWORDS),
            company_name=company,
            department=departments[0].get("name") if departments else None,
        )
