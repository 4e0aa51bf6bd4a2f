"""Adapter for Lever hosted job boards."""

from __future__ import annotations

import datetime as dt
import logging
from typing import Any, List, Optional
from urllib.parse import urlparse

from cleaning import clean_html
from errors import DecodingError, InvalidURLError
from fetchers.base import BaseFetcher, FetchContext
from filters import infer_work_flexibility, matches_any
from models import Job, JobSource, parse_datetime
from tracking import tracking_file_name

logger = logging.getLogger(__name__)

API_URL = "https://api.lever.co/v0/postings/{slug}"


def board_slug(board_url: Optional[str]) -> str:
    parsed = urlparse((board_url or "").strip())
    segments = [part for part in parsed.path.split("/") if part]
    if not parsed.hostname or not segments:
        raise InvalidURLError(board_url)
    return segments[0]


def parse_created_at(value: Any) -> Optional[dt.datetime]:
    """Lever sends epoch milliseconds; older payloads carry ISO strings."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return dt.datetime.fromtimestamp(value / 1000, tz=dt.timezone.utc)
    return parse_datetime(value)


class LeverFetcher(BaseFetcher):
    source = JobSource.LEVER

    def tracking_name(self, board_url: Optional[str] = None) -> str:
        return tracking_file_name(self.source, board_slug(board_url))

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        slug = board_slug(ctx.board_url)
        payload = self._request_json("GET", API_URL.format(slug=slug), params={"mode": "json"})
        if not isinstance(payload, list):
            raise DecodingError("expected a list of postings")
        logger.info("Lever board %s listed %d postings", slug, len(payload))
        location_keywords = ctx.location_keywords()

        jobs: List[Job] = []
        for raw in payload:
            title = (raw.get("text") or "").strip()
            url = (raw.get("hostedUrl") or "").strip()
            if not title or not url or not raw.get("id"):
                continue
            categories = raw.get("categories") or {}
            location = categories.get("location") or "Location not specified"
            if not matches_any(title, ctx.title_keywords) or not matches_any(location, location_keywords):
                continue
            description = raw.get("descriptionPlain") or clean_html(raw.get("description"))
            job_id = f"{self.source.id_prefix}-{raw['id']}"
            jobs.append(
                Job(
                    id=job_id,
                    title=title,
                    location=location,
                    url=url,
                    source=self.source,
                    first_seen_date=ctx.first_seen_for(job_id),
                    description=description.strip(),
                    posting_date=parse_created_at(raw.get("createdAt")),
                    work_site_flexibility=raw.get("workplaceType") or infer_work_flexibility(location),
                    company_name=slug.replace("-", " ").title(),
                    department=categories.get("team"),
                    category=categories.get("commitment"),
                )
            )
        return jobs
