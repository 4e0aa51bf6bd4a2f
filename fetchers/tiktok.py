"""Adapter for the TikTok careers search API."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from cleaning import clean_html
from errors import APIError
from fetchers.base import MAX_TOTAL_JOBS, BaseFetcher, FetchContext, dig
from filters import infer_work_flexibility, matches_any
from locations import ParsedLocation, extract_target_countries, tiktok_location_codes
from models import Job, JobSource

logger = logging.getLogger(__name__)

SEARCH_URL = "https://api.lifeattiktok.com/api/v1/public/supplier/search/job/posts"
JOB_URL = "https://lifeattiktok.com/search/{job_id}"
PAGE_SIZE = 12
MAX_PARENT_DEPTH = 10
FLEXIBILITY_KEYWORDS = ("remote", "hybrid", "flexible", "onsite", "on-site", "in-office")

HEADERS = {
    "Accept": "*/*",
    "Content-Type": "application/json",
    "Origin": "https://lifeattiktok.com",
    "Referer": "https://lifeattiktok.com/",
    "website-path": "tiktok",
}


def city_chain(city_info: Optional[Dict[str, Any]]) -> str:
    """Flatten a city -> state -> country parent chain into "City, State, Country"."""
    if not city_info:
        return "Location not specified"
    parts: List[str] = []
    node: Optional[Dict[str, Any]] = city_info
    depth = 0
    while isinstance(node, dict) and depth < MAX_PARENT_DEPTH:
        if node.get("en_name"):
            parts.append(node["en_name"])
        node = node.get("parent")
        depth += 1
    return ", ".join(parts) or "Location not specified"


class TikTokFetcher(BaseFetcher):
    source = JobSource.TIKTOK

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        codes = tiktok_location_codes(ctx.location_filter)
        countries = extract_target_countries(ctx.location_filter) if ctx.location_filter.strip() and not codes else None
        keyword = " ".join(ctx.title_keywords)

        jobs: List[Job] = []
        offset = 0
        page = 1
        while len(jobs) < MAX_TOTAL_JOBS and page <= ctx.max_pages:
            batch = self._page(keyword, codes, offset)
            if not batch:
                break
            for raw in batch:
                job = self._normalize(raw, ctx)
                if job is None:
                    continue
                if not matches_any(job.title, ctx.title_keywords):
                    continue
                if countries is not None and ParsedLocation.parse(job.location).country not in countries:
                    logger.debug("Dropping %s: %r outside %s", job.id, job.location, sorted(countries))
                    continue
                jobs.append(job)
            logger.debug("TikTok page %d returned %d postings", page, len(batch))
            if len(batch) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
            page += 1
            self._pause()
        return jobs

    def _page(self, keyword: str, codes: List[str], offset: int) -> List[Dict[str, Any]]:
        body = {
            "recruitment_id_list": ["1"],
            "job_category_id_list": [],
            "subject_id_list": [],
            "location_code_list": codes,
            "keyword": keyword,
            "limit": PAGE_SIZE,
            "offset": offset,
        }
        payload = self._request_json("POST", SEARCH_URL, json=body, headers=HEADERS)
        code = dig(payload, "code")
        if code != 0:
            raise APIError(f"TikTok API returned error code {code}")
        return dig(payload, "data", "job_post_list") or []

    def _normalize(self, raw: Dict[str, Any], ctx: FetchContext) -> Optional[Job]:
        raw_id = str(raw.get("id") or "")
        title = (raw.get("title") or "").strip()
        if not raw_id or not title:
            logger.debug("Skipping TikTok posting without id or title")
            return None
        description = raw.get("description") or ""
        requirement = raw.get("requirement") or ""
        if requirement:
            description = f"{description}\n\nRequirements:\n{requirement}"
        category = raw.get("job_category") or {}
        location = city_chain(raw.get("city_info"))
        job_id = f"{self.source.id_prefix}-{raw_id}"
        return Job(
            id=job_id,
            title=title,
            location=location,
            url=JOB_URL.format(job_id=raw_id),
            source=self.source,
            first_seen_date=ctx.first_seen_for(job_id),
            description=clean_html(description),
            work_site_flexibility=infer_work_flexibility(title, raw.get("description"), location, keywords=FLEXIBILITY_KEYWORDS),
            company_name="TikTok",
            department=category.get("en_name"),
            category=category.get("i18n_name"),
        )
