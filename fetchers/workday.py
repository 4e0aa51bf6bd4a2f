"""Adapter for Workday (myworkdayjobs.com) career sites."""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from errors import HTTPStatusError, InvalidURLError
from fetchers.base import BaseFetcher, FetchContext, dig
from filters import infer_work_flexibility, matches_any
from models import Job, JobSource
from tracking import tracking_file_name

logger = logging.getLogger(__name__)

PAGE_SIZE = 20
SESSION_EXPIRED_STATUSES = (401, 403, 422)
LOCATION_FACETS = ("locations", "locationMainGroup")
_LOCALE = re.compile(r"^[a-z]{2}-[A-Z]{2}$")
_DAYS_AGO = re.compile(r"posted\s+(\d+)\+?\s+days?\s+ago", re.IGNORECASE)


@dataclass(frozen=True)
class WorkdaySite:
    company: str
    instance: str
    site: str

    @property
    def host(self) -> str:
        return f"https://{self.company}.{self.instance}.myworkdayjobs.com"

    @property
    def cache_key(self) -> str:
        return f"{self.company}.{self.instance}"

    @property
    def page_url(self) -> str:
        return f"{self.host}/{self.site}"

    @property
    def jobs_url(self) -> str:
        return f"{self.host}/wday/cxs/{self.company}/{self.site}/jobs"

    @property
    def company_name(self) -> str:
        return self.company.replace("-", " ").title()


@dataclass(frozen=True)
class WorkdaySession:
    cookies: str
    csrf_token: str


def parse_site(board_url: Optional[str]) -> WorkdaySite:
    parsed = urlparse((board_url or "").strip())
    labels = (parsed.hostname or "").split(".")
    if len(labels) < 3 or not labels[1].startswith("wd"):
        raise InvalidURLError(board_url)
    segments = [part for part in parsed.path.split("/") if part]
    if "cxs" in segments:
        index = segments.index("cxs")
        if index + 2 < len(segments):
            return WorkdaySite(labels[0], labels[1], segments[index + 2])
    if segments and _LOCALE.match(segments[0]):
        segments = segments[1:]
    if not segments:
        raise InvalidURLError(board_url)
    return WorkdaySite(labels[0], labels[1], segments[0])


def flatten_facet_values(values: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Collect leaf {id, descriptor} values, descending into nested facets."""
    leaves: List[Dict[str, Any]] = []
    stack = list(reversed(values or []))
    while stack:
        value = stack.pop()
        if not isinstance(value, dict):
            continue
        if "values" in value:
            stack.extend(reversed(value.get("values") or []))
        elif value.get("id"):
            leaves.append(value)
    return leaves


def parse_posted_on(text: Optional[str], now: dt.datetime) -> Optional[dt.datetime]:
    lowered = (text or "").lower()
    if "today" in lowered:
        return now
    if "yesterday" in lowered:
        return now - dt.timedelta(days=1)
    match = _DAYS_AGO.search(lowered)
    if match:
        return now - dt.timedelta(days=int(match.group(1)))
    return None


def requisition_id(posting: Dict[str, Any]) -> Optional[str]:
    bullets = posting.get("bulletFields") or []
    if bullets and bullets[0]:
        return str(bullets[0])
    tail = (posting.get("externalPath") or "").rstrip("/").rsplit("/", 1)[-1]
    if "_" in tail:
        return tail.rsplit("_", 1)[-1] or None
    return None


class WorkdayFetcher(BaseFetcher):
    source = JobSource.WORKDAY

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._sessions: Dict[str, WorkdaySession] = {}
        self._facets: Dict[str, Tuple[str, List[Dict[str, Any]]]] = {}

    def tracking_name(self, board_url: Optional[str] = None) -> str:
        return tracking_file_name(self.source, parse_site(board_url).company)

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        site = parse_site(ctx.board_url)
        initial = self._page(site, 0, "", {})
        self._cache_facets(site, initial.get("facets") or [])

        applied = self._applied_facets(site, ctx.location_filter)
        search_text = " ".join(ctx.title_keywords)
        client_location = ctx.location_keywords() if ctx.location_filter.strip() and not applied else []

        jobs: List[Job] = []
        offset = 0
        for page in range(ctx.max_pages):
            if page:
                self._pause()
            if offset == 0 and not applied and not search_text:
                response = initial
            else:
                response = self._page(site, offset, search_text, applied)
            postings = dig(response, "jobPostings") or []
            if not postings:
                break
            for posting in postings:
                job = self._normalize(posting, site, ctx)
                if job is None:
                    continue
                if not matches_any(job.title, ctx.title_keywords) or not matches_any(job.location, client_location):
                    continue
                jobs.append(job)
            if len(postings) < PAGE_SIZE:
                break
            offset += PAGE_SIZE
        return jobs

    def _establish_session(self, site: WorkdaySite) -> WorkdaySession:
        cached = self._sessions.get(site.cache_key)
        if cached is not None:
            return cached
        resp = self._request("GET", site.page_url)
        cookies = getattr(resp, "cookies", None) or {}
        session = WorkdaySession(
            cookies="; ".join(f"{name}={value}" for name, value in cookies.items()),
            csrf_token=cookies.get("CALYPSO_CSRF_TOKEN") or "",
        )
        if not session.csrf_token:
            logger.debug("Workday site %s issued no CSRF token", site.page_url)
        self._sessions[site.cache_key] = session
        return session

    def _page(self, site: WorkdaySite, offset: int, search_text: str, applied: Dict[str, List[str]]) -> Dict[str, Any]:
        body = {"appliedFacets": applied, "limit": PAGE_SIZE, "offset": offset, "searchText": search_text}
        try:
            return self._post_jobs(site, self._establish_session(site), body)
        except HTTPStatusError as exc:
            if exc.status_code not in SESSION_EXPIRED_STATUSES:
                raise
            logger.info("Workday session for %s rejected (HTTP %d); starting a new one", site.cache_key, exc.status_code)
        self._sessions.pop(site.cache_key, None)
        return self._post_jobs(site, self._establish_session(site), body)

    def _post_jobs(self, site: WorkdaySite, session: WorkdaySession, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Origin": site.host,
            "Referer": site.page_url,
        }
        if session.cookies:
            headers["Cookie"] = session.cookies
        if session.csrf_token:
            headers["X-CALYPSO-CSRF-TOKEN"] = session.csrf_token
        return self._request_json("POST", site.jobs_url, json=body, headers=headers)

    def _cache_facets(self, site: WorkdaySite, facets: List[Dict[str, Any]]) -> None:
        for facet in facets:
            parameter = facet.get("facetParameter")
            if parameter in LOCATION_FACETS:
                values = flatten_facet_values(facet.get("values") or [])
                if values:
                    self._facets[site.cache_key] = (parameter, values)
                    logger.debug("Cached %d %s facets for %s", len(values), parameter, site.cache_key)
                return

    def _applied_facets(self, site: WorkdaySite, location_filter: str) -> Dict[str, List[str]]:
        cached = self._facets.get(site.cache_key)
        keywords = [kw.lower() for kw in location_filter.split(",") if kw.strip()]
        if not cached or not keywords:
            return {}
        parameter, values = cached
        ids: List[str] = []
        for keyword in keywords:
            for value in values:
                if keyword.strip() in (value.get("descriptor") or "").lower() and value["id"] not in ids:
                    ids.append(value["id"])
        return {parameter: ids} if ids else {}

    def _normalize(self, posting: Dict[str, Any], site: WorkdaySite, ctx: FetchContext) -> Optional[Job]:
        title = (posting.get("title") or "").strip()
        req_id = requisition_id(posting)
        if not title or not req_id:
            return None
        tail = (posting.get("externalPath") or "").rstrip("/").rsplit("/", 1)[-1]
        slug = tail.split("_")[0] if tail else re.sub(r"[\s,]+", "-", title)
        job_id = f"{self.source.id_prefix}-{req_id}"
        bullets = posting.get("bulletFields") or []
        return Job(
            id=job_id,
            title=title,
            location=posting.get("locationsText") or "Location not specified",
            url=f"{site.host}/en-US/{site.site}/details/{slug}_{req_id}",
            source=self.source,
            first_seen_date=ctx.first_seen_for(job_id),
            posting_date=parse_posted_on(posting.get("postedOn"), ctx.now),
            work_site_flexibility=posting.get("remoteType") or infer_work_flexibility(title, posting.get("locationsText")),
            company_name=site.company_name,
            category=bullets[1] if len(bullets) > 1 else None,
        )
