"""Base classes and HTTP plumbing for source adapters."""

from __future__ import annotations

import datetime as dt
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from errors import DecodingError, HTTPStatusError, InvalidResponseError, NetworkError, NoJobsError, SourceNotImplementedError
from filters import parse_keywords
from models import Job, JobSource, utcnow
from tracking import TrackingStore, tracking_file_name

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
    "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/123.0 Safari/537.36"
)
DEFAULT_TIMEOUT = 15.0
MAX_TOTAL_JOBS = 5000


def make_session(verify: bool = True, proxy: Optional[str] = None) -> requests.Session:
    sess = requests.Session()
    retries = Retry(
        total=3,
        backoff_factor=1,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
        raise_on_status=False,
    )
    sess.mount("http://", HTTPAdapter(max_retries=retries))
    sess.mount("https://", HTTPAdapter(max_retries=retries))
    sess.headers.update({"User-Agent": USER_AGENT, "Accept-Language": "en-US,en;q=0.9"})
    if proxy:
        sess.proxies.update({"http": proxy, "https": proxy})
    sess.verify = verify
    return sess


@dataclass
class FetchContext:
    """Inputs and tracking state for one adapter run."""

    title_filter: str
    location_filter: str
    max_pages: int
    board_url: Optional[str]
    now: dt.datetime
    first_seen: Dict[str, dt.datetime] = field(default_factory=dict)

    @property
    def title_keywords(self) -> List[str]:
        return parse_keywords(self.title_filter)

    def location_keywords(self, include_remote: bool = False) -> List[str]:
        return parse_keywords(self.location_filter, include_remote=include_remote)

    def first_seen_for(self, job_id: str) -> dt.datetime:
        return self.first_seen.get(job_id, self.now)


def dig(payload: Any, *path: str) -> Any:
    """Walk nested dicts, raising DecodingError with the path walked so far."""
    current = payload
    walked: List[str] = []
    for key in path:
        walked.append(key)
        if not isinstance(current, dict) or key not in current:
            raise DecodingError(f"missing field {' -> '.join(walked)}")
        current = current[key]
    return current


class BaseFetcher(ABC):
    source: JobSource

    def __init__(
        self,
        session: requests.Session,
        tracking: TrackingStore,
        timeout: float = DEFAULT_TIMEOUT,
        page_delay: float = 0.3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session
        self.tracking = tracking
        self.timeout = timeout
        self.page_delay = page_delay
        self.sleep = sleep

    def tracking_name(self, board_url: Optional[str] = None) -> str:
        return tracking_file_name(self.source)

    def fetch(
        self,
        title_filter: str = "",
        location_filter: str = "",
        max_pages: int = 5,
        board_url: Optional[str] = None,
    ) -> List[Job]:
        """
        Fetch, normalize and filter postings, then record their first-seen dates.
        Raises a FetchError subclass; an empty result is NoJobsError.
        """
        name = self.tracking_name(board_url)
        now = utcnow()
        with self.tracking.lock_for(name):
            ctx = FetchContext(
                title_filter=title_filter or "",
                location_filter=location_filter or "",
                max_pages=max(1, max_pages),
                board_url=board_url,
                now=now,
                first_seen=self.tracking.load(name),
            )
            try:
                jobs = self._fetch(ctx)
            except (AttributeError, TypeError, KeyError) as exc:
                raise DecodingError(f"unexpected {self.source.value} response shape: {exc}") from exc
            if jobs:
                self.tracking.record(name, [job.id for job in jobs], now)
        logger.info("%s returned %d jobs", self.source.value, len(jobs))
        if not jobs:
            raise NoJobsError()
        return jobs

    @abstractmethod
    def _fetch(self, ctx: FetchContext) -> List[Job]:
        raise NotImplementedError

    def _request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        kwargs.setdefault("timeout", self.timeout)
        try:
            resp = self.session.request(method, url, **kwargs)
        except requests.RequestException as exc:
            raise NetworkError(exc) from exc
        if resp is None:
            raise InvalidResponseError()
        if resp.status_code != 200:
            raise HTTPStatusError(resp.status_code)
        return resp

    def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        resp = self._request(method, url, **kwargs)
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodingError(f"invalid JSON from {url}: {exc}") from exc

    def _request_text(self, method: str, url: str, **kwargs: Any) -> str:
        return self._request(method, url, **kwargs).text

    def _pause(self, seconds: Optional[float] = None) -> None:
        delay = self.page_delay if seconds is None else seconds
        if delay > 0:
            self.sleep(delay)


class ReservedFetcher(BaseFetcher):
    """Placeholder for platforms that are detected but not fetched yet."""

    def __init__(self, source: JobSource, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.source = source

    def fetch(
        self,
        title_filter: str = "",
        location_filter: str = "",
        max_pages: int = 5,
        board_url: Optional[str] = None,
    ) -> List[Job]:
        raise SourceNotImplementedError(self.source.value)

    def _fetch(self, ctx: FetchContext) -> List[Job]:
        raise SourceNotImplementedError(self.source.value)
