"""Detect which ATS platform hosts a careers page."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional
from urllib.parse import urljoin, urlparse

import requests
from bs4 import BeautifulSoup

from errors import HTTPStatusError, NetworkError
from fetchers.base import make_session
from models import JobSource

logger = logging.getLogger(__name__)

LOOKUP_TIMEOUT = 10

EMBEDDED_PATTERNS = [
    (re.compile(r"""https?://[^"'\s<>]*\.wd\d+\.myworkdayjobs\.com/[^"'\s<>]*"""), JobSource.WORKDAY),
    (re.compile(r"""https?://[^"'\s<>]*\.myworkdayjobs\.com/[^"'\s<>]*"""), JobSource.WORKDAY),
    (re.compile(r"""https?://(?:boards|job-boards)\.greenhouse\.io/[^"'\s<>]*"""), JobSource.GREENHOUSE),
    (re.compile(r"""https?://boards-api\.greenhouse\.io/v1/boards/[^"'\s<>/]+"""), JobSource.GREENHOUSE),
    (re.compile(r"""https?://jobs\.lever\.co/[^"'\s<>]*"""), JobSource.LEVER),
    (re.compile(r"""https?://jobs\.ashbyhq\.com/[^"'\s<>]*"""), JobSource.ASHBY),
    (re.compile(r"""https?://[^"'\s<>]*\.workable\.com/[^"'\s<>]*"""), JobSource.WORKABLE),
    (re.compile(r"""https?://[^"'\s<>]*\.smartrecruiters\.com/[^"'\s<>]*"""), JobSource.SMARTRECRUITERS),
    (re.compile(r"""https?://[^"'\s<>]*\.jobvite\.com/[^"'\s<>]*"""), JobSource.JOBVITE),
]

JS_REDIRECT = re.compile(r"""(?:window\.)?location(?:\.href)?\s*=\s*["']([^"']+)["']""")
META_REFRESH_URL = re.compile(r"url\s*=\s*['\"]?([^'\";]+)", re.IGNORECASE)
_UUID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)
_LOCALE = re.compile(r"^[a-z]{2}-[A-Z]{2}$")

CAREERS_URL_HINTS = ("career", "job", "hiring", "join", "positions")
CAREERS_TEXT_HINTS = (
    "open position",
    "job opening",
    "join our team",
    "we're hiring",
    "apply now",
    "view all jobs",
    "current opening",
)


class Confidence(str, Enum):
    CERTAIN = "certain"
    LIKELY = "likely"
    NOT_DETECTED = "not detected"


@dataclass(frozen=True)
class DetectionResult:
    source: Optional[JobSource]
    confidence: Confidence
    board_url: Optional[str]
    message: str

    @property
    def detected(self) -> bool:
        return self.source is not None


def normalize_board_url(url: str, source: JobSource) -> str:
    """Reduce a job-detail link to the board root the adapters expect."""
    parsed = urlparse(url)
    segments = [part for part in parsed.path.split("/") if part]
    base = f"{parsed.scheme or 'https'}://{parsed.netloc}"
    if source is JobSource.WORKDAY:
        if segments and _LOCALE.match(segments[0]):
            segments = segments[1:]
        for marker in ("job", "details", "apply"):
            if marker in segments:
                segments = segments[: segments.index(marker)]
        return f"{base}/{segments[0]}" if segments else base
    if source is JobSource.ASHBY and len(segments) > 1 and _UUID.match(segments[-1]):
        return f"{base}/{'/'.join(segments[:-1])}"
    if source is JobSource.GREENHOUSE and parsed.netloc.startswith("boards-api."):
        # /v1/boards/<slug>[/jobs[/<id>]]
        if len(segments) > 2 and segments[:2] == ["v1", "boards"]:
            return f"https://boards.greenhouse.io/{segments[2]}"
        return url
    if source in (JobSource.GREENHOUSE, JobSource.LEVER) and segments:
        return f"{base}/{segments[0]}"
    return url


def company_slug(url: str) -> str:
    labels = (urlparse(url).hostname or "").split(".")
    return labels[-2].lower() if len(labels) >= 2 else "company"


def is_careers_page(url: str, page: str) -> bool:
    lowered_url = url.lower()
    lowered_page = page.lower()
    return any(hint in lowered_url for hint in CAREERS_URL_HINTS) or any(
        hint in lowered_page for hint in CAREERS_TEXT_HINTS
    )


class BoardDetector:
    def __init__(self, session: Optional[requests.Session] = None) -> None:
        self.session = session or make_session()

    def detect(self, url: str) -> DetectionResult:
        url = (url or "").strip()
        quick = JobSource.detect_from_url(url)
        if quick is not None:
            return DetectionResult(quick, Confidence.CERTAIN, url, f"Detected {quick.value} from URL pattern")

        page = self._get(url)
        candidates = self._scan_markup(url, page) + self._scan_text(page)
        for candidate in candidates:
            source = JobSource.detect_from_url(candidate)
            if source is not None and source.is_board_platform:
                board_url = normalize_board_url(candidate, source)
                logger.info("Found embedded %s board %s on %s", source.value, board_url, url)
                return DetectionResult(source, Confidence.LIKELY, board_url, f"Found {source.value} board: {board_url}")

        if is_careers_page(url, page):
            guessed = self._lookup_public_apis(company_slug(url))
            if guessed is not None:
                return guessed

        return DetectionResult(None, Confidence.NOT_DETECTED, None, "Could not detect ATS system from this page")

    def _get(self, url: str) -> str:
        try:
            resp = self.session.request("GET", url, timeout=LOOKUP_TIMEOUT)
        except requests.RequestException as exc:
            raise NetworkError(exc) from exc
        if resp.status_code != 200:
            raise HTTPStatusError(resp.status_code)
        return resp.text or ""

    def _scan_markup(self, url: str, page: str) -> List[str]:
        soup = BeautifulSoup(page, "html.parser")
        found: List[str] = []
        for tag, attr in (("a", "href"), ("iframe", "src"), ("script", "src")):
            for node in soup.find_all(tag):
                value = node.get(attr)
                if value:
                    found.append(urljoin(url, value))
        for meta in soup.find_all("meta", attrs={"http-equiv": re.compile("^refresh$", re.IGNORECASE)}):
            match = META_REFRESH_URL.search(meta.get("content") or "")
            if match:
                found.append(urljoin(url, match.group(1).strip()))
        for script in soup.find_all("script"):
            for match in JS_REDIRECT.finditer(script.string or ""):
                found.append(urljoin(url, match.group(1)))
        return found

    @staticmethod
    def _scan_text(page: str) -> List[str]:
        return [match.group(0) for pattern, _ in EMBEDDED_PATTERNS for match in pattern.finditer(page)]

    def _lookup_public_apis(self, slug: str) -> Optional[DetectionResult]:
        """Guess the board from the company's domain name on the public APIs."""
        routes: Iterable = (
            (JobSource.GREENHOUSE, f"https://boards-api.greenhouse.io/v1/boards/{slug}/jobs", f"https://boards.greenhouse.io/{slug}"),
            (JobSource.LEVER, f"https://api.lever.co/v0/postings/{slug}?mode=json", f"https://jobs.lever.co/{slug}"),
        )
        for source, api_url, board_url in routes:
            try:
                resp = self.session.request("GET", api_url, timeout=LOOKUP_TIMEOUT)
                payload = resp.json() if resp.status_code == 200 else None
            except (requests.RequestException, ValueError) as exc:
                logger.debug("Lookup %s failed: %s", api_url, exc)
                continue
            jobs = payload.get("jobs") if isinstance(payload, dict) else payload
            if jobs:
                return DetectionResult(source, Confidence.LIKELY, board_url, f"Found {source.value} via API: {board_url}")
        return None


def detect_board(url: str, session: Optional[requests.Session] = None) -> DetectionResult:
    return BoardDetector(session).detect(url)
