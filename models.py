"""Data models for job postings and board configurations."""

from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class JobSource(str, Enum):
    MICROSOFT = "Microsoft"
    TIKTOK = "TikTok"
    META = "Meta"
    GREENHOUSE = "Greenhouse"
    ASHBY = "Ashby"
    LEVER = "Lever"
    WORKDAY = "Workday"
    WORKABLE = "Workable"
    JOBVITE = "Jobvite"
    BAMBOOHR = "BambooHR"
    SMARTRECRUITERS = "SmartRecruiters"
    JAZZHR = "JazzHR"
    RECRUITEE = "Recruitee"
    BREEZYHR = "Breezy HR"

    @property
    def tag(self) -> str:
        return self.name.lower()

    @property
    def id_prefix(self) -> str:
        return _ID_PREFIXES.get(self, self.tag)

    @property
    def url_patterns(self) -> Tuple[str, ...]:
        return _URL_PATTERNS[self]

    @property
    def is_supported(self) -> bool:
        return self in _SUPPORTED

    @property
    def is_board_platform(self) -> bool:
        """Board platforms are polled per user-supplied URL; the rest are single global sites."""
        return self not in _FIXED_PLATFORMS

    @classmethod
    def detect_from_url(cls, url: str) -> Optional["JobSource"]:
        lowered = (url or "").strip().lower()
        if not lowered:
            return None
        for source in cls:
            if any(pattern in lowered for pattern in source.url_patterns):
                return source
        return None


# Declaration order of JobSource is the detection order.
_URL_PATTERNS: Dict[JobSource, Tuple[str, ...]] = {
    JobSource.MICROSOFT: ("careers.microsoft.com",),
    JobSource.TIKTOK: ("lifeattiktok.com", "tiktok.com"),
    JobSource.META: ("metacareers.com",),
    JobSource.GREENHOUSE: ("greenhouse.io",),
    JobSource.ASHBY: ("ashbyhq.com",),
    JobSource.LEVER: ("lever.co",),
    JobSource.WORKDAY: ("myworkdayjobs.com",),
    JobSource.WORKABLE: ("workable.com",),
    JobSource.JOBVITE: ("jobvite.com",),
    JobSource.BAMBOOHR: ("bamboohr.com",),
    JobSource.SMARTRECRUITERS: ("smartrecruiters.com",),
    JobSource.JAZZHR: ("jazz.co", "jazzhr.com"),
    JobSource.RECRUITEE: ("recruitee.com",),
    JobSource.BREEZYHR: ("breezy.hr",),
}

_ID_PREFIXES = {
    JobSource.GREENHOUSE: "gh",
}

_SUPPORTED = frozenset(
    {
        JobSource.MICROSOFT,
        JobSource.TIKTOK,
        JobSource.META,
        JobSource.GREENHOUSE,
        JobSource.ASHBY,
        JobSource.LEVER,
        JobSource.WORKDAY,
    }
)

_FIXED_PLATFORMS = frozenset({JobSource.MICROSOFT, JobSource.TIKTOK, JobSource.META})


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def format_datetime(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.isoformat()


def parse_datetime(value: Any) -> Optional[dt.datetime]:
    """Parse ISO-8601 strings (with or without a trailing Z); naive values are taken as UTC."""
    if isinstance(value, dt.datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = dt.datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed


@dataclass(frozen=True)
class Job:
    id: str
    title: str
    location: str
    url: str
    source: JobSource
    first_seen_date: dt.datetime
    description: str = ""
    posting_date: Optional[dt.datetime] = None
    work_site_flexibility: Optional[str] = None
    company_name: Optional[str] = None
    department: Optional[str] = None
    category: Optional[str] = None

    @property
    def sort_date(self) -> dt.datetime:
        return self.posting_date or self.first_seen_date

    def is_recent(self, now: Optional[dt.datetime] = None, hours: float = 24) -> bool:
        now = now or utcnow()
        age = (now - self.sort_date).total_seconds() / 3600
        return 0 <= age <= hours

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "location": self.location,
            "postingDate": format_datetime(self.posting_date),
            "url": self.url,
            "description": self.description,
            "workSiteFlexibility": self.work_site_flexibility,
            "source": self.source.value,
            "companyName": self.company_name,
            "department": self.department,
            "category": self.category,
            "firstSeenDate": format_datetime(self.first_seen_date),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        first_seen = parse_datetime(data.get("firstSeenDate"))
        if first_seen is None:
            raise ValueError(f"job {data.get('id')!r} has no firstSeenDate")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            location=data.get("location", ""),
            url=data.get("url", ""),
            source=JobSource(data["source"]),
            first_seen_date=first_seen,
            description=data.get("description") or "",
            posting_date=parse_datetime(data.get("postingDate")),
            work_site_flexibility=data.get("workSiteFlexibility"),
            company_name=data.get("companyName"),
            department=data.get("department"),
            category=data.get("category"),
        )


@dataclass
class BoardConfig:
    name: str
    url: str
    source: JobSource
    is_enabled: bool = True
    last_fetched: Optional[dt.datetime] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()).upper())

    @classmethod
    def from_url(cls, url: str, name: str = "", is_enabled: bool = True) -> Optional["BoardConfig"]:
        source = JobSource.detect_from_url(url)
        if source is None:
            return None
        return cls(name=name.strip(), url=url.strip(), source=source, is_enabled=is_enabled)

    @property
    def display_name(self) -> str:
        return self.name or f"{self.source.value} Board"

    @property
    def is_supported(self) -> bool:
        return self.source.is_supported

    def mark_fetched(self, when: Optional[dt.datetime] = None) -> "BoardConfig":
        return replace(self, last_fetched=when or utcnow())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "source": self.source.value,
            "isEnabled": self.is_enabled,
            "lastFetched": format_datetime(self.last_fetched),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BoardConfig":
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            url=data["url"],
            source=JobSource(data["source"]),
            is_enabled=bool(data.get("isEnabled", True)),
            last_fetched=parse_datetime(data.get("lastFetched")),
        )
