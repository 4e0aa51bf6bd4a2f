"""Keyword filters shared by the source adapters."""

from __future__ import annotations

from typing import List, Optional, Sequence

REMOTE_HINTS = ("remote", "work from home", "distributed", "anywhere")

FLEXIBILITY_KEYWORDS = ("remote", "hybrid", "flexible", "work from home", "onsite", "on-site", "in-office")


def parse_keywords(raw_filter: str | None, include_remote: bool = False) -> List[str]:
    """
    Split a comma separated filter into trimmed, non-empty keywords.
    With include_remote, "remote" is appended so remote postings survive a location filter.
    """
    keywords = [part.strip() for part in (raw_filter or "").split(",") if part.strip()]
    if include_remote and keywords:
        mentions_remote = any(hint in keyword.lower() for keyword in keywords for hint in REMOTE_HINTS)
        if not mentions_remote:
            keywords.append("remote")
    return keywords


def matches_any(text: str | None, keywords: Sequence[str]) -> bool:
    if not keywords:
        return True
    lowered = (text or "").lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def infer_work_flexibility(*texts: Optional[str], keywords: Sequence[str] = FLEXIBILITY_KEYWORDS) -> Optional[str]:
    combined = " ".join(text for text in texts if text).lower()
    for keyword in keywords:
        if keyword in combined:
            return keyword.title()
    return None
