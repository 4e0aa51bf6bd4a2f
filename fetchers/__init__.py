"""Source adapters, one per job platform."""

from __future__ import annotations

import time
from typing import Callable, Dict, Optional, Type

import requests

from fetchers.ashby import AshbyFetcher
from fetchers.base import DEFAULT_TIMEOUT, BaseFetcher, ReservedFetcher, make_session
from fetchers.greenhouse import GreenhouseFetcher
from fetchers.lever import LeverFetcher
from fetchers.meta import MetaFetcher
from fetchers.microsoft import MicrosoftFetcher
from fetchers.tiktok import TikTokFetcher
from fetchers.workday import WorkdayFetcher
from models import JobSource
from tracking import TrackingStore

FETCHER_CLASSES: Dict[JobSource, Type[BaseFetcher]] = {
    JobSource.MICROSOFT: MicrosoftFetcher,
    JobSource.TIKTOK: TikTokFetcher,
    JobSource.META: MetaFetcher,
    JobSource.GREENHOUSE: GreenhouseFetcher,
    JobSource.ASHBY: AshbyFetcher,
    JobSource.LEVER: LeverFetcher,
    JobSource.WORKDAY: WorkdayFetcher,
}


def create_registry(
    tracking: TrackingStore,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    page_delay: float = 0.3,
    sleep: Callable[[float], None] = time.sleep,
) -> Dict[JobSource, BaseFetcher]:
    """Map every JobSource to an adapter; reserved platforms raise SourceNotImplementedError."""
    session = session or make_session()
    options = {"timeout": timeout, "page_delay": page_delay, "sleep": sleep}
    registry: Dict[JobSource, BaseFetcher] = {}
    for source in JobSource:
        fetcher_cls = FETCHER_CLASSES.get(source)
        if fetcher_cls is None:
            registry[source] = ReservedFetcher(source, session, tracking, **options)
        else:
            registry[source] = fetcher_cls(session, tracking, **options)
    return registry


__all__ = ["BaseFetcher", "FETCHER_CLASSES", "create_registry", "make_session"]
