"""Per-source first-seen dates for job ids, with retention pruning."""

from __future__ import annotations

import datetime as dt
import logging
import threading
from typing import Dict, Iterable, Optional

from models import JobSource, format_datetime, parse_datetime, utcnow
from storage import FileStorage

logger = logging.getLogger(__name__)

RETENTION_DAYS = 60


def tracking_file_name(source: JobSource, slug: Optional[str] = None) -> str:
    if slug:
        return f"{source.tag}_{slug}_tracking.json"
    return f"{source.tag}JobTracking.json"


class TrackingStore:
    """
    Maps job id -> first-seen date for each tracking file.

    Dates are only ever inserted, never moved. record() runs load, merge and
    save under the per-file lock. The lock is reentrant, so an adapter run can
    hold it from its initial load through the final record().
    """

    def __init__(self, storage: FileStorage, retention_days: int = RETENTION_DAYS) -> None:
        self.storage = storage
        self.retention = dt.timedelta(days=retention_days)
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    def lock_for(self, name: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.RLock()
            return lock

    def load(self, name: str) -> Dict[str, dt.datetime]:
        try:
            payload = self.storage.read_json(name)
        except (OSError, ValueError) as exc:
            logger.warning("Tracking file %s unreadable (%s); starting fresh", name, exc)
            return {}
        if not isinstance(payload, list):
            return {}
        records: Dict[str, dt.datetime] = {}
        for entry in payload:
            if not isinstance(entry, dict):
                continue
            seen = parse_datetime(entry.get("firstSeenDate"))
            if entry.get("id") is None or seen is None:
                continue
            records[str(entry["id"])] = seen
        return records

    @staticmethod
    def merge(
        records: Dict[str, dt.datetime], job_ids: Iterable[str], now: dt.datetime
    ) -> Dict[str, dt.datetime]:
        merged = dict(records)
        for job_id in job_ids:
            merged.setdefault(job_id, now)
        return merged

    def save(self, name: str, records: Dict[str, dt.datetime], now: Optional[dt.datetime] = None) -> Dict[str, dt.datetime]:
        cutoff = (now or utcnow()) - self.retention
        kept = {job_id: seen for job_id, seen in records.items() if seen > cutoff}
        pruned = len(records) - len(kept)
        if pruned:
            logger.debug("Pruned %d expired records from %s", pruned, name)
        payload = [{"id": job_id, "firstSeenDate": format_datetime(seen)} for job_id, seen in kept.items()]
        self.storage.write_json(name, payload)
        return kept

    def record(self, name: str, job_ids: Iterable[str], now: Optional[dt.datetime] = None) -> Dict[str, dt.datetime]:
        now = now or utcnow()
        with self.lock_for(name):
            merged = self.merge(self.load(name), job_ids, now)
            return self.save(name, merged, now)
