"""Aggregation cycles over all configured sources, plus the refresh schedule."""

from __future__ import annotations

import datetime as dt
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler

from boards import ImportResult, export_boards, parse_board_lines
from config import Settings
from errors import FetchError, InvalidURLError, NoJobsError
from fetchers.base import BaseFetcher
from models import BoardConfig, Job, JobSource, utcnow
from storage import FileStorage

logger = logging.getLogger(__name__)

ERROR_SEPARATOR = " • "
TEST_RESULT_TTL = 3.0
CYCLE_JOB_ID = "aggregation-cycle"


class AggregatorState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    ERROR_REPORTED = "error-reported"


@dataclass
class SourceStatus:
    name: str
    state: str
    job_count: int = 0
    message: Optional[str] = None
    updated_at: dt.datetime = field(default_factory=utcnow)


@dataclass
class CycleResult:
    jobs: List[Job]
    new_job_ids: Set[str]
    errors: Dict[str, str]
    started_at: dt.datetime
    finished_at: dt.datetime

    @property
    def error_message(self) -> Optional[str]:
        if not self.errors:
            return None
        return ERROR_SEPARATOR.join(f"{name}: {message}" for name, message in self.errors.items())


@dataclass
class _Target:
    name: str
    source: JobSource
    max_pages: int
    board: Optional[BoardConfig] = None


def merge_jobs(batches: List[List[Job]]) -> List[Job]:
    """Deduplicate by id (first occurrence wins) and rank freshest first."""
    merged: Dict[str, Job] = {}
    for batch in batches:
        for job in batch:
            merged.setdefault(job.id, job)
    return sorted(merged.values(), key=lambda job: job.sort_date, reverse=True)


class Aggregator:
    def __init__(
        self,
        settings: Settings,
        storage: FileStorage,
        registry: Dict[JobSource, BaseFetcher],
        sleep: Callable[[float], None] = time.sleep,
        scheduler: Optional[BaseScheduler] = None,
    ) -> None:
        self.settings = settings
        self.storage = storage
        self.registry = registry
        self.sleep = sleep
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")

        self.board_configs: List[BoardConfig] = storage.load_board_configs()
        self.jobs: List[Job] = storage.load_jobs()
        self.state = AggregatorState.IDLE
        self.last_error: Optional[str] = None
        self.last_result: Optional[CycleResult] = None
        self.statuses: Dict[str, SourceStatus] = {}
        self.test_results: Dict[str, str] = {}
        self.on_cycle_complete: Optional[Callable[[CycleResult], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

        self._cycle_lock = threading.Lock()
        self._lock = threading.RLock()

    # Cycle

    def targets(self) -> List[_Target]:
        settings = self.settings
        targets: List[_Target] = []
        builtin = (
            (JobSource.MICROSOFT, settings.enable_microsoft, settings.max_pages),
            (JobSource.TIKTOK, settings.enable_tiktok, settings.tiktok_max_pages),
            (JobSource.META, settings.enable_meta, settings.max_pages),
        )
        for source, enabled, max_pages in builtin:
            if enabled:
                targets.append(_Target(source.value, source, max_pages))
        if settings.enable_custom_boards:
            with self._lock:
                configs = list(self.board_configs)
            for config in configs:
                if config.is_enabled and config.is_supported:
                    targets.append(_Target(config.display_name, config.source, settings.max_pages, config))
        return targets

    def run_cycle(self) -> Optional[CycleResult]:
        """Run one aggregation cycle; returns None if a cycle is already in flight."""
        if not self._cycle_lock.acquire(blocking=False):
            logger.info("Aggregation already in progress; ignoring trigger")
            return None
        try:
            return self._run_cycle()
        finally:
            self.state = AggregatorState.IDLE
            self._cycle_lock.release()

    def _run_cycle(self) -> CycleResult:
        started = utcnow()
        self.state = AggregatorState.FETCHING
        targets = self.targets()
        logger.info("Starting aggregation cycle over %d sources", len(targets))

        batches: List[List[Job]] = []
        errors: Dict[str, str] = {}
        attempted: Set[str] = set()
        successes = 0
        for index, target in enumerate(targets):
            if index and self.settings.board_delay > 0:
                self.sleep(self.settings.board_delay)
            self._set_status(target.name, "fetching")
            if target.board is not None:
                attempted.add(target.board.id)
            try:
                jobs = self._fetch_target(target)
            except FetchError as exc:
                logger.warning("%s failed: %s", target.name, exc)
                errors[target.name] = str(exc)
                self._set_status(target.name, "failed", message=str(exc))
                continue
            except Exception as exc:
                logger.exception("%s failed unexpectedly", target.name)
                errors[target.name] = str(exc) or exc.__class__.__name__
                self._set_status(target.name, "failed", message=errors[target.name])
                continue
            successes += 1
            batches.append(jobs)
            self._set_status(target.name, "success", job_count=len(jobs))

        finished = utcnow()
        self._mark_fetched(attempted, finished)

        previous_ids = {job.id for job in self.jobs}
        if successes or not targets:
            merged = merge_jobs(batches)
        else:
            logger.warning("Every source failed; keeping the previous snapshot")
            merged = list(self.jobs)
        new_ids = {job.id for job in merged} - previous_ids
        self.jobs = merged
        try:
            self.storage.save_jobs(merged)
        except OSError as exc:
            logger.warning("Could not save job snapshot: %s", exc)

        result = CycleResult(merged, new_ids, errors, started, finished)
        self.last_result = result
        self.last_error = result.error_message
        logger.info(
            "Cycle finished: %d jobs (%d new), %d failed sources", len(merged), len(new_ids), len(errors)
        )
        if self.last_error:
            self.state = AggregatorState.ERROR_REPORTED
            if self.on_error is not None:
                self.on_error(self.last_error)
        self.state = AggregatorState.IDLE
        if self.on_cycle_complete is not None:
            self.on_cycle_complete(result)
        return result

    def _fetch_target(self, target: _Target) -> List[Job]:
        fetcher = self.registry[target.source]
        try:
            return fetcher.fetch(
                self.settings.title_filter,
                self.settings.location_filter,
                target.max_pages,
                board_url=target.board.url if target.board else None,
            )
        except NoJobsError:
            logger.info("%s has no matching jobs", target.name)
            return []

    def _set_status(self, name: str, state: str, job_count: int = 0, message: Optional[str] = None) -> None:
        with self._lock:
            self.statuses[name] = SourceStatus(name, state, job_count, message)

    def _mark_fetched(self, board_ids: Set[str], when: dt.datetime) -> None:
        if not board_ids:
            return
        with self._lock:
            self.board_configs = [
                config.mark_fetched(when) if config.id in board_ids else config for config in self.board_configs
            ]
            self._save_configs()

    # Monitoring

    def start_monitoring(self) -> None:
        """Run one cycle right away, then re-run every refresh interval.

        The interval job has a fixed id, so starting again replaces the
        existing schedule instead of adding a second one.
        """
        self.scheduler.add_job(
            self.run_cycle,
            "interval",
            seconds=self.settings.refresh_interval_seconds,
            id=CYCLE_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            next_run_time=utcnow(),
        )
        self._ensure_scheduler()
        logger.info("Refreshing every %.0f minutes", self.settings.refresh_interval_minutes)

    def stop_monitoring(self) -> None:
        if self.scheduler.get_job(CYCLE_JOB_ID) is not None:
            self.scheduler.remove_job(CYCLE_JOB_ID)
            logger.info("Stopped periodic refresh")

    @property
    def is_monitoring(self) -> bool:
        return self.scheduler.get_job(CYCLE_JOB_ID) is not None

    def shutdown(self, wait: bool = False) -> None:
        self.stop_monitoring()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

    def _ensure_scheduler(self) -> None:
        with self._lock:
            if not self.scheduler.running:
                self.scheduler.start()

    # Board management

    def test_board(self, config: BoardConfig) -> str:
        """Fetch one board unfiltered; never touches the merged job list."""
        self.test_results[config.id] = "Testing..."
        try:
            jobs = self.registry[config.source].fetch("", "", self.settings.max_pages, board_url=config.url)
            message = f"Found {len(jobs)} jobs"
        except NoJobsError:
            message = "Found 0 jobs"
        except FetchError as exc:
            message = f"Error: {exc}"
        except Exception as exc:
            logger.exception("Testing %s failed unexpectedly", config.display_name)
            message = f"Error: {str(exc) or exc.__class__.__name__}"
        if not message.startswith("Error"):
            self.update_board(config.mark_fetched())
        self.test_results[config.id] = message
        self.scheduler.add_job(
            self._clear_test_result,
            "date",
            run_date=utcnow() + dt.timedelta(seconds=TEST_RESULT_TTL),
            args=[config.id, message],
            id=f"clear-test-result-{config.id}",
            replace_existing=True,
        )
        self._ensure_scheduler()
        return message

    def _clear_test_result(self, board_id: str, message: str) -> None:
        if self.test_results.get(board_id) == message:
            del self.test_results[board_id]

    def add_board(self, url: str, name: str = "", is_enabled: bool = True) -> BoardConfig:
        config = BoardConfig.from_url(url, name=name, is_enabled=is_enabled)
        if config is None:
            raise InvalidURLError(url)
        with self._lock:
            if any(existing.url.lower() == config.url.lower() for existing in self.board_configs):
                raise ValueError(f"Board already configured: {config.url}")
            self.board_configs.append(config)
            self._save_configs()
        return config

    def remove_board(self, board_id: str) -> bool:
        with self._lock:
            remaining = [config for config in self.board_configs if config.id != board_id]
            if len(remaining) == len(self.board_configs):
                return False
            self.board_configs = remaining
            self._save_configs()
        return True

    def update_board(self, updated: BoardConfig) -> None:
        with self._lock:
            self.board_configs = [updated if config.id == updated.id else config for config in self.board_configs]
            self._save_configs()

    def find_board(self, key: str) -> Optional[BoardConfig]:
        with self._lock:
            for config in self.board_configs:
                if key in (config.id, config.url, config.name):
                    return config
        return None

    def import_boards(self, text: str) -> ImportResult:
        with self._lock:
            result = parse_board_lines(text, existing_urls=[config.url for config in self.board_configs])
            if result.configs:
                self.board_configs.extend(result.configs)
                self._save_configs()
        logger.info("Imported %d boards (%d failed lines)", result.added, len(result.failed))
        return result

    def export_boards(self) -> str:
        with self._lock:
            return export_boards(self.board_configs)

    def _save_configs(self) -> None:
        try:
            self.storage.save_board_configs(self.board_configs)
        except OSError as exc:
            logger.warning("Could not save board configs: %s", exc)
