"""File-backed persistence for board configs, job snapshots and tracking files."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Optional

from models import BoardConfig, Job

logger = logging.getLogger(__name__)

BOARD_CONFIGS_FILE = "boardConfigs.json"
JOBS_FILE = "jobs.json"


class FileStorage:
    """Named blobs under one directory; writes replace the target atomically."""

    def __init__(self, root: str | os.PathLike) -> None:
        self.root = Path(root)

    def path(self, name: str) -> Path:
        return self.root / name

    def read(self, name: str) -> Optional[bytes]:
        try:
            return self.path(name).read_bytes()
        except FileNotFoundError:
            return None

    def write(self, name: str, data: bytes) -> None:
        target = self.path(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.replace(tmp_path, target)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def read_json(self, name: str) -> Any:
        raw = self.read(name)
        if raw is None:
            return None
        return json.loads(raw.decode("utf-8"))

    def write_json(self, name: str, payload: Any) -> None:
        self.write(name, json.dumps(payload, indent=2, ensure_ascii=False).encode("utf-8"))

    def load_board_configs(self) -> List[BoardConfig]:
        try:
            payload = self.read_json(BOARD_CONFIGS_FILE) or []
            return [BoardConfig.from_dict(entry) for entry in payload]
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not read %s (%s); starting with no boards", BOARD_CONFIGS_FILE, exc)
            return []

    def save_board_configs(self, configs: Iterable[BoardConfig]) -> None:
        self.write_json(BOARD_CONFIGS_FILE, [config.to_dict() for config in configs])

    def load_jobs(self) -> List[Job]:
        try:
            payload = self.read_json(JOBS_FILE) or []
            return [Job.from_dict(entry) for entry in payload]
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not read %s (%s); treating snapshot as empty", JOBS_FILE, exc)
            return []

    def save_jobs(self, jobs: Iterable[Job]) -> None:
        self.write_json(JOBS_FILE, [job.to_dict() for job in jobs])
