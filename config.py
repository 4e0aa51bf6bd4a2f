"""Environment-based settings for the job aggregator."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _parse_list(raw: str) -> List[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


def _parse_bool(env_name: str, default: bool) -> bool:
    raw = os.getenv(env_name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


@dataclass
class Settings:
    data_dir: str = "data"
    title_filter: str = ""
    location_filter: str = ""
    refresh_interval_minutes: float = 30.0
    max_pages: int = 5
    tiktok_max_pages: int = 350
    request_timeout: float = 15.0
    page_delay: float = 0.3
    board_delay: float = 0.5
    enable_microsoft: bool = True
    enable_tiktok: bool = True
    enable_meta: bool = False
    enable_custom_boards: bool = True
    proxy: str | None = None
    verify_ssl: bool = True
    log_level: str = "INFO"

    @property
    def title_keywords(self) -> List[str]:
        return _parse_list(self.title_filter)

    @property
    def refresh_interval_seconds(self) -> float:
        return self.refresh_interval_minutes * 60

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            data_dir=os.getenv("DATA_DIR", "data"),
            title_filter=os.getenv("TITLE_FILTER", ""),
            location_filter=os.getenv("LOCATION_FILTER", ""),
            refresh_interval_minutes=float(os.getenv("REFRESH_INTERVAL_MINUTES", "30") or 30),
            max_pages=int(os.getenv("MAX_PAGES", "5") or 5),
            tiktok_max_pages=int(os.getenv("TIKTOK_MAX_PAGES", "350") or 350),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "15") or 15),
            page_delay=float(os.getenv("PAGE_DELAY", "0.3") or 0.3),
            board_delay=float(os.getenv("BOARD_DELAY", "0.5") or 0.5),
            enable_microsoft=_parse_bool("ENABLE_MICROSOFT", True),
            enable_tiktok=_parse_bool("ENABLE_TIKTOK", True),
            enable_meta=_parse_bool("ENABLE_META", False),
            enable_custom_boards=_parse_bool("ENABLE_CUSTOM_BOARDS", True),
            proxy=os.getenv("HTTP_PROXY") or os.getenv("HTTPS_PROXY") or None,
            verify_ssl=_parse_bool("VERIFY_SSL", True),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
