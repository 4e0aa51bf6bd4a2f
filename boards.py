"""Plain-text import/export of board lists."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from models import BoardConfig

logger = logging.getLogger(__name__)

HEADER = "# Job boards: url | name | enabled|disabled"


@dataclass
class ImportResult:
    configs: List[BoardConfig] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def added(self) -> int:
        return len(self.configs)


def export_boards(configs: Iterable[BoardConfig]) -> str:
    lines = [HEADER]
    for config in configs:
        state = "enabled" if config.is_enabled else "disabled"
        lines.append(f"{config.url} | {config.name} | {state}")
    return "\n".join(lines) + "\n"


def parse_board_line(line: str) -> BoardConfig | None:
    parts = [part.strip() for part in line.split("|")]
    url = parts[0] if parts else ""
    if not url:
        return None
    name = parts[1] if len(parts) > 1 else ""
    is_enabled = parts[2].lower() != "disabled" if len(parts) > 2 and parts[2] else True
    return BoardConfig.from_url(url, name=name, is_enabled=is_enabled)


def parse_board_lines(text: str, existing_urls: Iterable[str] = ()) -> ImportResult:
    """Parse exported board lines; unrecognized lines are reported, never raised."""
    result = ImportResult()
    seen = {url.strip().lower() for url in existing_urls}
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        config = parse_board_line(line)
        if config is None:
            logger.debug("Could not import board line %r", line)
            result.failed.append(line)
            continue
        key = config.url.lower()
        if key in seen:
            result.skipped.append(line)
            continue
        seen.add(key)
        result.configs.append(config)
    return result
