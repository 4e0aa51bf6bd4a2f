"""CLI entry for aggregating career-site job postings."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections import Counter
from typing import List, Optional

from config import Settings
from detector import detect_board
from errors import FetchError
from fetchers import create_registry, make_session
from scheduler import Aggregator
from storage import FileStorage
from tracking import TrackingStore

logger = logging.getLogger(__name__)


def build_aggregator(settings: Settings) -> Aggregator:
    storage = FileStorage(settings.data_dir)
    session = make_session(settings.verify_ssl, settings.proxy)
    registry = create_registry(
        TrackingStore(storage),
        session=session,
        timeout=settings.request_timeout,
        page_delay=settings.page_delay,
    )
    return Aggregator(settings, storage, registry)


def cmd_fetch(aggregator: Aggregator, args: argparse.Namespace) -> int:
    result = aggregator.run_cycle()
    if result is None:
        return 1
    recent = sum(1 for job in result.jobs if job.is_recent(result.finished_at))
    print(f"Jobs total: {len(result.jobs)} ({len(result.new_job_ids)} new, {recent} in the last 24h)")
    print("By source:", Counter(job.source.value for job in result.jobs))
    for job in result.jobs[: args.show]:
        print(f"  [{job.source.value}] {job.title} | {job.location} | {job.url}")
    if result.error_message:
        print(f"Errors: {result.error_message}")
    return 0


def cmd_monitor(aggregator: Aggregator, args: argparse.Namespace) -> int:
    aggregator.on_cycle_complete = lambda result: logger.info(
        "%d jobs, %d new", len(result.jobs), len(result.new_job_ids)
    )
    aggregator.start_monitoring()
    logger.info("Monitoring; Ctrl-C to stop")
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("Stopping monitor")
    finally:
        aggregator.stop_monitoring()
    return 0


def cmd_boards(aggregator: Aggregator, args: argparse.Namespace) -> int:
    action = args.action
    if action == "list":
        for config in aggregator.board_configs:
            state = "enabled" if config.is_enabled else "disabled"
            support = "" if config.is_supported else " (not supported yet)"
            fetched = config.last_fetched.isoformat() if config.last_fetched else "never"
            print(f"{config.id}  {config.display_name} [{config.source.value}{support}] {state}, last fetched {fetched}")
            print(f"    {config.url}")
        return 0
    if action == "add":
        try:
            config = aggregator.add_board(args.url, name=args.name or "")
        except (FetchError, ValueError) as exc:
            print(exc, file=sys.stderr)
            return 1
        print(f"Added {config.display_name} ({config.source.value})")
        return 0
    if action == "remove":
        config = aggregator.find_board(args.board)
        if config is None or not aggregator.remove_board(config.id):
            print(f"No board matches {args.board}", file=sys.stderr)
            return 1
        print(f"Removed {config.display_name}")
        return 0
    if action == "import":
        with open(args.path, encoding="utf-8") as fh:
            result = aggregator.import_boards(fh.read())
        print(f"Imported {result.added} boards, {len(result.skipped)} already present, {len(result.failed)} failed")
        for line in result.failed:
            print(f"  failed: {line}")
        return 0
    if action == "export":
        text = aggregator.export_boards()
        if args.path:
            with open(args.path, "w", encoding="utf-8") as fh:
                fh.write(text)
        else:
            print(text, end="")
        return 0
    if action == "test":
        config = aggregator.find_board(args.board)
        if config is None:
            print(f"No board matches {args.board}", file=sys.stderr)
            return 1
        print(f"{config.display_name}: {aggregator.test_board(config)}")
        return 0
    return 2


def cmd_detect(aggregator: Aggregator, args: argparse.Namespace) -> int:
    try:
        result = detect_board(args.url, session=make_session(aggregator.settings.verify_ssl, aggregator.settings.proxy))
    except FetchError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"{result.message} ({result.confidence.value})")
    if result.detected and args.add:
        try:
            config = aggregator.add_board(result.board_url, name=args.name or "")
        except (FetchError, ValueError) as exc:
            print(exc, file=sys.stderr)
            return 1
        print(f"Added {config.display_name}")
    return 0 if result.detected else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="job-aggregator", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="run one aggregation cycle")
    fetch.add_argument("--show", type=int, default=20, help="number of jobs to print")
    fetch.set_defaults(handler=cmd_fetch)

    monitor = sub.add_parser("monitor", help="refresh on a schedule until interrupted")
    monitor.set_defaults(handler=cmd_monitor)

    boards = sub.add_parser("boards", help="manage custom job boards")
    actions = boards.add_subparsers(dest="action", required=True)
    actions.add_parser("list")
    add = actions.add_parser("add")
    add.add_argument("url")
    add.add_argument("--name")
    remove = actions.add_parser("remove")
    remove.add_argument("board", help="board id, url or name")
    imp = actions.add_parser("import")
    imp.add_argument("path")
    exp = actions.add_parser("export")
    exp.add_argument("path", nargs="?")
    test = actions.add_parser("test")
    test.add_argument("board", help="board id, url or name")
    boards.set_defaults(handler=cmd_boards)

    detect = sub.add_parser("detect", help="detect the ATS behind a careers page")
    detect.add_argument("url")
    detect.add_argument("--add", action="store_true", help="add the detected board")
    detect.add_argument("--name")
    detect.set_defaults(handler=cmd_detect)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)
    aggregator = build_aggregator(settings)
    try:
        return args.handler(aggregator, args)
    finally:
        aggregator.shutdown()


if __name__ == "__main__":
    sys.exit(main())
