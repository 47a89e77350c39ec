# src/wbs_sync/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds the SyncContext, loads the source tasks and runs
one sync. Ctrl+C / SIGTERM request a cooperative stop: the current batch
finishes, then the run ends with a summary.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys

from ..cli.bootstrap import create_sync_context, load_source_tasks
from ..config import get_settings
from ..connectors.console_connector import ConsoleProgress, format_summary
from ..core.errors import SyncAbortedError, SyncAlreadyRunningError
from ..core.models import SourceTask, SyncStats
from ..logging_setup import setup_logging
from ..sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_TASK_FAILURES = 1
EXIT_ABORTED = 2


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="wbs-sync", description="Push WBS task fields to Teambition.")
    p.add_argument("tasks_file", help="JSON array of source task rows (spreadsheet ingestion output)")
    p.add_argument("--batch-size", type=int, default=None, help="tasks per batch (default: WBS_BATCH_SIZE or 20)")
    p.add_argument(
        "--max-concurrent",
        type=int,
        default=None,
        help="tasks in flight per batch (default: WBS_MAX_CONCURRENT or 5)",
    )
    return p


def _install_stop_handlers(coordinator: SyncCoordinator) -> None:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, coordinator.stop)
        except (NotImplementedError, RuntimeError, ValueError):
            # Windows event loops do not support add_signal_handler.
            logger.debug("Signal handler not installed for %s", sig)


async def run_sync(coordinator: SyncCoordinator, tasks: list[SourceTask]) -> SyncStats:
    _install_stop_handlers(coordinator)
    return await coordinator.sync(tasks)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    # Progress lines go to stdout via ConsoleProgress; stderr logging only shows problems.
    setup_logging(log_dir=settings.data_dir, console_level=max(console_level, logging.WARNING))

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.info("Starting %s...", settings.app_name)

    try:
        tasks = load_source_tasks(args.tasks_file)
    except (OSError, ValueError) as e:
        print(f"Cannot read tasks file: {e}", file=sys.stderr)
        return EXIT_ABORTED

    ctx = create_sync_context(
        settings=settings,
        batch_size=args.batch_size,
        max_concurrent=args.max_concurrent,
    )
    coordinator = SyncCoordinator(ctx, progress=ConsoleProgress())

    try:
        stats = asyncio.run(run_sync(coordinator, tasks))
    except SyncAbortedError as e:
        print(f"Sync aborted: {e}", file=sys.stderr)
        print(format_summary(e.stats))
        return EXIT_ABORTED
    except SyncAlreadyRunningError as e:
        print(str(e), file=sys.stderr)
        return EXIT_TASK_FAILURES

    print(format_summary(stats))
    logger.info("Bye.")
    return EXIT_TASK_FAILURES if stats.failed else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
