# src/wbs_sync/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


class _ConsoleNoiseFilter(logging.Filter):
    """
    Stderr stays quiet during a run; progress lines go to stdout.

    Our own loggers always pass. httpx/httpcore log each request at INFO and
    only pass from WARNING. Everything else (captured warnings included) needs ERROR.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name == "wbs_sync" or name.startswith("wbs_sync."):
            return True

        if name.startswith(("httpx", "httpcore")):
            return record.levelno >= logging.WARNING

        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/wbs_sync",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Route all records to a filtered stderr handler and to `<log_dir>/wbs_sync.log`.

    Replaces any handlers already on the root logger.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "wbs_sync.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    # The file keeps the full request trail for post-run diagnosis.
    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    logging.captureWarnings(True)


def mask_secret(value: str | None, *, visible: int = 6) -> str:
    """Render a credential for logs: length plus a short prefix, never the whole value."""
    if not value:
        return "<empty>"
    return f"{value[:visible]}... ({len(value)} chars)"
