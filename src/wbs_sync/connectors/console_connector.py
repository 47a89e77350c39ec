# src/wbs_sync/connectors/console_connector.py

from __future__ import annotations

import sys
from datetime import datetime
from typing import TextIO

from ..core.models import LogLevel, SyncStats


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%H:%M:%S")


class ConsoleProgress:
    """ProgressSink that prints `[HH:MM:SS] [LEVEL] message` lines."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def emit(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        out = self._stream or sys.stdout
        print(f"[{_ts_local()}] [{level.value}] {message}", file=out, flush=True)


def format_summary(stats: SyncStats) -> str:
    lines = [
        f"Total: {stats.total}  Success: {stats.success}  Failed: {stats.failed}  "
        f"Skipped: {stats.skipped}  ({stats.success_rate}%)",
    ]
    if stats.cancelled:
        lines.append("Run was interrupted before all tasks were processed.")
    if stats.failed_tasks:
        lines.append("Failed tasks:")
        for ft in sorted(stats.failed_tasks, key=lambda f: f.row):
            lines.append(f"  row {ft.row}: {ft.task_name} - {ft.error}")
    return "\n".join(lines)
