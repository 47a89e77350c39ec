# tests/test_console_connector.py

from __future__ import annotations

import io
import re

from wbs_sync.connectors.console_connector import ConsoleProgress, format_summary
from wbs_sync.core.models import FailedTask, LogLevel, SyncStats
from wbs_sync.logging_setup import mask_secret


def test_console_progress_line_format() -> None:
    buf = io.StringIO()

    ConsoleProgress(buf).emit("Updated task: Design", LogLevel.SUCCESS)

    assert re.fullmatch(r"\[\d{2}:\d{2}:\d{2}\] \[SUCCESS\] Updated task: Design\n", buf.getvalue())


def test_summary_lists_failures_by_row() -> None:
    stats = SyncStats(
        total=4,
        success=1,
        failed=2,
        skipped=1,
        failed_tasks=[
            FailedTask(row=9, task_name="Build", error="executor: HTTP 400"),
            FailedTask(row=3, task_name="Design", error="missing manager"),
        ],
    )

    text = format_summary(stats)

    assert text.splitlines() == [
        "Total: 4  Success: 1  Failed: 2  Skipped: 1  (25%)",
        "Failed tasks:",
        "  row 3: Design - missing manager",
        "  row 9: Build - executor: HTTP 400",
    ]


def test_summary_mentions_interruption() -> None:
    text = format_summary(SyncStats(total=10, success=2, cancelled=True))
    assert "interrupted" in text


def test_mask_secret() -> None:
    assert mask_secret("") == "<empty>"
    assert mask_secret("TEAMBITION_SESSIONID=abc") == "TEAMBI... (24 chars)"
