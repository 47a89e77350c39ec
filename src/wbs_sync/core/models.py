# src/wbs_sync/core/models.py

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

_NAME_SPLIT_RE = re.compile(r"[,，\n]")
_DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


class LogLevel(StrEnum):
    """Levels of the progress stream shown to the user."""

    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"

    def to_logging(self) -> int:
        if self is LogLevel.WARN:
            return logging.WARNING
        if self is LogLevel.ERROR:
            return logging.ERROR
        return logging.INFO


class UpdateField(StrEnum):
    SCHEDULE = "schedule"
    REMINDER = "reminder"
    EXECUTOR = "executor"
    INVOLVERS = "involvers"
    PLANNED_TIME = "plannedTime"


def parse_date(raw: Any) -> date | None:
    """Accept date/datetime objects or YYYY-MM-DD strings; anything else is None."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    # Spreadsheet exports sometimes carry a time part.
    s = s.split("T", 1)[0].split(" ", 1)[0]
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def split_names(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if isinstance(raw, (list, tuple)):
        parts = [str(p) for p in raw]
    else:
        parts = _NAME_SPLIT_RE.split(str(raw))
    return tuple(p.strip() for p in parts if p and p.strip())


def _pick(row: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if k in row and row[k] is not None:
            return row[k]
    return None


def _text(raw: Any) -> str | None:
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


@dataclass(frozen=True, slots=True)
class SourceTask:
    """One locally-authored work item (one spreadsheet data row)."""

    title: str
    origin_row: int
    task_number: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    reminder_rule: str | None = None
    executor_name: str | None = None
    involver_names: tuple[str, ...] = ()
    planned_hours: float | None = None

    @property
    def display_name(self) -> str:
        return f"{self.task_number or ''} {self.title}".strip()

    @classmethod
    def from_dict(cls, row: dict[str, Any], *, default_row: int = 0) -> SourceTask:
        """
        Build a SourceTask from an ingestion record.

        Keys follow the ingestion output (snake_case), camelCase aliases are accepted.
        """
        title = _text(_pick(row, "task_title", "title", "taskTitle", "name"))
        if not title:
            raise ValueError(f"Row {default_row}: task title is missing")

        origin_row_raw = _pick(row, "origin_row", "rowIndex", "row")
        try:
            origin_row = int(origin_row_raw) if origin_row_raw is not None else default_row
        except (TypeError, ValueError):
            origin_row = default_row

        start_raw = _pick(row, "start_date", "startDate")
        end_raw = _pick(row, "end_date", "endDate", "due_date", "dueDate")
        start_date = parse_date(start_raw)
        end_date = parse_date(end_raw)
        if start_date is None and _text(start_raw):
            logger.warning("Row %s: invalid start date %r ignored", origin_row, start_raw)
        if end_date is None and _text(end_raw):
            logger.warning("Row %s: invalid end date %r ignored", origin_row, end_raw)

        planned_hours: float | None = None
        plan_raw = _pick(row, "planned_hours", "plannedHours", "plan_time", "planTime")
        if _text(plan_raw) is not None:
            try:
                planned_hours = float(plan_raw)
            except (TypeError, ValueError):
                logger.warning("Row %s: invalid planned time %r ignored", origin_row, plan_raw)
            else:
                if not math.isfinite(planned_hours):
                    planned_hours = None

        return cls(
            title=title,
            origin_row=origin_row,
            task_number=_text(_pick(row, "task_number", "taskNumber")),
            start_date=start_date,
            end_date=end_date,
            reminder_rule=_text(_pick(row, "reminder_rule", "reminderRule")),
            executor_name=_text(_pick(row, "executor", "executor_name", "executorName")),
            involver_names=split_names(_pick(row, "involvers", "involver_names", "involverNames")),
            planned_hours=planned_hours,
        )


@dataclass(slots=True, frozen=True)
class FieldResult:
    ok: bool
    reason: str | None = None


# Per attempted field; absent key means the field had nothing to update.
FieldUpdateOutcome = dict[UpdateField, FieldResult]


@dataclass(slots=True, frozen=True)
class FailedTask:
    row: int
    task_name: str
    error: str


@dataclass(slots=True)
class SyncStats:
    total: int = 0
    success: int = 0
    failed: int = 0
    skipped: int = 0
    failed_tasks: list[FailedTask] = field(default_factory=list)
    cancelled: bool = False

    @property
    def processed(self) -> int:
        return self.success + self.failed + self.skipped

    @property
    def success_rate(self) -> int:
        """Percentage of successful tasks (rounded), 0 for an empty run."""
        if self.total <= 0:
            return 0
        return round(self.success * 100 / self.total)
