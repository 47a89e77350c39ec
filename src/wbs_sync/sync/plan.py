# src/wbs_sync/sync/plan.py

from __future__ import annotations

"""
Per-task update plan.

Each field category gets its own small struct; a field is None when the
source row has nothing to write for it. Name -> id resolution against the
member directory happens here, so the coordinator only deals with ids.
"""

from dataclasses import dataclass
from datetime import date

from ..core.models import SourceTask, UpdateField
from ..core.ports import MemberDirectory

MS_PER_HOUR = 3_600_000


@dataclass(slots=True, frozen=True)
class ScheduleUpdate:
    start_date: date | None
    end_date: date | None


@dataclass(slots=True, frozen=True)
class ReminderUpdate:
    rule: str


@dataclass(slots=True, frozen=True)
class ExecutorUpdate:
    executor_id: str


@dataclass(slots=True, frozen=True)
class InvolversUpdate:
    involver_ids: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class PlannedTimeUpdate:
    planned_ms: int
    executor_id: str | None
    manager_id: str | None
    start_date: date | None
    end_date: date | None

    def missing_prerequisites(self) -> list[str]:
        missing: list[str] = []
        if not self.executor_id:
            missing.append("executor")
        if self.start_date is None:
            missing.append("start date")
        if self.end_date is None:
            missing.append("end date")
        if not self.manager_id:
            missing.append("manager")
        return missing


@dataclass(slots=True, frozen=True)
class TaskUpdatePlan:
    task_id: str
    schedule: ScheduleUpdate | None = None
    reminder: ReminderUpdate | None = None
    executor: ExecutorUpdate | None = None
    involvers: InvolversUpdate | None = None
    planned_time: PlannedTimeUpdate | None = None

    def fields(self) -> list[UpdateField]:
        """Fields that will be attempted, in application order."""
        out: list[UpdateField] = []
        if self.schedule is not None:
            out.append(UpdateField.SCHEDULE)
        if self.reminder is not None:
            out.append(UpdateField.REMINDER)
        if self.executor is not None:
            out.append(UpdateField.EXECUTOR)
        if self.involvers is not None:
            out.append(UpdateField.INVOLVERS)
        if self.planned_time is not None:
            out.append(UpdateField.PLANNED_TIME)
        return out


def hours_to_ms(hours: float) -> int:
    return int(round(hours * MS_PER_HOUR))


def build_update_plan(
        task: SourceTask,
        task_id: str,
        members: MemberDirectory,
        *,
        manager_id: str | None,
) -> TaskUpdatePlan:
    schedule = None
    if task.start_date is not None or task.end_date is not None:
        schedule = ScheduleUpdate(start_date=task.start_date, end_date=task.end_date)

    reminder = ReminderUpdate(rule=task.reminder_rule) if task.reminder_rule else None

    # Unknown executor name: the field is simply not attempted.
    executor_id = members.get(task.executor_name) if task.executor_name else None
    executor = ExecutorUpdate(executor_id=executor_id) if executor_id else None

    involver_ids: list[str] = []
    for name in task.involver_names:
        uid = members.get(name)
        if uid and uid not in involver_ids:
            involver_ids.append(uid)
    involvers = InvolversUpdate(involver_ids=tuple(involver_ids)) if involver_ids else None

    planned_time = None
    if task.planned_hours is not None:
        planned_time = PlannedTimeUpdate(
            planned_ms=hours_to_ms(task.planned_hours),
            executor_id=executor_id,
            manager_id=manager_id,
            start_date=task.start_date,
            end_date=task.end_date,
        )

    return TaskUpdatePlan(
        task_id=task_id,
        schedule=schedule,
        reminder=reminder,
        executor=executor,
        involvers=involvers,
        planned_time=planned_time,
    )
