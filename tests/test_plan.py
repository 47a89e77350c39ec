# tests/test_plan.py

from __future__ import annotations

from wbs_sync.core.models import UpdateField
from wbs_sync.sync.plan import build_update_plan, hours_to_ms

MEMBERS = {"Alice": "u1", "Bob": "u2"}


def test_hours_to_ms() -> None:
    assert hours_to_ms(1) == 3_600_000
    assert hours_to_ms(1.5) == 5_400_000
    assert hours_to_ms(0.1) == 360_000


def test_full_row_produces_every_field(make_task, scheduled) -> None:
    task = make_task(
        "Design",
        executor_name="Alice",
        involver_names=("Bob", "Alice", "Bob"),
        reminder_rule="on start",
        planned_hours=2,
        **scheduled,
    )

    plan = build_update_plan(task, "t1", MEMBERS, manager_id="mgr-1")

    assert plan.fields() == [
        UpdateField.SCHEDULE,
        UpdateField.REMINDER,
        UpdateField.EXECUTOR,
        UpdateField.INVOLVERS,
        UpdateField.PLANNED_TIME,
    ]
    assert plan.executor.executor_id == "u1"
    assert plan.involvers.involver_ids == ("u2", "u1")
    assert plan.planned_time.planned_ms == 7_200_000
    assert plan.planned_time.missing_prerequisites() == []


def test_empty_row_produces_no_fields(make_task) -> None:
    plan = build_update_plan(make_task("Design"), "t1", MEMBERS, manager_id=None)
    assert plan.fields() == []


def test_single_date_still_updates_schedule(make_task, scheduled) -> None:
    plan = build_update_plan(make_task("Design", end_date=scheduled["end_date"]), "t1", MEMBERS, manager_id=None)
    assert plan.schedule.start_date is None
    assert plan.schedule.end_date == scheduled["end_date"]


def test_unknown_people_are_not_attempted(make_task) -> None:
    task = make_task("Design", executor_name="Ghost", involver_names=("Nobody",))

    plan = build_update_plan(task, "t1", MEMBERS, manager_id=None)

    assert plan.executor is None
    assert plan.involvers is None


def test_planned_time_lists_missing_prerequisites(make_task) -> None:
    task = make_task("Design", executor_name="Ghost", planned_hours=1)

    plan = build_update_plan(task, "t1", MEMBERS, manager_id=None)

    assert plan.planned_time.missing_prerequisites() == ["executor", "start date", "end date", "manager"]
