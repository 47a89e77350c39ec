# tests/test_models.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from wbs_sync.core.models import SourceTask, SyncStats, parse_date, split_names


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-03-01", date(2024, 3, 1)),
        ("2024/03/01", date(2024, 3, 1)),
        ("2024-03-01T00:00:00", date(2024, 3, 1)),
        ("2024-03-01 08:00", date(2024, 3, 1)),
        (datetime(2024, 3, 1, 9, 30), date(2024, 3, 1)),
        (date(2024, 3, 1), date(2024, 3, 1)),
        ("", None),
        ("next tuesday", None),
        (None, None),
    ],
)
def test_parse_date(raw, expected) -> None:
    assert parse_date(raw) == expected


def test_split_names() -> None:
    assert split_names("Alice, Bob，Carol\nDave") == ("Alice", "Bob", "Carol", "Dave")
    assert split_names(["Alice ", "", " Bob"]) == ("Alice", "Bob")
    assert split_names(None) == ()


def test_from_dict_snake_case_row() -> None:
    task = SourceTask.from_dict(
        {
            "task_title": " Design ",
            "origin_row": 7,
            "task_number": "1.1",
            "start_date": "2024-03-01",
            "end_date": "2024-03-08",
            "reminder_rule": "on due",
            "executor": "Alice",
            "involvers": "Bob, Carol",
            "planned_hours": "2.5",
        }
    )

    assert task.title == "Design"
    assert task.origin_row == 7
    assert task.display_name == "1.1 Design"
    assert task.start_date == date(2024, 3, 1)
    assert task.end_date == date(2024, 3, 8)
    assert task.reminder_rule == "on due"
    assert task.executor_name == "Alice"
    assert task.involver_names == ("Bob", "Carol")
    assert task.planned_hours == 2.5


def test_from_dict_camel_case_aliases_and_default_row() -> None:
    task = SourceTask.from_dict(
        {"taskTitle": "Build", "dueDate": "2024/04/02", "executorName": "Bob", "plannedHours": 3},
        default_row=12,
    )

    assert task.origin_row == 12
    assert task.end_date == date(2024, 4, 2)
    assert task.start_date is None
    assert task.executor_name == "Bob"
    assert task.planned_hours == 3.0
    assert task.display_name == "Build"


def test_from_dict_invalid_values_are_dropped() -> None:
    task = SourceTask.from_dict(
        {"title": "Ship", "start_date": "soon", "planned_hours": "a lot", "involvers": ""}
    )

    assert task.start_date is None
    assert task.planned_hours is None
    assert task.involver_names == ()


def test_from_dict_rejects_non_finite_hours() -> None:
    assert SourceTask.from_dict({"title": "Ship", "planned_hours": "nan"}).planned_hours is None


def test_from_dict_requires_title() -> None:
    with pytest.raises(ValueError, match="title"):
        SourceTask.from_dict({"task_number": "1.1"}, default_row=3)


def test_sync_stats_rate_and_processed() -> None:
    stats = SyncStats(total=3, success=2, failed=1)
    assert stats.processed == 3
    assert stats.success_rate == 67
    assert SyncStats().success_rate == 0
