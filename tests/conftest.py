# tests/conftest.py

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path
from types import SimpleNamespace
from typing import Any

import pytest

from wbs_sync.core.models import SourceTask
from wbs_sync.core.state import SyncContext

from .fakes import FakeTeambitionAPI

PROJECT_URL = "https://www.teambition.com/project/5f1e2d3c4b5a69788796a5b4/tasks"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with cli.bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="wbs-sync-test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        project_url=PROJECT_URL,
        cookies="TEAMBITION_SESSIONID=abc; TB_ACCESS_TOKEN=xyz",
        manager_name="Manager",
        manager_id="",
        base_url="https://tb.test",
        apps_base_url="https://apps.tb.test",
        request_timeout_seconds=5.0,
        batch_size=20,
        max_concurrent=5,
        rate_limit_max_requests=100,
        rate_limit_window_seconds=1.0,
    )


@pytest.fixture()
def make_task() -> Callable[..., SourceTask]:
    counter = {"row": 1}

    def _make(title: str, **kwargs: Any) -> SourceTask:
        counter["row"] += 1
        kwargs.setdefault("origin_row", counter["row"])
        return SourceTask(title=title, **kwargs)

    return _make


@pytest.fixture()
def scheduled() -> dict[str, date]:
    return {"start_date": date(2024, 3, 1), "end_date": date(2024, 3, 8)}


@pytest.fixture()
def make_context() -> Callable[..., tuple[SyncContext, FakeTeambitionAPI]]:
    """Build a SyncContext whose client factory hands out the given fake API."""

    def _make(api: FakeTeambitionAPI, **overrides: Any) -> tuple[SyncContext, FakeTeambitionAPI]:
        params: dict[str, Any] = {
            "project_url": PROJECT_URL,
            "credential": "cookie=1",
            "client_factory": lambda _credential: api,
            "manager_name": "",
            "manager_id": "mgr-1",
            "batch_size": 20,
            "max_concurrent": 5,
        }
        params.update(overrides)
        return SyncContext(**params), api

    return _make
