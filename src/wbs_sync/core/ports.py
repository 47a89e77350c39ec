# src/wbs_sync/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the sync core.

The coordinator depends on Protocols instead of concrete implementations.
This keeps the HTTP client and the UI/progress display swappable and makes testing easier.
"""

from datetime import date
from typing import Protocol

from .models import LogLevel

MemberDirectory = dict[str, str]
# display name -> user id

RemoteTaskIndex = dict[str, str]
# remote task id -> task display name (content)


class ProgressSink(Protocol):
    """Receives discrete (message, level) events: bootstrap milestones, batches, per-task outcomes."""

    def emit(self, message: str, level: LogLevel = LogLevel.INFO) -> None: ...


class TeambitionAPI(Protocol):
    """Domain operations the coordinator needs from the remote service."""

    async def get_organization_id(self, project_id: str) -> str: ...
    async def get_tasklist_id(self, project_id: str) -> str: ...
    async def get_smartgroup_tasklist_id(self, project_id: str) -> str: ...
    async def get_all_members(self, project_id: str) -> MemberDirectory: ...

    async def get_all_tasks(
            self,
            project_id: str,
            tasklist_id: str,
            smartgroup_id: str,
    ) -> RemoteTaskIndex: ...

    async def update_task_dates(self, task_id: str, start_date: date | None, end_date: date | None) -> None: ...
    async def set_task_reminder(self, task_id: str, reminder_rule: str) -> None: ...
    async def set_task_executor(self, task_id: str, user_id: str) -> None: ...
    async def add_task_involvers(self, task_id: str, user_ids: list[str]) -> None: ...

    async def top_up_planned_time(
            self,
            task_id: str,
            *,
            user_id: str,
            manager_id: str,
            organization_id: str,
            start_date: date,
            end_date: date,
            planned_ms: int,
    ) -> int: ...

    def clear_cache(self) -> None: ...
    async def aclose(self) -> None: ...
