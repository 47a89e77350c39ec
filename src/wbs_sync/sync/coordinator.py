# src/wbs_sync/sync/coordinator.py

from __future__ import annotations

"""
Sync coordinator.

One sync() call:
- validates the project reference and credential,
- bootstraps organization / tasklist / members / remote task index once,
- walks the source tasks in sequential batches,
- runs the tasks of a batch concurrently (bounded by a semaphore),
- applies each populated field independently and folds results into SyncStats.

Cancellation is cooperative: stop() is observed before each batch and at
each task start. Remote calls already in flight run to completion.
"""

import asyncio
import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass

from ..core.errors import ConfigurationError, SyncAbortedError, SyncAlreadyRunningError
from ..core.models import FailedTask, FieldResult, FieldUpdateOutcome, LogLevel, SourceTask, SyncStats, UpdateField
from ..core.ports import MemberDirectory, ProgressSink, RemoteTaskIndex, TeambitionAPI
from ..core.state import SyncContext
from ..remote.client import extract_project_id
from .matcher import match_task
from .plan import TaskUpdatePlan, build_update_plan

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RunState:
    """Run-scoped lookups resolved during bootstrap (read-only afterwards)."""

    project_id: str
    organization_id: str
    tasklist_id: str
    smartgroup_id: str
    members: MemberDirectory
    manager_id: str | None
    index: RemoteTaskIndex


def summarize_failures(outcome: FieldUpdateOutcome) -> str:
    parts = [f"{f.value}: {r.reason or 'failed'}" for f, r in outcome.items() if not r.ok]
    return "; ".join(parts) or "partial update failure"


class SyncCoordinator:
    def __init__(self, context: SyncContext, *, progress: ProgressSink | None = None) -> None:
        self._context = context
        self._progress = progress
        self._running = False
        self._stop_requested = False
        self.stats = SyncStats()

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Request cooperative cancellation; returns immediately."""
        if self._running and not self._stop_requested:
            self._stop_requested = True
            self._emit("Stopping sync...", LogLevel.WARN)

    # ---- progress ----

    def _emit(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        logger.log(level.to_logging(), "%s", message)
        if self._progress is None:
            return
        try:
            self._progress.emit(message, level)
        except Exception:
            # Progress display must never break a run.
            logger.debug("progress sink failed", exc_info=True)

    # ---- run lifecycle ----

    async def sync(self, source_tasks: Sequence[SourceTask]) -> SyncStats:
        if self._running:
            raise SyncAlreadyRunningError("A sync run is already in progress")

        self._running = True
        self._stop_requested = False
        tasks = list(source_tasks)
        self.stats = SyncStats(total=len(tasks))
        api: TeambitionAPI | None = None

        try:
            if not tasks:
                self._emit("No tasks to sync", LogLevel.WARN)
                return self.stats

            self._emit(f"Starting sync of {len(tasks)} tasks...")
            try:
                project_id = self._validate_context()
                api = self._context.client_factory(self._context.credential)
                run = await self._bootstrap(api, project_id, tasks)
            except Exception as e:
                logger.exception("Bootstrap failed")
                self._emit(f"Sync aborted: {e}", LogLevel.ERROR)
                raise SyncAbortedError(str(e), stats=self.stats) from e

            await self._run_batches(api, run, tasks)

            stats = self.stats
            self._emit(
                f"Sync complete! success: {stats.success}, failed: {stats.failed}, "
                f"skipped: {stats.skipped} (success rate: {stats.success_rate}%)",
                LogLevel.SUCCESS,
            )
            return stats
        finally:
            if api is not None:
                api.clear_cache()
                try:
                    await api.aclose()
                except Exception:
                    logger.debug("client close failed", exc_info=True)
            self._running = False

    def _validate_context(self) -> str:
        ctx = self._context
        if not ctx.project_url.strip():
            raise ConfigurationError("Project URL is not configured")
        if not ctx.credential.strip():
            raise ConfigurationError("Credential (cookies) is not configured")
        project_id = extract_project_id(ctx.project_url)
        if not project_id:
            raise ConfigurationError(f"Cannot extract project id from URL: {ctx.project_url}")
        self._emit(f"Project id: {project_id}")
        return project_id

    async def _bootstrap(self, api: TeambitionAPI, project_id: str, tasks: list[SourceTask]) -> RunState:
        self._emit("Fetching organization...")
        organization_id = await api.get_organization_id(project_id)
        self._emit(f"Organization id: {organization_id}")

        self._emit("Fetching tasklist...")
        tasklist_id = await api.get_tasklist_id(project_id)
        smartgroup_id = await api.get_smartgroup_tasklist_id(project_id)
        self._emit(f"Tasklist id: {tasklist_id}")

        self._emit("Fetching project members...")
        members = await api.get_all_members(project_id)
        self._emit(f"Found {len(members)} project members")

        manager_id = self._resolve_manager(members, tasks)

        self._emit("Fetching existing tasks...")
        index = await api.get_all_tasks(project_id, tasklist_id, smartgroup_id)
        self._emit(f"Found {len(index)} existing tasks")

        return RunState(
            project_id=project_id,
            organization_id=organization_id,
            tasklist_id=tasklist_id,
            smartgroup_id=smartgroup_id,
            members=members,
            manager_id=manager_id,
            index=dict(index),
        )

    def _resolve_manager(self, members: MemberDirectory, tasks: list[SourceTask]) -> str | None:
        ctx = self._context
        manager_id = ctx.manager_id.strip() or None
        if manager_id is None and ctx.manager_name.strip():
            manager_id = members.get(ctx.manager_name.strip())
            if manager_id is None:
                self._emit(f"Manager not found among project members: {ctx.manager_name}", LogLevel.WARN)

        if manager_id is None and any(t.planned_hours is not None for t in tasks):
            self._emit("No manager identity configured; planned time updates will fail", LogLevel.WARN)
        return manager_id

    async def _run_batches(self, api: TeambitionAPI, run: RunState, tasks: list[SourceTask]) -> None:
        batch_size = max(1, int(self._context.batch_size))
        semaphore = asyncio.Semaphore(max(1, int(self._context.max_concurrent)))
        batches = [tasks[i:i + batch_size] for i in range(0, len(tasks), batch_size)]

        self._emit(f"Processing tasks (batch size: {batch_size})")
        for number, batch in enumerate(batches, start=1):
            if self._stop_requested:
                self.stats.cancelled = True
                self._emit("Sync interrupted by user", LogLevel.WARN)
                break
            self._emit(f"Processing batch {number}/{len(batches)} ({len(batch)} tasks)")
            await asyncio.gather(*(self._process_with_slot(semaphore, api, run, t) for t in batch))

        if self._stop_requested and not self.stats.cancelled and self.stats.processed < self.stats.total:
            self.stats.cancelled = True

    async def _process_with_slot(
            self,
            semaphore: asyncio.Semaphore,
            api: TeambitionAPI,
            run: RunState,
            task: SourceTask,
    ) -> None:
        async with semaphore:
            try:
                await self._process_task(api, run, task)
            except Exception as e:
                logger.exception("Task processing crashed row=%s", task.origin_row)
                self._record_failure(task, str(e) or e.__class__.__name__)

    # ---- per task ----

    async def _process_task(self, api: TeambitionAPI, run: RunState, task: SourceTask) -> None:
        if self._stop_requested:
            return

        name = task.display_name
        task_id = match_task(name, run.index)
        if task_id is None:
            self._record_skip(task)
            return

        plan = build_update_plan(task, task_id, run.members, manager_id=run.manager_id)
        outcome = await self._apply_plan(api, run, plan, name)
        self._record_outcome(task, outcome)

    async def _apply_plan(self, api: TeambitionAPI, run: RunState, plan: TaskUpdatePlan, name: str) -> FieldUpdateOutcome:
        outcome: FieldUpdateOutcome = {}
        task_id = plan.task_id

        if plan.schedule is not None:
            outcome[UpdateField.SCHEDULE] = await self._attempt(
                UpdateField.SCHEDULE,
                name,
                api.update_task_dates(task_id, plan.schedule.start_date, plan.schedule.end_date),
            )

        if plan.reminder is not None:
            outcome[UpdateField.REMINDER] = await self._attempt(
                UpdateField.REMINDER,
                name,
                api.set_task_reminder(task_id, plan.reminder.rule),
            )

        if plan.executor is not None:
            outcome[UpdateField.EXECUTOR] = await self._attempt(
                UpdateField.EXECUTOR,
                name,
                api.set_task_executor(task_id, plan.executor.executor_id),
            )

        if plan.involvers is not None:
            outcome[UpdateField.INVOLVERS] = await self._attempt(
                UpdateField.INVOLVERS,
                name,
                api.add_task_involvers(task_id, list(plan.involvers.involver_ids)),
            )

        pt = plan.planned_time
        if pt is not None:
            if not (pt.executor_id and pt.manager_id and pt.start_date and pt.end_date):
                reason = f"missing {', '.join(pt.missing_prerequisites())}"
                self._emit(f"Planned time not updated ({reason}): {name}", LogLevel.WARN)
                outcome[UpdateField.PLANNED_TIME] = FieldResult(ok=False, reason=reason)
            else:
                outcome[UpdateField.PLANNED_TIME] = await self._attempt(
                    UpdateField.PLANNED_TIME,
                    name,
                    api.top_up_planned_time(
                        task_id,
                        user_id=pt.executor_id,
                        manager_id=pt.manager_id,
                        organization_id=run.organization_id,
                        start_date=pt.start_date,
                        end_date=pt.end_date,
                        planned_ms=pt.planned_ms,
                    ),
                )

        return outcome

    async def _attempt(self, field: UpdateField, name: str, call: Awaitable[object]) -> FieldResult:
        try:
            await call
        except Exception as e:
            logger.warning("%s update failed for %r: %s", field.value, name, e)
            return FieldResult(ok=False, reason=str(e) or e.__class__.__name__)
        return FieldResult(ok=True)

    # ---- stats (synchronous: no suspension between read and write) ----

    def _record_skip(self, task: SourceTask) -> None:
        self.stats.skipped += 1
        self._emit(f"Skipped task (not found): {task.display_name}", LogLevel.WARN)

    def _record_failure(self, task: SourceTask, reason: str) -> None:
        self.stats.failed += 1
        self.stats.failed_tasks.append(FailedTask(row=task.origin_row, task_name=task.display_name, error=reason))
        self._emit(f"Task failed (row {task.origin_row}): {task.display_name} - {reason}", LogLevel.ERROR)

    def _record_outcome(self, task: SourceTask, outcome: FieldUpdateOutcome) -> None:
        if all(r.ok for r in outcome.values()):
            self.stats.success += 1
            self._emit(f"Updated task: {task.display_name}")
            return
        self._record_failure(task, summarize_failures(outcome))
