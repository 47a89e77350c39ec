# src/wbs_sync/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires the concrete Teambition client + rate limiter into a SyncContext,
- reads the source tasks produced by the spreadsheet ingestion step (JSON).
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..config import get_settings
from ..core.models import SourceTask
from ..core.ports import TeambitionAPI
from ..core.state import SyncContext
from ..logging_setup import mask_secret
from ..remote.client import TeambitionClient
from ..remote.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)


def create_sync_context(
        *,
        settings=None,
        batch_size: int | None = None,
        max_concurrent: int | None = None,
) -> SyncContext:
    """
    Create a SyncContext from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    def client_factory(credential: str) -> TeambitionAPI:
        # Fresh limiter per run: request history is not shared between runs.
        limiter = RateLimiter(
            settings.rate_limit_max_requests,
            settings.rate_limit_window_seconds,
        )
        return TeambitionClient(
            credential,
            rate_limiter=limiter,
            base_url=settings.base_url,
            apps_base_url=settings.apps_base_url,
            timeout_seconds=settings.request_timeout_seconds,
        )

    ctx = SyncContext(
        project_url=settings.project_url,
        credential=settings.cookies,
        client_factory=client_factory,
        manager_name=settings.manager_name,
        manager_id=settings.manager_id,
        batch_size=batch_size if batch_size is not None else settings.batch_size,
        max_concurrent=max_concurrent if max_concurrent is not None else settings.max_concurrent,
    )
    logger.info(
        "Sync context ready project=%s cookies=%s batch_size=%d max_concurrent=%d",
        ctx.project_url or "<unset>",
        mask_secret(ctx.credential),
        ctx.batch_size,
        ctx.max_concurrent,
    )
    return ctx


def load_source_tasks(path: str | Path) -> list[SourceTask]:
    """
    Read source tasks from a JSON array of row objects.

    Row numbers default to the spreadsheet row (data starts at row 2, after the header).
    Raises ValueError on malformed input.
    """
    path = Path(path)
    data: Any = json.loads(path.read_text("utf-8"))
    if isinstance(data, dict) and isinstance(data.get("tasks"), list):
        data = data["tasks"]
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of task rows")

    tasks: list[SourceTask] = []
    for pos, row in enumerate(data):
        if not isinstance(row, dict):
            raise ValueError(f"{path}: row {pos + 2} is not an object")
        tasks.append(SourceTask.from_dict(row, default_row=pos + 2))

    logger.info("Loaded %d source tasks from %s", len(tasks), path)
    return tasks
