# src/wbs_sync/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Settings are passed explicitly into the sync context; nothing else reads env.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "WBS"

DEFAULT_BASE_URL = "https://www.teambition.com"
DEFAULT_APPS_BASE_URL = "https://apps.teambition.com"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    s = raw.strip()
    if not s:
        return default
    try:
        return float(s)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Remote project ----
    project_url: str
    cookies: str
    manager_name: str
    manager_id: str
    base_url: str
    apps_base_url: str
    request_timeout_seconds: float

    # ---- Throughput tuning ----
    batch_size: int
    max_concurrent: int
    rate_limit_max_requests: int
    rate_limit_window_seconds: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "wbs-sync") or "wbs-sync"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/wbs_sync"))

        project_url = (_env(_k("PROJECT_URL"), "") or "").strip()
        # Cookie header harvested by the (external) login window.
        cookies = (_first_env(_k("COOKIES"), "TEAMBITION_COOKIES", default="") or "").strip()
        manager_name = (_env(_k("MANAGER_NAME"), "") or "").strip()
        manager_id = (_env(_k("MANAGER_ID"), "") or "").strip()

        base_url = (_env(_k("BASE_URL"), DEFAULT_BASE_URL) or DEFAULT_BASE_URL).rstrip("/")
        apps_base_url = (_env(_k("APPS_BASE_URL"), DEFAULT_APPS_BASE_URL) or DEFAULT_APPS_BASE_URL).rstrip("/")
        request_timeout_seconds = max(1.0, _env_float(_k("REQUEST_TIMEOUT_SECONDS"), 30.0))

        batch_size = _clamp(_env_int(_k("BATCH_SIZE"), 20), 1, 100)
        max_concurrent = max(1, _env_int(_k("MAX_CONCURRENT"), 5))
        rate_limit_max_requests = max(1, _env_int(_k("RATE_LIMIT_MAX_REQUESTS"), 5))
        rate_limit_window_seconds = max(0.001, _env_float(_k("RATE_LIMIT_WINDOW_SECONDS"), 1.0))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            project_url=project_url,
            cookies=cookies,
            manager_name=manager_name,
            manager_id=manager_id,
            base_url=base_url,
            apps_base_url=apps_base_url,
            request_timeout_seconds=request_timeout_seconds,
            batch_size=batch_size,
            max_concurrent=max_concurrent,
            rate_limit_max_requests=rate_limit_max_requests,
            rate_limit_window_seconds=rate_limit_window_seconds,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Load settings once (reads .env on first call)."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
