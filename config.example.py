# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets: the Teambition cookie string is a full session credential.
Keep it in .env (local, gitignored) or export it in your shell.

Example .env:

    WBS_PROJECT_URL=https://www.teambition.com/project/<project-id>/tasks
    WBS_COOKIES=TEAMBITION_SESSIONID=...; TEAMBITION_SESSIONID.sig=...
    WBS_MANAGER_NAME=Jane Doe
"""

ENV_VARS = {
    # App / logging
    "WBS_APP_NAME": "App display name (default: wbs-sync).",
    "WBS_LOG_LEVEL": "Logging level (default: INFO).",
    "WBS_DATA_DIR": "Local data directory for logs (default: .local/wbs_sync).",
    # Remote project
    "WBS_PROJECT_URL": "Teambition project URL; the project id is taken from /project/<id>.",
    "WBS_COOKIES": "Cookie header of a logged-in Teambition session (alias: TEAMBITION_COOKIES).",
    "WBS_MANAGER_NAME": "Project manager display name; resolved against project members.",
    "WBS_MANAGER_ID": "Project manager user id; wins over WBS_MANAGER_NAME when set.",
    "WBS_BASE_URL": "Teambition web API base URL (default: https://www.teambition.com).",
    "WBS_APPS_BASE_URL": "Work-time server base URL (default: https://apps.teambition.com).",
    "WBS_REQUEST_TIMEOUT_SECONDS": "Per-request timeout (default: 30).",
    # Throughput tuning
    "WBS_BATCH_SIZE": "Tasks per sequential batch, clamped to 1..100 (default: 20).",
    "WBS_MAX_CONCURRENT": "Tasks in flight within a batch (default: 5).",
    "WBS_RATE_LIMIT_MAX_REQUESTS": "Requests allowed per rate-limit window (default: 5).",
    "WBS_RATE_LIMIT_WINDOW_SECONDS": "Length of the sliding rate-limit window (default: 1.0).",
}
