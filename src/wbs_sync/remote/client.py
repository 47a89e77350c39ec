# src/wbs_sync/remote/client.py

from __future__ import annotations

"""
Teambition client.

Every call goes through the sliding-window RateLimiter. Failures while
sending (connection reset, timeouts, any exception raised by the call) are
retried with exponential backoff. HTTP error statuses are NOT retried here: they come back as a
structured ApiResponse and the domain operations turn them into ApiError.
"""

import asyncio
import json
import logging
import re
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date
from typing import Any

import httpx

from ..config import DEFAULT_APPS_BASE_URL, DEFAULT_BASE_URL
from ..core.errors import ApiError, RequestFailedError
from ..core.ports import MemberDirectory, RemoteTaskIndex
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

_PROJECT_ID_RE = re.compile(r"/project/([a-f0-9]+)")

# Start dates land early in the morning, due dates late morning (UTC).
START_DATE_TIME = "T00:30:00.000Z"
DUE_DATE_TIME = "T10:00:00.000Z"

NO_REMINDER = ""

DEFAULT_REMINDER_RULES: dict[str, str] = {
    "on start": "startDate/P0D",
    "5 minutes before start": "startDate/-PT5M",
    "on due": "dueDate/P0D",
    "1 day before due": "dueDate/-P1D",
    "none": NO_REMINDER,
    # Labels used by the Chinese WBS template.
    "任务开始时": "startDate/P0D",
    "任务开始前5分钟": "startDate/-PT5M",
    "任务截止时": "dueDate/P0D",
    "任务截止前1天": "dueDate/-P1D",
    "不提醒": NO_REMINDER,
}

DEFAULT_PAGE_SIZE = 300
MAX_TASK_PAGES = 50


@dataclass(slots=True, frozen=True)
class ApiResponse:
    success: bool
    data: Any = None
    error: str | None = None
    status_code: int | None = None


def extract_project_id(project_url: str) -> str | None:
    """Pull the hex project id out of a URL like https://www.teambition.com/project/<id>/..."""
    m = _PROJECT_ID_RE.search(project_url or "")
    return m.group(1) if m else None


def format_date_for_api(value: date, *, is_start: bool) -> str:
    suffix = START_DATE_TIME if is_start else DUE_DATE_TIME
    return value.isoformat() + suffix


def reminder_rule_for(label: str | None, rules: dict[str, str] | None = None) -> str:
    """Map a human-readable reminder label to the service rule string; unknown -> no reminder."""
    table = DEFAULT_REMINDER_RULES if rules is None else rules
    key = (label or "").strip()
    if key in table:
        return table[key]
    return table.get(key.lower(), NO_REMINDER)


def _error_message(resp: httpx.Response) -> str:
    body = resp.text
    try:
        payload = json.loads(body)
    except ValueError:
        return body
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return body


class TeambitionClient:
    """
    Authenticated Teambition API client (one instance per sync run).

    The cookie string is attached verbatim to every request. A small response
    cache dedups bootstrap lookups; call clear_cache() when the run ends.
    """

    def __init__(
            self,
            cookies: str,
            *,
            rate_limiter: RateLimiter | None = None,
            base_url: str = DEFAULT_BASE_URL,
            apps_base_url: str = DEFAULT_APPS_BASE_URL,
            timeout_seconds: float = 30.0,
            max_attempts: int = 3,
            backoff_base_seconds: float = 1.0,
            reminder_rules: dict[str, str] | None = None,
            transport: httpx.AsyncBaseTransport | None = None,
            sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._cookies = cookies
        self._rate_limiter = rate_limiter or RateLimiter(5, 1.0)
        self.base_url = base_url.rstrip("/")
        self.apps_base_url = apps_base_url.rstrip("/")
        self._max_attempts = max(1, int(max_attempts))
        self._backoff_base = float(backoff_base_seconds)
        self._reminder_rules = dict(reminder_rules) if reminder_rules is not None else dict(DEFAULT_REMINDER_RULES)
        self._sleep = sleep
        self._cache: dict[str, Any] = {}

        timeout = httpx.Timeout(timeout_seconds, connect=min(10.0, timeout_seconds))
        self._http = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> TeambitionClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def clear_cache(self) -> None:
        self._cache.clear()

    def _headers(self) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "Cookie": self._cookies,
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
            "Content-Type": "application/json;charset=UTF-8",
            "Referer": f"{self.base_url}/",
        }

    # ---- low-level ----

    async def request(
            self,
            method: str,
            url: str,
            *,
            params: dict[str, Any] | None = None,
            json: Any = None,
            headers: dict[str, str] | None = None,
    ) -> ApiResponse:
        """
        Send one logical request (up to max_attempts transport attempts).

        Raises RequestFailedError when every attempt raised.
        """
        merged_headers = {**self._headers(), **(headers or {})}
        last_error: Exception | None = None

        for attempt in range(1, self._max_attempts + 1):
            try:
                await self._rate_limiter.acquire()
                query = dict(params or {})
                query["_"] = int(time.time() * 1000)
                resp = await self._http.request(
                    method,
                    url,
                    params=query,
                    json=json,
                    headers=merged_headers,
                )
            except Exception as e:
                # Anything raised while sending (httpx errors included) counts as a failed attempt.
                last_error = e
                logger.warning(
                    "%s %s failed (attempt %d/%d): %s",
                    method,
                    url,
                    attempt,
                    self._max_attempts,
                    e.__class__.__name__,
                )
                if attempt < self._max_attempts:
                    await self._sleep(self._backoff_base * (2 ** attempt))
                continue

            return self._classify(resp)

        raise RequestFailedError(
            f"Request failed after {self._max_attempts} attempts: {last_error}"
        ) from last_error

    @staticmethod
    def _classify(resp: httpx.Response) -> ApiResponse:
        code = resp.status_code
        if 200 <= code < 300:
            try:
                return ApiResponse(success=True, data=resp.json(), status_code=code)
            except ValueError:
                return ApiResponse(
                    success=False,
                    error=f"Failed to parse JSON: {resp.text[:200]}",
                    status_code=code,
                )
        return ApiResponse(success=False, error=f"HTTP {code}: {_error_message(resp)}", status_code=code)

    async def _call(
            self,
            method: str,
            url: str,
            *,
            params: dict[str, Any] | None = None,
            json: Any = None,
            headers: dict[str, str] | None = None,
    ) -> Any:
        resp = await self.request(method, url, params=params, json=json, headers=headers)
        if not resp.success:
            raise ApiError(resp.error or "API request failed", status_code=resp.status_code)
        return resp.data

    # ---- bootstrap lookups ----

    async def get_organization_id(self, project_id: str) -> str:
        key = f"org:{project_id}"
        if key in self._cache:
            return self._cache[key]
        data = await self._call("GET", f"{self.base_url}/api/projects/limits", params={"projectId": project_id})
        org_id = data.get("organizationId") if isinstance(data, dict) else None
        if not org_id:
            raise ApiError("Organization id missing from project limits response")
        self._cache[key] = str(org_id)
        return self._cache[key]

    async def get_tasklist_id(self, project_id: str) -> str:
        key = f"tasklist:{project_id}"
        if key in self._cache:
            return self._cache[key]
        data = await self._call("GET", f"{self.base_url}/api/tasklists", params={"_projectId": project_id})
        if not isinstance(data, list) or not data:
            raise ApiError("No tasklist found in project")
        self._cache[key] = str(data[0]["_id"])
        return self._cache[key]

    async def get_smartgroup_tasklist_id(self, project_id: str) -> str:
        key = f"smartgroup:{project_id}"
        if key in self._cache:
            return self._cache[key]
        data = await self._call("GET", f"{self.base_url}/api/projects/{project_id}/global-smartgroup")
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, dict) or not result.get("_id"):
            raise ApiError("Smart group tasklist id missing from response")
        self._cache[key] = str(result["_id"])
        return self._cache[key]

    @staticmethod
    def _members_by_name(data: Any) -> MemberDirectory:
        out: MemberDirectory = {}
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            return out
        for member in result:
            if not isinstance(member, dict):
                continue
            name = str(member.get("name") or "").strip()
            user_id = member.get("userId")
            if name and user_id:
                out.setdefault(name, str(user_id))
        return out

    async def get_project_members(self, project_id: str) -> MemberDirectory:
        data = await self._call(
            "GET",
            f"{self.base_url}/api/v3/project/{project_id}/members",
            params={"projectId": project_id},
        )
        return self._members_by_name(data)

    async def get_linked_members(self, project_id: str) -> MemberDirectory:
        """Members of the linked external roster (DingTalk crew); empty when not linked or on failure."""
        try:
            crew = await self._call("GET", f"{self.base_url}/api/project/{project_id}/link-crew")
            result = crew.get("result") if isinstance(crew, dict) else None
            if not isinstance(result, list) or not result:
                return {}
            bound_id = result[0].get("boundId")
            data = await self._call(
                "GET",
                f"{self.base_url}/api/project/{project_id}/link-crew/members",
                params={"projectId": project_id, "boundId": bound_id},
            )
        except Exception as e:
            # Malformed payloads included: the primary roster alone is enough to run.
            logger.warning("Linked roster unavailable for project %s: %s", project_id, e)
            return {}
        return self._members_by_name(data)

    async def get_all_members(self, project_id: str) -> MemberDirectory:
        """Primary roster merged with the linked roster (linked wins on name collision)."""
        key = f"members:{project_id}"
        if key in self._cache:
            return dict(self._cache[key])
        primary = await self.get_project_members(project_id)
        linked = await self.get_linked_members(project_id)
        merged = {**primary, **linked}
        logger.debug("members: primary=%d linked=%d merged=%d", len(primary), len(linked), len(merged))
        self._cache[key] = merged
        return dict(merged)

    async def get_all_tasks(
            self,
            project_id: str,
            tasklist_id: str,
            smartgroup_id: str,
            *,
            page_size: int = DEFAULT_PAGE_SIZE,
    ) -> RemoteTaskIndex:
        """Snapshot of top-level tasks in the tasklist: task id -> content."""
        url = f"{self.base_url}/api/v2/projects/{project_id}/tasks"
        flt = (
            f"_tasklistId={tasklist_id} AND taskLayer IN (0) "
            f"ORDER BY viewPos:smartgroup-tasklist-{smartgroup_id} ASC"
        )
        tasks: RemoteTaskIndex = {}
        page_token: str | None = None

        for _ in range(MAX_TASK_PAGES):
            params: dict[str, Any] = {"filter": flt, "pageSize": str(page_size)}
            if page_token:
                params["pageToken"] = page_token
            data = await self._call("GET", url, params=params)
            result = data.get("result") if isinstance(data, dict) else None
            for task in result or []:
                if isinstance(task, dict) and task.get("_id"):
                    tasks[str(task["_id"])] = str(task.get("content") or "")
            page_token = data.get("nextPageToken") if isinstance(data, dict) else None
            if not page_token or not result:
                break
        else:
            logger.warning("Task listing stopped after %d pages", MAX_TASK_PAGES)

        return tasks

    # ---- field writes ----

    async def update_task_dates(self, task_id: str, start_date: date | None, end_date: date | None) -> None:
        payload: dict[str, str] = {}
        if start_date is not None:
            payload["startDate"] = format_date_for_api(start_date, is_start=True)
        if end_date is not None:
            payload["dueDate"] = format_date_for_api(end_date, is_start=False)
        if not payload:
            return
        await self._call("PUT", f"{self.base_url}/api/tasks/{task_id}", json=payload)

    async def set_task_reminder(self, task_id: str, reminder_rule: str) -> None:
        rule = reminder_rule_for(reminder_rule, self._reminder_rules)
        reminders = []
        if rule:
            reminders.append({"rule": rule, "labels": ["source:task"], "receivers": ["role/executor"]})
        await self._call("PUT", f"{self.base_url}/api/v2/tasks/{task_id}/reminders", json={"reminders": reminders})

    async def set_task_executor(self, task_id: str, user_id: str) -> None:
        await self._call("PUT", f"{self.base_url}/api/tasks/{task_id}/_executorId", json={"_executorId": user_id})

    async def add_task_involvers(self, task_id: str, user_ids: list[str]) -> None:
        # Additive: existing participants are kept by the service.
        await self._call("PUT", f"{self.base_url}/api/tasks/{task_id}/involveMembers", json={"addInvolvers": list(user_ids)})

    # ---- planned effort (work-time server) ----

    @staticmethod
    def _work_time_headers(organization_id: str, manager_id: str) -> dict[str, str]:
        return {"x-organization-id": organization_id, "x-user-id": manager_id}

    async def get_planned_time(self, task_id: str, *, user_id: str, manager_id: str, organization_id: str) -> int:
        """Currently recorded planned time (ms) of `user_id` on the task; 0 when nothing is recorded."""
        data = await self._call(
            "GET",
            f"{self.apps_base_url}/work-time-server/api/plan-time/aggregation/task/{task_id}",
            params={"_taskId": task_id, "_userId": user_id, "withTotal": "false"},
            headers=self._work_time_headers(organization_id, manager_id),
        )
        payload = data.get("payload") if isinstance(data, dict) else None
        if not isinstance(payload, list) or not payload:
            return 0
        try:
            return int(payload[0].get("planTime") or 0)
        except (TypeError, ValueError, AttributeError):
            return 0

    async def add_planned_time(
            self,
            task_id: str,
            *,
            user_id: str,
            manager_id: str,
            organization_id: str,
            start_date: date,
            end_date: date,
            planned_ms: int,
    ) -> None:
        payload = {
            "_userId": user_id,
            "_objectId": task_id,
            "objectType": "task",
            "isDuration": True,
            "includesHolidays": False,
            "startDate": start_date.isoformat(),
            "endDate": end_date.isoformat(),
            "planTime": int(planned_ms),
        }
        await self._call(
            "POST",
            f"{self.apps_base_url}/work-time-server/api/plan-time",
            params={"from": "task", "_taskId": task_id, "_userId": manager_id},
            json=payload,
            headers=self._work_time_headers(organization_id, manager_id),
        )

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
    ) -> int:
        """
        Raise the person's planned time on the task to `planned_ms`.

        Only the positive difference is submitted; an allocation that is already
        at or above the requested amount is left untouched. An unreadable current
        allocation counts as 0. Returns the ms submitted.
        """
        try:
            current = await self.get_planned_time(
                task_id,
                user_id=user_id,
                manager_id=manager_id,
                organization_id=organization_id,
            )
        except (ApiError, RequestFailedError) as e:
            logger.warning("Cannot read planned time of task %s, assuming 0: %s", task_id, e)
            current = 0
        delta = int(planned_ms) - current
        if delta <= 0:
            logger.debug("planned time already satisfied task=%s current=%d requested=%d", task_id, current, planned_ms)
            return 0
        await self.add_planned_time(
            task_id,
            user_id=user_id,
            manager_id=manager_id,
            organization_id=organization_id,
            start_date=start_date,
            end_date=end_date,
            planned_ms=delta,
        )
        return delta
