"""HTTP client and client-side task board state."""

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum

import requests

from .core.calendar import DayBucket, regroup
from .core.clock import DEFAULT_TIMEZONE, civil_today, shift_month
from .core.offline import is_offline_payload
from .core.tasks import Task, TaskCollection, TaskStats, filter_tasks, sort_tasks, task_stats
from .errors import AurynError, NotFound, OfflineError, StorageUnavailable, ValidationError

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Auryn REST API client.

    Raises OfflineError when the server cannot be reached (or answers with the
    service worker's offline payload), and domain errors for 4xx/5xx replies.
    """

    def __init__(self, base_url: str, session: requests.Session | None = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            resp = self._session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise OfflineError(f"Could not reach {self.base_url}: {e}") from e

        try:
            payload = resp.json()
        except ValueError:
            payload = {}

        if is_offline_payload(resp.status_code, payload):
            raise OfflineError("Offline")
        if resp.status_code == 404:
            raise NotFound(payload.get("error", "Not found"))
        if resp.status_code == 400:
            raise ValidationError(payload.get("error", "Bad request"))
        if resp.status_code >= 500:
            raise StorageUnavailable(payload.get("details") or payload.get("error") or f"HTTP {resp.status_code}")
        if resp.status_code >= 400:
            raise AurynError(f"HTTP {resp.status_code}: {payload.get('error', resp.text)}")
        return payload

    def list_tasks(self) -> TaskCollection:
        return TaskCollection.from_dict(self._request("GET", "/api/tasks"))

    def create_task(
        self,
        title: str,
        priority: str | None = None,
        category: str | None = None,
        due_date: str | None = None,
    ) -> Task:
        body = {"title": title, "priority": priority, "category": category, "due_date": due_date}
        return Task.from_dict(self._request("POST", "/api/tasks", json=body))

    def patch_task(self, task_id: str, fields: dict) -> Task:
        return Task.from_dict(self._request("PATCH", f"/api/tasks/{task_id}", json=fields))

    def delete_task(self, task_id: str) -> None:
        self._request("DELETE", f"/api/tasks/{task_id}")

    def month(self, year: int, month: int) -> dict:
        return self._request("GET", "/api/calendar", params={"year": year, "month": month})


class Command(Enum):
    """User actions the board understands."""

    LOAD = "load"
    ADD = "add"
    TOGGLE = "toggle"
    DELETE = "delete"
    FILTER_PRIORITY = "filter_priority"
    FILTER_STATUS = "filter_status"
    LOAD_CALENDAR = "load_calendar"
    PREV_MONTH = "prev_month"
    NEXT_MONTH = "next_month"


@dataclass
class Notice:
    """Transient, non-blocking message for the user (a toast)."""

    message: str
    error: bool = False


_FAILURE_NOTICES = {
    Command.LOAD: "Failed to load tasks",
    Command.ADD: "Failed to add task",
    Command.TOGGLE: "Failed to update task",
    Command.DELETE: "Failed to delete task",
    Command.LOAD_CALENDAR: "Calendar load failed",
    Command.PREV_MONTH: "Calendar load failed",
    Command.NEXT_MONTH: "Calendar load failed",
}


@dataclass
class TaskBoard:
    """
    Client-side source of truth for rendering.

    Holds the last successfully loaded collection, the current filters and the
    calendar month. A failed request leaves all of it untouched so previously
    loaded data stays visible; nothing is retried automatically.
    """

    api: ApiClient
    timezone: str = DEFAULT_TIMEZONE
    tasks: list[Task] = field(default_factory=list)
    priority_filter: str = "all"
    status_filter: str = "active"
    cal_year: int = 0
    cal_month: int = 0
    calendar_data: dict = field(default_factory=lambda: {"tasks": [], "events": []})

    def __post_init__(self):
        if not self.cal_year or not self.cal_month:
            today = self.today()
            self.cal_year, self.cal_month = today.year, today.month

    def today(self) -> date:
        return civil_today(self.timezone)

    def dispatch(self, command: Command, **kwargs) -> Notice | None:
        """Run the handler registered for command, turning failures into a notice."""
        handler = _HANDLERS[command]
        try:
            return handler(self, **kwargs)
        except OfflineError as e:
            logger.warning(f"{command.value} failed, server unreachable: {e}")
            return Notice(_FAILURE_NOTICES.get(command, "Offline"), error=True)
        except AurynError as e:
            logger.warning(f"{command.value} failed: {e}")
            return Notice(f"{_FAILURE_NOTICES.get(command, 'Request failed')}: {e}", error=True)

    # -- handlers --

    def _load(self) -> None:
        self.tasks = self.api.list_tasks().tasks

    def _add(self, title: str, priority=None, category=None, due_date=None) -> Notice | None:
        title = (title or "").strip()
        if not title:
            return None
        task = self.api.create_task(title, priority=priority, category=category, due_date=due_date)
        self.tasks.append(task)
        return Notice("Task added")

    def _find(self, task_id: str) -> int:
        return next((i for i, t in enumerate(self.tasks) if t.id == task_id), -1)

    def _toggle(self, task_id: str) -> Notice | None:
        idx = self._find(task_id)
        if idx == -1:
            return None
        new_state = not self.tasks[idx].completed
        updated = self.api.patch_task(task_id, {"completed": new_state})
        # Re-resolve: the list may have been replaced while the request was out
        idx = self._find(task_id)
        if idx != -1:
            self.tasks[idx] = updated
        return Notice("Marked complete" if new_state else "Marked active")

    def _delete(self, task_id: str) -> Notice | None:
        if self._find(task_id) == -1:
            return None
        self.api.delete_task(task_id)
        self.tasks = [t for t in self.tasks if t.id != task_id]
        return Notice("Task deleted")

    def _filter_priority(self, value: str) -> None:
        self.priority_filter = value

    def _filter_status(self, value: str) -> None:
        self.status_filter = value

    def _load_calendar(self, year: int | None = None, month: int | None = None) -> Notice | None:
        year = year or self.cal_year
        month = month or self.cal_month
        data = self.api.month(year, month)
        self.cal_year, self.cal_month = year, month
        self.calendar_data = data
        if data.get("events_unavailable"):
            return Notice("Calendar events unavailable, showing tasks only", error=True)
        return None

    def _shift_month(self, delta: int) -> Notice | None:
        year, month = shift_month(self.cal_year, self.cal_month, delta)
        return self._load_calendar(year, month)

    # -- views --

    def visible_tasks(self) -> list[Task]:
        """Filtered then display-ordered tasks. Buckets are recomputed every call."""
        filtered = filter_tasks(self.tasks, priority=self.priority_filter, status=self.status_filter)
        return sort_tasks(filtered, self.today())

    def stats(self) -> TaskStats:
        return task_stats(self.tasks, self.today())

    def month_days(self) -> list[DayBucket]:
        """Per-day index regrouped from the last loaded calendar payload."""
        return regroup(self.calendar_data, self.cal_year, self.cal_month)

    def day_items(self, target_date: date) -> DayBucket:
        """Every item for a day, never truncated."""
        for bucket in self.month_days():
            if bucket.date == target_date:
                return bucket
        return DayBucket(target_date)


_HANDLERS = {
    Command.LOAD: TaskBoard._load,
    Command.ADD: TaskBoard._add,
    Command.TOGGLE: TaskBoard._toggle,
    Command.DELETE: TaskBoard._delete,
    Command.FILTER_PRIORITY: TaskBoard._filter_priority,
    Command.FILTER_STATUS: TaskBoard._filter_status,
    Command.LOAD_CALENDAR: TaskBoard._load_calendar,
    Command.PREV_MONTH: lambda board: board._shift_month(-1),
    Command.NEXT_MONTH: lambda board: board._shift_month(1),
}
