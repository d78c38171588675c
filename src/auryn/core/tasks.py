"""Pure task domain logic - no I/O dependencies."""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

from auryn.errors import CorruptState, ValidationError

from .clock import add_days, format_date, parse_date

PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"
DEFAULT_CATEGORY = "Admin"

# Only these keys may be changed through patch(); anything else is ignored
PATCHABLE_FIELDS = ("title", "priority", "category", "due_date", "completed", "completed_date")


class Bucket(Enum):
    """Due-date urgency bucket, in display order."""

    OVERDUE = "overdue"
    TODAY = "today"
    TOMORROW = "tomorrow"
    WEEK = "week"
    FUTURE = "future"
    NONE = "none"

    @property
    def rank(self) -> int:
        return _BUCKET_ORDER.index(self)


_BUCKET_ORDER = list(Bucket)
_PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}


@dataclass
class Task:
    """A personal task."""

    id: str
    title: str
    priority: str = DEFAULT_PRIORITY
    category: str = DEFAULT_CATEGORY
    due_date: date | None = None
    created: date | None = None
    completed: bool = False
    completed_date: date | None = None

    def bucket(self, as_of: date) -> Bucket:
        """Urgency bucket relative to as_of. Never cached on the record."""
        return classify(self.due_date, self.completed, as_of)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "priority": self.priority,
            "category": self.category,
            "due_date": format_date(self.due_date),
            "created": format_date(self.created),
            "completed": self.completed,
            "completed_date": format_date(self.completed_date),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """Create Task from its persisted JSON form."""
        try:
            title = data["title"]
            if not isinstance(title, str) or not title.strip():
                raise ValueError("title must be a non-empty string")
            completed = data.get("completed", False)
            if not isinstance(completed, bool):
                raise ValueError(f"completed must be a boolean, got {completed!r}")
            return cls(
                id=str(data["id"]),
                title=title,
                priority=data.get("priority") or DEFAULT_PRIORITY,
                category=data.get("category") or DEFAULT_CATEGORY,
                due_date=parse_date(data.get("due_date")),
                created=parse_date(data.get("created")),
                completed=completed,
                completed_date=parse_date(data.get("completed_date")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptState(f"Invalid task record {data!r}: {e}") from e


@dataclass
class TaskCollection:
    """The persisted task document."""

    tasks: list[Task] = field(default_factory=list)
    last_updated: str | None = None
    updated_by: str | None = None

    def find(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def index_of(self, task_id: str) -> int:
        return next((i for i, t in enumerate(self.tasks) if t.id == task_id), -1)

    def to_dict(self) -> dict:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "last_updated": self.last_updated,
            "updated_by": self.updated_by,
        }

    @classmethod
    def from_dict(cls, data) -> "TaskCollection":
        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise CorruptState("Task document must be an object with a 'tasks' list")
        return cls(
            tasks=[Task.from_dict(t) for t in data["tasks"]],
            last_updated=data.get("last_updated"),
            updated_by=data.get("updated_by"),
        )


def classify(due_date: date | None, completed: bool, as_of: date) -> Bucket:
    """
    Map a due date + completion flag to an urgency bucket.

    Pure function - no I/O. as_of is "today" in the civil time zone.
    """
    if completed or due_date is None:
        return Bucket.NONE
    if due_date < as_of:
        return Bucket.OVERDUE
    if due_date == as_of:
        return Bucket.TODAY
    if due_date == add_days(as_of, 1):
        return Bucket.TOMORROW
    if due_date <= add_days(as_of, 7):
        return Bucket.WEEK
    return Bucket.FUTURE


def priority_rank(priority: str) -> int:
    """high < medium < low; unrecognized priorities rank as medium."""
    return _PRIORITY_RANK.get(priority, _PRIORITY_RANK[DEFAULT_PRIORITY])


def sort_tasks(tasks: list[Task], as_of: date) -> list[Task]:
    """
    Sort tasks for display.

    Incomplete first, then bucket, then priority, then earlier due date,
    with dated tasks ahead of undated ones. Stable for full ties.
    Pure function - no I/O.
    """

    def sort_key(t: Task) -> tuple:
        return (
            t.completed,
            t.bucket(as_of).rank,
            priority_rank(t.priority),
            t.due_date is None,
            t.due_date or date.max,
        )

    return sorted(tasks, key=sort_key)


def filter_tasks(tasks: list[Task], priority: str = "all", status: str = "active") -> list[Task]:
    """Filter by priority (exact match or "all") and status (active, completed or all)."""
    result = []
    for t in tasks:
        if priority != "all" and t.priority != priority:
            continue
        if status == "active" and t.completed:
            continue
        if status == "completed" and not t.completed:
            continue
        result.append(t)
    return result


def _require_text(name: str, value) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name.capitalize()} is required")
    return value.strip()


def _coerce_date(name: str, value) -> date | None:
    try:
        return parse_date(value)
    except ValueError:
        raise ValidationError(f"Invalid {name}: {value!r} (expected YYYY-MM-DD)")


def new_task(
    task_id: str,
    title,
    as_of: date,
    priority: str | None = None,
    category: str | None = None,
    due_date=None,
) -> Task:
    """Build a fresh, incomplete task created on as_of."""
    return Task(
        id=task_id,
        title=_require_text("title", title),
        priority=priority or DEFAULT_PRIORITY,
        category=category or DEFAULT_CATEGORY,
        due_date=_coerce_date("due_date", due_date),
        created=as_of,
        completed=False,
        completed_date=None,
    )


def apply_patch(task: Task, fields: dict, as_of: date) -> Task:
    """
    Apply an allow-listed field patch and return the updated task.

    A completed task always ends up with a completed_date (as_of when none is
    set or it was cleared); an incomplete task never has one. Pure function - no I/O.
    """
    changes = {}
    for name in PATCHABLE_FIELDS:
        if name not in fields:
            continue
        value = fields[name]
        if name == "title":
            changes[name] = _require_text(name, value)
        elif name in ("priority", "category"):
            changes[name] = _require_text(name, value)
        elif name in ("due_date", "completed_date"):
            changes[name] = _coerce_date(name, value)
        elif name == "completed":
            if not isinstance(value, bool):
                raise ValidationError(f"Completed must be true or false, got {value!r}")
            changes[name] = value

    updated = replace(task, **changes)

    if not updated.completed:
        updated.completed_date = None
    elif updated.completed_date is None:
        updated.completed_date = as_of

    return updated


@dataclass
class TaskStats:
    """Counters shown in the header and due alert."""

    total: int
    active: int
    done: int
    overdue: int
    due_today: int

    def alert(self) -> str | None:
        """Due alert text, or None when nothing is overdue or due today."""
        parts = []
        if self.overdue:
            parts.append(f"{self.overdue} overdue")
        if self.due_today:
            parts.append(f"{self.due_today} due today")
        return " | ".join(parts) or None


def task_stats(tasks: list[Task], as_of: date) -> TaskStats:
    active = [t for t in tasks if not t.completed]
    return TaskStats(
        total=len(tasks),
        active=len(active),
        done=len(tasks) - len(active),
        overdue=sum(1 for t in active if t.due_date and t.due_date < as_of),
        due_today=sum(1 for t in active if t.due_date == as_of),
    )


def format_us_date(d: date) -> str:
    return d.strftime("%m/%d/%Y")


def due_badge(task: Task, as_of: date) -> str | None:
    """Short badge for active tasks due soon."""
    return {
        Bucket.OVERDUE: "OVERDUE",
        Bucket.TODAY: "DUE TODAY",
        Bucket.TOMORROW: "Tomorrow",
    }.get(task.bucket(as_of))


def date_label(task: Task, as_of: date) -> str:
    """Date shown in a task's meta row."""
    if task.completed and task.completed_date:
        return f"Done {format_us_date(task.completed_date)}"
    if not task.due_date:
        return ""
    bucket = task.bucket(as_of)
    if bucket == Bucket.OVERDUE:
        return f"Overdue: {format_us_date(task.due_date)}"
    if bucket == Bucket.TODAY:
        return "Due today"
    return format_us_date(task.due_date)
