"""Pure calendar domain logic - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, datetime
from zoneinfo import ZoneInfo

from .clock import format_date, month_bounds, month_days, parse_date
from .tasks import Task

EVENT_SOURCE = "calendar"
DAY_DISPLAY_CAP = 3


@dataclass
class Event:
    """An external calendar event. Read-only and never persisted."""

    id: str
    title: str
    date: date
    time: str | None = None  # HH:MM in the civil zone; None for all-day events
    source: str = EVENT_SOURCE

    @property
    def all_day(self) -> bool:
        return self.time is None

    def format_time(self) -> str:
        """Format the event time for display."""
        if self.all_day:
            return "All day"
        return self.time

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "date": format_date(self.date),
            "time": self.time,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        return cls(
            id=data.get("id", ""),
            title=data.get("title") or "(No title)",
            date=parse_date(data["date"]),
            time=data.get("time"),
            source=data.get("source", EVENT_SOURCE),
        )

    @classmethod
    def from_google(cls, item: dict, tz: str) -> "Event | None":
        """
        Create Event from a Google Calendar API event resource.

        Timed events are converted to the civil zone before the date and
        time-of-day are split. Returns None when the item has no start.
        """
        start = item.get("start", {})
        if "date" in start:
            day = date.fromisoformat(start["date"])
            time_of_day = None
        elif "dateTime" in start:
            dt = datetime.fromisoformat(start["dateTime"].replace("Z", "+00:00"))
            zone = ZoneInfo(tz)
            dt = dt.replace(tzinfo=zone) if dt.tzinfo is None else dt.astimezone(zone)
            day = dt.date()
            time_of_day = dt.strftime("%H:%M")
        else:
            return None

        return cls(
            id=item.get("id", ""),
            title=item.get("summary") or "(No title)",
            date=day,
            time=time_of_day,
        )


@dataclass
class DayBucket:
    """Everything scheduled on one calendar day: tasks first, then events."""

    date: date
    tasks: list[Task] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)

    @property
    def items(self) -> list[Task | Event]:
        return [*self.tasks, *self.events]

    def __len__(self) -> int:
        return len(self.tasks) + len(self.events)


@dataclass
class MonthView:
    """Aggregated month: flat task/event lists plus the per-day index."""

    year: int
    month: int
    tasks: list[Task]
    events: list[Event]
    days: list[DayBucket]
    events_unavailable: bool = False

    def day(self, target_date: date) -> DayBucket:
        """Full, untruncated bucket for a day of this month."""
        for bucket in self.days:
            if bucket.date == target_date:
                return bucket
        raise KeyError(f"{target_date} is not in {self.year}-{self.month:02d}")

    def to_dict(self) -> dict:
        return {
            "tasks": [t.to_dict() for t in self.tasks],
            "events": [e.to_dict() for e in self.events],
            "events_unavailable": self.events_unavailable,
        }


def filter_events_by_date(events: list[Event], start_date: date, end_date: date | None = None) -> list[Event]:
    """
    Filter events to those starting within a closed date range.

    Pure function - no I/O.
    """
    end_date = end_date or start_date
    return [e for e in events if start_date <= e.date <= end_date]


def build_day_index(tasks: list[Task], events: list[Event], year: int, month: int) -> list[DayBucket]:
    """
    Bucket tasks (by due date) and events (by date) for every day of a month.

    Input order is preserved inside each bucket. Items outside the month are
    ignored. Pure function - no I/O.
    """
    buckets = {d: DayBucket(d) for d in month_days(year, month)}
    for task in tasks:
        if task.due_date in buckets:
            buckets[task.due_date].tasks.append(task)
    for event in events:
        if event.date in buckets:
            buckets[event.date].events.append(event)
    return list(buckets.values())


def regroup(month_data: dict, year: int, month: int) -> list[DayBucket]:
    """Rebuild the per-day index from a /api/calendar JSON payload."""
    tasks = [Task.from_dict(t) for t in month_data.get("tasks", [])]
    events = [Event.from_dict(e) for e in month_data.get("events", []) if e.get("date")]
    return build_day_index(tasks, events, year, month)


@dataclass
class DayCell:
    """A day as drawn in the month grid, capped to a few items."""

    date: date
    shown: list[Task | Event]
    overflow: int

    @property
    def overflow_label(self) -> str | None:
        return f"+{self.overflow} more" if self.overflow > 0 else None


def summarize_day(bucket: DayBucket, cap: int = DAY_DISPLAY_CAP) -> DayCell:
    """Presentation-only truncation; the bucket itself is left intact."""
    items = bucket.items
    return DayCell(date=bucket.date, shown=items[:cap], overflow=max(0, len(items) - cap))


def task_chip_class(task: Task, as_of: date) -> str:
    """Chip style for a task in the month grid."""
    if task.due_date < as_of:
        return "task-overdue"
    if task.due_date == as_of:
        return "task-today"
    return "task-upcoming"


def month_title(year: int, month: int) -> str:
    first, _ = month_bounds(year, month)
    return first.strftime("%B %Y")


def events_from_google(items: list[dict], tz: str, start_date: date, end_date: date) -> list[Event]:
    """
    Map Google Calendar event resources to Events starting in [start_date, end_date].

    Malformed items are skipped. Pure function - no I/O.
    """
    events = []
    for item in items:
        if item.get("status") == "cancelled":
            continue
        try:
            event = Event.from_google(item, tz)
        except (ValueError, TypeError, KeyError):
            continue
        if event is not None:
            events.append(event)
    return filter_events_by_date(events, start_date, end_date)
