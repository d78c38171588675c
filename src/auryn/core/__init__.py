"""Functional core - pure business logic with no I/O."""

from .tasks import (
    Bucket,
    Task,
    TaskCollection,
    TaskStats,
    apply_patch,
    classify,
    filter_tasks,
    new_task,
    sort_tasks,
    task_stats,
)
from .calendar import DayBucket, DayCell, Event, MonthView, build_day_index, summarize_day
from .clock import civil_today, month_bounds

__all__ = [
    # Tasks
    "Bucket",
    "Task",
    "TaskCollection",
    "TaskStats",
    "apply_patch",
    "classify",
    "filter_tasks",
    "new_task",
    "sort_tasks",
    "task_stats",
    # Calendar
    "DayBucket",
    "DayCell",
    "Event",
    "MonthView",
    "build_day_index",
    "summarize_day",
    # Clock
    "civil_today",
    "month_bounds",
]
