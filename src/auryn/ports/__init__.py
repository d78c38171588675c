"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore
from .calendar_repo import CalendarRepository

__all__ = [
    "TaskStore",
    "CalendarRepository",
]
