"""Adapters - I/O implementations of ports."""

from .json_store import FileTaskStore
from .maton_calendar import MatonCalendarAdapter
from .google_calendar import GoogleCalendarAdapter

__all__ = [
    "FileTaskStore",
    "MatonCalendarAdapter",
    "GoogleCalendarAdapter",
]
