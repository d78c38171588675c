"""Calendar repository interface."""

from datetime import date
from typing import Protocol

from auryn.core.calendar import Event


class CalendarRepository(Protocol):
    """Interface for fetching events from an external calendar."""

    def fetch_range(self, start_date: date, end_date: date) -> list[Event]:
        """Fetch events starting within [start_date, end_date] in the civil zone.

        Raises EventSourceUnavailable when the calendar cannot be reached.
        """
        ...
