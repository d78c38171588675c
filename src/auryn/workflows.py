"""Shared workflow layer between the HTTP server and the CLI.

Wires configured adapters together and runs the calendar aggregation.
"""

import logging

from .adapters.google_calendar import GoogleCalendarAdapter
from .adapters.json_store import FileTaskStore
from .adapters.maton_calendar import MatonCalendarAdapter
from .config import Config
from .core.calendar import MonthView, build_day_index, filter_events_by_date
from .core.clock import month_bounds
from .errors import ValidationError
from .ports import CalendarRepository, TaskStore

logger = logging.getLogger(__name__)


class NullCalendar:
    """Calendar used when no external backend is configured."""

    def fetch_range(self, start_date, end_date) -> list:
        return []


def get_store(config: Config) -> FileTaskStore:
    """Resolve the task document from config."""
    return FileTaskStore(config.tasks_path, timezone=config.timezone, writer=config.updated_by)


def get_calendar(config: Config) -> CalendarRepository:
    """Build the configured external calendar gateway."""
    match config.calendar_backend:
        case "google":
            return GoogleCalendarAdapter(
                config_folder=config.google_config_folder,
                calendar_id=config.calendar_id,
                client_secret_file=config.google_client_secret_file,
                timezone=config.timezone,
            )
        case "none":
            return NullCalendar()
        case _:
            return MatonCalendarAdapter(
                api_key=config.maton_api_key,
                calendar_id=config.calendar_id,
                timezone=config.timezone,
                gateway_url=config.maton_gateway_url,
                timeout=config.calendar_timeout,
            )


def aggregate_month(
    store: TaskStore,
    calendar: CalendarRepository,
    year: int,
    month: int,
) -> MonthView:
    """
    Merge undone dated tasks with external events for one month.

    Storage errors propagate. A failing calendar never fails the month: the
    view comes back with no events and events_unavailable set.
    """
    try:
        first, last = month_bounds(year, month)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    tasks = [t for t in store.list().tasks if t.due_date and not t.completed]

    events_unavailable = False
    try:
        events = filter_events_by_date(calendar.fetch_range(first, last), first, last)
    except Exception as e:
        # EventSourceUnavailable from the gateways, or anything unexpected
        logger.warning(f"Calendar events unavailable for {year}-{month:02d}: {e}")
        events, events_unavailable = [], True

    return MonthView(
        year=year,
        month=month,
        tasks=tasks,
        events=events,
        days=build_day_index(tasks, events, year, month),
        events_unavailable=events_unavailable,
    )
