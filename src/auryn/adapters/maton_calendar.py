"""Maton gateway adapter - HTTP client for Google Calendar events."""

import logging
from datetime import date
from urllib.parse import quote

import requests

from auryn.config import MATON_GATEWAY_URL
from auryn.core.calendar import Event, events_from_google
from auryn.core.clock import DEFAULT_TIMEZONE, day_bounds
from auryn.errors import EventSourceUnavailable

logger = logging.getLogger(__name__)

MAX_PAGES = 20


class MatonCalendarAdapter:
    """
    Google Calendar through the Maton API gateway.

    Implements CalendarRepository protocol. No business logic - just I/O.
    Every call is bounded by timeout; failures surface as EventSourceUnavailable.
    """

    def __init__(
        self,
        api_key: str,
        calendar_id: str = "primary",
        timezone: str = DEFAULT_TIMEZONE,
        gateway_url: str = MATON_GATEWAY_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.calendar_id = calendar_id
        self.timezone = timezone
        self.gateway_url = gateway_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()

    @property
    def events_url(self) -> str:
        return f"{self.gateway_url}/calendars/{quote(self.calendar_id, safe='')}/events"

    def _get_page(self, params: dict) -> dict:
        try:
            resp = self._session.get(
                self.events_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                params=params,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.Timeout as e:
            raise EventSourceUnavailable(f"Calendar gateway timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise EventSourceUnavailable(f"Calendar gateway request failed: {e}") from e
        except ValueError as e:
            raise EventSourceUnavailable("Calendar gateway returned invalid JSON") from e

    def fetch_range(self, start_date: date, end_date: date) -> list[Event]:
        """Fetch events starting within [start_date, end_date]."""
        if not self.api_key:
            raise EventSourceUnavailable("MATON_API_KEY is not configured")

        time_min, time_max = day_bounds(start_date, end_date, self.timezone)
        params = {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
            "timeZone": self.timezone,
        }

        items = []
        for _ in range(MAX_PAGES):
            data = self._get_page(params)
            items.extend(data.get("items", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params["pageToken"] = page_token
        else:
            logger.warning(f"Stopped paging calendar events after {MAX_PAGES} pages")

        return events_from_google(items, self.timezone, start_date, end_date)
