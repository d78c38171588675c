"""Google Calendar API adapter."""

import logging
from datetime import date
from pathlib import Path

from auryn.core.calendar import Event, events_from_google
from auryn.core.clock import DEFAULT_TIMEZONE, day_bounds
from auryn.errors import EventSourceUnavailable

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar.readonly"]


class GoogleCalendarAdapter:
    """Fetches events from Google Calendar via the API with a local OAuth token."""

    def __init__(
        self,
        config_folder: str,
        calendar_id: str = "primary",
        client_secret_file: str = "",
        timezone: str = DEFAULT_TIMEZONE,
    ):
        self.config_folder = config_folder
        self.calendar_id = calendar_id
        self.client_secret_file = client_secret_file
        self.timezone = timezone
        self._token_path = Path(config_folder).expanduser() / "token.json"

    def _get_credentials(self):
        """Load credentials from token.json, refreshing if needed."""
        from google.auth.transport.requests import Request
        from google.oauth2.credentials import Credentials

        if not self._token_path.exists():
            logger.warning(f"No token.json in {self.config_folder}, run 'auryn cal-auth'")
            return None

        creds = Credentials.from_authorized_user_file(str(self._token_path), SCOPES)

        if creds.expired and creds.refresh_token:
            try:
                creds.refresh(Request())
                self._token_path.write_text(creds.to_json())
                self._token_path.chmod(0o600)
            except Exception as e:
                logger.warning(f"Failed to refresh Google token: {e}")
                return None

        return creds

    def _build_service(self):
        """Build a Google Calendar API service."""
        from googleapiclient.discovery import build

        creds = self._get_credentials()
        if not creds:
            return None
        return build("calendar", "v3", credentials=creds, cache_discovery=False)

    def authenticate(self) -> bool:
        """Run OAuth flow for this account. Returns True on success."""
        from google_auth_oauthlib.flow import InstalledAppFlow

        if not self.client_secret_file:
            logger.error("No client secret file configured")
            return False

        secret_path = Path(self.client_secret_file).expanduser()
        if not secret_path.exists():
            logger.error(f"Client secret file not found: {secret_path}")
            return False

        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0)

        token_dir = self._token_path.parent
        token_dir.mkdir(parents=True, exist_ok=True)
        self._token_path.write_text(creds.to_json())
        self._token_path.chmod(0o600)
        return True

    def fetch_range(self, start_date: date, end_date: date) -> list[Event]:
        """Fetch events starting within [start_date, end_date]."""
        try:
            service = self._build_service()
        except Exception as e:
            raise EventSourceUnavailable(f"Google Calendar API unavailable: {e}") from e
        if not service:
            raise EventSourceUnavailable("Google Calendar is not authenticated")

        try:
            items = self._list_items(service, start_date, end_date)
        except Exception as e:
            raise EventSourceUnavailable(f"Google Calendar API error: {e}") from e

        return events_from_google(items, self.timezone, start_date, end_date)

    def _list_items(self, service, start_date: date, end_date: date) -> list[dict]:
        time_min, time_max = day_bounds(start_date, end_date, self.timezone)

        items = []
        page_token = None
        while True:
            result = (
                service.events()
                .list(
                    calendarId=self.calendar_id,
                    timeMin=time_min,
                    timeMax=time_max,
                    singleEvents=True,
                    orderBy="startTime",
                    timeZone=self.timezone,
                    pageToken=page_token,
                )
                .execute()
            )
            items.extend(result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                return items
