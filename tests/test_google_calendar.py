"""Tests for Google Calendar adapter."""

from unittest.mock import patch, MagicMock
from datetime import date

import pytest

from auryn.adapters.google_calendar import GoogleCalendarAdapter
from auryn.errors import EventSourceUnavailable

JUNE = (date(2024, 6, 1), date(2024, 6, 30))


class TestGoogleCalendarAdapter:
    """Tests for GoogleCalendarAdapter."""

    def test_token_path(self):
        adapter = GoogleCalendarAdapter(config_folder="/home/user/.config/auryn")
        assert adapter._token_path.name == "token.json"
        assert "auryn" in str(adapter._token_path)

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_returns_timed_events(self, mock_build):
        service = MagicMock()
        mock_build.return_value = service

        service.events().list().execute.return_value = {
            "items": [
                {
                    "id": "standup",
                    "summary": "Standup",
                    "start": {"dateTime": "2024-06-03T10:00:00+09:00"},
                    "end": {"dateTime": "2024-06-03T10:30:00+09:00"},
                },
            ]
        }

        adapter = GoogleCalendarAdapter(config_folder="/tmp/test", timezone="Asia/Tokyo")
        events = adapter.fetch_range(*JUNE)

        assert len(events) == 1
        assert events[0].title == "Standup"
        assert events[0].date == date(2024, 6, 3)
        assert events[0].time == "10:00"
        assert events[0].source == "calendar"

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_returns_all_day_events(self, mock_build):
        service = MagicMock()
        mock_build.return_value = service

        service.events().list().execute.return_value = {
            "items": [
                {
                    "summary": "Holiday",
                    "start": {"date": "2024-06-15"},
                    "end": {"date": "2024-06-16"},
                },
            ]
        }

        adapter = GoogleCalendarAdapter(config_folder="/tmp/test")
        events = adapter.fetch_range(*JUNE)

        assert len(events) == 1
        assert events[0].all_day is True
        assert events[0].title == "Holiday"

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_follows_pages(self, mock_build):
        service = MagicMock()
        mock_build.return_value = service

        service.events().list().execute.side_effect = [
            {"items": [{"id": "a", "start": {"date": "2024-06-01"}}], "nextPageToken": "next"},
            {"items": [{"id": "b", "start": {"date": "2024-06-02"}}]},
        ]

        adapter = GoogleCalendarAdapter(config_folder="/tmp/test", calendar_id="me@example.com")
        events = adapter.fetch_range(*JUNE)

        assert [e.id for e in events] == ["a", "b"]
        last_call = service.events().list.call_args
        assert last_call.kwargs["pageToken"] == "next"
        assert last_call.kwargs["calendarId"] == "me@example.com"
        assert last_call.kwargs["timeMin"] == "2024-06-01T00:00:00+09:00"

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_skips_cancelled(self, mock_build):
        service = MagicMock()
        mock_build.return_value = service

        service.events().list().execute.return_value = {
            "items": [
                {"summary": "Kept", "start": {"date": "2024-06-04"}},
                {"summary": "Cancelled", "status": "cancelled", "start": {"date": "2024-06-04"}},
            ]
        }

        adapter = GoogleCalendarAdapter(config_folder="/tmp/test")
        assert [e.title for e in adapter.fetch_range(*JUNE)] == ["Kept"]

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_build_error_is_unavailable(self, mock_build):
        mock_build.side_effect = Exception("API error")
        adapter = GoogleCalendarAdapter(config_folder="/tmp/test")
        with pytest.raises(EventSourceUnavailable):
            adapter.fetch_range(*JUNE)

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_api_error_is_unavailable(self, mock_build):
        service = MagicMock()
        mock_build.return_value = service
        service.events().list().execute.side_effect = Exception("quota exceeded")

        adapter = GoogleCalendarAdapter(config_folder="/tmp/test")
        with pytest.raises(EventSourceUnavailable, match="quota exceeded"):
            adapter.fetch_range(*JUNE)

    @patch("auryn.adapters.google_calendar.GoogleCalendarAdapter._build_service")
    def test_fetch_range_no_credentials_is_unavailable(self, mock_build):
        mock_build.return_value = None
        adapter = GoogleCalendarAdapter(config_folder="/tmp/test")
        with pytest.raises(EventSourceUnavailable, match="not authenticated"):
            adapter.fetch_range(*JUNE)

    def test_authenticate_without_secret_file(self):
        adapter = GoogleCalendarAdapter(config_folder="/tmp/test")
        with patch("google_auth_oauthlib.flow.InstalledAppFlow") as flow:
            assert adapter.authenticate() is False
            flow.from_client_secrets_file.assert_not_called()
