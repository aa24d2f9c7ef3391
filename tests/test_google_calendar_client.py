"""
Tests for the Google Calendar adapter and its event conversion helpers.
"""

import asyncio
import logging
from unittest.mock import MagicMock, patch

import pendulum
import pytest
import requests

from freeslots.adapters.google_calendar_client import (
    GoogleCalendarClient,
    event_to_interval,
    events_to_busy_intervals,
    events_to_calendar_events,
    is_blocking,
    is_declined,
)
from freeslots.domain.exceptions import CalendarAPIError

TZ = "America/New_York"
REQUEST_PATH = "freeslots.adapters.google_calendar_client.requests.request"


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    return response


def _event(event_id, start, end, **extra):
    event = {
        "id": event_id,
        "summary": event_id,
        "start": {"dateTime": start},
        "end": {"dateTime": end},
    }
    event.update(extra)
    return event


class TestEventConversion:
    """Tests for turning Google events into busy intervals."""

    def test_timed_event(self):
        interval = event_to_interval(
            _event("e1", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z"),
            TZ,
        )

        assert interval.start == pendulum.datetime(2024, 11, 25, 10, tz=TZ)
        assert interval.end == pendulum.datetime(2024, 11, 25, 11, tz=TZ)

    def test_all_day_event_blocks_whole_day(self):
        interval = event_to_interval(
            {"id": "offsite", "start": {"date": "2024-11-27"}, "end": {"date": "2024-11-28"}},
            TZ,
        )

        assert interval.start == pendulum.datetime(2024, 11, 27, tz=TZ)
        assert interval.end == pendulum.datetime(2024, 11, 28, tz=TZ)

    def test_event_without_end_is_skipped(self):
        assert event_to_interval({"id": "x", "start": {"dateTime": "2024-11-25T15:00:00Z"}}, TZ) is None

    def test_declined_by_self(self):
        event = _event(
            "e1", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z",
            attendees=[
                {"email": "me@example.com", "self": True, "responseStatus": "declined"},
                {"email": "other@example.com", "responseStatus": "accepted"},
            ],
        )

        assert is_declined(event)
        assert not is_blocking(event)

    def test_declined_matched_by_email(self):
        event = _event(
            "e1", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z",
            attendees=[{"email": "Me@Example.com", "responseStatus": "declined"}],
        )

        assert not is_declined(event)
        assert is_declined(event, user_email="me@example.com")

    def test_other_attendee_declining_does_not_free_time(self):
        event = _event(
            "e1", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z",
            attendees=[
                {"email": "me@example.com", "self": True, "responseStatus": "accepted"},
                {"email": "other@example.com", "responseStatus": "declined"},
            ],
        )

        assert is_blocking(event)

    @pytest.mark.parametrize("extra", [{"status": "cancelled"}, {"transparency": "transparent"}])
    def test_non_blocking_events(self, extra):
        event = _event("e1", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z", **extra)

        assert not is_blocking(event)

    def test_malformed_events_are_logged_and_skipped(self, caplog):
        events = [
            _event("good", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z"),
            _event("backwards", "2024-11-25T16:00:00Z", "2024-11-25T15:00:00Z"),
            _event("garbage", "yesterday", "2024-11-25T16:00:00Z"),
            {"id": "no-times"},
        ]

        with caplog.at_level(logging.WARNING):
            intervals = events_to_busy_intervals(events, TZ)

        assert len(intervals) == 1
        assert "backwards" in caplog.text
        assert "garbage" in caplog.text

    def test_calendar_events_keep_summary_and_all_day_flag(self):
        events = [
            _event("review", "2024-11-25T13:00:00-05:00", "2024-11-25T14:30:00-05:00"),
            {"id": "offsite", "start": {"date": "2024-11-27"}, "end": {"date": "2024-11-28"}},
            _event("free", "2024-11-25T15:00:00Z", "2024-11-25T16:00:00Z", transparency="transparent"),
        ]

        converted = events_to_calendar_events(events, TZ)

        assert [(e.event_id, e.summary, e.all_day) for e in converted] == [
            ("review", "review", False),
            ("offsite", "(no title)", True),
        ]
        assert converted[1].interval.start == pendulum.datetime(2024, 11, 27, tz=TZ)


class TestGoogleCalendarClient:
    """Tests for GoogleCalendarClient."""

    def test_list_events_follows_pagination(self):
        client = GoogleCalendarClient(access_token="token-123")
        start = pendulum.datetime(2024, 11, 25, tz=TZ)
        end = start.add(days=1)

        with patch(REQUEST_PATH) as request:
            request.side_effect = [
                _response({"items": [{"id": "a"}], "nextPageToken": "page-2"}),
                _response({"items": [{"id": "b"}]}),
            ]
            events = client.list_events(start, end)

        assert [e["id"] for e in events] == ["a", "b"]
        assert request.call_count == 2

        method, url = request.call_args_list[0].args
        kwargs = request.call_args_list[0].kwargs
        assert method == "GET"
        assert url == "https://www.googleapis.com/calendar/v3/calendars/primary/events"
        assert kwargs["headers"]["Authorization"] == "Bearer token-123"
        assert kwargs["timeout"] == 30
        assert kwargs["params"]["timeMin"] == "2024-11-25T00:00:00-05:00"
        assert kwargs["params"]["timeMax"] == "2024-11-26T00:00:00-05:00"
        assert kwargs["params"]["singleEvents"] == "true"
        assert kwargs["params"]["orderBy"] == "startTime"
        assert "pageToken" not in kwargs["params"]
        assert request.call_args_list[1].kwargs["params"]["pageToken"] == "page-2"

    def test_calendar_id_is_url_encoded(self):
        client = GoogleCalendarClient(access_token="t", calendar_id="team@group.calendar.google.com")

        assert client.calendar_url.endswith("/calendars/team%40group.calendar.google.com")

    def test_get_busy_intervals_filters_declined(self):
        client = GoogleCalendarClient(access_token="t", user_email="me@example.com")
        items = [
            _event("standup", "2024-11-25T09:30:00-05:00", "2024-11-25T09:45:00-05:00"),
            _event(
                "declined", "2024-11-25T15:00:00-05:00", "2024-11-25T16:00:00-05:00",
                attendees=[{"email": "me@example.com", "responseStatus": "declined"}],
            ),
        ]

        with patch(REQUEST_PATH, return_value=_response({"items": items})):
            intervals = asyncio.run(client.get_busy_intervals(pendulum.date(2024, 11, 25), TZ))

        assert len(intervals) == 1
        assert intervals[0].start == pendulum.datetime(2024, 11, 25, 9, 30, tz=TZ)

    def test_get_events_returns_blocking_events(self):
        client = GoogleCalendarClient(access_token="t", user_email="me@example.com")
        items = [
            _event("standup", "2024-11-25T09:30:00-05:00", "2024-11-25T09:45:00-05:00"),
            _event("cancelled", "2024-11-25T11:00:00-05:00", "2024-11-25T12:00:00-05:00", status="cancelled"),
        ]

        with patch(REQUEST_PATH, return_value=_response({"items": items})) as mock_request:
            events = asyncio.run(client.get_events(pendulum.date(2024, 11, 25), TZ))

        assert [event.summary for event in events] == ["standup"]
        params = mock_request.call_args.kwargs["params"]
        assert pendulum.parse(params["timeMin"]) == pendulum.datetime(2024, 11, 25, tz=TZ)
        assert pendulum.parse(params["timeMax"]) == pendulum.datetime(2024, 11, 26, tz=TZ)

    def test_http_error_raises_calendar_api_error(self):
        client = GoogleCalendarClient(access_token="expired")

        with patch(REQUEST_PATH, return_value=_response({"error": "unauthorized"}, status_code=401)):
            with pytest.raises(CalendarAPIError, match="401"):
                client.fetch_busy_intervals(pendulum.date(2024, 11, 25), TZ)

    def test_network_error_raises_calendar_api_error(self):
        client = GoogleCalendarClient(access_token="t")

        with patch(REQUEST_PATH, side_effect=requests.exceptions.ConnectionError("boom")):
            with pytest.raises(CalendarAPIError, match="boom"):
                client.test_connection()

    def test_invalid_json_raises_calendar_api_error(self):
        client = GoogleCalendarClient(access_token="t")
        response = _response(None)
        response.json.side_effect = ValueError("No JSON object could be decoded")

        with patch(REQUEST_PATH, return_value=response):
            with pytest.raises(CalendarAPIError):
                client.test_connection()

    def test_create_event(self):
        client = GoogleCalendarClient(access_token="t")
        start = pendulum.datetime(2024, 11, 25, 10, tz=TZ)

        with patch(REQUEST_PATH, return_value=_response({"id": "new-event", "summary": "Coffee chat"})) as request:
            created = client.create_event(
                summary="Coffee chat",
                start=start,
                end=start.add(minutes=30),
                attendee_emails=["sam@example.com"],
                timezone=TZ,
                location="Blue Bottle",
            )

        assert created["id"] == "new-event"
        method, url = request.call_args.args
        kwargs = request.call_args.kwargs
        assert method == "POST"
        assert url.endswith("/calendars/primary/events")
        assert kwargs["params"] == {"sendUpdates": "all"}

        body = kwargs["json"]
        assert body["summary"] == "Coffee chat"
        assert body["start"] == {"dateTime": "2024-11-25T10:00:00-05:00", "timeZone": TZ}
        assert body["end"] == {"dateTime": "2024-11-25T10:30:00-05:00", "timeZone": TZ}
        assert body["attendees"] == [{"email": "sam@example.com"}]
        assert body["location"] == "Blue Bottle"
        assert "description" not in body
        assert body["reminders"]["overrides"] == [
            {"method": "email", "minutes": 1440},
            {"method": "popup", "minutes": 10},
        ]
