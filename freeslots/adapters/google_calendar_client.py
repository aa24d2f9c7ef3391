"""
Google Calendar API client for fetching busy times and creating events.
"""

import asyncio
import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import pendulum
import requests
from pendulum import DateTime

from ..domain.exceptions import CalendarAPIError, InvalidInterval
from ..domain.models import CalendarEvent, TimeInterval

logger = logging.getLogger(__name__)


def day_bounds(day: date, timezone: str) -> TimeInterval:
    """Return ``[00:00, next 00:00)`` of ``day`` in ``timezone``."""
    start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
    return TimeInterval(start=start, end=start.add(days=1))


def is_declined(event: Dict[str, Any], user_email: Optional[str] = None) -> bool:
    """Check whether the calendar owner declined the event."""
    for attendee in event.get("attendees") or []:
        is_owner = attendee.get("self") or (
            user_email is not None
            and attendee.get("email", "").lower() == user_email.lower()
        )
        if is_owner:
            return attendee.get("responseStatus") == "declined"
    return False


def is_blocking(event: Dict[str, Any], user_email: Optional[str] = None) -> bool:
    """
    Decide whether an event occupies time.

    Cancelled, transparent ("show as free") and declined events do not.
    """
    if event.get("status") == "cancelled":
        return False
    if event.get("transparency") == "transparent":
        return False
    return not is_declined(event, user_email)


def event_to_interval(event: Dict[str, Any], timezone: str) -> Optional[TimeInterval]:
    """
    Convert a Google event resource to a busy interval.

    Returns None for events without start or end. All-day events
    (``date`` instead of ``dateTime``) block whole days in ``timezone``.

    Raises:
        InvalidInterval: If the timestamps cannot be parsed
    """
    start = event.get("start") or {}
    end = event.get("end") or {}

    raw_start = start.get("dateTime") or start.get("date")
    raw_end = end.get("dateTime") or end.get("date")
    if not raw_start or not raw_end:
        return None

    return TimeInterval.from_dict({"start": raw_start, "end": raw_end}, timezone)


def events_to_calendar_events(
    events: Iterable[Dict[str, Any]],
    timezone: str,
    user_email: Optional[str] = None,
) -> List[CalendarEvent]:
    """Turn raw events into blocking CalendarEvents, dropping non-blocking and malformed ones."""
    converted: List[CalendarEvent] = []

    for event in events:
        if not is_blocking(event, user_email):
            continue

        try:
            interval = event_to_interval(event, timezone)
        except InvalidInterval as exc:
            logger.warning("Skipping event %s: %s", event.get("id", "<no id>"), exc)
            continue

        if interval is None:
            continue

        start = event.get("start") or {}
        converted.append(
            CalendarEvent(
                event_id=event.get("id", ""),
                summary=event.get("summary") or "(no title)",
                interval=interval,
                all_day=not start.get("dateTime"),
            )
        )

    return converted


def events_to_busy_intervals(
    events: Iterable[Dict[str, Any]],
    timezone: str,
    user_email: Optional[str] = None,
) -> List[TimeInterval]:
    """Turn raw events into busy intervals, dropping non-blocking and malformed ones."""
    return [event.interval for event in events_to_calendar_events(events, timezone, user_email)]


class GoogleCalendarClient:
    """
    Client for Google Calendar API v3 over REST.

    Authenticates with an already-issued OAuth2 access token.
    """

    GOOGLE_CALENDAR_ENDPOINT = "https://www.googleapis.com/calendar/v3"
    MAX_RESULTS = 250

    def __init__(
        self,
        access_token: str,
        calendar_id: str = "primary",
        user_email: Optional[str] = None,
        timeout: int = 30,
    ):
        """
        Initialize the Google Calendar client.

        Args:
            access_token: Valid Google OAuth2 access token with calendar scope
            calendar_id: Calendar to read and write, "primary" by default
            user_email: Owner address used to detect declined invitations
            timeout: Request timeout in seconds
        """
        self.access_token = access_token
        self.calendar_id = calendar_id
        self.user_email = user_email
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {access_token}",
            "Content-Type": "application/json",
        }

    @property
    def calendar_url(self) -> str:
        return f"{self.GOOGLE_CALENDAR_ENDPOINT}/calendars/{quote(self.calendar_id, safe='')}"

    def list_events(self, time_min: DateTime, time_max: DateTime) -> List[Dict[str, Any]]:
        """
        List single (expanded) events between two instants, following pagination.

        Raises:
            CalendarAPIError: If the API call fails
        """
        params: Dict[str, Any] = {
            "timeMin": time_min.to_iso8601_string(),
            "timeMax": time_max.to_iso8601_string(),
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": self.MAX_RESULTS,
            "showDeleted": "false",
        }

        events: List[Dict[str, Any]] = []
        while True:
            data = self._request("GET", f"{self.calendar_url}/events", params=params)
            events.extend(data.get("items", []))

            page_token = data.get("nextPageToken")
            if not page_token:
                break
            params = {**params, "pageToken": page_token}

        logger.debug("Fetched %d events from %s", len(events), self.calendar_id)
        return events

    def fetch_events(self, day: date, timezone: str) -> List[CalendarEvent]:
        """Fetch the blocking events of one local day."""
        bounds = day_bounds(day, timezone)
        events = self.list_events(bounds.start, bounds.end)
        blocking = events_to_calendar_events(events, timezone, self.user_email)

        logger.info(
            "Retrieved %d blocking events for %s (%d events total)",
            len(blocking), day.isoformat(), len(events),
        )
        return blocking

    def fetch_busy_intervals(self, day: date, timezone: str) -> List[TimeInterval]:
        """Fetch the blocking events of one local day as busy intervals."""
        return [event.interval for event in self.fetch_events(day, timezone)]

    async def get_events(self, day: date, timezone: str) -> List[CalendarEvent]:
        return await asyncio.to_thread(self.fetch_events, day, timezone)

    async def get_busy_intervals(self, day: date, timezone: str) -> List[TimeInterval]:
        return await asyncio.to_thread(self.fetch_busy_intervals, day, timezone)

    def create_event(
        self,
        summary: str,
        start: DateTime,
        end: DateTime,
        attendee_emails: List[str],
        timezone: str,
        description: Optional[str] = None,
        location: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create an event and send invitations to the attendees.

        Returns:
            The created event resource

        Raises:
            CalendarAPIError: If the API call fails
        """
        body: Dict[str, Any] = {
            "summary": summary,
            "start": {"dateTime": start.to_iso8601_string(), "timeZone": timezone},
            "end": {"dateTime": end.to_iso8601_string(), "timeZone": timezone},
            "attendees": [{"email": email} for email in attendee_emails],
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},
                    {"method": "popup", "minutes": 10},
                ],
            },
        }
        if description:
            body["description"] = description
        if location:
            body["location"] = location

        created = self._request(
            "POST",
            f"{self.calendar_url}/events",
            params={"sendUpdates": "all"},
            json=body,
        )
        logger.info("Created event %s (%s)", created.get("summary"), created.get("id"))
        return created

    def test_connection(self) -> Dict[str, Any]:
        """
        Test the connection and authentication by fetching calendar metadata.

        Raises:
            CalendarAPIError: If connection test fails
        """
        return self._request("GET", self.calendar_url)

    def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = requests.request(
                method,
                url,
                headers=self.headers,
                timeout=self.timeout,
                **kwargs,
            )
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            raise CalendarAPIError(f"Google Calendar request failed: {e}") from e
        except ValueError as e:
            raise CalendarAPIError(f"Google Calendar returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            raise CalendarAPIError("Unexpected Google Calendar response format")

        return data
