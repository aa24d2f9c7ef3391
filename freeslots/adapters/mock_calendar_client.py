"""
Mock Google Calendar client for running without OAuth credentials.
"""

import json
import logging
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..domain.exceptions import CalendarAPIError
from ..domain.models import CalendarEvent, TimeInterval
from .google_calendar_client import day_bounds, events_to_calendar_events

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_calendar_data.json"


class MockCalendarClient:
    """
    Mock event source that serves Google-shaped events from a JSON file.

    The file holds a list of event resources (``start``/``end`` with
    ``dateTime`` or ``date``, optional ``attendees``, ``status`` and
    ``transparency``). The same filtering rules as the real client apply.
    """

    def __init__(
        self,
        data_file: Optional[Path] = None,
        events: Optional[List[Dict[str, Any]]] = None,
        user_email: Optional[str] = None,
    ):
        """
        Initialize the mock client.

        Args:
            data_file: JSON file with events; the bundled sample data by default
            events: In-memory events, used instead of a file when given
            user_email: Owner address used to detect declined invitations
        """
        self.user_email = user_email
        if events is not None:
            self.calendar_events = list(events)
        else:
            self.calendar_events = self._load_calendar_data(data_file or DEFAULT_DATA_FILE)

    @staticmethod
    def _load_calendar_data(data_file: Path) -> List[Dict[str, Any]]:
        """Load mock calendar data from JSON file."""
        if not data_file.exists():
            logger.warning("Mock calendar data %s not found, using an empty calendar", data_file)
            return []

        try:
            with open(data_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as exc:
            raise CalendarAPIError(f"Invalid mock calendar data in {data_file}: {exc}") from exc

        if isinstance(data, dict):
            data = data.get("items", [])
        if not isinstance(data, list):
            raise CalendarAPIError(f"Mock calendar data in {data_file} must be a list of events")

        return data

    def fetch_events(self, day: date, timezone: str) -> List[CalendarEvent]:
        """Return blocking events overlapping the local day, ordered by start."""
        bounds = day_bounds(day, timezone)
        events = events_to_calendar_events(self.calendar_events, timezone, self.user_email)
        on_day = [event for event in events if event.interval.overlaps(bounds)]
        return sorted(on_day, key=lambda event: (event.interval.start, event.interval.end))

    def fetch_busy_intervals(self, day: date, timezone: str) -> List[TimeInterval]:
        """Return busy intervals overlapping the local day."""
        return [event.interval for event in self.fetch_events(day, timezone)]

    async def get_events(self, day: date, timezone: str) -> List[CalendarEvent]:
        return self.fetch_events(day, timezone)

    async def get_busy_intervals(self, day: date, timezone: str) -> List[TimeInterval]:
        return self.fetch_busy_intervals(day, timezone)

    def test_connection(self) -> Dict[str, Any]:
        """
        Mock connection test.

        Returns:
            Mock calendar metadata
        """
        return {
            "id": "primary",
            "summary": "Mock Calendar",
            "timeZone": "UTC",
        }
