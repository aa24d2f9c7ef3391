"""
Application services for finding free meeting slots.

The service coordinates fetching busy intervals via a calendar event source
and delegates the actual availability calculation to the domain-level
``AvailabilityCalculator``. This keeps the CLI thin and improves testability
by allowing the calendar dependency to be mocked via a simple protocol.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, List, Optional, Protocol, Sequence

import pendulum
from pendulum import DateTime

from ..domain.models import AvailabilitySlot, CalendarEvent, SchedulingPreferences, TimeInterval
from ..domain.slot_calculator import AvailabilityCalculator
from .presenter import SchedulingMessagePresenter

logger = logging.getLogger(__name__)


class CalendarEventSourceProtocol(Protocol):
    """Protocol describing the calendar behaviour needed by the service."""

    async def get_busy_intervals(self, day: date, timezone: str) -> List[TimeInterval]:
        """Return busy intervals on ``day``, excluding declined events."""

    async def get_events(self, day: date, timezone: str) -> List[CalendarEvent]:
        """Return the blocking events on ``day``."""


@dataclass(frozen=True)
class MeetingSuggestion:
    """Slots proposed to one contact and the message offering them."""

    contact_email: str
    suggestions: List[AvailabilitySlot] = field(default_factory=list)
    message: str = ""


class AvailabilityService:
    """
    Orchestrates busy-interval retrieval and slot calculation.

    Dependency inversion toward a protocol makes it easy to plug in the real
    Google Calendar adapter or the mock implementation in tests.
    """

    def __init__(
        self,
        event_source: CalendarEventSourceProtocol,
        presenter: Optional[SchedulingMessagePresenter] = None,
    ) -> None:
        self._event_source = event_source
        self._presenter = presenter or SchedulingMessagePresenter()

    async def get_availability(
        self,
        day: date,
        preferences: SchedulingPreferences,
    ) -> List[AvailabilitySlot]:
        """
        Retrieve busy data for one day and compute its free slots.
        """
        if not preferences.is_working_day(day):
            logger.debug("%s is not a working day, skipping calendar fetch", day.isoformat())
            return []

        busy = await self._event_source.get_busy_intervals(day, preferences.timezone)
        slots = self.calculate_slots(day=day, busy_intervals=busy, preferences=preferences)

        logger.info("Found %d available slots on %s", len(slots), day.isoformat())
        return slots

    async def get_availability_for_days(
        self,
        days: int,
        preferences: SchedulingPreferences,
        start_date: Optional[date] = None,
    ) -> Dict[str, List[AvailabilitySlot]]:
        """
        Compute availability for ``days`` consecutive dates.

        Args:
            days: Number of dates, starting with ``start_date``
            preferences: Scheduling preferences
            start_date: First date; today in the preference timezone by default

        Returns:
            Mapping of ISO date to that date's slots, in date order

        Raises:
            ValueError: If ``days`` is not positive
        """
        dates = self._date_range(days, preferences, start_date)

        results = await asyncio.gather(
            *(self.get_availability(day, preferences) for day in dates)
        )

        return {day.isoformat(): slots for day, slots in zip(dates, results)}

    async def get_events_for_days(
        self,
        days: int,
        preferences: SchedulingPreferences,
        start_date: Optional[date] = None,
    ) -> Dict[str, List[CalendarEvent]]:
        """
        List the blocking events of ``days`` consecutive dates, keyed by ISO date.

        Non-working days are included; an event spanning several days is
        listed under each of them.

        Raises:
            ValueError: If ``days`` is not positive
        """
        dates = self._date_range(days, preferences, start_date)

        results = await asyncio.gather(
            *(self._event_source.get_events(day, preferences.timezone) for day in dates)
        )

        return {day.isoformat(): events for day, events in zip(dates, results)}

    async def is_available(
        self,
        start: DateTime,
        end: DateTime,
        preferences: SchedulingPreferences,
    ) -> bool:
        """
        Check whether no busy interval overlaps ``[start, end)``.

        Only the calendar is consulted; working hours are not applied.

        Raises:
            InvalidInterval: If ``end`` is before ``start``
        """
        tz = preferences.timezone
        requested = TimeInterval(start=start.in_timezone(tz), end=end.in_timezone(tz))

        dates = []
        day = requested.start.date()
        while day <= requested.end.date():
            dates.append(day)
            day = day + timedelta(days=1)

        busy_per_day = await asyncio.gather(
            *(self._event_source.get_busy_intervals(day, tz) for day in dates)
        )

        conflicts = [busy for busy_list in busy_per_day for busy in busy_list if requested.overlaps(busy)]
        if conflicts:
            logger.debug("%s conflicts with %d busy interval(s)", requested, len(conflicts))
        return not conflicts

    async def suggest_meeting_times(
        self,
        contact_email: str,
        preferences: SchedulingPreferences,
        days_ahead: int = 7,
        limit: int = 3,
        contact_name: Optional[str] = None,
        start_date: Optional[date] = None,
    ) -> MeetingSuggestion:
        """
        Pick the earliest slots over the coming days and draft a message.

        Raises:
            ValueError: If ``days_ahead`` or ``limit`` is not positive
        """
        if limit <= 0:
            raise ValueError(f"limit must be greater than zero, got {limit}")

        availability = await self.get_availability_for_days(
            days_ahead,
            preferences,
            start_date=start_date,
        )

        all_slots = [slot for slots in availability.values() for slot in slots]
        suggestions = all_slots[:limit]

        return MeetingSuggestion(
            contact_email=contact_email,
            suggestions=suggestions,
            message=self._presenter.availability_message(suggestions, contact_name=contact_name),
        )

    @staticmethod
    def _date_range(
        days: int,
        preferences: SchedulingPreferences,
        start_date: Optional[date],
    ) -> List[date]:
        if days <= 0:
            raise ValueError(f"days must be greater than zero, got {days}")

        first = start_date or pendulum.now(preferences.timezone).date()
        return [first + timedelta(days=offset) for offset in range(days)]

    @staticmethod
    def calculate_slots(
        *,
        day: date,
        busy_intervals: Sequence[TimeInterval],
        preferences: SchedulingPreferences,
    ) -> List[AvailabilitySlot]:
        """Calculate available time slots from busy data."""
        return AvailabilityCalculator(preferences).compute(day, busy_intervals)
