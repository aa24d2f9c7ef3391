"""
Core business logic for calculating available time slots.

This is the heart of the application - pure domain logic without any
external dependencies (no API calls, no database, no I/O).
"""

from datetime import date
from typing import Any, Dict, List, Mapping, Sequence, Tuple

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInterval
from .models import AvailabilitySlot, SchedulingPreferences, TimeInterval, floor_minutes


class AvailabilityCalculator:
    """
    Calculates free slots on one day from busy intervals and preferences.

    Algorithm:
    1. Return nothing on non-working days
    2. Build the working window for the date
    3. Sort busy intervals by (start, end)
    4. Sweep a cursor forward through the window, closing a free candidate
       before each busy interval and jumping past it plus the buffer
    5. Keep candidates that last at least the meeting duration
    """

    def __init__(self, preferences: SchedulingPreferences):
        self.preferences = preferences

    def compute(self, day: date, busy_intervals: Sequence[TimeInterval]) -> List[AvailabilitySlot]:
        """
        Find all free slots on ``day``.

        Args:
            day: Calendar date in the preference timezone (time of day is ignored)
            busy_intervals: Busy periods in any order; may overlap

        Returns:
            Non-overlapping AvailabilitySlot objects in ascending order

        Raises:
            InvalidInterval: If any busy interval ends before it starts
        """
        busy = self._validate_intervals(busy_intervals)

        window = self.preferences.working_window(day)
        if window is None:
            return []

        ordered = sorted(busy, key=lambda interval: (interval.start, interval.end))

        cursor, slots = window.start, []
        for interval in ordered:
            cursor, slots = self._step(cursor, slots, interval, window.end)

        return self._close(slots, cursor, window.end)

    def _step(
        self,
        cursor: DateTime,
        slots: List[AvailabilitySlot],
        busy: TimeInterval,
        work_end: DateTime,
    ) -> Tuple[DateTime, List[AvailabilitySlot]]:
        """Advance the sweep past one busy interval."""
        if busy.start > cursor:
            slots = self._close(slots, cursor, min(busy.start, work_end))

        # The cursor only moves forward, which merges overlapping busy periods.
        resume_at = busy.end.add(minutes=self.preferences.buffer_minutes)
        return max(cursor, resume_at), slots

    def _close(
        self,
        slots: List[AvailabilitySlot],
        start: DateTime,
        end: DateTime,
    ) -> List[AvailabilitySlot]:
        """Emit ``[start, end)`` if it is long enough for a meeting."""
        if end <= start:
            return slots

        if floor_minutes(start, end) < self.preferences.meeting_duration_minutes:
            return slots

        return [*slots, AvailabilitySlot.between(start, end)]

    def _validate_intervals(self, busy_intervals: Sequence[TimeInterval]) -> List[TimeInterval]:
        intervals = list(busy_intervals)
        for interval in intervals:
            if interval.end < interval.start:
                raise InvalidInterval(f"Busy interval ends before it starts: {interval.start} > {interval.end}")
        return intervals


def compute_availability(
    day: date,
    busy_intervals: Sequence[TimeInterval],
    preferences: SchedulingPreferences,
) -> List[AvailabilitySlot]:
    """Functional shorthand for ``AvailabilityCalculator(preferences).compute``."""
    return AvailabilityCalculator(preferences).compute(day, busy_intervals)


def compute_availability_payload(
    day: str,
    busy_intervals: Sequence[Mapping[str, Any]],
    preferences: Mapping[str, Any],
) -> List[Dict[str, Any]]:
    """
    String-typed entry point for web callers.

    Args:
        day: ISO-8601 date ("2024-11-25")
        busy_intervals: ``{"start": iso, "end": iso}`` mappings
        preferences: Mapping accepted by ``SchedulingPreferences.from_dict``

    Returns:
        ``{"start", "end", "durationMinutes"}`` dicts ascending by start

    Raises:
        InvalidPreferences: If the preferences are malformed
        InvalidInterval: If the date or an interval is malformed
    """
    prefs = SchedulingPreferences.from_dict(preferences)

    try:
        target = pendulum.parse(day, exact=True)
    except (ValueError, TypeError) as exc:
        raise InvalidInterval(f"Could not parse date: {day!r}") from exc
    # DateTime subclasses date, so it has to be excluded explicitly.
    if isinstance(target, DateTime) or not isinstance(target, date):
        raise InvalidInterval(f"Not a calendar date: {day!r}")

    busy = [TimeInterval.from_dict(item, prefs.timezone) for item in busy_intervals]

    return [slot.to_dict() for slot in compute_availability(target, busy, prefs)]
