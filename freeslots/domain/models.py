"""
Domain models for busy intervals, scheduling preferences and free slots.
"""

from dataclasses import dataclass
from datetime import date, time
from typing import Any, Dict, FrozenSet, Iterable, Mapping

import pendulum
from pendulum import DateTime

from .exceptions import InvalidInterval, InvalidPreferences


def weekday_index(day: date) -> int:
    """Return the weekday of ``day`` as 0=Sunday .. 6=Saturday."""
    return day.isoweekday() % 7


def floor_minutes(start: DateTime, end: DateTime) -> int:
    """Whole minutes between two instants, rounded down."""
    return int((end - start).total_seconds() // 60)


def parse_time_of_day(value: Any, field: str) -> time:
    """
    Parse an "HH:MM" string (or pass through a ``time``) for a preference field.

    Raises:
        InvalidPreferences: If the value is not a valid 24h time of day
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    if not isinstance(value, str):
        raise InvalidPreferences(f"{field} must be an 'HH:MM' string, got {value!r}")

    parts = value.strip().split(":")
    if len(parts) != 2 or not all(part.isdigit() for part in parts):
        raise InvalidPreferences(f"{field} must be an 'HH:MM' string, got {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidPreferences(f"{field} is not a valid time of day: {value!r}")

    return time(hour=hour, minute=minute)


def _parse_instant(value: Any, timezone: str, field: str) -> DateTime:
    if not isinstance(value, str):
        raise InvalidInterval(f"Interval {field} must be an ISO-8601 string, got {value!r}")

    try:
        parsed = pendulum.parse(value, tz=timezone)
    except (ValueError, TypeError) as exc:
        raise InvalidInterval(f"Could not parse interval {field}: {value!r}") from exc

    if not isinstance(parsed, DateTime):
        raise InvalidInterval(f"Interval {field} is not a datetime: {value!r}")

    return parsed.in_timezone(timezone)


@dataclass(frozen=True)
class TimeInterval:
    """
    Represents an immutable time range, either a busy period or a free one.

    Invariant: start must not be after end. Zero-length intervals are allowed.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.end < self.start:
            raise InvalidInterval(f"Interval end {self.end} is before its start {self.start}")

    def duration_minutes(self) -> int:
        """Return the duration in whole minutes (rounded down)."""
        return floor_minutes(self.start, self.end)

    def overlaps(self, other: "TimeInterval") -> bool:
        """Check if this interval overlaps with another."""
        return self.start < other.end and self.end > other.start

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any], timezone: str = "UTC") -> "TimeInterval":
        """
        Build an interval from ``{"start": iso, "end": iso}``.

        Naive timestamps are read in ``timezone``; all values are converted to it.
        """
        if not isinstance(payload, Mapping):
            raise InvalidInterval(f"Interval must be a mapping, got {payload!r}")

        try:
            raw_start = payload["start"]
            raw_end = payload["end"]
        except KeyError as exc:
            raise InvalidInterval(f"Interval is missing '{exc.args[0]}'") from exc

        return cls(
            start=_parse_instant(raw_start, timezone, "start"),
            end=_parse_instant(raw_end, timezone, "end"),
        )

    def __str__(self) -> str:
        return f"{self.start.format('YYYY-MM-DD HH:mm')} - {self.end.format('HH:mm')}"


@dataclass(frozen=True)
class SchedulingPreferences:
    """
    Working days, working hours, meeting length and buffer for one calculation.

    Validated once on construction; an instance always describes a usable
    working window. ``working_days`` uses 0=Sunday .. 6=Saturday.
    """
    working_days: FrozenSet[int]
    working_hours_start: time
    working_hours_end: time
    meeting_duration_minutes: int = 30
    buffer_minutes: int = 0
    timezone: str = "UTC"

    def __post_init__(self):
        days = self.working_days
        if isinstance(days, (str, bytes)) or not isinstance(days, Iterable):
            raise InvalidPreferences(f"working_days must be a collection of weekday indices, got {days!r}")
        days = list(days)
        invalid_days = [d for d in days if isinstance(d, bool) or not isinstance(d, int) or not 0 <= d <= 6]
        if invalid_days:
            raise InvalidPreferences(f"working_days must be between 0 and 6, got {invalid_days}")
        object.__setattr__(self, "working_days", frozenset(days))

        object.__setattr__(
            self, "working_hours_start", parse_time_of_day(self.working_hours_start, "working_hours_start")
        )
        object.__setattr__(
            self, "working_hours_end", parse_time_of_day(self.working_hours_end, "working_hours_end")
        )
        if self.working_hours_start >= self.working_hours_end:
            raise InvalidPreferences(
                f"working_hours_start ({self.working_hours_start:%H:%M}) must be before "
                f"working_hours_end ({self.working_hours_end:%H:%M})"
            )

        for field, minimum in (("meeting_duration_minutes", 1), ("buffer_minutes", 0)):
            value = getattr(self, field)
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidPreferences(f"{field} must be an integer, got {value!r}")
            if value < minimum:
                raise InvalidPreferences(f"{field} must be at least {minimum}, got {value}")

        if not isinstance(self.timezone, str):
            raise InvalidPreferences(f"timezone must be an IANA zone name, got {self.timezone!r}")
        try:
            pendulum.timezone(self.timezone)
        except (ValueError, LookupError, TypeError) as exc:
            raise InvalidPreferences(f"Unknown timezone: {self.timezone!r}") from exc

    def is_working_day(self, day: date) -> bool:
        """Check if a given date falls on a working day."""
        return weekday_index(day) in self.working_days

    def working_window(self, day: date) -> TimeInterval | None:
        """
        Get the working hours range for a specific day in the preference timezone.
        Returns None if it's not a working day.
        """
        if not self.is_working_day(day):
            return None

        start = pendulum.datetime(
            day.year, day.month, day.day,
            self.working_hours_start.hour, self.working_hours_start.minute,
            tz=self.timezone,
        )
        end = pendulum.datetime(
            day.year, day.month, day.day,
            self.working_hours_end.hour, self.working_hours_end.minute,
            tz=self.timezone,
        )

        return TimeInterval(start=start, end=end)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "SchedulingPreferences":
        """
        Parse loosely-typed preferences.

        Accepts the flat shape::

            {"workingDays": [1, 2, 3, 4, 5], "workingHoursStart": "09:00",
             "workingHoursEnd": "17:00", "meetingDurationMinutes": 30,
             "bufferMinutes": 15, "timezone": "America/New_York"}

        as well as the nested one used by the web client
        (``workingHours: {start, end}``, ``meetingDuration``, ``bufferTime``).

        Raises:
            InvalidPreferences: If a field is missing or malformed
        """
        if not isinstance(payload, Mapping):
            raise InvalidPreferences(f"Preferences must be a mapping, got {payload!r}")

        working_hours = payload.get("workingHours") or {}
        if not isinstance(working_hours, Mapping):
            raise InvalidPreferences(f"workingHours must be a mapping, got {working_hours!r}")

        def pick(*candidates: tuple[Mapping[str, Any], str], default: Any = None, required: bool = True) -> Any:
            for source, key in candidates:
                if key in source:
                    return source[key]
            if required:
                raise InvalidPreferences(f"Missing preference field: {candidates[0][1]}")
            return default

        return cls(
            working_days=pick((payload, "workingDays")),
            working_hours_start=pick((payload, "workingHoursStart"), (working_hours, "start")),
            working_hours_end=pick((payload, "workingHoursEnd"), (working_hours, "end")),
            meeting_duration_minutes=pick((payload, "meetingDurationMinutes"), (payload, "meetingDuration")),
            buffer_minutes=pick((payload, "bufferMinutes"), (payload, "bufferTime"), default=0, required=False),
            timezone=pick((payload, "timezone"), default="UTC", required=False),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise to the flat boundary shape accepted by ``from_dict``."""
        return {
            "workingDays": sorted(self.working_days),
            "workingHoursStart": self.working_hours_start.strftime("%H:%M"),
            "workingHoursEnd": self.working_hours_end.strftime("%H:%M"),
            "meetingDurationMinutes": self.meeting_duration_minutes,
            "bufferMinutes": self.buffer_minutes,
            "timezone": self.timezone,
        }


@dataclass(frozen=True)
class AvailabilitySlot:
    """
    Represents a found free slot on a single day.
    """
    start: DateTime
    end: DateTime
    duration_minutes: int

    @classmethod
    def between(cls, start: DateTime, end: DateTime) -> "AvailabilitySlot":
        """Create a slot whose duration is derived from its bounds."""
        return cls(start=start, end=end, duration_minutes=floor_minutes(start, end))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.to_iso8601_string(),
            "end": self.end.to_iso8601_string(),
            "durationMinutes": self.duration_minutes,
        }

    def format_display(self) -> str:
        """
        Format the slot for display.
        Format: Weekday, Mon D | h:mm AM - h:mm PM (N min)
        """
        day_str = self.start.format("dddd, MMM D")
        time_str = f"{self.start.format('h:mm A')} - {self.end.format('h:mm A')}"
        return f"{day_str} | {time_str} ({self.duration_minutes} min)"


@dataclass(frozen=True)
class CalendarEvent:
    """
    A blocking event on the owner's calendar.

    ``all_day`` events carry an interval spanning whole local days.
    """
    event_id: str
    summary: str
    interval: TimeInterval
    all_day: bool = False

    def format_time(self) -> str:
        if self.all_day:
            return "All day"
        return f"{self.interval.start.format('h:mm A')} - {self.interval.end.format('h:mm A')}"
