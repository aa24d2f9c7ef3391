"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import CalendarAPIError, ConfigError, FreeSlotsError, InvalidInterval, InvalidPreferences
from .models import AvailabilitySlot, CalendarEvent, SchedulingPreferences, TimeInterval
from .slot_calculator import AvailabilityCalculator, compute_availability, compute_availability_payload

__all__ = [
    "AvailabilityCalculator",
    "AvailabilitySlot",
    "CalendarEvent",
    "CalendarAPIError",
    "ConfigError",
    "FreeSlotsError",
    "InvalidInterval",
    "InvalidPreferences",
    "SchedulingPreferences",
    "TimeInterval",
    "compute_availability",
    "compute_availability_payload",
]
