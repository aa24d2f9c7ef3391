"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, CalendarEventSourceProtocol, MeetingSuggestion
from .presenter import SchedulingMessagePresenter

__all__ = [
    "AvailabilityService",
    "CalendarEventSourceProtocol",
    "MeetingSuggestion",
    "SchedulingMessagePresenter",
]
