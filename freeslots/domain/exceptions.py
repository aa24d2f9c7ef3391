"""
Domain-specific exception hierarchy for the freeslots application.
"""


class FreeSlotsError(Exception):
    """Base class for all application-level errors."""


class InvalidPreferences(FreeSlotsError, ValueError):
    """Raised when scheduling preferences cannot describe a valid working window."""


class InvalidInterval(FreeSlotsError, ValueError):
    """Raised when a busy interval ends before it starts or cannot be parsed."""


class CalendarAPIError(FreeSlotsError):
    """Raised when calendar data cannot be fetched or parsed."""


class ConfigError(FreeSlotsError):
    """Raised when the configuration file is missing or invalid."""
