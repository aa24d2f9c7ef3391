"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .domain.exceptions import ConfigError
from .domain.models import SchedulingPreferences, parse_time_of_day

ACCESS_TOKEN_ENV_VAR = "FREESLOTS_GOOGLE_ACCESS_TOKEN"


class PreferencesConfig(BaseModel):
    """Default scheduling preferences."""
    working_days: List[int] = Field(default_factory=lambda: [1, 2, 3, 4, 5])  # Monday - Friday
    working_hours_start: str = "09:00"
    working_hours_end: str = "17:00"
    meeting_duration_minutes: int = 30
    buffer_minutes: int = 15

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range (0=Sunday) and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"working_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @field_validator("working_hours_start", "working_hours_end")
    @classmethod
    def validate_time_of_day(cls, value: str) -> str:
        """Validate "HH:MM" format."""
        parse_time_of_day(value, "working hours")
        return value

    def to_preferences(self, timezone: str) -> SchedulingPreferences:
        """
        Build the domain preferences for ``timezone``.

        Raises:
            InvalidPreferences: If the values do not describe a valid working window
        """
        return SchedulingPreferences(
            working_days=frozenset(self.working_days),
            working_hours_start=self.working_hours_start,
            working_hours_end=self.working_hours_end,
            meeting_duration_minutes=self.meeting_duration_minutes,
            buffer_minutes=self.buffer_minutes,
            timezone=timezone,
        )


class GoogleCalendarConfig(BaseModel):
    """Google Calendar connection settings."""
    calendar_id: str = "primary"
    access_token: Optional[str] = None
    user_email: Optional[str] = None

    def resolve_access_token(self) -> str:
        """
        Return the access token, preferring the environment variable.

        Raises:
            ConfigError: If no token is configured
        """
        token = os.environ.get(ACCESS_TOKEN_ENV_VAR) or self.access_token
        if not token:
            raise ConfigError(
                f"No Google access token configured. Set {ACCESS_TOKEN_ENV_VAR} "
                "or google.access_token in the config file."
            )
        return token


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    google: GoogleCalendarConfig = Field(default_factory=GoogleCalendarConfig)
    mock_data_file: Optional[Path] = None
    log_level: str = "WARNING"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    def scheduling_preferences(self) -> SchedulingPreferences:
        """Domain preferences in the configured timezone."""
        return self.preferences.to_preferences(self.timezone)

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            ConfigError: If the file is missing or its content is invalid
        """
        if not config_path.exists():
            raise ConfigError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a mapping at the root level.")

        try:
            config = cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration in {config_path}: {exc}") from exc

        if config.mock_data_file is not None and not config.mock_data_file.is_absolute():
            config.mock_data_file = config_path.parent / config.mock_data_file

        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
