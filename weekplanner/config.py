"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import Weekday
from .domain.policies import PolicyKind, WorkingHours


class DefaultsConfig(BaseModel):
    """Default settings for automatic scheduling."""
    duration_minutes: int = 60
    start_hour: int = 9
    end_hour: int = 17
    policy: PolicyKind = PolicyKind.WORK_HOURS

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure event duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value

    @field_validator("start_hour", "end_hour")
    @classmethod
    def validate_hour(cls, v: int) -> int:
        """Validate hour is between 0 and 23."""
        if not 0 <= v <= 23:
            raise ValueError(f"Hour must be between 0 and 23, got {v}")
        return v

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_hour <= self.start_hour:
            raise ValueError("end_hour must be later than start_hour")
        return self

    def get_start_time(self) -> time:
        """Get start time as time object."""
        return time(hour=self.start_hour, minute=0)

    def get_end_time(self) -> time:
        """Get end time as time object."""
        return time(hour=self.end_hour, minute=0)


class Participant(BaseModel):
    """Planner user configuration."""
    name: str  # Used as alias
    user_id: str


class AppConfig(BaseModel):
    """Application configuration."""
    first_day_of_week: str = "Sunday"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    participants: List[Participant] = Field(default_factory=list)
    exclude_days: List[int] = Field(default_factory=lambda: [5, 6])  # Saturday, Sunday
    schedules_file: Optional[Path] = None

    @field_validator("first_day_of_week")
    @classmethod
    def validate_first_day(cls, value: str) -> str:
        """Ensure the first day of the week is a weekday name."""
        try:
            return Weekday.parse(value).display_name()
        except ValueError as exc:
            raise ValueError(f"first_day_of_week must be a weekday name, got {value!r}") from exc

    @field_validator("exclude_days")
    @classmethod
    def validate_exclude_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"exclude_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        seen: set[int] = set()
        deduped: List[int] = []
        for day in value:
            if day not in seen:
                deduped.append(day)
                seen.add(day)
        return deduped

    @field_validator("participants")
    @classmethod
    def validate_participants(cls, value: List[Participant]) -> List[Participant]:
        """Ensure participant aliases and user ids are unique."""
        seen_names: set[str] = set()
        seen_ids: set[str] = set()
        for participant in value:
            name_key = participant.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate participant name detected: {participant.name}")
            if participant.user_id in seen_ids:
                raise ValueError(f"Duplicate participant user_id detected: {participant.user_id}")
            seen_names.add(name_key)
            seen_ids.add(participant.user_id)
        return value

    def anchor(self) -> Weekday:
        """First day of the week as a Weekday."""
        return Weekday.parse(self.first_day_of_week)

    def working_hours(self) -> WorkingHours:
        """Working window used by the work-hour policies."""
        return WorkingHours(
            start_time=self.defaults.get_start_time(),
            end_time=self.defaults.get_end_time(),
            exclude_weekdays=tuple(self.exclude_days),
        )

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``schedules_file`` is resolved against the config file's
        directory.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.schedules_file is not None and not config.schedules_file.is_absolute():
            config.schedules_file = config_path.parent / config.schedules_file
        return config

    def find_participant_by_name(self, name: str) -> Participant | None:
        """Find a participant by their name (alias)."""
        for participant in self.participants:
            if participant.name.lower() == name.lower():
                return participant
        return None

    def resolve_participant(self, identifier: str) -> str:
        """
        Resolve a participant identifier (alias or user id) to a user id.

        Identifiers that are not configured aliases are taken as user ids.
        """
        participant = self.find_participant_by_name(identifier)
        if participant:
            return participant.user_id
        return identifier.strip()

    def resolve_participants(self, identifiers: Sequence[str]) -> List[str]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Args:
            identifiers: Iterable of participant aliases or user ids.

        Returns:
            List of unique user ids, in the given order.
        """
        if not identifiers:
            raise ValueError("No participants provided.")

        resolved: List[str] = []
        for identifier in identifiers:
            if not identifier or not identifier.strip():
                raise ValueError("Participant identifiers cannot be empty.")
            user_id = self.resolve_participant(identifier)
            if user_id not in resolved:
                resolved.append(user_id)
        return resolved


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
