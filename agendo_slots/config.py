"""
Configuration management using Pydantic models loaded from YAML.
"""

from datetime import time
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

DEFAULT_CONFIG_FILENAME = "agendo_slots.yaml"


class ScheduleSource(str, Enum):
    YAML = "yaml"
    HTTP = "http"


class BufferPolicy(str, Enum):
    SERVICE = "service"  # use the service's own buffer
    NONE = "none"
    FIXED = "fixed"


class SlotSettings(BaseModel):
    """Settings for candidate generation and validation."""
    buffer_policy: BufferPolicy = BufferPolicy.SERVICE
    fixed_buffer_minutes: int = 0
    near_closing_margin_minutes: int = 30
    include_overrun_candidates: bool = True
    default_duration_minutes: int = 60

    @field_validator("fixed_buffer_minutes", "near_closing_margin_minutes")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        """Ensure minute offsets are not negative."""
        if value < 0:
            raise ValueError(f"Value must not be negative, got {value}")
        return value

    @field_validator("default_duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure the default service duration is positive."""
        if value <= 0:
            raise ValueError("default_duration_minutes must be greater than zero")
        return value

    def resolve_buffer(self, service_buffer: int) -> int:
        """Return the buffer to apply after a service under this policy."""
        if self.buffer_policy is BufferPolicy.NONE:
            return 0
        if self.buffer_policy is BufferPolicy.FIXED:
            return self.fixed_buffer_minutes
        return service_buffer


class ScoringWeights(BaseModel):
    """
    Weights of the slot preference score.

    Available slots start at ``base``, gain up to ``preference_bonus`` the
    closer they start to ``preferred_time``, gain ``adjacency_bonus`` when
    flush against an existing booking and lose ``near_closing_penalty``
    when they end close to closing time.
    """
    base: int = 50
    preferred_time: time = time(12, 0)
    preference_bonus: int = 30
    preference_window_minutes: int = 240
    adjacency_bonus: int = 10
    near_closing_penalty: int = 15

    @field_validator("base")
    @classmethod
    def validate_base(cls, value: int) -> int:
        if not 0 <= value <= 100:
            raise ValueError(f"base must be between 0 and 100, got {value}")
        return value

    @field_validator("preference_bonus", "adjacency_bonus", "near_closing_penalty")
    @classmethod
    def validate_weight(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"Weights must not be negative, got {value}")
        return value

    @field_validator("preference_window_minutes")
    @classmethod
    def validate_window(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("preference_window_minutes must be greater than zero")
        return value

    @property
    def preferred_minutes(self) -> int:
        return self.preferred_time.hour * 60 + self.preferred_time.minute


class AppConfig(BaseModel):
    """Application configuration."""
    schedule_source: ScheduleSource = ScheduleSource.YAML
    schedule_file: Optional[Path] = None
    api_base_url: Optional[str] = None
    api_timeout_seconds: float = 10.0
    api_token: Optional[str] = None
    timezone: str = "America/Sao_Paulo"
    slots: SlotSettings = Field(default_factory=SlotSettings)
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)

    @field_validator("api_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("api_timeout_seconds must be greater than zero")
        return value

    @model_validator(mode="after")
    def validate_source_settings(self) -> "AppConfig":
        """Ensure the selected schedule source has what it needs."""
        if self.schedule_source is ScheduleSource.YAML and self.schedule_file is None:
            raise ValueError("schedule_file is required when schedule_source is 'yaml'")
        if self.schedule_source is ScheduleSource.HTTP and not self.api_base_url:
            raise ValueError("api_base_url is required when schedule_source is 'http'")
        return self

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``schedule_file`` is resolved against the directory of
        the config file.

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
                f"Please create a {DEFAULT_CONFIG_FILENAME} file. "
                f"See agendo_slots.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.schedule_file is not None and not config.schedule_file.is_absolute():
            config = config.model_copy(
                update={"schedule_file": config_path.parent / config.schedule_file}
            )
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look in the current directory first
    config_path = Path.cwd() / DEFAULT_CONFIG_FILENAME

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / DEFAULT_CONFIG_FILENAME

    return config_path
