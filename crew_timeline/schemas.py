"""
Pydantic schemas for configuration, settings, and input validation.
"""

from datetime import date, time
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkdayConfig(BaseModel):
    """Workday window; all schedule minutes are offsets from its start."""
    start: str = Field(default="06:00", pattern=r"^\d{2}:\d{2}$")  # HH:MM format
    end: str = Field(default="18:00", pattern=r"^\d{2}:\d{2}$")    # HH:MM format

    @field_validator('end')
    @classmethod
    def end_after_start(cls, v, info):
        """Ensure end time is after start time."""
        if 'start' in info.data:
            start_time = time.fromisoformat(info.data['start'])
            end_time = time.fromisoformat(v)
            if end_time <= start_time:
                raise ValueError('End time must be after start time')
        return v

    @property
    def total_minutes(self) -> int:
        """Length of the workday in minutes (720 for 06:00-18:00)."""
        start_time = time.fromisoformat(self.start)
        end_time = time.fromisoformat(self.end)
        return (end_time.hour * 60 + end_time.minute) - (start_time.hour * 60 + start_time.minute)


class TravelConfig(BaseModel):
    """Travel block derivation settings."""
    default_minutes: int = Field(default=30, gt=0)
    min_render_minutes: int = Field(default=15, gt=0)
    resolve_concurrency: int = Field(default=5, ge=1, le=50)
    request_timeout_seconds: float = Field(default=5.0, gt=0)


class GoogleConfig(BaseModel):
    """Google Distance Matrix configuration."""
    mode: str = Field(default="driving", pattern="^(driving|walking|bicycling|transit)$")
    traffic_model: str = Field(
        default="BEST_GUESS",
        pattern="^(BEST_GUESS|OPTIMISTIC|PESSIMISTIC)$"
    )
    max_retries: int = Field(default=2, ge=1, le=10)
    retry_delay_seconds: float = Field(default=0.5, gt=0)
    rate_limit_requests_per_second: int = Field(default=10, ge=1, le=100)
    address_cache_ttl_hours: float = Field(default=24.0, gt=0)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR)$"
    )
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


class DevConfig(BaseModel):
    """Development and testing configuration."""
    mock_google_api: bool = Field(default=False)
    debug_travel: bool = Field(default=False)


class AppConfig(BaseModel):
    """Complete application configuration loaded from params.yaml."""
    workday: WorkdayConfig = Field(default_factory=WorkdayConfig)
    travel: TravelConfig = Field(default_factory=TravelConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    home_base_address: Optional[str] = Field(default=None)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    dev: DevConfig = Field(default_factory=DevConfig)


class Settings(BaseSettings):
    """Environment-based settings (primarily for secrets)."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    google_maps_api_key: Optional[str] = Field(default=None)
    debug_travel: bool = Field(default=False)


# Input schemas
class AssignmentRow(BaseModel):
    """Single assignment row from a scheduling store export."""
    id: str = Field(min_length=1)
    crew_id: str = Field(min_length=1)
    date: date
    start_minutes: int = Field(ge=0)
    end_minutes: int = Field(ge=0)
    starts_at_home_base: bool = Field(default=False)
    ends_at_home_base: bool = Field(default=False)
    address: Optional[str] = Field(default=None)
    job_id: Optional[str] = Field(default=None)

    @field_validator('end_minutes')
    @classmethod
    def end_not_before_start(cls, v, info):
        """Reject rows whose end precedes their start."""
        if 'start_minutes' in info.data and v < info.data['start_minutes']:
            raise ValueError('end_minutes must not be before start_minutes')
        return v
