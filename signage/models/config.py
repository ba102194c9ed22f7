from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class SchedulerSettings(BaseModel):
    """Defaults for widget background refresh tasks."""

    default_interval: int = Field(
        900,
        ge=1,
        description="Seconds between refresh attempts for widgets without their own interval",
    )


class WeatherSettings(BaseModel):
    """Settings for the weather data API and the weather widget."""

    endpoint: str = Field(
        "http://localhost:8000/api/weather",
        description="Base URL of the weather data API",
    )
    timeout: float = Field(10.0, gt=0, le=120, description="HTTP timeout in seconds")
    max_attempts: int = Field(3, ge=1, le=10, description="Attempts per fetch before giving up")
    run_interval: int = Field(
        2820,
        ge=60,
        description="Seconds between staleness checks of a weather widget",
    )
    stale_after: int = Field(
        1800,
        ge=60,
        description="Seconds after the last update before content counts as stale",
    )
    temperature_scale: str = Field(
        "f",
        description="Scale used when a widget does not configure temperature_scale",
    )
    icon_version: Optional[str] = Field(default=None, description="Icon set version")
    timezone: str = Field("UTC", description="Time zone used for forecast day names")


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    file: Optional[str] = Field(default=None, description="Optional log file path")


class ApiSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)


class SignageSettings(BaseModel):
    """Top-level settings for a signage player."""

    zone_id: Optional[int] = Field(default=None, description="Zone hosting catalog widgets")
    display_id: Optional[int] = Field(default=None, description="Display the zone belongs to")
    catalog_path: Optional[str] = Field(default=None, description="Catalog file loaded at startup")
    template_dir: Optional[str] = Field(default=None, description="Override for widget templates")
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    weather: WeatherSettings = Field(default_factory=WeatherSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
