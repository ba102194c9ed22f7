from .config import (
    ApiSettings,
    LoggingSettings,
    SchedulerSettings,
    SignageSettings,
    WeatherSettings,
)

__all__ = [
    "ApiSettings",
    "LoggingSettings",
    "SchedulerSettings",
    "SignageSettings",
    "WeatherSettings",
]
