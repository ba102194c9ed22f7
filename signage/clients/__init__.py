"""Data-API collaborators consumed by widget refresh logic."""

from .weather import WeatherApiClient, WeatherDataSource, WeatherServiceError

__all__ = ["WeatherApiClient", "WeatherDataSource", "WeatherServiceError"]
