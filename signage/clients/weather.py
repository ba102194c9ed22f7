from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx

from ..models.config import WeatherSettings

__all__ = ["WeatherApiClient", "WeatherDataSource", "WeatherServiceError"]

LOGGER = logging.getLogger(__name__)

INITIAL_BACKOFF_SECONDS = 1.0
MAX_BACKOFF_SECONDS = 8.0


class WeatherServiceError(RuntimeError):
    pass


class WeatherDataSource(Protocol):
    async def get_weather(self, location: Any, scale: str = "c") -> Mapping[str, Any]: ...


class WeatherApiClient:
    """Fetch current conditions and forecasts from the weather data API.

    Transient failures are retried with exponential backoff; the last error
    is raised as :class:`WeatherServiceError` once attempts run out.
    """

    def __init__(
        self,
        settings: Optional[WeatherSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or WeatherSettings()
        self._transport = transport

    async def get_weather(self, location: Any, scale: str = "c") -> Mapping[str, Any]:
        if location in (None, ""):
            raise WeatherServiceError("No location given for weather request")

        params: Dict[str, Any] = {"location": location, "scale": scale}
        timeout = httpx.Timeout(self.settings.timeout, connect=min(5.0, self.settings.timeout))
        attempts = self.settings.max_attempts
        delay = INITIAL_BACKOFF_SECONDS
        last_error: Optional[Exception] = None
        async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
            for attempt in range(attempts):
                try:
                    response = await client.get(self.settings.endpoint, params=params)
                    response.raise_for_status()
                    payload = response.json()
                    if not isinstance(payload, Mapping):
                        raise ValueError("weather payload is not a mapping")
                    return payload
                except (httpx.HTTPError, ValueError) as exc:
                    last_error = exc
                    LOGGER.debug(
                        "Weather request for %s failed (attempt %d/%d): %s",
                        location,
                        attempt + 1,
                        attempts,
                        exc,
                    )
                    if attempt == attempts - 1:
                        break
                    await asyncio.sleep(delay)
                    delay = min(delay * 2, MAX_BACKOFF_SECONDS)
        raise WeatherServiceError(str(last_error or "Unknown error while fetching weather data"))
