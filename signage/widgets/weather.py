from __future__ import annotations

import datetime as dt
import logging
import math
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from dateutil import tz

from ..clients.weather import WeatherServiceError
from ..messaging import weather_topic
from .base import WidgetState
from .scheduled import ScheduledWidget
from .templated import TemplatedWidgetMixin

LOGGER = logging.getLogger(__name__)

__all__ = [
    "RUN_INTERVAL_SECONDS",
    "STALE_AFTER_SECONDS",
    "WEATHER_UPDATE_EVENT",
    "WeatherWidget",
    "convert_temperature",
    "day_name_from_timestamp",
    "weather_background_url",
    "weather_icon_url",
]

RUN_INTERVAL_SECONDS = 2820
STALE_AFTER_SECONDS = 1800
WEATHER_UPDATE_EVENT = "weather-update"
UNKNOWN_ICON_URL = "/images/weather_icon/na.png"
WIND_DIRECTION_ICON_URL = "/images/weather_icon/wind/wind_dir2.png"


def convert_temperature(temp_c: Optional[float], scale: str) -> Optional[float]:
    """Convert a Celsius temperature to ``scale``; unknown scales give ``None``."""

    if temp_c is None:
        return None
    value = float(temp_c)
    scale = scale.lower()
    if scale in ("fahrenheit", "f"):
        return value * (9 / 5) + 32
    if scale in ("centigrade", "celsius", "c"):
        return value
    if scale in ("kelvin", "k"):
        return value + 273.15
    if scale == "rankine":
        return (value + 273.15) * (9 / 5)
    if scale == "delisle":
        return (100 - value) * 1.5
    if scale == "newton":
        return value * (33 / 100)
    if scale == "réaumur":
        return value * 0.8
    if scale in ("rømer", "roemer"):
        return value * (21 / 40) + 7.5
    return None


def _round_half_up(value: Optional[float]) -> Optional[int]:
    if value is None:
        return None
    return int(math.floor(value + 0.5))


def weather_icon_url(icon: Any, version: Optional[str] = None) -> str:
    prefix = f"{version}/" if version is not None else ""
    return f"/images/weather_icon/{prefix}{icon}.png"


def weather_background_url(condition: Any) -> str:
    return f"/images/weather_background/v1/{condition}.png"


def day_name_from_timestamp(timestamp: Any, zone: Optional[str] = None) -> Optional[str]:
    try:
        seconds = float(timestamp)
    except (TypeError, ValueError):
        return None
    tzinfo = tz.gettz(zone) if zone else tz.tzutc()
    return dt.datetime.fromtimestamp(seconds, tz=tzinfo or tz.tzutc()).strftime("%a")


class WeatherWidget(TemplatedWidgetMixin, ScheduledWidget):
    """Current conditions and forecast for the configured ``zip`` location.

    Content is refreshed three ways: once before the first play, by the
    periodic staleness check while playing, and whenever a push event for
    the widget's location arrives. All of them go through :meth:`refresh`,
    which only swaps cached data and requests a render.
    """

    type = "weather"
    template_name = "weather.html"
    scheduler_run_interval = RUN_INTERVAL_SECONDS

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        settings = self.services.settings
        self.stale_after: float = settings.weather.stale_after if settings else STALE_AFTER_SECONDS
        self.last_update: Optional[float] = None
        self.weather: Optional[Dict[str, Any]] = None
        self.hourly: List[Dict[str, Any]] = []

    def _default_run_interval(self) -> float:
        settings = self.services.settings
        if settings is not None:
            return settings.weather.run_interval
        return type(self).scheduler_run_interval

    @property
    def location(self) -> Any:
        return self.config.get("zip")

    # -- lifecycle -----------------------------------------------------
    async def _do_initialize(self) -> None:
        channel = self.services.push_channel
        if channel is not None:
            channel.add_listener(WEATHER_UPDATE_EVENT, self._on_weather_update)
            if self.location:
                topic = weather_topic(self.location)
                try:
                    await channel.subscribe(topic)
                    LOGGER.debug(
                        "Weather widget subscribed. widget=%s, zip=%s", self.id, self.location
                    )
                except Exception:
                    LOGGER.exception("Failed to subscribe to channel %s", topic)
        await super()._do_initialize()

    async def _do_dispose(self) -> None:
        channel = self.services.push_channel
        if channel is not None:
            channel.remove_listener(WEATHER_UPDATE_EVENT, self._on_weather_update)
            if self.location:
                topic = weather_topic(self.location)
                try:
                    await channel.unsubscribe(topic)
                except Exception:
                    LOGGER.exception("Failed to unsubscribe from channel %s", topic)
        await super()._do_dispose()

    async def get_ready_for_display(self, current_slot=None) -> None:
        await self.refresh()

    async def _on_weather_update(self, detail: Mapping[str, Any]) -> None:
        if self.state not in (WidgetState.PLAYING, WidgetState.PAUSED):
            return
        if detail.get("location") != self.location:
            return
        LOGGER.info(
            "Received push notification for weather location %r", detail.get("location")
        )
        await self.refresh()

    # -- refresh -------------------------------------------------------
    def is_stale(self, now: Optional[float] = None) -> bool:
        if self.last_update is None:
            return True
        now = time.time() if now is None else now
        return self.last_update < now - self.stale_after

    async def scheduler_action(self) -> None:
        if not self.is_stale():
            return
        if self.last_update is not None:
            # push updates should have kept this fresh
            LOGGER.warning(
                "Weather widget is stale (%s:%s); will update from API", self.id, self.name
            )
        await self.refresh()

    async def refresh(self) -> bool:
        """Fetch fresh data and re-render; returns ``True`` on success.

        A failed fetch keeps the last known content. A widget that never
        obtained content reports ``has_content_to_play = False``.
        """

        client = self.services.weather
        if client is None:
            LOGGER.warning("Weather widget %s has no weather data source", self.id)
            self._mark_unavailable()
            return False
        try:
            payload = await client.get_weather(self.location, "c")
        except WeatherServiceError as exc:
            LOGGER.warning("Failed to fetch weather for widget %s (%s): %s", self.id, self.name, exc)
            self._mark_unavailable()
            return False
        try:
            await self.update_component(payload)
        except (ValueError, TypeError, AttributeError) as exc:
            LOGGER.warning(
                "Discarding malformed weather data for widget %s (%s): %s", self.id, self.name, exc
            )
            self._mark_unavailable()
            return False
        return True

    def _mark_unavailable(self) -> None:
        if self.weather is None:
            self.has_content_to_play = False

    async def update_component(self, payload: Optional[Mapping[str, Any]]) -> None:
        weather_data = (payload or {}).get("weather") or {}
        has_content = bool(self.location) and bool(weather_data)
        if has_content:
            # build first so malformed data leaves the cached content intact
            weather = self._build_weather(weather_data)
            hourly = self._build_hourly(weather_data.get("hourly") or [])
        self.has_content_to_play = has_content
        self.last_update = time.time()
        if not has_content:
            return

        self.weather = weather
        self.hourly = hourly
        layout = self.get_layout_type()
        context = {
            "wid": str(self.id),
            "widget": {"id": self.id, "name": self.name},
            "weather": self.weather,
            "hourly": self.hourly,
            "last_updated": self.last_update,
            "landscape": layout == "landscape",
            "portrait": layout == "portrait",
        }
        await self.render_content(context)

    # -- context builders ----------------------------------------------
    def _temperature_scale(self) -> str:
        scale = self.config.get("temperature_scale")
        if not scale and self.services.settings is not None:
            scale = self.services.settings.weather.temperature_scale
        return str(scale or "f")

    def _icon_version(self) -> Optional[str]:
        version = self.config.get("icon_version")
        if version is None and self.services.settings is not None:
            version = self.services.settings.weather.icon_version
        return version

    def _timezone(self) -> Optional[str]:
        zone = self.config.get("timezone")
        if not zone and self.services.settings is not None:
            zone = self.services.settings.weather.timezone
        return zone

    def _conv(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return _round_half_up(convert_temperature(value, self._temperature_scale()))

    def _build_weather(self, weather_data: Mapping[str, Any]) -> Dict[str, Any]:
        current: Sequence[Mapping[str, Any]] = weather_data.get("current") or []
        forecast: Sequence[Mapping[str, Any]] = weather_data.get("forecast") or []
        version = self._icon_version()
        zone = self._timezone()
        now = current[0] if current else {}

        weather: Dict[str, Any] = {
            "weather_locality_id": now.get("weather_locality_id"),
            "currday_temp": self._conv(now.get("temperature")),
            "locality": now.get("locality"),
            "area": now.get("area"),
            "description": now.get("description"),
            "condition": now.get("condition"),
            "currday_icon": weather_icon_url(now["icon"], version) if now.get("icon") else UNKNOWN_ICON_URL,
            "currday_background": weather_background_url(now["icon"]) if now.get("icon") else None,
            "wind_speed": now.get("wind_speed"),
            "wind_direction_icon": WIND_DIRECTION_ICON_URL if now else None,
            "wind_direction": now.get("wind_direction"),
            "feels_like": self._conv(now.get("feels_like")),
        }

        today = forecast[0] if forecast else {}
        weather.update(
            today_hi=self._conv(today.get("temp_high")),
            today_low=self._conv(today.get("temp_low")),
            today_condition=today.get("condition"),
        )

        tomorrow = forecast[1] if len(forecast) > 1 else {}
        weather.update(
            tomorrow_day=day_name_from_timestamp(tomorrow.get("timestamp"), zone),
            tomorrow_hi=self._conv(tomorrow.get("temp_high")),
            tomorrow_low=self._conv(tomorrow.get("temp_low")),
            tomorrow_condition=tomorrow.get("condition"),
            tomorrow_icon=(
                weather_icon_url(tomorrow["icon"], version) if tomorrow.get("icon") else UNKNOWN_ICON_URL
            ),
            tomorrow_feels_like=self._conv(tomorrow.get("feels_like")),
        )

        for index in range(2, len(forecast)):
            day = forecast[index]
            prefix = f"day{index}"
            weather[f"{prefix}_day"] = day_name_from_timestamp(day.get("timestamp"), zone)
            weather[f"{prefix}_hi"] = self._conv(day.get("temp_high"))
            weather[f"{prefix}_low"] = self._conv(day.get("temp_low"))
            weather[f"{prefix}_condition"] = day.get("condition")
            weather[f"{prefix}_icon"] = (
                weather_icon_url(day["icon"], version) if day.get("icon") else None
            )
            weather[f"{prefix}_feels_like"] = self._conv(day.get("feels_like"))
        return weather

    def _build_hourly(self, hourly: Sequence[Mapping[str, Any]]) -> List[Dict[str, Any]]:
        version = self._icon_version()
        zone = self._timezone()
        return [
            {
                "day": day_name_from_timestamp(hour.get("timestamp"), zone),
                "date": hour.get("date"),
                "time": hour.get("time"),
                "temp_high": self._conv(hour.get("temp_high")),
                "temp_low": self._conv(hour.get("temp_low")),
                "condition": hour.get("condition"),
                "icon": weather_icon_url(hour.get("icon"), version),
                "feels_like": self._conv(hour.get("feels_like")),
            }
            for hour in hourly
        ]
