from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, Optional

import pytest

from signage.clients.weather import WeatherServiceError
from signage.messaging import LocalPushChannel
from signage.widgets import RenderTarget, WidgetServices


class FakeHandle:
    def __init__(self, name: str) -> None:
        self.name = name
        self.pauses = 0
        self.resumes = 0

    @property
    def paused(self) -> bool:
        return self.pauses > self.resumes

    def pause(self) -> None:
        self.pauses += 1

    def resume(self) -> None:
        self.resumes += 1


class FakeScheduler:
    def __init__(self) -> None:
        self.created: List[FakeHandle] = []
        self.actions: Dict[str, Any] = {}
        self.deleted: List[str] = []
        self.started = False

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.started = False

    def create(self, name, interval, unit, action) -> FakeHandle:
        handle = FakeHandle(name)
        self.created.append(handle)
        self.actions[name] = (interval, unit, action)
        return handle

    def delete(self, name: str) -> None:
        self.deleted.append(name)
        self.actions.pop(name, None)

    def exists(self, name: str) -> bool:
        return name in self.actions

    def status(self) -> Dict[str, Any]:
        return {
            "running": self.started,
            "jobs": [
                {"id": name, "name": name, "next_run": None, "trigger": f"every {i} {u}", "paused": False}
                for name, (i, u, _) in self.actions.items()
            ],
        }


class FakeRenderer:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: List[tuple] = []

    async def render(self, target: RenderTarget, template_name: str, context: Mapping[str, Any]) -> str:
        if self.fail:
            raise RuntimeError("render exploded")
        self.calls.append((target.element_id, template_name, dict(context)))
        markup = f"<div>{template_name}</div>"
        target.replace(markup)
        return markup


class FakeWeatherClient:
    def __init__(self, payload: Optional[Mapping[str, Any]] = None, fail: bool = False) -> None:
        self.payload = payload
        self.fail = fail
        self.requests: List[tuple] = []

    async def get_weather(self, location: Any, scale: str = "c") -> Mapping[str, Any]:
        self.requests.append((location, scale))
        if self.fail:
            raise WeatherServiceError("weather service unavailable")
        return copy.deepcopy(self.payload)


SAMPLE_WEATHER = {
    "weather": {
        "current": [
            {
                "weather_locality_id": 7,
                "temperature": 20,
                "feels_like": 18.4,
                "locality": "Springfield",
                "area": "IL",
                "description": "Partly cloudy",
                "condition": "clouds",
                "icon": "partly_cloudy",
                "wind_speed": 12,
                "wind_direction": "NW",
            }
        ],
        "forecast": [
            {"timestamp": 1700000000, "temp_high": 22, "temp_low": 10, "condition": "sun", "icon": "sun"},
            {"timestamp": 1700086400, "temp_high": 25, "temp_low": 12, "condition": "rain", "icon": "rain"},
            {"timestamp": 1700172800, "temp_high": 15, "temp_low": 5, "condition": "snow", "icon": "snow"},
        ],
        "hourly": [
            {"timestamp": 1700000000, "time": "10:00", "temp_high": 0, "temp_low": -5, "icon": "sun"},
        ],
    }
}


@pytest.fixture
def fake_scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def weather_payload() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_WEATHER)


@pytest.fixture
def services(fake_scheduler, fake_renderer, weather_payload) -> WidgetServices:
    return WidgetServices(
        scheduler=fake_scheduler,
        renderer=fake_renderer,
        push_channel=LocalPushChannel(),
        weather=FakeWeatherClient(weather_payload),
    )
