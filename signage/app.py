from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Union

import yaml
from fastapi import FastAPI, Request

from . import __version__
from .clients.weather import WeatherApiClient, WeatherDataSource
from .config.loader import ConfigError
from .messaging import LocalPushChannel
from .models.config import SignageSettings
from .rendering import Renderer, TemplateRenderer
from .scheduler import SchedulerService
from .widgets import CatalogRecordError, Widget, WidgetError, WidgetFactory, WidgetServices

LOGGER = logging.getLogger(__name__)

CatalogRecords = Iterable[Mapping[str, Any]]


@dataclass
class SignageState:
    """Container for the player state shared across request handlers."""

    settings: SignageSettings
    scheduler: SchedulerService
    push_channel: LocalPushChannel
    renderer: Renderer
    weather: WeatherDataSource
    factory: WidgetFactory
    widgets: Dict[str, Widget] = field(default_factory=dict)

    def add_widget(self, widget: Widget) -> None:
        self.widgets[str(widget.id)] = widget

    def get_widget(self, widget_id: Union[int, str]) -> Optional[Widget]:
        return self.widgets.get(str(widget_id))

    def load_catalog(self, records: CatalogRecords) -> List[Widget]:
        """Build a widget for every record; malformed records are skipped."""

        created: List[Widget] = []
        for record in records:
            try:
                widget = self.factory.create_widget(
                    record, self.settings.zone_id, self.settings.display_id
                )
            except CatalogRecordError as exc:
                LOGGER.warning("Skipping catalog record: %s", exc)
                continue
            self.add_widget(widget)
            created.append(widget)
        LOGGER.info("Loaded %d widget(s) from catalog", len(created))
        return created

    async def stop_widgets(self) -> None:
        for widget in list(self.widgets.values()):
            try:
                await widget.dispose()
            except WidgetError as exc:
                LOGGER.warning("Failed to stop widget %s: %s", widget.id, exc)


def get_app_state(request: Request) -> SignageState:
    state = getattr(request.app.state, "signage", None)
    if state is None:
        raise RuntimeError("Application state has not been initialised")
    return state


def read_catalog(path: Union[str, Path]) -> List[Mapping[str, Any]]:
    """Read catalog records from a YAML or JSON file.

    The file holds either a list of records or a mapping with a
    ``widgets`` list.
    """

    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read catalog {path}: {exc}") from exc
    if raw is None:
        return []
    if isinstance(raw, Mapping):
        raw = raw.get("widgets") or []
    if not isinstance(raw, list) or not all(isinstance(item, Mapping) for item in raw):
        raise ConfigError(f"Catalog {path} must contain a list of widget records")
    return raw


def create_app(
    settings: Optional[SignageSettings] = None,
    *,
    catalog: Optional[CatalogRecords] = None,
    scheduler: Optional[SchedulerService] = None,
    renderer: Optional[Renderer] = None,
    push_channel: Optional[LocalPushChannel] = None,
    weather: Optional[WeatherDataSource] = None,
) -> FastAPI:
    settings = settings or SignageSettings()
    scheduler = scheduler or SchedulerService()
    renderer = renderer or TemplateRenderer(
        Path(settings.template_dir) if settings.template_dir else None
    )
    push_channel = push_channel or LocalPushChannel()
    weather = weather or WeatherApiClient(settings.weather)

    services = WidgetServices(
        scheduler=scheduler,
        renderer=renderer,
        push_channel=push_channel,
        weather=weather,
        settings=settings,
    )
    state = SignageState(
        settings=settings,
        scheduler=scheduler,
        push_channel=push_channel,
        renderer=renderer,
        weather=weather,
        factory=WidgetFactory(services),
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        await state.scheduler.start()
        records = catalog
        if records is None and settings.catalog_path:
            records = read_catalog(settings.catalog_path)
        if records is not None:
            state.load_catalog(records)
            await state.factory.wait_initialized()
        try:
            yield
        finally:
            await state.stop_widgets()
            await state.scheduler.stop()

    app = FastAPI(title="Signage Widgets", version=__version__, lifespan=lifespan)
    app.state.signage = state

    from .api import status, widgets

    app.include_router(status.router)
    app.include_router(widgets.router)

    return app


__all__ = [
    "SignageState",
    "create_app",
    "get_app_state",
    "read_catalog",
]
