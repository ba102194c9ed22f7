"""Build widgets from CMS catalog records."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Mapping, Optional, Set, Type, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .base import CatalogRecordError, Widget, WidgetServices
from .weather import WeatherWidget

__all__ = ["BUILTIN_WIDGETS", "DEFAULT_WIDGET_TYPE", "CatalogRecord", "WidgetFactory"]

LOGGER = logging.getLogger(__name__)

DEFAULT_WIDGET_TYPE = "general"

BUILTIN_WIDGETS: Dict[str, Type[Widget]] = {
    "weather": WeatherWidget,
}


class CatalogRecord(BaseModel):
    """One widget entry of the catalog API.

    Every field is optional: a field missing from the record leaves the
    widget's own default untouched, so only ``model_fields_set`` is applied.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Optional[str] = None
    id: Optional[Union[int, str]] = Field(default=None, alias="widgetsid")
    name: Optional[str] = Field(default=None, alias="widgetsname")
    css_templates: Optional[Union[str, Dict[str, Any]]] = None
    custom_css_class: Optional[str] = None
    desaturation: Optional[int] = None
    duration: Optional[float] = None
    filler: Optional[bool] = None
    order: Optional[int] = None
    priority: Optional[int] = None
    repellent: Optional[bool] = None
    override: Optional[bool] = None
    saturation: Optional[int] = None
    minimum_loop_time: Optional[float] = None
    config: Optional[Dict[str, Any]] = None


_PLAIN_FIELDS = (
    "custom_css_class",
    "duration",
    "filler",
    "order",
    "priority",
    "repellent",
    "override",
    "saturation",
    "minimum_loop_time",
)


class WidgetFactory:
    """Resolve, populate and start initialising widgets from catalog records."""

    def __init__(
        self,
        services: Optional[WidgetServices] = None,
        *,
        registry: Optional[Mapping[str, Type[Widget]]] = None,
    ) -> None:
        self.services = services or WidgetServices()
        self._registry: Dict[str, Type[Widget]] = dict(
            BUILTIN_WIDGETS if registry is None else registry
        )
        self._pending: Set[asyncio.Task] = set()

    def register(self, widget_type: str, widget_class: Type[Widget]) -> None:
        if not issubclass(widget_class, Widget):
            raise TypeError(f"{widget_class!r} must inherit from Widget")
        if widget_type in self._registry:
            LOGGER.warning("Overwriting existing widget type: %s", widget_type)
        self._registry[widget_type] = widget_class

    def get_widget_class(self, widget_type: str) -> Optional[Type[Widget]]:
        return self._registry.get(widget_type)

    def widget_types(self) -> list:
        return sorted(self._registry)

    def create_widget(
        self,
        record: Union[Mapping[str, Any], CatalogRecord],
        zone_id: Optional[int] = None,
        display_id: Optional[int] = None,
    ) -> Widget:
        """Build a widget and start initialising it in the background.

        The widget is returned before initialisation completes; failures are
        logged per widget and never propagate to the caller.
        """

        catalog = self._parse(record)
        widget_type = catalog.type or DEFAULT_WIDGET_TYPE
        widget_class = self.get_widget_class(widget_type)
        if widget_class is None:
            if widget_type != DEFAULT_WIDGET_TYPE:
                LOGGER.warning(
                    "The widget type '%s' is unknown, falling back to base widget class.",
                    widget_type,
                )
            widget_class = Widget

        widget = widget_class(zone_id, display_id, services=self.services)
        self._populate(widget, catalog)
        if widget.type is None:
            widget.type = widget_type
        self._start_initialize(widget)
        return widget

    async def wait_initialized(self) -> None:
        """Wait until every initialisation started so far has finished."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    @staticmethod
    def _parse(record: Union[Mapping[str, Any], CatalogRecord]) -> CatalogRecord:
        if isinstance(record, CatalogRecord):
            return record
        try:
            return CatalogRecord.model_validate(dict(record))
        except (TypeError, ValueError, ValidationError) as exc:
            raise CatalogRecordError(f"Invalid catalog record: {exc}") from exc

    @staticmethod
    def _populate(widget: Widget, catalog: CatalogRecord) -> None:
        present = catalog.model_fields_set

        if "css_templates" in present and catalog.css_templates:
            templates = catalog.css_templates
            if isinstance(templates, str):
                try:
                    templates = json.loads(templates)
                except json.JSONDecodeError as exc:
                    raise CatalogRecordError(f"Invalid css_templates: {exc}") from exc
            if not isinstance(templates, dict):
                raise CatalogRecordError("css_templates must decode to a mapping")
            widget.css_templates = dict(templates)

        if "desaturation" in present and catalog.desaturation is not None:
            widget.desaturation = catalog.desaturation

        for name in _PLAIN_FIELDS:
            value = getattr(catalog, name)
            if name in present and value is not None:
                setattr(widget, name, value)

        if "id" in present:
            widget.id = catalog.id
        if "name" in present:
            widget.set_name(catalog.name)

        for prop, value in (catalog.config or {}).items():
            widget.add_configuration_metadata(prop, value)

    def _start_initialize(self, widget: Widget) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            LOGGER.warning(
                "No running event loop; %s widget %s left uninitialised", widget.type, widget.name
            )
            return
        task = loop.create_task(self._initialize(widget))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _initialize(widget: Widget) -> None:
        try:
            await widget.initialize()
        except Exception as exc:
            LOGGER.error(
                "Failed to initialize %s widget: %s (%s)", widget.type, widget.name, exc, exc_info=True
            )
