"""Widget lifecycle, content slots and the widget kinds known to the player."""

from .base import (
    CatalogRecordError,
    FadeOutResult,
    RenderTarget,
    TimelineSlot,
    Widget,
    WidgetError,
    WidgetServices,
    WidgetState,
    WidgetStateError,
    WidgetTransitionError,
)
from .capabilities import Lifecycle, Scheduled, Templated
from .factory import BUILTIN_WIDGETS, CatalogRecord, WidgetFactory
from .scheduled import ScheduledWidget
from .templated import TemplatedWidgetMixin
from .weather import WeatherWidget

__all__ = [
    "BUILTIN_WIDGETS",
    "CatalogRecord",
    "CatalogRecordError",
    "FadeOutResult",
    "Lifecycle",
    "RenderTarget",
    "Scheduled",
    "ScheduledWidget",
    "Templated",
    "TemplatedWidgetMixin",
    "TimelineSlot",
    "WeatherWidget",
    "Widget",
    "WidgetError",
    "WidgetFactory",
    "WidgetServices",
    "WidgetState",
    "WidgetStateError",
    "WidgetTransitionError",
]
