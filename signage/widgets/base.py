from __future__ import annotations

import asyncio
import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

if TYPE_CHECKING:  # pragma: no cover - circular typing guard
    from ..clients.weather import WeatherDataSource
    from ..messaging import PushChannel
    from ..models.config import SignageSettings
    from ..rendering import Renderer
    from ..scheduler import SchedulerService

__all__ = [
    "CatalogRecordError",
    "FadeOutResult",
    "RenderTarget",
    "TimelineSlot",
    "Widget",
    "WidgetError",
    "WidgetServices",
    "WidgetState",
    "WidgetStateError",
    "WidgetTransitionError",
    "value_not_empty",
]

LOGGER = logging.getLogger(__name__)

WidgetId = Union[int, str]


class WidgetError(RuntimeError):
    """Raised when widgets fail to load, transition or render."""


class WidgetStateError(WidgetError):
    """Raised when a lifecycle operation is invalid for the current state."""


class WidgetTransitionError(WidgetError):
    """Raised when a lifecycle transition overlaps one still in flight."""


class CatalogRecordError(WidgetError):
    """Raised when a catalog record cannot be turned into a widget."""


class WidgetState(IntEnum):
    CREATED = 0
    STOPPED = 1
    PLAYING = 2
    PAUSED = 3


def value_not_empty(value: Any) -> bool:
    return value is not None and value != ""


@dataclass(frozen=True)
class TimelineSlot:
    """A bounded allocation of playback time handed to the timeline."""

    widget: "Widget" = field(repr=False, compare=False)
    duration: float
    params: Optional[Mapping[str, Any]] = None
    group_identifier: Optional[str] = None


@dataclass(frozen=True)
class FadeOutResult:
    cancel_fade: bool = False


@dataclass
class WidgetServices:
    """Collaborators injected into every widget built by the factory."""

    scheduler: Optional["SchedulerService"] = None
    renderer: Optional["Renderer"] = None
    push_channel: Optional["PushChannel"] = None
    weather: Optional["WeatherDataSource"] = None
    settings: Optional["SignageSettings"] = None


@dataclass
class RenderTarget:
    """Host slot a widget renders into.

    The target only records where and how content should be placed; the
    rendered fragments themselves are produced by the render collaborator
    and kept in ``children`` until the widget stops.
    """

    element_id: str
    name: Optional[str] = None
    css_classes: List[str] = field(default_factory=list)
    style: Dict[str, str] = field(default_factory=dict)
    inline_css: List[str] = field(default_factory=list)
    width: Optional[float] = None
    height: Optional[float] = None
    children: List[str] = field(default_factory=list)

    @property
    def layout_type(self) -> str:
        if self.width is not None and self.height is not None and self.height > self.width:
            return "portrait"
        return "landscape"

    def replace(self, fragment: str) -> None:
        self.children[:] = [fragment]

    def clear(self) -> None:
        self.children.clear()


class Widget:
    """Generic widget assignable to a display zone.

    The widget moves through ``CREATED -> STOPPED -> {PLAYING <-> PAUSED} ->
    STOPPED`` driven by the timeline. Concrete kinds customise behaviour
    through the protected ``_do_*`` hooks instead of overriding the public
    transitions, so state checks and the transition guard stay in one place.
    """

    def __init__(
        self,
        zone_id: Optional[int] = None,
        display_id: Optional[int] = None,
        *,
        services: Optional[WidgetServices] = None,
    ) -> None:
        self.zone_id = zone_id
        self.display_id = display_id
        self.services = services or WidgetServices()

        self.id: Optional[WidgetId] = None
        self.type: Optional[str] = getattr(self, "type", None)
        self.name: Optional[str] = None
        self.safe_name: Optional[str] = None

        self.duration: float = 10
        self.order: int = 0
        self.priority: int = 0
        self.saturation: Optional[int] = None
        self.desaturation: Optional[int] = None
        self.repellent: bool = False
        self.override: bool = False
        self.filler: bool = False
        self.minimum_loop_time: float = 10

        self.custom_css_class: Optional[str] = None
        self.css_templates: Dict[str, Any] = {}
        self.config: Dict[str, Any] = {}

        self.has_content_to_play = True
        self.broken = False
        self.timeline_slots: List[TimelineSlot] = []
        self.wrapper: Optional[RenderTarget] = None

        self._state = WidgetState.CREATED
        self._transition_lock: Optional[asyncio.Lock] = None

    # -- identity ------------------------------------------------------
    def set_name(self, name: Optional[str]) -> None:
        self.name = name
        self.safe_name = name.replace('"', '\\"') if name is not None else None

    def add_configuration_metadata(self, prop: str, value: Any) -> None:
        self.config[prop] = value

    # -- state ---------------------------------------------------------
    @property
    def state(self) -> WidgetState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is not WidgetState.CREATED

    @property
    def is_paused(self) -> bool:
        return self._state is not WidgetState.PLAYING

    def _guard(self) -> asyncio.Lock:
        if self._transition_lock is None:
            self._transition_lock = asyncio.Lock()
        lock = self._transition_lock
        if lock.locked():
            raise WidgetTransitionError(
                f"Widget {self.id} ({self.type}) is already changing state"
            )
        return lock

    # -- lifecycle -----------------------------------------------------
    async def initialize(self) -> None:
        """Prepare the render target and move from CREATED to STOPPED.

        Must not download playable content or start background work; kinds
        that need subscriptions or internal bookkeeping add them in
        :meth:`_do_initialize`.
        """

        async with self._guard():
            if self._state is not WidgetState.CREATED:
                raise WidgetStateError(
                    f"Cannot initialise widget {self.id} from state {self._state.name}"
                )
            self.wrapper = self.create_render_target()
            await self._do_initialize()
            self._state = WidgetState.STOPPED

    async def get_ready_for_display(self, current_slot: Optional[TimelineSlot] = None) -> None:
        """Populate the render target before the first play; no-op by default."""

    async def play(self, current_slot: Optional[TimelineSlot] = None) -> None:
        async with self._guard():
            if self._state not in (WidgetState.STOPPED, WidgetState.PAUSED):
                raise WidgetStateError(
                    f"Cannot play widget {self.id} from state {self._state.name}"
                )
            await self._do_play(current_slot)
            self._state = WidgetState.PLAYING

    async def pause(self, current_slot: Optional[TimelineSlot] = None) -> None:
        """Pause the widget; only a PLAYING widget can be paused."""

        async with self._guard():
            if self._state is not WidgetState.PLAYING:
                return
            await self._do_pause(current_slot)
            self._state = WidgetState.PAUSED

    async def stop(self) -> None:
        async with self._guard():
            if self._state is WidgetState.CREATED:
                LOGGER.debug("Ignoring stop for uninitialised widget %s", self.id)
                return
            await self._do_stop()
            if self.wrapper is not None:
                self.wrapper.clear()
            self._state = WidgetState.STOPPED

    async def dispose(self) -> None:
        """Stop the widget and release what :meth:`initialize` acquired.

        Called when the widget leaves the zone for good.
        """

        await self.stop()
        async with self._guard():
            await self._do_dispose()

    async def _do_initialize(self) -> None:
        return None

    async def _do_play(self, current_slot: Optional[TimelineSlot]) -> None:
        return None

    async def _do_pause(self, current_slot: Optional[TimelineSlot]) -> None:
        # halt animations/sound in concrete kinds
        return None

    async def _do_stop(self) -> None:
        return None

    async def _do_dispose(self) -> None:
        return None

    # -- fade hooks ----------------------------------------------------
    async def before_fade_in(
        self,
        current_slot: TimelineSlot,
        previous_slot: Optional[TimelineSlot] = None,
        timeline: Any = None,
    ) -> None:
        return None

    async def after_fade_in(
        self, current_slot: TimelineSlot, previous_slot: Optional[TimelineSlot] = None
    ) -> None:
        return None

    async def before_fade_out(
        self, current_slot: TimelineSlot, next_slot: Optional[TimelineSlot] = None
    ) -> FadeOutResult:
        # same widget back to back: skip the fade to avoid flicker
        cancel = next_slot is not None and next_slot.widget.id == current_slot.widget.id
        return FadeOutResult(cancel_fade=cancel)

    async def after_fade_out(
        self, current_slot: TimelineSlot, next_slot: Optional[TimelineSlot] = None
    ) -> None:
        return None

    async def content_on_deck(self, next_slot: Optional[TimelineSlot] = None) -> None:
        return None

    def clear_cache(self) -> None:
        return None

    async def recheck_for_content(self) -> bool:
        return self.has_content_to_play

    # -- timeline slots ------------------------------------------------
    def query_content(self) -> List[TimelineSlot]:
        self.timeline_slots = [self.generate_slot(self.duration)]
        return self.timeline_slots

    def query_slots(self, num_slots: int, max_duration: float) -> List[TimelineSlot]:
        """Allocate ``min(num_slots, floor(max_duration / duration))`` equal slots.

        The total never exceeds ``max_duration``. Kinds needing variable-size
        slots override this.
        """

        slots: List[TimelineSlot] = []
        if self.duration <= 0 or not math.isfinite(self.duration):
            return slots
        ratio = max_duration / self.duration
        if math.isnan(ratio) or ratio <= 0:
            fits = 0
        elif math.isinf(ratio):
            fits = num_slots
        else:
            fits = math.floor(ratio)
        count = min(max(0, int(num_slots)), int(fits))
        total = 0.0
        for _ in range(count):
            # float division can round up past the limit
            if total + self.duration > max_duration:
                break
            total += self.duration
            slots.append(self.generate_slot(self.duration))
        return slots

    def generate_slot(
        self,
        duration: float,
        params: Optional[Mapping[str, Any]] = None,
        group_id: Optional[WidgetId] = None,
    ) -> TimelineSlot:
        group_identifier = (
            self.generate_group_identifier(group_id) if value_not_empty(group_id) else None
        )
        return TimelineSlot(
            widget=self,
            duration=duration,
            params=params or None,
            group_identifier=group_identifier,
        )

    def generate_group_identifier(self, group_id: WidgetId) -> str:
        return f"widget_{self.id}_{self.safe_name}_group_{group_id}"

    # -- rendering -----------------------------------------------------
    def create_render_target(self) -> RenderTarget:
        target = RenderTarget(element_id=f"widget_{self.id}", name=self.name)
        target.css_classes.extend(
            [
                "widget",
                f"widget-{self.type}",
                str(self.type),
                f"custom-{self.type}-{self.custom_css_class}",
            ]
        )

        config = self.config
        if value_not_empty(config.get("width")):
            target.style["width"] = f"{config['width']}px"
            target.width = _as_float(config["width"])
        if value_not_empty(config.get("height")):
            target.style["height"] = f"{config['height']}px"
            target.height = _as_float(config["height"])
        if value_not_empty(config.get("z")):
            target.style["z-index"] = str(config["z"])
        if value_not_empty(config.get("x")):
            target.style["left"] = f"{config['x']}px"
        if value_not_empty(config.get("y")):
            target.style["top"] = f"{config['y']}px"
        for key in ("css", "gui_css"):
            if value_not_empty(config.get(key)):
                target.inline_css.append(str(config[key]))
        return target

    def get_layout_type(self) -> str:
        if self.wrapper is None:
            return "landscape"
        return self.wrapper.layout_type

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__}(id={self.id!r}, type={self.type!r}, "
            f"state={self._state.name})>"
        )


def _as_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
