"""Capability protocols implemented by widget kinds.

The factory and the timeline only rely on these structural contracts, so a
widget kind advertises what it can do by the methods it provides rather than
by where it sits in a class hierarchy.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

from .base import FadeOutResult, TimelineSlot, WidgetState

__all__ = ["Lifecycle", "Scheduled", "Templated"]


@runtime_checkable
class Lifecycle(Protocol):
    @property
    def state(self) -> WidgetState: ...

    async def initialize(self) -> None: ...

    async def get_ready_for_display(self, current_slot: Optional[TimelineSlot] = None) -> None: ...

    async def play(self, current_slot: Optional[TimelineSlot] = None) -> None: ...

    async def pause(self, current_slot: Optional[TimelineSlot] = None) -> None: ...

    async def stop(self) -> None: ...

    async def dispose(self) -> None: ...

    async def before_fade_out(
        self, current_slot: TimelineSlot, next_slot: Optional[TimelineSlot] = None
    ) -> FadeOutResult: ...

    def query_content(self) -> List[TimelineSlot]: ...

    def query_slots(self, num_slots: int, max_duration: float) -> List[TimelineSlot]: ...


@runtime_checkable
class Scheduled(Protocol):
    scheduler_run_interval: float

    @property
    def scheduler_name(self) -> str: ...

    async def scheduler_action(self) -> None: ...

    def start_scheduler(self) -> None: ...

    def pause_scheduler(self) -> None: ...

    def stop_scheduler(self) -> None: ...


@runtime_checkable
class Templated(Protocol):
    template_name: str

    async def render_content(self, context: Mapping[str, Any]) -> bool: ...
