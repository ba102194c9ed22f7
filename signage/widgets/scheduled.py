from __future__ import annotations

import logging
from typing import Optional

from ..scheduler import SchedulerHandle, SchedulerService
from .base import TimelineSlot, Widget, WidgetError

LOGGER = logging.getLogger(__name__)

__all__ = ["DEFAULT_RUN_INTERVAL", "ScheduledWidget"]

DEFAULT_RUN_INTERVAL = 900


class ScheduledWidget(Widget):
    """Widget that refreshes its content on a periodic background task.

    The task runs only while the widget is playing: ``play`` starts or
    resumes it, ``pause`` suspends it and ``stop`` destroys it so the next
    ``play`` creates a fresh one.
    """

    scheduler_run_interval: float = DEFAULT_RUN_INTERVAL

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.scheduler_run_interval = self._default_run_interval()
        self.scheduler_handle: Optional[SchedulerHandle] = None

    def _default_run_interval(self) -> float:
        interval = type(self).scheduler_run_interval
        settings = self.services.settings
        if settings is not None and interval == DEFAULT_RUN_INTERVAL:
            return settings.scheduler.default_interval
        return interval

    @property
    def scheduler_name(self) -> str:
        return f"get_{self.type}_{self.id}"

    @property
    def scheduler(self) -> SchedulerService:
        scheduler = self.services.scheduler
        if scheduler is None:
            raise WidgetError(f"Widget {self.id} ({self.type}) has no scheduler service")
        return scheduler

    async def _do_play(self, current_slot: Optional[TimelineSlot]) -> None:
        self.start_scheduler()
        await super()._do_play(current_slot)

    async def _do_pause(self, current_slot: Optional[TimelineSlot]) -> None:
        self.pause_scheduler()
        await super()._do_pause(current_slot)

    async def _do_stop(self) -> None:
        self.stop_scheduler()
        await super()._do_stop()

    async def scheduler_action(self) -> None:
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement scheduler_action()"
        )

    def start_scheduler(self) -> None:
        if self.scheduler_handle is not None:
            self.scheduler_handle.resume()
            return
        self.scheduler_handle = self.scheduler.create(
            self.scheduler_name,
            self.scheduler_run_interval,
            "seconds",
            self.scheduler_action,
        )
        LOGGER.debug(
            "Started scheduler %s every %ss", self.scheduler_name, self.scheduler_run_interval
        )

    def pause_scheduler(self) -> None:
        if self.scheduler_handle is not None:
            self.scheduler_handle.pause()

    def stop_scheduler(self) -> None:
        # delete by name even when no handle is held
        if self.services.scheduler is not None:
            self.services.scheduler.delete(self.scheduler_name)
        self.scheduler_handle = None
