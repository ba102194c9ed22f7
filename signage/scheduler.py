from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

LOGGER = logging.getLogger("signage.scheduler")

VALID_UNITS = ("weeks", "days", "hours", "minutes", "seconds")

Action = Callable[[], Union[None, Awaitable[None]]]


class SchedulerError(RuntimeError):
    pass


class SchedulerHandle:
    """Pause/resume handle for a single named periodic task."""

    def __init__(self, service: "SchedulerService", name: str) -> None:
        self._service = service
        self.name = name
        self._paused = False

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        try:
            self._service.scheduler.pause_job(self.name)
        except JobLookupError:
            LOGGER.debug("Cannot pause %s: job no longer exists", self.name)
            return
        self._paused = True
        LOGGER.debug("Paused periodic task %s", self.name)

    def resume(self) -> None:
        try:
            self._service.scheduler.resume_job(self.name)
        except JobLookupError:
            LOGGER.debug("Cannot resume %s: job no longer exists", self.name)
            return
        self._paused = False
        LOGGER.debug("Resumed periodic task %s", self.name)


class SchedulerService:
    """Named, pausable periodic tasks running on the asyncio event loop.

    Task names are unique per service; creating a task under an existing
    name replaces it. Deleting an unknown name is a no-op.
    """

    def __init__(
        self,
        scheduler: Optional[AsyncIOScheduler] = None,
        *,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.scheduler = scheduler or AsyncIOScheduler()
        self._logger = logger or LOGGER
        self._handles: Dict[str, SchedulerHandle] = {}
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    async def start(self) -> None:
        if self._started:
            return
        try:
            self.scheduler.start()
            self._started = True
            self._logger.info("Scheduler started with %d task(s)", len(self._handles))
        except Exception:
            self._logger.exception("Unable to start scheduler")
            raise

    async def stop(self) -> None:
        if not self._started:
            return
        try:
            self.scheduler.shutdown(wait=False)
            # shutdown is dispatched onto the loop
            await asyncio.sleep(0)
        finally:
            self._started = False
            self._logger.info("Scheduler stopped")

    def create(
        self,
        name: str,
        interval: float,
        unit: str,
        action: Action,
    ) -> SchedulerHandle:
        if unit not in VALID_UNITS:
            raise SchedulerError(f"Unsupported interval unit {unit!r} for task {name}")
        if interval <= 0:
            raise SchedulerError(f"Interval for task {name} must be positive, got {interval!r}")

        trigger = IntervalTrigger(**{unit: interval})
        self.scheduler.add_job(
            action,
            trigger=trigger,
            id=name,
            name=name,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        handle = SchedulerHandle(self, name)
        self._handles[name] = handle
        self._logger.debug("Created periodic task %s every %s %s", name, interval, unit)
        return handle

    def delete(self, name: str) -> None:
        self._handles.pop(name, None)
        try:
            self.scheduler.remove_job(name)
        except JobLookupError:
            return
        self._logger.debug("Deleted periodic task %s", name)

    def exists(self, name: str) -> bool:
        return self.scheduler.get_job(name) is not None

    def status(self) -> Dict[str, Any]:
        jobs: List[Dict[str, Any]] = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            handle = self._handles.get(job.id)
            jobs.append(
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run": next_run.isoformat() if next_run else None,
                    "trigger": str(job.trigger),
                    "paused": handle.paused if handle else next_run is None,
                }
            )
        return {"running": self._started and self.scheduler.running, "jobs": jobs}


__all__ = ["SchedulerError", "SchedulerHandle", "SchedulerService", "VALID_UNITS"]
