"""Push-notification channel used to invalidate widget content."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Protocol, Set, Union

__all__ = ["Listener", "LocalPushChannel", "PushChannel", "weather_topic"]

LOGGER = logging.getLogger(__name__)

Listener = Callable[[Mapping[str, Any]], Union[None, Awaitable[None]]]


def weather_topic(location: Any) -> str:
    return f"weather.{location}"


class PushChannel(Protocol):
    def add_listener(self, event: str, callback: Listener) -> None: ...

    def remove_listener(self, event: str, callback: Listener) -> None: ...

    async def subscribe(self, topic: str) -> None: ...

    async def unsubscribe(self, topic: str) -> None: ...


class LocalPushChannel:
    """In-process push channel.

    Listeners are invoked in registration order when an event is published.
    Coroutine listeners are awaited; a failing listener is logged and does
    not prevent the others from running.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = {}
        self._topics: Set[str] = set()

    @property
    def topics(self) -> Set[str]:
        return set(self._topics)

    def add_listener(self, event: str, callback: Listener) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def remove_listener(self, event: str, callback: Listener) -> None:
        listeners = self._listeners.get(event)
        if listeners and callback in listeners:
            listeners.remove(callback)

    async def subscribe(self, topic: str) -> None:
        self._topics.add(topic)
        LOGGER.debug("Subscribed to %s", topic)

    async def unsubscribe(self, topic: str) -> None:
        self._topics.discard(topic)
        LOGGER.debug("Unsubscribed from %s", topic)

    async def publish(self, event: str, detail: Mapping[str, Any]) -> int:
        """Deliver ``detail`` to every listener of ``event``; returns the count."""

        listeners = list(self._listeners.get(event, ()))
        for callback in listeners:
            try:
                result = callback(detail)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception:
                LOGGER.exception("Listener for %s failed", event)
        return len(listeners)
