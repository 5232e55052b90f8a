"""Event bus for load/watch instrumentation."""

import asyncio
import logging
from collections import Counter
from collections.abc import Callable
from typing import Any

from confwatch.events.types import Event, EventType

logger = logging.getLogger(__name__)


class EventBus:
    """Broadcasts events to registered callbacks such as ``MetricsCollector``."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[[Event], Any]] = []

    def add_callback(self, callback: Callable[[Event], Any]) -> None:
        """Add a callback to be called for every event."""
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[Event], Any]) -> None:
        """Remove a callback."""
        if callback in self._callbacks:
            self._callbacks.remove(callback)

    async def publish(self, event: Event) -> None:
        """Publish an event to all callbacks."""
        logger.debug(f"Publishing event: {event.type.value}")

        # Callback errors are logged, not raised
        for callback in self._callbacks:
            try:
                result = callback(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.error(f"Callback error: {e}")

    async def emit(
        self,
        event_type: EventType,
        loader: str | None = None,
        store: str | None = None,
        data: dict[str, Any] | None = None,
    ) -> Event:
        """Create and publish an event."""
        event = Event(type=event_type, loader=loader, store=store, data=data or {})
        await self.publish(event)
        return event


class MetricsCollector:
    """Bus callback counting events per (event type, loader)."""

    def __init__(self) -> None:
        self.counts: Counter[tuple[EventType, str | None]] = Counter()

    def __call__(self, event: Event) -> None:
        self.counts[(event.type, event.loader)] += 1

    def count(self, event_type: EventType, loader: str | None = None) -> int:
        """Count events of a type, for one loader or across all loaders."""
        if loader is not None:
            return self.counts[(event_type, loader)]
        return sum(n for (kind, _), n in self.counts.items() if kind == event_type)

    def reset(self) -> None:
        self.counts.clear()
