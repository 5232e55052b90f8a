"""Loader and watcher abstractions.

A loader fills a ``Values`` snapshot from some source (file, environment,
remote service) and reports its own retry policy. A watcher produces change
notifications that trigger reloads.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from datetime import timedelta
from typing import Any

from confwatch.values import Values


class Loader(ABC):
    """Abstract source of configuration values."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Loader name, used in logs and events."""

    @abstractmethod
    async def load(self, values: Values) -> None:
        """Fill ``values``. Raise on failure."""

    def max_retry(self) -> int:
        """Additional attempts allowed after a failed load."""
        return 0

    def retry_delay(self) -> float | timedelta:
        """Wait between attempts, in seconds or as a timedelta."""
        return 0.0

    def stop_on_failure(self) -> bool:
        """Whether a failed reload ends the watch loop."""
        return False


class Watcher(ABC):
    """Abstract source of change notifications.

    Lifecycle: ``start`` once, iterate ``watch`` until it finishes or
    raises, then ``close`` and ``done``. ``close`` must make a pending
    ``watch`` iteration finish promptly.
    """

    @abstractmethod
    async def start(self) -> None:
        """Prepare the watcher. Raise if it cannot watch."""

    @abstractmethod
    def watch(self) -> AsyncIterator[Any]:
        """Yield one item per change.

        Finishing normally means the watch ended cleanly; raising signals
        a watch error.
        """

    @abstractmethod
    async def close(self) -> None:
        """Stop watching."""

    @abstractmethod
    async def done(self) -> None:
        """Wait until the watcher has released its resources."""


class NopWatcher(Watcher):
    """Watcher that never reports a change.

    Used for loaders registered without a watcher.
    """

    async def start(self) -> None:
        return None

    async def watch(self) -> AsyncIterator[Any]:
        return
        yield

    async def close(self) -> None:
        return None

    async def done(self) -> None:
        return None
