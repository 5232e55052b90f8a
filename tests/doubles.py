"""Scripted loader and watcher doubles."""

import asyncio
from collections.abc import AsyncIterator, Callable
from datetime import timedelta
from typing import Any

from confwatch import Loader, Values, Watcher

END = object()


class ScriptedLoader(Loader):
    """Loader whose outcomes follow a script.

    Each entry of ``results`` is consumed by one ``load`` call: an exception
    is raised, anything else counts as success. Once the script is
    exhausted every call succeeds. ``values`` are written before the
    outcome is decided.
    """

    def __init__(
        self,
        name: str = "test",
        results: list[Any] | None = None,
        values: dict[str, Any] | None = None,
        max_retry: int = 0,
        retry_delay: float | timedelta = 0.0,
        stop_on_failure: bool = False,
        delay: float = 0.0,
    ):
        self._name = name
        self.results = list(results or [])
        self.values = values or {}
        self._max_retry = max_retry
        self._retry_delay = retry_delay
        self._stop_on_failure = stop_on_failure
        self.delay = delay

        self.calls: list[Values] = []
        self.policy_calls: list[str] = []
        self.active = 0
        self.max_active = 0

    @property
    def name(self) -> str:
        return self._name

    async def load(self, values: Values) -> None:
        self.calls.append(Values(values))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            for key, value in self.values.items():
                values.set(key, value)
            result = self.results.pop(0) if self.results else None
            if isinstance(result, BaseException):
                raise result
        finally:
            self.active -= 1

    def max_retry(self) -> int:
        self.policy_calls.append("max_retry")
        return self._max_retry

    def retry_delay(self) -> float | timedelta:
        self.policy_calls.append("retry_delay")
        return self._retry_delay

    def stop_on_failure(self) -> bool:
        self.policy_calls.append("stop_on_failure")
        return self._stop_on_failure


class ScriptedWatcher(Watcher):
    """Watcher fed through ``notify``/``end``/``fail``.

    ``changes`` are queued up front; with ``end=True`` the watch finishes
    cleanly after them. ``close`` ends a pending watch unless
    ``ignore_close`` is set.
    """

    def __init__(
        self,
        changes: int = 0,
        end: bool = True,
        start_error: Exception | None = None,
        close_error: Exception | None = None,
        done_error: Exception | None = None,
        ignore_close: bool = False,
    ):
        self.calls: list[str] = []
        self.start_error = start_error
        self.close_error = close_error
        self.done_error = done_error
        self.ignore_close = ignore_close
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        for i in range(changes):
            self._queue.put_nowait(f"change-{i}")
        if end:
            self._queue.put_nowait(END)

    def notify(self, change: Any = "change") -> None:
        self._queue.put_nowait(change)

    def end(self) -> None:
        self._queue.put_nowait(END)

    def fail(self, error: Exception) -> None:
        self._queue.put_nowait(error)

    async def start(self) -> None:
        self.calls.append("start")
        if self.start_error:
            raise self.start_error

    async def watch(self) -> AsyncIterator[Any]:
        self.calls.append("watch")
        while True:
            change = await self._queue.get()
            if change is END:
                return
            if isinstance(change, Exception):
                raise change
            yield change

    async def close(self) -> None:
        self.calls.append("close")
        if not self.ignore_close:
            self._queue.put_nowait(END)
        if self.close_error:
            raise self.close_error

    async def done(self) -> None:
        self.calls.append("done")
        if self.done_error:
            raise self.done_error


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll ``predicate`` until it holds or fail after ``timeout`` seconds."""
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)
