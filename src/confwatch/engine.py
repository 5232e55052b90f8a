"""Load/retry/watch orchestration.

Flow per registered loader/watcher pair:
1. Initial load with bounded retry, hooks after each successful load
2. Failures aggregated; fatal handler unless ``no_exit_on_error``
3. Background watch loop reloading on every change notification
4. Watcher closed once the watch ends or a reload fails for a loader
   that stops on failure
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, NoReturn

from confwatch.config import Config
from confwatch.errors import LoadError, LoaderError, WatcherError, exit_process
from confwatch.events import EventBus, EventType
from confwatch.hooks import Hook, LoaderHooks
from confwatch.interface import Loader, NopWatcher, Watcher
from confwatch.store import MemoryStore, Store
from confwatch.values import Values

logger = logging.getLogger(__name__)


class WatchState(str, Enum):
    """Lifecycle of a pair's watch loop."""

    IDLE = "idle"
    STARTING = "starting"
    WATCHING = "watching"
    RELOADING = "reloading"
    CLOSING = "closing"
    DONE = "done"


@dataclass(eq=False)
class LoaderWatcher:
    """A loader paired with its watcher and hooks."""

    loader: Loader
    watcher: Watcher
    hooks: LoaderHooks = field(default_factory=LoaderHooks)

    # Single-flight: one load/hooks cycle at a time per pair
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    @property
    def name(self) -> str:
        return self.loader.name


def _seconds(delay: float | timedelta) -> float:
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


class Engine:
    """Drives registered loader/watcher pairs.

    Responsibilities:
    - Initial load of every pair, with retry and hooks
    - Escalating initial failures through the fatal handler
    - One tracked background task per pair for watch-triggered reloads
    - Orderly shutdown of all watch loops
    """

    def __init__(
        self,
        store: Store | None = None,
        config: Config | None = None,
        event_bus: EventBus | None = None,
        fatal_handler: Callable[[BaseException], Any] | None = None,
    ):
        self.store = store if store is not None else MemoryStore()
        self.config = config or Config()
        self.event_bus = event_bus or EventBus()
        self.fatal_handler = fatal_handler or exit_process

        self._pairs: dict[str, LoaderWatcher] = {}
        self._keys: dict[LoaderWatcher, str] = {}
        self._states: dict[str, WatchState] = {}
        # Keys each pair wrote on its last successful load
        self._committed: dict[str, set[str]] = {}
        self._hooks = LoaderHooks()
        self._tasks: dict[str, asyncio.Task] = {}

    async def __aenter__(self) -> "Engine":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # Registration

    def register(self, pair: LoaderWatcher) -> LoaderWatcher:
        """Register a pair. Names are made unique with a ``#n`` suffix."""
        key = pair.name
        n = 1
        while key in self._pairs:
            n += 1
            key = f"{pair.name}#{n}"
        self._pairs[key] = pair
        self._keys[pair] = key
        self._states[key] = WatchState.IDLE
        logger.debug(f"Registered loader {key} with {type(pair.watcher).__name__}")
        return pair

    def register_loader_watcher(self, loader: Loader, watcher: Watcher, *hooks: Hook) -> LoaderWatcher:
        return self.register(LoaderWatcher(loader, watcher, LoaderHooks(hooks)))

    def register_loader(self, loader: Loader, *hooks: Hook) -> LoaderWatcher:
        """Register a loader that never reloads."""
        return self.register(LoaderWatcher(loader, NopWatcher(), LoaderHooks(hooks)))

    def add_hooks(self, *hooks: Hook) -> None:
        """Add hooks run after every pair's own hooks on each successful load."""
        self._hooks = self._hooks + LoaderHooks(hooks)

    @property
    def loader_watchers(self) -> list[LoaderWatcher]:
        return list(self._pairs.values())

    def key(self, pair: LoaderWatcher) -> str:
        """Registration key of a pair, falling back to its loader name."""
        return self._keys.get(pair, pair.name)

    def state(self, pair: LoaderWatcher) -> WatchState:
        return self._states.get(self.key(pair), WatchState.IDLE)

    def _set_state(self, pair: LoaderWatcher, state: WatchState) -> None:
        self._states[self.key(pair)] = state

    # Loading

    async def _emit(self, event_type: EventType, pair: LoaderWatcher, **data: Any) -> None:
        if not self.config.metrics:
            return
        await self.event_bus.emit(event_type, loader=self.key(pair), store=self.config.name, data=data)

    async def load_with_retry(self, pair: LoaderWatcher, attempt: int = 0) -> None:
        """Load a pair, retrying within the loader's budget, then run hooks.

        Raises:
            LoaderError: the last load failure once retries are spent.
            HookError: a hook failed after a successful load (not retried).
        """
        key = self.key(pair)
        async with pair._lock:
            loader = pair.loader
            calls = 0
            while True:
                values = Values()
                calls += 1
                try:
                    await loader.load(values)
                    break
                except Exception as e:
                    delay = _seconds(loader.retry_delay())
                    max_retry = loader.max_retry()
                    if attempt >= max_retry:
                        logger.error(f"Loader {key} failed after {calls} attempt(s): {e}")
                        await self._emit(EventType.LOAD_FAILED, pair, attempts=calls, error=str(e))
                        raise LoaderError(key, calls, e) from e

                    attempt += 1
                    logger.warning(f"Loader {key} failed: {e} (retry {attempt}/{max_retry} in {delay}s)")
                    await self._emit(EventType.LOAD_RETRY, pair, attempt=attempt, error=str(e))
                    await asyncio.sleep(delay)

            self._commit(key, values)

            try:
                await (pair.hooks + self._hooks).run(self.store)
            except Exception as e:
                logger.error(f"Hooks for loader {key} failed: {e}")
                await self._emit(EventType.HOOKS_FAILED, pair, error=str(e))
                raise

            logger.info(f"Loaded {len(values)} value(s) from {key}")
            await self._emit(EventType.LOAD_SUCCEEDED, pair, attempts=calls, keys=len(values))

    def _commit(self, key: str, values: Values) -> None:
        """Write values to the store, dropping keys this pair no longer provides."""
        for stale in sorted(self._committed.get(key, set()) - values.keys()):
            self.store.delete(stale)
        self.store.update(values)
        self._committed[key] = set(values)

    async def _load_all(self, pairs: dict[str, LoaderWatcher]) -> dict[str, Exception]:
        results = await asyncio.gather(
            *(self.load_with_retry(pair) for pair in pairs.values()),
            return_exceptions=True,
        )
        errors: dict[str, Exception] = {}
        for key, result in zip(pairs, results):
            if isinstance(result, Exception):
                errors[key] = result
            elif isinstance(result, BaseException):
                raise result
        return errors

    def _escalate(self, error: Exception) -> NoReturn:
        if not self.config.no_exit_on_error:
            self.fatal_handler(error)
        raise error

    async def load(self) -> None:
        """Load every registered pair once.

        Raises:
            LoadError: one or more pairs failed (when the fatal handler returns
                or ``no_exit_on_error`` is set).
        """
        errors = await self._load_all(dict(self._pairs))
        if errors:
            self._escalate(LoadError(errors))

    async def load_watch(self) -> None:
        """Load every pair, then start watching in the background.

        Returns once all initial loads have finished. A pair whose initial
        load failed is closed when its loader stops on failure, otherwise it
        is watched if ``config.watch_after_failure`` is set.
        """
        pairs = dict(self._pairs)
        errors = await self._load_all(pairs)

        for key, pair in pairs.items():
            if key in errors:
                if pair.loader.stop_on_failure():
                    logger.warning(f"Initial load of {key} failed, closing its watcher")
                    await self._close(pair)
                    continue
                if not self.config.watch_after_failure:
                    continue
            self._spawn(key, pair)

        if errors:
            self._escalate(LoadError(errors))

    # Watching

    def watch(self) -> None:
        """Start a watch loop for every pair that is not already watched."""
        for key, pair in list(self._pairs.items()):
            self._spawn(key, pair)

    def _spawn(self, key: str, pair: LoaderWatcher) -> None:
        task = self._tasks.get(key)
        if task is not None and not task.done():
            return
        if self.state(pair) is WatchState.DONE:
            return

        task = asyncio.create_task(self._watch_loop(pair), name=f"confwatch-watch-{key}")
        task.add_done_callback(self._on_loop_done)
        self._tasks[key] = task

    @staticmethod
    def _on_loop_done(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"{task.get_name()} ended with error: {error}")

    async def _watch_loop(self, pair: LoaderWatcher) -> None:
        watcher = pair.watcher
        self._set_state(pair, WatchState.STARTING)
        try:
            await watcher.start()
        except Exception as e:
            self._set_state(pair, WatchState.DONE)
            logger.error(f"Watcher for {pair.name} failed to start: {e}")
            await self._emit(EventType.WATCH_FAILED, pair, stage="start", error=str(e))
            error = WatcherError(pair.name, e)
            error.__cause__ = e
            self._escalate(error)

        self._set_state(pair, WatchState.WATCHING)
        logger.info(f"Watching loader {pair.name}")
        await self._emit(EventType.WATCH_STARTED, pair)

        try:
            await self._watch_changes(pair)
        finally:
            await self._close(pair)

    async def _watch_changes(self, pair: LoaderWatcher) -> None:
        changes = pair.watcher.watch()
        try:
            async for change in changes:
                self._set_state(pair, WatchState.RELOADING)
                logger.debug(f"Change for {pair.name}: {change!r}")
                await self._emit(EventType.WATCH_RELOAD, pair)
                try:
                    await self.load_with_retry(pair)
                except Exception as e:
                    await self._emit(EventType.WATCH_RELOAD_FAILED, pair, error=str(e))
                    if pair.loader.stop_on_failure():
                        logger.error(f"Reload of {pair.name} failed, stopping watch: {e}")
                        return
                    logger.warning(f"Reload of {pair.name} failed, still watching: {e}")
                self._set_state(pair, WatchState.WATCHING)
        except Exception as e:
            logger.error(f"Watch for {pair.name} failed: {e}")
            await self._emit(EventType.WATCH_FAILED, pair, stage="watch", error=str(e))
            return
        finally:
            aclose = getattr(changes, "aclose", None)
            if aclose is not None:
                await aclose()

        logger.info(f"Watch for {pair.name} ended")
        await self._emit(EventType.WATCH_ENDED, pair)

    async def _close(self, pair: LoaderWatcher) -> None:
        self._set_state(pair, WatchState.CLOSING)
        for step in (pair.watcher.close, pair.watcher.done):
            try:
                await step()
            except Exception as e:
                logger.warning(f"Watcher {step.__name__} for {pair.name} failed: {e}")
        self._set_state(pair, WatchState.DONE)
        logger.info(f"Closed watcher for {pair.name}")
        await self._emit(EventType.WATCH_CLOSED, pair)

    # Shutdown

    @property
    def active_watches(self) -> list[str]:
        return [key for key, task in self._tasks.items() if not task.done()]

    async def join(self, timeout: float | None = None) -> bool:
        """Wait for all watch loops to finish. Returns False on timeout."""
        tasks = [task for task in self._tasks.values() if not task.done()]
        if not tasks:
            return True
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        return not pending

    async def stop(self, timeout: float = 5.0) -> None:
        """Close every watched pair and wait for the loops to finish.

        Loops still running after ``timeout`` seconds are cancelled.
        """
        live = self.active_watches
        logger.info(f"Stopping {len(live)} watch loop(s)")

        for key in live:
            pair = self._pairs[key]
            try:
                await pair.watcher.close()
            except Exception as e:
                logger.warning(f"Closing watcher for {key} failed: {e}")

        if not await self.join(timeout):
            pending = [self._tasks[key] for key in self.active_watches]
            logger.warning(f"Cancelling {len(pending)} watch loop(s) after {timeout}s")
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        self._tasks.clear()
