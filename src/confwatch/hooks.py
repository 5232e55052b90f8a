"""Post-load hooks."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from confwatch.errors import HookError

logger = logging.getLogger(__name__)

Hook = Callable[[Any], Awaitable[None] | None]


def hook_name(hook: Hook) -> str:
    """Best-effort readable name for a hook."""
    return getattr(hook, "__qualname__", None) or getattr(hook, "__name__", None) or repr(hook)


class LoaderHooks:
    """Ordered, immutable sequence of hooks run after a successful load.

    Each hook receives the store. A hook fails by raising; the first failure
    stops the run and later hooks are skipped. Changes made by hooks that
    already ran are kept.
    """

    def __init__(self, hooks: Iterable[Hook] = ()):
        self._hooks: tuple[Hook, ...] = tuple(hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def __iter__(self):
        return iter(self._hooks)

    def __add__(self, other: "LoaderHooks") -> "LoaderHooks":
        return LoaderHooks((*self._hooks, *other._hooks))

    async def run(self, store: Any) -> None:
        """Run every hook in order against ``store``.

        Raises:
            HookError: wrapping the first exception raised by a hook.
        """
        for index, hook in enumerate(self._hooks):
            try:
                result = hook(store)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                name = hook_name(hook)
                logger.debug(f"Hook {name} failed: {e}")
                raise HookError(name, index, e) from e
