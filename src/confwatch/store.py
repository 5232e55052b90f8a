"""Destination for loaded configuration values."""

import threading
from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Store(Protocol):
    """What the engine needs from a store.

    Hooks receive the store itself and may use whatever else it offers.
    Implementations must tolerate concurrent updates from distinct loaders.
    """

    def update(self, values: Mapping[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStore:
    """In-memory, thread-safe store."""

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._lock = threading.RLock()
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def update(self, values: Mapping[str, Any]) -> None:
        """Merge values into the store, last writer wins per key."""
        with self._lock:
            self._data.update(values)

    def delete(self, key: str) -> None:
        """Remove a key if present."""
        with self._lock:
            self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        """Return a copy of the current contents."""
        with self._lock:
            return dict(self._data)

    def reset(self) -> None:
        with self._lock:
            self._data.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)
