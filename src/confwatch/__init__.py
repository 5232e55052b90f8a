"""confwatch - configuration store fed by pluggable loaders and watchers."""

__version__ = "0.1.0"

from confwatch.config import Config
from confwatch.engine import Engine, LoaderWatcher, WatchState
from confwatch.errors import (
    ConfwatchError,
    HookError,
    LoaderError,
    LoadError,
    WatcherError,
    exit_process,
)
from confwatch.hooks import LoaderHooks
from confwatch.interface import Loader, NopWatcher, Watcher
from confwatch.store import MemoryStore, Store
from confwatch.values import Values

__all__ = [
    "__version__",
    "Config",
    "ConfwatchError",
    "Engine",
    "HookError",
    "LoadError",
    "Loader",
    "LoaderError",
    "LoaderHooks",
    "LoaderWatcher",
    "MemoryStore",
    "NopWatcher",
    "Store",
    "Values",
    "WatchState",
    "Watcher",
    "WatcherError",
    "exit_process",
]
