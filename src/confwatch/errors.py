"""Exception taxonomy for the load/retry/watch engine."""

import logging
from typing import NoReturn

logger = logging.getLogger(__name__)


class ConfwatchError(Exception):
    """Base class for engine errors."""


class LoaderError(ConfwatchError):
    """Raised when a loader keeps failing after its retry budget is spent."""

    def __init__(self, loader_name: str, attempts: int, error: BaseException):
        self.loader_name = loader_name
        self.attempts = attempts
        super().__init__(f"Loader {loader_name} failed after {attempts} attempt(s): {error}")


class HookError(ConfwatchError):
    """Raised when a post-load hook fails."""

    def __init__(self, hook: str, index: int, error: BaseException):
        self.hook = hook
        self.index = index
        super().__init__(f"Hook {hook} (#{index}) failed: {error}")


class WatcherError(ConfwatchError):
    """Raised when a watcher cannot be started."""

    def __init__(self, loader_name: str, error: BaseException):
        self.loader_name = loader_name
        super().__init__(f"Watcher for loader {loader_name} failed to start: {error}")


class LoadError(ConfwatchError):
    """Aggregate of failures from the initial load phase, keyed by loader name."""

    def __init__(self, errors: dict[str, Exception]):
        self.errors = errors
        details = "; ".join(f"{name}: {err}" for name, err in errors.items())
        super().__init__(f"{len(errors)} loader(s) failed: {details}")


def exit_process(error: BaseException) -> NoReturn:
    """Default fatal handler: log and terminate the process."""
    logger.critical(f"Unrecoverable configuration error: {error}")
    raise SystemExit(1)
