"""Engine configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    """Settings read by the engine. Fixed once the engine is built."""

    name: str = "confwatch"

    # Raise load failures to the caller instead of calling the fatal handler
    no_exit_on_error: bool = False

    # Emit instrumentation events on the engine's event bus
    metrics: bool = False

    # In load_watch, still watch a pair whose initial load failed
    # (pairs whose loader stops on failure are closed instead)
    watch_after_failure: bool = True
