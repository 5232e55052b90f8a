"""Pytest configuration and fixtures."""

import pytest

from confwatch import Config, Engine, MemoryStore
from confwatch.events import EventBus, MetricsCollector


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fatal_calls() -> list[BaseException]:
    """Errors passed to the engine's fatal handler."""
    return []


@pytest.fixture
def engine(store: MemoryStore, fatal_calls: list[BaseException]) -> Engine:
    """Fresh engine that raises instead of exiting."""
    return Engine(
        store=store,
        config=Config(no_exit_on_error=True),
        fatal_handler=fatal_calls.append,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def metered_engine(store: MemoryStore, metrics: MetricsCollector) -> Engine:
    """Engine with instrumentation enabled and a collector attached."""
    bus = EventBus()
    bus.add_callback(metrics)
    return Engine(store=store, config=Config(no_exit_on_error=True, metrics=True), event_bus=bus)
