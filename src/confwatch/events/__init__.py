"""Instrumentation events emitted by the engine."""

from confwatch.events.bus import EventBus, MetricsCollector
from confwatch.events.types import Event, EventType

__all__ = ["Event", "EventBus", "EventType", "MetricsCollector"]
