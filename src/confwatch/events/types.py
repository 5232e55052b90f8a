"""Event type definitions for the event bus."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """Types of events emitted around load, retry and watch activity."""

    # Load events
    LOAD_SUCCEEDED = "load.succeeded"
    LOAD_FAILED = "load.failed"
    LOAD_RETRY = "load.retry"
    HOOKS_FAILED = "hooks.failed"

    # Watch events
    WATCH_STARTED = "watch.started"
    WATCH_RELOAD = "watch.reload"
    WATCH_RELOAD_FAILED = "watch.reload_failed"
    WATCH_ENDED = "watch.ended"
    WATCH_FAILED = "watch.failed"
    WATCH_CLOSED = "watch.closed"


class Event(BaseModel):
    """An instrumentation event."""

    id: str = Field(default_factory=lambda: uuid4().hex[:12])
    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    loader: str | None = None
    store: str | None = None  # Engine config name
    data: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "loader": self.loader,
            "store": self.store,
            "data": self.data,
        }
