"""Polling watcher for a single configuration file.

Uses modification time to detect changes, with optional content hash
for additional verification.
"""

import asyncio
import hashlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from confwatch.interface import Watcher

logger = logging.getLogger(__name__)


@dataclass
class FileChange:
    """Represents a detected file change."""

    path: Path
    change_type: str  # "modified", "created", "deleted"
    detected_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class FileWatcher(Watcher):
    """Watches a configuration file by polling it every ``interval`` seconds."""

    def __init__(self, path: str | Path, interval: float = 1.0, use_hash: bool = False):
        self.path = Path(path)
        self.interval = interval
        self.use_hash = use_hash
        self._closed = asyncio.Event()
        self._finished = asyncio.Event()
        self._finished.set()

        # Baseline is taken at construction, before the initial load
        self._last_mtime: float | None = self._stat()
        self._last_hash: str | None = self._compute_hash() if use_hash else None

    def _compute_hash(self) -> str | None:
        """Compute SHA256 hash of file content."""
        if not self.path.exists():
            return None
        return hashlib.sha256(self.path.read_bytes()).hexdigest()

    def _stat(self) -> float | None:
        try:
            return self.path.stat().st_mtime
        except FileNotFoundError:
            return None

    async def start(self) -> None:
        """Check that the file's directory exists."""
        if not self.path.parent.is_dir():
            raise FileNotFoundError(f"Directory not found: {self.path.parent}")
        logger.info(f"FileWatcher started for {self.path}")

    def check_changed(self) -> FileChange | None:
        """Check if the file has changed since the last check."""
        mtime = self._stat()
        if mtime == self._last_mtime:
            return None

        previous = self._last_mtime
        self._last_mtime = mtime

        if mtime is None:
            self._last_hash = None
            return FileChange(path=self.path, change_type="deleted")
        if previous is None:
            if self.use_hash:
                self._last_hash = self._compute_hash()
            return FileChange(path=self.path, change_type="created")

        if self.use_hash:
            new_hash = self._compute_hash()
            if new_hash == self._last_hash:
                return None
            self._last_hash = new_hash

        return FileChange(path=self.path, change_type="modified")

    async def watch(self) -> AsyncIterator[FileChange]:
        self._finished.clear()
        try:
            while not self._closed.is_set():
                change = self.check_changed()
                if change is not None:
                    logger.info(f"Detected {change.change_type} {change.path}")
                    yield change
                    continue

                try:
                    await asyncio.wait_for(self._closed.wait(), timeout=self.interval)
                except TimeoutError:
                    pass
        finally:
            self._finished.set()

    async def close(self) -> None:
        self._closed.set()

    async def done(self) -> None:
        """Wait until a running ``watch`` iteration has exited."""
        if not self._closed.is_set():
            return
        await self._finished.wait()
