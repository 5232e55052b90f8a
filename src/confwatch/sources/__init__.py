"""File-backed loader and polling watcher."""

from confwatch.sources.file import FileLoader
from confwatch.sources.watcher import FileChange, FileWatcher

__all__ = ["FileChange", "FileLoader", "FileWatcher"]
