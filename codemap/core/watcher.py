"""Watchdog-based change source feeding the indexer's event queue."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer

from codemap.core.indexer import Indexer
from codemap.core.models import ChangeEvent, ChangeKind

logger = logging.getLogger(__name__)


class _ChangeHandler(FileSystemEventHandler):
    """Filters watchdog events and forwards them as ChangeEvents.

    Watchdog calls back on its own thread, so events are handed to the
    indexer through the event loop.
    """

    def __init__(self, indexer: Indexer, loop: asyncio.AbstractEventLoop) -> None:
        super().__init__()
        self._indexer = indexer
        self._loop = loop

    def _wanted(self, path: str) -> bool:
        relative_path = self._indexer.config.relative(Path(path))
        if self._indexer.config.should_exclude(relative_path):
            return False
        return self._indexer.registry.supports(path)

    def _push(self, kind: ChangeKind, path: str) -> None:
        if not self._wanted(path):
            return
        logger.debug("file_%s %s", kind.value, path)
        self._loop.call_soon_threadsafe(self._indexer.submit, ChangeEvent(kind, path))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.CREATED, str(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.MODIFIED, str(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._push(ChangeKind.DELETED, str(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        """A move is a delete of the old path and a create of the new one."""
        if event.is_directory or not isinstance(event, FileSystemMovedEvent):
            return
        self._push(ChangeKind.DELETED, str(event.src_path))
        self._push(ChangeKind.CREATED, str(event.dest_path))


class ProjectWatcher:
    """Watches an indexer's root recursively until stopped."""

    def __init__(self, indexer: Indexer, loop: asyncio.AbstractEventLoop) -> None:
        self._indexer = indexer
        self._handler = _ChangeHandler(indexer, loop)
        self._observer: Observer | None = None

    @property
    def running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, str(self._indexer.config.root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s", self._indexer.config.root)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join()
        self._observer = None
        logger.info("Stopped watching %s", self._indexer.config.root)
