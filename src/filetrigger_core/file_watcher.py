"""Watch source implementation using watchdog."""

import asyncio
import logging
import os
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler, FileSystemMovedEvent
from watchdog.observers import Observer

from filetrigger_core.models import EventKind, FileEvent
from filetrigger_core.watchers import EventCallback

logger = logging.getLogger(__name__)


class _ForwardingHandler(FileSystemEventHandler):
    """Forward file events from the observer thread to the event loop."""

    def __init__(self, callback: EventCallback, loop: asyncio.AbstractEventLoop):
        """Initialize handler.

        Args:
            callback: Called on the loop thread with each FileEvent
            loop: Event loop to hop onto
        """
        super().__init__()
        self.callback = callback
        self.loop = loop

    def _forward(self, raw_path: str | bytes, kind: EventKind) -> None:
        path = Path(os.fsdecode(raw_path))
        try:
            self.loop.call_soon_threadsafe(self.callback, FileEvent(path, kind))
        except RuntimeError as e:
            # Loop already closed during shutdown
            logger.debug(f"Dropped {kind.value} event for {path}: {e}")

    def on_modified(self, event: FileSystemEvent) -> None:
        """Handle file modification events."""
        if event.is_directory:
            return
        self._forward(event.src_path, EventKind.CHANGED)

    def on_created(self, event: FileSystemEvent) -> None:
        """Handle file creation events."""
        if event.is_directory:
            return
        self._forward(event.src_path, EventKind.CREATED)

    def on_deleted(self, event: FileSystemEvent) -> None:
        """Handle file deletion events."""
        if event.is_directory:
            return
        self._forward(event.src_path, EventKind.DELETED)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        """A rename is reported as a delete of the old path and a create of the new one."""
        if event.is_directory:
            return
        self._forward(event.src_path, EventKind.DELETED)
        self._forward(event.dest_path, EventKind.CREATED)


class WatchdogWatcher:
    """Recursive watchdog observer over one workspace root."""

    def __init__(self, root: Path, callback: EventCallback, loop: asyncio.AbstractEventLoop):
        """Initialize watcher.

        Args:
            root: Directory to watch recursively
            callback: Called on the loop thread with each FileEvent
            loop: Event loop for scheduling
        """
        self.root = Path(root)
        self.handler = _ForwardingHandler(callback, loop)
        self.observer = Observer()
        self._scheduled = False

    def start(self) -> None:
        """Start watching."""
        if not self.root.is_dir():
            logger.warning(f"Watch root does not exist: {self.root}")
            return

        self.observer.schedule(self.handler, str(self.root), recursive=True)
        self.observer.start()
        self._scheduled = True
        logger.info(f"Watching {self.root}")

    def stop(self) -> None:
        """Stop watching."""
        if self._scheduled and self.observer.is_alive():
            self.observer.stop()
            self.observer.join(timeout=2.0)
            logger.info(f"Stopped watching {self.root}")
        self._scheduled = False
