"""Abstract watch source protocol for file watching implementations."""

from collections.abc import Callable
from typing import Protocol

from filetrigger_core.models import FileEvent

EventCallback = Callable[[FileEvent], None]
"""Called on the event loop thread with each FileEvent."""


class WatchSource(Protocol):
    """Protocol for file watcher implementations."""

    def start(self) -> None:
        """Start watching."""
        ...

    def stop(self) -> None:
        """Stop watching."""
        ...
