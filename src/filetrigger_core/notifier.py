"""Where the trigger pipeline reports user-facing messages.

The adapter and scheduler never print. Hosts pass a TriggerNotifier: the TUI
turns messages into toasts, headless runs turn them into log records.
"""

import logging
from typing import Protocol


class TriggerNotifier(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class NoOpNotifier:
    """Default when nothing is listening."""

    def info(self, message: str) -> None:
        pass

    warning = error = info


class LoggingNotifier:
    """Emit notifications as records on a named logger."""

    def __init__(self, name: str = "filetrigger_core.notify"):
        self.logger = logging.getLogger(name)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)
