"""Prompt composition and the ActionSink protocol."""

from pathlib import Path
from string import Template
from typing import Any, Protocol

from filetrigger_core.models import MatchedEvent


class ActionSink(Protocol):
    """Receives one composed prompt per settled key.

    deliver() may be a plain function or a coroutine function; raising marks
    the delivery as failed.
    """

    def deliver(self, key: str, prompt: str) -> Any:
        ...


def relative_to_root(path: Path, root: Path | None) -> Path:
    """Return path relative to root, or path unchanged when outside it."""
    if root is None:
        return path
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def compose_prompt(matched: MatchedEvent, root: Path | None = None) -> str:
    """Render the rule payload for a matched event.

    Placeholders: $file, $relative_path, $event, $pattern. Unknown
    placeholders are left untouched.
    """
    return Template(matched.payload).safe_substitute(
        file=str(matched.path),
        relative_path=relative_to_root(matched.path, root).as_posix(),
        event=matched.kind.value,
        pattern=matched.rule.pattern,
    )


def format_notification(matched: MatchedEvent, root: Path | None = None) -> str:
    """One-line summary shown to the user, e.g. 'File changed: src/app.ts'."""
    return f"File {matched.kind.value}: {relative_to_root(matched.path, root).as_posix()}"
