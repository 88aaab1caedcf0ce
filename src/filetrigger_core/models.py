"""Shared data models for filetrigger_core."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from filetrigger_core.scheduler import CancellationToken


class EventKind(str, Enum):
    """Kind of filesystem change reported by a watch source."""

    CHANGED = "changed"
    CREATED = "created"
    DELETED = "deleted"


@dataclass(frozen=True)
class FileEvent:
    """A raw filesystem event."""

    path: Path
    kind: EventKind


@dataclass(frozen=True)
class WatchRule:
    """A glob pattern and the payload (prompt template) delivered for matches."""

    pattern: str
    """Glob pattern (supports **, * , ? and {a,b})."""

    payload: str
    """Prompt template delivered when a matching file settles."""


@dataclass(frozen=True)
class MatchedEvent:
    """Payload scheduled for a key: the matching rule plus the event that hit it."""

    rule: WatchRule
    path: Path
    kind: EventKind

    @property
    def payload(self) -> str:
        return self.rule.payload


@dataclass
class PendingEntry:
    """Work waiting for its quiet period to elapse."""

    key: str
    """Canonical file path the entry is deduplicated under."""

    scheduled_at: float
    """Loop time at which the timer fires."""

    payload: Any
    """Payload from the last notify() before quiescence."""

    token: "CancellationToken"
    """Handle used to cancel the timer."""


@dataclass
class TriggerSettings:
    """Scalar settings from the [trigger] table."""

    enabled: bool = True
    """Whether new events are scheduled at all."""

    delay_ms: int = 2000
    """Quiet period in milliseconds."""

    notifications: bool = True
    """Whether delivered prompts are announced to the user."""


@dataclass
class DeliveryFailure:
    """Structured report of a failed delivery."""

    key: str
    payload: Any
    error: BaseException

    def describe(self) -> str:
        return f"Delivery failed for {self.key}: {self.error}"


@dataclass
class ConfigValidationResult:
    """Results from configuration validation.

    Built by the adapter, consumed by hosts for display only.
    """

    rules_loaded: int = 0
    """Number of rules in effect (defaults included)."""

    using_default_rules: bool = False
    """True when the config had no rules and the defaults were substituted."""

    warnings: list[str] = field(default_factory=list)
    """Config issues found (non-fatal)."""

    errors: list[str] = field(default_factory=list)
    """Config errors (should be fatal)."""
