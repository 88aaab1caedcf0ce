"""filetrigger-core: Debounced file-change triggers shared by filetrigger frontends."""

__version__ = "0.1.0"

from filetrigger_core.adapter import TriggerAdapter
from filetrigger_core.classifier import DEFAULT_IGNORE_DIRS, PathClassifier

# Config
from filetrigger_core.config import TriggerConfig, load_trigger_config
from filetrigger_core.matcher import DEFAULT_RULES, PatternMatcher

# Models
from filetrigger_core.models import (
    ConfigValidationResult,
    DeliveryFailure,
    EventKind,
    FileEvent,
    MatchedEvent,
    PendingEntry,
    TriggerSettings,
    WatchRule,
)

# Scheduling
from filetrigger_core.scheduler import CancellationToken, DebounceScheduler, SchedulerState

__all__ = [
    "__version__",
    # Models
    "EventKind",
    "FileEvent",
    "WatchRule",
    "MatchedEvent",
    "PendingEntry",
    "TriggerSettings",
    "DeliveryFailure",
    "ConfigValidationResult",
    # Policy
    "PathClassifier",
    "DEFAULT_IGNORE_DIRS",
    "PatternMatcher",
    "DEFAULT_RULES",
    # Scheduling
    "DebounceScheduler",
    "SchedulerState",
    "CancellationToken",
    "TriggerAdapter",
    # Config
    "TriggerConfig",
    "load_trigger_config",
]
