"""textual-filetrigger: TUI frontend that turns settled file changes into analysis prompts."""

__version__ = "0.1.0"

# Public API
from filetrigger_core.adapter import TriggerAdapter
from textual_filetrigger.app import TriggerApp

__all__ = [
    "__version__",
    # Primary components
    "TriggerApp",
    "TriggerAdapter",
]
