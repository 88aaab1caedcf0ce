"""Ignore policy applied to paths before they reach the scheduler."""

import re
from collections.abc import Iterable
from pathlib import PurePath

# Version control metadata, dependency trees, build output and tool caches.
DEFAULT_IGNORE_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".hg",
        ".svn",
        "node_modules",
        "bower_components",
        "__pycache__",
        ".venv",
        "venv",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".next",
        ".nuxt",
        ".idea",
        ".vscode",
        "dist",
        "build",
        "out",
        "target",
        "coverage",
    }
)

_SEPARATORS = re.compile(r"[\\/]+")


class PathClassifier:
    """Decide whether a path should be ignored.

    A path is ignored when any of its segments is an ignored directory name or
    when its final segment starts with a dot. Classification is total: every
    input yields a bool.
    """

    def __init__(self, ignore_dirs: Iterable[str] | None = None):
        """Initialize classifier.

        Args:
            ignore_dirs: Directory names to ignore (defaults to DEFAULT_IGNORE_DIRS)
        """
        self.ignore_dirs = frozenset(DEFAULT_IGNORE_DIRS if ignore_dirs is None else ignore_dirs)

    def should_ignore(self, path: str | PurePath) -> bool:
        segments = [s for s in _SEPARATORS.split(str(path)) if s]
        if not segments:
            return False

        if segments[-1].startswith("."):
            return True

        return any(segment in self.ignore_dirs for segment in segments)
