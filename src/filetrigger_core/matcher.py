"""Map changed paths to the configured rules that care about them."""

import logging
import re
from functools import lru_cache
from pathlib import PurePath

from pathspec import PathSpec

from filetrigger_core.models import WatchRule

logger = logging.getLogger(__name__)

DEFAULT_PROMPT = """\
The file $relative_path was $event.
Review the current contents of this file and point out bugs, risky changes,
and anything that should be tested before the change is committed.
"""

DEFAULT_SOURCE_EXTENSIONS = (
    "ts",
    "tsx",
    "js",
    "jsx",
    "mjs",
    "cjs",
    "py",
    "go",
    "rs",
    "java",
    "kt",
    "c",
    "h",
    "cpp",
    "hpp",
    "cs",
    "rb",
    "php",
    "swift",
    "vue",
    "svelte",
)

# Substituted whenever the configuration yields no rules.
DEFAULT_RULES: tuple[WatchRule, ...] = (
    WatchRule(
        pattern="**/*.{" + ",".join(DEFAULT_SOURCE_EXTENSIONS) + "}",
        payload=DEFAULT_PROMPT,
    ),
)

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand {a,b} alternatives into plain wildcard patterns.

    Example: "src/*.{ts,js}" -> ["src/*.ts", "src/*.js"]
    """
    match = _BRACES.search(pattern)
    if not match:
        return [pattern]

    head, tail = pattern[: match.start()], pattern[match.end() :]
    expanded: list[str] = []
    for option in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{option}{tail}"))
    return expanded


@lru_cache(maxsize=256)
def _compile(pattern: str) -> PathSpec:
    """Build a gitwildmatch spec from the brace-expanded pattern."""
    return PathSpec.from_lines("gitwildmatch", expand_braces(pattern))


def glob_matches(pattern: str, path: str | PurePath) -> bool:
    """Check a workspace-relative path against a glob pattern.

    Uses gitignore wildcard rules: "*" and "?" stay inside one path segment,
    "**/" spans zero or more directories, and a pattern without a "/" matches
    the file name at any depth.
    """
    posix = str(path).replace("\\", "/").lstrip("/")
    if posix.startswith("./"):
        posix = posix[2:]
    return _compile(pattern).match_file(posix)


class PatternMatcher:
    """Match paths against an ordered rule set.

    An empty rule set is replaced by DEFAULT_RULES, so the matcher always has
    something to match against.
    """

    def __init__(self, rules: list[WatchRule] | tuple[WatchRule, ...] | None = None):
        """Initialize matcher.

        Args:
            rules: Configured rules in configuration order
        """
        self.using_defaults = not rules
        self.rules: tuple[WatchRule, ...] = tuple(rules) if rules else DEFAULT_RULES
        if self.using_defaults:
            logger.debug("No rules configured, using default source rules")

    def match(self, path: str | PurePath) -> list[tuple[WatchRule, str]]:
        """Return every (rule, payload) whose pattern matches, in rule order."""
        return [(rule, rule.payload) for rule in self.rules if glob_matches(rule.pattern, path)]


def match_rules(path: str | PurePath, rules: list[WatchRule] | None) -> list[tuple[WatchRule, str]]:
    """One-shot form of PatternMatcher(rules).match(path)."""
    return PatternMatcher(rules).match(path)
