"""Configuration parsing for filetrigger."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from filetrigger_core.models import TriggerSettings, WatchRule

logger = logging.getLogger(__name__)


@dataclass
class TriggerConfig:
    """Everything loaded from one config file."""

    root: Path
    """Workspace directory to watch."""

    settings: TriggerSettings = field(default_factory=TriggerSettings)
    """Scalar settings from [trigger]."""

    rules: list[WatchRule] = field(default_factory=list)
    """[[rule]] entries in file order (empty means use the defaults)."""

    ignore_dirs: list[str] | None = None
    """Replacement ignore set, or None for the built-in one."""

    path: Path | None = None
    """Config file the values came from."""


def _parse_settings(raw: dict, path: Path) -> TriggerSettings:
    settings = TriggerSettings(
        enabled=raw.get("enabled", True),
        delay_ms=raw.get("delay_ms", 2000),
        notifications=raw.get("notifications", True),
    )
    for name in ("enabled", "notifications"):
        value = getattr(settings, name)
        if not isinstance(value, bool):
            raise ValueError(f"{path}: {name} must be true or false, got {value!r}")
    if not isinstance(settings.delay_ms, int) or isinstance(settings.delay_ms, bool):
        raise ValueError(f"{path}: delay_ms must be an integer, got {settings.delay_ms!r}")
    if settings.delay_ms < 0:
        raise ValueError(f"{path}: delay_ms must be >= 0, got {settings.delay_ms}")
    return settings


def _parse_rules(raw_rules: list, path: Path) -> list[WatchRule]:
    if not isinstance(raw_rules, list):
        raise ValueError(f"{path}: 'rule' must be an array of tables ([[rule]])")

    rules = []
    for index, raw in enumerate(raw_rules):
        if not isinstance(raw, dict):
            raise ValueError(f"{path}: rule #{index + 1} must be a table")
        pattern = raw.get("pattern")
        if not pattern:
            raise ValueError(f"{path}: rule #{index + 1} is missing 'pattern'")
        if not isinstance(pattern, str):
            raise ValueError(f"{path}: rule #{index + 1} pattern must be a string, got {pattern!r}")
        if pattern.startswith(("!", "#")):
            raise ValueError(f"{path}: rule #{index + 1} pattern may not start with '{pattern[0]}'")
        payload = raw.get("prompt", raw.get("payload", ""))
        if not isinstance(payload, str):
            raise ValueError(f"{path}: rule #{index + 1} prompt must be a string, got {payload!r}")
        rules.append(WatchRule(pattern=pattern, payload=payload))
    return rules


def _parse_ignore_dirs(raw: dict, path: Path) -> list[str] | None:
    ignore_dirs = raw.get("ignore_dirs")
    if ignore_dirs is None:
        return None
    if not isinstance(ignore_dirs, list) or not all(isinstance(d, str) for d in ignore_dirs):
        raise ValueError(f"{path}: ignore_dirs must be a list of strings, got {ignore_dirs!r}")
    return ignore_dirs


def load_trigger_config(path: str | Path) -> TriggerConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to TOML config file

    Returns:
        Parsed TriggerConfig (root resolved relative to the config file)
    """
    path = Path(path)

    # Check file exists with helpful error
    if not path.exists():
        raise FileNotFoundError(
            f"Config file not found: {path}\n"
            "Run 'filetrigger-tui' without arguments to auto-create a default config."
        )

    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except Exception as e:
        raise ValueError(f"Failed to parse config file {path}: {e}") from e

    trigger_raw = raw.get("trigger", {})
    if not isinstance(trigger_raw, dict):
        raise ValueError(f"{path}: [trigger] must be a table")
    if not isinstance(trigger_raw.get("root", "."), str):
        raise ValueError(f"{path}: root must be a string, got {trigger_raw['root']!r}")
    settings = _parse_settings(trigger_raw, path)
    rules = _parse_rules(raw.get("rule", []), path)

    ignore_dirs = _parse_ignore_dirs(trigger_raw, path)

    root = (path.parent / trigger_raw.get("root", ".")).resolve()

    logger.debug(f"Loaded {len(rules)} rule(s) from {path}")
    return TriggerConfig(
        root=root,
        settings=settings,
        rules=rules,
        ignore_dirs=ignore_dirs,
        path=path.resolve(),
    )
