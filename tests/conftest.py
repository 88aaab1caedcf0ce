"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


class RecordingSink:
    """Action sink that records every delivery."""

    def __init__(self):
        self.deliveries: list[tuple[str, object]] = []

    def __call__(self, key, payload):
        self.deliveries.append((key, payload))

    def deliver(self, key, payload):
        self.deliveries.append((key, payload))

    @property
    def keys(self) -> list[str]:
        return [key for key, _ in self.deliveries]

    @property
    def payloads(self) -> list[object]:
        return [payload for _, payload in self.deliveries]


@pytest.fixture
def sink():
    """A fresh recording sink."""
    return RecordingSink()


@pytest.fixture
def workspace(tmp_path):
    """Workspace with a config file and a few source files."""
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "app.ts").write_text("export const x = 1;\n")
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "README.md").write_text("# readme\n")
    return tmp_path


@pytest.fixture
def write_config(workspace):
    """Write config.toml into the workspace and return its path."""

    def _write(body: str) -> Path:
        config = workspace / "config.toml"
        config.write_text(body)
        return config

    return _write


@pytest.fixture
def tmp_config(write_config):
    """A small config with a short quiet period and two rules."""
    return write_config(
        """
[trigger]
root = "."
delay_ms = 40
notifications = true

[[rule]]
pattern = "**/*.ts"
prompt = "Review $relative_path ($event)"

[[rule]]
pattern = "src/**/*.ts"
prompt = "Source file $relative_path was $event"

[[rule]]
pattern = "*.py"
prompt = "Python: $relative_path"
"""
    )
