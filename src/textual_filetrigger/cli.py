"""CLI entry point for filetrigger-tui: auto-generates default config and launches the TUI."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from filetrigger_core.adapter import TriggerAdapter
from filetrigger_core.config import load_trigger_config
from filetrigger_core.notifier import LoggingNotifier
from textual_filetrigger import __version__

logging.getLogger("textual_filetrigger").setLevel(logging.DEBUG)

# Default config template for a source workspace
DEFAULT_CONFIG_TEMPLATE = """\
# Auto-generated config.toml for filetrigger-tui

[trigger]
root = "."
enabled = true
delay_ms = 2000
notifications = true

[[rule]]
pattern = "**/*.{ts,tsx,js,jsx}"
prompt = \"\"\"
The file $relative_path was $event.
Review it for type errors, unhandled promise rejections and missing tests.
\"\"\"

[[rule]]
pattern = "**/*.py"
prompt = \"\"\"
The file $relative_path was $event.
Review it for bugs, unclear naming and missing tests.
\"\"\"
"""


def create_default_config(config_path: Path) -> bool:
    """
    Create a default config.toml if it doesn't exist.

    Args:
        config_path: Path where config should be created

    Returns:
        True if config was created, False if it already exists

    Raises:
        PermissionError: If unable to write to the directory
        OSError: If other file system errors occur
    """
    if config_path.exists():
        return False

    # Ensure parent directory exists
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_path.write_text(DEFAULT_CONFIG_TEMPLATE)
    return True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="filetrigger-tui",
        description="Compose an analysis prompt whenever a watched file settles.",
        epilog="Examples:\n"
        "  filetrigger-tui                       # Auto-create config.toml and launch\n"
        "  filetrigger-tui --config my.toml      # Use custom config\n"
        "  filetrigger-tui --headless            # Log prompts without the TUI\n"
        "  filetrigger-tui --version             # Show version",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to config file (default: config.toml)",
    )

    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run without the TUI and print prompts to stdout",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


class StdoutSink:
    """Action sink that prints prompts, used by --headless."""

    def deliver(self, key: str, prompt: str) -> None:
        print(f"=== {key}")
        print(prompt.rstrip())
        sys.stdout.flush()


async def run_headless(config_path: Path, stop: asyncio.Event | None = None) -> None:
    """Run the adapter until cancelled (or until stop is set)."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    adapter = TriggerAdapter(config_path, sink=StdoutSink(), notifier=LoggingNotifier())
    adapter.attach(asyncio.get_running_loop())

    validation = adapter.validate_config()
    for warning in validation.warnings:
        logging.warning(warning)
    for error in validation.errors:
        logging.error(error)

    if stop is None:
        stop = asyncio.Event()
    try:
        await stop.wait()
    finally:
        adapter.detach()
        await adapter.scheduler.wait_for_deliveries()


def main() -> None:
    """
    Main entry point for filetrigger-tui CLI.

    Handles:
    - Argument parsing
    - Auto-creation of config.toml
    - Launching TriggerApp (or the headless runner)
    - Error handling and exit codes
    """
    args = parse_args()

    # Resolve config path to absolute path
    config_path = Path(args.config).resolve()

    try:
        if create_default_config(config_path):
            print(f"Created default config at: {config_path}")

        if not config_path.exists():
            print(f"Error: Config file not found: {config_path}", file=sys.stderr)
            sys.exit(1)

        # Fail fast on a broken config before any UI starts
        load_trigger_config(config_path)

        if args.headless:
            asyncio.run(run_headless(config_path))
            return

        from textual_filetrigger.app import TriggerApp

        app = TriggerApp(config_path=str(config_path))
        app.run()

    except KeyboardInterrupt:
        # Gracefully handle Ctrl+C
        sys.exit(130)
    except (PermissionError, OSError) as e:
        print(f"Error: Failed to create config: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
