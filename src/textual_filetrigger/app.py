"""TUI application for filetrigger.

Shows the trigger state in a status line, streams activity into a log and
copies every delivered prompt to the clipboard.
"""

import asyncio
import logging
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Log, Static

from filetrigger_core.adapter import TriggerAdapter
from filetrigger_core.models import DeliveryFailure

logger = logging.getLogger(__name__)


class HelpScreen(ModalScreen):
    """Modal help screen showing keyboard shortcuts."""

    BINDINGS = [("escape", "dismiss", "Close")]

    def compose(self) -> ComposeResult:
        """Compose help content."""
        with Vertical():
            yield Static("# Keyboard Shortcuts", classes="help-header")
            yield Static("")
            yield Static("  [t] - Enable/disable triggers")
            yield Static("  [c] - Cancel pending prompts")
            yield Static("  [y] - Copy last prompt")
            yield Static("  [r] - Reload configuration")
            yield Static("  [h] - Show this help")
            yield Static("  [q] - Quit application")
            yield Static("")
            yield Static("Press ESC to close", classes="help-footer")


class AppNotifier:
    """Notifier that routes messages to Textual toasts and the activity log."""

    def __init__(self, app: "TriggerApp"):
        self.app = app

    def info(self, msg: str) -> None:
        self.app.notify(msg, severity="information")
        self.app.log_line(msg)

    def warning(self, msg: str) -> None:
        self.app.notify(msg, severity="warning")
        self.app.log_line(f"⚠️ {msg}")

    def error(self, msg: str) -> None:
        self.app.notify(msg, severity="error")
        self.app.log_line(f"❌ {msg}")


class TriggerApp(App):
    """TUI shell around TriggerAdapter.

    The app is the adapter's action sink: delivered prompts are written to the
    activity log and copied to the clipboard.
    """

    TITLE = "filetrigger"
    BINDINGS = [
        Binding("t", "toggle_enabled", "Enable/Disable"),
        Binding("c", "cancel_pending", "Cancel pending"),
        Binding("y", "copy_last_prompt", "Copy prompt"),
        Binding("r", "reload_config", "Reload"),
        Binding("h", "show_help", "Help"),
        Binding("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        layout: vertical;
    }

    #status {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    #activity {
        height: 1fr;
        border: solid $accent;
    }

    HelpScreen {
        align: center middle;
    }

    HelpScreen > Vertical {
        width: 60;
        height: auto;
        background: $panel;
        border: solid $accent;
        padding: 2;
    }

    .help-header {
        text-style: bold;
        color: $accent;
    }

    .help-footer {
        text-style: italic;
        color: $text-muted;
    }
    """

    def __init__(self, config_path: str | Path = "config.toml", **kwargs):
        """Initialize app.

        Args:
            config_path: Path to TOML config file
        """
        super().__init__(**kwargs)
        self.config_path = Path(config_path)
        self.adapter: TriggerAdapter | None = None
        self.status: Static | None = None
        self.activity: Log | None = None

    def compose(self) -> ComposeResult:
        """Compose app layout."""
        yield Header()

        try:
            self.adapter = TriggerAdapter(self.config_path, sink=self, notifier=AppNotifier(self))
            self.adapter.on_delivery_failed = self._on_delivery_failed
            self.adapter.on_reconfigured = self._refresh_status

            self.status = Static("", id="status")
            self.activity = Log(id="activity")
            yield self.status
            yield self.activity

        except Exception as e:
            # Fatal config error
            logger.error(f"Failed to initialize app: {e}")
            yield Static(f"❌ Configuration Error: {e}")

        yield Footer()

    async def on_mount(self) -> None:
        """Attach adapter to event loop and report configuration issues."""
        if not self.adapter:
            logger.error("Adapter not initialized")
            return

        try:
            self.adapter.attach(asyncio.get_running_loop())

            validation = self.adapter.validate_config()
            for warning in validation.warnings:
                self.log_line(f"⚠️ {warning}")
            for error in validation.errors:
                self.log_line(f"❌ {error}")
            if validation.using_default_rules:
                self.log_line("No rules configured, using default source rules")

            self.log_line(f"Watching {self.adapter.root}")
            self.notify("File trigger is active!", severity="information")
            self._refresh_status()
            self.set_interval(0.5, self._refresh_status)

        except Exception as e:
            logger.error(f"Failed to mount app: {e}", exc_info=True)
            self.exit(message=f"Error: {e}")

    async def on_unmount(self) -> None:
        """Cleanup on exit."""
        if self.adapter:
            self.adapter.detach()

    # ========================================================================
    # Action sink
    # ========================================================================

    def deliver(self, key: str, prompt: str) -> None:
        """Receive a composed prompt from the adapter."""
        self.log_line(f"▶ Prompt for {key}")
        for line in prompt.rstrip().splitlines():
            self.log_line(f"    {line}")
        self.copy_to_clipboard(prompt)

    def _on_delivery_failed(self, failure: DeliveryFailure) -> None:
        logger.error(failure.describe())
        self._refresh_status()

    # ========================================================================
    # App Actions
    # ========================================================================

    def action_toggle_enabled(self) -> None:
        """Enable or disable triggers (pending prompts are cancelled)."""
        if not self.adapter:
            return
        self.adapter.set_enabled(not self.adapter.settings.enabled)
        self._refresh_status()

    def action_cancel_pending(self) -> None:
        """Cancel every pending prompt."""
        if not self.adapter:
            return
        cancelled = self.adapter.scheduler.cancel_all()
        self.notify(f"Cancelled {cancelled} pending prompt(s)", severity="information")
        self._refresh_status()

    def action_copy_last_prompt(self) -> None:
        """Copy the last delivered prompt to the clipboard again."""
        if not self.adapter or self.adapter.last_prompt is None:
            self.notify("No prompt delivered yet", severity="warning")
            return
        self.copy_to_clipboard(self.adapter.last_prompt)
        self.notify("Prompt copied to clipboard", severity="information")

    def action_reload_config(self) -> None:
        """Reload configuration from disk."""
        if not self.adapter:
            self.notify("Adapter not initialized", severity="warning")
            return
        logger.info("Reloading configuration...")
        self.adapter.reload_config()
        self._refresh_status()

    def action_show_help(self) -> None:
        """Show help screen with keyboard shortcuts."""
        self.push_screen(HelpScreen())

    async def action_quit(self) -> None:
        """Quit application."""
        self.exit()

    # ========================================================================
    # Helper Methods
    # ========================================================================

    def log_line(self, text: str) -> None:
        """Append a line to the activity log (no-op before compose)."""
        if self.activity is not None:
            self.activity.write_line(text)

    def status_text(self) -> str:
        """Build the status line text."""
        if not self.adapter:
            return "Not configured"

        settings = self.adapter.settings
        state = "● enabled" if settings.enabled else "○ disabled"
        return (
            f"{state} │ delay {settings.delay_ms}ms │ "
            f"{len(self.adapter.matcher.rules)} rule(s) │ "
            f"pending {len(self.adapter.scheduler)} │ "
            f"delivered {self.adapter.delivered_count}"
        )

    def _refresh_status(self) -> None:
        if self.status is not None:
            self.status.update(self.status_text())


def main(config_path: str = "config.toml") -> None:
    """Run standalone app.

    Args:
        config_path: Path to TOML config file
    """
    app = TriggerApp(config_path=config_path)
    app.run()


if __name__ == "__main__":
    main()
