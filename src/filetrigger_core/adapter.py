"""
Reusable frontend adapter for the file trigger pipeline.

Owns one DebounceScheduler together with the classifier, matcher and watch
source that feed it, and provides a frontend-agnostic interface for:
- Loading and validating configuration
- Feeding raw filesystem events through the pipeline
- Reconfiguring atomically (cancel pending work, rebuild subscriptions)
- Reporting deliveries and delivery failures to the host

This adapter can be used by any frontend (TUI, headless, editor plugin, etc.)
without depending on Textual or any UI framework.
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import replace
from functools import partial
from pathlib import Path

from filetrigger_core.classifier import PathClassifier
from filetrigger_core.config import TriggerConfig, load_trigger_config
from filetrigger_core.file_watcher import WatchdogWatcher
from filetrigger_core.matcher import PatternMatcher
from filetrigger_core.models import (
    ConfigValidationResult,
    DeliveryFailure,
    EventKind,
    FileEvent,
    MatchedEvent,
    TriggerSettings,
    WatchRule,
)
from filetrigger_core.notifier import NoOpNotifier, TriggerNotifier
from filetrigger_core.prompt import ActionSink, compose_prompt, format_notification, relative_to_root
from filetrigger_core.scheduler import DebounceScheduler

logger = logging.getLogger(__name__)

# Editors often write a file several times per save
CONFIG_RELOAD_DELAY_MS = 300


class TriggerAdapter:
    """Frontend-agnostic owner of the trigger pipeline.

    Usage (Embedded):
        adapter = TriggerAdapter(config_path, sink=my_sink)
        adapter.on_delivered = lambda key, prompt: ...
        adapter.attach(asyncio.get_running_loop())
        ...
        adapter.detach()
    """

    watcher_factory = WatchdogWatcher

    def __init__(
        self,
        config_path: str | Path,
        sink: ActionSink | None = None,
        notifier: TriggerNotifier | None = None,
        enable_watchers: bool = True,
    ):
        """Initialize adapter with configuration.

        Args:
            config_path: Path to TOML config file
            sink: Receives composed prompts (optional; deliveries are still logged)
            notifier: Optional notification handler (defaults to NoOpNotifier - silent)
            enable_watchers: If False, the host feeds events through handle_event()
        """
        self.config_path = Path(config_path).resolve()
        self.config: TriggerConfig = load_trigger_config(self.config_path)
        self.sink = sink
        self.notifier = notifier or NoOpNotifier()
        self._enable_watchers = enable_watchers

        self._loop: asyncio.AbstractEventLoop | None = None
        self._is_attached = False
        self._watcher = None
        self._generation = 0

        self.matcher = PatternMatcher(self.config.rules)
        self.classifier = PathClassifier(self.config.ignore_dirs)
        self.scheduler = DebounceScheduler(
            self._deliver,
            notifier=self.notifier,
            on_delivery_failed=self._on_delivery_failed,
        )
        self._config_reloader = DebounceScheduler(lambda key, _: self.reload_config())

        self.delivered_count = 0
        self.last_prompt: str | None = None

        # Outbound events (host wires these)
        self.on_delivered: Callable[[str, str], None] | None = None
        self.on_delivery_failed: Callable[[DeliveryFailure], None] | None = None
        self.on_reconfigured: Callable[[], None] | None = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @property
    def settings(self) -> TriggerSettings:
        return self.config.settings

    @property
    def root(self) -> Path:
        return self.config.root

    @property
    def is_attached(self) -> bool:
        return self._is_attached

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach adapter to a running event loop and start watching.

        Raises:
            RuntimeError: If loop is not running
        """
        if self._is_attached:
            logger.warning("Adapter already attached to event loop")
            return

        if not loop.is_running():
            raise RuntimeError("Event loop must be running to attach")

        self._loop = loop
        self._is_attached = True
        self._start_watcher()
        logger.debug("Adapter attached to event loop")

    def detach(self) -> None:
        """Cancel pending deliveries, stop watching and detach from the loop."""
        cancelled = self.scheduler.cancel_all()
        self._config_reloader.cancel_all()
        self._stop_watcher()
        self._generation += 1
        self._is_attached = False
        self._loop = None
        logger.debug(f"Adapter detached ({cancelled} pending deliveries cancelled)")

    # ========================================================================
    # Event pipeline
    # ========================================================================

    def handle_event(self, path: str | Path, kind: EventKind, generation: int | None = None) -> bool:
        """Feed one raw filesystem event through classifier, matcher and scheduler.

        Must run on the loop thread. Events tagged with a generation from before
        the last reconfiguration are dropped.

        Returns:
            True if the event scheduled (or rescheduled) a delivery
        """
        if generation is not None and generation != self._generation:
            logger.debug(f"Dropped stale {kind.value} event for {path}")
            return False

        path = Path(path).resolve()
        if path == self.config_path:
            self._config_reloader.notify(str(path), None, CONFIG_RELOAD_DELAY_MS)
            return False

        if not self.settings.enabled:
            return False

        relative = relative_to_root(path, self.root)
        if self.classifier.should_ignore(relative):
            return False

        matches = self.matcher.match(relative)
        if not matches:
            return False

        # The last matching rule in configuration order wins
        rule, _ = matches[-1]
        self.scheduler.notify(
            str(path),
            MatchedEvent(rule=rule, path=path, kind=kind),
            self.settings.delay_ms,
        )
        return True

    def handle_file_event(self, event: FileEvent, generation: int | None = None) -> bool:
        """Watch source callback form of handle_event()."""
        return self.handle_event(event.path, event.kind, generation)

    async def _deliver(self, key: str, matched: MatchedEvent) -> None:
        prompt = compose_prompt(matched, self.root)
        if self.sink is not None:
            result = self.sink.deliver(key, prompt)
            if inspect.isawaitable(result):
                await result

        self.delivered_count += 1
        self.last_prompt = prompt
        message = format_notification(matched, self.root)
        logger.info(message)
        if self.settings.notifications:
            self.notifier.info(message)

        if self.on_delivered is not None:
            try:
                self.on_delivered(key, prompt)
            except Exception as e:
                logger.error(f"Error in delivery callback for '{key}': {e}")

    def _on_delivery_failed(self, failure: DeliveryFailure) -> None:
        if self.on_delivery_failed is not None:
            self.on_delivery_failed(failure)

    # ========================================================================
    # Reconfiguration
    # ========================================================================

    def reconfigure(
        self,
        rules: list[WatchRule],
        settings: TriggerSettings,
        ignore_dirs: list[str] | None = None,
        root: Path | None = None,
    ) -> None:
        """Swap rules and settings.

        Cancels every pending delivery and rebuilds the watch subscription, so
        nothing scheduled under the old configuration fires afterwards. Runs
        synchronously on the loop thread, so no event is processed halfway.
        """
        cancelled = self.scheduler.cancel_all()
        self._stop_watcher()
        self._generation += 1

        self.config = replace(
            self.config,
            rules=list(rules),
            settings=settings,
            ignore_dirs=ignore_dirs,
            root=Path(root).resolve() if root is not None else self.config.root,
        )
        self.matcher = PatternMatcher(self.config.rules)
        self.classifier = PathClassifier(self.config.ignore_dirs)

        if self._is_attached:
            self._start_watcher()

        logger.info(
            f"Reconfigured: {len(self.matcher.rules)} rule(s), "
            f"enabled={settings.enabled}, delay={settings.delay_ms}ms "
            f"({cancelled} pending deliveries cancelled)"
        )
        if self.on_reconfigured is not None:
            self.on_reconfigured()

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable scheduling (pending deliveries are cancelled)."""
        self.reconfigure(
            self.config.rules,
            replace(self.settings, enabled=enabled),
            self.config.ignore_dirs,
        )
        self.notifier.info("File trigger enabled" if enabled else "File trigger disabled")

    def reload_config(self) -> bool:
        """Reload configuration from disk. Keeps the old one on failure."""
        try:
            config = load_trigger_config(self.config_path)
        except Exception as e:
            logger.error(f"Failed to reload config: {e}")
            self.notifier.error(f"Failed to reload config: {e}")
            return False

        self.reconfigure(config.rules, config.settings, config.ignore_dirs, config.root)
        self.notifier.info("Configuration reloaded")
        return True

    def validate_config(self) -> ConfigValidationResult:
        """Validate configuration and return structured results."""
        result = ConfigValidationResult(
            rules_loaded=len(self.matcher.rules),
            using_default_rules=self.matcher.using_defaults,
        )

        if not self.root.is_dir():
            result.errors.append(f"Watch root does not exist: {self.root}")

        seen: set[str] = set()
        for rule in self.config.rules:
            if rule.pattern in seen:
                result.warnings.append(f"Duplicate pattern '{rule.pattern}' (last one wins)")
            seen.add(rule.pattern)
            if not rule.payload.strip():
                result.warnings.append(f"Rule '{rule.pattern}' has an empty prompt")

        if self.settings.delay_ms == 0:
            result.warnings.append("delay_ms is 0: every event is delivered on the next loop iteration")

        return result

    # ========================================================================
    # Watch source
    # ========================================================================

    def _start_watcher(self) -> None:
        if not self._enable_watchers or self._loop is None:
            return

        callback = partial(self.handle_file_event, generation=self._generation)
        try:
            self._watcher = self.watcher_factory(self.root, callback, self._loop)
            self._watcher.start()
        except Exception as e:
            logger.error(f"Failed to start file watcher: {e}")
            self.notifier.error(f"File watcher initialization failed: {e}")
            self._watcher = None

    def _stop_watcher(self) -> None:
        if self._watcher is None:
            return
        try:
            self._watcher.stop()
        except Exception as e:
            logger.error(f"Error stopping file watcher: {e}")
        self._watcher = None
