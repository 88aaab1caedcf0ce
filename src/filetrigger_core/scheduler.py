"""Debounced, per-key event coalescing.

Each key is either Idle (no entry) or Pending (one entry with a live timer).
A notify() on a Pending key cancels its timer and starts a full-length one with
the new payload, so only the payload of the last notify() before the quiet
period is delivered. When a timer fires the entry is removed before the sink
is called; a notify() issued by the delivery itself starts a fresh cycle.

All methods must be called from the thread running the event loop.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from filetrigger_core.models import DeliveryFailure, PendingEntry
from filetrigger_core.notifier import NoOpNotifier, TriggerNotifier

logger = logging.getLogger(__name__)

DeliverFn = Callable[[str, Any], Any]


class CancellationToken:
    """Opaque cancellable handle for one scheduled timer."""

    def __init__(self) -> None:
        self._handle: asyncio.TimerHandle | None = None
        self._cancelled = False

    def bind(self, handle: asyncio.TimerHandle) -> None:
        self._handle = handle

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class SchedulerState:
    """Key -> PendingEntry mapping owned by one DebounceScheduler."""

    def __init__(self) -> None:
        self._entries: dict[str, PendingEntry] = {}

    def get(self, key: str) -> PendingEntry | None:
        return self._entries.get(key)

    def put(self, entry: PendingEntry) -> None:
        self._entries[entry.key] = entry

    def pop(self, key: str) -> PendingEntry | None:
        return self._entries.pop(key, None)

    def drain(self) -> list[PendingEntry]:
        """Remove and return every entry."""
        entries = list(self._entries.values())
        self._entries.clear()
        return entries

    def keys(self) -> list[str]:
        return list(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class DebounceScheduler:
    """Trailing-edge debounce keyed by identity.

    Usage:
        scheduler = DebounceScheduler(sink.deliver)
        scheduler.notify("src/app.ts", payload, delay_ms=2000)
        ...
        scheduler.cancel_all()
    """

    def __init__(
        self,
        deliver: DeliverFn,
        loop: asyncio.AbstractEventLoop | None = None,
        notifier: TriggerNotifier | None = None,
        on_delivery_failed: Callable[[DeliveryFailure], None] | None = None,
    ):
        """Initialize scheduler.

        Args:
            deliver: Sink called as deliver(key, payload); may return an awaitable
            loop: Event loop for timers (defaults to the running loop at first notify)
            notifier: Receives an error message for every failed delivery
            on_delivery_failed: Optional structured failure callback
        """
        self._deliver = deliver
        self._loop = loop
        self.notifier = notifier or NoOpNotifier()
        self.on_delivery_failed = on_delivery_failed
        self.state = SchedulerState()
        self._in_flight: set[asyncio.Task] = set()

    # ========================================================================
    # Operations
    # ========================================================================

    def notify(self, key: str, payload: Any, delay_ms: int) -> None:
        """Schedule (or reschedule) delivery of payload for key after delay_ms."""
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")

        loop = self._get_loop()
        previous = self.state.pop(key)
        if previous is not None:
            previous.token.cancel()
            logger.debug(f"Restarted quiet period for {key}")

        token = CancellationToken()
        delay = delay_ms / 1000.0
        token.bind(loop.call_later(delay, self._fire, key, token))
        self.state.put(
            PendingEntry(key=key, scheduled_at=loop.time() + delay, payload=payload, token=token)
        )

    def cancel(self, key: str) -> bool:
        """Cancel the pending entry for key. Returns False if key was idle."""
        entry = self.state.pop(key)
        if entry is None:
            return False
        entry.token.cancel()
        logger.debug(f"Cancelled pending delivery for {key}")
        return True

    def cancel_all(self) -> int:
        """Cancel every pending entry. Returns the number cancelled."""
        entries = self.state.drain()
        for entry in entries:
            entry.token.cancel()
        if entries:
            logger.debug(f"Cancelled {len(entries)} pending deliveries")
        return len(entries)

    # ========================================================================
    # Queries
    # ========================================================================

    def is_pending(self, key: str) -> bool:
        return key in self.state

    def pending_keys(self) -> list[str]:
        return self.state.keys()

    def __len__(self) -> int:
        return len(self.state)

    async def wait_for_deliveries(self) -> None:
        """Wait until every in-flight async delivery has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    # ========================================================================
    # Internals
    # ========================================================================

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _fire(self, key: str, token: CancellationToken) -> None:
        entry = self.state.get(key)
        if entry is None or entry.token is not token:
            # Superseded or cancelled after the loop had already queued the callback
            return

        # Back to Idle before delivery so the sink may notify() the same key
        self.state.pop(key)
        token.cancel()

        try:
            result = self._deliver(key, entry.payload)
        except Exception as e:
            self._report_failure(key, entry.payload, e)
            return

        if inspect.isawaitable(result):
            task = self._get_loop().create_task(self._await_delivery(key, entry.payload, result))
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

    async def _await_delivery(self, key: str, payload: Any, result: Awaitable[Any]) -> None:
        try:
            await result
        except Exception as e:
            self._report_failure(key, payload, e)

    def _report_failure(self, key: str, payload: Any, error: Exception) -> None:
        failure = DeliveryFailure(key=key, payload=payload, error=error)
        logger.error(failure.describe(), exc_info=error)
        self.notifier.error(failure.describe())
        if self.on_delivery_failed is not None:
            try:
                self.on_delivery_failed(failure)
            except Exception as e:
                logger.error(f"Error in delivery failure callback for '{key}': {e}")
