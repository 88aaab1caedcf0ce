"""Tests for DebounceScheduler - per-key trailing-edge coalescing."""

import asyncio
from unittest.mock import Mock

import pytest

from filetrigger_core.models import DeliveryFailure
from filetrigger_core.scheduler import CancellationToken, DebounceScheduler, SchedulerState


class TestCoalescing:
    """Repeated notify() calls for one key collapse into one delivery."""

    @pytest.mark.asyncio
    async def test_rapid_notifies_deliver_last_payload_once(self, sink):
        scheduler = DebounceScheduler(sink)

        for i in range(1, 6):
            scheduler.notify("a.ts", f"p{i}", 80)
            await asyncio.sleep(0.01)

        await asyncio.sleep(0.2)

        assert sink.deliveries == [("a.ts", "p5")]

    @pytest.mark.asyncio
    async def test_restart_is_full_length(self, sink):
        """notify at t=0 and t=50 with delay 100 fires once at t~150 with p2."""
        scheduler = DebounceScheduler(sink)

        scheduler.notify("a.ts", "p1", 100)
        await asyncio.sleep(0.05)
        scheduler.notify("a.ts", "p2", 100)

        await asyncio.sleep(0.06)  # t~110: the original timer would have fired
        assert sink.deliveries == []
        assert scheduler.is_pending("a.ts")

        await asyncio.sleep(0.1)  # t~210
        assert sink.deliveries == [("a.ts", "p2")]
        assert not scheduler.is_pending("a.ts")

    @pytest.mark.asyncio
    async def test_notify_returns_immediately(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("a.ts", "p1", 1000)

        assert scheduler.is_pending("a.ts")
        assert sink.deliveries == []
        scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_single_entry_per_key(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("a.ts", "p1", 500)
        first = scheduler.state.get("a.ts")
        scheduler.notify("a.ts", "p2", 500)
        second = scheduler.state.get("a.ts")

        assert len(scheduler) == 1
        assert first.token.cancelled
        assert not second.token.cancelled
        assert second.payload == "p2"
        assert second.scheduled_at >= first.scheduled_at
        scheduler.cancel_all()

    @pytest.mark.asyncio
    async def test_zero_delay_fires_on_next_iteration(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("a.ts", "now", 0)
        assert sink.deliveries == []

        await asyncio.sleep(0.01)
        assert sink.deliveries == [("a.ts", "now")]

    def test_negative_delay_rejected(self, sink):
        scheduler = DebounceScheduler(sink)
        with pytest.raises(ValueError, match="delay_ms must be >= 0"):
            scheduler.notify("a.ts", "p", -1)


class TestIndependence:
    """Operations on one key never affect another."""

    @pytest.mark.asyncio
    async def test_keys_fire_independently(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("k2", "two", 60)
        for _ in range(4):
            scheduler.notify("k1", "one", 60)
            await asyncio.sleep(0.02)
        scheduler.cancel("k1")

        await asyncio.sleep(0.1)

        assert sink.deliveries == [("k2", "two")]

    @pytest.mark.asyncio
    async def test_many_keys_each_deliver_once(self, sink):
        scheduler = DebounceScheduler(sink)
        for i in range(20):
            scheduler.notify(f"file{i}.py", i, 30)
            scheduler.notify(f"file{i}.py", i * 10, 30)

        await asyncio.sleep(0.15)

        assert sorted(sink.keys) == sorted(f"file{i}.py" for i in range(20))
        assert dict(sink.deliveries)["file3.py"] == 30


class TestIdleAfterFire:
    @pytest.mark.asyncio
    async def test_key_idle_after_delivery(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("a.ts", "p1", 20)
        await asyncio.sleep(0.06)

        assert not scheduler.is_pending("a.ts")
        assert scheduler.pending_keys() == []

    @pytest.mark.asyncio
    async def test_next_notify_starts_fresh_delay(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("a.ts", "p1", 20)
        await asyncio.sleep(0.06)
        assert sink.payloads == ["p1"]

        scheduler.notify("a.ts", "p2", 100)
        await asyncio.sleep(0.05)
        assert sink.payloads == ["p1"]

        await asyncio.sleep(0.1)
        assert sink.payloads == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_idle_after_failed_delivery(self):
        def failing(key, payload):
            raise RuntimeError("boom")

        scheduler = DebounceScheduler(failing)
        scheduler.notify("a.ts", "p1", 10)
        await asyncio.sleep(0.05)

        assert not scheduler.is_pending("a.ts")


class TestCancellation:
    @pytest.mark.asyncio
    async def test_cancel_prevents_delivery(self, sink):
        """notify b.ts at t=0 with delay 50, cancel at t=20: never delivered."""
        scheduler = DebounceScheduler(sink)
        scheduler.notify("b.ts", "x", 50)
        await asyncio.sleep(0.02)

        assert scheduler.cancel("b.ts") is True
        await asyncio.sleep(0.1)

        assert sink.deliveries == []

    def test_cancel_idle_key_is_noop(self, sink):
        scheduler = DebounceScheduler(sink)
        assert scheduler.cancel("missing") is False

    @pytest.mark.asyncio
    async def test_cancel_all_prevents_every_delivery(self, sink):
        scheduler = DebounceScheduler(sink)
        for key in ("a", "b", "c"):
            scheduler.notify(key, key, 30)

        assert scheduler.cancel_all() == 3
        await asyncio.sleep(0.08)

        assert sink.deliveries == []
        assert len(scheduler) == 0

    @pytest.mark.asyncio
    async def test_cancel_all_is_idempotent_and_reusable(self, sink):
        scheduler = DebounceScheduler(sink)
        scheduler.notify("a", "old", 30)
        scheduler.cancel_all()
        assert scheduler.cancel_all() == 0

        scheduler.notify("a", "new", 10)
        await asyncio.sleep(0.05)

        assert sink.deliveries == [("a", "new")]


class TestDeliveryFailures:
    @pytest.mark.asyncio
    async def test_sync_failure_is_reported_and_isolated(self, sink):
        failures: list[DeliveryFailure] = []
        notifier = Mock()

        def deliver(key, payload):
            if key == "bad":
                raise RuntimeError("sink exploded")
            sink(key, payload)

        scheduler = DebounceScheduler(deliver, notifier=notifier, on_delivery_failed=failures.append)
        scheduler.notify("bad", "x", 10)
        scheduler.notify("good", "y", 30)

        await asyncio.sleep(0.08)

        assert sink.deliveries == [("good", "y")]
        assert len(failures) == 1
        assert failures[0].key == "bad"
        assert failures[0].payload == "x"
        assert isinstance(failures[0].error, RuntimeError)
        notifier.error.assert_called_once()
        assert "bad" in notifier.error.call_args[0][0]

    @pytest.mark.asyncio
    async def test_async_failure_is_reported(self):
        failures: list[DeliveryFailure] = []

        async def deliver(key, payload):
            await asyncio.sleep(0)
            raise ValueError("remote rejected prompt")

        scheduler = DebounceScheduler(deliver, on_delivery_failed=failures.append)
        scheduler.notify("a.ts", "p", 5)
        await asyncio.sleep(0.03)
        await scheduler.wait_for_deliveries()

        assert [f.key for f in failures] == ["a.ts"]
        assert not scheduler.is_pending("a.ts")

    @pytest.mark.asyncio
    async def test_failing_failure_callback_does_not_escape(self, sink):
        def deliver(key, payload):
            raise RuntimeError("boom")

        def on_failed(failure):
            raise RuntimeError("callback also broken")

        scheduler = DebounceScheduler(deliver, on_delivery_failed=on_failed)
        scheduler.notify("a", 1, 5)
        await asyncio.sleep(0.03)

        # Scheduler keeps working afterwards
        scheduler._deliver = sink
        scheduler.notify("b", 2, 5)
        await asyncio.sleep(0.03)
        assert sink.deliveries == [("b", 2)]


class TestReentrancy:
    @pytest.mark.asyncio
    async def test_sink_can_renotify_same_key(self):
        delivered = []
        scheduler: DebounceScheduler

        def deliver(key, payload):
            delivered.append(payload)
            if payload == "first":
                # The firing entry is already gone: this starts a fresh cycle
                assert not scheduler.is_pending(key)
                scheduler.notify(key, "second", 10)

        scheduler = DebounceScheduler(deliver)
        scheduler.notify("a.ts", "first", 10)
        await asyncio.sleep(0.08)

        assert delivered == ["first", "second"]

    @pytest.mark.asyncio
    async def test_notify_during_suspended_delivery(self):
        release = asyncio.Event()
        started = asyncio.Event()
        delivered = []

        async def deliver(key, payload):
            started.set()
            await release.wait()
            delivered.append(payload)

        scheduler = DebounceScheduler(deliver)
        scheduler.notify("a.ts", "first", 5)
        await asyncio.wait_for(started.wait(), timeout=1)

        # In-flight delivery does not block a new cycle for the same key
        scheduler.notify("a.ts", "second", 5)
        assert scheduler.is_pending("a.ts")

        await asyncio.sleep(0.03)
        release.set()
        await scheduler.wait_for_deliveries()

        assert sorted(delivered) == ["first", "second"]
        assert not scheduler.is_pending("a.ts")


class TestPrimitives:
    def test_cancellation_token_idempotent(self):
        handle = Mock()
        token = CancellationToken()
        token.bind(handle)

        token.cancel()
        token.cancel()

        assert token.cancelled
        handle.cancel.assert_called_once()

    def test_scheduler_state_drain(self):
        state = SchedulerState()
        entry = Mock(key="a")
        state.put(entry)

        assert "a" in state
        assert state.drain() == [entry]
        assert len(state) == 0
        assert state.pop("a") is None
