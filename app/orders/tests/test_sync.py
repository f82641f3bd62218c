"""
Tests for the realtime order board synchronisation.

No database involved: reload callbacks are fakes and the channel layer is
an in-process InMemoryChannelLayer per test.

Test Classes:
    TestReloadCoalescer: Single-flight reload worker
    TestHandleEvent: Reaction to INSERT / UPDATE events
    TestSubscription: Push and poll sources of a started adapter
"""

import asyncio
import uuid

import pytest
from channels.layers import InMemoryChannelLayer
from django.conf import settings

from orders.realtime.feed import OrderEventKind, build_order_event, provider_group
from orders.realtime.sync import (
    RealtimeSyncAdapter,
    ReloadCoalescer,
    SubscriptionStatus,
    subscribe,
)

pytestmark = pytest.mark.asyncio


async def wait_until(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


class ReloadRecorder:
    """Async reload fake that counts calls and the peak concurrency."""

    def __init__(self, block=False):
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        if not block:
            self.release.set()

    async def __call__(self):
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            await self.release.wait()
        finally:
            self.active -= 1


class TestReloadCoalescer:
    """Tests for ReloadCoalescer."""

    async def test_single_request_runs_once(self):
        reload = ReloadRecorder()
        coalescer = ReloadCoalescer(reload)
        coalescer.start()

        coalescer.request("test")
        await wait_until(lambda: coalescer.runs == 1)
        await coalescer.wait_idle()
        await coalescer.stop()

        assert reload.calls == 1

    async def test_burst_during_reload_collapses_into_one_follow_up(self):
        reload = ReloadRecorder(block=True)
        coalescer = ReloadCoalescer(reload)
        coalescer.start()

        coalescer.request("insert")
        await asyncio.wait_for(reload.started.wait(), 1)
        for source in ("update", "poll", "update", "poll", "client"):
            coalescer.request(source)
        reload.release.set()

        await asyncio.wait_for(coalescer.wait_idle(), 1)
        await coalescer.stop()

        assert reload.calls == 2
        assert reload.max_active == 1

    async def test_failed_reload_keeps_worker_alive(self):
        calls = []

        async def flaky_reload():
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("store unavailable")

        coalescer = ReloadCoalescer(flaky_reload)
        coalescer.start()

        coalescer.request()
        await wait_until(lambda: coalescer.runs == 1)
        coalescer.request()
        await wait_until(lambda: coalescer.runs == 2)
        await coalescer.stop()

        assert coalescer.failures == 1
        assert len(calls) == 2

    async def test_sync_callback(self):
        calls = []
        coalescer = ReloadCoalescer(lambda: calls.append(1))
        coalescer.start()

        coalescer.request()
        await wait_until(lambda: calls)
        await coalescer.stop()

        assert calls == [1]

    async def test_stop_is_idempotent(self):
        coalescer = ReloadCoalescer(ReloadRecorder())
        coalescer.start()

        await coalescer.stop()
        await coalescer.stop()

        assert coalescer.running is False


class TestHandleEvent:
    """Tests for RealtimeSyncAdapter.handle_event."""

    @pytest.fixture
    def provider_id(self):
        return uuid.uuid4()

    def make_adapter(self, provider_id, **kwargs):
        self.reload = ReloadRecorder()
        return RealtimeSyncAdapter(
            provider_id,
            self.reload,
            channel_layer=InMemoryChannelLayer(),
            poll_interval=60,
            **kwargs,
        )

    def event(self, kind, provider_id, status, old_status=None):
        return build_order_event(
            kind,
            order_id=uuid.uuid4(),
            provider_id=provider_id,
            status=status,
            old_status=old_status,
        )

    async def test_insert_counts_and_plays_sound(self, provider_id):
        sounds = []
        adapter = self.make_adapter(provider_id, play_sound=sounds.append)

        await adapter.handle_event(
            self.event(OrderEventKind.INSERT, provider_id, "pending")
        )

        assert adapter.new_order_count == 1
        assert sounds == [settings.ORDER_NOTIFICATION_SOUND]
        assert adapter.coalescer._requested.is_set()

    async def test_sound_failure_is_swallowed(self, provider_id):
        def broken_player(url):
            raise OSError("autoplay blocked")

        adapter = self.make_adapter(provider_id, play_sound=broken_player)

        await adapter.handle_event(
            self.event(OrderEventKind.INSERT, provider_id, "pending")
        )

        assert adapter.new_order_count == 1
        assert adapter.coalescer._requested.is_set()

    async def test_update_leaving_pending_decrements(self, provider_id):
        sounds = []
        adapter = self.make_adapter(provider_id, play_sound=sounds.append)
        adapter.new_order_count = 2

        await adapter.handle_event(
            self.event(OrderEventKind.UPDATE, provider_id, "accepted", "pending")
        )

        assert adapter.new_order_count == 1
        assert sounds == []
        assert adapter.coalescer._requested.is_set()

    async def test_count_never_negative(self, provider_id):
        adapter = self.make_adapter(provider_id)

        await adapter.handle_event(
            self.event(OrderEventKind.UPDATE, provider_id, "rejected", "pending")
        )

        assert adapter.new_order_count == 0

    async def test_update_within_fulfilment_keeps_count(self, provider_id):
        adapter = self.make_adapter(provider_id)
        adapter.new_order_count = 1

        await adapter.handle_event(
            self.event(OrderEventKind.UPDATE, provider_id, "ready", "preparing")
        )

        assert adapter.new_order_count == 1

    async def test_foreign_message_ignored(self, provider_id):
        adapter = self.make_adapter(provider_id)

        await adapter.handle_event({"type": "chat.message", "text": "hi"})

        assert not adapter.coalescer._requested.is_set()


class TestSubscription:
    """Started adapters driven by the channel layer and the poll timer."""

    async def test_push_event_triggers_reload(self):
        provider_id = uuid.uuid4()
        layer = InMemoryChannelLayer()
        reload = ReloadRecorder()
        statuses = []

        adapter = await subscribe(
            provider_id,
            reload,
            channel_layer=layer,
            poll_interval=60,
            on_status=statuses.append,
            initial_reload=False,
        )
        await layer.group_send(
            provider_group(provider_id),
            build_order_event(
                OrderEventKind.INSERT,
                order_id=uuid.uuid4(),
                provider_id=provider_id,
                status="pending",
            ),
        )
        await wait_until(lambda: reload.calls == 1)
        await adapter.stop()

        assert adapter.new_order_count == 1
        assert statuses == [SubscriptionStatus.SUBSCRIBED, SubscriptionStatus.CLOSED]

    async def test_other_providers_events_not_received(self):
        provider_id = uuid.uuid4()
        other_id = uuid.uuid4()
        layer = InMemoryChannelLayer()
        reload = ReloadRecorder()

        adapter = await subscribe(
            provider_id, reload, channel_layer=layer, poll_interval=60, initial_reload=False
        )
        await layer.group_send(
            provider_group(other_id),
            build_order_event(
                OrderEventKind.INSERT,
                order_id=uuid.uuid4(),
                provider_id=other_id,
                status="pending",
            ),
        )
        await asyncio.sleep(0.1)
        await adapter.stop()

        assert reload.calls == 0
        assert adapter.new_order_count == 0

    async def test_initial_reload(self):
        reload = ReloadRecorder()

        adapter = await subscribe(
            uuid.uuid4(), reload, channel_layer=InMemoryChannelLayer(), poll_interval=60
        )
        await wait_until(lambda: reload.calls == 1)
        await adapter.stop()

    async def test_poll_triggers_reload(self):
        reload = ReloadRecorder()

        adapter = await subscribe(
            uuid.uuid4(),
            reload,
            channel_layer=InMemoryChannelLayer(),
            poll_interval=0.02,
            initial_reload=False,
        )
        await wait_until(lambda: reload.calls >= 2)
        await adapter.stop()

    async def test_push_and_poll_never_overlap(self):
        """Both sources firing together still run one reload at a time."""
        provider_id = uuid.uuid4()
        layer = InMemoryChannelLayer()

        async def slow_reload():
            recorder.calls += 1
            recorder.active += 1
            recorder.max_active = max(recorder.max_active, recorder.active)
            await asyncio.sleep(0.03)
            recorder.active -= 1

        recorder = ReloadRecorder()
        adapter = await subscribe(
            provider_id, slow_reload, channel_layer=layer, poll_interval=0.01
        )
        for _ in range(3):
            await layer.group_send(
                provider_group(provider_id),
                build_order_event(
                    OrderEventKind.UPDATE,
                    order_id=uuid.uuid4(),
                    provider_id=provider_id,
                    status="ready",
                    old_status="preparing",
                ),
            )
        await wait_until(lambda: recorder.calls >= 3)
        await adapter.stop()

        assert recorder.max_active == 1

    async def test_broken_push_channel_falls_back_to_polling(self):
        class BrokenLayer(InMemoryChannelLayer):
            async def receive(self, channel):
                raise ConnectionError("channel layer unreachable")

        reload = ReloadRecorder()
        statuses = []

        adapter = await subscribe(
            uuid.uuid4(),
            reload,
            channel_layer=BrokenLayer(),
            poll_interval=0.02,
            on_status=statuses.append,
            initial_reload=False,
        )
        await wait_until(lambda: reload.calls >= 2)
        await adapter.stop()

        assert statuses[:2] == [
            SubscriptionStatus.SUBSCRIBED,
            SubscriptionStatus.CHANNEL_ERROR,
        ]
        assert adapter.status == SubscriptionStatus.CLOSED
