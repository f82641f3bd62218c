"""
Realtime synchronisation of a provider's order board.

Two independent event sources drive the same full-refresh ``reload``:

    Push: INSERT/UPDATE events from the provider's channel-layer group
          (see orders.realtime.feed). INSERT also plays the new-order sound.
    Poll: a fixed-interval timer (ORDER_SYNC_POLL_INTERVAL_SECONDS), the
          fallback when the push channel silently stops delivering.

Both sources only *request* a reload. Requests go into a single-slot flag
drained by one worker task, so at most one reload runs at a time and any
number of requests made while it runs collapse into one follow-up run.
Because reload is a complete re-fetch, running it once per burst is
enough for the board to converge.

Usage:
    from orders.realtime.sync import subscribe

    async def reload():
        board = await fetch_board(provider_id)
        await render(board)

    adapter = await subscribe(provider_id, reload, play_sound=play)
    ...
    await adapter.stop()
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from typing import TYPE_CHECKING

from channels.layers import get_channel_layer
from django.conf import settings

from orders.realtime.feed import ORDER_CHANGE_MESSAGE, OrderEventKind, provider_group
from orders.state_machines import OrderStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from typing import Any

    ReloadCallback = Callable[[], Awaitable[None] | None]
    StatusCallback = Callable[[str], Any]
    SoundPlayer = Callable[[str], Any]

logger = logging.getLogger(__name__)


class SubscriptionStatus:
    """Push-channel states reported to the diagnostics callback."""

    SUBSCRIBED = "SUBSCRIBED"
    CHANNEL_ERROR = "CHANNEL_ERROR"
    CLOSED = "CLOSED"


async def _call(func, *args):
    result = func(*args)
    if inspect.isawaitable(result):
        return await result
    return result


# =============================================================================
# Single-flight reload
# =============================================================================


class ReloadCoalescer:
    """
    Single-slot "reload requested" signal consumed by one worker task.

    - request() never blocks and never starts a second concurrent reload
    - requests arriving while a reload runs produce exactly one more run
    - a reload that raises is logged; the worker keeps serving requests

    Attributes:
        runs: Number of completed reload attempts (successful or not)
        failures: Number of reload attempts that raised
    """

    def __init__(self, reload: ReloadCallback, *, label: str = "") -> None:
        self._reload = reload
        self._label = label
        self._requested = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._task: asyncio.Task | None = None
        self.runs = 0
        self.failures = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._worker())

    def request(self, source: str = "") -> None:
        """Ask for a reload. Redundant requests merge into the pending one."""
        self._idle.clear()
        self._requested.set()
        logger.debug("Reload requested", extra={"source": source, "board": self._label})

    async def wait_idle(self) -> None:
        """Wait until no reload is running or pending."""
        await self._idle.wait()

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        self._idle.set()

    async def _worker(self) -> None:
        while True:
            await self._requested.wait()
            self._requested.clear()
            try:
                await _call(self._reload)
            except asyncio.CancelledError:
                raise
            except Exception:
                self.failures += 1
                logger.exception("Order board reload failed", extra={"board": self._label})
            self.runs += 1
            if not self._requested.is_set():
                self._idle.set()


# =============================================================================
# Adapter
# =============================================================================


class RealtimeSyncAdapter:
    """
    Keeps one provider's order board converged with the store.

    Args:
        provider_id: Provider whose change feed to follow
        on_reload: Full-refresh callback (sync or async)
        channel_layer: Channel layer to subscribe on (default layer if None)
        poll_interval: Seconds between poll-triggered reloads
        play_sound: Optional callback receiving the notification sound URL
        on_status: Optional diagnostics callback receiving SubscriptionStatus values
        initial_reload: Request a reload as soon as the adapter starts

    Attributes:
        new_order_count: Badge counter of new orders seen on the push channel.
            INSERT of a pending order increments it; an UPDATE moving an
            order out of pending decrements it (never below zero).
        status: Last reported SubscriptionStatus
    """

    def __init__(
        self,
        provider_id,
        on_reload: ReloadCallback,
        *,
        channel_layer=None,
        poll_interval: float | None = None,
        play_sound: SoundPlayer | None = None,
        on_status: StatusCallback | None = None,
        initial_reload: bool = True,
    ) -> None:
        self.provider_id = provider_id
        self.group = provider_group(provider_id)
        self.channel_layer = channel_layer or get_channel_layer()
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else settings.ORDER_SYNC_POLL_INTERVAL_SECONDS
        )
        self.play_sound = play_sound
        self.on_status = on_status
        self.initial_reload = initial_reload
        self.coalescer = ReloadCoalescer(on_reload, label=str(provider_id))
        self.new_order_count = 0
        self.status: str | None = None
        self.channel_name: str | None = None
        self._tasks: list[asyncio.Task] = []

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> RealtimeSyncAdapter:
        """Join the provider group and start listener, poller and reload worker."""
        self.channel_name = await self.channel_layer.new_channel()
        await self.channel_layer.group_add(self.group, self.channel_name)

        self.coalescer.start()
        self._tasks = [
            asyncio.create_task(self._listen()),
            asyncio.create_task(self._poll()),
        ]
        self._set_status(SubscriptionStatus.SUBSCRIBED)
        logger.info(
            "Order board subscribed",
            extra={"provider_id": str(self.provider_id), "poll_interval": self.poll_interval},
        )
        if self.initial_reload:
            self.coalescer.request("initial")
        return self

    async def stop(self) -> None:
        """Stop all tasks and leave the provider group."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        await self.coalescer.stop()

        if self.channel_name is not None:
            try:
                await self.channel_layer.group_discard(self.group, self.channel_name)
            except Exception:
                logger.warning(
                    "Failed to leave order board group",
                    extra={"provider_id": str(self.provider_id)},
                    exc_info=True,
                )
            self.channel_name = None
        self._set_status(SubscriptionStatus.CLOSED)

    def request_reload(self, source: str = "manual") -> None:
        self.coalescer.request(source)

    # =========================================================================
    # Event sources
    # =========================================================================

    async def _listen(self) -> None:
        while True:
            try:
                message = await self.channel_layer.receive(self.channel_name)
            except asyncio.CancelledError:
                raise
            except Exception:
                # Polling keeps the board converging without the push channel
                logger.warning(
                    "Order change feed failed, relying on polling",
                    extra={"provider_id": str(self.provider_id)},
                    exc_info=True,
                )
                self._set_status(SubscriptionStatus.CHANNEL_ERROR)
                return
            await self.handle_event(message)

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            self.request_reload("poll")

    async def handle_event(self, message: dict) -> None:
        """
        React to one change event from the provider group.

        INSERT: reload, count a new pending order, then try the sound.
        UPDATE: reload, uncount an order that left pending.
        """
        if message.get("type") != ORDER_CHANGE_MESSAGE:
            return

        kind = message.get("event")
        status = message.get("status")
        old_status = message.get("old_status")

        if kind == OrderEventKind.INSERT:
            if status == OrderStatus.PENDING:
                self.new_order_count += 1
            self.request_reload("insert")
            await self._play_notification_sound()
        elif kind == OrderEventKind.UPDATE:
            if old_status == OrderStatus.PENDING and status != OrderStatus.PENDING:
                self.new_order_count = max(0, self.new_order_count - 1)
            self.request_reload("update")

    async def _play_notification_sound(self) -> None:
        if self.play_sound is None:
            return
        try:
            await _call(self.play_sound, settings.ORDER_NOTIFICATION_SOUND)
        except Exception:
            logger.debug("Notification sound failed", exc_info=True)

    def _set_status(self, status: str) -> None:
        self.status = status
        logger.info(
            "Order board subscription status changed",
            extra={"provider_id": str(self.provider_id), "subscription_status": status},
        )
        if self.on_status is not None:
            try:
                self.on_status(status)
            except Exception:
                logger.debug("Subscription status callback failed", exc_info=True)


async def subscribe(provider_id, on_reload: ReloadCallback, **kwargs) -> RealtimeSyncAdapter:
    """
    Start following ``provider_id``'s order changes.

    Returns the started adapter; call ``stop()`` on teardown.
    """
    adapter = RealtimeSyncAdapter(provider_id, on_reload, **kwargs)
    return await adapter.start()
