"""
WebSocket consumer for the provider order board.

Consumers:
    ProviderOrdersConsumer: Streams board snapshots to an operator

Authentication:
    JWTAuthMiddleware attaches the user to self.scope["user"].

Close Codes:
    4001: Unauthenticated
    4003: Not a provider operator (or no provider assigned)

Message Types (from client):
    - refresh: {"type": "refresh", "tab": "active"} request a reload,
      optionally switching the board tab

Message Types (to client):
    - orders.snapshot: Full order list for the current tab plus counts
    - orders.sound: A new order arrived; play the notification sound
    - error: Error response
"""

from __future__ import annotations

import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings
from django.contrib.auth.models import AnonymousUser

from authentication.access import AccessContext
from orders.realtime.sync import RealtimeSyncAdapter, subscribe
from orders.serializers import OrderSerializer
from orders.services import OrderLifecycleService
from orders.state_machines import OrderTab

logger = logging.getLogger(__name__)

NOTIFICATION_VOLUME = 0.7


class ProviderOrdersConsumer(AsyncJsonWebsocketConsumer):
    """
    Pushes the operator's order board whenever it may have changed.

    The consumer owns one RealtimeSyncAdapter; every push event, poll tick
    and client refresh funnels into the adapter's single reload worker,
    which sends a fresh ``orders.snapshot``.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.context: AccessContext | None = None
        self.adapter: RealtimeSyncAdapter | None = None
        self.tab: str = OrderTab.ALL

    async def connect(self):
        user = self.scope.get("user")
        if not user or isinstance(user, AnonymousUser):
            logger.warning("Rejected unauthenticated order board connection")
            await self.close(code=4001)
            return

        self.context = await self._get_context(user)
        if not self.context.is_provider_operator:
            logger.warning(f"User {user.pk} is not a provider operator")
            await self.close(code=4003)
            return

        await self.accept()
        self.adapter = await subscribe(
            self.context.provider_id,
            self.send_snapshot,
            channel_layer=self.channel_layer,
            play_sound=self.send_sound,
        )
        logger.info(
            f"Provider {self.context.provider_id} connected to order board"
        )

    async def disconnect(self, close_code):
        if self.adapter is not None:
            await self.adapter.stop()
            self.adapter = None

    async def receive_json(self, content):
        message_type = content.get("type")

        if message_type == "refresh":
            tab = content.get("tab", self.tab)
            if tab not in OrderTab.values:
                await self.send_json({"type": "error", "message": f"Unknown tab: {tab}"})
                return
            self.tab = tab
            self.adapter.request_reload("client")
        else:
            await self.send_json(
                {"type": "error", "message": f"Unknown message type: {message_type}"}
            )

    async def send_snapshot(self):
        """Reload callback: fetch the full board and push it."""
        payload = await self._load_board(self.tab)
        if self.adapter is not None:
            payload["new_order_count"] = self.adapter.new_order_count
        await self.send_json(payload)

    async def send_sound(self, url: str):
        await self.send_json(
            {"type": "orders.sound", "url": url, "volume": NOTIFICATION_VOLUME}
        )

    @database_sync_to_async
    def _get_context(self, user) -> AccessContext:
        return AccessContext.from_user(user)

    @database_sync_to_async
    def _load_board(self, tab: str) -> dict:
        result = OrderLifecycleService.list_orders(self.context, tab=tab)
        if not result.success:
            return {
                "type": "error",
                "message": result.error,
                "error_code": result.error_code,
            }
        board = result.data
        return {
            "type": "orders.snapshot",
            "tab": board.tab,
            "counts": board.counts,
            "orders": OrderSerializer(board.orders, many=True).data,
            "poll_interval": settings.ORDER_SYNC_POLL_INTERVAL_SECONDS,
        }
