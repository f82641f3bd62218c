"""
Tests for the provider order board WebSocket consumer.

The consumer loads the board through database_sync_to_async, which closes
stale connections, so these tests run with transaction=True.

Test Classes:
    TestConnect: Authentication and role checks on connect
    TestSnapshots: Board snapshots pushed after connect, refresh and writes
"""

import pytest
from channels.db import database_sync_to_async
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator
from django.conf import settings
from rest_framework_simplejwt.tokens import AccessToken

from authentication.access import AccessContext
from authentication.middleware import JWTAuthMiddleware
from orders.realtime.routing import websocket_urlpatterns
from orders.services import OrderLifecycleService
from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
create_order = database_sync_to_async(OrderFactory)


def board_url(user=None):
    if user is None:
        return "/ws/provider/orders/"
    return f"/ws/provider/orders/?token={AccessToken.for_user(user)}"


async def connect(user):
    communicator = WebsocketCommunicator(application, board_url(user))
    connected, code = await communicator.connect()
    return communicator, connected, code


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestConnect:
    """Connection handshake."""

    async def test_anonymous_rejected(self):
        communicator, connected, code = await connect(None)

        assert connected is False
        assert code == 4001
        await communicator.disconnect()

    async def test_customer_rejected(self, customer):
        communicator, connected, code = await connect(customer)

        assert connected is False
        assert code == 4003
        await communicator.disconnect()

    async def test_operator_without_provider_rejected(self, operator):
        communicator, connected, code = await connect(operator)

        assert connected is False
        assert code == 4003
        await communicator.disconnect()

    async def test_operator_accepted(self, provider, operator):
        communicator, connected, _ = await connect(operator)

        assert connected is True
        await communicator.receive_json_from(timeout=3)
        await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestSnapshots:
    """Board snapshots."""

    async def test_initial_snapshot(self, provider, operator):
        order = await create_order(provider=provider)
        await create_order(provider=provider, status=OrderStatus.PREPARING)

        communicator, _, _ = await connect(operator)
        message = await communicator.receive_json_from(timeout=3)
        await communicator.disconnect()

        assert message["type"] == "orders.snapshot"
        assert message["tab"] == "all"
        assert len(message["orders"]) == 2
        assert str(order.id) in {o["id"] for o in message["orders"]}
        assert message["counts"]["pending"] == 1
        assert message["counts"]["active"] == 1
        assert message["new_order_count"] == 0
        assert message["poll_interval"] == settings.ORDER_SYNC_POLL_INTERVAL_SECONDS

    async def test_refresh_switches_tab(self, provider, operator):
        await create_order(provider=provider)
        delivered = await create_order(provider=provider, delivered=True)

        communicator, _, _ = await connect(operator)
        await communicator.receive_json_from(timeout=3)
        await communicator.send_json_to({"type": "refresh", "tab": "completed"})
        message = await communicator.receive_json_from(timeout=3)
        await communicator.disconnect()

        assert message["tab"] == "completed"
        assert [o["id"] for o in message["orders"]] == [str(delivered.id)]

    async def test_refresh_with_unknown_tab(self, provider, operator):
        communicator, _, _ = await connect(operator)
        await communicator.receive_json_from(timeout=3)
        await communicator.send_json_to({"type": "refresh", "tab": "archived"})
        message = await communicator.receive_json_from(timeout=3)
        await communicator.disconnect()

        assert message["type"] == "error"

    async def test_unknown_message_type(self, provider, operator):
        communicator, _, _ = await connect(operator)
        await communicator.receive_json_from(timeout=3)
        await communicator.send_json_to({"type": "subscribe"})
        message = await communicator.receive_json_from(timeout=3)
        await communicator.disconnect()

        assert message == {"type": "error", "message": "Unknown message type: subscribe"}

    async def test_new_order_pushes_snapshot_and_sound(self, provider, operator):
        communicator, _, _ = await connect(operator)
        await communicator.receive_json_from(timeout=3)

        order = await create_order(provider=provider)
        messages = [
            await communicator.receive_json_from(timeout=3),
            await communicator.receive_json_from(timeout=3),
        ]
        await communicator.disconnect()

        by_type = {message["type"]: message for message in messages}
        assert set(by_type) == {"orders.sound", "orders.snapshot"}
        assert by_type["orders.sound"]["url"] == settings.ORDER_NOTIFICATION_SOUND
        snapshot = by_type["orders.snapshot"]
        assert [o["id"] for o in snapshot["orders"]] == [str(order.id)]
        assert snapshot["new_order_count"] == 1

    async def test_accept_pushes_snapshot_without_sound(self, provider, operator):
        order = await create_order(provider=provider)
        context = await database_sync_to_async(AccessContext.from_user)(operator)

        communicator, _, _ = await connect(operator)
        await communicator.receive_json_from(timeout=3)

        result = await database_sync_to_async(OrderLifecycleService.accept_order)(
            order.id, context
        )
        message = await communicator.receive_json_from(timeout=3)
        assert await communicator.receive_nothing(timeout=0.2)
        await communicator.disconnect()

        assert result.success
        assert message["type"] == "orders.snapshot"
        assert message["orders"][0]["status"] == "accepted"
        assert message["counts"]["pending"] == 0
