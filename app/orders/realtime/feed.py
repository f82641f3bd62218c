"""
Row-level order change feed.

Every write to an order publishes one event to the channel-layer group of
the order's provider:

    INSERT - a new order row (published from the post_save receiver)
    UPDATE - any conditional update made by the lifecycle or refund services

Events carry just enough to route and count (ids and statuses); listeners
always reload the full order list rather than merging event payloads.

Events are published after the surrounding transaction commits, so a
listener that reloads immediately sees the new row state.

Usage:
    from orders.realtime.feed import publish_after_commit, OrderEventKind

    publish_after_commit(
        OrderEventKind.UPDATE,
        order_id=order.id,
        provider_id=order.provider_id,
        status=order.status,
        old_status="pending",
    )
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# Channel-layer message type read by orders.realtime.sync.RealtimeSyncAdapter
ORDER_CHANGE_MESSAGE = "order.change"


class OrderEventKind:
    INSERT = "INSERT"
    UPDATE = "UPDATE"


def provider_group(provider_id: Any) -> str:
    """Channel-layer group receiving change events for one provider."""
    return f"provider_orders.{provider_id}"


def build_order_event(
    kind: str,
    *,
    order_id: Any,
    provider_id: Any,
    status: str | None,
    old_status: str | None = None,
) -> dict[str, Any]:
    return {
        "type": ORDER_CHANGE_MESSAGE,
        "event": kind,
        "order_id": str(order_id),
        "provider_id": str(provider_id),
        "status": status,
        "old_status": old_status,
    }


def publish_order_event(kind: str, **fields: Any) -> bool:
    """
    Send one change event to the provider's group.

    Publishing is best-effort: subscribers also poll on a fixed interval, so
    a lost event only delays convergence. Failures are logged, not raised.

    Returns:
        True if the channel layer accepted the event
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    event = build_order_event(kind, **fields)
    try:
        async_to_sync(channel_layer.group_send)(
            provider_group(fields["provider_id"]), event
        )
    except Exception:
        logger.warning(
            "Failed to publish order change event",
            extra={
                "order_id": event["order_id"],
                "provider_id": event["provider_id"],
                "event": kind,
            },
            exc_info=True,
        )
        return False

    logger.debug(
        "Published order change event",
        extra={"order_id": event["order_id"], "event": kind},
    )
    return True


def publish_after_commit(kind: str, **fields: Any) -> None:
    """Publish once the current transaction commits (immediately in autocommit)."""
    transaction.on_commit(lambda: publish_order_event(kind, **fields))
