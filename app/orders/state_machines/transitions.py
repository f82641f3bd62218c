"""
Happy-path successor table for order fulfilment.

Each status has at most one designated successor and there is no skip-ahead.
The value pairs the successor with the Order transition method that performs
the step and the timestamp field that step stamps.
"""

from __future__ import annotations

from typing import NamedTuple

from .states import OrderStatus


class Step(NamedTuple):
    target: str
    transition: str
    timestamp_field: str


NEXT_STATUS: dict[str, Step] = {
    OrderStatus.ACCEPTED: Step(OrderStatus.PREPARING, "start_preparing", "preparing_at"),
    OrderStatus.PREPARING: Step(OrderStatus.READY, "mark_ready", "ready_at"),
    OrderStatus.READY: Step(
        OrderStatus.OUT_FOR_DELIVERY, "dispatch", "out_for_delivery_at"
    ),
    OrderStatus.OUT_FOR_DELIVERY: Step(OrderStatus.DELIVERED, "deliver", "delivered_at"),
}


def next_status(current: str) -> Step | None:
    """Successor step for ``current``, or None for terminal and unknown states."""
    return NEXT_STATUS.get(current)
