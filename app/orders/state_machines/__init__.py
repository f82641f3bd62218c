"""
Order state machine definitions.
"""

from .states import (
    TAB_STATUSES,
    OrderStatus,
    OrderTab,
    PaymentMethod,
    PaymentStatus,
    SettlementStatus,
)
from .transitions import NEXT_STATUS, next_status

__all__ = [
    "OrderStatus",
    "OrderTab",
    "PaymentMethod",
    "PaymentStatus",
    "SettlementStatus",
    "TAB_STATUSES",
    "NEXT_STATUS",
    "next_status",
]
