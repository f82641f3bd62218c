"""
Refund state machine definitions.
"""

from .states import (
    OPEN_REFUND_STATUSES,
    TERMINAL_REFUND_STATUSES,
    ProviderAction,
    RefundFilterStatus,
    RefundStatus,
    RefundType,
    RequestSource,
)

__all__ = [
    "RefundStatus",
    "RefundFilterStatus",
    "ProviderAction",
    "RefundType",
    "RequestSource",
    "OPEN_REFUND_STATUSES",
    "TERMINAL_REFUND_STATUSES",
]
