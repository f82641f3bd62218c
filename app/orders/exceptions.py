"""
Order-specific exceptions.

All inherit from the core hierarchy so services can convert them with
ServiceResult.from_exception and views can map them by error code.

Exception Hierarchy:
    PermissionDeniedError
    └── OrderOwnershipError - Order belongs to another provider
    ValidationError
    └── CashTotalMismatchError - Claimed cash total differs from order total
    ConflictError
    └── PaymentNotConfirmableError - Order not delivered or payment not pending
"""

from __future__ import annotations

from core.exceptions import ConflictError, PermissionDeniedError, ValidationError


class OrderOwnershipError(PermissionDeniedError):
    """
    Raised when a provider acts on an order it does not fulfil.

    Detected by the explicit read-and-verify step before any write.
    """

    default_error_code = "ORDER_NOT_OWNED"


class CashTotalMismatchError(ValidationError):
    """Raised when the cash amount confirmed differs from the order total."""

    default_error_code = "CASH_TOTAL_MISMATCH"


class PaymentNotConfirmableError(ConflictError):
    """
    Raised when cash confirmation is attempted outside delivered + pending.

    The order may not be delivered yet, or payment may already be completed
    or refunded.
    """

    default_error_code = "PAYMENT_NOT_CONFIRMABLE"
