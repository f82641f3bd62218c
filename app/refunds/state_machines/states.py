"""
State enums for the refund model.

State Machine Overview:

Refund status:
    pending → approved → processed
    pending → rejected
    (failed is set by the out-of-band disbursement process)

Open refunds (pending, approved) keep their order's settlement on hold.
Terminal refunds (rejected, processed, failed) never change again.
"""

from django.db import models


class RefundStatus(models.TextChoices):
    """
    Refund review status.

    Terminal states: REJECTED, PROCESSED, FAILED
    """

    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"


OPEN_REFUND_STATUSES = frozenset([RefundStatus.PENDING, RefundStatus.APPROVED])

TERMINAL_REFUND_STATUSES = frozenset(
    [RefundStatus.REJECTED, RefundStatus.PROCESSED, RefundStatus.FAILED]
)


class ProviderAction(models.TextChoices):
    """What the provider chose to do about the request. Informational only."""

    NONE = "none", "No Action"
    CASH_REFUND = "cash_refund", "Cash Refund"
    RESEND_ITEM = "resend_item", "Resend Item"
    ESCALATE_TO_ADMIN = "escalate_to_admin", "Escalate to Admin"


class RefundType(models.TextChoices):
    FULL = "full", "Full Refund"
    PARTIAL = "partial", "Partial Refund"
    ITEM_RESEND = "item_resend", "Item Resend"


class RequestSource(models.TextChoices):
    CUSTOMER = "customer", "Customer"
    PROVIDER = "provider", "Provider"
    ADMIN = "admin", "Admin"


class RefundFilterStatus(models.TextChoices):
    """
    Status filter of the admin refund list.

    ESCALATED is virtual: it selects escalated_to_admin = true regardless
    of status. ALL applies no status filter.
    """

    ALL = "all", "All"
    PENDING = "pending", "Pending"
    APPROVED = "approved", "Approved"
    REJECTED = "rejected", "Rejected"
    PROCESSED = "processed", "Processed"
    FAILED = "failed", "Failed"
    ESCALATED = "escalated", "Escalated"
