"""
State enums for the order model.

Order carries three independent axes. Only ``status`` is a django-fsm field;
payment and settlement are plain enums written by conditional updates.

State Machines Overview:

Order status (fulfilment):
    pending → accepted → preparing → ready → out_for_delivery → delivered
    pending → rejected
    (cancelled is set by upstream flows and is terminal here)

Payment status:
    pending → completed      (cash confirmed on delivery)
    pending/completed → refunded   (refund processed)

Settlement status:
    eligible → on_hold       (refund opened)
    on_hold → eligible       (refund rejected or processed)
"""

from django.db import models


class OrderStatus(models.TextChoices):
    """
    Fulfilment status.

    Terminal states: DELIVERED, REJECTED, CANCELLED

    State Flow:
        PENDING → ACCEPTED → PREPARING → READY → OUT_FOR_DELIVERY → DELIVERED
        PENDING → REJECTED
    """

    PENDING = "pending", "Pending"
    ACCEPTED = "accepted", "Accepted"
    PREPARING = "preparing", "Preparing"
    READY = "ready", "Ready"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for Delivery"
    DELIVERED = "delivered", "Delivered"
    REJECTED = "rejected", "Rejected"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    CASH = "cash", "Cash on Delivery"
    CARD = "card", "Card"
    WALLET = "wallet", "Wallet"
    BANK_TRANSFER = "bank_transfer", "Bank Transfer"


class SettlementStatus(models.TextChoices):
    """
    Eligibility for inclusion in a provider settlement batch.

    ON_HOLD always comes with a hold reason and expiry; ELIGIBLE never does.
    """

    ELIGIBLE = "eligible", "Eligible"
    ON_HOLD = "on_hold", "On Hold"


class OrderTab(models.TextChoices):
    """Filter tabs of the operator order board."""

    ALL = "all", "All"
    PENDING = "pending", "New"
    ACTIVE = "active", "In Progress"
    OUT_FOR_DELIVERY = "out_for_delivery", "Out for Delivery"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


# Statuses shown under each board tab; ALL has no filter
TAB_STATUSES: dict[str, tuple[str, ...]] = {
    OrderTab.PENDING: (OrderStatus.PENDING,),
    OrderTab.ACTIVE: (OrderStatus.ACCEPTED, OrderStatus.PREPARING, OrderStatus.READY),
    OrderTab.OUT_FOR_DELIVERY: (OrderStatus.OUT_FOR_DELIVERY,),
    OrderTab.COMPLETED: (OrderStatus.DELIVERED,),
    OrderTab.CANCELLED: (OrderStatus.CANCELLED, OrderStatus.REJECTED),
}
