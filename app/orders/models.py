"""
Order model for customer purchases fulfilled by one provider.

An Order moves along three independent axes:
    - status: fulfilment, driven by the provider operator (django-fsm)
    - payment_status: pending / completed / refunded
    - settlement_status: eligible / on_hold, protected by the settlement
      hold rules in orders.settlement

Status transitions are never saved with save(). Services run the
transition in memory and persist it with a conditional UPDATE through
core.transitions.persist_transition.

Usage:
    from core.transitions import persist_transition
    from orders.models import Order

    order = Order.objects.get(pk=order_id, provider_id=provider_id)
    persist_transition(order, "accept", fields=["accepted_at"])
"""

from __future__ import annotations

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from orders.state_machines import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    SettlementStatus,
)


class Order(UUIDPrimaryKeyMixin, BaseModel):
    """
    A customer purchase fulfilled by one provider.

    State Flow:
        PENDING -> ACCEPTED -> PREPARING -> READY -> OUT_FOR_DELIVERY -> DELIVERED
        PENDING -> REJECTED

    Invariant:
        settlement_status = ON_HOLD  <=>  hold_reason and hold_until both set.
        Enforced by a database check constraint as well as by every code
        path that touches the hold fields (they are written together).
    """

    # ==========================================================================
    # Identity & Relationships
    # ==========================================================================

    order_number = models.CharField(
        max_length=32,
        unique=True,
        help_text="Human-readable order number shown to customer and provider",
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Customer who placed the order",
    )

    provider = models.ForeignKey(
        "providers.Provider",
        on_delete=models.PROTECT,
        related_name="orders",
        help_text="Provider fulfilling the order",
    )

    # ==========================================================================
    # Fulfilment State
    # ==========================================================================

    status = FSMField(
        default=OrderStatus.PENDING,
        choices=OrderStatus.choices,
        db_index=True,
        help_text="Fulfilment status (changed only through FSM transitions)",
    )

    # ==========================================================================
    # Payment
    # ==========================================================================

    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CASH,
        help_text="How the customer pays",
    )

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
        help_text="Payment collection status",
    )

    # ==========================================================================
    # Settlement Hold
    # ==========================================================================

    settlement_status = models.CharField(
        max_length=20,
        choices=SettlementStatus.choices,
        default=SettlementStatus.ELIGIBLE,
        db_index=True,
        help_text="Whether the order can be included in a provider settlement",
    )

    hold_reason = models.CharField(
        max_length=100,
        null=True,
        blank=True,
        help_text="Why settlement is on hold (set only while on hold)",
    )

    hold_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the hold expires (set only while on hold)",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    subtotal = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        help_text="Sum of item prices",
    )

    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text="Delivery fee charged to the customer",
    )

    total = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        help_text="Amount the customer pays (collected in cash for COD orders)",
    )

    # ==========================================================================
    # Delivery Details
    # ==========================================================================

    customer_notes = models.TextField(
        blank=True,
        default="",
        help_text="Notes from the customer to the provider",
    )

    delivery_address = models.JSONField(
        default=dict,
        blank=True,
        help_text="Snapshot of the delivery address at checkout",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    accepted_at = models.DateTimeField(
        null=True, blank=True, help_text="When the provider accepted the order"
    )
    preparing_at = models.DateTimeField(
        null=True, blank=True, help_text="When preparation started"
    )
    ready_at = models.DateTimeField(
        null=True, blank=True, help_text="When the order was ready for pickup"
    )
    out_for_delivery_at = models.DateTimeField(
        null=True, blank=True, help_text="When the order left with the courier"
    )
    delivered_at = models.DateTimeField(
        null=True, blank=True, help_text="When the order was delivered"
    )
    cancelled_at = models.DateTimeField(
        null=True, blank=True, help_text="When the order was rejected or cancelled"
    )
    payment_confirmed_at = models.DateTimeField(
        null=True, blank=True, help_text="When cash collection was confirmed"
    )
    refunded_at = models.DateTimeField(
        null=True, blank=True, help_text="When a refund against the order was processed"
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Order"
        verbose_name_plural = "Orders"
        indexes = [
            models.Index(fields=["provider", "status", "created_at"]),
            models.Index(fields=["settlement_status", "hold_until"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(
                        settlement_status=SettlementStatus.ON_HOLD,
                        hold_reason__isnull=False,
                        hold_until__isnull=False,
                    )
                    | models.Q(
                        settlement_status=SettlementStatus.ELIGIBLE,
                        hold_reason__isnull=True,
                        hold_until__isnull=True,
                    )
                ),
                name="order_hold_fields_match_settlement_status",
            ),
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="order_total_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Order({self.order_number}, {self.status})"

    @property
    def is_on_hold(self) -> bool:
        return self.settlement_status == SettlementStatus.ON_HOLD

    @property
    def awaiting_cash_confirmation(self) -> bool:
        """Delivered cash order whose collection has not been confirmed."""
        return (
            self.status == OrderStatus.DELIVERED
            and self.payment_status == PaymentStatus.PENDING
        )

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=OrderStatus.PENDING, target=OrderStatus.ACCEPTED)
    def accept(self):
        """PENDING -> ACCEPTED. Payment status is untouched."""
        self.accepted_at = timezone.now()

    @transition(field=status, source=OrderStatus.PENDING, target=OrderStatus.REJECTED)
    def reject(self):
        """PENDING -> REJECTED. Stamps cancelled_at."""
        self.cancelled_at = timezone.now()

    @transition(
        field=status, source=OrderStatus.ACCEPTED, target=OrderStatus.PREPARING
    )
    def start_preparing(self):
        self.preparing_at = timezone.now()

    @transition(field=status, source=OrderStatus.PREPARING, target=OrderStatus.READY)
    def mark_ready(self):
        self.ready_at = timezone.now()

    @transition(
        field=status, source=OrderStatus.READY, target=OrderStatus.OUT_FOR_DELIVERY
    )
    def dispatch(self):
        self.out_for_delivery_at = timezone.now()

    @transition(
        field=status,
        source=OrderStatus.OUT_FOR_DELIVERY,
        target=OrderStatus.DELIVERED,
    )
    def deliver(self):
        self.delivered_at = timezone.now()
