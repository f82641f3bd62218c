"""
Refund model for monetary claims against an order.

Refunds are created upstream (customer request or provider escalation) in
PENDING and reviewed here by platform admins. Each terminal transition
writes its audit fields exactly once.

Status transitions are persisted with core.transitions.persist_transition,
never with save().

Usage:
    from core.transitions import persist_transition
    from refunds.models import Refund

    refund = Refund.objects.select_related("provider").get(pk=refund_id)
    persist_transition(
        refund,
        "approve",
        fields=["reviewed_by_id", "reviewed_at", "review_notes"],
        reviewer_id=admin.pk,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel

from refunds.state_machines import (
    OPEN_REFUND_STATUSES,
    ProviderAction,
    RefundStatus,
    RefundType,
    RequestSource,
)


class Refund(UUIDPrimaryKeyMixin, BaseModel):
    """
    A monetary claim against one order.

    State Flow:
        PENDING -> APPROVED -> PROCESSED
        PENDING -> REJECTED

    Fields:
        order: Order the refund is claimed against
        amount: Amount requested
        processed_amount: Amount actually disbursed (may be partial)
        escalated_to_admin: Set by the provider flow; read-only here
        customer_confirmed / confirmation_deadline: Courier cash-refund
            confirmation, carried through unchanged
        review_notes / reviewed_by / reviewed_at: Approve or reject audit
        processing_notes / processed_by / processed_at: Process audit

    Note:
        An order can have many refund rows over time, but at most one open
        (pending or approved) refund at once.
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text="Order the refund is claimed against",
    )

    customer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text="Customer receiving the refund",
    )

    provider = models.ForeignKey(
        "providers.Provider",
        on_delete=models.PROTECT,
        related_name="refunds",
        help_text="Provider that fulfilled the order",
    )

    # ==========================================================================
    # Amounts
    # ==========================================================================

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Amount requested",
    )

    processed_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Amount disbursed (set when processed)",
    )

    # ==========================================================================
    # Request Details
    # ==========================================================================

    reason = models.CharField(
        max_length=500,
        help_text="Reason given for the refund",
    )

    reason_ar = models.CharField(
        max_length=500,
        null=True,
        blank=True,
        help_text="Arabic reason text",
    )

    status = FSMField(
        default=RefundStatus.PENDING,
        choices=RefundStatus.choices,
        db_index=True,
        help_text="Review status (changed only through FSM transitions)",
    )

    refund_method = models.CharField(
        max_length=32,
        null=True,
        blank=True,
        help_text="How the money is returned (cash, wallet, card, ...)",
    )

    refund_type = models.CharField(
        max_length=20,
        choices=RefundType.choices,
        null=True,
        blank=True,
        help_text="Full, partial or item resend",
    )

    request_source = models.CharField(
        max_length=20,
        choices=RequestSource.choices,
        default=RequestSource.CUSTOMER,
        help_text="Who opened the request",
    )

    # ==========================================================================
    # Provider Response
    # ==========================================================================

    provider_action = models.CharField(
        max_length=32,
        choices=ProviderAction.choices,
        default=ProviderAction.NONE,
        help_text="Provider's chosen handling (informational)",
    )

    provider_notes = models.TextField(
        null=True,
        blank=True,
        help_text="Notes from the provider",
    )

    escalated_to_admin = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Provider escalated the request to the platform",
    )

    customer_confirmed = models.BooleanField(
        default=False,
        help_text="Customer confirmed receipt of a courier cash refund",
    )

    confirmation_deadline = models.DateTimeField(
        null=True,
        blank=True,
        help_text="Deadline for the customer confirmation",
    )

    # ==========================================================================
    # Audit Trail
    # ==========================================================================

    review_notes = models.TextField(
        null=True,
        blank=True,
        help_text="Admin notes written on approve or reject",
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_refunds",
        help_text="Admin who approved or rejected the refund",
    )
    reviewed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the refund was approved or rejected",
    )

    processing_notes = models.TextField(
        null=True,
        blank=True,
        help_text="Admin notes written on processing",
    )
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="processed_refunds",
        help_text="Admin who processed the refund",
    )
    processed_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the refund was processed",
    )

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Refund"
        verbose_name_plural = "Refunds"
        indexes = [
            models.Index(fields=["status", "created_at"]),
            models.Index(fields=["provider", "status"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["order"],
                condition=models.Q(
                    status__in=[RefundStatus.PENDING, RefundStatus.APPROVED]
                ),
                name="refund_one_open_per_order",
            ),
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name="refund_amount_positive",
            ),
        ]

    def __str__(self) -> str:
        return f"Refund({self.pk}, {self.status}, {self.amount})"

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_REFUND_STATUSES

    @property
    def disbursed_amount(self):
        """Processed amount, falling back to the requested amount."""
        return self.processed_amount if self.processed_amount is not None else self.amount

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(field=status, source=RefundStatus.PENDING, target=RefundStatus.APPROVED)
    def approve(self, reviewer_id, notes: str | None = None):
        """PENDING -> APPROVED. The order keeps its hold."""
        self.reviewed_by_id = reviewer_id
        self.reviewed_at = timezone.now()
        self.review_notes = notes

    @transition(field=status, source=RefundStatus.PENDING, target=RefundStatus.REJECTED)
    def reject(self, reviewer_id, notes: str):
        """PENDING -> REJECTED."""
        self.reviewed_by_id = reviewer_id
        self.reviewed_at = timezone.now()
        self.review_notes = notes

    @transition(field=status, source=RefundStatus.APPROVED, target=RefundStatus.PROCESSED)
    def process(self, processor_id, amount=None, notes: str | None = None):
        """
        APPROVED -> PROCESSED.

        ``amount`` defaults to the requested amount.
        """
        self.processed_amount = amount if amount is not None else self.amount
        self.processed_by_id = processor_id
        self.processed_at = timezone.now()
        self.processing_notes = notes
