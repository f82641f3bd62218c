"""
Refund review workflow for platform admins.

State machine (admin side):

    approve   pending  -> approved    order untouched (stays on hold)
    reject    pending  -> rejected    order released only if on hold
    process   approved -> processed   order refunded and released, always

Each refund transition is a conditional UPDATE guarded by the expected
status; the order-side effect runs in the same database transaction, so a
refund never reaches a terminal state while its order stays on hold.

Every action is region-checked with the same policy used for listing.

Usage:
    from refunds.services import RefundFilter, RefundWorkflowService

    result = RefundWorkflowService.reject_refund(refund_id, context, notes="Duplicate")
    refunds = RefundWorkflowService.list_refunds(
        context, RefundFilter(search="ORD-1", status="escalated")
    ).data
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.db import DatabaseError
from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce

from authentication.access import RegionAccessPolicy
from core.exceptions import (
    BaseApplicationError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.services import BaseService, ServiceResult
from core.transitions import persist_transition

from orders.models import Order
from orders.settlement import SettlementHoldCoordinator
from refunds.exceptions import RefundAmountError, RejectionNotesRequiredError
from refunds.models import Refund
from refunds.state_machines import RefundFilterStatus, RefundStatus

if TYPE_CHECKING:
    from authentication.access import AccessContext


# =============================================================================
# Request / Result Types
# =============================================================================


@dataclass(frozen=True)
class RefundFilter:
    """
    Admin refund list filter.

    Attributes:
        search: Case-insensitive match on order number, customer name,
            provider name or reason
        status: RefundFilterStatus value (``escalated`` and ``all`` included)
        governorate_id: Optional single-governorate narrowing
    """

    search: str = ""
    status: str = RefundFilterStatus.ALL
    governorate_id: int | None = None


@dataclass
class RefundOutcome:
    """
    Result of a refund transition.

    Attributes:
        refund: The refund as persisted
        order: The linked order re-read after the side effect
        hold_released: Whether this call took the order off hold
    """

    refund: Refund
    order: Order
    hold_released: bool = False


# =============================================================================
# Refund Workflow Service
# =============================================================================


class RefundWorkflowService(BaseService):
    """
    Admin-facing refund operations.

    Every operation takes the caller's AccessContext; only platform admins
    may call them, restricted to their governorates.
    """

    AUDIT_FIELDS_REVIEW = ["reviewed_by_id", "reviewed_at", "review_notes"]
    AUDIT_FIELDS_PROCESS = [
        "processed_amount",
        "processed_by_id",
        "processed_at",
        "processing_notes",
    ]

    # =========================================================================
    # Transitions
    # =========================================================================

    @classmethod
    def approve_refund(
        cls,
        refund_id,
        context: AccessContext,
        notes: str | None = None,
    ) -> ServiceResult[RefundOutcome]:
        """
        Approve a pending refund.

        The linked order is not touched and keeps its settlement hold until
        the refund is processed.
        """
        log_extra = {"refund_id": str(refund_id), "user_id": str(context.user_id)}
        try:
            refund = cls._load_for_review(refund_id, context)
            persist_transition(
                refund,
                "approve",
                fields=cls.AUDIT_FIELDS_REVIEW,
                reviewer_id=context.user_id,
                notes=cls._clean_notes(notes),
            )
            order = Order.objects.get(pk=refund.order_id)
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(exc, "approve_refund", extra=log_extra)

        cls.get_logger().info("Refund approved", extra=log_extra)
        return ServiceResult.success(RefundOutcome(refund=refund, order=order))

    @classmethod
    def reject_refund(
        cls,
        refund_id,
        context: AccessContext,
        notes: str | None,
    ) -> ServiceResult[RefundOutcome]:
        """
        Reject a pending refund and release the order if it is on hold.

        ``notes`` is mandatory; blank notes fail before any store call. The
        release is guarded by settlement_status = on_hold, so an order that
        was not on hold is left exactly as it was.
        """
        log_extra = {"refund_id": str(refund_id), "user_id": str(context.user_id)}
        try:
            notes = cls._clean_notes(notes)
            if not notes:
                raise RejectionNotesRequiredError(
                    "Rejection notes are required",
                    details={"notes": ["This field may not be blank."]},
                )

            refund = cls._load_for_review(refund_id, context)
            with cls.atomic():
                persist_transition(
                    refund,
                    "reject",
                    fields=cls.AUDIT_FIELDS_REVIEW,
                    reviewer_id=context.user_id,
                    notes=notes,
                )
                released = SettlementHoldCoordinator.release_if_held(refund.order_id)
            order = Order.objects.get(pk=refund.order_id)
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(exc, "reject_refund", extra=log_extra)

        cls.get_logger().info(
            "Refund rejected",
            extra={**log_extra, "hold_released": released},
        )
        return ServiceResult.success(
            RefundOutcome(refund=refund, order=order, hold_released=released)
        )

    @classmethod
    def process_refund(
        cls,
        refund_id,
        context: AccessContext,
        amount_override=None,
        notes: str | None = None,
    ) -> ServiceResult[RefundOutcome]:
        """
        Process an approved refund.

        Writes the disbursed amount (the override, or the requested amount)
        and marks the order refunded and settlement-eligible whatever its
        hold state. Both writes commit together.

        Args:
            refund_id: Refund to process
            context: Acting admin
            amount_override: Partial amount; positive, at most the request
            notes: Optional processing notes

        Example:
            result = RefundWorkflowService.process_refund(
                refund.id, context, amount_override=Decimal("40.00")
            )
            result.data.refund.processed_amount  # Decimal("40.00")
        """
        log_extra = {"refund_id": str(refund_id), "user_id": str(context.user_id)}
        try:
            override = cls._parse_override(amount_override)
            refund = cls._load_for_review(refund_id, context)
            if override is not None and override > refund.amount:
                raise RefundAmountError(
                    "Processed amount cannot exceed the requested amount",
                    details={
                        "amount": [f"Enter an amount up to {refund.amount}."],
                    },
                )

            with cls.atomic():
                persist_transition(
                    refund,
                    "process",
                    fields=cls.AUDIT_FIELDS_PROCESS,
                    processor_id=context.user_id,
                    amount=override,
                    notes=cls._clean_notes(notes),
                )
                was_on_hold = SettlementHoldCoordinator.release_for_refund(
                    refund.order_id
                )
            order = Order.objects.get(pk=refund.order_id)
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(exc, "process_refund", extra=log_extra)

        cls.get_logger().info(
            "Refund processed",
            extra={**log_extra, "processed_amount": str(refund.processed_amount)},
        )
        return ServiceResult.success(
            RefundOutcome(refund=refund, order=order, hold_released=was_on_hold)
        )

    # =========================================================================
    # Listing
    # =========================================================================

    @classmethod
    def list_refunds(
        cls,
        context: AccessContext,
        refund_filter: RefundFilter | None = None,
    ) -> ServiceResult[list[Refund]]:
        """
        Refunds visible to the admin, newest first.

        Region scope is applied first, then search and status.
        """
        refund_filter = refund_filter or RefundFilter()
        try:
            cls._require_admin(context)
            if refund_filter.status not in RefundFilterStatus.values:
                raise ValidationError(
                    f"Unknown status filter '{refund_filter.status}'",
                    details={
                        "status": [
                            f"Choose one of: {', '.join(RefundFilterStatus.values)}."
                        ]
                    },
                )

            queryset = cls._scoped(context, refund_filter.governorate_id).select_related(
                "order", "customer", "provider", "provider__governorate"
            )

            search = (refund_filter.search or "").strip()
            if search:
                queryset = queryset.filter(
                    Q(order__order_number__icontains=search)
                    | Q(customer__full_name__icontains=search)
                    | Q(provider__name_ar__icontains=search)
                    | Q(reason__icontains=search)
                )

            if refund_filter.status == RefundFilterStatus.ESCALATED:
                queryset = queryset.filter(escalated_to_admin=True)
            elif refund_filter.status != RefundFilterStatus.ALL:
                queryset = queryset.filter(status=refund_filter.status)

            refunds = list(queryset.order_by("-created_at"))
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(
                exc, "list_refunds", extra={"user_id": str(context.user_id)}
            )
        return ServiceResult.success(refunds)

    @classmethod
    def refund_stats(
        cls,
        context: AccessContext,
        refund_filter: RefundFilter | None = None,
    ) -> ServiceResult[dict]:
        """
        Summary counts over the admin's visible refunds.

        Only the governorate part of ``refund_filter`` applies; search and
        status filters never change the header counts.

        Returns:
            ServiceResult with total, pending, approved, processed, escalated
            and total_amount (sum disbursed over processed refunds)
        """
        governorate_id = refund_filter.governorate_id if refund_filter else None
        try:
            cls._require_admin(context)
            stats = cls._scoped(context, governorate_id).aggregate(
                total=Count("id"),
                pending=Count("id", filter=Q(status=RefundStatus.PENDING)),
                approved=Count("id", filter=Q(status=RefundStatus.APPROVED)),
                processed=Count("id", filter=Q(status=RefundStatus.PROCESSED)),
                escalated=Count("id", filter=Q(escalated_to_admin=True)),
                total_amount=Coalesce(
                    Sum(
                        Coalesce("processed_amount", "amount"),
                        filter=Q(status=RefundStatus.PROCESSED),
                    ),
                    Value(Decimal("0.00")),
                    output_field=DecimalField(max_digits=12, decimal_places=2),
                ),
            )
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(
                exc, "refund_stats", extra={"user_id": str(context.user_id)}
            )
        return ServiceResult.success(stats)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _require_admin(context: AccessContext) -> None:
        if not context.is_admin:
            raise PermissionDeniedError(
                "Only platform admins can review refunds",
                error_code="ADMIN_REQUIRED",
            )

    @staticmethod
    def _scoped(context: AccessContext, governorate_id: int | None = None):
        return RegionAccessPolicy.scope(
            Refund.objects.all(), context, governorate_id=governorate_id
        )

    @classmethod
    def _load_for_review(cls, refund_id, context: AccessContext) -> Refund:
        """
        Read the refund and check the admin may act on it.

        Raises:
            PermissionDeniedError: Not an admin, or outside the admin's region
            NotFoundError: No such refund
        """
        cls._require_admin(context)
        refund = Refund.objects.select_related("provider").filter(pk=refund_id).first()
        if refund is None:
            raise NotFoundError(
                f"Refund {refund_id} not found", error_code="REFUND_NOT_FOUND"
            )
        RegionAccessPolicy.ensure_access(context, refund.provider.governorate_id)
        return refund

    @staticmethod
    def _clean_notes(notes: str | None) -> str | None:
        if notes is None:
            return None
        return notes.strip() or None

    @staticmethod
    def _parse_override(value) -> Decimal | None:
        if value is None or value == "":
            return None
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            amount = None
        if amount is None or not amount.is_finite() or amount <= 0:
            raise RefundAmountError(
                "Processed amount must be a positive number",
                details={"amount": ["Enter a positive amount."]},
            )
        return amount.quantize(Decimal("0.01"))
