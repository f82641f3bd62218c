"""
Order lifecycle service for provider operators.

Enforces the fulfilment state machine and the cash-payment confirmation
sub-flow. Every mutation is a single conditional UPDATE on the order row:

    accept / reject      WHERE status = 'pending' AND provider_id = <caller>
    advance              WHERE status = <current> AND provider_id = <caller>
    confirm cash         WHERE status = 'delivered' AND payment_status = 'pending'
                           AND provider_id = <caller>

Zero affected rows is reported as STALE_STATE (or NOT_FOUND / ORDER_NOT_OWNED
after re-reading the row). Store errors are reported as STORE_ERROR and are
never retried here; re-invoking a guarded operation is safe.

Usage:
    from orders.services import OrderLifecycleService

    result = OrderLifecycleService.accept_order(order_id, context)
    if not result.success:
        return failure_response(result)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.db import DatabaseError
from django.db.models import Count, Q
from django.utils import timezone

from core.exceptions import (
    BaseApplicationError,
    NotFoundError,
    PermissionDeniedError,
    StaleStateError,
    ValidationError,
)
from core.services import BaseService, ServiceResult
from core.transitions import conditional_update, persist_transition

from orders.exceptions import (
    CashTotalMismatchError,
    OrderOwnershipError,
    PaymentNotConfirmableError,
)
from orders.models import Order
from orders.realtime.feed import OrderEventKind, publish_after_commit
from orders.state_machines import (
    TAB_STATUSES,
    OrderStatus,
    OrderTab,
    PaymentStatus,
    next_status,
)

if TYPE_CHECKING:
    from authentication.access import AccessContext


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class TransitionOutcome:
    """
    Result of advance_order_status.

    Attributes:
        order: The order as persisted
        changed: False when the status had no successor (no-op)
        previous_status: Status before the call
    """

    order: Order
    changed: bool
    previous_status: str


@dataclass
class OrderBoard:
    """Operator order list for one tab plus the badge counts of every tab."""

    tab: str
    orders: list[Order] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def new_order_count(self) -> int:
        return self.counts.get(OrderTab.PENDING, 0)


# =============================================================================
# Order Lifecycle Service
# =============================================================================


class OrderLifecycleService(BaseService):
    """
    Provider-facing order operations.

    Every operation takes the caller's AccessContext and only ever touches
    orders of ``context.provider_id``.
    """

    # =========================================================================
    # Accept / Reject
    # =========================================================================

    @classmethod
    def accept_order(cls, order_id, context: AccessContext) -> ServiceResult[Order]:
        """
        Accept a pending order. Stamps accepted_at; payment is untouched.

        Returns:
            ServiceResult with the accepted order, or a failure with
            STALE_STATE if another session already acted on it
        """
        return cls._decide(order_id, context, "accept", "accepted_at")

    @classmethod
    def reject_order(cls, order_id, context: AccessContext) -> ServiceResult[Order]:
        """Reject a pending order. Stamps cancelled_at."""
        return cls._decide(order_id, context, "reject", "cancelled_at")

    @classmethod
    def _decide(
        cls,
        order_id,
        context: AccessContext,
        transition_name: str,
        timestamp_field: str,
    ) -> ServiceResult[Order]:
        log_extra = {"order_id": str(order_id), "provider_id": str(context.provider_id)}
        try:
            order = cls._load_owned(order_id, context)
            previous = order.status
            persist_transition(
                order,
                transition_name,
                fields=[timestamp_field],
                predicate={"provider_id": context.provider_id},
            )
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(exc, transition_name, extra=log_extra)

        cls.get_logger().info(
            f"Order {transition_name}ed",
            extra={**log_extra, "status": order.status},
        )
        cls._publish(order, previous)
        return ServiceResult.success(order)

    # =========================================================================
    # Advance
    # =========================================================================

    @classmethod
    def advance_order_status(
        cls,
        order_id,
        current_status: str,
        context: AccessContext,
    ) -> ServiceResult[TransitionOutcome]:
        """
        Move an order to the designated successor of ``current_status``.

        ``current_status`` is the status the operator saw; it is the
        precondition of the conditional write. Terminal and unknown statuses
        have no successor and the call is a successful no-op.

        Example:
            result = OrderLifecycleService.advance_order_status(
                order.id, "accepted", context
            )
            result.data.order.status  # "preparing"
        """
        log_extra = {
            "order_id": str(order_id),
            "provider_id": str(context.provider_id),
            "current_status": current_status,
        }
        try:
            order = cls._load_owned(order_id, context)
            step = next_status(current_status)
            if step is None:
                cls.get_logger().debug("No successor status, nothing to do", extra=log_extra)
                return ServiceResult.success(
                    TransitionOutcome(order=order, changed=False, previous_status=order.status)
                )

            if order.status != current_status:
                raise StaleStateError(
                    f"Order {order_id} is no longer {current_status}",
                    details={
                        "id": str(order_id),
                        "expected": current_status,
                        "current": order.status,
                    },
                )

            persist_transition(
                order,
                step.transition,
                fields=[step.timestamp_field],
                predicate={"provider_id": context.provider_id},
            )
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(exc, "advance_order_status", extra=log_extra)

        cls.get_logger().info(
            "Order status advanced",
            extra={**log_extra, "status": order.status},
        )
        cls._publish(order, current_status)
        return ServiceResult.success(
            TransitionOutcome(order=order, changed=True, previous_status=current_status)
        )

    # =========================================================================
    # Cash Payment Confirmation
    # =========================================================================

    @classmethod
    def confirm_cash_payment(
        cls,
        order_id,
        claimed_total,
        context: AccessContext,
    ) -> ServiceResult[Order]:
        """
        Confirm the courier collected the cash for a delivered order.

        Two phases, kept separate on purpose:
            1. Authorize: re-read the order, check it exists and belongs to
               the caller, check it is delivered with payment pending and
               that the claimed total matches.
            2. Write: conditional UPDATE repeating the ownership and state
               predicates, setting payment_status = completed.

        A refund processed in between sets payment_status = refunded and the
        write matches zero rows, so a confirmation never overwrites a refund.
        """
        log_extra = {"order_id": str(order_id), "provider_id": str(context.provider_id)}
        try:
            claimed = cls._parse_amount(claimed_total)
            order = cls._load_owned(order_id, context)

            if not order.awaiting_cash_confirmation:
                raise PaymentNotConfirmableError(
                    "Only delivered orders with pending payment can be confirmed",
                    details={
                        "status": order.status,
                        "payment_status": order.payment_status,
                    },
                )
            if claimed != order.total:
                raise CashTotalMismatchError(
                    "Collected amount does not match the order total",
                    details={"claimed_total": [f"Expected {order.total}, got {claimed}."]},
                )

            confirmed_at = timezone.now()
            rows = conditional_update(
                Order,
                order.pk,
                {
                    "provider_id": context.provider_id,
                    "status": OrderStatus.DELIVERED,
                    "payment_status": PaymentStatus.PENDING,
                },
                {
                    "payment_status": PaymentStatus.COMPLETED,
                    "payment_confirmed_at": confirmed_at,
                },
            )
            if rows == 0:
                raise cls._classify_failed_confirmation(order.pk, context)
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(exc, "confirm_cash_payment", extra=log_extra)

        order.payment_status = PaymentStatus.COMPLETED
        order.payment_confirmed_at = confirmed_at
        cls.get_logger().info("Cash payment confirmed", extra=log_extra)
        cls._publish(order, order.status)
        return ServiceResult.success(order)

    @staticmethod
    def _parse_amount(value) -> Decimal:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            amount = None
        if amount is None or not amount.is_finite() or amount < 0:
            raise ValidationError(
                "A valid collected amount is required",
                details={"claimed_total": ["Enter a valid non-negative amount."]},
            )
        return amount.quantize(Decimal("0.01"))

    @staticmethod
    def _classify_failed_confirmation(order_id, context: AccessContext) -> BaseApplicationError:
        row = (
            Order.objects.filter(pk=order_id)
            .values("provider_id", "status", "payment_status")
            .first()
        )
        if row is None:
            return NotFoundError(f"Order {order_id} not found", error_code="ORDER_NOT_FOUND")
        if row["provider_id"] != context.provider_id:
            return OrderOwnershipError("This order belongs to another provider")
        return StaleStateError(
            "Order payment changed before it could be confirmed",
            details={
                "id": str(order_id),
                "expected": PaymentStatus.PENDING,
                "current": row["payment_status"],
            },
        )

    # =========================================================================
    # Order Board
    # =========================================================================

    @classmethod
    def list_orders(
        cls,
        context: AccessContext,
        tab: str = OrderTab.ALL,
    ) -> ServiceResult[OrderBoard]:
        """
        Full order list of the caller's provider for one board tab.

        Always a complete re-fetch; callers replace their view with it.
        """
        try:
            cls._require_operator(context)
            if tab not in OrderTab.values:
                raise ValidationError(
                    f"Unknown tab '{tab}'",
                    details={"tab": [f"Choose one of: {', '.join(OrderTab.values)}."]},
                )
            queryset = (
                Order.objects.filter(provider_id=context.provider_id)
                .select_related("customer")
                .order_by("-created_at")
            )
            if tab in TAB_STATUSES:
                queryset = queryset.filter(status__in=TAB_STATUSES[tab])
            board = OrderBoard(tab=tab, orders=list(queryset), counts=cls.tab_counts(context))
        except (BaseApplicationError, DatabaseError) as exc:
            return cls.handle_exception(
                exc, "list_orders", extra={"provider_id": str(context.provider_id)}
            )
        return ServiceResult.success(board)

    @staticmethod
    def tab_counts(context: AccessContext) -> dict[str, int]:
        aggregates = {OrderTab.ALL.value: Count("id")}
        for tab, statuses in TAB_STATUSES.items():
            aggregates[str(tab)] = Count("id", filter=Q(status__in=statuses))
        return Order.objects.filter(provider_id=context.provider_id).aggregate(**aggregates)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _require_operator(context: AccessContext) -> None:
        if not context.is_provider_operator:
            raise PermissionDeniedError(
                "Only provider operators can manage orders",
                error_code="PROVIDER_REQUIRED",
            )

    @classmethod
    def _load_owned(cls, order_id, context: AccessContext) -> Order:
        """
        Read the order and verify the caller fulfils it.

        Raises:
            PermissionDeniedError: Caller is not a provider operator
            NotFoundError: No such order
            OrderOwnershipError: Order belongs to another provider
        """
        cls._require_operator(context)
        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            raise NotFoundError(f"Order {order_id} not found", error_code="ORDER_NOT_FOUND")
        if order.provider_id != context.provider_id:
            cls.get_logger().warning(
                "Provider attempted to act on an order it does not own",
                extra={
                    "order_id": str(order_id),
                    "provider_id": str(context.provider_id),
                    "owner_provider_id": str(order.provider_id),
                },
            )
            raise OrderOwnershipError("This order belongs to another provider")
        return order

    @staticmethod
    def _publish(order: Order, old_status: str) -> None:
        publish_after_commit(
            OrderEventKind.UPDATE,
            order_id=order.pk,
            provider_id=order.provider_id,
            status=order.status,
            old_status=old_status,
        )
