"""
Settlement hold rules.

An order's eligibility for settlement must reflect the terminal outcome of
its most recent refund, and exactly one actor resolves each hold. The rules:

    A. ``on_hold`` holds exactly when hold_reason and hold_until are both
       set. The three fields are always written in one UPDATE.
    B. At most one open (pending/approved) refund drives the hold of an
       order. Enforced by a partial unique constraint on Refund.
    C. Once the refund reaches a terminal state the order is eligible again:
         - reject  -> release_if_held   (guarded by settlement_status = on_hold)
         - process -> release_for_refund (unguarded, also marks refunded)

A rejected refund never touches an order that was not on hold. A processed
refund always leaves the order refunded and eligible, whatever its hold
state was.

Stranded holds (on hold while every refund of the order is terminal) are
released by the audit task in orders.tasks.

Usage:
    from orders.settlement import SettlementHoldCoordinator

    SettlementHoldCoordinator.place_hold(order.id, reason="refund_pending")
    SettlementHoldCoordinator.release_if_held(order.id)
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Exists, OuterRef
from django.utils import timezone

from core.exceptions import NotFoundError, ValidationError
from core.transitions import conditional_update

from orders.models import Order
from orders.realtime.feed import OrderEventKind, publish_after_commit
from orders.state_machines import PaymentStatus, SettlementStatus

if TYPE_CHECKING:
    from datetime import datetime

    from django.db.models import QuerySet

logger = logging.getLogger(__name__)

HOLD_REASON_REFUND_PENDING = "refund_pending"

# Field values that clear a hold; always applied together
RELEASED_HOLD_VALUES = {
    "settlement_status": SettlementStatus.ELIGIBLE,
    "hold_reason": None,
    "hold_until": None,
}


class Violation:
    HOLD_FIELDS_MISSING = "hold_fields_missing"
    HOLD_FIELDS_WITHOUT_HOLD = "hold_fields_without_hold"
    MULTIPLE_OPEN_REFUNDS = "multiple_open_refunds"
    STRANDED_HOLD = "stranded_hold"


class SettlementHoldCoordinator:
    """
    Places and releases settlement holds on orders.

    Every method is a single conditional UPDATE on the order row and
    publishes an UPDATE event when it changed something. Callers that also
    write a refund row wrap both writes in one transaction.
    """

    @classmethod
    def place_hold(
        cls,
        order_id,
        reason: str = HOLD_REASON_REFUND_PENDING,
        until: datetime | None = None,
    ) -> bool:
        """
        Put an eligible order on hold.

        Args:
            order_id: Order to hold
            reason: Hold reason (required, non-blank)
            until: Hold expiry; defaults to SETTLEMENT_HOLD_DEFAULT_DAYS from now

        Returns:
            True if the hold was placed, False if the order was already on hold

        Raises:
            ValidationError: Blank reason
            NotFoundError: Order does not exist
        """
        if not reason or not reason.strip():
            raise ValidationError(
                "A hold reason is required",
                details={"reason": ["This field may not be blank."]},
            )
        until = until or timezone.now() + timedelta(
            days=settings.SETTLEMENT_HOLD_DEFAULT_DAYS
        )

        rows = conditional_update(
            Order,
            order_id,
            {"settlement_status": SettlementStatus.ELIGIBLE},
            {
                "settlement_status": SettlementStatus.ON_HOLD,
                "hold_reason": reason.strip(),
                "hold_until": until,
            },
        )
        if rows == 0:
            cls._ensure_exists(order_id)
            logger.info(
                "Order already on hold, hold not replaced",
                extra={"order_id": str(order_id)},
            )
            return False

        logger.info(
            "Settlement hold placed",
            extra={"order_id": str(order_id), "hold_reason": reason},
        )
        cls._publish(order_id)
        return True

    @classmethod
    def release_if_held(cls, order_id) -> bool:
        """
        Release the hold only if the order is on hold.

        Used when a refund is rejected. Zero rows affected is a valid,
        silent outcome: the order was not on hold and is left untouched.

        Returns:
            True if a hold was released
        """
        rows = conditional_update(
            Order,
            order_id,
            {"settlement_status": SettlementStatus.ON_HOLD},
            RELEASED_HOLD_VALUES,
        )
        if rows == 0:
            logger.debug(
                "Order not on hold, nothing to release",
                extra={"order_id": str(order_id)},
            )
            return False

        logger.info("Settlement hold released", extra={"order_id": str(order_id)})
        cls._publish(order_id)
        return True

    @classmethod
    def release_for_refund(cls, order_id) -> bool:
        """
        Mark the order refunded and settlement-eligible, whatever its hold state.

        Used when a refund is processed. Overwrites a completed cash payment:
        the refund is the later, authoritative write. The on-hold case is
        tried first so the caller learns which write took the order off hold.

        Returns:
            True if the order was on hold when it was written

        Raises:
            NotFoundError: Order does not exist
        """
        values = {
            **RELEASED_HOLD_VALUES,
            "payment_status": PaymentStatus.REFUNDED,
            "refunded_at": timezone.now(),
        }
        was_on_hold = bool(
            conditional_update(
                Order, order_id, {"settlement_status": SettlementStatus.ON_HOLD}, values
            )
        )
        rows = 1 if was_on_hold else conditional_update(Order, order_id, {}, values)
        if rows == 0:
            raise NotFoundError(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )

        logger.info(
            "Order refunded and released for settlement",
            extra={"order_id": str(order_id), "was_on_hold": was_on_hold},
        )
        cls._publish(order_id)
        return was_on_hold

    # =========================================================================
    # Invariant checks
    # =========================================================================

    @staticmethod
    def invariant_violations(order: Order) -> list[str]:
        """
        List the hold rules broken by ``order`` as loaded.

        Returns:
            Violation codes, empty when the order is consistent
        """
        from refunds.state_machines import OPEN_REFUND_STATUSES

        violations = []
        has_fields = order.hold_reason is not None and order.hold_until is not None
        any_field = order.hold_reason is not None or order.hold_until is not None

        if order.settlement_status == SettlementStatus.ON_HOLD and not has_fields:
            violations.append(Violation.HOLD_FIELDS_MISSING)
        if order.settlement_status == SettlementStatus.ELIGIBLE and any_field:
            violations.append(Violation.HOLD_FIELDS_WITHOUT_HOLD)

        refunds = order.refunds.order_by("-created_at")
        open_count = refunds.filter(status__in=OPEN_REFUND_STATUSES).count()
        if open_count > 1:
            violations.append(Violation.MULTIPLE_OPEN_REFUNDS)

        latest = refunds.first()
        if (
            order.settlement_status == SettlementStatus.ON_HOLD
            and latest is not None
            and latest.status not in OPEN_REFUND_STATUSES
            and open_count == 0
        ):
            violations.append(Violation.STRANDED_HOLD)

        return violations

    @staticmethod
    def stranded_holds() -> QuerySet[Order]:
        """
        Orders on hold whose refunds are all terminal.

        Orders on hold without any refund row are not included; those holds
        were placed outside the refund flow and expire on their own.
        """
        from refunds.models import Refund
        from refunds.state_machines import OPEN_REFUND_STATUSES

        any_refund = Refund.objects.filter(order_id=OuterRef("pk"))
        open_refund = any_refund.filter(status__in=OPEN_REFUND_STATUSES)
        return (
            Order.objects.filter(settlement_status=SettlementStatus.ON_HOLD)
            .filter(Exists(any_refund))
            .exclude(Exists(open_refund))
            .order_by("updated_at")
        )

    @classmethod
    def release_if_stranded(cls, order_id) -> bool:
        """
        Release the hold only if the order is on hold with no open refund.

        One UPDATE carries both conditions, so a refund opened after the
        order was picked as stranded keeps its hold.

        Returns:
            True if a hold was released
        """
        from refunds.models import Refund
        from refunds.state_machines import OPEN_REFUND_STATUSES

        open_refund = Refund.objects.filter(
            order_id=OuterRef("pk"), status__in=OPEN_REFUND_STATUSES
        )
        rows = (
            Order.objects.filter(pk=order_id, settlement_status=SettlementStatus.ON_HOLD)
            .exclude(Exists(open_refund))
            .update(**RELEASED_HOLD_VALUES, updated_at=timezone.now())
        )
        if rows == 0:
            logger.info(
                "Order no longer stranded, hold kept",
                extra={"order_id": str(order_id)},
            )
            return False

        logger.info("Stranded settlement hold released", extra={"order_id": str(order_id)})
        cls._publish(order_id)
        return True

    @classmethod
    def heal_stranded_holds(cls, batch_size: int = 100) -> dict:
        """
        Release up to ``batch_size`` stranded holds.

        Each candidate is checked with invariant_violations and the broken
        rules are logged. The release itself is release_if_stranded, so an
        order that gained an open refund in the meantime keeps its hold.

        Returns:
            Dict with checked/released counts, the released order ids and
            the violations found per order id
        """
        released_ids = []
        violations = {}
        candidates = list(cls.stranded_holds()[:batch_size])
        for order in candidates:
            found = cls.invariant_violations(order)
            if found:
                violations[str(order.pk)] = found
                logger.warning(
                    "Settlement hold invariant violated",
                    extra={"order_id": str(order.pk), "violations": found},
                )
            if Violation.STRANDED_HOLD not in found:
                continue
            if cls.release_if_stranded(order.pk):
                released_ids.append(str(order.pk))

        return {
            "checked": len(candidates),
            "released": len(released_ids),
            "order_ids": released_ids,
            "violations": violations,
        }

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _ensure_exists(order_id) -> None:
        if not Order.objects.filter(pk=order_id).exists():
            raise NotFoundError(
                f"Order {order_id} not found",
                details={"order_id": str(order_id)},
            )

    @staticmethod
    def _publish(order_id) -> None:
        row = Order.objects.filter(pk=order_id).values("provider_id", "status").first()
        if row is None:
            return
        publish_after_commit(
            OrderEventKind.UPDATE,
            order_id=order_id,
            provider_id=row["provider_id"],
            status=row["status"],
            old_status=row["status"],
        )
