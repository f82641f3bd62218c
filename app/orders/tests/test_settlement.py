"""
Tests for SettlementHoldCoordinator.

Test Classes:
    TestPlaceHold: Putting eligible orders on hold
    TestRelease: Guarded and unconditional releases
    TestInvariantViolations: Consistency checks over loaded orders
    TestHealStrandedHolds: Releasing holds whose refunds all finished
"""

import logging
from datetime import timedelta
from unittest.mock import patch

import pytest
from django.utils import timezone
from freezegun import freeze_time

from core.exceptions import NotFoundError, ValidationError
from orders.models import Order
from orders.settlement import SettlementHoldCoordinator, Violation
from orders.state_machines import PaymentStatus, SettlementStatus
from orders.tests.factories import OrderFactory
from refunds.state_machines import RefundStatus
from refunds.tests.factories import RefundFactory

MISSING_ID = "00000000-0000-0000-0000-000000000000"


class TestPlaceHold:
    """Tests for place_hold."""

    @freeze_time("2026-03-01 12:00:00")
    def test_places_hold_with_default_expiry(self, delivered_order, settings):
        settings.SETTLEMENT_HOLD_DEFAULT_DAYS = 14

        placed = SettlementHoldCoordinator.place_hold(delivered_order.id)

        assert placed is True
        delivered_order.refresh_from_db()
        assert delivered_order.settlement_status == SettlementStatus.ON_HOLD
        assert delivered_order.hold_reason == "refund_pending"
        assert delivered_order.hold_until == timezone.now() + timedelta(days=14)

    def test_existing_hold_is_not_replaced(self, held_order):
        original_until = held_order.hold_until

        placed = SettlementHoldCoordinator.place_hold(held_order.id, reason="dispute")

        assert placed is False
        held_order.refresh_from_db()
        assert held_order.hold_reason == "refund_pending"
        assert held_order.hold_until == original_until

    @pytest.mark.parametrize("reason", ["", "   "])
    def test_blank_reason(self, delivered_order, reason):
        with pytest.raises(ValidationError):
            SettlementHoldCoordinator.place_hold(delivered_order.id, reason=reason)

        delivered_order.refresh_from_db()
        assert delivered_order.settlement_status == SettlementStatus.ELIGIBLE

    def test_missing_order(self, db):
        with pytest.raises(NotFoundError):
            SettlementHoldCoordinator.place_hold(MISSING_ID)


class TestRelease:
    """Tests for release_if_held and release_for_refund."""

    def test_release_if_held_clears_all_fields(self, held_order):
        assert SettlementHoldCoordinator.release_if_held(held_order.id) is True

        held_order.refresh_from_db()
        assert held_order.settlement_status == SettlementStatus.ELIGIBLE
        assert held_order.hold_reason is None
        assert held_order.hold_until is None

    def test_release_if_held_leaves_eligible_order_alone(self, delivered_order):
        before = Order.objects.get(pk=delivered_order.pk).updated_at

        assert SettlementHoldCoordinator.release_if_held(delivered_order.id) is False

        delivered_order.refresh_from_db()
        assert delivered_order.updated_at == before
        assert delivered_order.settlement_status == SettlementStatus.ELIGIBLE

    def test_release_for_refund_from_hold(self, held_order):
        assert SettlementHoldCoordinator.release_for_refund(held_order.id) is True

        held_order.refresh_from_db()
        assert held_order.payment_status == PaymentStatus.REFUNDED
        assert held_order.refunded_at is not None
        assert held_order.settlement_status == SettlementStatus.ELIGIBLE
        assert held_order.hold_reason is None
        assert held_order.hold_until is None

    def test_release_for_refund_without_hold(self, delivered_order):
        """Processing always refunds, whatever the hold state."""
        assert SettlementHoldCoordinator.release_for_refund(delivered_order.id) is False

        delivered_order.refresh_from_db()
        assert delivered_order.payment_status == PaymentStatus.REFUNDED
        assert delivered_order.settlement_status == SettlementStatus.ELIGIBLE

    def test_release_for_refund_overrides_completed_payment(self, delivered_order):
        Order.objects.filter(pk=delivered_order.pk).update(
            payment_status=PaymentStatus.COMPLETED
        )

        SettlementHoldCoordinator.release_for_refund(delivered_order.id)

        delivered_order.refresh_from_db()
        assert delivered_order.payment_status == PaymentStatus.REFUNDED

    def test_release_for_refund_missing_order(self, db):
        with pytest.raises(NotFoundError):
            SettlementHoldCoordinator.release_for_refund(MISSING_ID)


class TestInvariantViolations:
    """Tests for invariant_violations."""

    def test_consistent_hold(self, held_order):
        RefundFactory(order=held_order)

        assert SettlementHoldCoordinator.invariant_violations(held_order) == []

    def test_consistent_eligible(self, delivered_order):
        assert SettlementHoldCoordinator.invariant_violations(delivered_order) == []

    def test_hold_fields_missing(self, held_order):
        """Checked on an in-memory copy; the database would refuse the row."""
        held_order.hold_until = None

        violations = SettlementHoldCoordinator.invariant_violations(held_order)

        assert Violation.HOLD_FIELDS_MISSING in violations

    def test_hold_fields_without_hold(self, delivered_order):
        delivered_order.hold_reason = "refund_pending"

        violations = SettlementHoldCoordinator.invariant_violations(delivered_order)

        assert violations == [Violation.HOLD_FIELDS_WITHOUT_HOLD]

    def test_stranded_hold(self, held_order):
        RefundFactory(order=held_order, status=RefundStatus.REJECTED)

        violations = SettlementHoldCoordinator.invariant_violations(held_order)

        assert violations == [Violation.STRANDED_HOLD]


class TestHealStrandedHolds:
    """Tests for stranded_holds and heal_stranded_holds."""

    def test_releases_only_stranded(self, provider):
        stranded = OrderFactory(provider=provider, delivered=True, on_hold=True)
        RefundFactory(order=stranded, status=RefundStatus.REJECTED)

        open_refund = OrderFactory(provider=provider, delivered=True, on_hold=True)
        RefundFactory(order=open_refund, status=RefundStatus.APPROVED)

        # On hold without any refund: placed outside the refund flow
        manual = OrderFactory(provider=provider, delivered=True, on_hold=True)

        result = SettlementHoldCoordinator.heal_stranded_holds()

        assert result == {
            "checked": 1,
            "released": 1,
            "order_ids": [str(stranded.id)],
            "violations": {str(stranded.id): [Violation.STRANDED_HOLD]},
        }
        stranded.refresh_from_db()
        open_refund.refresh_from_db()
        manual.refresh_from_db()
        assert stranded.settlement_status == SettlementStatus.ELIGIBLE
        assert open_refund.settlement_status == SettlementStatus.ON_HOLD
        assert manual.settlement_status == SettlementStatus.ON_HOLD

    def test_old_terminal_refund_with_new_open_refund(self, held_order):
        RefundFactory(order=held_order, status=RefundStatus.PROCESSED)
        RefundFactory(order=held_order, status=RefundStatus.PENDING)

        assert not SettlementHoldCoordinator.stranded_holds().exists()

    def test_batch_size(self, provider):
        for _ in range(3):
            order = OrderFactory(provider=provider, delivered=True, on_hold=True)
            RefundFactory(order=order, status=RefundStatus.REJECTED)

        result = SettlementHoldCoordinator.heal_stranded_holds(batch_size=2)

        assert result["checked"] == 2
        assert result["released"] == 2
        assert SettlementHoldCoordinator.stranded_holds().count() == 1

    def test_refund_opened_before_release_keeps_hold(self, held_order):
        """A refund opened after the candidate scan still blocks the release."""
        RefundFactory(order=held_order, status=RefundStatus.REJECTED)
        release = SettlementHoldCoordinator.release_if_stranded

        def open_refund_then_release(order_id):
            RefundFactory(order=held_order, status=RefundStatus.PENDING)
            return release(order_id)

        with patch.object(
            SettlementHoldCoordinator,
            "release_if_stranded",
            side_effect=open_refund_then_release,
        ):
            result = SettlementHoldCoordinator.heal_stranded_holds()

        assert result["checked"] == 1
        assert result["released"] == 0
        held_order.refresh_from_db()
        assert held_order.settlement_status == SettlementStatus.ON_HOLD
        assert held_order.hold_reason is not None

    def test_release_if_stranded_skips_open_refund(self, held_order):
        RefundFactory(order=held_order, status=RefundStatus.APPROVED)

        assert SettlementHoldCoordinator.release_if_stranded(held_order.id) is False
        held_order.refresh_from_db()
        assert held_order.settlement_status == SettlementStatus.ON_HOLD

    def test_release_if_stranded_eligible_order(self, delivered_order):
        assert SettlementHoldCoordinator.release_if_stranded(delivered_order.id) is False

    def test_logs_violations(self, held_order, caplog):
        RefundFactory(order=held_order, status=RefundStatus.REJECTED)

        with caplog.at_level(logging.WARNING, logger="orders.settlement"):
            SettlementHoldCoordinator.heal_stranded_holds()

        assert "Settlement hold invariant violated" in caplog.text
