"""
Tests for conditional updates and persisted fsm transitions.

Order is used as the concrete model; any model with an FSMField works.
"""

from datetime import timedelta

import pytest
from django.utils import timezone

from core.exceptions import InvalidStateTransitionError, NotFoundError, StaleStateError
from core.transitions import conditional_update, persist_transition, stale_or_missing
from orders.models import Order
from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from providers.tests.factories import ProviderFactory


@pytest.fixture
def order(provider):
    return OrderFactory(provider=provider)


@pytest.fixture
def other_provider_id(giza):
    return ProviderFactory(governorate=giza).pk


class TestConditionalUpdate:
    """Tests for conditional_update."""

    def test_matching_predicate_updates(self, order):
        rows = conditional_update(
            Order, order.pk, {"status": OrderStatus.PENDING}, {"customer_notes": "ring twice"}
        )

        assert rows == 1
        order.refresh_from_db()
        assert order.customer_notes == "ring twice"

    def test_mismatched_predicate_updates_nothing(self, order):
        rows = conditional_update(
            Order, order.pk, {"status": OrderStatus.ACCEPTED}, {"customer_notes": "x"}
        )

        assert rows == 0
        order.refresh_from_db()
        assert order.customer_notes == ""

    def test_stamps_updated_at(self, order):
        past = timezone.now() - timedelta(days=1)
        Order.objects.filter(pk=order.pk).update(updated_at=past)

        conditional_update(Order, order.pk, {}, {"customer_notes": "x"})

        order.refresh_from_db()
        assert order.updated_at > past


class TestStaleOrMissing:
    def test_missing_row(self, db):
        error = stale_or_missing(
            Order, "00000000-0000-0000-0000-000000000000", "status", "pending"
        )

        assert isinstance(error, NotFoundError)

    def test_stale_row(self, order):
        error = stale_or_missing(Order, order.pk, "status", OrderStatus.ACCEPTED)

        assert isinstance(error, StaleStateError)
        assert error.details["expected"] == OrderStatus.ACCEPTED
        assert error.details["current"] == OrderStatus.PENDING


class TestPersistTransition:
    """Tests for persist_transition."""

    def test_persists_state_and_fields(self, order):
        persist_transition(order, "accept", fields=["accepted_at"])

        stored = Order.objects.get(pk=order.pk)
        assert stored.status == OrderStatus.ACCEPTED
        assert stored.accepted_at == order.accepted_at

    def test_illegal_edge(self, order):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            persist_transition(order, "deliver", fields=["delivered_at"])

        assert exc_info.value.details["current"] == OrderStatus.PENDING
        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING

    def test_row_changed_since_read(self, order):
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.REJECTED)

        with pytest.raises(StaleStateError) as exc_info:
            persist_transition(order, "accept", fields=["accepted_at"])

        assert exc_info.value.details["current"] == OrderStatus.REJECTED
        assert order.status == OrderStatus.PENDING
        assert Order.objects.get(pk=order.pk).accepted_at is None

    def test_extra_predicate(self, order, other_provider_id):
        with pytest.raises(StaleStateError):
            persist_transition(
                order,
                "accept",
                fields=["accepted_at"],
                predicate={"provider_id": other_provider_id},
            )

        assert Order.objects.get(pk=order.pk).status == OrderStatus.PENDING

    def test_row_deleted_since_read(self, order):
        Order.objects.filter(pk=order.pk).delete()

        with pytest.raises(NotFoundError):
            persist_transition(order, "accept", fields=["accepted_at"])

    def test_stale_write_restores_listed_fields(self, order):
        Order.objects.filter(pk=order.pk).update(status=OrderStatus.REJECTED)

        with pytest.raises(StaleStateError):
            persist_transition(order, "accept", fields=["accepted_at"])

        assert order.accepted_at is None
        assert order.status == OrderStatus.PENDING
