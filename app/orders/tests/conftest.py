"""
Pytest fixtures for order tests.

Usage:
    def test_accept(pending_order, operator_context):
        result = OrderLifecycleService.accept_order(pending_order.id, operator_context)
        assert result.success
"""

import pytest

from authentication.access import AccessContext
from authentication.tests.factories import OperatorFactory
from orders.state_machines import OrderStatus
from orders.tests.factories import OrderFactory
from providers.tests.factories import ProviderFactory


# =============================================================================
# Access Fixtures
# =============================================================================


@pytest.fixture
def operator_context(provider, operator):
    return AccessContext.from_user(operator)


@pytest.fixture
def other_provider(db, giza):
    return ProviderFactory(owner=OperatorFactory(), governorate=giza)


@pytest.fixture
def other_operator_context(other_provider):
    return AccessContext.from_user(other_provider.owner)


@pytest.fixture
def operator_client(api_client, operator, provider):
    api_client.force_authenticate(user=operator)
    return api_client


# =============================================================================
# Order State Fixtures
# =============================================================================


@pytest.fixture
def pending_order(provider, customer):
    return OrderFactory(provider=provider, customer=customer)


@pytest.fixture
def accepted_order(provider, customer):
    return OrderFactory(provider=provider, customer=customer, status=OrderStatus.ACCEPTED)


@pytest.fixture
def delivered_order(provider, customer):
    """Delivered cash order awaiting confirmation (total 100.00)."""
    return OrderFactory(provider=provider, customer=customer, delivered=True)


@pytest.fixture
def held_order(provider, customer):
    """Delivered order on settlement hold."""
    return OrderFactory(provider=provider, customer=customer, delivered=True, on_hold=True)
