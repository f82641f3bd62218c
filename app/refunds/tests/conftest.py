"""
Pytest fixtures for refund tests.

Orders default to delivered cash orders of 100.00 on settlement hold, the
state a refund request leaves them in.

Usage:
    def test_reject(pending_refund, regional_context):
        result = RefundWorkflowService.reject_refund(
            pending_refund.id, regional_context, notes="Duplicate"
        )
        assert result.data.hold_released
"""

import pytest

from authentication.access import AccessContext
from authentication.tests.factories import AdminFactory
from orders.tests.factories import OrderFactory
from providers.tests.factories import ProviderFactory
from refunds.state_machines import RefundStatus
from refunds.tests.factories import RefundFactory


# =============================================================================
# Access Fixtures
# =============================================================================


@pytest.fixture
def regional_context(regional_admin):
    return AccessContext.from_user(regional_admin)


@pytest.fixture
def super_context(super_admin):
    return AccessContext.from_user(super_admin)


@pytest.fixture
def giza_admin(db, giza):
    return AdminFactory(assigned_governorates=[giza])


@pytest.fixture
def admin_client(api_client, regional_admin):
    api_client.force_authenticate(user=regional_admin)
    return api_client


# =============================================================================
# Order / Refund Fixtures
# =============================================================================


@pytest.fixture
def held_order(provider, customer):
    return OrderFactory(provider=provider, customer=customer, delivered=True, on_hold=True)


@pytest.fixture
def eligible_order(provider, customer):
    return OrderFactory(provider=provider, customer=customer, delivered=True)


@pytest.fixture
def pending_refund(held_order):
    return RefundFactory(order=held_order, reason="Cold food")


@pytest.fixture
def approved_refund(held_order):
    return RefundFactory(order=held_order, status=RefundStatus.APPROVED)


@pytest.fixture
def giza_provider(db, giza):
    return ProviderFactory(governorate=giza, name_ar="مطبخ الأهرام")


@pytest.fixture
def giza_refund(giza_provider):
    order = OrderFactory(provider=giza_provider, delivered=True, on_hold=True)
    return RefundFactory(order=order)
