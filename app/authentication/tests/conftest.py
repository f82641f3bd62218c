"""
Test configuration and fixtures for authentication tests.

Shared actors (operator, provider, super_admin, regional_admin, cairo,
giza) come from app/conftest.py.

Usage:
    def test_example(regional_admin, cairo):
        context = AccessContext.from_user(regional_admin)
        assert context.governorate_ids == {cairo.pk}
"""

import pytest

from authentication.access import AccessContext
from authentication.tests.factories import AdminFactory, OperatorFactory


@pytest.fixture
def unassigned_operator(db):
    """Provider operator with no provider row yet."""
    return OperatorFactory()


@pytest.fixture
def unassigned_admin(db):
    """Regional admin with no governorates assigned."""
    return AdminFactory()


@pytest.fixture
def super_context(super_admin):
    return AccessContext.from_user(super_admin)


@pytest.fixture
def regional_context(regional_admin):
    return AccessContext.from_user(regional_admin)
