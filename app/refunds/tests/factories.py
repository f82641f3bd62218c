"""
Factory Boy factories for refund test data.

Usage:
    from refunds.tests.factories import RefundFactory

    refund = RefundFactory(order=held_order)
    approved = RefundFactory(order=held_order, status=RefundStatus.APPROVED)
    escalated = RefundFactory(escalated_to_admin=True)
"""

from decimal import Decimal

import factory

from refunds.models import Refund
from refunds.state_machines import RefundStatus, RefundType, RequestSource


class RefundFactory(factory.django.DjangoModelFactory):
    """
    Factory for Refund model.

    Customer and provider follow the order unless given explicitly.
    """

    class Meta:
        model = Refund

    order = factory.SubFactory("orders.tests.factories.OrderFactory", on_hold=True)
    customer = factory.SelfAttribute("order.customer")
    provider = factory.SelfAttribute("order.provider")
    amount = Decimal("50.00")
    reason = factory.Sequence(lambda n: f"Missing item {n}")
    status = RefundStatus.PENDING
    refund_method = "cash"
    refund_type = RefundType.PARTIAL
    request_source = RequestSource.CUSTOMER
