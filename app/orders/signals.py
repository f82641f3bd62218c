"""
Signal handlers for orders.

New order rows are created by the checkout flow; this receiver turns each
insert into an INSERT event on the provider's change feed.
"""

from __future__ import annotations

from django.db.models.signals import post_save
from django.dispatch import receiver

from orders.models import Order
from orders.realtime.feed import OrderEventKind, publish_after_commit


@receiver(post_save, sender=Order)
def publish_order_insert(sender, instance: Order, created: bool, **kwargs):
    if not created:
        return
    publish_after_commit(
        OrderEventKind.INSERT,
        order_id=instance.pk,
        provider_id=instance.provider_id,
        status=instance.status,
    )
