"""
Serializers for the order board API.

Serializer Hierarchy:
    OrderSerializer: Order row as shown on the operator board
    OrderBoardSerializer: Board tab + counts + orders
    AdvanceOrderSerializer: Body of the advance action
    ConfirmCashPaymentSerializer: Body of the cash confirmation action
"""

from __future__ import annotations

from rest_framework import serializers

from orders.models import Order
from orders.state_machines import OrderTab


class OrderSerializer(serializers.ModelSerializer):
    """Order as shown to the provider operator."""

    customer_name = serializers.SerializerMethodField(
        help_text="Display name of the customer"
    )
    customer_phone = serializers.CharField(source="customer.phone", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "status",
            "payment_method",
            "payment_status",
            "settlement_status",
            "hold_reason",
            "hold_until",
            "subtotal",
            "delivery_fee",
            "total",
            "customer_name",
            "customer_phone",
            "customer_notes",
            "delivery_address",
            "created_at",
            "accepted_at",
            "preparing_at",
            "ready_at",
            "out_for_delivery_at",
            "delivered_at",
            "cancelled_at",
            "payment_confirmed_at",
        ]
        read_only_fields = fields

    def get_customer_name(self, obj: Order) -> str:
        return obj.customer.get_full_name()


class OrderBoardSerializer(serializers.Serializer):
    tab = serializers.CharField()
    counts = serializers.DictField(child=serializers.IntegerField())
    new_order_count = serializers.IntegerField()
    orders = OrderSerializer(many=True)


class OrderTabQuerySerializer(serializers.Serializer):
    tab = serializers.ChoiceField(choices=OrderTab.choices, default=OrderTab.ALL)


class AdvanceOrderSerializer(serializers.Serializer):
    # Unknown statuses have no successor; the service answers them as a no-op
    current_status = serializers.CharField(
        max_length=32,
        help_text="Status the operator is advancing from",
    )


class ConfirmCashPaymentSerializer(serializers.Serializer):
    claimed_total = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=0,
        help_text="Cash amount the courier collected",
    )


class TransitionOutcomeSerializer(serializers.Serializer):
    changed = serializers.BooleanField()
    previous_status = serializers.CharField()
    order = OrderSerializer()
