"""
Serializers for the refund review API.

Serializer Hierarchy:
    RefundSerializer: Refund row with order, customer and provider labels
    RefundListQuerySerializer: search / status / governorate query params
    RefundReviewSerializer: Body of approve (optional notes)
    RefundRejectSerializer: Body of reject (notes required)
    RefundProcessSerializer: Body of process (optional amount and notes)
"""

from __future__ import annotations

from rest_framework import serializers

from orders.models import Order
from providers.geography import governorate_name
from refunds.models import Refund
from refunds.state_machines import RefundFilterStatus


class RefundOrderSerializer(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = ["id", "order_number", "total", "settlement_status", "payment_status"]
        read_only_fields = fields


class RefundSerializer(serializers.ModelSerializer):
    """Refund as shown in the admin refund list."""

    order = RefundOrderSerializer(read_only=True)
    customer_name = serializers.CharField(source="customer.full_name", read_only=True)
    customer_phone = serializers.CharField(source="customer.phone", read_only=True)
    provider_name_ar = serializers.CharField(source="provider.name_ar", read_only=True)
    provider_name_en = serializers.CharField(source="provider.name_en", read_only=True)
    governorate_name = serializers.SerializerMethodField()

    class Meta:
        model = Refund
        fields = [
            "id",
            "order",
            "customer_name",
            "customer_phone",
            "provider_name_ar",
            "provider_name_en",
            "governorate_name",
            "amount",
            "processed_amount",
            "reason",
            "reason_ar",
            "status",
            "refund_method",
            "refund_type",
            "request_source",
            "provider_action",
            "provider_notes",
            "escalated_to_admin",
            "customer_confirmed",
            "confirmation_deadline",
            "review_notes",
            "reviewed_by",
            "reviewed_at",
            "processing_notes",
            "processed_by",
            "processed_at",
            "created_at",
        ]
        read_only_fields = fields

    def get_governorate_name(self, obj: Refund) -> str | None:
        locale = self.context.get("locale", "ar")
        return governorate_name(obj.provider.governorate_id, locale)


class RefundListQuerySerializer(serializers.Serializer):
    search = serializers.CharField(required=False, allow_blank=True, default="")
    status = serializers.ChoiceField(
        choices=RefundFilterStatus.choices, default=RefundFilterStatus.ALL
    )
    governorate = serializers.IntegerField(required=False, allow_null=True, default=None)
    locale = serializers.ChoiceField(choices=["ar", "en"], default="ar")


class RefundReviewSerializer(serializers.Serializer):
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Optional review notes",
    )


class RefundRejectSerializer(serializers.Serializer):
    # Blank notes are rejected by the service with NOTES_REQUIRED
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Reason for the rejection (required)",
    )


class RefundProcessSerializer(serializers.Serializer):
    amount = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        required=False,
        allow_null=True,
        help_text="Amount disbursed; defaults to the requested amount",
    )
    notes = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Optional processing notes",
    )


class RefundOutcomeSerializer(serializers.Serializer):
    refund = RefundSerializer()
    hold_released = serializers.BooleanField()


class RefundStatsSerializer(serializers.Serializer):
    total = serializers.IntegerField()
    pending = serializers.IntegerField()
    approved = serializers.IntegerField()
    processed = serializers.IntegerField()
    escalated = serializers.IntegerField()
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2)


class GovernorateOptionSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField()
