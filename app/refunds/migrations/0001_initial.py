import uuid

import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("orders", "0001_initial"),
        ("providers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Refund",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique identifier (UUID v4)",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2, help_text="Amount requested", max_digits=10
                    ),
                ),
                (
                    "processed_amount",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Amount disbursed (set when processed)",
                        max_digits=10,
                        null=True,
                    ),
                ),
                (
                    "reason",
                    models.CharField(help_text="Reason given for the refund", max_length=500),
                ),
                (
                    "reason_ar",
                    models.CharField(
                        blank=True, help_text="Arabic reason text", max_length=500, null=True
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("approved", "Approved"),
                            ("rejected", "Rejected"),
                            ("processed", "Processed"),
                            ("failed", "Failed"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Review status (changed only through FSM transitions)",
                        max_length=50,
                    ),
                ),
                (
                    "refund_method",
                    models.CharField(
                        blank=True,
                        help_text="How the money is returned (cash, wallet, card, ...)",
                        max_length=32,
                        null=True,
                    ),
                ),
                (
                    "refund_type",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("full", "Full Refund"),
                            ("partial", "Partial Refund"),
                            ("item_resend", "Item Resend"),
                        ],
                        help_text="Full, partial or item resend",
                        max_length=20,
                        null=True,
                    ),
                ),
                (
                    "request_source",
                    models.CharField(
                        choices=[
                            ("customer", "Customer"),
                            ("provider", "Provider"),
                            ("admin", "Admin"),
                        ],
                        default="customer",
                        help_text="Who opened the request",
                        max_length=20,
                    ),
                ),
                (
                    "provider_action",
                    models.CharField(
                        choices=[
                            ("none", "No Action"),
                            ("cash_refund", "Cash Refund"),
                            ("resend_item", "Resend Item"),
                            ("escalate_to_admin", "Escalate to Admin"),
                        ],
                        default="none",
                        help_text="Provider's chosen handling (informational)",
                        max_length=32,
                    ),
                ),
                (
                    "provider_notes",
                    models.TextField(blank=True, help_text="Notes from the provider", null=True),
                ),
                (
                    "escalated_to_admin",
                    models.BooleanField(
                        db_index=True,
                        default=False,
                        help_text="Provider escalated the request to the platform",
                    ),
                ),
                (
                    "customer_confirmed",
                    models.BooleanField(
                        default=False,
                        help_text="Customer confirmed receipt of a courier cash refund",
                    ),
                ),
                (
                    "confirmation_deadline",
                    models.DateTimeField(
                        blank=True,
                        help_text="Deadline for the customer confirmation",
                        null=True,
                    ),
                ),
                (
                    "review_notes",
                    models.TextField(
                        blank=True,
                        help_text="Admin notes written on approve or reject",
                        null=True,
                    ),
                ),
                (
                    "reviewed_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the refund was approved or rejected",
                        null=True,
                    ),
                ),
                (
                    "processing_notes",
                    models.TextField(
                        blank=True,
                        help_text="Admin notes written on processing",
                        null=True,
                    ),
                ),
                (
                    "processed_at",
                    models.DateTimeField(
                        blank=True, help_text="When the refund was processed", null=True
                    ),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer receiving the refund",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        help_text="Order the refund is claimed against",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to="orders.order",
                    ),
                ),
                (
                    "processed_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin who processed the refund",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="processed_refunds",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "provider",
                    models.ForeignKey(
                        help_text="Provider that fulfilled the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="refunds",
                        to="providers.provider",
                    ),
                ),
                (
                    "reviewed_by",
                    models.ForeignKey(
                        blank=True,
                        help_text="Admin who approved or rejected the refund",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="reviewed_refunds",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Refund",
                "verbose_name_plural": "Refunds",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["status", "created_at"],
                        name="refunds_ref_status_4e7b12_idx",
                    ),
                    models.Index(
                        fields=["provider", "status"],
                        name="refunds_ref_provide_a91c3d_idx",
                    ),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("status__in", ["pending", "approved"])),
                        fields=("order",),
                        name="refund_one_open_per_order",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("amount__gt", 0)),
                        name="refund_amount_positive",
                    ),
                ],
            },
        ),
    ]
