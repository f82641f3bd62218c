import uuid

import django.core.validators
import django.db.models.deletion
import django_fsm
from django.conf import settings
from django.db import migrations, models


def _timestamp(help_text):
    return models.DateTimeField(blank=True, help_text=help_text, null=True)


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("providers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
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
                    "order_number",
                    models.CharField(
                        help_text="Human-readable order number shown to customer and provider",
                        max_length=32,
                        unique=True,
                    ),
                ),
                (
                    "status",
                    django_fsm.FSMField(
                        choices=[
                            ("pending", "Pending"),
                            ("accepted", "Accepted"),
                            ("preparing", "Preparing"),
                            ("ready", "Ready"),
                            ("out_for_delivery", "Out for Delivery"),
                            ("delivered", "Delivered"),
                            ("rejected", "Rejected"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Fulfilment status (changed only through FSM transitions)",
                        max_length=50,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash on Delivery"),
                            ("card", "Card"),
                            ("wallet", "Wallet"),
                            ("bank_transfer", "Bank Transfer"),
                        ],
                        default="cash",
                        help_text="How the customer pays",
                        max_length=20,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("refunded", "Refunded"),
                        ],
                        db_index=True,
                        default="pending",
                        help_text="Payment collection status",
                        max_length=20,
                    ),
                ),
                (
                    "settlement_status",
                    models.CharField(
                        choices=[("eligible", "Eligible"), ("on_hold", "On Hold")],
                        db_index=True,
                        default="eligible",
                        help_text="Whether the order can be included in a provider settlement",
                        max_length=20,
                    ),
                ),
                (
                    "hold_reason",
                    models.CharField(
                        blank=True,
                        help_text="Why settlement is on hold (set only while on hold)",
                        max_length=100,
                        null=True,
                    ),
                ),
                (
                    "hold_until",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the hold expires (set only while on hold)",
                        null=True,
                    ),
                ),
                (
                    "subtotal",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Sum of item prices",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "delivery_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=0,
                        help_text="Delivery fee charged to the customer",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "total",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Amount the customer pays (collected in cash for COD orders)",
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(0)],
                    ),
                ),
                (
                    "customer_notes",
                    models.TextField(
                        blank=True,
                        default="",
                        help_text="Notes from the customer to the provider",
                    ),
                ),
                (
                    "delivery_address",
                    models.JSONField(
                        blank=True,
                        default=dict,
                        help_text="Snapshot of the delivery address at checkout",
                    ),
                ),
                ("accepted_at", _timestamp("When the provider accepted the order")),
                ("preparing_at", _timestamp("When preparation started")),
                ("ready_at", _timestamp("When the order was ready for pickup")),
                ("out_for_delivery_at", _timestamp("When the order left with the courier")),
                ("delivered_at", _timestamp("When the order was delivered")),
                ("cancelled_at", _timestamp("When the order was rejected or cancelled")),
                ("payment_confirmed_at", _timestamp("When cash collection was confirmed")),
                (
                    "refunded_at",
                    _timestamp("When a refund against the order was processed"),
                ),
                (
                    "customer",
                    models.ForeignKey(
                        help_text="Customer who placed the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "provider",
                    models.ForeignKey(
                        help_text="Provider fulfilling the order",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="providers.provider",
                    ),
                ),
            ],
            options={
                "verbose_name": "Order",
                "verbose_name_plural": "Orders",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["provider", "status", "created_at"],
                        name="orders_orde_provide_3f2a91_idx",
                    ),
                    models.Index(
                        fields=["settlement_status", "hold_until"],
                        name="orders_orde_settlem_8c4d27_idx",
                    ),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            models.Q(
                                ("hold_reason__isnull", False),
                                ("hold_until__isnull", False),
                                ("settlement_status", "on_hold"),
                            ),
                            models.Q(
                                ("hold_reason__isnull", True),
                                ("hold_until__isnull", True),
                                ("settlement_status", "eligible"),
                            ),
                            _connector="OR",
                        ),
                        name="order_hold_fields_match_settlement_status",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("total__gte", 0)),
                        name="order_total_non_negative",
                    ),
                ],
            },
        ),
    ]
