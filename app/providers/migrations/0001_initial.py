import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("authentication", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Governorate",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
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
                ("name_ar", models.CharField(help_text="Arabic display name", max_length=100)),
                ("name_en", models.CharField(help_text="English display name", max_length=100)),
                (
                    "is_active",
                    models.BooleanField(
                        default=True,
                        help_text="Whether providers can be registered in this governorate",
                    ),
                ),
            ],
            options={
                "verbose_name": "Governorate",
                "verbose_name_plural": "Governorates",
                "ordering": ["name_en"],
            },
        ),
        migrations.CreateModel(
            name="Provider",
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
                ("name_ar", models.CharField(help_text="Arabic display name", max_length=200)),
                (
                    "name_en",
                    models.CharField(
                        blank=True,
                        default="",
                        help_text="English display name",
                        max_length=200,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending_approval", "Pending Approval"),
                            ("approved", "Approved"),
                            ("open", "Open"),
                            ("closed", "Closed"),
                            ("temporarily_paused", "Temporarily Paused"),
                            ("suspended", "Suspended"),
                            ("rejected", "Rejected"),
                        ],
                        db_index=True,
                        default="pending_approval",
                        help_text="Operational status",
                        max_length=32,
                    ),
                ),
                (
                    "governorate",
                    models.ForeignKey(
                        blank=True,
                        help_text="Governorate the provider operates in",
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="providers",
                        to="providers.governorate",
                    ),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Operator account that manages this provider",
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="providers",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Provider",
                "verbose_name_plural": "Providers",
                "ordering": ["name_ar"],
                "indexes": [
                    models.Index(
                        fields=["governorate", "status"],
                        name="providers_p_governo_5b1e0c_idx",
                    )
                ],
            },
        ),
    ]
