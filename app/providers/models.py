"""
Provider models.

- Governorate: Administrative region (bilingual name)
- Provider: Merchant that fulfils orders; owned by one operator user

Usage:
    from providers.models import Governorate, Provider, ProviderStatus

    cairo = Governorate.objects.create(name_ar="القاهرة", name_en="Cairo")
    provider = Provider.objects.create(
        owner=operator,
        name_ar="مطبخ النيل",
        name_en="Nile Kitchen",
        governorate=cairo,
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class ProviderStatus(models.TextChoices):
    """
    Operational status of a provider.

    Active (can receive orders): APPROVED, OPEN, CLOSED, TEMPORARILY_PAUSED.
    Inactive: PENDING_APPROVAL, SUSPENDED, REJECTED.
    """

    PENDING_APPROVAL = "pending_approval", "Pending Approval"
    APPROVED = "approved", "Approved"
    OPEN = "open", "Open"
    CLOSED = "closed", "Closed"
    TEMPORARILY_PAUSED = "temporarily_paused", "Temporarily Paused"
    SUSPENDED = "suspended", "Suspended"
    REJECTED = "rejected", "Rejected"


ACTIVE_PROVIDER_STATUSES = frozenset(
    [
        ProviderStatus.APPROVED,
        ProviderStatus.OPEN,
        ProviderStatus.CLOSED,
        ProviderStatus.TEMPORARILY_PAUSED,
    ]
)


class Governorate(BaseModel):
    """
    Administrative region.

    Regional admins are assigned a set of governorates and only see refunds
    for providers located in them.
    """

    name_ar = models.CharField(
        max_length=100,
        help_text="Arabic display name",
    )
    name_en = models.CharField(
        max_length=100,
        help_text="English display name",
    )
    is_active = models.BooleanField(
        default=True,
        help_text="Whether providers can be registered in this governorate",
    )

    class Meta:
        ordering = ["name_en"]
        verbose_name = "Governorate"
        verbose_name_plural = "Governorates"

    def __str__(self) -> str:
        return self.name_en


class Provider(UUIDPrimaryKeyMixin, BaseModel):
    """
    Merchant that fulfils orders.

    Fields:
        owner: Provider operator account
        name_ar / name_en: Bilingual display name
        governorate: Region used for admin scoping
        status: Operational status
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="providers",
        help_text="Operator account that manages this provider",
    )

    governorate = models.ForeignKey(
        Governorate,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="providers",
        help_text="Governorate the provider operates in",
    )

    # ==========================================================================
    # Profile
    # ==========================================================================

    name_ar = models.CharField(
        max_length=200,
        help_text="Arabic display name",
    )
    name_en = models.CharField(
        max_length=200,
        blank=True,
        default="",
        help_text="English display name",
    )

    status = models.CharField(
        max_length=32,
        choices=ProviderStatus.choices,
        default=ProviderStatus.PENDING_APPROVAL,
        db_index=True,
        help_text="Operational status",
    )

    class Meta:
        ordering = ["name_ar"]
        verbose_name = "Provider"
        verbose_name_plural = "Providers"
        indexes = [
            models.Index(fields=["governorate", "status"]),
        ]

    def __str__(self) -> str:
        return self.name_en or self.name_ar

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_PROVIDER_STATUSES
