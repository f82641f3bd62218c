"""
Access context and geographic-region access policy.

Every service operation receives an AccessContext describing who is acting.
Services never look at request objects; views and consumers build the
context once and pass it down.

Region rules for platform admins:
    - Super admin: sees every governorate, optionally narrowed to one
    - Regional admin: always restricted to the assigned governorates; an
      explicit governorate filter is intersected with that set
    - Anyone else: sees nothing through admin listings

Usage:
    context = AccessContext.from_user(request.user)
    refunds = RegionAccessPolicy.scope(Refund.objects.all(), context)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from core.exceptions import PermissionDeniedError

from authentication.models import UserRole

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessContext:
    """
    Opaque description of the acting user.

    Attributes:
        user_id: Acting user's primary key
        role: UserRole value
        provider_id: Provider operated by the user (provider operators only)
        is_super_admin: Admin without region restriction
        governorate_ids: Governorates assigned to a regional admin
    """

    user_id: Any
    role: str
    provider_id: Any = None
    is_super_admin: bool = False
    governorate_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_user(cls, user) -> AccessContext:
        """
        Build the context for an authenticated user.

        Resolves the operated provider for provider operators and the
        assigned governorates for regional admins.
        """
        from providers.models import Provider

        provider_id = None
        governorate_ids: frozenset[int] = frozenset()

        if user.role == UserRole.PROVIDER:
            provider_id = (
                Provider.objects.filter(owner_id=user.pk)
                .order_by("created_at")
                .values_list("id", flat=True)
                .first()
            )
        if user.role == UserRole.ADMIN and not user.is_super_admin:
            governorate_ids = frozenset(
                user.assigned_governorates.values_list("id", flat=True)
            )

        return cls(
            user_id=user.pk,
            role=user.role,
            provider_id=provider_id,
            is_super_admin=user.is_super_admin,
            governorate_ids=governorate_ids,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN or self.is_super_admin

    @property
    def is_provider_operator(self) -> bool:
        return self.role == UserRole.PROVIDER and self.provider_id is not None


class RegionAccessPolicy:
    """
    Applies an admin's governorate scope to querysets and single records.

    ``path`` is the lookup from the queryset's model to the governorate id,
    for example ``provider__governorate_id`` for orders and refunds.
    """

    @staticmethod
    def scope(
        queryset: QuerySet,
        context: AccessContext,
        governorate_id: int | None = None,
        path: str = "provider__governorate_id",
    ) -> QuerySet:
        """
        Restrict ``queryset`` to the rows the admin may see.

        Args:
            queryset: Unfiltered queryset
            context: Acting user
            governorate_id: Optional single-governorate filter from the UI
            path: Lookup from the model to its governorate id

        Returns:
            The filtered queryset (empty for non-admins)
        """
        if not context.is_admin:
            return queryset.none()

        if context.is_super_admin:
            if governorate_id is not None:
                return queryset.filter(**{path: governorate_id})
            return queryset

        allowed = context.governorate_ids
        if governorate_id is not None:
            if governorate_id not in allowed:
                return queryset.none()
            return queryset.filter(**{path: governorate_id})
        return queryset.filter(**{f"{path}__in": allowed})

    @staticmethod
    def can_access(context: AccessContext, governorate_id: int | None) -> bool:
        if not context.is_admin:
            return False
        if context.is_super_admin:
            return True
        return governorate_id in context.governorate_ids

    @classmethod
    def ensure_access(cls, context: AccessContext, governorate_id: int | None) -> None:
        """
        Raises:
            PermissionDeniedError: The admin is outside the record's region
        """
        if not cls.can_access(context, governorate_id):
            logger.warning(
                "Region access denied",
                extra={"user_id": str(context.user_id), "governorate_id": governorate_id},
            )
            raise PermissionDeniedError(
                "You do not have access to this governorate",
                error_code="REGION_ACCESS_DENIED",
                details={"governorate_id": governorate_id},
            )
