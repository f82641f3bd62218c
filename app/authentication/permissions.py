"""
Permission classes for the order board and refund review APIs.

- IsProviderOperator: Authenticated provider operator with a provider
- IsPlatformAdmin: Authenticated platform admin (regional or super)

Region restrictions are not checked here; they depend on the record and
are enforced by RegionAccessPolicy inside the services.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework import permissions

from authentication.models import UserRole

if TYPE_CHECKING:
    from rest_framework.request import Request
    from rest_framework.views import APIView


class IsProviderOperator(permissions.BasePermission):
    """Allows access only to users operating a provider."""

    message = "Only provider operators can manage orders."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.role == UserRole.PROVIDER


class IsPlatformAdmin(permissions.BasePermission):
    """Allows access only to platform admins."""

    message = "Only platform admins can review refunds."

    def has_permission(self, request: Request, view: APIView) -> bool:
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return user.role == UserRole.ADMIN or user.is_super_admin
