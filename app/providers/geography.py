"""
Geographic lookup used for labelling and filtering.

Nothing here guards a state transition; region enforcement lives in
authentication.access.RegionAccessPolicy.

Governorate names change rarely and are cached for an hour.
"""

from __future__ import annotations

from django.core.cache import cache

from providers.models import Governorate, Provider

GOVERNORATE_NAME_TTL = 60 * 60


def governorate_name(governorate_id: int | None, locale: str = "ar") -> str | None:
    """
    Display name of a governorate in the requested locale.

    Falls back to the Arabic name when the locale is unknown.
    """
    if governorate_id is None:
        return None

    key = f"governorate:names:{governorate_id}"
    names = cache.get(key)
    if names is None:
        row = (
            Governorate.objects.filter(pk=governorate_id)
            .values("name_ar", "name_en")
            .first()
        )
        if row is None:
            return None
        names = {"ar": row["name_ar"], "en": row["name_en"]}
        cache.set(key, names, GOVERNORATE_NAME_TTL)
    return names.get(locale) or names["ar"]


def provider_governorate_id(provider_id) -> int | None:
    return (
        Provider.objects.filter(pk=provider_id)
        .values_list("governorate_id", flat=True)
        .first()
    )


def governorate_options(context, locale: str = "ar") -> list[dict]:
    """
    Governorates an admin can filter by, for the refund list filter.

    Super admins get every governorate; regional admins their assigned set.
    """
    queryset = Governorate.objects.filter(is_active=True)
    if not context.is_super_admin:
        queryset = queryset.filter(pk__in=context.governorate_ids)
    name_field = "name_en" if locale == "en" else "name_ar"
    return [
        {"id": row["id"], "name": row[name_field]}
        for row in queryset.values("id", name_field)
    ]
