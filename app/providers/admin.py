"""
Django admin configuration for providers.
"""

from django.contrib import admin

from providers.models import Governorate, Provider


@admin.register(Governorate)
class GovernorateAdmin(admin.ModelAdmin):
    list_display = ("name_en", "name_ar", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name_en", "name_ar")


@admin.register(Provider)
class ProviderAdmin(admin.ModelAdmin):
    list_display = ("name_ar", "name_en", "governorate", "status", "owner", "created_at")
    list_filter = ("status", "governorate")
    search_fields = ("name_ar", "name_en", "owner__email")
    raw_id_fields = ("owner",)
