"""
Django admin configuration for refunds.

Refunds are read-only here; reviews go through the refund API so the
order-side hold release always runs with them.
"""

from django.contrib import admin

from refunds.models import Refund


@admin.register(Refund)
class RefundAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "order",
        "provider",
        "amount",
        "processed_amount",
        "status",
        "escalated_to_admin",
        "created_at",
    )
    list_filter = ("status", "escalated_to_admin", "provider_action", "request_source")
    search_fields = ("order__order_number", "customer__full_name", "reason")
    raw_id_fields = ("order", "customer", "provider", "reviewed_by", "processed_by")
    readonly_fields = [field.name for field in Refund._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
