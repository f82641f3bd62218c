"""
Django admin configuration for orders.

Orders are read-only here: status, payment and settlement fields only
change through the services so their guards always apply.
"""

from django.contrib import admin

from orders.models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "order_number",
        "provider",
        "status",
        "payment_method",
        "payment_status",
        "settlement_status",
        "total",
        "created_at",
    )
    list_filter = ("status", "payment_status", "settlement_status", "payment_method")
    search_fields = ("order_number", "customer__email", "customer__full_name")
    raw_id_fields = ("customer", "provider")
    readonly_fields = [field.name for field in Order._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
