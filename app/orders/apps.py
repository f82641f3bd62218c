"""
Django app configuration for orders.
"""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Configuration for the orders application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"
    verbose_name = "Orders"

    def ready(self):
        """Connect the order INSERT feed receiver."""
        from orders import signals  # noqa: F401
