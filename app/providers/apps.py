"""
Django app configuration for providers.
"""

from django.apps import AppConfig


class ProvidersConfig(AppConfig):
    """Configuration for the providers application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "providers"
    verbose_name = "Providers"
