"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.
"""

import os

import django
import pytest

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")


def pytest_configure():
    """Configure Django settings before tests run."""
    django.setup()

    from django.conf import settings

    # Disable throttling during tests to prevent rate limit failures
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = []
    settings.REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"] = {}

    # Use fast password hasher for tests
    settings.PASSWORD_HASHERS = [
        "django.contrib.auth.hashers.MD5PasswordHasher",
    ]

    # Test client speaks plain HTTP
    settings.SECURE_SSL_REDIRECT = False

    # No Redis in tests: local-memory cache and in-process channel layer
    settings.CACHES = {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}
    }
    settings.SESSION_ENGINE = "django.contrib.sessions.backends.db"
    settings.CHANNEL_LAYERS = {
        "default": {"BACKEND": "channels.layers.InMemoryChannelLayer"}
    }


def pytest_collection_modifyitems(items):
    """
    Auto-mark tests based on filename patterns.

    Mapping:
    - test_integration.py → e2e (full operator/admin workflows)
    - test_views.py, test_services.py, test_tasks.py, etc. → integration
    - test_models.py, test_serializers.py, test_access.py, etc. → unit
    - Unmatched files → integration (safe default for Django)

    Explicit markers on test functions/classes take precedence.
    """
    e2e_patterns = ["test_integration.py"]

    integration_patterns = [
        "test_views.py",
        "test_services.py",
        "test_tasks.py",
        "test_permissions.py",
        "test_consumers.py",
        "test_sync.py",
        "test_settlement.py",
        "test_lifecycle_service.py",
        "test_workflow_service.py",
    ]

    unit_patterns = [
        "test_models.py",
        "test_serializers.py",
        "test_access.py",
        "test_exceptions.py",
        "test_state_transitions.py",
        "test_transitions.py",
        "test_locks.py",
        "test_geography.py",
        "test_feed.py",
    ]

    for item in items:
        # Skip if test already has unit/integration/e2e marker
        existing_markers = {m.name for m in item.iter_markers()}
        if existing_markers & {"unit", "integration", "e2e"}:
            continue

        filename = str(item.fspath).split("/")[-1]

        if any(pattern in filename for pattern in e2e_patterns):
            item.add_marker(pytest.mark.e2e)
        elif any(pattern in filename for pattern in integration_patterns):
            item.add_marker(pytest.mark.integration)
        elif any(pattern in filename for pattern in unit_patterns):
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def _clear_cache():
    """Governorate names are cached; start every test cold."""
    from django.core.cache import cache

    cache.clear()
    yield
    cache.clear()


# =============================================================================
# Shared Actors
# =============================================================================


@pytest.fixture
def api_client():
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def cairo(db):
    from providers.tests.factories import GovernorateFactory

    return GovernorateFactory(name_en="Cairo", name_ar="القاهرة")


@pytest.fixture
def giza(db):
    from providers.tests.factories import GovernorateFactory

    return GovernorateFactory(name_en="Giza", name_ar="الجيزة")


@pytest.fixture
def customer(db):
    from authentication.tests.factories import UserFactory

    return UserFactory(full_name="Mona Adel")


@pytest.fixture
def operator(db):
    from authentication.tests.factories import OperatorFactory

    return OperatorFactory()


@pytest.fixture
def provider(db, operator, cairo):
    """Provider in Cairo operated by ``operator``."""
    from providers.tests.factories import ProviderFactory

    return ProviderFactory(owner=operator, governorate=cairo, name_ar="مطبخ النيل")


@pytest.fixture
def super_admin(db):
    from authentication.tests.factories import AdminFactory

    return AdminFactory(is_super_admin=True)


@pytest.fixture
def regional_admin(db, cairo):
    """Admin restricted to Cairo."""
    from authentication.tests.factories import AdminFactory

    return AdminFactory(assigned_governorates=[cairo])
