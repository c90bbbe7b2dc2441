"""
Root pytest configuration for the Django project.

This module configures pytest-django and provides project-wide fixtures.
App-specific fixtures are defined in each app's tests/conftest.py.

Tests run against SQLite unless DATABASE_URL points elsewhere. The
concurrency tests need PostgreSQL and skip themselves on other backends.
"""

import os

import django

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")


def pytest_configure():
    """Configure Django settings before tests run."""
    from django.conf import settings

    # Keep cache-backed lookups off Redis; distributed locks are mocked per test
    settings.CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "ledger-tests",
        }
    }

    django.setup()
