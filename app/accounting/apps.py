"""
Accounting app configuration.

Provides the ledger core: chart of accounts, posting engine, reports,
category audit and the historical data migrations.
"""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    """Configuration for the accounting application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"
