"""
Fundraising app configuration.

Holds the pre-ledger business records (transactions, payments,
disbursements and qurban savings) that the accounting app audits and
backfills from.
"""

from django.apps import AppConfig


class FundraisingConfig(AppConfig):
    """Configuration for the fundraising application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "fundraising"
    verbose_name = "Fundraising"
