"""
Celery configuration for the donation ledger.

Celery runs the periodic ledger integrity check (scheduled through
django-celery-beat). Batch migrations are operator-run management commands
and do not go through Celery.

This configuration uses Redis as both the message broker and result backend.
Tasks are auto-discovered from all installed Django apps.

Usage:
    from accounting.tasks import verify_ledger_integrity

    verify_ledger_integrity.delay()

For more information, see:
https://docs.celeryq.dev/en/stable/django/first-steps-with-django.html
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("config")

# All Celery settings are prefixed with CELERY_ in settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")

# Looks for a tasks.py module in each installed app
app.autodiscover_tasks()
