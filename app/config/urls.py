"""
URL configuration for the donation ledger.

The ledger core is consumed in-process by business logic, management
commands and Celery tasks, so the only routed surface is the Django admin.

URL Structure:
    /admin/                        - Django admin (chart of accounts, journal)

For more information, see:
https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
