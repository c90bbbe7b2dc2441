"""
Create the default chart of accounts.

Existing codes are left untouched, so the command is safe to rerun.

Usage:
    python manage.py seed_chart_of_accounts
"""

from django.core.management.base import BaseCommand

from accounting.services import ChartOfAccountsService


class Command(BaseCommand):
    help = "Seed the default chart of accounts"

    def handle(self, *args, **options):
        counts = ChartOfAccountsService.seed_chart_of_accounts()
        self.stdout.write(
            self.style.SUCCESS(
                f"Chart of accounts seeded: {counts['created']} created, "
                f"{counts['existing']} already present"
            )
        )
