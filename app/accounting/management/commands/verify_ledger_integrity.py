"""
Check that every entry balances and the ledger balances in aggregate.

Exits with an error when a violation is found.

Usage:
    python manage.py verify_ledger_integrity
"""

from django.core.management.base import BaseCommand, CommandError

from accounting.services import LedgerIntegrityService


class Command(BaseCommand):
    help = "Verify ledger debit/credit integrity"

    def handle(self, *args, **options):
        report = LedgerIntegrityService.verify()

        self.stdout.write(f"Entries checked: {report.entries_checked}")
        self.stdout.write(f"Total debit: {report.total_debit}")
        self.stdout.write(f"Total credit: {report.total_credit}")

        if not report.is_balanced:
            for number in report.unbalanced_entries:
                self.stderr.write(f"Unbalanced entry: {number}")
            for number in report.short_entries:
                self.stderr.write(f"Entry with fewer than two lines: {number}")
            raise CommandError("Ledger integrity check failed")

        self.stdout.write(self.style.SUCCESS("Ledger is balanced"))
