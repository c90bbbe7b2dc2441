"""
Backfill legacy qurban savings transactions into canonical records.

Safe to rerun: rows migrated by an earlier run are counted as already
migrated and left alone.

Usage:
    python manage.py backfill_savings_transactions
    python manage.py backfill_savings_transactions --dry-run --batch-size 100
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import BaseApplicationError

from accounting.backfill import SavingsTransactionBackfill

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Migrate legacy qurban savings transactions into the ledger"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Process every row, then roll each one back",
        )
        parser.add_argument(
            "--batch-size",
            type=int,
            default=None,
            help="Rows loaded per batch (default: settings.LEDGER_BACKFILL_BATCH_SIZE)",
        )

    def handle(self, *args, **options):
        batch_size = options["batch_size"]
        if batch_size is not None and batch_size < 1:
            raise CommandError("--batch-size must be a positive integer")

        try:
            result = SavingsTransactionBackfill(
                dry_run=options["dry_run"],
                batch_size=batch_size,
            ).run()
        except BaseApplicationError as e:
            logger.error("Savings backfill failed", extra=e.to_dict())
            raise CommandError(str(e)) from e

        prefix = "[DRY RUN] " if result.dry_run else ""
        self.stdout.write(f"{prefix}Backfill finished:")
        self.stdout.write(f"- Processed: {result.processed}")
        self.stdout.write(f"- Migrated deposits: {result.migrated_deposits}")
        self.stdout.write(f"- Migrated conversions: {result.migrated_conversions}")
        self.stdout.write(f"- Skipped (already migrated): {result.skipped_already_migrated}")
        self.stdout.write(f"- Skipped (unsupported type): {result.skipped_unsupported}")
        self.stdout.write(f"- Skipped (invalid refs): {result.skipped_invalid_reference}")
        self.stdout.write(self.style.SUCCESS(f"{prefix}Migrated {result.migrated} rows"))
