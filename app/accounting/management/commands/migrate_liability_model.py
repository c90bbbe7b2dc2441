"""
Move ledger lines off legacy income/expense accounts onto liability accounts.

Usage:
    # Default mapping from settings.LEDGER_LIABILITY_MIGRATION_MAP
    python manage.py migrate_liability_model

    # Verify without committing
    python manage.py migrate_liability_model --dry-run

    # Explicit mapping
    python manage.py migrate_liability_model --map 4010=2010 --map 5010=2010
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import BaseApplicationError

from accounting.backfill import LiabilityModelMigration

logger = logging.getLogger(__name__)


def parse_mapping(pairs):
    mapping = {}
    for pair in pairs:
        source, sep, target = pair.partition("=")
        if not sep or not source.strip() or not target.strip():
            raise CommandError(f"Invalid --map value {pair!r}, expected OLD=NEW")
        mapping[source.strip()] = target.strip()
    return mapping


class Command(BaseCommand):
    help = "Rewrite legacy account lines onto the liability model"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Run and verify the migration, then roll it back",
        )
        parser.add_argument(
            "--map",
            action="append",
            default=[],
            metavar="OLD=NEW",
            help="Account code mapping (repeatable). Defaults to settings.",
        )

    def handle(self, *args, **options):
        mapping = parse_mapping(options["map"]) or None
        dry_run = options["dry_run"]

        try:
            result = LiabilityModelMigration(mapping=mapping, dry_run=dry_run).run()
        except BaseApplicationError as e:
            logger.error("Liability migration failed", extra=e.to_dict())
            raise CommandError(str(e)) from e

        prefix = "[DRY RUN] " if dry_run else ""
        for code, count in result.lines_by_source.items():
            self.stdout.write(f"{prefix}{code} -> {result.mapping[code]}: {count} lines")
        for code in result.missing_sources:
            self.stdout.write(self.style.WARNING(f"{prefix}{code}: account not found, skipped"))

        self.stdout.write(
            self.style.SUCCESS(
                f"{prefix}Rewrote {result.lines_rewritten} lines across "
                f"{result.entries_touched} entries; retired "
                f"{', '.join(result.accounts_retired) or 'no accounts'}. "
                f"Ledger totals: debit {result.total_debit}, credit {result.total_credit}"
            )
        )
