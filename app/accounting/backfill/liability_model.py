"""
Liability-model migration.

Earlier bookkeeping recorded campaign donations as income (4010) and their
payouts as expenses (5010). Under the liability model those funds are held
in trust, so the lines are moved onto the donation liability account
(2010) and the legacy accounts are retired.

The whole job runs in one transaction:
    1. Resolve every target account (must exist and be active)
    2. Rewrite lines from each source code to its target
    3. Re-verify the books with LedgerIntegrityService
    4. Retire the source accounts (deactivate, tag the name)

If verification fails, MigrationIntegrityViolation is raised and nothing
is committed. A dry run performs every step, then rolls back.

Rerunning is a no-op: once moved, no lines reference the source codes and
retiring an already-retired account changes nothing.

Usage:
    from accounting.backfill import LiabilityModelMigration

    result = LiabilityModelMigration(mapping={"4010": "2010"}).run()
    result.lines_rewritten
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction

from core.exceptions import ValidationError
from core.services import BaseService

from accounting.exceptions import MigrationIntegrityViolation
from accounting.locks import DistributedLock
from accounting.models import Account, LedgerLine
from accounting.services.chart_of_accounts import ChartOfAccountsService
from accounting.services.integrity import LedgerIntegrityService

if TYPE_CHECKING:
    from typing import Any


LOCK_KEY = "accounting:liability-migration"
LOCK_TTL = 3600


@dataclass
class LiabilityMigrationResult:
    mapping: dict[str, str]
    dry_run: bool = False
    lines_rewritten: int = 0
    entries_touched: int = 0
    lines_by_source: dict[str, int] = field(default_factory=dict)
    accounts_retired: list[str] = field(default_factory=list)
    missing_sources: list[str] = field(default_factory=list)
    total_debit: int = 0
    total_credit: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LiabilityModelMigration(BaseService):
    """
    Moves lines off legacy accounts according to a code mapping.

    Args:
        mapping: {source_code: target_code}; defaults to
            settings.LEDGER_LIABILITY_MIGRATION_MAP
        dry_run: Roll back after verification instead of committing
    """

    def __init__(self, mapping: dict[str, str] | None = None, dry_run: bool = False):
        self.mapping = dict(
            mapping if mapping is not None else settings.LEDGER_LIABILITY_MIGRATION_MAP
        )
        self.dry_run = dry_run

    def run(self) -> LiabilityMigrationResult:
        """
        Raises:
            ValidationError: Empty mapping or a code mapped onto itself
            AccountNotFound: A target code does not resolve or is inactive
            MigrationIntegrityViolation: Verification failed; rolled back
            LockAcquisitionError: Another migration is running
        """
        self._validate_mapping()
        logger = self.get_logger()
        result = LiabilityMigrationResult(mapping=self.mapping, dry_run=self.dry_run)

        logger.info(
            "Liability migration started",
            extra={"mapping": self.mapping, "dry_run": self.dry_run},
        )

        with DistributedLock(LOCK_KEY, ttl=LOCK_TTL, blocking=False):
            with transaction.atomic():
                targets = {
                    code: ChartOfAccountsService.resolve_postable_account(code)
                    for code in set(self.mapping.values())
                }
                sources = {
                    a.code: a
                    for a in Account.objects.select_for_update().filter(
                        code__in=self.mapping.keys()
                    )
                }
                result.missing_sources = sorted(set(self.mapping) - set(sources))

                touched_entry_ids: set = set()
                for code, account in sorted(sources.items()):
                    lines = LedgerLine.objects.filter(account=account)
                    touched_entry_ids.update(lines.values_list("entry_id", flat=True))
                    count = lines.update(account=targets[self.mapping[code]])
                    result.lines_by_source[code] = count
                    result.lines_rewritten += count

                result.entries_touched = len(touched_entry_ids)
                self._verify(result)

                for code in sorted(sources):
                    ChartOfAccountsService.retire_account(code)
                    result.accounts_retired.append(code)

                if self.dry_run:
                    transaction.set_rollback(True)

        if self.dry_run:
            ChartOfAccountsService.invalidate_cache()

        logger.info(
            "Liability migration finished",
            extra={
                "dry_run": self.dry_run,
                "lines_rewritten": result.lines_rewritten,
                "entries_touched": result.entries_touched,
                "accounts_retired": result.accounts_retired,
                "missing_sources": result.missing_sources,
            },
        )
        return result

    def _validate_mapping(self) -> None:
        if not self.mapping:
            raise ValidationError(
                "Account mapping is empty",
                error_code="EMPTY_MIGRATION_MAP",
            )
        self_mapped = sorted(code for code, target in self.mapping.items() if code == target)
        if self_mapped:
            raise ValidationError(
                "Account codes cannot be mapped onto themselves",
                error_code="INVALID_MIGRATION_MAP",
                details={"codes": self_mapped},
            )

    def _verify(self, result: LiabilityMigrationResult) -> None:
        report = LedgerIntegrityService.verify()
        result.total_debit = report.total_debit
        result.total_credit = report.total_credit

        if not report.is_balanced:
            raise MigrationIntegrityViolation(
                "Liability migration would leave the ledger unbalanced",
                details={
                    "unbalanced_entries": report.unbalanced_entries[:50],
                    "short_entries": report.short_entries[:50],
                    "total_debit": report.total_debit,
                    "total_credit": report.total_credit,
                },
            )
