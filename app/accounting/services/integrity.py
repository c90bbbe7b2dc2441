"""
Ledger integrity verification.

Re-checks, from stored lines, the two properties the posting engine
guarantees at write time:
- every non-voided entry has at least two lines and balances
- aggregate debits equal aggregate credits

Run hourly by accounting.tasks.verify_ledger_integrity and on demand by
the verify_ledger_integrity management command.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING

from django.db.models import Count, F, Q, Sum

from core.services import BaseService

from accounting.models import EntryStatus, LedgerLine
from accounting.services.posting import MIN_LINES

if TYPE_CHECKING:
    from typing import Any


@dataclass
class IntegrityReport:
    """Outcome of an integrity check. is_balanced is the overall verdict."""

    unbalanced_entries: list[str] = field(default_factory=list)
    short_entries: list[str] = field(default_factory=list)
    total_debit: int = 0
    total_credit: int = 0
    entries_checked: int = 0

    @property
    def is_balanced(self) -> bool:
        return (
            not self.unbalanced_entries
            and not self.short_entries
            and self.total_debit == self.total_credit
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["is_balanced"] = self.is_balanced
        return data


class LedgerIntegrityService(BaseService):
    @classmethod
    def verify(cls) -> IntegrityReport:
        per_entry = (
            LedgerLine.objects.exclude(entry__status=EntryStatus.VOIDED)
            .values("entry_id", "entry__entry_number")
            .annotate(
                entry_debit=Sum("debit"),
                entry_credit=Sum("credit"),
                line_count=Count("id"),
            )
        )

        report = IntegrityReport(
            entries_checked=per_entry.count(),
            unbalanced_entries=sorted(
                per_entry.filter(~Q(entry_debit=F("entry_credit"))).values_list(
                    "entry__entry_number", flat=True
                )
            ),
            short_entries=sorted(
                per_entry.filter(line_count__lt=MIN_LINES).values_list(
                    "entry__entry_number", flat=True
                )
            ),
        )

        totals = LedgerLine.objects.exclude(entry__status=EntryStatus.VOIDED).aggregate(
            total_debit=Sum("debit"),
            total_credit=Sum("credit"),
        )
        report.total_debit = totals["total_debit"] or 0
        report.total_credit = totals["total_credit"] or 0

        logger = cls.get_logger()
        if report.is_balanced:
            logger.info(
                "Ledger integrity verified",
                extra={"entries_checked": report.entries_checked},
            )
        else:
            logger.error(
                "Ledger integrity violation",
                extra={
                    "unbalanced_entries": report.unbalanced_entries[:50],
                    "short_entries": report.short_entries[:50],
                    "total_debit": report.total_debit,
                    "total_credit": report.total_credit,
                },
            )
        return report
