"""
Posting engine: validates and commits journal entries.

Validation runs in a fixed order before anything is written:
    1. At least two lines                              -> InvalidLine
    2. Every line one-sided with a positive integer    -> InvalidLine
       (descriptions must also fit their column)
    3. sum(debit) == sum(credit), exact integers       -> UnbalancedEntry
    4. Every account code resolves to an active account -> AccountNotFound

Then, inside one transaction, the period's EntrySequence row is locked,
the next entry number is allocated, and the entry and its lines are
inserted. A failure at any point rolls everything back, including the
counter, so rejected posts consume no number.

Balances are not touched here; they are always derived from lines.

Usage:
    from accounting.services import PostingService
    from accounting.types import LineParams, PostEntryParams

    entry = PostingService.post(
        PostEntryParams(
            ref_type=RefType.DONATION,
            ref_id=str(transaction.id),
            posted_at=transaction.paid_at,
            lines=[
                LineParams(account_code="1020", debit=100000),
                LineParams(account_code="2010", credit=100000),
            ],
        )
    )
    entry.entry_number  # "JE-202401-0001"
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from core.services import BaseService

from accounting.exceptions import (
    AccountNotFound,
    EntryNotFound,
    InactiveAccount,
    InvalidEntryState,
    InvalidLine,
    UnbalancedEntry,
)
from accounting.models import (
    Account,
    EntrySequence,
    EntryStatus,
    LedgerEntry,
    LedgerLine,
    RefType,
)
from accounting.types import LINE_DESCRIPTION_MAX_LENGTH, LineParams, PostEntryParams

if TYPE_CHECKING:
    from datetime import datetime

    from django.db.models import QuerySet


MIN_LINES = 2
SEQUENCE_WIDTH = 4


def period_for(posted_at: datetime) -> str:
    """YYYYMM of posted_at in the project time zone."""
    if timezone.is_aware(posted_at):
        posted_at = timezone.localtime(posted_at)
    return posted_at.strftime("%Y%m")


def format_entry_number(period: str, sequence: int) -> str:
    prefix = settings.LEDGER_ENTRY_NUMBER_PREFIX
    return f"{prefix}-{period}-{sequence:0{SEQUENCE_WIDTH}d}"


class PostingService(BaseService):
    """
    Service for committing entries to the ledger.

    All methods are class methods; the service holds no state.
    """

    @classmethod
    def post(cls, params: PostEntryParams) -> LedgerEntry:
        """
        Validate and commit an entry with its lines as one atomic unit.

        Args:
            params: Proposed entry

        Returns:
            The persisted LedgerEntry (lines prefetched)

        Raises:
            InvalidLine: Fewer than two lines, or a malformed line
            UnbalancedEntry: Debit total differs from credit total
            AccountNotFound: A code does not resolve (InactiveAccount if
                it resolves to a deactivated account)
        """
        cls._validate_lines(params.lines)
        accounts = cls._resolve_accounts(params.lines)

        with cls.atomic():
            period = period_for(params.posted_at)
            sequence = cls._allocate_sequence(period)

            entry = LedgerEntry.objects.create(
                entry_number=format_entry_number(period, sequence),
                period=period,
                sequence=sequence,
                ref_type=params.ref_type,
                ref_id=params.ref_id,
                posted_at=params.posted_at,
                memo=params.memo,
                metadata=params.metadata or {},
                created_by=params.created_by,
            )
            LedgerLine.objects.bulk_create(
                [
                    LedgerLine(
                        entry=entry,
                        account=accounts[line.account_code],
                        description=line.description,
                        debit=line.debit,
                        credit=line.credit,
                    )
                    for line in params.lines
                ]
            )

        cls.get_logger().info(
            "Ledger entry posted",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "ref_type": entry.ref_type,
                "ref_id": entry.ref_id,
                "amount": sum(line.debit for line in params.lines),
            },
        )
        return LedgerEntry.objects.prefetch_related("lines__account").get(pk=entry.pk)

    @classmethod
    def void_entry(cls, entry_id: uuid.UUID, reason: str, actor: str = "") -> LedgerEntry:
        """
        Void a posted entry. Its lines drop out of all balances.

        Raises:
            InvalidEntryState: If the entry is not posted
        """
        with cls.atomic():
            entry = cls._lock_entry(entry_id)
            if entry.status != EntryStatus.POSTED:
                raise InvalidEntryState(
                    f"Entry {entry.entry_number} is {entry.status}, not posted",
                    details={"entry_id": str(entry_id), "status": entry.status},
                )
            entry.void(reason=reason)
            entry.save(update_fields=["status", "status_reason", "updated_at"])

        cls.get_logger().info(
            "Ledger entry voided",
            extra={
                "entry_id": str(entry_id),
                "entry_number": entry.entry_number,
                "actor": actor,
                "reason": reason,
            },
        )
        return entry

    @classmethod
    def reverse_entry(
        cls,
        entry_id: uuid.UUID,
        reason: str,
        actor: str = "",
        posted_at: datetime | None = None,
    ) -> LedgerEntry:
        """
        Post a mirror entry that cancels the original, and mark the
        original reversed. Both stay in the books.

        Returns:
            The reversing entry

        Raises:
            InvalidEntryState: If the original is not posted
        """
        with cls.atomic():
            original = cls._lock_entry(entry_id)
            if original.status != EntryStatus.POSTED:
                raise InvalidEntryState(
                    f"Entry {original.entry_number} is {original.status}, not posted",
                    details={"entry_id": str(entry_id), "status": original.status},
                )

            reversal = cls.post(
                PostEntryParams(
                    ref_type=RefType.REVERSAL,
                    ref_id=str(original.id),
                    posted_at=posted_at or timezone.now(),
                    memo=f"Reversal of {original.entry_number}: {reason}",
                    lines=[
                        LineParams(
                            account_code=line.account.code,
                            debit=line.credit,
                            credit=line.debit,
                            description=line.description,
                        )
                        for line in original.lines.select_related("account")
                    ],
                    metadata={"reverses_entry_number": original.entry_number},
                    created_by=actor,
                )
            )

            original.mark_reversed(reason=reason)
            original.save(update_fields=["status", "status_reason", "updated_at"])

        return reversal

    # ==========================================================================
    # Reads
    # ==========================================================================

    @staticmethod
    def get_entry(entry_id: uuid.UUID) -> LedgerEntry | None:
        return (
            LedgerEntry.objects.prefetch_related("lines__account")
            .filter(id=entry_id)
            .first()
        )

    @staticmethod
    def get_entries_by_reference(ref_type: str, ref_id: str) -> QuerySet[LedgerEntry]:
        return LedgerEntry.objects.filter(ref_type=ref_type, ref_id=str(ref_id))

    @staticmethod
    def find_by_legacy_reference(legacy_reference_id: str) -> LedgerEntry | None:
        """The entry a migration job created for a legacy row, if any."""
        return LedgerEntry.objects.filter(
            metadata__legacy_reference_id=str(legacy_reference_id)
        ).first()

    # ==========================================================================
    # Internal
    # ==========================================================================

    @staticmethod
    def _validate_lines(lines: list[LineParams]) -> None:
        if len(lines) < MIN_LINES:
            raise InvalidLine(
                f"An entry needs at least {MIN_LINES} lines, got {len(lines)}",
                error_code="TOO_FEW_LINES",
                details={"line_count": len(lines)},
            )

        for index, line in enumerate(lines):
            amounts = (line.debit, line.credit)
            if any(
                isinstance(amount, bool) or not isinstance(amount, int)
                for amount in amounts
            ):
                raise InvalidLine(
                    f"Line {index} amounts must be integers",
                    details={"line_index": index, "account_code": line.account_code},
                )
            if min(amounts) < 0 or (line.debit > 0) == (line.credit > 0):
                raise InvalidLine(
                    f"Line {index} must have exactly one of debit/credit > 0",
                    details={
                        "line_index": index,
                        "account_code": line.account_code,
                        "debit": line.debit,
                        "credit": line.credit,
                    },
                )
            if len(line.description) > LINE_DESCRIPTION_MAX_LENGTH:
                raise InvalidLine(
                    f"Line {index} description exceeds {LINE_DESCRIPTION_MAX_LENGTH} characters",
                    details={"line_index": index, "account_code": line.account_code},
                )

        total_debit = sum(line.debit for line in lines)
        total_credit = sum(line.credit for line in lines)
        if total_debit != total_credit:
            raise UnbalancedEntry(total_debit=total_debit, total_credit=total_credit)

    @staticmethod
    def _resolve_accounts(lines: list[LineParams]) -> dict[str, Account]:
        codes = {line.account_code for line in lines}
        accounts = {a.code: a for a in Account.objects.filter(code__in=codes)}

        for line in lines:
            account = accounts.get(line.account_code)
            if account is None:
                raise AccountNotFound(
                    f"Account {line.account_code} not found",
                    details={"account_code": line.account_code},
                )
            if not account.is_active:
                raise InactiveAccount(
                    f"Account {line.account_code} is inactive",
                    details={"account_code": line.account_code},
                )
        return accounts

    @staticmethod
    def _allocate_sequence(period: str) -> int:
        """
        Take the next number for the period under a row lock.

        Must run inside the posting transaction so the increment commits or
        rolls back together with the entry.
        """
        try:
            with transaction.atomic():
                EntrySequence.objects.get_or_create(period=period)
        except IntegrityError:
            # Another transaction created the row first; it exists now
            pass

        counter = EntrySequence.objects.select_for_update().get(period=period)
        sequence = counter.next_value
        counter.next_value = sequence + 1
        counter.save(update_fields=["next_value"])
        return sequence

    @staticmethod
    def _lock_entry(entry_id: uuid.UUID) -> LedgerEntry:
        entry = LedgerEntry.objects.select_for_update().filter(id=entry_id).first()
        if entry is None:
            raise EntryNotFound(
                f"Entry {entry_id} not found",
                details={"entry_id": str(entry_id)},
            )
        return entry
