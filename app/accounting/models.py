"""
Ledger models for double-entry bookkeeping.

This module defines the persisted state of the ledger core:
- Account: A node in the chart of accounts
- LedgerEntry: One economic event (journal entry header)
- LedgerLine: One debit or credit leg of an entry
- EntrySequence: Per-period counter behind entry numbers

Every entry owns at least two lines whose debits and credits sum to the
same amount. Balances are never stored; they are always aggregated from
lines (see Account.get_balance and accounting.services.reports).

Usage:
    from accounting.models import Account, AccountType, NormalBalance

    bank = Account.objects.get(code="1020")
    balance = bank.get_balance()  # Positive when in its normal direction
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from django_fsm import FSMField, transition

from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel

if TYPE_CHECKING:
    from datetime import datetime


class AccountType(models.TextChoices):
    """
    Top-level classification of an account.

    Values:
        ASSET: Resources held (cash, bank, receivables)
        LIABILITY: Obligations, including donor funds held in trust
        EQUITY: Foundation capital and retained surplus
        INCOME: Revenue recognized by the foundation
        EXPENSE: Program and operational costs
    """

    ASSET = "asset", "Asset"
    LIABILITY = "liability", "Liability"
    EQUITY = "equity", "Equity"
    INCOME = "income", "Income"
    EXPENSE = "expense", "Expense"


class NormalBalance(models.TextChoices):
    """Side on which an account naturally accumulates value."""

    DEBIT = "debit", "Debit"
    CREDIT = "credit", "Credit"


NORMAL_BALANCE_FOR_TYPE = {
    AccountType.ASSET: NormalBalance.DEBIT,
    AccountType.EXPENSE: NormalBalance.DEBIT,
    AccountType.LIABILITY: NormalBalance.CREDIT,
    AccountType.EQUITY: NormalBalance.CREDIT,
    AccountType.INCOME: NormalBalance.CREDIT,
}


class EntryStatus(models.TextChoices):
    """
    Lifecycle of a ledger entry.

    State Flow:
        POSTED -> VOIDED   (excluded from every balance and report)
        POSTED -> REVERSED (kept; a mirror entry cancels it out)
    """

    POSTED = "posted", "Posted"
    VOIDED = "voided", "Voided"
    REVERSED = "reversed", "Reversed"


class RefType(models.TextChoices):
    """Origin of a ledger entry. ref_id points at the originating record."""

    DONATION = "donation", "Donation"
    DISBURSEMENT = "disbursement", "Disbursement"
    QURBAN_SAVINGS = "qurban_savings", "Qurban Savings"
    QURBAN_CONVERSION = "qurban_conversion", "Qurban Savings Conversion"
    ZAKAT = "zakat", "Zakat"
    MIGRATION_BACKFILL = "migration_backfill", "Migration Backfill"
    REVERSAL = "reversal", "Reversal"
    ADJUSTMENT = "adjustment", "Adjustment"


# =============================================================================
# Chart of accounts
# =============================================================================


class Account(UUIDPrimaryKeyMixin, BaseModel):
    """
    A node in the chart of accounts.

    Accounts are never deleted once a line references them (lines use
    on_delete=PROTECT); they are deactivated instead. Inactive accounts
    reject new postings but keep their history in every report.

    Fields:
        code: Stable string key (e.g. "1020")
        name: Display name
        type: asset, liability, equity, income or expense
        normal_balance: debit for asset/expense, credit otherwise
        category: Free-form sub-classification, also used as a category key
        parent: Optional header account this account rolls up into
        is_active: Whether new lines may post to this account
        is_system: Seeded by the platform rather than an administrator

    Constraints:
        - code is unique
        - normal_balance must match the account type
    """

    code = models.CharField(
        max_length=20,
        unique=True,
        help_text="Stable account code, e.g. 1020",
    )
    name = models.CharField(max_length=255)
    type = models.CharField(
        max_length=16,
        choices=AccountType.choices,
        db_index=True,
    )
    normal_balance = models.CharField(
        max_length=8,
        choices=NormalBalance.choices,
    )
    category = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Sub-classification, e.g. bank, donation_liability",
    )
    parent = models.ForeignKey(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="children",
    )
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(
        default=True,
        help_text="Inactive accounts reject new postings",
    )
    is_system = models.BooleanField(default=False)

    class Meta:
        ordering = ["code"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(
                        type__in=[AccountType.ASSET, AccountType.EXPENSE],
                        normal_balance=NormalBalance.DEBIT,
                    )
                    | Q(
                        type__in=[
                            AccountType.LIABILITY,
                            AccountType.EQUITY,
                            AccountType.INCOME,
                        ],
                        normal_balance=NormalBalance.CREDIT,
                    )
                ),
                name="account_normal_balance_matches_type",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.code} {self.name}"

    def clean(self) -> None:
        expected = NORMAL_BALANCE_FOR_TYPE.get(self.type)
        if expected is not None and self.normal_balance != expected:
            raise DjangoValidationError(
                {
                    "normal_balance": (
                        f"{self.get_type_display()} accounts must have a "
                        f"{expected} normal balance"
                    )
                }
            )

    @property
    def is_credit_normal(self) -> bool:
        return self.normal_balance == NormalBalance.CREDIT

    def get_balance(self, as_of: datetime | None = None) -> int:
        """
        Balance in the account's natural direction.

        Sums debit minus credit over non-voided lines posted up to as_of,
        then flips the sign for credit-normal accounts, so a positive value
        always means a normal balance.
        """
        lines = self.lines.exclude(entry__status=EntryStatus.VOIDED)
        if as_of is not None:
            lines = lines.filter(entry__posted_at__lte=as_of)

        totals = lines.aggregate(
            total_debit=Coalesce(Sum("debit"), 0, output_field=models.BigIntegerField()),
            total_credit=Coalesce(Sum("credit"), 0, output_field=models.BigIntegerField()),
        )
        return signed_balance(
            self.normal_balance, totals["total_debit"], totals["total_credit"]
        )


def signed_balance(normal_balance: str, total_debit: int, total_credit: int) -> int:
    """debit - credit, negated for credit-normal accounts."""
    raw = total_debit - total_credit
    return -raw if normal_balance == NormalBalance.CREDIT else raw


# =============================================================================
# Journal
# =============================================================================


class EntrySequence(models.Model):
    """
    Per-period counter used to number entries.

    The posting engine locks the row for its period with
    select_for_update(), so concurrent posts in one period are numbered
    strictly in commit order and never collide.
    """

    period = models.CharField(
        max_length=6,
        unique=True,
        help_text="Posting period as YYYYMM",
    )
    next_value = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["period"]

    def __str__(self) -> str:
        return f"{self.period}: next {self.next_value}"


class LedgerEntry(UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    One economic event recorded as a balanced set of lines.

    Entries are created together with their lines in a single transaction
    by PostingService.post and are immutable afterwards, apart from the
    status transitions below. They are never physically deleted.

    Fields:
        entry_number: Human-readable number, e.g. JE-202401-0007
        period: Posting period (YYYYMM) derived from posted_at
        sequence: Position within the period
        ref_type: Origin of the entry (donation, disbursement, ...)
        ref_id: Weak reference to the originating record
        posted_at: When the economic event happened
        memo: Free-text description
        status: posted, voided or reversed (managed by FSM)
        status_reason: Why the entry was voided or reversed
        created_by: User or job that created the entry
        metadata: JSON; migrated entries carry legacy_reference_id
    """

    entry_number = models.CharField(max_length=32, unique=True)
    period = models.CharField(max_length=6, db_index=True)
    sequence = models.PositiveIntegerField()
    ref_type = models.CharField(
        max_length=32,
        choices=RefType.choices,
        db_index=True,
    )
    ref_id = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Id of the originating record (not a foreign key)",
    )
    posted_at = models.DateTimeField(db_index=True)
    memo = models.TextField(blank=True, default="")
    status = FSMField(
        default=EntryStatus.POSTED,
        choices=EntryStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current status of the entry (managed by FSM)",
    )
    status_reason = models.TextField(blank=True, default="")
    created_by = models.CharField(max_length=128, blank=True, default="")

    class Meta:
        ordering = ["-posted_at", "-sequence"]
        verbose_name_plural = "Ledger entries"
        indexes = [
            models.Index(fields=["ref_type", "ref_id"], name="ledger_entry_ref_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["period", "sequence"],
                name="unique_entry_period_sequence",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.entry_number} ({self.status})"

    @property
    def total_debit(self) -> int:
        return sum(line.debit for line in self.lines.all())

    @property
    def total_credit(self) -> int:
        return sum(line.credit for line in self.lines.all())

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=EntryStatus.POSTED,
        target=EntryStatus.VOIDED,
    )
    def void(self, reason: str = ""):
        """
        Void the entry.

        Transition: POSTED -> VOIDED

        Voided entries drop out of balances and statements but stay in
        the journal for audit.
        """
        self.status_reason = reason

    @transition(
        field=status,
        source=EntryStatus.POSTED,
        target=EntryStatus.REVERSED,
    )
    def mark_reversed(self, reason: str = ""):
        """
        Mark the entry as reversed by a mirror entry.

        Transition: POSTED -> REVERSED
        """
        self.status_reason = reason


class LedgerLine(models.Model):
    """
    One debit or credit leg of a ledger entry.

    Exactly one of debit/credit is positive; the other is zero. The entry
    owns its lines; accounts are only referenced and cannot be deleted
    while lines point at them.
    """

    entry = models.ForeignKey(
        LedgerEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="lines",
    )
    description = models.CharField(max_length=255, blank=True, default="")
    debit = models.PositiveBigIntegerField(default=0)
    credit = models.PositiveBigIntegerField(default=0)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(debit__gt=0, credit=0) | Q(debit=0, credit__gt=0)
                ),
                name="ledger_line_one_sided",
            ),
        ]

    def __str__(self) -> str:
        side = f"Dr {self.debit}" if self.debit else f"Cr {self.credit}"
        return f"{self.account_id} {side}"
