"""
Pre-ledger business records for the donation platform.

These tables are owned by the donation, disbursement and qurban savings
screens. The accounting app reads them (category audit) and writes them
(savings backfill), so only the fields those paths touch are modelled.

Models:
    Transaction: A donation or other canonical money movement
    TransactionPayment: One payment attempt against a transaction
    Disbursement: Funds paid out of the platform
    QurbanPackagePeriod: A purchasable qurban package in one period
    QurbanSavings: A donor's savings plan toward a qurban package
    QurbanSavingsTransaction: Legacy savings ledger (deposits, conversions)
    QurbanSavingsConversion: Savings balance converted into an order

Amounts are integers in the smallest currency unit (whole rupiah).
"""

from __future__ import annotations

from django.db import models

from django_fsm import FSMField, transition

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel


class TransactionType(models.TextChoices):
    """Direction of a business record, used to pick its canonical categories."""

    INCOME = "income", "Income"
    EXPENSE = "expense", "Expense"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    PARTIAL = "partial", "Partial"
    PAID = "paid", "Paid"
    CANCELLED = "cancelled", "Cancelled"


class PaymentVerificationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    VERIFIED = "verified", "Verified"
    REJECTED = "rejected", "Rejected"


class DisbursementStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SUBMITTED = "submitted", "Submitted"
    APPROVED = "approved", "Approved"
    PAID = "paid", "Paid"
    REJECTED = "rejected", "Rejected"


class SavingsStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    PAUSED = "paused", "Paused"
    COMPLETED = "completed", "Completed"
    CONVERTED = "converted", "Converted"
    CANCELLED = "cancelled", "Cancelled"


class SavingsTransactionType(models.TextChoices):
    DEPOSIT = "deposit", "Deposit"
    WITHDRAWAL = "withdrawal", "Withdrawal"
    CONVERSION = "conversion", "Conversion"


class MigrationState(models.TextChoices):
    """
    Migration state of a legacy savings transaction row.

    State Flow:
        UNMIGRATED -> MIGRATED (terminal)
        UNMIGRATED -> SKIPPED (terminal, with skip_reason)
    """

    UNMIGRATED = "unmigrated", "Unmigrated"
    MIGRATED = "migrated", "Migrated"
    SKIPPED = "skipped", "Skipped"


class SkipReason(models.TextChoices):
    UNSUPPORTED = "unsupported", "Unsupported transaction type"
    INVALID_REFERENCE = "invalid_reference", "Unresolvable reference"


# =============================================================================
# Canonical transactions
# =============================================================================


class Transaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    A canonical money movement (donation, zakat, qurban order or saving).

    category is the historical loose reference to the chart of accounts
    (an account code or category key). New rows are validated against the
    chart at write time. Older rows are checked by the category audit.
    """

    transaction_number = models.CharField(
        max_length=64,
        unique=True,
        help_text="Human-readable number, e.g. TRX-20240115-AB12CD34",
    )
    product_type = models.CharField(
        max_length=32,
        help_text="campaign, zakat, qurban or qurban_savings",
    )
    product_id = models.CharField(max_length=64, blank=True, default="")
    product_name = models.CharField(max_length=255, blank=True, default="")
    total_amount = models.PositiveBigIntegerField(default=0)
    donor_name = models.CharField(max_length=255, blank=True, default="")
    donor_email = models.EmailField(blank=True, default="")
    donor_phone = models.CharField(max_length=32, blank=True, default="")
    payment_status = models.CharField(
        max_length=16,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
        db_index=True,
    )
    paid_amount = models.PositiveBigIntegerField(default=0)
    paid_at = models.DateTimeField(null=True, blank=True)
    transaction_type = models.CharField(
        max_length=16,
        choices=TransactionType.choices,
        default=TransactionType.INCOME,
    )
    category = models.CharField(
        max_length=64,
        blank=True,
        default="",
        help_text="Chart-of-accounts code or category key",
    )
    notes = models.TextField(blank=True, default="")
    type_specific_data = models.JSONField(
        default=dict,
        blank=True,
        help_text="Product-specific payload; backfilled rows carry "
        "legacy_savings_transaction_id here",
    )
    ledger_entry = models.ForeignKey(
        "accounting.LedgerEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
        help_text="Journal entry recording this transaction, once posted",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["transaction_type", "category"],
                name="transaction_type_category_idx",
            ),
        ]

    def __str__(self) -> str:
        return self.transaction_number


class TransactionPayment(UUIDPrimaryKeyMixin, BaseModel):
    """One payment submitted against a transaction."""

    payment_number = models.CharField(max_length=64, unique=True)
    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name="payments",
    )
    amount = models.PositiveBigIntegerField()
    payment_date = models.DateTimeField()
    payment_method = models.CharField(max_length=32, blank=True, default="")
    payment_channel = models.CharField(max_length=64, blank=True, default="")
    status = models.CharField(
        max_length=16,
        choices=PaymentVerificationStatus.choices,
        default=PaymentVerificationStatus.PENDING,
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["-payment_date"]

    def __str__(self) -> str:
        return self.payment_number


# =============================================================================
# Disbursements
# =============================================================================


class Disbursement(UUIDPrimaryKeyMixin, BaseModel):
    """Funds paid out to a program, vendor or operational expense."""

    disbursement_number = models.CharField(max_length=64, unique=True)
    disbursement_type = models.CharField(
        max_length=32,
        help_text="campaign, zakat, qurban or operational",
    )
    amount = models.PositiveBigIntegerField()
    transaction_type = models.CharField(
        max_length=16,
        choices=TransactionType.choices,
        default=TransactionType.EXPENSE,
    )
    category = models.CharField(max_length=64, blank=True, default="")
    recipient_name = models.CharField(max_length=255, blank=True, default="")
    purpose = models.TextField(blank=True, default="")
    description = models.TextField(blank=True, default="")
    status = models.CharField(
        max_length=16,
        choices=DisbursementStatus.choices,
        default=DisbursementStatus.DRAFT,
        db_index=True,
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    ledger_entry = models.ForeignKey(
        "accounting.LedgerEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["transaction_type", "category"],
                name="disbursement_type_category_idx",
            ),
        ]

    def __str__(self) -> str:
        return self.disbursement_number


# =============================================================================
# Qurban savings
# =============================================================================


class QurbanPackagePeriod(UUIDPrimaryKeyMixin, BaseModel):
    """
    A qurban package offered in a given period.

    The catalog itself is managed elsewhere. Savings only need to resolve a
    target through (package_id, period_id).
    """

    package_id = models.CharField(max_length=64)
    period_id = models.CharField(max_length=64)
    package_name = models.CharField(max_length=255)
    price = models.PositiveBigIntegerField(default=0)

    class Meta:
        ordering = ["package_name"]
        constraints = [
            models.UniqueConstraint(
                fields=["package_id", "period_id"],
                name="unique_package_period",
            ),
        ]

    def __str__(self) -> str:
        return self.package_name


class QurbanSavings(UUIDPrimaryKeyMixin, BaseModel):
    """A donor's savings plan toward a qurban package."""

    savings_number = models.CharField(max_length=64, unique=True)
    donor_name = models.CharField(max_length=255)
    donor_email = models.EmailField(blank=True, default="")
    donor_phone = models.CharField(max_length=32, blank=True, default="")
    target_package_period = models.ForeignKey(
        QurbanPackagePeriod,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="savings",
    )
    # Older rows reference the package and period separately
    target_package_id = models.CharField(max_length=64, blank=True, default="")
    target_period_id = models.CharField(max_length=64, blank=True, default="")
    target_amount = models.PositiveBigIntegerField(default=0)
    current_amount = models.PositiveBigIntegerField(default=0)
    status = models.CharField(
        max_length=16,
        choices=SavingsStatus.choices,
        default=SavingsStatus.ACTIVE,
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name_plural = "Qurban savings"

    def __str__(self) -> str:
        return self.savings_number

    def resolve_target(self) -> QurbanPackagePeriod | None:
        """Return the target package period, following legacy ids if needed."""
        if self.target_package_period_id:
            return self.target_package_period
        if self.target_package_id and self.target_period_id:
            return QurbanPackagePeriod.objects.filter(
                package_id=self.target_package_id,
                period_id=self.target_period_id,
            ).first()
        return None


class QurbanSavingsTransaction(UUIDPrimaryKeyMixin, BaseModel):
    """
    Legacy pre-ledger savings movement.

    Rows are consumed once by the savings backfill, which records the
    outcome in migration_state.

    State Flow:
        UNMIGRATED -> MIGRATED
        UNMIGRATED -> SKIPPED (skip_reason set)
    """

    savings = models.ForeignKey(
        QurbanSavings,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="legacy_transactions",
    )
    transaction_number = models.CharField(max_length=64, unique=True)
    transaction_type = models.CharField(
        max_length=16,
        help_text="deposit, withdrawal or conversion",
    )
    amount = models.BigIntegerField()
    status = models.CharField(
        max_length=16,
        choices=PaymentVerificationStatus.choices,
        default=PaymentVerificationStatus.PENDING,
    )
    transaction_date = models.DateTimeField(db_index=True)
    verified_at = models.DateTimeField(null=True, blank=True)
    payment_method = models.CharField(max_length=32, blank=True, default="")
    payment_channel = models.CharField(max_length=64, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    migration_state = FSMField(
        default=MigrationState.UNMIGRATED,
        choices=MigrationState.choices,
        db_index=True,
        protected=True,
        help_text="Backfill outcome (managed by FSM)",
    )
    skip_reason = models.CharField(
        max_length=32,
        choices=SkipReason.choices,
        blank=True,
        default="",
    )
    skip_detail = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["transaction_date"]

    def __str__(self) -> str:
        return self.transaction_number

    @transition(
        field=migration_state,
        source=MigrationState.UNMIGRATED,
        target=MigrationState.MIGRATED,
    )
    def mark_migrated(self):
        """
        Record that canonical rows now exist for this legacy row.

        Transition: UNMIGRATED -> MIGRATED
        """
        pass

    @transition(
        field=migration_state,
        source=MigrationState.UNMIGRATED,
        target=MigrationState.SKIPPED,
    )
    def mark_skipped(self, reason: str, detail: str = ""):
        """
        Record that the backfill will never migrate this row.

        Transition: UNMIGRATED -> SKIPPED

        Args:
            reason: SkipReason value
            detail: Free-text explanation for operators
        """
        self.skip_reason = reason
        self.skip_detail = detail


class QurbanSavingsConversion(UUIDPrimaryKeyMixin, BaseModel):
    """Savings balance moved into a qurban order."""

    savings = models.ForeignKey(
        QurbanSavings,
        on_delete=models.PROTECT,
        related_name="conversions",
    )
    converted_amount = models.PositiveBigIntegerField()
    source_legacy_transaction = models.OneToOneField(
        QurbanSavingsTransaction,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="conversion",
        help_text="Legacy row this conversion was backfilled from",
    )
    converted_at = models.DateTimeField()
    converted_by = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    ledger_entry = models.ForeignKey(
        "accounting.LedgerEntry",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )

    class Meta:
        ordering = ["-converted_at"]

    def __str__(self) -> str:
        return f"Conversion({self.savings_id}, {self.converted_amount})"
