"""
Qurban savings backfill.

Before the canonical transaction model existed, qurban savings kept their
own ledger in QurbanSavingsTransaction. This job turns each legacy row
into its canonical equivalent exactly once:

    deposit    -> Transaction + TransactionPayment, and for verified
                  deposits a ledger entry Dr bank / Cr savings liability
    conversion -> QurbanSavingsConversion, savings marked converted, and
                  a ledger entry Dr savings liability / Cr donation liability
    other      -> skipped as unsupported

Idempotency:
    Before any write, each row is checked for a marker left by an earlier
    run (the legacy id in Transaction.type_specific_data, the conversion's
    source_legacy_transaction, or legacy_reference_id in entry metadata).
    Marked rows are counted as already migrated. Each row commits in its
    own transaction, so the job can be killed and restarted at any point.

Per-row failures (missing savings or target, non-positive amount) are
logged, counted as skipped_invalid_reference, recorded on the row, and
the batch continues.

Usage:
    from accounting.backfill import SavingsTransactionBackfill

    result = SavingsTransactionBackfill(batch_size=200).run()
    print(result.to_dict())
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.services import BaseService

from accounting.exceptions import LegacyRowUnresolvable
from accounting.locks import DistributedLock
from accounting.models import RefType
from accounting.services.posting import PostingService
from accounting.types import LineParams, PostEntryParams
from fundraising.models import (
    MigrationState,
    PaymentStatus,
    PaymentVerificationStatus,
    QurbanSavingsConversion,
    QurbanSavingsTransaction,
    SavingsStatus,
    SavingsTransactionType,
    SkipReason,
    Transaction,
    TransactionPayment,
    TransactionType,
)

if TYPE_CHECKING:
    from datetime import datetime
    from typing import Any


LOCK_KEY = "accounting:savings-backfill"
LOCK_TTL = 600

PRODUCT_TYPE = "qurban_savings"
BACKFILL_SOURCE = "qurban_savings_transactions"
LEGACY_ID_KEY = "legacy_savings_transaction_id"

MIGRATED_DEPOSIT = "migrated_deposit"
MIGRATED_CONVERSION = "migrated_conversion"
SKIPPED_ALREADY_MIGRATED = "skipped_already_migrated"
SKIPPED_UNSUPPORTED = "skipped_unsupported"
SKIPPED_INVALID_REFERENCE = "skipped_invalid_reference"

SKIP_OUTCOME = {
    SkipReason.UNSUPPORTED: SKIPPED_UNSUPPORTED,
    SkipReason.INVALID_REFERENCE: SKIPPED_INVALID_REFERENCE,
}

# legacy row status -> (transaction payment_status, payment status)
STATUS_MAP = {
    PaymentVerificationStatus.VERIFIED: (
        PaymentStatus.PAID,
        PaymentVerificationStatus.VERIFIED,
    ),
    PaymentVerificationStatus.PENDING: (
        PaymentStatus.PROCESSING,
        PaymentVerificationStatus.PENDING,
    ),
}
FALLBACK_STATUS = (PaymentStatus.PENDING, PaymentVerificationStatus.REJECTED)


@dataclass
class BackfillResult:
    dry_run: bool = False
    processed: int = 0
    migrated: int = 0
    migrated_deposits: int = 0
    migrated_conversions: int = 0
    skipped_already_migrated: int = 0
    skipped_unsupported: int = 0
    skipped_invalid_reference: int = 0

    def record(self, outcome: str) -> None:
        self.processed += 1
        if outcome == MIGRATED_DEPOSIT:
            self.migrated += 1
            self.migrated_deposits += 1
        elif outcome == MIGRATED_CONVERSION:
            self.migrated += 1
            self.migrated_conversions += 1
        else:
            setattr(self, outcome, getattr(self, outcome) + 1)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class SavingsTransactionBackfill(BaseService):
    """
    Migrates legacy qurban savings rows in transaction_date order.

    Args:
        dry_run: Process every row, then roll each one back
        batch_size: Rows loaded per batch; defaults to
            settings.LEDGER_BACKFILL_BATCH_SIZE
    """

    def __init__(self, dry_run: bool = False, batch_size: int | None = None):
        self.dry_run = dry_run
        self.batch_size = batch_size or settings.LEDGER_BACKFILL_BATCH_SIZE

    def run(self) -> BackfillResult:
        """
        Raises:
            LockAcquisitionError: Another backfill is running
        """
        logger = self.get_logger()
        result = BackfillResult(dry_run=self.dry_run)

        row_ids = list(
            QurbanSavingsTransaction.objects.order_by("transaction_date", "id").values_list(
                "id", flat=True
            )
        )
        logger.info(
            "Savings backfill started",
            extra={"rows": len(row_ids), "dry_run": self.dry_run},
        )

        with DistributedLock(LOCK_KEY, ttl=LOCK_TTL, blocking=False) as lock:
            for start in range(0, len(row_ids), self.batch_size):
                for row_id in row_ids[start : start + self.batch_size]:
                    result.record(self._process(row_id))
                lock.extend()
                logger.info(
                    "Savings backfill progress",
                    extra={"processed": result.processed, "total": len(row_ids)},
                )

        logger.info("Savings backfill finished", extra=result.to_dict())
        return result

    # ==========================================================================
    # Per-row processing
    # ==========================================================================

    def _process(self, row_id) -> str:
        try:
            with transaction.atomic():
                row = QurbanSavingsTransaction.objects.select_for_update().get(pk=row_id)
                outcome = self._migrate_row(row)
                if self.dry_run:
                    transaction.set_rollback(True)
            return outcome
        except LegacyRowUnresolvable as e:
            self.get_logger().warning(
                "Legacy savings row skipped",
                extra={"legacy_transaction_id": str(row_id), **e.to_dict()},
            )
            detail = e.message

        with transaction.atomic():
            row = QurbanSavingsTransaction.objects.select_for_update().get(pk=row_id)
            row.mark_skipped(SkipReason.INVALID_REFERENCE, detail=detail)
            row.save(update_fields=["migration_state", "skip_reason", "skip_detail", "updated_at"])
            if self.dry_run:
                transaction.set_rollback(True)
        return SKIPPED_INVALID_REFERENCE

    def _migrate_row(self, row: QurbanSavingsTransaction) -> str:
        if row.migration_state == MigrationState.MIGRATED:
            return SKIPPED_ALREADY_MIGRATED
        if row.migration_state == MigrationState.SKIPPED:
            return SKIP_OUTCOME.get(row.skip_reason, SKIPPED_INVALID_REFERENCE)

        if row.transaction_type == SavingsTransactionType.CONVERSION:
            if self._conversion_migrated(row):
                self._mark_migrated(row)
                return SKIPPED_ALREADY_MIGRATED
            self._migrate_conversion(row)
            self._mark_migrated(row)
            return MIGRATED_CONVERSION

        if row.transaction_type == SavingsTransactionType.DEPOSIT:
            if self._deposit_migrated(row):
                self._mark_migrated(row)
                return SKIPPED_ALREADY_MIGRATED
            self._migrate_deposit(row)
            self._mark_migrated(row)
            return MIGRATED_DEPOSIT

        row.mark_skipped(SkipReason.UNSUPPORTED, detail=row.transaction_type)
        row.save(update_fields=["migration_state", "skip_reason", "skip_detail", "updated_at"])
        return SKIPPED_UNSUPPORTED

    @staticmethod
    def _mark_migrated(row: QurbanSavingsTransaction) -> None:
        row.mark_migrated()
        row.save(update_fields=["migration_state", "updated_at"])

    # ==========================================================================
    # Idempotency predicates (pure reads)
    # ==========================================================================

    @staticmethod
    def _deposit_migrated(row: QurbanSavingsTransaction) -> bool:
        legacy_id = str(row.id)
        return (
            Transaction.objects.filter(
                **{f"type_specific_data__{LEGACY_ID_KEY}": legacy_id}
            ).exists()
            or PostingService.find_by_legacy_reference(legacy_id) is not None
        )

    @staticmethod
    def _conversion_migrated(row: QurbanSavingsTransaction) -> bool:
        return (
            QurbanSavingsConversion.objects.filter(source_legacy_transaction=row).exists()
            or PostingService.find_by_legacy_reference(str(row.id)) is not None
        )

    # ==========================================================================
    # Synthesis
    # ==========================================================================

    def _migrate_deposit(self, row: QurbanSavingsTransaction) -> Transaction:
        savings = self._require_savings(row)
        target = savings.resolve_target()
        if target is None:
            raise LegacyRowUnresolvable(
                f"Target package period for savings {savings.savings_number} not found",
                details={
                    "legacy_transaction_id": str(row.id),
                    "savings_id": str(savings.id),
                },
            )
        amount = self._require_amount(row)

        tx_status, payment_status = STATUS_MAP.get(row.status, FALLBACK_STATUS)
        verified = row.status == PaymentVerificationStatus.VERIFIED
        legacy_date = row.transaction_date
        paid_at = (row.verified_at or legacy_date) if verified else None
        suffix = f"{_date_part(legacy_date)}-{row.id.hex.upper()}"

        canonical = Transaction.objects.create(
            transaction_number=f"TRX-SAV-BF-{suffix}",
            product_type=PRODUCT_TYPE,
            product_id=str(target.id),
            product_name=target.package_name,
            total_amount=amount,
            donor_name=savings.donor_name,
            donor_email=savings.donor_email,
            donor_phone=savings.donor_phone,
            payment_status=tx_status,
            paid_amount=amount if row.status in STATUS_MAP else 0,
            paid_at=paid_at,
            transaction_type=TransactionType.INCOME,
            category=settings.LEDGER_SAVINGS_LIABILITY_ACCOUNT_CODE,
            notes=row.notes or "Backfill legacy qurban savings transaction",
            type_specific_data={
                "payment_type": "savings",
                "savings_id": str(savings.id),
                "savings_number": savings.savings_number,
                "target_package_period_id": str(target.id),
                LEGACY_ID_KEY: str(row.id),
                "backfill_source": BACKFILL_SOURCE,
            },
        )

        rejected = payment_status == PaymentVerificationStatus.REJECTED
        TransactionPayment.objects.create(
            payment_number=f"PAY-SAV-BF-{suffix}",
            transaction=canonical,
            amount=amount,
            payment_date=legacy_date,
            payment_method=row.payment_method or "bank_transfer",
            payment_channel=row.payment_channel,
            status=payment_status,
            verified_at=paid_at,
            rejected_at=(row.verified_at or legacy_date) if rejected else None,
            rejection_reason=(row.notes or "Rejected (legacy)") if rejected else "",
            notes=row.notes,
        )

        if verified:
            entry = PostingService.post(
                PostEntryParams(
                    ref_type=RefType.QURBAN_SAVINGS,
                    ref_id=canonical.id,
                    posted_at=paid_at,
                    memo=f"Setoran tabungan qurban {savings.savings_number}",
                    lines=[
                        LineParams(
                            account_code=settings.LEDGER_BANK_ACCOUNT_CODE,
                            debit=amount,
                        ),
                        LineParams(
                            account_code=settings.LEDGER_SAVINGS_LIABILITY_ACCOUNT_CODE,
                            credit=amount,
                        ),
                    ],
                    metadata={"legacy_reference_id": str(row.id)},
                    created_by="savings-backfill",
                )
            )
            canonical.ledger_entry = entry
            canonical.save(update_fields=["ledger_entry", "updated_at"])

        return canonical

    def _migrate_conversion(self, row: QurbanSavingsTransaction) -> QurbanSavingsConversion:
        savings = self._require_savings(row)
        amount = self._require_amount(row)
        converted_at = row.verified_at or row.transaction_date

        conversion = QurbanSavingsConversion.objects.create(
            savings=savings,
            converted_amount=amount,
            source_legacy_transaction=row,
            converted_at=converted_at,
            notes=row.notes or "Backfill legacy conversion",
        )
        savings.status = SavingsStatus.CONVERTED
        savings.save(update_fields=["status", "updated_at"])

        conversion.ledger_entry = PostingService.post(
            PostEntryParams(
                ref_type=RefType.QURBAN_CONVERSION,
                ref_id=conversion.id,
                posted_at=converted_at,
                memo=f"Konversi tabungan qurban {savings.savings_number}",
                lines=[
                    LineParams(
                        account_code=settings.LEDGER_SAVINGS_LIABILITY_ACCOUNT_CODE,
                        debit=amount,
                    ),
                    LineParams(
                        account_code=settings.LEDGER_DONATION_LIABILITY_ACCOUNT_CODE,
                        credit=amount,
                    ),
                ],
                metadata={"legacy_reference_id": str(row.id)},
                created_by="savings-backfill",
            )
        )
        conversion.save(update_fields=["ledger_entry", "updated_at"])
        return conversion

    @staticmethod
    def _require_savings(row: QurbanSavingsTransaction):
        if row.savings_id is None:
            raise LegacyRowUnresolvable(
                f"Legacy row {row.transaction_number} has no savings",
                details={"legacy_transaction_id": str(row.id)},
            )
        return row.savings

    @staticmethod
    def _require_amount(row: QurbanSavingsTransaction) -> int:
        if row.amount is None or row.amount <= 0:
            raise LegacyRowUnresolvable(
                f"Legacy row {row.transaction_number} has non-positive amount",
                details={"legacy_transaction_id": str(row.id), "amount": row.amount},
            )
        return row.amount


def _date_part(value: datetime) -> str:
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime("%Y%m%d")
