"""
Ledger-specific exceptions.

Exception Hierarchy:
    LedgerError (base, BaseApplicationError)
    ├── DuplicateCode - Account code already exists
    ├── InvalidNormalBalance - Normal balance does not match account type
    ├── InvalidLine - Malformed line or too few lines
    ├── UnbalancedEntry - Debits and credits differ
    ├── AccountNotFound (also NotFoundError) - Code does not resolve
    │   └── InactiveAccount - Account exists but rejects postings
    ├── EntryNotFound (also NotFoundError) - Entry id does not exist
    ├── InvalidEntryState - Void/reverse on an entry that is not posted
    ├── InvalidDateRange - Report range ends before it starts
    └── MigrationError
        ├── MigrationIntegrityViolation - Batch would break debit == credit
        └── LegacyRowUnresolvable - One legacy row cannot be migrated

LockAcquisitionError (ConflictError) - Batch lock held by another process

Propagation:
    Posting and report errors surface synchronously to the caller.
    LegacyRowUnresolvable is recovered per row by the backfill (logged,
    counted, skipped). MigrationIntegrityViolation always aborts the batch.

Usage:
    from accounting.exceptions import UnbalancedEntry

    raise UnbalancedEntry(total_debit=100000, total_credit=90000)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from typing import Any


class LedgerError(BaseApplicationError):
    """
    Base exception for all ledger operations.

    Example:
        try:
            posting.post(params)
        except LedgerError as e:
            logger.error("Posting failed", extra=e.to_dict())
    """

    default_error_code: str = "LEDGER_ERROR"


class DuplicateCode(LedgerError):
    default_error_code: str = "DUPLICATE_ACCOUNT_CODE"


class InvalidNormalBalance(LedgerError):
    """
    Raised when an account's normal balance does not match its type.

    Asset and expense accounts are debit-normal; liability, equity and
    income accounts are credit-normal.
    """

    default_error_code: str = "INVALID_NORMAL_BALANCE"


class InvalidLine(LedgerError):
    """
    Raised when a proposed entry has fewer than two lines, or a line is
    not strictly one-sided with a positive integer amount.
    """

    default_error_code: str = "INVALID_LINE"


class UnbalancedEntry(LedgerError):
    """
    Raised when the debit total of a proposed entry differs from its
    credit total.

    Attributes:
        total_debit: Sum of line debits
        total_credit: Sum of line credits
    """

    default_error_code: str = "UNBALANCED_ENTRY"

    def __init__(
        self,
        total_debit: int,
        total_credit: int,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.total_debit = total_debit
        self.total_credit = total_credit

        full_details = {
            "total_debit": total_debit,
            "total_credit": total_credit,
            "difference": total_debit - total_credit,
        }
        if details:
            full_details.update(details)

        super().__init__(
            message=(
                f"Entry is unbalanced: debit {total_debit} != credit {total_credit}"
            ),
            error_code=error_code,
            details=full_details,
        )


class AccountNotFound(LedgerError, NotFoundError):
    """
    Raised when an account code does not resolve.

    Example:
        raise AccountNotFound(
            "Account 9999 not found",
            details={"account_code": "9999"},
        )
    """

    default_error_code: str = "ACCOUNT_NOT_FOUND"


class InactiveAccount(AccountNotFound):
    """
    Raised when posting to a deactivated account.

    Subclasses AccountNotFound: for posting purposes an inactive account
    does not resolve to a postable account.
    """

    default_error_code: str = "INACTIVE_ACCOUNT"


class EntryNotFound(LedgerError, NotFoundError):
    default_error_code: str = "ENTRY_NOT_FOUND"


class InvalidEntryState(LedgerError):
    default_error_code: str = "INVALID_ENTRY_STATE"


class InvalidDateRange(LedgerError, ValidationError):
    """Raised when a report's end date is before its start date."""

    default_error_code: str = "INVALID_DATE_RANGE"


class MigrationError(LedgerError):
    default_error_code: str = "MIGRATION_ERROR"


class MigrationIntegrityViolation(MigrationError):
    """
    Raised when a migration would leave the ledger unbalanced.

    Never recovered locally: the whole batch is rolled back.

    Attributes:
        details: unbalanced entry numbers and aggregate totals
    """

    default_error_code: str = "MIGRATION_INTEGRITY_VIOLATION"


class LegacyRowUnresolvable(MigrationError):
    """
    Raised when a single legacy row cannot be migrated (missing savings,
    missing target, non-positive amount).

    The backfill catches it, counts the row as skipped and continues.
    """

    default_error_code: str = "LEGACY_ROW_UNRESOLVABLE"


class LockAcquisitionError(ConflictError):
    """
    Raised when a distributed lock cannot be acquired.

    Another process holds the lock and it was not released within the
    timeout.

    Example:
        try:
            with DistributedLock("accounting:savings-backfill", blocking=False):
                ...
        except LockAcquisitionError:
            logger.warning("Backfill already running")
    """

    default_error_code: str = "LOCK_ACQUISITION_FAILED"
