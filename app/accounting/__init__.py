"""
Double-entry ledger for the donation platform.

Every monetary movement (donations received, funds disbursed, qurban
savings deposits and conversions) is recorded as a balanced journal entry
against a chart of accounts. Balances and statements are always derived
from the recorded lines.

Public API:
    Models:
        - Account: Chart-of-accounts node
        - LedgerEntry: One economic event (journal entry header)
        - LedgerLine: One debit or credit leg

    Services:
        - ChartOfAccountsService: Account management, canonical categories
        - PostingService: Validates and commits entries
        - ReportService: Balances and financial statements
        - CategoryAuditService: Invalid-category listing for old records
        - LedgerIntegrityService: Re-verifies debit == credit

    Batch jobs:
        - LiabilityModelMigration: Legacy income/expense -> liability model
        - SavingsTransactionBackfill: Legacy qurban savings -> ledger

    Data Types:
        - LineParams, PostEntryParams

    Exceptions:
        - LedgerError (base), DuplicateCode, InvalidNormalBalance,
          InvalidLine, UnbalancedEntry, AccountNotFound, InactiveAccount,
          EntryNotFound, InvalidEntryState, InvalidDateRange,
          MigrationIntegrityViolation, LegacyRowUnresolvable,
          LockAcquisitionError

Usage:
    from accounting.services import PostingService
    from accounting.types import LineParams, PostEntryParams

Amounts are integers in the smallest currency unit (whole rupiah).
"""
