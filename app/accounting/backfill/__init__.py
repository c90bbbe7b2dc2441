"""
Offline batch jobs that move historical data into the ledger.

Jobs:
    LiabilityModelMigration: Rewrites lines on retired income/expense
        accounts onto liability accounts
    SavingsTransactionBackfill: Turns legacy qurban savings rows into
        canonical transactions and ledger entries

Both jobs are idempotent, hold a distributed lock while running, and
return a result dataclass of counts.

Usage:
    from accounting.backfill import SavingsTransactionBackfill

    result = SavingsTransactionBackfill(dry_run=True).run()
    result.to_dict()
"""

from accounting.backfill.liability_model import (
    LiabilityMigrationResult,
    LiabilityModelMigration,
)
from accounting.backfill.savings_transactions import (
    BackfillResult,
    SavingsTransactionBackfill,
)

__all__ = [
    "LiabilityModelMigration",
    "LiabilityMigrationResult",
    "SavingsTransactionBackfill",
    "BackfillResult",
]
