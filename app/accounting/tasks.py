"""
Celery tasks for the ledger.

Tasks:
- verify_ledger_integrity: Periodic check that the books balance

Usage:
    # Scheduled hourly via celery-beat (see migrations/0002)
    from accounting.tasks import verify_ledger_integrity

    verify_ledger_integrity.delay()
"""

from __future__ import annotations

import logging

from celery import shared_task

from accounting.services import LedgerIntegrityService

logger = logging.getLogger(__name__)


@shared_task(bind=True)
def verify_ledger_integrity(self) -> dict:
    """
    Verify per-entry and aggregate debit == credit.

    Read-only and safe to run at any time. Violations are logged at error
    level by the service; the report is returned for the result backend.

    Returns:
        IntegrityReport.to_dict()
    """
    report = LedgerIntegrityService.verify()
    logger.info(
        "Ledger integrity task finished",
        extra={"task_id": self.request.id, "is_balanced": report.is_balanced},
    )
    return report.to_dict()
