"""
Accounting services.

This module provides:
- ChartOfAccountsService: Manages accounts and canonical category keys
- PostingService: Validates and commits journal entries
- ReportService: Balances, balance sheet and income statement
- CategoryAuditService: Flags business records with invalid categories
- LedgerIntegrityService: Re-verifies that the books balance

Usage:
    from accounting.services import PostingService, ReportService

    entry = PostingService.post(params)
    balance = ReportService.account_balance("2010")

    statement = ReportService.financial_statement(
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 31),
    )
"""

from accounting.services.category_audit import (
    AuditRow,
    CategoryAuditResult,
    CategoryAuditService,
)
from accounting.services.chart_of_accounts import ChartOfAccountsService
from accounting.services.integrity import IntegrityReport, LedgerIntegrityService
from accounting.services.posting import PostingService
from accounting.services.reports import (
    AccountBalance,
    BalanceSheet,
    FinancialStatement,
    IncomeStatement,
    ReportService,
    StatementRow,
)

__all__ = [
    # Chart of accounts
    "ChartOfAccountsService",
    # Posting
    "PostingService",
    # Reports
    "ReportService",
    "AccountBalance",
    "BalanceSheet",
    "FinancialStatement",
    "IncomeStatement",
    "StatementRow",
    # Category audit
    "CategoryAuditService",
    "CategoryAuditResult",
    "AuditRow",
    # Integrity
    "LedgerIntegrityService",
    "IntegrityReport",
]
