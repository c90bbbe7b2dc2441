"""
Balance and report engine.

Aggregates ledger lines into account balances, a balance sheet and an
income statement. Nothing here writes; every figure is derived from lines
at call time, ignoring voided entries.

Sign convention:
    balance = sum(debit) - sum(credit), negated for credit-normal accounts.
    A positive balance is always a balance in the account's natural
    direction (an asset with more debits, a liability with more credits).

Balance sheet vs income statement:
    Asset, liability and equity rows are cumulative up to end_date.
    Income and expense rows cover only [start_date, end_date].
    Income minus expenses that has not yet been closed into an equity
    account is reported as current_earnings inside equity, so a ledger of
    balanced entries always yields gap == 0.

Usage:
    from accounting.services import ReportService

    ReportService.account_balance("1020")
    statement = ReportService.financial_statement(date(2024, 1, 1), date(2024, 1, 31))
    if not statement.balance_sheet.is_balanced:
        flag(statement.balance_sheet.gap)
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Sum
from django.utils import timezone

from core.services import BaseService

from accounting.exceptions import InvalidDateRange
from accounting.models import (
    AccountType,
    EntryStatus,
    LedgerLine,
    signed_balance,
)
from accounting.services.chart_of_accounts import ChartOfAccountsService

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet


logger = logging.getLogger(__name__)


# =============================================================================
# Data Types
# =============================================================================


@dataclass
class AccountBalance:
    """Balance of one account with the totals it was derived from."""

    account_code: str
    account_name: str
    normal_balance: str
    total_debit: int
    total_credit: int
    balance: int
    as_of: date | datetime | None = None


@dataclass
class StatementRow:
    """One account's aggregated activity in a statement section."""

    account_code: str
    account_name: str
    account_type: str
    total_debit: int
    total_credit: int
    balance: int


@dataclass
class BalanceSheet:
    """
    Point-in-time position at end_date.

    gap is total_assets - (total_liabilities + total_equity). It is exposed
    raw so callers can flag a ledger that is not yet balanced; is_balanced
    compares it against the configured tolerance.
    """

    assets: list[StatementRow] = field(default_factory=list)
    liabilities: list[StatementRow] = field(default_factory=list)
    equity: list[StatementRow] = field(default_factory=list)
    total_assets: int = 0
    total_liabilities: int = 0
    current_earnings: int = 0
    total_equity: int = 0
    gap: int = 0
    tolerance: int = 0
    is_balanced: bool = True


@dataclass
class IncomeStatement:
    """Income and expense flows within [start_date, end_date]."""

    revenue: list[StatementRow] = field(default_factory=list)
    expenses: list[StatementRow] = field(default_factory=list)
    total_revenue: int = 0
    total_expenses: int = 0
    net_income: int = 0


@dataclass
class FinancialStatement:
    start_date: date
    end_date: date
    balance_sheet: BalanceSheet
    income_statement: IncomeStatement

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# =============================================================================
# Service
# =============================================================================


class ReportService(BaseService):
    """
    Read-only reporting over the ledger.

    Reports never raise for empty periods; they raise InvalidDateRange
    only when end_date is before start_date.
    """

    @classmethod
    def account_balance(
        cls,
        account_code: str,
        as_of: date | datetime | None = None,
    ) -> int:
        """
        Signed balance of an account up to as_of (or now).

        A date as_of includes every entry posted on that day.

        Raises:
            AccountNotFound: If the code does not resolve
        """
        return cls.account_balance_detail(account_code, as_of).balance

    @classmethod
    def account_balance_detail(
        cls,
        account_code: str,
        as_of: date | datetime | None = None,
    ) -> AccountBalance:
        account = ChartOfAccountsService.resolve_account(account_code)

        lines = _live_lines().filter(account=account)
        if as_of is not None:
            lines = lines.filter(entry__posted_at__lt=_end_bound(as_of))
        totals = lines.aggregate(total_debit=Sum("debit"), total_credit=Sum("credit"))
        total_debit = totals["total_debit"] or 0
        total_credit = totals["total_credit"] or 0

        return AccountBalance(
            account_code=account.code,
            account_name=account.name,
            normal_balance=account.normal_balance,
            total_debit=total_debit,
            total_credit=total_credit,
            balance=signed_balance(account.normal_balance, total_debit, total_credit),
            as_of=as_of,
        )

    @classmethod
    def financial_statement(
        cls,
        start_date: date | datetime,
        end_date: date | datetime,
        tolerance: int | None = None,
    ) -> FinancialStatement:
        """
        Build the balance sheet and income statement for a period.

        Args:
            start_date: First day of the income-statement period
            end_date: Last day (inclusive) of the period and the balance
                sheet date
            tolerance: Maximum |gap| for is_balanced; defaults to
                settings.LEDGER_BALANCE_TOLERANCE

        Raises:
            InvalidDateRange: If end_date < start_date
        """
        period_start, period_end = period_bounds(start_date, end_date)
        if tolerance is None:
            tolerance = settings.LEDGER_BALANCE_TOLERANCE

        cumulative = _live_lines().filter(entry__posted_at__lt=period_end)

        # Balance sheet: cumulative position up to end_date
        position_rows = _aggregate_rows(
            cumulative.filter(
                account__type__in=[
                    AccountType.ASSET,
                    AccountType.LIABILITY,
                    AccountType.EQUITY,
                ]
            )
        )
        sheet = BalanceSheet(tolerance=tolerance)
        for row in position_rows:
            if row.account_type == AccountType.ASSET:
                sheet.assets.append(row)
            elif row.account_type == AccountType.LIABILITY:
                sheet.liabilities.append(row)
            else:
                sheet.equity.append(row)

        sheet.total_assets = sum(row.balance for row in sheet.assets)
        sheet.total_liabilities = sum(row.balance for row in sheet.liabilities)
        sheet.current_earnings = _net_income(
            _aggregate_rows(
                cumulative.filter(
                    account__type__in=[AccountType.INCOME, AccountType.EXPENSE]
                )
            )
        )
        sheet.total_equity = (
            sum(row.balance for row in sheet.equity) + sheet.current_earnings
        )
        sheet.gap = sheet.total_assets - (sheet.total_liabilities + sheet.total_equity)
        sheet.is_balanced = abs(sheet.gap) <= tolerance

        # Income statement: flows within the period only
        flow_rows = _aggregate_rows(
            cumulative.filter(
                entry__posted_at__gte=period_start,
                account__type__in=[AccountType.INCOME, AccountType.EXPENSE],
            )
        )
        income = IncomeStatement(
            revenue=[r for r in flow_rows if r.account_type == AccountType.INCOME],
            expenses=[r for r in flow_rows if r.account_type == AccountType.EXPENSE],
        )
        income.total_revenue = sum(row.balance for row in income.revenue)
        income.total_expenses = sum(row.balance for row in income.expenses)
        income.net_income = income.total_revenue - income.total_expenses

        if not sheet.is_balanced:
            logger.warning(
                "Balance sheet out of balance",
                extra={
                    "start_date": str(start_date),
                    "end_date": str(end_date),
                    "gap": sheet.gap,
                    "tolerance": tolerance,
                },
            )

        return FinancialStatement(
            start_date=_as_date(start_date),
            end_date=_as_date(end_date),
            balance_sheet=sheet,
            income_statement=income,
        )


# =============================================================================
# Helpers
# =============================================================================


def _live_lines() -> QuerySet[LedgerLine]:
    """Lines of entries that count towards balances (not voided)."""
    return LedgerLine.objects.exclude(entry__status=EntryStatus.VOIDED)


def _aggregate_rows(lines: QuerySet[LedgerLine]) -> list[StatementRow]:
    grouped = (
        lines.values(
            "account__code",
            "account__name",
            "account__type",
            "account__normal_balance",
        )
        .annotate(total_debit=Sum("debit"), total_credit=Sum("credit"))
        .order_by("account__code")
    )
    return [
        StatementRow(
            account_code=row["account__code"],
            account_name=row["account__name"],
            account_type=row["account__type"],
            total_debit=row["total_debit"] or 0,
            total_credit=row["total_credit"] or 0,
            balance=signed_balance(
                row["account__normal_balance"],
                row["total_debit"] or 0,
                row["total_credit"] or 0,
            ),
        )
        for row in grouped
    ]


def _net_income(rows: list[StatementRow]) -> int:
    revenue = sum(r.balance for r in rows if r.account_type == AccountType.INCOME)
    expenses = sum(r.balance for r in rows if r.account_type == AccountType.EXPENSE)
    return revenue - expenses


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return timezone.localtime(value).date() if timezone.is_aware(value) else value.date()
    return value


def period_bounds(
    start_date: date | datetime,
    end_date: date | datetime,
) -> tuple[datetime, datetime]:
    """
    Half-open [start, end) datetimes covering whole days.

    Dates are interpreted in the project time zone; the end date is
    inclusive. Datetimes are used as given, with the end inclusive.

    Raises:
        InvalidDateRange: If end is before start
    """
    if start_date is None or end_date is None:
        raise InvalidDateRange(
            "start_date and end_date are required",
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )

    if isinstance(start_date, datetime):
        start = start_date
    else:
        start = timezone.make_aware(datetime.combine(start_date, time.min))

    end = _end_bound(end_date)

    if timezone.is_naive(start):
        start = timezone.make_aware(start)

    if end <= start:
        raise InvalidDateRange(
            "end_date must not be before start_date",
            details={"start_date": str(start_date), "end_date": str(end_date)},
        )
    return start, end


def _end_bound(moment: date | datetime) -> datetime:
    """Exclusive upper bound: just past a datetime, or the next midnight for a date."""
    if isinstance(moment, datetime):
        end = moment + timedelta(microseconds=1)
    else:
        end = datetime.combine(moment + timedelta(days=1), time.min)
    if timezone.is_naive(end):
        end = timezone.make_aware(end)
    return end
