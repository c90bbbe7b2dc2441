"""
Tests for ReportService.
"""

import datetime

import pytest
from django.utils import timezone

from accounting.exceptions import AccountNotFound, InvalidDateRange
from accounting.models import Account, RefType
from accounting.services import PostingService, ReportService
from accounting.services.reports import period_bounds
from accounting.tests.factories import LedgerEntryFactory, LedgerLineFactory


JAN_1 = datetime.date(2024, 1, 1)
JAN_31 = datetime.date(2024, 1, 31)


def sections(rows):
    return {row.account_code: row.balance for row in rows}


class TestPeriodBounds:
    def test_dates_cover_whole_days(self):
        start, end = period_bounds(JAN_1, JAN_31)

        assert start == timezone.make_aware(datetime.datetime(2024, 1, 1))
        assert end == timezone.make_aware(datetime.datetime(2024, 2, 1))

    def test_single_day_range(self):
        start, end = period_bounds(JAN_1, JAN_1)

        assert end - start == datetime.timedelta(days=1)

    def test_end_before_start(self):
        with pytest.raises(InvalidDateRange) as exc_info:
            period_bounds(JAN_31, JAN_1)

        assert exc_info.value.error_code == "INVALID_DATE_RANGE"

    def test_missing_bound(self):
        with pytest.raises(InvalidDateRange):
            period_bounds(None, JAN_31)


@pytest.mark.django_db
class TestAccountBalance:
    def test_unknown_account(self, db):
        with pytest.raises(AccountNotFound):
            ReportService.account_balance("9999")

    def test_balance_follows_normal_side(self, chart, post):
        post("1020", "2010", 100000)
        post("2010", "1020", 30000)

        assert ReportService.account_balance("1020") == 70000
        assert ReportService.account_balance("2010") == 70000

    def test_detail_exposes_totals(self, chart, post):
        post("1020", "2010", 100000)
        post("2010", "1020", 30000)

        detail = ReportService.account_balance_detail("2010")

        assert (detail.total_debit, detail.total_credit) == (30000, 100000)
        assert detail.balance == 70000
        assert detail.normal_balance == "credit"

    def test_as_of_excludes_later_entries(self, chart, post, posted_at):
        post("1020", "2010", 100000)
        post("1020", "2010", 50000, at=posted_at + datetime.timedelta(days=10))

        balance = ReportService.account_balance(
            "1020", as_of=posted_at + datetime.timedelta(days=1)
        )

        assert balance == 100000

    def test_date_as_of_includes_the_whole_day(self, chart, post):
        post("1020", "2010", 100000)

        assert ReportService.account_balance("1020", as_of=datetime.date(2024, 1, 15)) == 100000
        assert ReportService.account_balance("1020", as_of=datetime.date(2024, 1, 14)) == 0

    def test_voided_entries_are_ignored(self, chart, post):
        entry = post("1020", "2010", 100000)
        PostingService.void_entry(entry.id, reason="Duplicate")

        assert ReportService.account_balance("1020") == 0


@pytest.mark.django_db
class TestFinancialStatement:
    def test_empty_period_reports_zeros(self, chart):
        statement = ReportService.financial_statement(JAN_1, JAN_31)

        sheet = statement.balance_sheet
        income = statement.income_statement
        assert sheet.assets == sheet.liabilities == sheet.equity == []
        assert sheet.total_assets == sheet.total_liabilities == sheet.total_equity == 0
        assert sheet.gap == 0
        assert sheet.is_balanced is True
        assert income.total_revenue == income.total_expenses == income.net_income == 0

    def test_liability_model_donation_balances(self, chart, post):
        post("1020", "2010", 100000)
        post("2010", "1020", 40000, ref_type=RefType.DISBURSEMENT)

        sheet = ReportService.financial_statement(JAN_1, JAN_31).balance_sheet

        assert sections(sheet.assets) == {"1020": 60000}
        assert sections(sheet.liabilities) == {"2010": 60000}
        assert sheet.gap == 0

    def test_income_and_expense_flow_into_current_earnings(self, chart, post):
        post("1020", "4110", 200000)
        post("5210", "1020", 50000)

        statement = ReportService.financial_statement(JAN_1, JAN_31)

        income = statement.income_statement
        assert sections(income.revenue) == {"4110": 200000}
        assert sections(income.expenses) == {"5210": 50000}
        assert income.net_income == 150000

        sheet = statement.balance_sheet
        assert sheet.current_earnings == 150000
        assert sheet.total_equity == 150000
        assert sheet.total_assets == 150000
        assert sheet.gap == 0

    def test_income_statement_covers_only_the_period(self, chart, post, posted_at):
        post("1020", "4110", 200000, at=posted_at.replace(month=2))
        post("1020", "4110", 100000)

        statement = ReportService.financial_statement(
            datetime.date(2024, 2, 1), datetime.date(2024, 2, 29)
        )

        assert statement.income_statement.total_revenue == 200000
        # Balance sheet is cumulative, including January's earnings
        assert statement.balance_sheet.total_assets == 300000
        assert statement.balance_sheet.current_earnings == 300000

    def test_entries_after_end_date_are_excluded(self, chart, post, posted_at):
        post("1020", "2010", 100000)
        post("1020", "2010", 70000, at=posted_at.replace(month=3))

        sheet = ReportService.financial_statement(JAN_1, JAN_31).balance_sheet

        assert sheet.total_assets == 100000

    def test_entry_on_last_day_is_included(self, chart, post):
        last_day = timezone.make_aware(datetime.datetime(2024, 1, 31, 23, 59))
        post("1020", "2010", 100000, at=last_day)

        sheet = ReportService.financial_statement(JAN_1, JAN_31).balance_sheet

        assert sheet.total_assets == 100000

    def test_gap_reports_unbalanced_ledger(self, chart, posted_at):
        entry = LedgerEntryFactory(posted_at=posted_at)
        LedgerLineFactory(entry=entry, account=Account.objects.get(code="1020"), debit=100000)

        sheet = ReportService.financial_statement(JAN_1, JAN_31).balance_sheet

        assert sheet.gap == 100000
        assert sheet.is_balanced is False

    def test_tolerance_absorbs_small_gap(self, chart, posted_at):
        entry = LedgerEntryFactory(posted_at=posted_at)
        LedgerLineFactory(entry=entry, account=Account.objects.get(code="1020"), debit=1)

        sheet = ReportService.financial_statement(JAN_1, JAN_31, tolerance=1).balance_sheet

        assert sheet.gap == 1
        assert sheet.is_balanced is True

    def test_voided_entries_are_excluded(self, chart, post):
        entry = post("1020", "4110", 100000)
        PostingService.void_entry(entry.id, reason="Duplicate")

        statement = ReportService.financial_statement(JAN_1, JAN_31)

        assert statement.balance_sheet.total_assets == 0
        assert statement.income_statement.total_revenue == 0

    def test_reversed_entries_net_to_zero(self, chart, post, posted_at):
        entry = post("1020", "4110", 100000)
        PostingService.reverse_entry(entry.id, reason="Refund", posted_at=posted_at)

        statement = ReportService.financial_statement(JAN_1, JAN_31)

        assert statement.balance_sheet.total_assets == 0
        assert statement.income_statement.net_income == 0

    def test_invalid_range(self, chart):
        with pytest.raises(InvalidDateRange):
            ReportService.financial_statement(JAN_31, JAN_1)

    def test_to_dict(self, chart, post):
        post("1020", "2010", 100000)

        data = ReportService.financial_statement(JAN_1, JAN_31).to_dict()

        assert data["start_date"] == JAN_1
        assert data["balance_sheet"]["total_assets"] == 100000
        assert data["balance_sheet"]["assets"][0]["account_code"] == "1020"
        assert data["income_statement"]["net_income"] == 0
