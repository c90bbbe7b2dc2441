"""
Tests for CategoryAuditService.
"""

import datetime

import pytest
from django.utils import timezone

from core.exceptions import ValidationError

from accounting.exceptions import InvalidDateRange
from accounting.services import CategoryAuditService, ChartOfAccountsService
from fundraising.tests.factories import DisbursementFactory, TransactionFactory

JAN_1 = datetime.date(2024, 1, 1)
JAN_31 = datetime.date(2024, 1, 31)


def jan(day, hour=10):
    return timezone.make_aware(datetime.datetime(2024, 1, day, hour))


def references(result):
    return [row.reference_number for row in result.rows]


@pytest.mark.django_db
class TestInvalidDetection:
    def test_canonical_rows_are_not_reported(self, chart):
        TransactionFactory(category="2010", paid_at=jan(5))
        TransactionFactory(category="donation", paid_at=jan(6))
        DisbursementFactory(category="5110", paid_at=jan(7))
        DisbursementFactory(category="2010", paid_at=jan(8))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)

        assert result.rows == []
        assert result.pagination["total"] == 0

    def test_reports_wrong_direction_unknown_and_empty(self, chart):
        wrong_direction = TransactionFactory(category="5110", paid_at=jan(5))
        unknown = TransactionFactory(category="zakat-fitrah", paid_at=jan(6))
        empty = DisbursementFactory(category="", paid_at=jan(7))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)

        assert references(result) == [
            empty.disbursement_number,
            unknown.transaction_number,
            wrong_direction.transaction_number,
        ]
        assert result.invalid_categories == {
            "transactions": ["5110", "zakat-fitrah"],
            "disbursements": [""],
        }

    def test_header_category_is_invalid(self, chart):
        TransactionFactory(category="4000", paid_at=jan(5))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)

        assert result.invalid_categories["transactions"] == ["4000"]

    def test_unknown_transaction_type_is_invalid(self, chart):
        TransactionFactory(category="2010", transaction_type="transfer", paid_at=jan(5))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)

        assert result.pagination["total"] == 1

    def test_retired_legacy_code_becomes_invalid(self, legacy_accounts):
        TransactionFactory(category="4010", paid_at=jan(5))
        assert CategoryAuditService.audit_categories(JAN_1, JAN_31).rows == []

        ChartOfAccountsService.retire_account("4010")

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)
        assert result.invalid_categories["transactions"] == ["4010"]

    def test_row_fields(self, chart):
        transaction = TransactionFactory(
            category="bogus",
            product_name="Bantu Korban Banjir",
            total_amount=250000,
            paid_at=jan(5),
        )

        row = CategoryAuditService.audit_categories(JAN_1, JAN_31).rows[0]

        assert row.source == "transactions"
        assert row.id == str(transaction.id)
        assert row.category == "bogus"
        assert row.transaction_type == "income"
        assert row.status == "paid"
        assert row.amount == 250000
        assert row.date == jan(5)
        assert row.description == "Bantu Korban Banjir"

    def test_period_uses_paid_at(self, chart):
        TransactionFactory(category="bogus", paid_at=jan(31, hour=23))
        TransactionFactory(
            category="bogus",
            paid_at=timezone.make_aware(datetime.datetime(2024, 2, 1, 0, 30)),
        )

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)

        assert result.pagination["total"] == 1


@pytest.mark.django_db
class TestFiltering:
    def test_source_filter(self, chart):
        TransactionFactory(category="bogus", paid_at=jan(5))
        disbursement = DisbursementFactory(category="bogus", paid_at=jan(6))

        result = CategoryAuditService.audit_categories(
            JAN_1, JAN_31, source="disbursements"
        )

        assert references(result) == [disbursement.disbursement_number]
        assert set(result.invalid_categories) == {"disbursements"}

    def test_search_matches_description_and_category(self, chart):
        flood = TransactionFactory(category="bogus", product_name="Banjir Demak", paid_at=jan(5))
        TransactionFactory(category="bogus", product_name="Sumur Wakaf", paid_at=jan(6))
        other = DisbursementFactory(category="banjir-lama", paid_at=jan(7))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31, search="BANJIR")

        assert references(result) == [other.disbursement_number, flood.transaction_number]

    def test_search_does_not_narrow_invalid_categories(self, chart):
        TransactionFactory(category="bogus", paid_at=jan(5))
        TransactionFactory(category="sumur_legacy", product_name="Sumur", paid_at=jan(6))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31, search="sumur")

        assert result.pagination["total"] == 1
        assert result.invalid_categories["transactions"] == ["bogus", "sumur_legacy"]


@pytest.mark.django_db
class TestPagination:
    def test_pages_are_merged_newest_first(self, chart):
        for day in (2, 4, 6):
            TransactionFactory(category="bogus", paid_at=jan(day))
        for day in (3, 5):
            DisbursementFactory(category="bogus", paid_at=jan(day))

        pages = [
            CategoryAuditService.audit_categories(JAN_1, JAN_31, page=page, limit=2)
            for page in (1, 2, 3)
        ]

        assert [[row.date.day for row in p.rows] for p in pages] == [[6, 5], [4, 3], [2]]
        assert pages[0].pagination == {
            "total": 5,
            "page": 1,
            "per_page": 2,
            "total_pages": 3,
            "has_next": True,
            "has_previous": False,
        }
        assert pages[2].pagination["has_next"] is False

    def test_page_past_the_end_returns_last_page(self, chart):
        TransactionFactory(category="bogus", paid_at=jan(5))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31, page=5, limit=10)

        assert len(result.rows) == 1
        assert result.pagination["page"] == 1

    def test_default_limit_from_settings(self, chart, settings):
        settings.LEDGER_AUDIT_PAGE_SIZE = 1
        TransactionFactory(category="bogus", paid_at=jan(5))
        TransactionFactory(category="bogus", paid_at=jan(6))

        result = CategoryAuditService.audit_categories(JAN_1, JAN_31)

        assert len(result.rows) == 1
        assert result.pagination["per_page"] == 1


@pytest.mark.django_db
class TestValidation:
    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"source": "payments"}, "source"),
            ({"page": 0}, "page"),
            ({"limit": 0}, "limit"),
            ({"limit": 101}, "limit"),
        ],
    )
    def test_invalid_params(self, chart, kwargs, field):
        with pytest.raises(ValidationError) as exc_info:
            CategoryAuditService.audit_categories(JAN_1, JAN_31, **kwargs)

        assert exc_info.value.error_code == "INVALID_AUDIT_PARAMS"
        assert field in exc_info.value.details

    def test_invalid_range(self, chart):
        with pytest.raises(InvalidDateRange):
            CategoryAuditService.audit_categories(JAN_31, JAN_1)

    def test_to_dict(self, chart):
        TransactionFactory(category="bogus", paid_at=jan(5))

        data = CategoryAuditService.audit_categories(JAN_1, JAN_31).to_dict()

        assert data["period"] == {"start_date": JAN_1, "end_date": JAN_31}
        assert data["source"] == "all"
        assert data["rows"][0]["category"] == "bogus"
