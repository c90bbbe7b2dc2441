"""
Category auditor for historical business records.

Transactions and disbursements carry a loose category reference (an
account code or category key) written before the chart of accounts was
enforced. This service lists the rows in a period whose category is not
canonical for their direction, so they can be recategorized by hand.

A category is canonical for a row when it is the code or category key of
an active, non-header account whose type is allowed for the row's
transaction_type (see ChartOfAccountsService.canonical_keys). Empty
categories are always invalid.

Usage:
    from accounting.services import CategoryAuditService

    result = CategoryAuditService.audit_categories(
        date(2024, 1, 1), date(2024, 1, 31), source="transactions", page=2
    )
    result.pagination["total"]
    result.invalid_categories["transactions"]
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING

from django.conf import settings
from django.db.models import Q
from django.db.models.functions import Coalesce

from core.exceptions import ValidationError
from core.helpers import calculate_pagination
from core.services import BaseService

from accounting.services.chart_of_accounts import ChartOfAccountsService
from accounting.services.reports import period_bounds
from fundraising.models import Disbursement, Transaction, TransactionType

if TYPE_CHECKING:
    from typing import Any

    from django.db.models import QuerySet


SOURCE_ALL = "all"
SOURCE_TRANSACTIONS = "transactions"
SOURCE_DISBURSEMENTS = "disbursements"
SOURCES = (SOURCE_ALL, SOURCE_TRANSACTIONS, SOURCE_DISBURSEMENTS)

MAX_PAGE_SIZE = 100


@dataclass
class AuditRow:
    source: str
    id: str
    reference_number: str
    category: str
    transaction_type: str
    status: str
    amount: int
    date: datetime | None
    description: str


@dataclass
class CategoryAuditResult:
    """
    One page of invalid-category rows.

    invalid_categories lists the distinct offending values per source over
    the whole period, independent of search and paging.
    """

    period: dict[str, date]
    source: str
    pagination: dict[str, Any]
    invalid_categories: dict[str, list[str]] = field(default_factory=dict)
    rows: list[AuditRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CategoryAuditService(BaseService):
    """Read-only audit of category references on business records."""

    @classmethod
    def audit_categories(
        cls,
        start_date: date,
        end_date: date,
        source: str = SOURCE_ALL,
        search: str | None = None,
        page: int = 1,
        limit: int | None = None,
    ) -> CategoryAuditResult:
        """
        List rows in [start_date, end_date] whose category is invalid.

        Rows from both sources are merged newest first. Each source is
        queried for at most page * limit rows, so deep pages stay bounded.

        Args:
            start_date: First day of the period (inclusive)
            end_date: Last day of the period (inclusive)
            source: "all", "transactions" or "disbursements"
            search: Case-insensitive match on description, reference
                number or category
            page: 1-indexed page number
            limit: Rows per page; defaults to settings.LEDGER_AUDIT_PAGE_SIZE

        Raises:
            ValidationError: Unknown source, or page/limit out of range
            InvalidDateRange: If end_date < start_date
        """
        if limit is None:
            limit = settings.LEDGER_AUDIT_PAGE_SIZE
        cls._validate_params(source, page, limit)
        period_start, period_end = period_bounds(start_date, end_date)

        income_keys = ChartOfAccountsService.canonical_keys(TransactionType.INCOME)
        expense_keys = ChartOfAccountsService.canonical_keys(TransactionType.EXPENSE)
        invalid = _invalid_category_q(income_keys, expense_keys)

        querysets: dict[str, QuerySet] = {}
        invalid_categories: dict[str, list[str]] = {}
        for name, model in (
            (SOURCE_TRANSACTIONS, Transaction),
            (SOURCE_DISBURSEMENTS, Disbursement),
        ):
            if source not in (SOURCE_ALL, name):
                continue
            in_period = (
                model.objects.annotate(row_date=Coalesce("paid_at", "created_at"))
                .filter(row_date__gte=period_start, row_date__lt=period_end)
                .filter(invalid)
            )
            invalid_categories[name] = sorted(
                set(in_period.values_list("category", flat=True))
            )
            querysets[name] = _apply_search(name, in_period, search)

        counts = {name: qs.count() for name, qs in querysets.items()}
        pagination = calculate_pagination(sum(counts.values()), page, limit)
        offset = pagination.pop("offset")
        window = offset + limit

        rows: list[AuditRow] = []
        if SOURCE_TRANSACTIONS in querysets:
            rows += [
                _transaction_row(t)
                for t in querysets[SOURCE_TRANSACTIONS].order_by(
                    "-row_date", "-transaction_number"
                )[:window]
            ]
        if SOURCE_DISBURSEMENTS in querysets:
            rows += [
                _disbursement_row(d)
                for d in querysets[SOURCE_DISBURSEMENTS].order_by(
                    "-row_date", "-disbursement_number"
                )[:window]
            ]
        rows.sort(key=lambda row: (row.date, row.reference_number), reverse=True)

        cls.get_logger().info(
            "Category audit",
            extra={
                "start_date": str(start_date),
                "end_date": str(end_date),
                "source": source,
                "total": pagination["total"],
                "page": pagination["page"],
            },
        )

        return CategoryAuditResult(
            period={"start_date": start_date, "end_date": end_date},
            source=source,
            pagination=pagination,
            invalid_categories=invalid_categories,
            rows=rows[offset:window],
        )

    @staticmethod
    def _validate_params(source: str, page: int, limit: int) -> None:
        errors = {}
        if source not in SOURCES:
            errors["source"] = [f"Must be one of {', '.join(SOURCES)}."]
        if not isinstance(page, int) or page < 1:
            errors["page"] = ["Must be a positive integer."]
        if not isinstance(limit, int) or not 1 <= limit <= MAX_PAGE_SIZE:
            errors["limit"] = [f"Must be between 1 and {MAX_PAGE_SIZE}."]
        if errors:
            raise ValidationError(
                "Invalid audit parameters",
                error_code="INVALID_AUDIT_PARAMS",
                details=errors,
            )


def _invalid_category_q(income_keys: frozenset[str], expense_keys: frozenset[str]) -> Q:
    return (
        Q(category="")
        | (Q(transaction_type=TransactionType.INCOME) & ~Q(category__in=sorted(income_keys)))
        | (Q(transaction_type=TransactionType.EXPENSE) & ~Q(category__in=sorted(expense_keys)))
        | ~Q(transaction_type__in=TransactionType.values)
    )


def _apply_search(source: str, queryset: QuerySet, search: str | None) -> QuerySet:
    term = (search or "").strip()
    if not term:
        return queryset
    if source == SOURCE_TRANSACTIONS:
        return queryset.filter(
            Q(transaction_number__icontains=term)
            | Q(product_name__icontains=term)
            | Q(notes__icontains=term)
            | Q(category__icontains=term)
        )
    return queryset.filter(
        Q(disbursement_number__icontains=term)
        | Q(description__icontains=term)
        | Q(purpose__icontains=term)
        | Q(category__icontains=term)
    )


def _transaction_row(transaction: Transaction) -> AuditRow:
    return AuditRow(
        source=SOURCE_TRANSACTIONS,
        id=str(transaction.id),
        reference_number=transaction.transaction_number,
        category=transaction.category,
        transaction_type=transaction.transaction_type,
        status=transaction.payment_status,
        amount=transaction.total_amount,
        date=transaction.row_date,
        description=transaction.product_name or transaction.notes,
    )


def _disbursement_row(disbursement: Disbursement) -> AuditRow:
    return AuditRow(
        source=SOURCE_DISBURSEMENTS,
        id=str(disbursement.id),
        reference_number=disbursement.disbursement_number,
        category=disbursement.category,
        transaction_type=disbursement.transaction_type,
        status=disbursement.status,
        amount=disbursement.amount,
        date=disbursement.row_date,
        description=disbursement.description or disbursement.purpose,
    )
