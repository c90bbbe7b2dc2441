"""
Pytest fixtures for accounting tests.

Sections:
    - Infrastructure Fixtures: cache reset, Redis mock for locks
    - Chart Fixtures: seeded default chart, legacy accounts
    - Posting Fixtures: helpers for building and posting entries
"""

import datetime

import pytest
from django.core.cache import cache
from django.utils import timezone

from accounting.models import AccountType, RefType
from accounting.services import ChartOfAccountsService, PostingService
from accounting.tests.factories import AccountFactory
from accounting.types import LineParams, PostEntryParams


# ==========================================================================
# Infrastructure Fixtures
# ==========================================================================


@pytest.fixture(autouse=True)
def clear_cache():
    """Canonical key sets are cached; start every test with a cold cache."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def mock_redis(mocker):
    """
    Mock Redis client for distributed lock tests.

    Returns a MagicMock configured so every lock is free and releases
    cleanly.
    """
    mock_client = mocker.MagicMock()
    mock_client.set.return_value = True
    mock_client.eval.return_value = 1

    mocker.patch(
        "accounting.locks.get_redis_connection",
        return_value=mock_client,
    )
    return mock_client


# ==========================================================================
# Chart Fixtures
# ==========================================================================


@pytest.fixture
def chart(db):
    """The default chart of accounts."""
    ChartOfAccountsService.seed_chart_of_accounts()


@pytest.fixture
def legacy_accounts(chart):
    """
    Pre-liability-model accounts: campaign income and campaign expense.
    """
    return {
        "4010": AccountFactory(
            code="4010",
            name="Pendapatan Donasi Campaign",
            type=AccountType.INCOME,
            category="campaign",
        ),
        "5010": AccountFactory(
            code="5010",
            name="Beban Penyaluran Campaign",
            type=AccountType.EXPENSE,
            category="campaign",
        ),
    }


# ==========================================================================
# Posting Fixtures
# ==========================================================================


@pytest.fixture
def posted_at():
    """A fixed, timezone-aware event time in January 2024."""
    return timezone.make_aware(datetime.datetime(2024, 1, 15, 10, 30))


@pytest.fixture
def make_params(posted_at):
    """
    Build PostEntryParams from (code, debit, credit) tuples.

    Example:
        params = make_params([("1020", 100000, 0), ("2010", 0, 100000)])
    """

    def _make(lines, ref_type=RefType.DONATION, at=None, **kwargs):
        return PostEntryParams(
            ref_type=ref_type,
            posted_at=at or posted_at,
            lines=[
                LineParams(account_code=code, debit=debit, credit=credit)
                for code, debit, credit in lines
            ],
            **kwargs,
        )

    return _make


@pytest.fixture
def post(make_params):
    """Post a simple two-line entry: Dr debit_code / Cr credit_code."""

    def _post(debit_code, credit_code, amount, **kwargs):
        return PostingService.post(
            make_params(
                [(debit_code, amount, 0), (credit_code, 0, amount)],
                **kwargs,
            )
        )

    return _post
