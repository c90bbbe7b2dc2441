"""
Tests for accounting management commands.
"""

from io import StringIO

import pytest
from django.core.management import CommandError, call_command

from accounting.models import Account, LedgerLine
from accounting.management.commands.migrate_liability_model import parse_mapping
from accounting.services.chart_of_accounts import DEFAULT_CHART
from accounting.tests.factories import LedgerEntryFactory, LedgerLineFactory
from fundraising.tests.factories import QurbanSavingsTransactionFactory


def run(*args):
    out = StringIO()
    err = StringIO()
    call_command(*args, stdout=out, stderr=err)
    return out.getvalue(), err.getvalue()


@pytest.mark.django_db
class TestSeedChartOfAccounts:
    def test_seeds_and_reports_counts(self):
        out, _ = run("seed_chart_of_accounts")

        assert f"{len(DEFAULT_CHART)} created" in out
        assert Account.objects.count() == len(DEFAULT_CHART)

    def test_rerun_reports_existing(self):
        run("seed_chart_of_accounts")
        out, _ = run("seed_chart_of_accounts")

        assert "0 created" in out


class TestParseMapping:
    def test_parses_pairs(self):
        assert parse_mapping(["4010=2010", " 5010 = 2010 "]) == {
            "4010": "2010",
            "5010": "2010",
        }

    @pytest.mark.parametrize("value", ["4010", "=2010", "4010="])
    def test_rejects_malformed_pairs(self, value):
        with pytest.raises(CommandError):
            parse_mapping([value])


@pytest.mark.django_db
class TestMigrateLiabilityModel:
    def test_migrates_with_explicit_map(self, legacy_accounts, post, mock_redis):
        post("1020", "4010", 100000)

        out, _ = run("migrate_liability_model", "--map", "4010=2010")

        assert "4010 -> 2010: 1 lines" in out
        assert "retired 4010" in out
        assert not LedgerLine.objects.filter(account__code="4010").exists()

    def test_dry_run(self, legacy_accounts, post, mock_redis):
        post("1020", "4010", 100000)

        out, _ = run("migrate_liability_model", "--dry-run")

        assert out.startswith("[DRY RUN]")
        assert LedgerLine.objects.filter(account__code="4010").count() == 1

    def test_reports_missing_sources(self, chart, mock_redis):
        out, _ = run("migrate_liability_model")

        assert "4010: account not found, skipped" in out

    def test_failure_becomes_command_error(self, legacy_accounts, mock_redis):
        with pytest.raises(CommandError, match="not found"):
            run("migrate_liability_model", "--map", "4010=2999")


@pytest.mark.django_db
class TestBackfillSavingsTransactions:
    def test_prints_counts(self, chart, mock_redis):
        QurbanSavingsTransactionFactory()
        QurbanSavingsTransactionFactory(transaction_type="withdrawal")

        out, _ = run("backfill_savings_transactions", "--batch-size", "1")

        assert "- Processed: 2" in out
        assert "- Migrated deposits: 1" in out
        assert "- Skipped (unsupported type): 1" in out

    def test_dry_run_prefix(self, chart, mock_redis):
        out, _ = run("backfill_savings_transactions", "--dry-run")

        assert out.startswith("[DRY RUN] Backfill finished:")

    def test_rejects_non_positive_batch_size(self, chart):
        with pytest.raises(CommandError, match="--batch-size"):
            run("backfill_savings_transactions", "--batch-size", "0")

    def test_lock_held_becomes_command_error(self, chart, mock_redis):
        mock_redis.set.return_value = False

        with pytest.raises(CommandError, match="already held"):
            run("backfill_savings_transactions")


@pytest.mark.django_db
class TestVerifyLedgerIntegrity:
    def test_balanced_ledger(self, chart, post):
        post("1020", "2010", 100000)

        out, _ = run("verify_ledger_integrity")

        assert "Entries checked: 1" in out
        assert "Ledger is balanced" in out

    def test_unbalanced_ledger_fails(self, chart):
        entry = LedgerEntryFactory()
        LedgerLineFactory(entry=entry, account=Account.objects.get(code="1020"), debit=5)

        with pytest.raises(CommandError, match="integrity check failed"):
            run("verify_ledger_integrity")
