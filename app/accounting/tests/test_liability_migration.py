"""
Tests for LiabilityModelMigration.
"""

import pytest

from core.exceptions import ValidationError

from accounting.backfill import LiabilityModelMigration
from accounting.exceptions import (
    AccountNotFound,
    LockAcquisitionError,
    MigrationIntegrityViolation,
)
from accounting.models import Account, LedgerLine, RefType
from accounting.services import IntegrityReport, LedgerIntegrityService, ReportService
from accounting.services.chart_of_accounts import LEGACY_NAME_SUFFIX
from accounting.tests.factories import LedgerEntryFactory, LedgerLineFactory


@pytest.fixture
def legacy_ledger(legacy_accounts, post):
    """Donation booked as income, payout booked as expense."""
    donation = post("1020", "4010", 100000)
    payout = post("5010", "1020", 40000, ref_type=RefType.DISBURSEMENT)
    return donation, payout


@pytest.mark.django_db
class TestLiabilityModelMigration:
    def test_moves_legacy_lines_and_retires_accounts(self, legacy_ledger, mock_redis):
        result = LiabilityModelMigration().run()

        assert result.lines_rewritten == 2
        assert result.entries_touched == 2
        assert result.lines_by_source == {"4010": 1, "5010": 1}
        assert result.accounts_retired == ["4010", "5010"]
        assert result.total_debit == result.total_credit == 140000

        legacy = Account.objects.get(code="4010")
        assert legacy.is_active is False
        assert legacy.name.endswith(LEGACY_NAME_SUFFIX)
        assert not LedgerLine.objects.filter(account__code__in=["4010", "5010"]).exists()
        assert ReportService.account_balance("2010") == 60000
        assert ReportService.account_balance("1020") == 60000

    def test_ledger_stays_balanced(self, legacy_ledger, mock_redis):
        LiabilityModelMigration().run()

        assert LedgerIntegrityService.verify().is_balanced

    def test_rerun_is_a_no_op(self, legacy_ledger, mock_redis):
        LiabilityModelMigration().run()

        result = LiabilityModelMigration().run()

        assert result.lines_rewritten == 0
        assert Account.objects.get(code="4010").name.count(LEGACY_NAME_SUFFIX.strip()) == 1

    def test_dry_run_changes_nothing(self, legacy_ledger, mock_redis):
        result = LiabilityModelMigration(dry_run=True).run()

        assert result.dry_run is True
        assert result.lines_rewritten == 2
        assert Account.objects.get(code="4010").is_active is True
        assert LedgerLine.objects.filter(account__code="4010").count() == 1
        assert ReportService.account_balance("2010") == 0

    def test_missing_sources_are_reported(self, chart, mock_redis):
        result = LiabilityModelMigration(mapping={"4010": "2010"}).run()

        assert result.missing_sources == ["4010"]
        assert result.lines_rewritten == 0

    def test_missing_target_aborts(self, legacy_accounts, mock_redis):
        with pytest.raises(AccountNotFound):
            LiabilityModelMigration(mapping={"4010": "2999"}).run()

        assert Account.objects.get(code="4010").is_active is True

    def test_unbalanced_history_rolls_back(self, legacy_accounts, mock_redis):
        broken = LedgerEntryFactory()
        LedgerLineFactory(entry=broken, account=legacy_accounts["4010"], credit=100000)

        with pytest.raises(MigrationIntegrityViolation) as exc_info:
            LiabilityModelMigration(mapping={"4010": "2010"}).run()

        assert exc_info.value.details["unbalanced_entries"] == [broken.entry_number]
        assert LedgerLine.objects.get(entry=broken).account.code == "4010"
        assert Account.objects.get(code="4010").is_active is True

    def test_verification_uses_integrity_service(self, legacy_ledger, mock_redis, mocker):
        verify = mocker.spy(LedgerIntegrityService, "verify")

        result = LiabilityModelMigration().run()

        verify.assert_called_once()
        assert result.total_debit == result.total_credit == 140000

    def test_short_entry_rolls_back(self, legacy_accounts, mock_redis, mocker):
        mocker.patch.object(
            LedgerIntegrityService,
            "verify",
            return_value=IntegrityReport(short_entries=["JE-202401-0009"]),
        )

        with pytest.raises(MigrationIntegrityViolation) as exc_info:
            LiabilityModelMigration(mapping={"4010": "2010"}).run()

        assert exc_info.value.details["short_entries"] == ["JE-202401-0009"]
        assert Account.objects.get(code="4010").is_active is True

    @pytest.mark.parametrize(
        "mapping, error_code",
        [({}, "EMPTY_MIGRATION_MAP"), ({"4010": "4010"}, "INVALID_MIGRATION_MAP")],
    )
    def test_invalid_mapping(self, chart, mapping, error_code):
        with pytest.raises(ValidationError) as exc_info:
            LiabilityModelMigration(mapping=mapping).run()

        assert exc_info.value.error_code == error_code

    def test_concurrent_run_is_rejected(self, legacy_ledger, mock_redis):
        mock_redis.set.return_value = False

        with pytest.raises(LockAcquisitionError):
            LiabilityModelMigration().run()

        assert Account.objects.get(code="4010").is_active is True

    def test_lock_is_released(self, legacy_ledger, mock_redis):
        LiabilityModelMigration().run()

        mock_redis.eval.assert_called_once()
