"""
Chart of accounts service.

Creates, updates, deactivates and resolves accounts, and answers the
"is this category key canonical?" question for new and historical
business records.

The canonical key sets are read-mostly, so they are cached in the Django
cache (Redis in production) and invalidated on every chart write.

Usage:
    from accounting.services import ChartOfAccountsService

    ChartOfAccountsService.create_account(
        code="2020",
        name="Titipan Tabungan Qurban",
        type=AccountType.LIABILITY,
        normal_balance=NormalBalance.CREDIT,
        category="savings_liability",
    )

    bank = ChartOfAccountsService.resolve_account("1020")
"""

from __future__ import annotations

from django.conf import settings
from django.core.cache import cache
from django.db import IntegrityError, transaction

from core.exceptions import ValidationError
from core.services import BaseService

from accounting.exceptions import (
    AccountNotFound,
    DuplicateCode,
    InactiveAccount,
    InvalidNormalBalance,
    LedgerError,
)
from accounting.models import (
    NORMAL_BALANCE_FOR_TYPE,
    Account,
    AccountType,
    NormalBalance,
)

LEGACY_NAME_SUFFIX = " (LEGACY - DO NOT USE)"

CANONICAL_KEYS_CACHE_KEY = "accounting:coa:canonical:{transaction_type}"

# Account types a business record may be categorized under, by direction.
# Liability accounts are valid for both: under the liability model,
# collected funds are held in trust and disbursements draw them down.
CATEGORY_ACCOUNT_TYPES = {
    "income": (AccountType.INCOME, AccountType.LIABILITY),
    "expense": (AccountType.EXPENSE, AccountType.LIABILITY),
}

HEADER_CATEGORY = "header"

# (code, name, type, category, parent_code, is_system, description)
DEFAULT_CHART = [
    ("1000", "Aset", AccountType.ASSET, HEADER_CATEGORY, None, True, "Aset / Harta"),
    ("1100", "Aset Lancar", AccountType.ASSET, "current_asset", "1000", True, ""),
    ("1010", "Kas", AccountType.ASSET, "cash", "1100", True, ""),
    ("1020", "Bank - Operasional", AccountType.ASSET, "bank", "1100", True,
     "Rekening bank operasional (semua bank)"),
    ("1130", "Piutang", AccountType.ASSET, "receivable", "1100", True, ""),
    ("2000", "Kewajiban", AccountType.LIABILITY, HEADER_CATEGORY, None, True,
     "Liabilitas / Kewajiban"),
    ("2100", "Kewajiban Lancar", AccountType.LIABILITY, "current_liability", "2000", True, ""),
    ("2110", "Utang Usaha", AccountType.LIABILITY, "payable", "2100", True, ""),
    ("2010", "Titipan Dana Campaign", AccountType.LIABILITY, "donation_liability", "2000", True,
     "Dana donasi yang belum disalurkan"),
    ("2020", "Titipan Tabungan Qurban", AccountType.LIABILITY, "savings_liability", "2000", True,
     "Setoran tabungan qurban yang belum dikonversi"),
    ("3000", "Ekuitas", AccountType.EQUITY, HEADER_CATEGORY, None, True, "Modal / Ekuitas"),
    ("3100", "Modal Awal", AccountType.EQUITY, "capital", "3000", True, ""),
    ("3200", "Saldo Laba", AccountType.EQUITY, "retained_earnings", "3000", True, ""),
    ("3300", "Laba Tahun Berjalan", AccountType.EQUITY, "current_earnings", "3000", True, ""),
    ("4000", "Pendapatan", AccountType.INCOME, HEADER_CATEGORY, None, True, ""),
    ("4100", "Pendapatan Donasi", AccountType.INCOME, "donation", "4000", True, ""),
    ("4110", "Donasi Umum", AccountType.INCOME, "donation", "4100", True, ""),
    ("4120", "Donasi Zakat", AccountType.INCOME, "zakat", "4100", True, ""),
    ("4130", "Donasi Infaq", AccountType.INCOME, "infaq", "4100", True, ""),
    ("4200", "Pendapatan Lain", AccountType.INCOME, "other", "4000", True, ""),
    ("5000", "Beban", AccountType.EXPENSE, HEADER_CATEGORY, None, True, ""),
    ("5100", "Beban Program", AccountType.EXPENSE, "program", "5000", True, ""),
    ("5110", "Beban Kesehatan", AccountType.EXPENSE, "program", "5100", False, ""),
    ("5120", "Beban Pendidikan", AccountType.EXPENSE, "program", "5100", False, ""),
    ("5130", "Beban Bencana Alam", AccountType.EXPENSE, "program", "5100", False, ""),
    ("5140", "Beban Sosial", AccountType.EXPENSE, "program", "5100", False, ""),
    ("5200", "Beban Operasional", AccountType.EXPENSE, "operational", "5000", True, ""),
    ("5210", "Beban Gaji", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5220", "Beban Sewa", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5230", "Beban Listrik", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5240", "Beban Internet", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5250", "Beban Marketing", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5260", "Beban Payment Gateway", AccountType.EXPENSE, "operational", "5200", True,
     "Biaya transaksi payment gateway"),
    ("5270", "Beban Administrasi Bank", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5280", "Beban Perlengkapan", AccountType.EXPENSE, "operational", "5200", False, ""),
    ("5290", "Beban Lain-lain", AccountType.EXPENSE, "operational", "5200", False, ""),
]


class ChartOfAccountsService(BaseService):
    """
    Service for managing the chart of accounts.

    All methods are class methods; the service holds no state. Writes
    invalidate the cached canonical key sets.
    """

    # ==========================================================================
    # Writes
    # ==========================================================================

    @classmethod
    def create_account(
        cls,
        code: str,
        name: str,
        type: str,
        normal_balance: str | None = None,
        category: str = "",
        parent_code: str | None = None,
        description: str = "",
        is_system: bool = False,
    ) -> Account:
        """
        Create an account.

        Args:
            code: Unique account code
            name: Display name
            type: AccountType value
            normal_balance: NormalBalance value; derived from type if omitted
            category: Sub-classification / category key
            parent_code: Code of the header account this rolls up into

        Raises:
            DuplicateCode: If code already exists
            InvalidNormalBalance: If normal_balance does not match type
            AccountNotFound: If parent_code does not resolve
            ValidationError: If required fields are blank or type is unknown
        """
        cls.validate_required(code=code, name=name, type=type)
        normal_balance = cls._check_normal_balance(type, normal_balance)

        if Account.objects.filter(code=code).exists():
            raise DuplicateCode(
                f"Account code {code} already exists",
                details={"account_code": code},
            )

        parent = cls.resolve_account(parent_code) if parent_code else None

        try:
            with transaction.atomic():
                account = Account.objects.create(
                    code=code,
                    name=name,
                    type=type,
                    normal_balance=normal_balance,
                    category=category or "",
                    parent=parent,
                    description=description or "",
                    is_system=is_system,
                )
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same code
            raise DuplicateCode(
                f"Account code {code} already exists",
                details={"account_code": code},
            ) from e

        cls.invalidate_cache()
        cls.get_logger().info(
            "Account created",
            extra={"account_code": code, "account_type": type},
        )
        return account

    @classmethod
    def update_account(
        cls,
        code: str,
        *,
        name: str | None = None,
        category: str | None = None,
        description: str | None = None,
        type: str | None = None,
        normal_balance: str | None = None,
    ) -> Account:
        """
        Update an account's descriptive fields or classification.

        type and normal_balance may only change while no line references
        the account, and the pair is re-validated.

        Raises:
            AccountNotFound: If code does not resolve
            InvalidNormalBalance: If the resulting pair violates the invariant
            LedgerError: If reclassifying an account that has lines
        """
        with cls.atomic():
            account = cls._lock_account(code)
            update_fields = ["updated_at"]

            if type is not None or normal_balance is not None:
                new_type = type or account.type
                new_normal = cls._check_normal_balance(new_type, normal_balance)
                if (
                    new_type != account.type or new_normal != account.normal_balance
                ) and account.lines.exists():
                    raise LedgerError(
                        f"Account {code} has ledger lines and cannot be reclassified",
                        error_code="ACCOUNT_IN_USE",
                        details={"account_code": code},
                    )
                account.type = new_type
                account.normal_balance = new_normal
                update_fields += ["type", "normal_balance"]

            for field_name, value in (
                ("name", name),
                ("category", category),
                ("description", description),
            ):
                if value is not None:
                    setattr(account, field_name, value)
                    update_fields.append(field_name)

            account.save(update_fields=update_fields)

        cls.invalidate_cache()
        return account

    @classmethod
    def deactivate_account(cls, code: str) -> Account:
        """
        Mark an account inactive. History is kept; new postings are rejected.

        Idempotent: deactivating an inactive account is a no-op.
        """
        with cls.atomic():
            account = cls._lock_account(code)
            if account.is_active:
                account.is_active = False
                account.save(update_fields=["is_active", "updated_at"])

        cls.invalidate_cache()
        cls.get_logger().info("Account deactivated", extra={"account_code": code})
        return account

    @classmethod
    def reactivate_account(cls, code: str) -> Account:
        with cls.atomic():
            account = cls._lock_account(code)
            if not account.is_active:
                account.is_active = True
                account.save(update_fields=["is_active", "updated_at"])

        cls.invalidate_cache()
        cls.get_logger().info("Account reactivated", extra={"account_code": code})
        return account

    @classmethod
    def retire_account(cls, code: str) -> Account:
        """
        Deactivate a legacy account and tag its name so it is never picked
        for new postings. Idempotent.
        """
        with cls.atomic():
            account = cls._lock_account(code)
            update_fields = []
            if account.is_active:
                account.is_active = False
                update_fields.append("is_active")
            if not account.name.endswith(LEGACY_NAME_SUFFIX):
                account.name = f"{account.name}{LEGACY_NAME_SUFFIX}"
                update_fields.append("name")
            if update_fields:
                account.save(update_fields=update_fields + ["updated_at"])

        cls.invalidate_cache()
        return account

    @classmethod
    def seed_chart_of_accounts(cls) -> dict[str, int]:
        """
        Create the default chart of accounts. Existing codes are left as is.

        Returns:
            {"created": n, "existing": m}
        """
        created = existing = 0
        by_code: dict[str, Account] = {}

        with cls.atomic():
            for code, name, type, category, parent_code, is_system, description in DEFAULT_CHART:
                account, was_created = Account.objects.get_or_create(
                    code=code,
                    defaults={
                        "name": name,
                        "type": type,
                        "normal_balance": NORMAL_BALANCE_FOR_TYPE[type],
                        "category": category,
                        "parent": by_code.get(parent_code) if parent_code else None,
                        "is_system": is_system,
                        "description": description,
                    },
                )
                by_code[code] = account
                if was_created:
                    created += 1
                else:
                    existing += 1

        cls.invalidate_cache()
        cls.get_logger().info(
            "Chart of accounts seeded",
            extra={"accounts_created": created, "accounts_existing": existing},
        )
        return {"created": created, "existing": existing}

    # ==========================================================================
    # Reads
    # ==========================================================================

    @staticmethod
    def resolve_account(code: str) -> Account:
        """
        Get an account by code.

        Raises:
            AccountNotFound: If no account has this code
        """
        try:
            return Account.objects.get(code=code)
        except Account.DoesNotExist:
            raise AccountNotFound(
                f"Account {code} not found",
                details={"account_code": code},
            ) from None

    @classmethod
    def resolve_postable_account(cls, code: str) -> Account:
        """
        Get an account by code, requiring it to accept new postings.

        Raises:
            AccountNotFound: If no account has this code
            InactiveAccount: If the account is deactivated
        """
        account = cls.resolve_account(code)
        if not account.is_active:
            raise InactiveAccount(
                f"Account {code} is inactive",
                details={"account_code": code},
            )
        return account

    @classmethod
    def canonical_keys(cls, transaction_type: str) -> frozenset[str]:
        """
        Codes and category keys a record of this direction may reference.

        Only active, non-header accounts of the types in
        CATEGORY_ACCOUNT_TYPES count. Unknown directions have no canonical
        keys, so every category on such a row is invalid.
        """
        account_types = CATEGORY_ACCOUNT_TYPES.get(transaction_type)
        if account_types is None:
            return frozenset()

        cache_key = CANONICAL_KEYS_CACHE_KEY.format(transaction_type=transaction_type)
        keys = cache.get(cache_key)
        if keys is None:
            rows = (
                Account.objects.filter(type__in=account_types, is_active=True)
                .exclude(category=HEADER_CATEGORY)
                .values_list("code", "category")
            )
            keys = sorted({value for row in rows for value in row if value})
            cache.set(cache_key, keys, settings.LEDGER_COA_CACHE_TIMEOUT)
        return frozenset(keys)

    @classmethod
    def validate_category(cls, transaction_type: str, category: str) -> str:
        """
        Check a category before it is written onto a new business record.

        Raises:
            ValidationError: If category is not canonical for the direction
        """
        if category not in cls.canonical_keys(transaction_type):
            raise ValidationError(
                f"Category {category!r} is not valid for {transaction_type} records",
                error_code="INVALID_CATEGORY",
                details={"transaction_type": transaction_type, "category": category},
            )
        return category

    @staticmethod
    def invalidate_cache() -> None:
        cache.delete_many(
            [
                CANONICAL_KEYS_CACHE_KEY.format(transaction_type=transaction_type)
                for transaction_type in CATEGORY_ACCOUNT_TYPES
            ]
        )

    # ==========================================================================
    # Internal
    # ==========================================================================

    @staticmethod
    def _check_normal_balance(type: str, normal_balance: str | None) -> str:
        if type not in AccountType.values:
            raise ValidationError(
                f"Unknown account type {type!r}",
                error_code="INVALID_ACCOUNT_TYPE",
                details={"type": type},
            )
        expected = NORMAL_BALANCE_FOR_TYPE[type]
        if normal_balance is None:
            return expected
        if normal_balance not in NormalBalance.values or normal_balance != expected:
            raise InvalidNormalBalance(
                f"{type} accounts must have a {expected} normal balance, "
                f"got {normal_balance!r}",
                details={
                    "type": type,
                    "normal_balance": normal_balance,
                    "expected": str(expected),
                },
            )
        return expected

    @staticmethod
    def _lock_account(code: str) -> Account:
        try:
            return Account.objects.select_for_update().get(code=code)
        except Account.DoesNotExist:
            raise AccountNotFound(
                f"Account {code} not found",
                details={"account_code": code},
            ) from None

