"""
Base service layer patterns for business logic encapsulation.

Services hold the business rules. Models hold data and row-level
invariants, and management commands and Celery tasks only parse input
and report output.

Failures are raised as core.exceptions subclasses; services never return
sentinel values for errors. Batch jobs return a result dataclass of counts.

Usage:
    from core.services import BaseService

    class ChartOfAccountsService(BaseService):
        @classmethod
        def deactivate_account(cls, code: str) -> Account:
            with cls.atomic():
                account = Account.objects.select_for_update().get(code=code)
                account.is_active = False
                account.save(update_fields=["is_active", "updated_at"])

            cls.get_logger().info(
                "Account deactivated", extra={"account_code": code}
            )
            return account
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

from django.db import transaction

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from collections.abc import Generator


class BaseService:
    """
    Base class for service layer classes.

    Services are stateless: use @classmethod or @staticmethod.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """
        Get a logger named after the service class.

        Example:
            class ReportService(BaseService):
                @classmethod
                def financial_statement(cls, start, end):
                    cls.get_logger().info("Building statement")
        """
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Run the block in a database transaction.

        Nested use creates a savepoint, so an inner failure only rolls back
        the inner block.
        """
        with transaction.atomic():
            yield

    @classmethod
    def validate_required(cls, **kwargs) -> None:
        """
        Raise ValidationError if any keyword value is None or blank.

        Example:
            cls.validate_required(code=code, name=name)
        """
        errors = {}
        for field_name, value in kwargs.items():
            if value is None or (isinstance(value, str) and not value.strip()):
                errors[field_name] = ["This field is required."]

        if errors:
            raise ValidationError(
                "Required fields missing",
                error_code="REQUIRED_FIELDS_MISSING",
                details=errors,
            )
