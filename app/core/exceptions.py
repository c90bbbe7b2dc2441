"""
Base exception classes shared by every domain app.

Exceptions carry a human-readable message, a machine-readable error code
and a details dict, so callers (management commands, Celery tasks, a
reporting UI) can log or serialize them without string parsing.

Exception Hierarchy:
    BaseApplicationError (base)
    ├── ValidationError - Malformed input (bad date range, bad filter)
    ├── NotFoundError - Referenced record does not exist
    └── ConflictError - State conflicts (duplicates, held locks)

Usage:
    from core.exceptions import ValidationError

    raise ValidationError(
        "page must be >= 1",
        error_code="INVALID_PAGE",
        details={"page": 0},
    )

    try:
        ...
    except BaseApplicationError as e:
        logger.warning("Operation failed", extra=e.to_dict())
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for all application-specific errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable code, defaults to the class default
        details: Additional error context (amounts, codes, ids)
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the exception to a plain dict.

        Example:
            {
                "error": "Entry is unbalanced",
                "error_code": "UNBALANCED_ENTRY",
                "details": {"total_debit": 100000, "total_credit": 90000}
            }
        """
        result: dict[str, Any] = {
            "error": self.message,
            "error_code": self.error_code,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class ValidationError(BaseApplicationError):
    """
    Raised when caller input is malformed.

    Distinct from django.core.exceptions.ValidationError, which is reserved
    for model-level clean() failures.
    """

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Raised when a referenced record does not exist."""

    default_error_code: str = "NOT_FOUND"


class ConflictError(BaseApplicationError):
    """
    Raised when an operation conflicts with current state.

    Use for duplicate keys, illegal state transitions, or a resource
    that another process currently holds.
    """

    default_error_code: str = "CONFLICT"
