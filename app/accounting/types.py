"""
Data types for posting to the ledger.

Types:
    LineParams: One proposed debit or credit leg
    PostEntryParams: A proposed entry submitted to PostingService.post

Usage:
    from accounting.types import LineParams, PostEntryParams

    params = PostEntryParams(
        ref_type="donation",
        ref_id=str(transaction.id),
        posted_at=transaction.paid_at,
        memo="Donation TRX-20240115-AB12CD34",
        lines=[
            LineParams(account_code="1020", debit=100000),
            LineParams(account_code="2010", credit=100000),
        ],
    )

Note:
    These types normalize their input and reject values wider than their
    database columns (ValidationError). Business validation (line
    count, one-sidedness, balance, account resolution) belongs to the
    posting engine, which raises ledger exceptions in a fixed order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.exceptions import ValidationError

if TYPE_CHECKING:
    from datetime import datetime


# Column widths of LedgerEntry and LedgerLine
REF_ID_MAX_LENGTH = 64
CREATED_BY_MAX_LENGTH = 128
LINE_DESCRIPTION_MAX_LENGTH = 255


@dataclass
class LineParams:
    """
    One proposed ledger line.

    Attributes:
        account_code: Chart-of-accounts code to post against
        debit: Debit amount (0 for a credit line)
        credit: Credit amount (0 for a debit line)
        description: Optional line description
    """

    account_code: str
    debit: int = 0
    credit: int = 0
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LineParams:
        return cls(
            account_code=str(data["account_code"]),
            debit=data.get("debit", 0),
            credit=data.get("credit", 0),
            description=data.get("description", ""),
        )


@dataclass
class PostEntryParams:
    """
    A proposed journal entry.

    Required Attributes:
        ref_type: Origin of the entry (see accounting.models.RefType)
        posted_at: When the economic event happened (timezone-aware)
        lines: Proposed lines; plain dicts are converted to LineParams

    Optional Attributes:
        ref_id: Id of the originating record
        memo: Free-text description
        metadata: JSON-serializable data stored on the entry
        created_by: User or job creating the entry
    """

    ref_type: str
    posted_at: datetime
    lines: list[LineParams]
    ref_id: str = ""
    memo: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_by: str = ""

    def __post_init__(self) -> None:
        if not self.ref_type:
            raise ValueError("ref_type is required")
        if self.posted_at is None:
            raise ValueError("posted_at is required")
        self.ref_id = "" if self.ref_id is None else str(self.ref_id)
        for name, limit in (
            ("ref_id", REF_ID_MAX_LENGTH),
            ("created_by", CREATED_BY_MAX_LENGTH),
        ):
            value = getattr(self, name)
            if len(value) > limit:
                raise ValidationError(
                    f"{name} must be at most {limit} characters",
                    error_code="FIELD_TOO_LONG",
                    details={"field": name, "max_length": limit, "length": len(value)},
                )
        self.lines = [
            line if isinstance(line, LineParams) else LineParams.from_dict(line)
            for line in self.lines
        ]
