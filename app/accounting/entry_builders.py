"""
Builders for the standard business entries.

Pure functions: they compute a balanced PostEntryParams from amounts the
caller supplies and never touch the database. Fees are arguments, so fee
policy stays with the business logic that knows the payment channel.

Usage:
    from accounting import entry_builders
    from accounting.services import PostingService

    params = entry_builders.donation_received(
        transaction_id=transaction.id,
        amount=transaction.paid_amount,
        posted_at=transaction.paid_at,
        fee=2500,
    )
    transaction.ledger_entry = PostingService.post(params)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.conf import settings

from accounting.models import RefType
from accounting.types import LineParams, PostEntryParams

if TYPE_CHECKING:
    from datetime import datetime


def donation_received(
    transaction_id,
    amount: int,
    posted_at: datetime,
    fee: int = 0,
    fee_as_expense: bool = False,
    memo: str = "",
    created_by: str = "",
    liability_account_code: str | None = None,
) -> PostEntryParams:
    """
    Donation settled into the bank, held in trust for the campaign.

    Without fee_as_expense the fee is simply netted out:
        Dr bank (amount - fee) / Cr donation liability (amount - fee)

    With fee_as_expense the donor's full amount is owed to the campaign and
    the foundation absorbs the fee:
        Dr bank (amount - fee), Dr gateway fee (fee) / Cr liability (amount)

    Raises:
        ValueError: If fee is negative or not below amount
    """
    if fee < 0 or fee >= amount:
        raise ValueError(f"fee must be in [0, amount), got {fee} for {amount}")

    net = amount - fee
    bank = settings.LEDGER_BANK_ACCOUNT_CODE
    liability = liability_account_code or settings.LEDGER_DONATION_LIABILITY_ACCOUNT_CODE

    lines = [LineParams(account_code=bank, debit=net, description="Donation received")]
    if fee_as_expense and fee:
        lines.append(
            LineParams(
                account_code=settings.LEDGER_GATEWAY_FEE_ACCOUNT_CODE,
                debit=fee,
                description="Payment gateway fee",
            )
        )
        lines.append(LineParams(account_code=liability, credit=amount))
    else:
        lines.append(LineParams(account_code=liability, credit=net))

    return PostEntryParams(
        ref_type=RefType.DONATION,
        ref_id=transaction_id,
        posted_at=posted_at,
        memo=memo,
        lines=lines,
        metadata={"gross_amount": amount, "fee": fee},
        created_by=created_by,
    )


def disbursement_paid(
    disbursement_id,
    amount: int,
    posted_at: datetime,
    debit_account_code: str | None = None,
    memo: str = "",
    created_by: str = "",
) -> PostEntryParams:
    """
    Funds paid out of the bank.

    Draws down the donation liability by default:
        Dr liability (amount) / Cr bank (amount)

    Pass an expense code as debit_account_code for operational spending.
    """
    return PostEntryParams(
        ref_type=RefType.DISBURSEMENT,
        ref_id=disbursement_id,
        posted_at=posted_at,
        memo=memo,
        lines=[
            LineParams(
                account_code=(
                    debit_account_code
                    or settings.LEDGER_DONATION_LIABILITY_ACCOUNT_CODE
                ),
                debit=amount,
            ),
            LineParams(
                account_code=settings.LEDGER_BANK_ACCOUNT_CODE,
                credit=amount,
                description="Disbursement paid",
            ),
        ],
        created_by=created_by,
    )
