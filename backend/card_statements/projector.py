"""Project parsed statement transactions into the generic import shape."""

from __future__ import annotations

from typing import List

from .categorize import categorize_description
from .models import CreditCardStatement, ImportableTransaction

__all__ = ["statement_to_transactions", "DEFAULT_CATEGORY"]

DEFAULT_CATEGORY = "Uncategorized"


def statement_to_transactions(
    statement: CreditCardStatement, account_id: str, categorize: bool = False
) -> List[ImportableTransaction]:
    """Map every regular then interest-free transaction 1:1 to an import record.

    Positive amounts (payments, refunds) become ``credit``; everything else is
    ``debit``. ``ledger`` and ``source_category`` keep the origin visible.
    No deduplication happens here.
    """
    out: List[ImportableTransaction] = []
    for txn in statement.all_transactions:
        category = (
            categorize_description(txn.description, txn.amount)
            if categorize
            else DEFAULT_CATEGORY
        )
        out.append(
            ImportableTransaction(
                account_id=account_id,
                date=txn.date,
                description=txn.description,
                amount=txn.amount,
                type="credit" if txn.is_credit else "debit",
                category=category,
                source_category=txn.type,
                ledger=txn.ledger,
            )
        )
    return out
