"""Typed records produced by the statement parser."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional, Tuple

from .errors import Diagnostic, EntrySkipped, FieldParseWarning, StatementFormatError

__all__ = [
    "TextFragment",
    "StatementMetadata",
    "StatementTransaction",
    "CreditCardStatement",
    "ImportableTransaction",
    "ParseResult",
    "TransactionType",
    "Ledger",
]

TransactionType = Literal["purchase", "payment", "refund", "interest", "fee"]
Ledger = Literal["regular", "interest_free"]


@dataclass(frozen=True)
class TextFragment:
    """One positioned text item of a page; ``runs`` hold percent-encoded text."""

    runs: Tuple[str, ...]
    x: Optional[float] = None
    y: Optional[float] = None


@dataclass(frozen=True)
class StatementMetadata:
    statement_date: date
    account_number: str
    opening_balance: Decimal
    closing_balance: Decimal
    credit_limit: Decimal
    available_credit: Decimal
    minimum_payment: Decimal
    due_date: Optional[date]

    def to_dict(self) -> dict:
        return {
            "statementDate": self.statement_date.isoformat(),
            "accountNumber": self.account_number,
            "openingBalance": float(self.opening_balance),
            "closingBalance": float(self.closing_balance),
            "creditLimit": float(self.credit_limit),
            "availableCredit": float(self.available_credit),
            "minimumPayment": float(self.minimum_payment),
            "dueDate": self.due_date.isoformat() if self.due_date else None,
        }


@dataclass(frozen=True)
class StatementTransaction:
    date: date
    description: str
    card: str
    amount: Decimal
    type: TransactionType
    ledger: Ledger = "regular"
    post_date: Optional[date] = None
    raw_segment: str = ""

    @property
    def is_credit(self) -> bool:
        return self.amount > 0

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "card": self.card,
            "amount": float(self.amount),
            "type": self.type,
        }


@dataclass(frozen=True)
class CreditCardStatement:
    metadata: StatementMetadata
    transactions: Tuple[StatementTransaction, ...]
    interest_free_transactions: Tuple[StatementTransaction, ...] = ()
    format_id: str = ""

    @property
    def all_transactions(self) -> Tuple[StatementTransaction, ...]:
        return self.transactions + self.interest_free_transactions

    def to_dict(self) -> dict:
        out = self.metadata.to_dict()
        out["transactions"] = [t.to_dict() for t in self.transactions]
        out["interestFreeTransactions"] = [
            t.to_dict() for t in self.interest_free_transactions
        ]
        return out


@dataclass(frozen=True)
class ImportableTransaction:
    account_id: str
    date: date
    description: str
    amount: Decimal
    type: Literal["debit", "credit"]
    category: str = "Uncategorized"
    source_category: str = "purchase"
    ledger: Ledger = "regular"

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "amount": float(self.amount),
            "category": self.category,
            "account": self.account_id,
            "type": self.type,
            "sourceCategory": self.source_category,
            "ledger": self.ledger,
        }


@dataclass
class ParseResult:
    """Outcome of one parse call: a statement or an error, plus diagnostics."""

    statement: Optional[CreditCardStatement] = None
    error: Optional[StatementFormatError] = None
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.statement is not None and self.error is None

    @property
    def skipped(self) -> List[EntrySkipped]:
        return [d for d in self.diagnostics if isinstance(d, EntrySkipped)]

    @property
    def warnings(self) -> List[FieldParseWarning]:
        return [d for d in self.diagnostics if isinstance(d, FieldParseWarning)]

    def summary(self) -> str:
        imported = len(self.statement.all_transactions) if self.statement else 0
        return (
            f"{imported} transactions imported, "
            f"{len(self.skipped)} lines could not be parsed"
        )
