"""Credit-card statement parsing entry points.

Pipeline: PDF bytes -> text fragments (pdfplumber) -> normalized text ->
sections -> metadata + transactions -> ``CreditCardStatement``.

Every ``parse_*`` function returns a ``ParseResult``. A document that is not a
recognized layout yields ``result.error`` (a StatementFormatError) and no
statement; bad individual entries and missing optional fields only add
diagnostics.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from itertools import accumulate
from typing import BinaryIO, List, Optional, Union

import pandas as pd

from .errors import Diagnostic, FieldParseWarning, StatementFormatError
from .extraction import Pages, extract_fragments
from .formats import StatementFormat, detect_format, get_format, list_formats
from .metadata import parse_metadata
from .models import CreditCardStatement, ParseResult
from .normalize import normalize_text
from .sections import anchor_report, locate_sections
from .transactions import parse_transactions

logger = logging.getLogger(__name__)

__all__ = [
    "parse_statement",
    "parse_statement_pages",
    "parse_statement_text",
    "parse_credit_card_pdf",
    "statement_to_frame",
    "reconcile_statement",
    "check_statement_window",
    "describe_text",
]

FormatArg = Union[str, StatementFormat, None]

FRAME_COLUMNS = [
    "date",
    "post_date",
    "description",
    "card",
    "amount",
    "type",
    "ledger",
    "balance",
]


def _build_statement(
    text: str, fmt: StatementFormat, diagnostics: List[Diagnostic]
) -> CreditCardStatement:
    sections = locate_sections(text, fmt)
    metadata = parse_metadata(sections.metadata, fmt, diagnostics)
    regular, skipped = parse_transactions(
        sections.transactions, fmt, "regular", metadata.statement_date
    )
    diagnostics.extend(skipped)
    interest_free = []
    if sections.interest_free:
        interest_free, skipped = parse_transactions(
            sections.interest_free, fmt, "interest_free", metadata.statement_date
        )
        diagnostics.extend(skipped)
    statement = CreditCardStatement(
        metadata=metadata,
        transactions=tuple(regular),
        interest_free_transactions=tuple(interest_free),
        format_id=fmt.id,
    )
    diagnostics.extend(check_statement_window(statement))
    return statement


def parse_statement_text(text: str, fmt: FormatArg = None) -> ParseResult:
    """Parse already normalized statement text.

    ``fmt`` may be a format id, a StatementFormat, or None to detect the
    layout (falling back to the default format).
    """
    resolved = get_format(fmt) if fmt is not None else (detect_format(text) or get_format())
    result = ParseResult()
    try:
        result.statement = _build_statement(text, resolved, result.diagnostics)
    except StatementFormatError as e:
        logger.info("Not a %s statement: %s", resolved.id, e)
        result.error = e
        return result
    logger.info(
        "Parsed %s statement: %d transactions, %d interest free, %d diagnostics",
        resolved.id,
        len(result.statement.transactions),
        len(result.statement.interest_free_transactions),
        len(result.diagnostics),
    )
    return result


def parse_statement_pages(pages: Pages, fmt: FormatArg = None) -> ParseResult:
    return parse_statement_text(normalize_text(pages), fmt)


def parse_statement(
    pdf_file: Union[bytes, bytearray, BinaryIO, None],
    pages: Optional[Pages] = None,
    fmt: FormatArg = None,
) -> ParseResult:
    """Parse a PDF buffer, or the fragment pages already extracted from it."""
    if pages is None:
        pages = extract_fragments(pdf_file) if pdf_file is not None else []
    return parse_statement_pages(pages, fmt)


def parse_credit_card_pdf(
    pdf_file: Union[bytes, bytearray, BinaryIO, None],
    pages: Optional[Pages] = None,
) -> ParseResult:
    """Try the detected layout first, then every other registered format.

    The first result that yields transactions wins; otherwise the first
    successful parse; otherwise the first failure, preferring one that
    names a missing field over a missing anchor.
    """
    if pages is None:
        pages = extract_fragments(pdf_file) if pdf_file is not None else []
    text = normalize_text(pages)
    detected = detect_format(text)
    candidates = [detected] if detected else []
    candidates += [f for f in list_formats() if f is not detected]

    first_ok: Optional[ParseResult] = None
    first_failure: Optional[ParseResult] = None
    for fmt in candidates:
        result = parse_statement_text(text, fmt)
        if result.ok:
            if result.statement.all_transactions:
                return result
            first_ok = first_ok or result
        elif first_failure is None or (
            first_failure.error.field is None and result.error.field is not None
        ):
            # a format whose anchors matched explains the failure better
            first_failure = result
    if first_ok is not None:
        return first_ok
    if first_failure is not None:
        return first_failure
    return ParseResult(error=StatementFormatError("No statement formats registered"))


def statement_to_frame(statement: CreditCardStatement) -> pd.DataFrame:
    """Transactions as a DataFrame; ``balance`` is the running amount owed (regular ledger)."""
    rows = [
        {
            "date": t.date,
            "post_date": t.post_date,
            "description": t.description,
            "card": t.card,
            "amount": t.amount,
            "type": t.type,
            "ledger": t.ledger,
            "balance": None,
        }
        for t in statement.all_transactions
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    if df.empty:
        return df
    regular_mask = df["ledger"] == "regular"
    opening = statement.metadata.opening_balance
    running = list(
        accumulate(df.loc[regular_mask, "amount"].tolist(), lambda bal, amt: bal - amt, initial=opening)
    )[1:]
    df["balance"] = df["balance"].astype(object)
    df.loc[regular_mask, "balance"] = pd.Series(running, index=df.index[regular_mask], dtype=object)
    return df


def reconcile_statement(
    statement: CreditCardStatement, tolerance: Decimal = Decimal("0.01")
) -> dict:
    """Check opening balance minus regular amounts against the closing balance.

    With purchases negative and payments positive, the amount owed moves
    opposite to the transaction amounts.
    """
    df = statement_to_frame(statement)
    amounts = df.loc[df["ledger"] == "regular", "amount"].tolist() if not df.empty else []
    net = sum(amounts, Decimal("0.00"))
    opening = statement.metadata.opening_balance
    closing = statement.metadata.closing_balance
    expected = opening - net
    delta = closing - expected
    return {
        "opening_balance": float(opening),
        "closing_balance": float(closing),
        "net_amount": float(net),
        "expected_closing_balance": float(expected),
        "delta": float(delta),
        "balanced": abs(delta) <= tolerance,
        "transaction_count": len(amounts),
    }


def check_statement_window(statement: CreditCardStatement) -> List[FieldParseWarning]:
    """Warn about regular transactions dated outside the month before the statement date."""
    end = statement.metadata.statement_date
    start = (pd.Timestamp(end) - pd.DateOffset(months=1)).date()
    warnings: List[FieldParseWarning] = []
    for idx, txn in enumerate(statement.transactions):
        if not start <= txn.date <= end:
            warnings.append(
                FieldParseWarning(
                    field=f"transactions[{idx}].date",
                    message=f"{txn.date.isoformat()} is outside {start.isoformat()}..{end.isoformat()}",
                )
            )
    return warnings


def describe_text(text: str, fmt: FormatArg = None, preview_chars: int = 1500) -> dict:
    """Normalized text preview plus which anchors were found (debug aid)."""
    resolved = get_format(fmt) if fmt is not None else (detect_format(text) or get_format())
    return {
        "format": resolved.id,
        "detected": (detect_format(text) or resolved).id,
        "length": len(text),
        "preview": text[:preview_chars],
        "anchors": anchor_report(text, resolved),
    }
