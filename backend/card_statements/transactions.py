"""Reconstruct transaction entries from a de-spaced transactions region.

After de-spacing, a region is one long stream: entries follow each other with
nothing but whitespace (sometimes not even that) between them. An entry starts
at a date token; within an entry the first date is the transaction date, a
date directly after it is the posting date, the last money token (or the
first, for layouts with the amount column right after the card) is the amount
and a card suffix may sit right before the amount. Whatever is left is the
description.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import TYPE_CHECKING, List, Optional, Pattern, Sequence, Tuple

from .constants import (
    CAMEL_BOUNDARY_RX,
    FEE_DESC_RX,
    INTEREST_DESC_RX,
    MONEY_RX,
    PAYMENT_DESC_RX,
    REFUND_DESC_RX,
    REPEATED_SEPARATOR_RX,
)
from .errors import Diagnostic, EntrySkipped
from .models import Ledger, StatementTransaction, TransactionType
from .utils import date_from_match, money_from_match

if TYPE_CHECKING:
    from .formats import StatementFormat

logger = logging.getLogger(__name__)

__all__ = [
    "find_entry_starts",
    "clean_description",
    "classify_description",
    "parse_entry",
    "parse_transactions",
]

CREDIT_TYPES = ("payment", "refund")
CARD_SUFFIX_LEN = 4

EntryStart = Tuple[re.Match, Optional[re.Match]]


def _glued_to_word(region: str, m: re.Match) -> bool:
    return (
        m.start() > 0
        and region[m.start() - 1].isalpha()
        and not m.group("month").isdigit()
    )


def _date_tokens(region: str, patterns: Sequence[Pattern]) -> List[re.Match]:
    found: List[re.Match] = [m for rx in patterns for m in rx.finditer(region)]
    found.sort(key=lambda m: (m.start(), -m.end()))
    tokens: List[re.Match] = []
    last_end = -1
    for m in found:
        if m.start() < last_end:
            continue
        # A month-name date glued to a word ("INV12Sep2025") belongs to the
        # description unless the previous entry already has its amount
        # ("...25.00CR03Sep2025") or it directly follows another date.
        if tokens and _glued_to_word(region, m):
            between = region[tokens[-1].end() : m.start()]
            if between.strip() and not MONEY_RX.search(between):
                continue
        tokens.append(m)
        last_end = m.end()
    return tokens


def find_entry_starts(region: str, patterns: Sequence[Pattern]) -> List[EntryStart]:
    """Return (transaction_date, posting_date) matches for each entry in ``region``."""
    entries: List[EntryStart] = []
    for m in _date_tokens(region, patterns):
        if entries:
            first, post = entries[-1]
            if post is None and not region[first.end() : m.start()].strip():
                entries[-1] = (first, m)
                continue
        entries.append((m, None))
    return entries


def clean_description(raw: str) -> str:
    """Tidy a description: collapse whitespace, re-space glued words, drop repeated separators."""
    text = re.sub(r"\s+", " ", raw).strip()
    text = CAMEL_BOUNDARY_RX.sub(" ", text)
    text = REPEATED_SEPARATOR_RX.sub(r"\1", text)
    text = text.strip(" -–:*|/.,")
    return re.sub(r"\s+", " ", text).strip()


def classify_description(description: str) -> TransactionType:
    squashed = re.sub(r"\s+", "", description).lower()
    if FEE_DESC_RX.search(squashed):
        return "fee"
    if INTEREST_DESC_RX.search(squashed):
        return "interest"
    if PAYMENT_DESC_RX.search(squashed):
        return "payment"
    if REFUND_DESC_RX.search(squashed):
        return "refund"
    return "purchase"


def _resolve_sign(
    explicit: Optional[int], txn_type: TransactionType, fmt: "StatementFormat", ledger: Ledger
) -> int:
    if explicit is not None:
        return explicit
    if ledger == "interest_free":
        if fmt.interest_free_keyword_signs and txn_type in CREDIT_TYPES:
            return 1
        return fmt.interest_free_default_sign
    if txn_type in CREDIT_TYPES:
        return 1
    return fmt.default_sign


def _split_glued_card(body: str, amount_m: re.Match) -> Tuple[str, re.Match]:
    """Separate a card suffix fused to an unsigned amount ("UBERTRIP123423.50").

    Only plain digit runs longer than a card suffix, glued to a word, are
    split; amounts with thousands separators or a currency sign are left as is.
    """
    whole = amount_m.group("whole")
    start = amount_m.start()
    if (
        start == 0
        or amount_m.start("whole") != start
        or not whole.isdigit()
        or len(whole) <= CARD_SUFFIX_LEN
        or not body[start - 1].isalpha()
    ):
        return "", amount_m
    rest = MONEY_RX.match(body, start + CARD_SUFFIX_LEN, amount_m.end())
    if rest is None:
        return "", amount_m
    return whole[:CARD_SUFFIX_LEN], rest


def parse_entry(
    region: str,
    date_m: re.Match,
    post_m: Optional[re.Match],
    end: int,
    fmt: "StatementFormat",
    ledger: Ledger = "regular",
    reference: Optional[date] = None,
) -> Tuple[Optional[StatementTransaction], Optional[str]]:
    """Parse the entry spanning ``region[date_m.start():end]``.

    Returns (transaction, None) or (None, reason) when the entry has no
    usable date or amount.
    """
    segment = region[date_m.start() : end]
    txn_date = date_from_match(date_m, reference)
    if txn_date is None:
        return None, "unreadable transaction date"
    post_date = date_from_match(post_m, reference) if post_m else None
    body = region[(post_m or date_m).end() : end]

    amounts = list(MONEY_RX.finditer(body))
    if not amounts:
        return None, "no amount found"
    amount_m = amounts[0] if fmt.amount_position == "first" else amounts[-1]

    card = ""
    if fmt.card_rx is not None:
        card_m = fmt.card_rx.search(body, 0, amount_m.start())
        if card_m:
            card = card_m.group("card")
            before = body[: card_m.start()]
        else:
            card, amount_m = _split_glued_card(body, amount_m)
            before = body[: amount_m.start() - len(card)]
    else:
        before = body[: amount_m.start()]
    magnitude, explicit_sign = money_from_match(amount_m)
    description = clean_description(f"{before} {body[amount_m.end() :]}")

    txn_type = classify_description(description)
    sign = _resolve_sign(explicit_sign, txn_type, fmt, ledger)
    amount = magnitude if magnitude == 0 else magnitude * sign
    if amount > 0 and txn_type == "purchase":
        txn_type = "refund"
    elif amount < 0 and txn_type in CREDIT_TYPES:
        txn_type = "purchase"

    return (
        StatementTransaction(
            date=txn_date,
            description=description,
            card=card,
            amount=amount,
            type=txn_type,
            ledger=ledger,
            post_date=post_date,
            raw_segment=segment.strip(),
        ),
        None,
    )


def parse_transactions(
    region: str,
    fmt: "StatementFormat",
    ledger: Ledger = "regular",
    reference: Optional[date] = None,
) -> Tuple[List[StatementTransaction], List[Diagnostic]]:
    """Parse every entry of a transactions region.

    Never raises on a bad entry: unresolved segments are returned as
    EntrySkipped diagnostics next to the parsed transactions.
    """
    transactions: List[StatementTransaction] = []
    diagnostics: List[Diagnostic] = []
    starts = find_entry_starts(region, fmt.entry_date_patterns)

    lead = region[: starts[0][0].start()] if starts else region
    if MONEY_RX.search(lead):
        diagnostics.append(
            EntrySkipped(segment=lead.strip(), reason="amount without a date", ledger=ledger)
        )
        logger.debug("Skipping undated %s segment: %r", ledger, lead.strip())

    for idx, (date_m, post_m) in enumerate(starts):
        end = starts[idx + 1][0].start() if idx + 1 < len(starts) else len(region)
        txn, reason = parse_entry(region, date_m, post_m, end, fmt, ledger, reference)
        if txn is None:
            segment = region[date_m.start() : end].strip()
            diagnostics.append(EntrySkipped(segment=segment, reason=reason or "", ledger=ledger))
            logger.debug("Skipping %s segment (%s): %r", ledger, reason, segment)
            continue
        transactions.append(txn)
    return transactions, diagnostics
