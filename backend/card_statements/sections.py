"""Slice normalized statement text into metadata and transaction regions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Pattern, Union

from .errors import StatementFormatError

if TYPE_CHECKING:
    from .formats import StatementFormat

__all__ = [
    "StatementSections",
    "anchor_pattern",
    "find_anchor",
    "find_earliest",
    "locate_sections",
    "strip_noise",
    "anchor_report",
]


@dataclass(frozen=True)
class StatementSections:
    metadata: str
    transactions: str
    interest_free: str = ""
    transactions_offset: int = -1
    interest_free_offset: int = -1


@lru_cache(maxsize=256)
def anchor_pattern(phrase: str) -> Pattern[str]:
    """Case- and whitespace-insensitive pattern for an anchor phrase.

    ``"Closing balance"`` matches ``Closingbalance``, ``CLOSING BALANCE`` and
    ``C l o s i n g b a l a n c e`` alike. The flag is scoped so the pattern
    text can be embedded in larger expressions.
    """
    chars = [re.escape(c) for c in phrase if not c.isspace()]
    return re.compile("(?i:" + r"\s*".join(chars) + ")")


def _as_pattern(stop: Union[str, Pattern]) -> Pattern:
    return anchor_pattern(stop) if isinstance(stop, str) else stop


def find_anchor(text: str, phrases: Iterable[str], start: int = 0) -> Optional[re.Match]:
    """First phrase (in priority order) that occurs in ``text`` after ``start``."""
    for phrase in phrases:
        m = anchor_pattern(phrase).search(text, start)
        if m:
            return m
    return None


def find_earliest(
    text: str, stops: Iterable[Union[str, Pattern]], start: int = 0
) -> Optional[re.Match]:
    """Earliest match of any stop anchor after ``start``."""
    best: Optional[re.Match] = None
    for stop in stops:
        m = _as_pattern(stop).search(text, start)
        if m and (best is None or m.start() < best.start()):
            best = m
    return best


def strip_noise(region: str, patterns: Iterable[Pattern]) -> str:
    for rx in patterns:
        region = rx.sub(" ", region)
    return region


def _interest_free_start(text: str, fmt: "StatementFormat") -> Optional[re.Match]:
    """Locate the interest-free anchor, requiring its column header when configured."""
    for phrase in fmt.interest_free_anchors:
        for m in anchor_pattern(phrase).finditer(text):
            if not fmt.interest_free_headers:
                return m
            line_end = text.find("\n", m.end())
            if line_end == -1:
                line_end = len(text)
            header = find_anchor(text[:line_end], fmt.interest_free_headers, m.end())
            if header:
                return header
    return None


def locate_sections(text: str, fmt: "StatementFormat") -> StatementSections:
    """Split ``text`` into metadata, regular and interest-free regions.

    Raises StatementFormatError when no transactions anchor is present.
    """
    txn = find_anchor(text, fmt.transactions_anchors)
    if txn is None:
        raise StatementFormatError(
            f"Transactions anchor not found (expected one of {list(fmt.transactions_anchors)})",
            anchor=fmt.transactions_anchors[0] if fmt.transactions_anchors else None,
        )
    stops = list(fmt.stop_anchors) + list(fmt.interest_free_anchors)
    end_m = find_earliest(text, stops, txn.end())
    txn_end = end_m.start() if end_m else len(text)
    transactions = strip_noise(text[txn.end() : txn_end], fmt.noise_patterns)

    interest_free = ""
    if_offset = -1
    if_start = _interest_free_start(text, fmt) if fmt.interest_free_anchors else None
    if if_start is not None:
        if_offset = if_start.end()
        if_end_m = find_earliest(text, fmt.interest_free_stop_anchors, if_offset)
        if_end = if_end_m.start() if if_end_m else len(text)
        interest_free = strip_noise(text[if_offset:if_end], fmt.noise_patterns)

    return StatementSections(
        metadata=text,
        transactions=transactions,
        interest_free=interest_free,
        transactions_offset=txn.end(),
        interest_free_offset=if_offset,
    )


def anchor_report(text: str, fmt: "StatementFormat") -> Dict[str, bool]:
    """Which anchors and labels of ``fmt`` occur in ``text`` (debug aid)."""
    phrases = list(fmt.transactions_anchors) + list(fmt.interest_free_anchors)
    for labels in fmt.field_labels.values():
        phrases.extend(labels)
    return {p: bool(anchor_pattern(p).search(text)) for p in dict.fromkeys(phrases)}
