"""Labeled-value extraction of statement summary fields."""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from functools import lru_cache
from typing import TYPE_CHECKING, List, Optional, Pattern, Tuple

from .constants import (
    ACCOUNT_NUMBER_PATTERN,
    CRITICAL_FIELDS,
    MONEY_PATTERN,
    NAMED_DATE_PATTERN,
    SLASH_DATE_PATTERN,
)
from .errors import Diagnostic, FieldParseWarning, StatementFormatError
from .models import StatementMetadata
from .sections import anchor_pattern
from .utils import CENTS, parse_date_token, parse_money

if TYPE_CHECKING:
    from .formats import StatementFormat

logger = logging.getLogger(__name__)

__all__ = ["parse_metadata", "find_labeled_value"]

# Text allowed between a label and its value, e.g. " (incl. cash limit) : ".
LABEL_GAP = r"[^\n$\d]{0,60}?"

DATE_VALUE = rf"(?:{SLASH_DATE_PATTERN}|{NAMED_DATE_PATTERN})"

_FIELD_KINDS = {
    "statement_date": "date",
    "account_number": "account",
    "opening_balance": "money",
    "closing_balance": "money",
    "credit_limit": "money",
    "available_credit": "money",
    "minimum_payment": "money",
    "due_date": "date",
}

_VALUE_PATTERNS = {
    "date": DATE_VALUE,
    "money": MONEY_PATTERN,
    "account": ACCOUNT_NUMBER_PATTERN,
}

_DEFAULTS = {
    "date": None,
    "money": Decimal("0.00"),
    "account": "",
}


@lru_cache(maxsize=256)
def _labeled_value_rx(label: str, kind: str) -> Pattern[str]:
    return re.compile(
        anchor_pattern(label).pattern + LABEL_GAP + f"(?P<value>{_VALUE_PATTERNS[kind]})"
    )


def _convert(kind: str, raw: str):
    if kind == "date":
        return parse_date_token(raw)
    if kind == "money":
        value = parse_money(raw)
        return abs(value).quantize(CENTS) if value is not None else None
    return re.sub(r"[\s-]", "", raw)


def find_labeled_value(text: str, labels: Tuple[str, ...], kind: str):
    """Value following the first label (in priority order) that parses."""
    for label in labels:
        for m in _labeled_value_rx(label, kind).finditer(text):
            value = _convert(kind, m.group("value"))
            if value is not None and value != "":
                return value
    return None


def parse_metadata(
    text: str, fmt: "StatementFormat", diagnostics: Optional[List[Diagnostic]] = None
) -> StatementMetadata:
    """Read every summary field of ``fmt`` from ``text``.

    Missing critical fields raise StatementFormatError; other fields fall back
    to a sentinel and a FieldParseWarning is appended to ``diagnostics``.
    """
    sink: List[Diagnostic] = diagnostics if diagnostics is not None else []
    values = {}
    for field_name, kind in _FIELD_KINDS.items():
        labels = fmt.labels_for(field_name)
        value = find_labeled_value(text, labels, kind) if labels else None
        if value is None:
            if field_name in CRITICAL_FIELDS:
                raise StatementFormatError(
                    f"Required field '{field_name}' not found "
                    f"(labels tried: {list(labels)})",
                    field=field_name,
                )
            logger.info("Statement field %s not found; using default", field_name)
            sink.append(
                FieldParseWarning(
                    field=field_name,
                    message=f"No value found after {list(labels)}; defaulted",
                )
            )
            value = _DEFAULTS[kind]
        values[field_name] = value
    return StatementMetadata(**values)
