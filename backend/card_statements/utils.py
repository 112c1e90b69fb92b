"""Small shared helpers used by backend modules."""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Tuple

import pandas as pd

from .constants import MONEY_RX, MONTH_NUMBERS, NAMED_DATE_RX, SLASH_DATE_RX

CENTS = Decimal("0.01")


def df_to_records(df: pd.DataFrame) -> List[dict]:
    """Convert a DataFrame to JSON-serializable records.

    - Converts pandas NA to None
    - Converts date/datetime objects to ISO strings
    - Converts Decimal amounts to float
    """
    if df is None or df.empty:
        return []
    out = df.to_dict(orient="records")
    for rec in out:
        for k, v in list(rec.items()):
            if isinstance(v, Decimal):
                rec[k] = float(v)
            elif v is None or (not isinstance(v, str) and pd.isna(v)):
                rec[k] = None
            elif hasattr(v, "isoformat"):
                rec[k] = v.isoformat()
    return out


def money_from_match(m: re.Match) -> Tuple[Decimal, Optional[int]]:
    """Return (magnitude, explicit_sign) for a ``MONEY_RX`` match.

    ``explicit_sign`` is -1 / +1 when the token carries a sign, parentheses,
    a trailing minus or a CR/DR marker, else None.
    """
    whole = re.sub(r"[\s,]", "", m.group("whole"))
    magnitude = Decimal(f"{whole}.{m.group('cents')}").quantize(CENTS)
    sign: Optional[int] = None
    if m.group("sign") in ("-", "−") or m.group("sign2") or m.group("trail"):
        sign = -1
    elif m.group("sign") == "+":
        sign = 1
    if m.group("open") and m.group("close"):
        sign = -1
    marker = m.group("marker")
    if marker == "CR":
        sign = 1
    elif marker == "DR":
        sign = -1
    return magnitude, sign


def parse_money(raw: str | None) -> Decimal | None:
    """Parse a currency-like token into a signed Decimal.

    Accepts ``$1,234.56``, ``$ 4 , 160 . 00``, ``(12.00)``, ``12.00-`` and
    ``12.00 CR``. Returns None when the token is not a money value.
    """
    if not raw:
        return None
    m = MONEY_RX.fullmatch(raw.strip())
    if not m:
        return None
    try:
        magnitude, sign = money_from_match(m)
    except InvalidOperation:
        return None
    return -magnitude if sign == -1 else magnitude


def date_from_match(m: re.Match, reference: date | None = None) -> date | None:
    """Build a date from a ``SLASH_DATE_RX`` / ``NAMED_DATE_RX`` match.

    Tokens without a year take the reference year, or the previous year when
    that would put them after the reference date.
    """
    day = int(m.group("day"))
    month_raw = m.group("month")
    if month_raw.isdigit():
        month = int(month_raw)
    else:
        month = MONTH_NUMBERS.get(month_raw[:3].lower())
        if month is None:
            return None
    year_raw = m.group("year")
    try:
        if year_raw:
            return date(int(year_raw), month, day)
        if reference is None:
            return None
        candidate = date(reference.year, month, day)
        if candidate > reference:
            candidate = date(reference.year - 1, month, day)
        return candidate
    except ValueError:
        return None


def parse_date_token(raw: str | None, reference: date | None = None) -> date | None:
    """Parse ``DD/MM/YYYY`` or ``DD Month YYYY`` (spaces optional)."""
    if not raw:
        return None
    token = raw.strip()
    for rx in (SLASH_DATE_RX, NAMED_DATE_RX):
        m = rx.fullmatch(token)
        if m:
            return date_from_match(m, reference)
    return None


__all__ = [
    "CENTS",
    "df_to_records",
    "money_from_match",
    "parse_money",
    "date_from_match",
    "parse_date_token",
]
