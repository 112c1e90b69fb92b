"""Keyword categorization for credit-card transactions.

Canonical categories:
  1. Payment          (BPAY / direct payments to the card)
  2. Fees & Charges   (account fees, late fees, interest)
  3. Shopping         (online marketplaces, department stores)
  4. Groceries        (supermarkets)
  5. Dining           (restaurants, cafes, fast food)
  6. Utilities        (electricity, gas, water, internet, phone)
  7. Healthcare       (pharmacy, medical, dental)
  8. Transport        (fuel, rideshare, public transport)

A description matching no rule falls back to "Refund" for credits and
"General" for everything else.

Custom rules:
  * CATEGORY_RULES_FILE names a JSON object mapping a category to a list of
    regexes, e.g. {"Groceries": ["IGA", "ALDI"]}. A category listed there uses
    only those regexes; categories not listed keep the built-in keywords.
  * ``register_custom_rule(category, pattern, prepend=False)`` adds a rule at
    runtime; it is checked before the keyword table.
"""

from __future__ import annotations

import json
import logging
import os
import re
from decimal import Decimal
from functools import lru_cache
from threading import RLock
from typing import Any, Dict, Iterable, List, NamedTuple, Pattern, Union

logger = logging.getLogger(__name__)

CategoryName = str

CANONICAL_CATEGORIES: List[CategoryName] = [
    "Payment",
    "Fees & Charges",
    "Shopping",
    "Groceries",
    "Dining",
    "Utilities",
    "Healthcare",
    "Transport",
]
FALLBACK_CREDIT = "Refund"
FALLBACK_DEBIT = "General"


class CategoryRule(NamedTuple):
    category: CategoryName
    pattern: Pattern


_custom_rules: List[CategoryRule] = []
_custom_rules_lock = RLock()

DEFAULT_CATEGORY_REGEX: Dict[CategoryName, List[str]] = {
    "Payment": [
        r"\bPAYMENT\b",
        r"\bBPAY\b",
        r"\bAUTO ?PAY\b",
    ],
    "Fees & Charges": [
        r"\bFEES?\b",
        r"\bINTEREST\b",
        r"\bLATE CHARGE\b",
    ],
    "Shopping": [
        r"\b(TEMU|AMAZON|EBAY|COSTCO|KMART|TARGET|BIG W|MYER|DAVID JONES)\b",
        r"\b(JB ?HI ?FI|HARVEY NORMAN|OFFICEWORKS|BUNNINGS|IKEA)\b",
    ],
    "Groceries": [
        r"\b(WOOLWORTHS|COLES|ALDI|IGA|HARRIS FARM|FOODWORKS)\b",
    ],
    "Dining": [
        r"\b(RESTAURANT|CAFE|MCDONALD'?S?|KFC|HUNGRY JACK'?S?|DOMINO'?S|SUBWAY)\b",
        r"\b(UBER ?EATS|DOORDASH|MENULOG|DELIVEROO)\b",
    ],
    "Utilities": [
        r"\b(ELECTRICITY|GAS|WATER|INTERNET|PHONE|TELSTRA|OPTUS|VODAFONE)\b",
        r"\b(AGL|ORIGIN ENERGY|ENERGYAUSTRALIA|RED ENERGY)\b",
    ],
    "Healthcare": [
        r"\b(PHARMACY|MEDICAL|DOCTOR|DENTIST|DENTAL|CHEMIST|HOSPITAL)\b",
    ],
    "Transport": [
        r"\b(PETROL|FUEL|UBER|TAXI|MYKI|OPAL|AMPOL|BP|SHELL|7-ELEVEN)\b",
        r"\b(PARKING|TOLL|LINKT|E-?TAG)\b",
    ],
}


def register_custom_rule(
    category: CategoryName, regex: str, prepend: bool = False
) -> None:
    """Register a custom regex rule at runtime.

    Args:
        category: One of CANONICAL_CATEGORIES (else ValueError).
        regex:    Regex string (case-insensitive) applied to the description.
        prepend:  If True, the rule is evaluated before all other rules.
    """
    if category not in CANONICAL_CATEGORIES:
        raise ValueError(
            f"Unknown category '{category}'. Must be one of {CANONICAL_CATEGORIES}."
        )
    rule = CategoryRule(category, re.compile(regex, re.IGNORECASE))
    with _custom_rules_lock:
        if prepend:
            _custom_rules.insert(0, rule)
        else:
            _custom_rules.append(rule)
        _compile_rules.cache_clear()


def _load_overrides_from_file() -> Dict[CategoryName, List[str]]:
    path = os.environ.get("CATEGORY_RULES_FILE")
    if not path or not os.path.isfile(path):
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        logger.warning("Could not read CATEGORY_RULES_FILE %s", path, exc_info=True)
        return {}
    overrides: Dict[CategoryName, List[str]] = {}
    if isinstance(data, dict):
        for k, v in data.items():
            if k in CANONICAL_CATEGORIES and isinstance(v, list):
                overrides[k] = [str(x) for x in v if isinstance(x, str)]
    return overrides


@lru_cache(maxsize=1)
def _compile_rules() -> List[CategoryRule]:
    overrides = _load_overrides_from_file()
    rules: List[CategoryRule] = []
    for cat in CANONICAL_CATEGORIES:
        regexes: Iterable[str] = overrides.get(cat, DEFAULT_CATEGORY_REGEX.get(cat, []))
        for rx in regexes:
            try:
                rules.append(CategoryRule(cat, re.compile(rx, re.IGNORECASE)))
            except re.error:
                logger.warning("Ignoring invalid category regex for %s: %r", cat, rx)
    if _custom_rules:
        rules = list(_custom_rules) + rules
    return rules


@lru_cache(maxsize=8192)
def normalize_description(desc: str) -> str:
    """Upper-case, whitespace-collapsed form used for rule matching."""
    if not isinstance(desc, str):
        return ""
    return re.sub(r"\s+", " ", desc.upper()).strip()


def categorize_with_metadata(
    desc: str, amount: Union[Decimal, float, None] = None
) -> Dict[str, Any]:
    """Return the category for one description plus how it was chosen.

    Keys: description, category, source ("regex" | "fallback"), matched_pattern.
    """
    up = normalize_description(desc or "")
    for rule in _compile_rules():
        if rule.pattern.search(up):
            return {
                "description": desc,
                "category": rule.category,
                "source": "regex",
                "matched_pattern": rule.pattern.pattern,
            }
    positive = amount is not None and amount > 0
    return {
        "description": desc,
        "category": FALLBACK_CREDIT if positive else FALLBACK_DEBIT,
        "source": "fallback",
        "matched_pattern": None,
    }


def categorize_description(desc: str, amount: Union[Decimal, float, None] = None) -> str:
    return categorize_with_metadata(desc, amount)["category"]


def reload_rules() -> int:
    """Clear the compiled rule cache and recompile; returns the rule count."""
    _compile_rules.cache_clear()
    return len(_compile_rules())


def clear_custom_rules() -> int:
    with _custom_rules_lock:
        count = len(_custom_rules)
        _custom_rules.clear()
        _compile_rules.cache_clear()
    normalize_description.cache_clear()
    return count


__all__ = [
    "categorize_description",
    "categorize_with_metadata",
    "normalize_description",
    "register_custom_rule",
    "reload_rules",
    "clear_custom_rules",
    "CANONICAL_CATEGORIES",
    "DEFAULT_CATEGORY_REGEX",
]
