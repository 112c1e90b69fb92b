"""Statement layouts as configuration.

Each issuer layout is a ``StatementFormat``: the anchor phrases that slice the
document, the metadata labels, the entry date patterns, the card column shape
and the default signs of each ledger. The parser modules never hard-code any of
these, so supporting another issuer means registering another format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Pattern, Tuple, Union

from .constants import (
    DEFAULT_FIELD_LABELS,
    GLUED_CARD_RX,
    NAMED_DATE_RX,
    NOISE_PATTERNS_RX,
    PAGE_MARKER_RX,
    SLASH_DATE_RX,
    SPACED_CARD_RX,
)
from .sections import anchor_pattern

__all__ = [
    "StatementFormat",
    "LATITUDE_GEM",
    "GENERIC",
    "DEFAULT_FORMAT_ID",
    "register_format",
    "get_format",
    "list_formats",
    "detect_format",
]

Stop = Union[str, Pattern]


@dataclass(frozen=True, eq=False)
class StatementFormat:
    id: str
    name: str
    transactions_anchors: Tuple[str, ...]
    interest_free_anchors: Tuple[str, ...] = ()
    # Column header that must follow the interest-free anchor on the same page.
    interest_free_headers: Tuple[str, ...] = ()
    stop_anchors: Tuple[Stop, ...] = ("Closing balance",)
    interest_free_stop_anchors: Tuple[Stop, ...] = ("Closing balance",)
    field_labels: Mapping[str, Tuple[str, ...]] = field(
        default_factory=lambda: dict(DEFAULT_FIELD_LABELS)
    )
    entry_date_patterns: Tuple[Pattern, ...] = (SLASH_DATE_RX,)
    card_rx: Optional[Pattern] = SPACED_CARD_RX
    # "last": the amount is the final money token of an entry (descriptions may
    # quote amounts). "first": it is the first one, right after the card
    # column, and anything after it is description.
    amount_position: str = "last"
    noise_patterns: Tuple[Pattern, ...] = tuple(NOISE_PATTERNS_RX)
    detect_phrases: Tuple[str, ...] = ()
    # Unsigned amounts: -1 = charge to the card. Keywords may flip regular
    # entries to credits; interest-free entries only follow explicit signs
    # unless interest_free_keyword_signs is set.
    default_sign: int = -1
    interest_free_default_sign: int = -1
    interest_free_keyword_signs: bool = False

    def labels_for(self, field_name: str) -> Tuple[str, ...]:
        return tuple(self.field_labels.get(field_name, ()))

    def describe(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "transactionsAnchors": list(self.transactions_anchors),
            "interestFreeAnchors": list(self.interest_free_anchors),
        }


# Latitude Gem Visa: rows read "DD/MM/YYYY CARD $ AMOUNT DESCRIPTION" and the
# card suffix is glued to the year after de-spacing ("08 / 09 / 20257458").
LATITUDE_GEM = StatementFormat(
    id="latitude_gem",
    name="Latitude Gem Visa",
    transactions_anchors=("Your transactions",),
    interest_free_anchors=("Latitude Gem Visa 6 month interest free purchases",),
    interest_free_headers=("Date Card",),
    stop_anchors=("Closing balance",),
    interest_free_stop_anchors=("Closing balance", "Statement date", PAGE_MARKER_RX),
    field_labels={
        **DEFAULT_FIELD_LABELS,
        "opening_balance": ("Opening balance",),
        "closing_balance": ("Closing balance",),
        "minimum_payment": ("Minimum monthly payment",),
        "due_date": ("Due date",),
    },
    entry_date_patterns=(SLASH_DATE_RX,),
    card_rx=GLUED_CARD_RX,
    amount_position="first",
    detect_phrases=("Latitude", "Gem Visa", "latitudefinancial"),
)

GENERIC = StatementFormat(
    id="generic",
    name="Generic credit card statement",
    transactions_anchors=("Your transactions", "Transaction details", "Transactions"),
    interest_free_anchors=(
        "Interest free purchases",
        "Interest-free purchases",
        "Interest free transactions",
    ),
    stop_anchors=("Closing balance", "Statement summary"),
    interest_free_stop_anchors=("Closing balance", "Statement summary"),
    entry_date_patterns=(NAMED_DATE_RX, SLASH_DATE_RX),
    card_rx=SPACED_CARD_RX,
)

DEFAULT_FORMAT_ID = GENERIC.id
DETECT_MIN_SCORE = 2

_registry: Dict[str, StatementFormat] = {}


def register_format(fmt: StatementFormat, replace: bool = False) -> None:
    if fmt.id in _registry and not replace:
        raise ValueError(f"Statement format '{fmt.id}' already registered")
    _registry[fmt.id] = fmt


def get_format(fmt: Union[str, StatementFormat, None] = None) -> StatementFormat:
    """Resolve a format id (or pass through a format object)."""
    if isinstance(fmt, StatementFormat):
        return fmt
    key = fmt or DEFAULT_FORMAT_ID
    try:
        return _registry[key]
    except KeyError:
        raise ValueError(
            f"Unknown statement format '{key}'. Known: {sorted(_registry)}"
        ) from None


def list_formats() -> List[StatementFormat]:
    return list(_registry.values())


def detect_format(text: str) -> Optional[StatementFormat]:
    """Pick the registered format whose detection phrases best match ``text``.

    At least DETECT_MIN_SCORE phrases must match. Formats without detection
    phrases never win detection; the caller falls back to them explicitly.
    """
    best: Optional[StatementFormat] = None
    best_score = DETECT_MIN_SCORE - 1
    for fmt in _registry.values():
        score = sum(1 for p in fmt.detect_phrases if anchor_pattern(p).search(text))
        if score > best_score:
            best, best_score = fmt, score
    return best


register_format(LATITUDE_GEM)
register_format(GENERIC)
