"""Synthetic statements shared by the parser and API tests.

Real statements carry personal data, so the tests build fragment trees from
known values instead. ``word_pages`` produces one run per word (what
pdfplumber extraction yields); ``glyph_pages`` produces one run per character,
the per-glyph layout some issuers emit.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Sequence
from urllib.parse import quote

import pytest

from card_statements.categorize import clear_custom_rules, reload_rules
from card_statements.models import TextFragment

STATEMENT_DATE = date(2025, 9, 15)

LATITUDE_PAGES = [
    "Latitude Gem Visa Statement latitudefinancial.com.au "
    "Statement date 15/09/2025 Account number 4563 1234 5678 9012 "
    "Opening balance $1,250.00 Closing balance $907.79 "
    "Credit limit $6,000.00 Available credit $5,092.21 "
    "Minimum monthly payment $45.00 Due date 10/10/2025 "
    "Your transactions Date Card Amount Description "
    "20/08/2025 7458 $120.00 WOOLWORTHS SYDNEY "
    "25/08/2025 7458 $500.00 BPAY Payment Received "
    "28/08/2025 7458 $45.50 KMART PARRAMATTA "
    "continued on next page Page 1 of 2",
    "31/08/2025 7458 $9.95 Late Fee "
    "05/09/2025 7458 $12.34 Interest Charged "
    "07/09/2025 7458 $30.00 Refund KMART PARRAMATTA "
    "Latitude Gem Visa 6 month interest free purchases Date Card Amount Description "
    "01/07/2025 7458 $800.00 HARVEY NORMAN AUBURN "
    "Closing balance $907.79 Page 2 of 2",
]

# (date, description, amount, type) in statement order.
LATITUDE_EXPECTED = [
    (date(2025, 8, 20), "WOOLWORTHS SYDNEY", Decimal("-120.00"), "purchase"),
    (date(2025, 8, 25), "BPAY Payment Received", Decimal("500.00"), "payment"),
    (date(2025, 8, 28), "KMART PARRAMATTA", Decimal("-45.50"), "purchase"),
    (date(2025, 8, 31), "Late Fee", Decimal("-9.95"), "fee"),
    (date(2025, 9, 5), "Interest Charged", Decimal("-12.34"), "interest"),
    (date(2025, 9, 7), "Refund KMART PARRAMATTA", Decimal("30.00"), "refund"),
]

GENERIC_HEADER = (
    "Acme Bank Platinum Credit Card Statement date 15 Sep 2025 "
    "Account number XXXX XXXX XXXX 1234 "
    "Previous balance $2,000.00 New balance $2,204.26 "
    "Credit limit $10,000.00 Available credit $7,795.74 "
    "Minimum payment due $58.00 Payment due date 10 Oct 2025 "
)

GENERIC_ROWS = (
    "Transaction details Date Description Amount "
    "18 Aug 19 Aug COLES SUPERMARKET 86.40 "
    "20 Aug 2025 UBER TRIP 1234 23.50 "
    "01 Sep 2025 PAYMENT - THANK YOU 500.00 CR "
    "03 Sep 2025 REFUND AMAZON AU 25.00 CR "
    "05 Sep 2025 ANNUAL FEE 99.00 "
    "12 Sep 2025 Direct Debit Nissan Financial -508.02 "
    "15 Sep 2025 INTEREST CHARGED 12.34 "
    "Closing balance $2,204.26"
)

GENERIC_TEXT = GENERIC_HEADER + GENERIC_ROWS


def word_pages(page_texts: Sequence[str]) -> List[List[TextFragment]]:
    """One fragment per page line, one percent-encoded run per word."""
    pages = []
    for text in page_texts:
        fragments = [
            TextFragment(runs=tuple(quote(word, safe="") for word in line.split()))
            for line in text.splitlines()
            if line.strip()
        ]
        pages.append(fragments)
    return pages


def glyph_pages(page_texts: Sequence[str]) -> List[List[TextFragment]]:
    """One fragment per visible character; word spacing is lost, as in the source PDFs."""
    return [
        [TextFragment(runs=(quote(ch, safe=""),)) for ch in text if not ch.isspace()]
        for text in page_texts
    ]


def pdf2json_tree(page_texts: Sequence[str]) -> dict:
    return {
        "Pages": [
            {"Texts": [{"x": 1.0, "y": float(i), "R": [{"T": quote(w, safe="")}]}
                       for i, w in enumerate(text.split())]}
            for text in page_texts
        ]
    }


@pytest.fixture(autouse=True)
def _isolate_category_rules(monkeypatch: pytest.MonkeyPatch):
    """Keep runtime categorization rules and overrides from leaking between tests."""
    monkeypatch.delenv("CATEGORY_RULES_FILE", raising=False)
    clear_custom_rules()
    reload_rules()
    yield
    clear_custom_rules()
    reload_rules()


@pytest.fixture
def latitude_pages():
    return word_pages(LATITUDE_PAGES)


@pytest.fixture
def generic_pages():
    return word_pages([GENERIC_TEXT])
