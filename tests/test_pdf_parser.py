"""End-to-end tests for statement parsing on synthetic documents."""

import random
from datetime import date, timedelta
from decimal import Decimal

import pandas as pd
import pytest

from card_statements import pdf_parser
from card_statements.errors import FieldParseWarning
from card_statements.pdf_parser import (
    check_statement_window,
    describe_text,
    parse_credit_card_pdf,
    parse_statement,
    parse_statement_pages,
    parse_statement_text,
    reconcile_statement,
    statement_to_frame,
)

from conftest import (
    GENERIC_HEADER,
    GENERIC_TEXT,
    LATITUDE_EXPECTED,
    LATITUDE_PAGES,
    STATEMENT_DATE,
    glyph_pages,
    word_pages,
)

GENERIC_AMOUNTS = [
    Decimal("-86.40"),
    Decimal("-23.50"),
    Decimal("500.00"),
    Decimal("25.00"),
    Decimal("-99.00"),
    Decimal("-508.02"),
    Decimal("-12.34"),
]
GENERIC_TYPES = ["purchase", "purchase", "payment", "refund", "fee", "purchase", "interest"]

KINDS = {
    "purchase": (["COLES SUPERMARKET", "KMART", "UBER TRIP", "CAFE NERO", "OFFICEWORKS"], -1),
    "payment": (["PAYMENT THANK YOU", "BPAY PAYMENT RECEIVED"], 1),
    "refund": (["REFUND KMART"], 1),
    "fee": (["LATE FEE"], -1),
    "interest": (["INTEREST CHARGED"], -1),
}


def random_statement(rng):
    """Build generic statement text from random rows; returns (text, expected rows, opening, closing)."""
    rows, expected = [], []
    for _ in range(rng.randint(1, 25)):
        kind = rng.choice(sorted(KINDS))
        descriptions, sign = KINDS[kind]
        description = rng.choice(descriptions)
        magnitude = Decimal(rng.randint(1, 300000)) / 100
        day = STATEMENT_DATE - timedelta(days=rng.randint(0, 30))
        rows.append(f"{day.strftime('%d %b %Y')} {description} {magnitude:,.2f}")
        expected.append((day, description, sign * magnitude, kind))
    net = sum((amount for _, _, amount, _ in expected), Decimal("0"))
    opening = max(net, Decimal("0")) + Decimal(rng.randint(0, 100000)) / 100
    closing = opening - net
    text = (
        f"Statement date {STATEMENT_DATE.strftime('%d %b %Y')} "
        f"Opening balance ${opening:,.2f} Closing balance ${closing:,.2f} "
        "Transaction details " + " ".join(rows) + " \n"
    )
    return text, expected, opening, closing


class TestLatitudeStatement:
    def test_word_layout_round_trip(self, latitude_pages):
        result = parse_statement_pages(latitude_pages)
        assert result.ok
        statement = result.statement
        assert statement.format_id == "latitude_gem"
        actual = [(t.date, t.description, t.amount, t.type) for t in statement.transactions]
        assert actual == LATITUDE_EXPECTED
        assert {t.card for t in statement.transactions} == {"7458"}
        assert result.skipped == []
        assert result.warnings == []

    def test_interest_free_ledger(self, latitude_pages):
        statement = parse_statement_pages(latitude_pages).statement
        [txn] = statement.interest_free_transactions
        assert txn.date == date(2025, 7, 1)
        assert txn.amount == Decimal("-800.00")
        assert txn.ledger == "interest_free"
        assert txn.description == "HARVEY NORMAN AUBURN"

    def test_glyph_layout_round_trip(self):
        result = parse_statement_pages(glyph_pages(LATITUDE_PAGES))
        assert result.ok
        statement = result.statement
        assert statement.format_id == "latitude_gem"
        assert [(t.date, t.amount, t.type) for t in statement.transactions] == [
            (d, amount, kind) for d, _, amount, kind in LATITUDE_EXPECTED
        ]
        assert statement.transactions[1].description == "BPAY Payment Received"
        assert [t.amount for t in statement.interest_free_transactions] == [Decimal("-800.00")]
        assert statement.metadata.closing_balance == Decimal("907.79")

    def test_reconciles(self, latitude_pages):
        statement = parse_statement_pages(latitude_pages).statement
        report = reconcile_statement(statement)
        assert report["balanced"] is True
        assert report["delta"] == 0
        assert report["transaction_count"] == 6
        assert report["net_amount"] == pytest.approx(342.21)

    def test_summary(self, latitude_pages):
        result = parse_statement_pages(latitude_pages)
        assert result.summary() == "7 transactions imported, 0 lines could not be parsed"


class TestGenericStatement:
    def test_round_trip(self):
        result = parse_statement_text(GENERIC_TEXT)
        assert result.ok
        statement = result.statement
        assert statement.format_id == "generic"
        assert [t.amount for t in statement.transactions] == GENERIC_AMOUNTS
        assert [t.type for t in statement.transactions] == GENERIC_TYPES
        assert statement.transactions[1].card == "1234"
        assert statement.transactions[0].post_date == date(2025, 8, 19)
        assert statement.interest_free_transactions == ()
        assert reconcile_statement(statement)["balanced"] is True

    def test_glyph_layout_round_trip(self):
        result = parse_statement_pages(glyph_pages([GENERIC_TEXT]), "generic")
        assert result.ok, result.error
        statement = result.statement
        assert [t.amount for t in statement.transactions] == GENERIC_AMOUNTS
        assert [t.type for t in statement.transactions] == GENERIC_TYPES
        assert [t.card for t in statement.transactions] == ["", "1234", "", "", "", "", ""]
        assert statement.transactions[0].post_date == date(2025, 8, 19)
        assert statement.transactions[1].description == "UBERTRIP"
        assert statement.transactions[5].description == "Direct Debit Nissan Financial"
        assert result.skipped == []
        assert statement.metadata.closing_balance == Decimal("2204.26")
        assert reconcile_statement(statement)["balanced"] is True

    def test_missing_closing_balance(self):
        text = GENERIC_TEXT.replace("New balance $2,204.26 ", "").replace(
            "Closing balance $2,204.26", ""
        )
        result = parse_statement_text(text)
        assert not result.ok
        assert result.statement is None
        assert result.error.field == "closing_balance"
        assert result.error.to_dict()["field"] == "closingBalance"

    def test_missing_transactions_anchor(self):
        result = parse_statement_text(GENERIC_HEADER)
        assert not result.ok
        assert result.error.anchor == "Your transactions"

    def test_unknown_format_id(self):
        with pytest.raises(ValueError):
            parse_statement_text(GENERIC_TEXT, "no_such_bank")


class TestSignInvariant:
    @pytest.mark.parametrize("seed", range(25))
    def test_closing_minus_opening_is_negated_sum(self, seed):
        rng = random.Random(seed)
        text, expected, opening, closing = random_statement(rng)
        result = parse_statement_text(text, "generic")
        assert result.ok, result.error
        statement = result.statement
        assert [(t.date, t.description, t.amount, t.type) for t in statement.transactions] == expected
        total = sum((t.amount for t in statement.transactions), Decimal("0"))
        assert statement.metadata.closing_balance - statement.metadata.opening_balance == -total
        assert reconcile_statement(statement)["balanced"] is True
        assert result.skipped == []

    @pytest.mark.parametrize("seed", range(10))
    def test_glyph_layout(self, seed):
        rng = random.Random(seed)
        text, expected, opening, closing = random_statement(rng)
        result = parse_statement_pages(glyph_pages([text]), "generic")
        assert result.ok, result.error
        statement = result.statement
        assert [(t.date, t.amount, t.type) for t in statement.transactions] == [
            (day, amount, kind) for day, _, amount, kind in expected
        ]
        assert statement.metadata.opening_balance == opening
        assert statement.metadata.closing_balance == closing
        assert reconcile_statement(statement)["balanced"] is True
        assert result.skipped == []


class TestStatementWindow:
    def test_out_of_window_entries_kept_with_warning(self):
        text = (
            GENERIC_HEADER
            + "Transaction details 01 Jul 2025 OLD PURCHASE 10.00 "
            + "20 Aug 2025 KMART 5.00 20 Sep 2025 FUTURE PURCHASE 1.00"
        )
        result = parse_statement_text(text)
        assert result.ok
        assert len(result.statement.transactions) == 3
        assert [w.field for w in result.warnings] == ["transactions[0].date", "transactions[2].date"]

    def test_window_boundaries_inclusive(self):
        text = GENERIC_HEADER + "Transaction details 15 Aug 2025 A SHOP 1.00 15 Sep 2025 B SHOP 2.00"
        statement = parse_statement_text(text).statement
        assert check_statement_window(statement) == []

    def test_random_dates_inside_window_never_warn(self):
        rng = random.Random(7)
        for _ in range(10):
            text, _, _, _ = random_statement(rng)
            result = parse_statement_text(text, "generic")
            assert not [w for w in result.warnings if w.field.startswith("transactions[")]


class TestFormatSelection:
    def test_latitude_detected(self, latitude_pages):
        result = parse_credit_card_pdf(None, pages=latitude_pages)
        assert result.statement.format_id == "latitude_gem"

    def test_falls_back_to_generic(self, generic_pages):
        result = parse_credit_card_pdf(None, pages=generic_pages)
        assert result.ok
        assert result.statement.format_id == "generic"

    def test_unsupported_document(self):
        result = parse_credit_card_pdf(None, pages=word_pages(["Quarterly newsletter"]))
        assert not result.ok
        assert result.error.anchor is not None

    def test_missing_field_reported_over_missing_anchor(self):
        text = GENERIC_TEXT.replace("New balance $2,204.26 ", "").replace(
            "Closing balance $2,204.26", ""
        )
        result = parse_credit_card_pdf(None, pages=word_pages([text]))
        assert not result.ok
        assert result.error.field == "closing_balance"

    def test_explicit_format_skips_detection(self, latitude_pages):
        result = parse_statement(None, pages=latitude_pages, fmt="generic")
        assert result.ok
        assert result.statement.format_id == "generic"


class TestParseStatement:
    def test_uses_extractor(self, monkeypatch, latitude_pages):
        calls = []

        def fake_extract(pdf_file):
            calls.append(pdf_file)
            return latitude_pages

        monkeypatch.setattr(pdf_parser, "extract_fragments", fake_extract)
        result = parse_statement(b"%PDF-1.4")
        assert calls == [b"%PDF-1.4"]
        assert len(result.statement.transactions) == 6

    def test_unreadable_pdf_is_a_format_error(self):
        result = parse_statement(b"not a pdf")
        assert not result.ok
        assert result.error.anchor == "Your transactions"


class TestFrames:
    def test_statement_to_frame(self, latitude_pages):
        statement = parse_statement_pages(latitude_pages).statement
        df = statement_to_frame(statement)
        assert list(df.columns) == pdf_parser.FRAME_COLUMNS
        assert len(df) == 7
        regular = df[df["ledger"] == "regular"]
        assert regular["balance"].iloc[0] == Decimal("1370.00")
        assert regular["balance"].iloc[-1] == Decimal("907.79")
        assert pd.isna(df[df["ledger"] == "interest_free"]["balance"].iloc[0])

    def test_empty_statement_frame(self):
        text = GENERIC_HEADER + "Transaction details"
        statement = parse_statement_text(text).statement
        assert statement_to_frame(statement).empty
        assert reconcile_statement(statement)["transaction_count"] == 0

    def test_describe_text(self):
        info = describe_text(GENERIC_TEXT)
        assert info["format"] == "generic"
        assert info["anchors"]["Transaction details"] is True
        assert info["preview"].startswith("Acme Bank")


def test_window_warning_shape():
    warning = FieldParseWarning(field="transactions[0].date", message="x")
    assert warning.to_dict() == {
        "kind": "field_parse_warning",
        "field": "transactions[0].date",
        "message": "x",
    }
