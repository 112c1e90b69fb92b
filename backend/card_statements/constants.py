"""Regex building blocks and keyword lists shared by the parser modules."""

import re

__all__ = [
    "MONTH_NUMBERS",
    "MONTH_NAME_PATTERN",
    "SLASH_DATE_PATTERN",
    "NAMED_DATE_PATTERN",
    "SLASH_DATE_RX",
    "NAMED_DATE_RX",
    "MONEY_PATTERN",
    "MONEY_RX",
    "ACCOUNT_NUMBER_PATTERN",
    "GLUED_CARD_RX",
    "SPACED_CARD_RX",
    "DESPACE_RX",
    "PAGE_MARKER_RX",
    "NOISE_PATTERNS_RX",
    "CAMEL_BOUNDARY_RX",
    "REPEATED_SEPARATOR_RX",
    "PAYMENT_DESC_RX",
    "REFUND_DESC_RX",
    "INTEREST_DESC_RX",
    "FEE_DESC_RX",
    "DEFAULT_FIELD_LABELS",
    "CRITICAL_FIELDS",
]

MONTH_NUMBERS = {
    "jan": 1,
    "feb": 2,
    "mar": 3,
    "apr": 4,
    "may": 5,
    "jun": 6,
    "jul": 7,
    "aug": 8,
    "sep": 9,
    "oct": 10,
    "nov": 11,
    "dec": 12,
}

# Title-case or upper-case month names. The lookahead stops "12 Marrickville"
# from reading as a date while still accepting glued "12Sep2025Woolworths".
MONTH_NAME_PATTERN = (
    r"(?:(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?"
    r"|Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)"
    r"(?![a-z])"
    r"|(?:JAN(?:UARY)?|FEB(?:RUARY)?|MAR(?:CH)?|APR(?:IL)?|MAY|JUNE?|JULY?"
    r"|AUG(?:UST)?|SEP(?:T(?:EMBER)?)?|OCT(?:OBER)?|NOV(?:EMBER)?|DEC(?:EMBER)?)"
    r"(?![A-Z]))"
)

# Group-less variants for composing label + value patterns.
SLASH_DATE_PATTERN = r"\d{1,2}\s*/\s*\d{1,2}\s*/\s*\d{4}"
NAMED_DATE_PATTERN = rf"\d{{1,2}}\s*{MONTH_NAME_PATTERN}\s*(?:19|20)\d{{2}}"

SLASH_DATE_RX = re.compile(
    r"(?P<day>\d{1,2})\s*/\s*(?P<month>\d{1,2})\s*/\s*(?P<year>\d{4})"
)
NAMED_DATE_RX = re.compile(
    rf"(?P<day>\d{{1,2}})\s*(?P<month>{MONTH_NAME_PATTERN})"
    r"(?:\s*(?P<year>(?:19|20)\d{2})(?![\d.,]))?"
)

# $-prefixed or bare decimal with exactly two cents digits. Spaces may appear
# anywhere inside the number after de-spacing ("$ 4 , 160 . 00").
MONEY_PATTERN = r"\$?\s*-?\s*(?:\d{1,3}(?:\s*,\s*\d{3})+|\d+)\s*\.\s*\d{2}"
MONEY_RX = re.compile(
    r"(?P<open>\()?"
    r"(?:(?P<sign>[-+−])\s*)?"
    r"(?:\$\s*)?"
    r"(?P<sign2>-)?"
    r"(?P<whole>\d{1,3}(?:\s*,\s*\d{3})+|\d+)"
    r"\s*\.\s*(?P<cents>\d{2})"
    r"(?:\s*(?P<close>\)))?"
    r"(?:(?P<trail>-)(?![\d$])|\s*(?P<marker>CR|DR)(?![A-Za-z]))?"
)

ACCOUNT_NUMBER_PATTERN = r"[\dXx*]{2,}(?:[ -][\dXx*]{2,})*"

# Card suffix directly before the amount. Latitude glues it to the date year.
GLUED_CARD_RX = re.compile(r"(?P<card>\d{4})\s*$")
SPACED_CARD_RX = re.compile(r"(?:^|\s)(?P<card>(?:[Xx]{1,4}|\*{1,4})?\d{4})\s*$")

# An isolated glyph, spacing, then another glyph that is itself followed by
# whitespace: the per-character layout artifact ("S t a t e m e n t ").
# Page breaks are never removed.
DESPACE_RX = re.compile(r"(?<![A-Za-z0-9])([A-Za-z0-9])[^\S\n]+(?=[A-Za-z0-9]\s)")

PAGE_MARKER_RX = re.compile(r"(?i:page)\s*\d+\s*(?i:of)\s*\d+")
NOISE_PATTERNS_RX = [
    PAGE_MARKER_RX,
    re.compile(r"(?i:continued\s*(?:on\s*)?(?:next|following)\s*page)"),
    re.compile(
        r"(?i:balance\s*(?:brought|carried)\s*forward)\s*:?\s*" + MONEY_PATTERN
    ),
    re.compile(
        r"(?<![A-Za-z])(?i:(?:sub\s*)?total\s*(?:of\s*)?"
        r"(?:purchases|payments|credits|debits|transactions|charges|interest|fees"
        r"|for\s*this\s*period|this\s*period)?)\s*:?\s*" + MONEY_PATTERN
    ),
]

CAMEL_BOUNDARY_RX = re.compile(r"(?<=[a-z]{2})(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z]{2})")
REPEATED_SEPARATOR_RX = re.compile(r"([-–*/|.])(?:\s*\1)+")

# Type keywords are searched in the lower-cased description with all
# whitespace removed, so glued rows ("KMARTREFUND", "ANNUALFEE") classify
# the same as spaced ones.
PAYMENT_DESC_RX = re.compile(
    r"paymentreceived|bpay|thankyou|autopay|onlinepayment|payment-thank"
)
REFUND_DESC_RX = re.compile(r"refund|reversal|creditadjustment")
INTEREST_DESC_RX = re.compile(r"interest(?!-?free)")
FEE_DESC_RX = re.compile(r"(?<!cof)(?<!tof)fee")

DEFAULT_FIELD_LABELS = {
    "statement_date": ("Statement date", "Statement issued"),
    "account_number": ("Account number", "Account no"),
    "opening_balance": ("Opening balance", "Previous balance"),
    "closing_balance": ("Closing balance", "New balance"),
    "credit_limit": ("Credit limit",),
    "available_credit": ("Available credit",),
    "minimum_payment": ("Minimum monthly payment", "Minimum payment due", "Minimum payment"),
    "due_date": ("Payment due date", "Due date"),
}

CRITICAL_FIELDS = ("statement_date", "closing_balance")
