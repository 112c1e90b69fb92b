"""Credit-card statement PDF parsing."""

from .errors import EntrySkipped, FieldParseWarning, StatementFormatError
from .extraction import extract_fragments, fragments_from_json
from .formats import (
    StatementFormat,
    detect_format,
    get_format,
    list_formats,
    register_format,
)
from .models import (
    CreditCardStatement,
    ImportableTransaction,
    ParseResult,
    StatementMetadata,
    StatementTransaction,
    TextFragment,
)
from .normalize import normalize_text
from .pdf_parser import (
    parse_credit_card_pdf,
    parse_statement,
    parse_statement_pages,
    parse_statement_text,
    reconcile_statement,
    statement_to_frame,
)
from .projector import statement_to_transactions

__all__ = [
    "EntrySkipped",
    "FieldParseWarning",
    "StatementFormatError",
    "extract_fragments",
    "fragments_from_json",
    "StatementFormat",
    "detect_format",
    "get_format",
    "list_formats",
    "register_format",
    "CreditCardStatement",
    "ImportableTransaction",
    "ParseResult",
    "StatementMetadata",
    "StatementTransaction",
    "TextFragment",
    "normalize_text",
    "parse_credit_card_pdf",
    "parse_statement",
    "parse_statement_pages",
    "parse_statement_text",
    "reconcile_statement",
    "statement_to_frame",
    "statement_to_transactions",
]
