"""Error and diagnostic types shared by the statement parser."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

__all__ = [
    "StatementFormatError",
    "FieldParseWarning",
    "EntrySkipped",
    "Diagnostic",
]


class StatementFormatError(ValueError):
    """The document does not look like a supported statement layout.

    Raised when the transactions anchor or a critical metadata field is
    missing. ``anchor`` / ``field`` name what was not found.
    """

    def __init__(
        self,
        message: str,
        anchor: Optional[str] = None,
        field: Optional[str] = None,
    ):
        super().__init__(message)
        self.anchor = anchor
        self.field = field

    def to_dict(self) -> dict:
        return {
            "error": "STATEMENT_FORMAT",
            "message": str(self),
            "anchor": self.anchor,
            "field": _camel(self.field) if self.field else None,
        }


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


@dataclass(frozen=True)
class FieldParseWarning:
    """A non-critical field could not be read and was defaulted."""

    field: str
    message: str
    kind: str = "field_parse_warning"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "field": self.field, "message": self.message}


@dataclass(frozen=True)
class EntrySkipped:
    """A transaction-shaped segment that could not be resolved."""

    segment: str
    reason: str
    ledger: str = "regular"
    kind: str = "entry_skipped"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "segment": self.segment,
            "reason": self.reason,
            "ledger": self.ledger,
        }


Diagnostic = Union[FieldParseWarning, EntrySkipped]
