"""Rebuild a text stream from extracted PDF text runs.

Some statement PDFs lay out every glyph as its own text run, so the raw text
reads ``S t a t e m e n t d a t e``. ``despace`` folds those runs back into
words without touching ordinary word spacing.
"""

from __future__ import annotations

from typing import Iterable, List
from urllib.parse import unquote

from .constants import DESPACE_RX
from .models import TextFragment

__all__ = [
    "decode_run",
    "reconstruct_pages",
    "reconstruct_text",
    "despace",
    "normalize_text",
]


def decode_run(payload: str) -> str:
    """Percent-decode one run; malformed payloads come back unchanged."""
    try:
        return unquote(payload, encoding="utf-8", errors="strict")
    except UnicodeDecodeError:
        return payload


def reconstruct_pages(pages: Iterable[Iterable[TextFragment]]) -> List[str]:
    """Return one string per page, each run followed by a space, each page by a newline."""
    out: List[str] = []
    for page in pages:
        parts: List[str] = []
        for fragment in page:
            for run in fragment.runs:
                if run:
                    parts.append(decode_run(run) + " ")
        out.append("".join(parts) + "\n")
    return out


def reconstruct_text(pages: Iterable[Iterable[TextFragment]]) -> str:
    return "".join(reconstruct_pages(pages))


def despace(text: str) -> str:
    """Collapse runs of single characters separated by whitespace.

    Only an isolated character (no alphanumeric neighbour on its left) whose
    next glyph is also followed by whitespace loses its gap, so
    ``"S t a t e m e n t "`` becomes ``"Statement "`` while ``"Pay a bill"``
    is left alone. Applying it twice gives the same result as once.
    """
    if len(text) < 2:
        return text
    return DESPACE_RX.sub(r"\1", text)


def normalize_text(pages: Iterable[Iterable[TextFragment]]) -> str:
    return despace(reconstruct_text(pages))
