"""Turn a PDF (or an already extracted text-run tree) into page fragments.

The parser consumes pages of ``TextFragment`` whose runs hold percent-encoded
text, the same shape pdf2json emits. ``extract_fragments`` builds that shape
with pdfplumber; ``fragments_from_json`` accepts a tree produced elsewhere.
"""

from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, BinaryIO, Dict, List, Union
from urllib.parse import quote

import pdfplumber

from .models import TextFragment

logger = logging.getLogger(__name__)

__all__ = ["extract_fragments", "fragments_from_json", "Pages"]

Pages = List[List[TextFragment]]

LINE_Y_TOLERANCE = 3


def extract_fragments(pdf_file: Union[bytes, bytearray, BinaryIO]) -> Pages:
    """Extract one fragment per visual line, one run per word.

    Returns an empty list when the document cannot be read; the missing
    anchors are reported downstream.
    """
    if isinstance(pdf_file, (bytes, bytearray)):
        pdf_file = BytesIO(pdf_file)
    pages: Pages = []
    try:
        with pdfplumber.open(pdf_file) as pdf:
            for page in pdf.pages:
                words = page.extract_words() or []
                grouped: List[List[dict]] = []
                for w in sorted(words, key=lambda w: (w["top"], w["x0"])):
                    if grouped and abs(w["top"] - grouped[-1][0]["top"]) <= LINE_Y_TOLERANCE:
                        grouped[-1].append(w)
                    else:
                        grouped.append([w])
                fragments = []
                for group in grouped:
                    group_sorted = sorted(group, key=lambda w: w["x0"])
                    fragments.append(
                        TextFragment(
                            runs=tuple(quote(w["text"], safe="") for w in group_sorted),
                            x=float(group_sorted[0]["x0"]),
                            y=float(group_sorted[0]["top"]),
                        )
                    )
                pages.append(fragments)
    except Exception:
        logger.warning("PDF text extraction failed", exc_info=True)
        return []
    return pages


def fragments_from_json(data: Dict[str, Any]) -> Pages:
    """Accept a pdf2json tree (``Pages/Texts/R/T``) or ``pages/textRuns/runs/text``."""
    pages: Pages = []
    raw_pages = data.get("Pages")
    if raw_pages is None:
        raw_pages = data.get("pages") or []
    for raw_page in raw_pages:
        raw_texts = raw_page.get("Texts")
        if raw_texts is None:
            raw_texts = raw_page.get("textRuns") or []
        fragments = []
        for raw_text in raw_texts:
            raw_runs = raw_text.get("R")
            if raw_runs is None:
                raw_runs = raw_text.get("runs") or []
            runs = tuple(
                str(r.get("T", r.get("text", "")) or "")
                for r in raw_runs
                if isinstance(r, dict)
            )
            fragments.append(
                TextFragment(runs=runs, x=raw_text.get("x"), y=raw_text.get("y"))
            )
        pages.append(fragments)
    return pages
