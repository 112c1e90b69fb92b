"""FastAPI service exposing credit-card statement parsing for the upload front end.

Endpoints:
  POST /parse       (multipart/form-data: file=<pdf>, account_id=<id>) -> statement + import records
  POST /categorize  -> keyword categories for arbitrary descriptions
  GET  /formats     -> registered statement layouts
  GET  /health      -> simple health check

Run (dev): uvicorn card_statements.api:app --reload --port 8000
"""

from __future__ import annotations

from tempfile import SpooledTemporaryFile
from typing import List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from pydantic import BaseModel

import logging
import os
import traceback

from . import pdf_parser
from .categorize import CANONICAL_CATEGORIES, categorize_with_metadata, reload_rules
from .formats import get_format, list_formats
from .normalize import normalize_text
from .projector import statement_to_transactions
from .utils import df_to_records


class CategorizeRecord(BaseModel):
    description: Optional[str] = None
    amount: Optional[float] = None


class CategorizeRequest(BaseModel):
    records: List[CategorizeRecord]


class CategorizeResponse(BaseModel):
    categories: List[str]
    metadata: List[dict]


logging.basicConfig(level=os.getenv("API_LOG_LEVEL", "INFO"))
logger = logging.getLogger("statement_api")

app = FastAPI(title="Credit Card Statement API", version="0.1.0")
app.add_middleware(GZipMiddleware, minimum_size=1024)

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
    ).split(",")
    if o.strip()
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():  # simple root for quick manual test
    return {"service": "card-statements", "status": "ok"}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/formats")
def formats():
    return {
        "default": os.getenv("DEFAULT_STATEMENT_FORMAT") or None,
        "formats": [f.describe() for f in list_formats()],
    }


@app.on_event("startup")
def _startup_tasks() -> None:
    """Compile categorization rules (including CATEGORY_RULES_FILE overrides)."""
    count = reload_rules()
    logger.info("Loaded %d categorization rules", count)


MAX_FILE_BYTES = int(os.getenv("MAX_FILE_BYTES", 15 * 1024 * 1024))  # 15MB default


def _flag(request: Request, name: str) -> bool:
    return request.query_params.get(name, "").lower() in {"1", "true", "yes", "on"}


def _run_parse(pdf_file, fmt_id: Optional[str], debug: bool):
    pages = pdf_parser.extract_fragments(pdf_file)
    if fmt_id:
        result = pdf_parser.parse_statement(None, pages=pages, fmt=fmt_id)
    else:
        result = pdf_parser.parse_credit_card_pdf(None, pages=pages)
    debug_info = pdf_parser.describe_text(normalize_text(pages), fmt_id) if debug else None
    return result, debug_info


@app.post("/parse")
async def parse_pdf(
    request: Request,
    file: UploadFile = File(...),
    account_id: str = Form(...),
):
    if not (file.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")
    fmt_id = request.query_params.get("format") or os.getenv("DEFAULT_STATEMENT_FORMAT") or None
    if fmt_id:
        try:
            get_format(fmt_id)
        except ValueError as e:
            raise HTTPException(status_code=400, detail={"message": str(e)}) from e
    # Size guard (read streamingly into spooled file)
    spooled: SpooledTemporaryFile[bytes] = SpooledTemporaryFile(
        max_size=MAX_FILE_BYTES + 1024
    )
    total = 0
    chunk_size = 1024 * 64
    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        total += len(chunk)
        if total > MAX_FILE_BYTES:
            spooled.close()
            raise HTTPException(
                status_code=413,
                detail=f"File too large (> {MAX_FILE_BYTES // (1024 * 1024)}MB)",
            )
        spooled.write(chunk)
    if total == 0:
        raise HTTPException(status_code=400, detail="Empty file")
    spooled.seek(0)
    debug = _flag(request, "debug") or os.getenv("API_DEBUG") == "1"
    try:
        # extraction and parsing are CPU bound; run off the event loop
        result, debug_info = await run_in_threadpool(_run_parse, spooled, fmt_id, debug)
    except Exception as e:  # pragma: no cover - unexpected failure
        tb = traceback.format_exc()
        logger.error("Parse failure: %s\n%s", e, tb)
        detail = {"error": "PARSE_FAILURE", "message": str(e)}
        if debug:
            detail["traceback"] = tb
        raise HTTPException(status_code=500, detail=detail) from e
    finally:
        spooled.close()

    diagnostics = [d.to_dict() for d in result.diagnostics]
    if not result.ok:
        logger.info("Rejected %s: %s", file.filename, result.error)
        detail = result.error.to_dict()
        detail["diagnostics"] = diagnostics
        if debug_info is not None:
            detail["debug"] = debug_info
        raise HTTPException(status_code=422, detail=detail)

    statement = result.statement
    importable = statement_to_transactions(
        statement, account_id, categorize=_flag(request, "categorize")
    )
    reconciliation = pdf_parser.reconcile_statement(statement)
    if not reconciliation["balanced"]:
        logger.warning(
            "Statement %s does not reconcile (delta %.2f)",
            file.filename,
            reconciliation["delta"],
        )
    body = {
        "fileName": file.filename,
        "success": True,
        "format": statement.format_id,
        "metadata": statement.metadata.to_dict(),
        "statement": statement.to_dict(),
        "transactions": [t.to_dict() for t in importable],
        "rows": df_to_records(pdf_parser.statement_to_frame(statement)),
        "diagnostics": diagnostics,
        "summary": result.summary(),
        "reconciliation": reconciliation,
    }
    if debug_info is not None:
        body["debug"] = debug_info
    return body


@app.post("/categorize", response_model=CategorizeResponse)
def categorize(req: CategorizeRequest):
    meta = [categorize_with_metadata(r.description or "", r.amount) for r in req.records]
    return CategorizeResponse(categories=[m["category"] for m in meta], metadata=meta)


@app.get("/categories")
def categories():
    return {"categories": CANONICAL_CATEGORIES}


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("card_statements.api:app", host="0.0.0.0", port=8000, reload=True)
