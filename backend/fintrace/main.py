"""
main.py – FastAPI application entry point.

Endpoints
---------
GET  /                      – root status
GET  /health                – liveness / readiness probe with version info
POST /analyze               – upload CSV, run full forensics pipeline, return JSON
POST /analyze/transactions  – same pipeline over a JSON list of transactions

Production concerns addressed
------------------------------
- Structured logging (INFO level)
- File-size guard before analysing an upload
- CPU-bound analysis run in the threadpool, off the event loop
- Request-ID header injected into every response for traceability
- parse_stats returned so callers know about dropped rows / warnings
- lifespan context manager
- CORS locked to env-configurable origins
"""
from __future__ import annotations

import logging
import uuid

from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, Request, UploadFile, File, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.concurrency import run_in_threadpool

from .config import MAX_FILE_SIZE_BYTES, CORS_ORIGINS
from .models import AnalysisResult, Transaction
from .parser import parse_csv, transactions_to_frame
from .pipeline import run_pipeline

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s │ %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("FinTrace Forensics Engine v%s starting up", __version__)
    yield
    log.info("FinTrace Forensics Engine shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="FinTrace Forensics Engine",
    description="Detect cycles, smurfing, shell layering and kingpins in transaction graphs",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Request-ID middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/", include_in_schema=False)
def root():
    return {"status": "ok", "service": "FinTrace Forensics Engine", "version": __version__}


@app.get("/health")
def health():
    """Liveness / readiness probe."""
    return {
        "status": "healthy",
        "version": __version__,
        "max_file_size_mb": MAX_FILE_SIZE_BYTES // (1024 * 1024),
    }


@app.post("/analyze", response_model=AnalysisResult, response_model_exclude_unset=True)
async def analyze(
    file: UploadFile = File(...),
    detail: bool = Query(False, description="Attach the display graph (nodes + edges)"),
):
    """
    Upload a CSV of financial transactions and receive a forensic analysis.

    Expected CSV columns: transaction_id, sender_id, receiver_id, amount, timestamp
    """
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted.")

    file_bytes = await file.read()

    if len(file_bytes) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size is {MAX_FILE_SIZE_BYTES // (1024*1024)} MB.",
        )

    try:
        df, parse_stats = parse_csv(file_bytes)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if parse_stats.get("warnings"):
        log.warning("Parse warnings for %s: %s", file.filename, parse_stats["warnings"])

    result = await run_in_threadpool(run_pipeline, df, include_graph=detail)
    result["parse_stats"] = parse_stats
    return result


@app.post(
    "/analyze/transactions",
    response_model=AnalysisResult,
    response_model_exclude_unset=True,
)
def analyze_transactions(
    transactions: List[Transaction],
    detail: bool = Query(False, description="Attach the display graph (nodes + edges)"),
):
    """Run the forensic analysis over an already-structured transaction list."""
    df = transactions_to_frame(transactions)
    return run_pipeline(df, include_graph=detail)
