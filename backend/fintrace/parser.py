"""
parser.py – CSV / record ingestion and validation.

Both entry points produce the same cleaned DataFrame
(transaction_id, sender_id, receiver_id, amount, timestamp):

  parse_csv(bytes)               – uploaded CSV files
  transactions_to_frame(records) – Transaction models or plain dicts

Validates:
  • Required columns present
  • timestamp format YYYY-MM-DD HH:MM:SS (with fallbacks), normalised to UTC
  • amount > 0
  • No self-transactions (sender == receiver)
  • Duplicate transaction_id detection
  • Encoding auto-detection (UTF-8 / latin-1 fallback)
"""
from __future__ import annotations

import io
import logging
from typing import Any, Iterable, Mapping, Tuple

import pandas as pd
from pandas.api.types import is_datetime64_any_dtype

from .config import MAX_ROWS
from .models import Transaction

log = logging.getLogger(__name__)

COLUMNS = ["transaction_id", "sender_id", "receiver_id", "amount", "timestamp"]
REQUIRED_COLUMNS = frozenset(COLUMNS)

_ID_COLUMNS = ("transaction_id", "sender_id", "receiver_id")
_TS_FORMATS = ["%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M"]


def _new_stats() -> dict:
    return {
        "total_rows": 0,
        "valid_rows": 0,
        "dropped_rows": 0,
        "duplicate_tx_ids": 0,
        "self_transactions": 0,
        "negative_amounts": 0,
        "warnings": [],
    }


def empty_frame() -> pd.DataFrame:
    """A zero-row frame with the analysis column types."""
    return pd.DataFrame({
        "transaction_id": pd.Series(dtype=str),
        "sender_id":      pd.Series(dtype=str),
        "receiver_id":    pd.Series(dtype=str),
        "amount":         pd.Series(dtype=float),
        "timestamp":      pd.Series(dtype="datetime64[ns]"),
    })


def _decode_bytes(raw: bytes) -> str:
    """Try UTF-8, then latin-1 fallback."""
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode("latin-1", errors="replace")


def _parse_timestamps(series: pd.Series) -> pd.Series:
    """
    Parse to naive UTC datetimes.

    Values with an offset are converted to UTC; values without one are taken
    as UTC already.  A known format is used only when it parses every row,
    otherwise each value is parsed on its own.  Unparseable values become NaT.
    """
    if is_datetime64_any_dtype(series):
        parsed = pd.to_datetime(series, utc=True)
    else:
        parsed = None
        text = series.astype(str).str.strip()
        for fmt in _TS_FORMATS:
            candidate = pd.to_datetime(text, format=fmt, errors="coerce", utc=True)
            if candidate.notna().all():
                parsed = candidate
                break
        if parsed is None:
            parsed = pd.to_datetime(series, format="mixed", errors="coerce", utc=True)
    return parsed.dt.tz_convert(None)


def _drop(df: pd.DataFrame, mask: pd.Series, stats: dict, message: str) -> pd.DataFrame:
    n = int(mask.sum())
    if n:
        stats["warnings"].append(message.format(n=n))
        df = df[~mask].copy()
    return df


def _clean(df: pd.DataFrame, stats: dict) -> pd.DataFrame:
    """Normalise columns and drop every row the detectors cannot use."""
    # 1. Normalise column names ────────────────────────────────────────────────
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise ValueError(
            f"Missing required columns: {sorted(missing)}. "
            f"Found: {sorted(df.columns.tolist())}"
        )
    df = df[COLUMNS].copy()

    # 2. IDs as stripped strings ───────────────────────────────────────────────
    for col in _ID_COLUMNS:
        df[col] = df[col].fillna("").astype(str).str.strip()

    # 3. Drop empty-field rows ─────────────────────────────────────────────────
    mask_empty = (
        df["transaction_id"].eq("") | df["sender_id"].eq("") |
        df["receiver_id"].eq("") | df["amount"].isna() | df["amount"].eq("") |
        df["timestamp"].isna() | df["timestamp"].astype(str).str.strip().eq("")
    )
    df = _drop(df, mask_empty, stats, "Dropped {n} rows with empty fields.")

    # 4. Parse & validate amount ───────────────────────────────────────────────
    df["amount"] = pd.to_numeric(df["amount"], errors="coerce")
    df = _drop(df, df["amount"].isna(), stats, "Dropped {n} rows with non-numeric amount.")

    neg = df["amount"] <= 0
    stats["negative_amounts"] = int(neg.sum())
    df = _drop(df, neg, stats, "Dropped {n} rows with non-positive amount.")
    df["amount"] = df["amount"].astype(float)

    # 5. Parse timestamps ──────────────────────────────────────────────────────
    df["timestamp"] = _parse_timestamps(df["timestamp"])
    df = _drop(df, df["timestamp"].isna(), stats, "Dropped {n} rows with unparseable timestamp.")

    # 6. Remove self-transactions ──────────────────────────────────────────────
    self_tx = df["sender_id"] == df["receiver_id"]
    stats["self_transactions"] = int(self_tx.sum())
    df = _drop(df, self_tx, stats, "Dropped {n} self-transactions.")

    # 7. Deduplicate transaction_id ────────────────────────────────────────────
    dups = df.duplicated(subset=["transaction_id"], keep="first")
    stats["duplicate_tx_ids"] = int(dups.sum())
    df = _drop(df, dups, stats, "Dropped {n} duplicate transaction_id rows.")

    # 8. Row limit ─────────────────────────────────────────────────────────────
    if len(df) > MAX_ROWS:
        stats["warnings"].append(
            f"Dataset truncated from {len(df)} to {MAX_ROWS} rows."
        )
        df = df.head(MAX_ROWS).copy()

    df = df.reset_index(drop=True)
    stats["valid_rows"] = len(df)
    stats["dropped_rows"] = stats["total_rows"] - len(df)
    return df


def parse_csv(file_bytes: bytes) -> Tuple[pd.DataFrame, dict]:
    """
    Parse and validate CSV bytes.

    Returns
    -------
    df    : pd.DataFrame  – cleaned, ready for analysis
    stats : dict          – parse statistics and warnings

    Raises
    ------
    ValueError on fatal errors (missing columns, zero valid rows).
    """
    stats = _new_stats()
    text = _decode_bytes(file_bytes)

    # Comment lines ('#') and blank lines are annotations, not data rows.
    cleaned_text = "\n".join(
        line for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    )

    try:
        df = pd.read_csv(io.StringIO(cleaned_text), dtype=str, keep_default_na=False)
    except Exception as exc:
        raise ValueError(f"CSV parse error: {exc}") from exc

    stats["total_rows"] = len(df)
    log.info("CSV loaded: %d raw rows", len(df))

    if df.empty:
        raise ValueError("CSV file is empty – no rows found.")

    df = _clean(df, stats)

    if df.empty:
        raise ValueError(
            "No valid rows remain after validation. "
            f"Issues: {'; '.join(stats['warnings']) or 'unknown'}"
        )

    log.info("Parse complete: %d valid / %d total rows", stats["valid_rows"], stats["total_rows"])
    return df, stats


def transactions_to_frame(
    transactions: Iterable[Transaction | Mapping[str, Any]],
) -> pd.DataFrame:
    """
    Build the analysis DataFrame from Transaction models or dicts.

    Unlike parse_csv, an empty (or fully invalid) input yields an empty
    frame instead of raising; the engine reports nothing for it.
    """
    records = [
        tx.model_dump() if isinstance(tx, Transaction) else dict(tx)
        for tx in transactions
    ]
    if not records:
        return empty_frame()

    stats = _new_stats()
    stats["total_rows"] = len(records)
    df = _clean(pd.DataFrame.from_records(records), stats)

    if stats["warnings"]:
        log.warning("Record ingestion warnings: %s", stats["warnings"])
    if df.empty:
        return empty_frame()
    return df
