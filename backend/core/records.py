"""
records.py — Submission record ingestion and normalisation.

Handles:
- JSON rows from the submissions endpoint (snake_case or camelCase keys)
- CSV / JSON exports of the same rows
- Missing subject -> "Unknown"
- Numeric coercion of score / score_total
- ISO 8601 timestamps -> UTC `created_ts`
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import pandas as pd

UNKNOWN_SUBJECT = "Unknown"

# canonical column -> accepted source names (first match wins)
COLUMN_ALIASES: Dict[str, List[str]] = {
    "id": ["id", "submission_id", "submissionId"],
    "paper_type": ["paper_type", "paperType", "subject"],
    "status": ["status"],
    "score": ["score", "marks"],
    "score_total": ["score_total", "scoreTotal", "max_score"],
    "created_at": ["created_at", "createdAt"],
}

CANONICAL_COLUMNS = list(COLUMN_ALIASES.keys())

RecordsLike = Union[pd.DataFrame, Iterable[Dict[str, Any]], None]


# ── Helpers ─────────────────────────────────────────────────────────

def normalize_status(value: Any) -> str:
    """Case-insensitive comparison key for a status string."""
    if value is None or pd.isna(value):
        return ""
    return str(value).strip().lower()


def _normalize_subject(value: Any) -> str:
    if value is None or pd.isna(value):
        return UNKNOWN_SUBJECT
    text = str(value)
    return text if text.strip() else UNKNOWN_SUBJECT


def _rename_aliases(df: pd.DataFrame) -> pd.DataFrame:
    rename_map = {}
    for canonical, aliases in COLUMN_ALIASES.items():
        if canonical in df.columns:
            continue
        for alias in aliases:
            if alias in df.columns and alias not in rename_map:
                rename_map[alias] = canonical
                break
    return df.rename(columns=rename_map)


# ── Public API ──────────────────────────────────────────────────────

def records_to_frame(records: RecordsLike) -> pd.DataFrame:
    """
    Build a normalised DataFrame from raw submission records.

    The result always has the canonical columns plus `created_ts`, keeps any
    extra columns untouched and preserves the input row order.
    """
    if records is None:
        df = pd.DataFrame()
    elif isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        df = pd.DataFrame(list(records))

    df = _rename_aliases(df)
    for col in CANONICAL_COLUMNS:
        if col not in df.columns:
            df[col] = None

    df["paper_type"] = df["paper_type"].map(_normalize_subject).astype(object)
    df["score"] = pd.to_numeric(df["score"], errors="coerce")
    df["score_total"] = pd.to_numeric(df["score_total"], errors="coerce")
    df["created_ts"] = pd.to_datetime(
        df["created_at"], errors="coerce", utc=True, format="ISO8601"
    )
    return df.reset_index(drop=True)


def ensure_frame(records: RecordsLike) -> pd.DataFrame:
    """Return `records` as a normalised frame, skipping work if already normalised."""
    if isinstance(records, pd.DataFrame) and "created_ts" in records.columns:
        return records
    return records_to_frame(records)


def load_records(file_path: str) -> pd.DataFrame:
    """Load an exported submissions file (.csv or .json) into a normalised frame."""
    ext = Path(file_path).suffix.lower()
    if ext == ".csv":
        raw = pd.read_csv(file_path, dtype={"id": str, "paper_type": str, "status": str, "created_at": str})
    elif ext == ".json":
        raw = pd.read_json(file_path, orient="records", dtype=False, convert_dates=False)
    else:
        raise ValueError(f"Unsupported file type: {ext}. Use CSV or JSON.")
    return records_to_frame(raw)


def frame_to_records(df: pd.DataFrame, columns: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    """Convert a frame back to JSON-safe dicts (NaN -> None, parsed timestamps dropped)."""
    out = df if columns is None else df[[c for c in columns if c in df.columns]]
    out = out.drop(columns=["created_ts"], errors="ignore")
    out = out.astype(object).where(pd.notna(out), None)
    return out.to_dict(orient="records")
