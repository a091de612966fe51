"""
stats.py — Scoring and summary statistics for submission analytics.

Computes:
- Normalised percentages for scored submissions (score / score_total)
- Status counts (evaluated / pending, case-insensitive)
- Average, highest and lowest percentage
- Subject distribution in first-seen order
- Fixed four-band score histogram
- Per-subject average performance (first 6 subjects only)

Every function is pure: the same inputs always give the same output, and
data-quality problems (missing totals, empty input, unknown statuses) fall
back to zeros and empty lists instead of raising.
"""

import math
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from core.records import RecordsLike, ensure_frame, normalize_status

EVALUATED_STATUS = "evaluated"
PENDING_STATUS = "pending"

# (label, low, high) with inclusive bounds, checked in this order
SCORE_BUCKETS = [
    ("90-100", 90, 100),
    ("70-89", 70, 89),
    ("50-69", 50, 69),
    ("0-49", 0, 49),
]

# Readability cap for the per-subject bar chart
PERFORMANCE_SUBJECT_CAP = 6


# ── Helpers ─────────────────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13, -0.5 -> 0)."""
    return int(math.floor(float(value) + 0.5))


def _sanitize(obj):
    """Recursively coerce numpy/pandas scalars to JSON-safe Python types."""
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_sanitize(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (np.floating, float)):
        v = float(obj)
        return None if (np.isnan(v) or np.isinf(v)) else v
    return obj


def _bucket_label(percent: int) -> str:
    for label, low, high in SCORE_BUCKETS:
        if low <= percent <= high:
            return label
    # Percentages outside 0-100 fall into the nearest end band
    return SCORE_BUCKETS[0][0] if percent > 100 else SCORE_BUCKETS[-1][0]


def _ensure_scored(scored: RecordsLike) -> pd.DataFrame:
    df = ensure_frame(scored)
    if "percent" in df.columns:
        return df
    return to_scored(df)


def empty_histogram() -> Dict[str, Dict[str, int]]:
    return {label: {"count": 0, "percent_of_scored": 0} for label, _, _ in SCORE_BUCKETS}


# ── Scoring ─────────────────────────────────────────────────────────

def to_scored(records: RecordsLike) -> pd.DataFrame:
    """
    Keep only scored records and add an integer `percent` column.

    A record is scored when `score` is present and `score_total` is present
    and strictly positive. Percentages are not clamped, so a score above its
    total yields more than 100.
    """
    df = ensure_frame(records)
    mask = df["score"].notna() & df["score_total"].notna() & (df["score_total"] > 0)
    scored = df.loc[mask].copy()

    raw = scored["score"].astype(float) / scored["score_total"].astype(float) * 100
    scored["percent"] = np.floor(raw + 0.5).astype(int)
    return scored.reset_index(drop=True)


# ── Aggregation ─────────────────────────────────────────────────────

def aggregate(filtered: RecordsLike, scored: RecordsLike) -> Dict[str, Any]:
    """Summary statistics over the filtered set and its scored subset."""
    filtered = ensure_frame(filtered)
    scored = _ensure_scored(scored)

    total = len(filtered)
    n_scored = len(scored)
    statuses = filtered["status"].map(normalize_status)
    percents = scored["percent"].astype(int)

    summary: Dict[str, Any] = {
        "total_count": total,
        "evaluated_count": int((statuses == EVALUATED_STATUS).sum()),
        "pending_count": int((statuses == PENDING_STATUS).sum()),
        "average_percent": round_half_up(percents.mean()) if n_scored else 0,
        "highest_percent": int(percents.max()) if n_scored else 0,
        "lowest_percent": int(percents.min()) if n_scored else 0,
    }

    # Subject distribution (groupby with sort=False keeps first-seen order)
    distribution: List[Dict[str, Any]] = []
    if total:
        counts = filtered.groupby("paper_type", sort=False).size()
        for subject, count in counts.items():
            distribution.append({
                "subject": str(subject),
                "count": int(count),
                "percent_of_total": round_half_up(count / total * 100),
            })
    summary["subject_distribution"] = distribution

    # Score-range histogram
    histogram = empty_histogram()
    if n_scored:
        bucket_counts = percents.map(_bucket_label).value_counts()
        for label in histogram:
            count = int(bucket_counts.get(label, 0))
            histogram[label] = {
                "count": count,
                "percent_of_scored": round_half_up(count / n_scored * 100),
            }
    summary["score_histogram"] = histogram

    # Per-subject performance, truncated to the first subjects seen
    performance: List[Dict[str, Any]] = []
    if n_scored:
        grouped = scored.groupby("paper_type", sort=False)["percent"].agg(["mean", "count"])
        for subject, row in grouped.head(PERFORMANCE_SUBJECT_CAP).iterrows():
            performance.append({
                "subject": str(subject),
                "average_percent": round_half_up(row["mean"]),
                "count": int(row["count"]),
            })
    summary["per_subject_performance"] = performance

    return _sanitize(summary)
