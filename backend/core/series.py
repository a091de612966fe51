"""
series.py — Chart-ready series built from scored records and summaries.

All coordinates live in a [0, 100] x [0, 100] plotting space where y grows
downwards (0 is the top edge), so a higher percentage sits higher on the
chart. Colours are assigned by position, never by hash, so the same filtered
input always renders with the same colours.
"""

from typing import Any, Dict, List

import pandas as pd

from core.records import RecordsLike
from core.stats import _ensure_scored, _sanitize

TIME_SERIES_LIMIT = 15

SUBJECT_PALETTE = ["#6366f1", "#10b981", "#f59e0b", "#ef4444", "#8b5cf6", "#06b6d4"]

BUCKET_COLORS = {
    "90-100": "#10b981",
    "70-89": "#3b82f6",
    "50-69": "#f59e0b",
    "0-49": "#ef4444",
}


def subject_color(index: int) -> str:
    return SUBJECT_PALETTE[index % len(SUBJECT_PALETTE)]


def format_date_label(ts: pd.Timestamp) -> str:
    """Short calendar date, e.g. '5 Jan'."""
    return f"{ts.day} {ts.strftime('%b')}"


# ── Trend line ──────────────────────────────────────────────────────

def build_time_series(scored: RecordsLike, limit: int = TIME_SERIES_LIMIT) -> List[Dict[str, Any]]:
    """
    Map the most recent `limit` scored records to plot points.

    Records are ordered by creation time ascending (ties keep input order),
    the last `limit` are kept, and point i of n gets
    x = i / (n - 1) * 100 (50 for a single point) and y = 100 - percent.
    """
    df = _ensure_scored(scored)
    df = df[df["created_ts"].notna()]
    df = df.sort_values("created_ts", kind="mergesort").tail(limit)

    n = len(df)
    points = []
    for i, (_, row) in enumerate(df.iterrows()):
        x = i / (n - 1) * 100 if n > 1 else 50
        percent = int(row["percent"])
        date_label = format_date_label(row["created_ts"])
        subject = str(row["paper_type"])
        points.append({
            "id": None if pd.isna(row["id"]) else str(row["id"]),
            "x": x,
            "y": 100 - percent,
            "percent": percent,
            "subject": subject,
            "date_label": date_label,
            "label": f"{date_label} - {subject}",
        })
    return _sanitize(points)


# ── Subject donut ───────────────────────────────────────────────────

def build_donut_segments(subject_distribution: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Ring segments for the subject distribution.

    `start`/`end` are cumulative offsets on a 0-100 ring computed from exact
    shares (not the rounded `percent_of_total`), so the ring always closes.
    """
    total = sum(int(d.get("count", 0)) for d in subject_distribution)
    segments = []
    offset = 0.0
    for index, entry in enumerate(subject_distribution):
        share = int(entry.get("count", 0)) / total * 100 if total else 0.0
        segments.append({
            **entry,
            "index": index,
            "color": subject_color(index),
            "start": offset,
            "end": offset + share,
        })
        offset += share
    return segments


# ── Score-range bars ────────────────────────────────────────────────

def build_histogram_bars(score_histogram: Dict[str, Dict[str, int]]) -> List[Dict[str, Any]]:
    return [
        {
            "range": label,
            "count": bucket["count"],
            "percent_of_scored": bucket["percent_of_scored"],
            "height": bucket["percent_of_scored"],
            "color": BUCKET_COLORS.get(label, SUBJECT_PALETTE[0]),
        }
        for label, bucket in score_histogram.items()
    ]


# ── Per-subject bars ────────────────────────────────────────────────

def build_performance_bars(per_subject_performance: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {**entry, "index": index, "color": subject_color(index)}
        for index, entry in enumerate(per_subject_performance)
    ]
