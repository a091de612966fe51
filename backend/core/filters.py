"""
filters.py — Time-window and subject filtering of submission records.

The time window is measured back from wall-clock `now` (not midnight aligned)
and the cutoff itself is included: a record created exactly N days before
`now` survives `lastNDays`.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from core.records import RecordsLike, ensure_frame

ALL = "all"

# window id -> days back from now (None = unbounded)
TIME_WINDOWS: Dict[str, Optional[int]] = {
    "all": None,
    "last30Days": 30,
    "last7Days": 7,
}

NowLike = Union[datetime, str, pd.Timestamp, None]


def resolve_now(now: NowLike = None) -> pd.Timestamp:
    """Return `now` as a UTC timestamp. Naive values are taken to be UTC."""
    try:
        ts = pd.Timestamp.now(tz="UTC") if now is None else pd.Timestamp(now)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid 'now' value: {now!r}") from exc
    if pd.isna(ts):
        raise ValueError(f"Invalid 'now' value: {now!r}")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def normalize_filter_params(params: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Fill defaults and validate a filter payload."""
    params = params or {}
    if not isinstance(params, dict):
        raise ValueError("Filters must be an object with 'time_window' and 'subject'.")
    time_window = params.get("time_window", params.get("timeWindow")) or ALL
    subject = params.get("subject") or ALL

    if not isinstance(time_window, str) or not isinstance(subject, str):
        raise ValueError("'time_window' and 'subject' must be strings.")
    if time_window not in TIME_WINDOWS:
        raise ValueError(
            f"Unknown time window '{time_window}'. Expected one of: {', '.join(TIME_WINDOWS)}."
        )
    return {"time_window": str(time_window), "subject": str(subject)}


def window_cutoff(time_window: str, now: NowLike = None) -> Optional[pd.Timestamp]:
    days = TIME_WINDOWS.get(time_window)
    if days is None:
        return None
    return resolve_now(now) - pd.Timedelta(days=days)


def filter_submissions(
    records: RecordsLike,
    params: Optional[Dict[str, Any]] = None,
    now: NowLike = None,
) -> pd.DataFrame:
    """Apply the time-window and subject filters. Row order is preserved."""
    df = ensure_frame(records)
    params = normalize_filter_params(params)

    mask = pd.Series(True, index=df.index)

    cutoff = window_cutoff(params["time_window"], now)
    if cutoff is not None:
        # NaT compares False, so undated records never pass a bounded window
        mask &= df["created_ts"] >= cutoff

    if params["subject"] != ALL:
        mask &= df["paper_type"] == params["subject"]

    return df.loc[mask].reset_index(drop=True)


def subject_options(records: RecordsLike) -> List[str]:
    """Subject dropdown values: 'all' followed by subjects in first-seen order."""
    df = ensure_frame(records)
    return [ALL] + [str(s) for s in df["paper_type"].drop_duplicates().tolist()]
