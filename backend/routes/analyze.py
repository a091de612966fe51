"""
Analyze routes — analytics over submission rows posted by the client.
"""

from fastapi import APIRouter, HTTPException

from core.analytics import compute_analytics
from core.filters import filter_submissions, subject_options
from core.series import TIME_SERIES_LIMIT, build_time_series
from core.stats import to_scored

router = APIRouter()


def _records_from_payload(payload: dict) -> list:
    """Extract submission rows from the request payload. An empty list is valid."""
    data = payload.get("data")
    if data is None or not isinstance(data, list):
        raise HTTPException(400, "No data provided.")
    return data


@router.post("/dashboard")
async def dashboard(payload: dict):
    """Summary counts, distributions, trend points and chart series."""
    records = _records_from_payload(payload)
    try:
        return compute_analytics(records, payload.get("filters"), now=payload.get("now"))
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/time-series")
async def time_series(payload: dict):
    """Trend points for the most recent scored submissions."""
    records = _records_from_payload(payload)
    raw_limit = payload.get("limit")
    try:
        limit = TIME_SERIES_LIMIT if raw_limit is None else int(raw_limit)
    except (TypeError, ValueError):
        raise HTTPException(400, "'limit' must be an integer.")
    if limit < 1:
        raise HTTPException(400, "'limit' must be at least 1.")
    try:
        filtered = filter_submissions(records, payload.get("filters"), now=payload.get("now"))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"points": build_time_series(to_scored(filtered), limit=limit)}


@router.post("/subjects")
async def subjects(payload: dict):
    """Subject filter options in first-seen order."""
    records = _records_from_payload(payload)
    return {"subjects": subject_options(records)}
