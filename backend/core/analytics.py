"""
analytics.py — End-to-end dashboard analytics pipeline.

raw records -> normalise -> filter -> score -> aggregate -> chart series

Nothing is cached between calls; callers that poll the data source simply
call `compute_analytics` again with the fresh rows.
"""

from typing import Any, Dict, Optional

from core.filters import NowLike, filter_submissions, normalize_filter_params, resolve_now, subject_options
from core.records import RecordsLike, records_to_frame
from core.series import (
    TIME_SERIES_LIMIT,
    build_donut_segments,
    build_histogram_bars,
    build_performance_bars,
    build_time_series,
)
from core.stats import aggregate, to_scored


def compute_analytics(
    records: RecordsLike,
    params: Optional[Dict[str, Any]] = None,
    now: NowLike = None,
    limit: int = TIME_SERIES_LIMIT,
) -> Dict[str, Any]:
    """Run the full pipeline and return everything the analytics tab renders."""
    frame = records_to_frame(records)
    filters = normalize_filter_params(params)
    now = resolve_now(now)

    filtered = filter_submissions(frame, filters, now=now)
    scored = to_scored(filtered)
    summary = aggregate(filtered, scored)

    return {
        "filters": filters,
        # Options come from the unfiltered rows so the dropdown never shrinks
        "subjects": subject_options(frame),
        "summary": summary,
        "scored_count": len(scored),
        "time_series": build_time_series(scored, limit=limit),
        "charts": {
            "donut": build_donut_segments(summary["subject_distribution"]),
            "histogram": build_histogram_bars(summary["score_histogram"]),
            "performance": build_performance_bars(summary["per_subject_performance"]),
        },
    }
