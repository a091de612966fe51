"""
Tests for core/series.py — trend points, palette cycling and chart segments.
"""

import os
import sys

import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.records import load_records
from core.series import (
    SUBJECT_PALETTE,
    TIME_SERIES_LIMIT,
    build_donut_segments,
    build_histogram_bars,
    build_performance_bars,
    build_time_series,
    format_date_label,
    subject_color,
)
from core.stats import aggregate, to_scored

SAMPLE_CSV = os.path.join(os.path.dirname(__file__), "..", "sample_data", "sample_submissions.csv")


def _row(day, score, subject="GS1", id_=None, total=100):
    return {
        "id": id_ or f"r{day}",
        "paper_type": subject,
        "status": "Evaluated",
        "score": score,
        "score_total": total,
        "created_at": f"2024-01-{day:02d}",
    }


class TestBuildTimeSeries:
    def test_empty(self):
        assert build_time_series([]) == []

    def test_single_point_is_centred(self):
        points = build_time_series([_row(1, 80)])
        assert len(points) == 1
        assert points[0]["x"] == 50
        assert points[0]["y"] == 20

    def test_two_points_span_full_width(self):
        points = build_time_series([_row(2, 40), _row(1, 90)])
        assert [p["x"] for p in points] == [0, 100]
        assert [p["percent"] for p in points] == [90, 40]

    def test_y_is_inverted_percent(self):
        points = build_time_series([_row(1, 100), _row(2, 0), _row(3, 75)])
        assert [p["y"] for p in points] == [0, 100, 25]
        assert points[1]["x"] == 50

    def test_keeps_most_recent_in_ascending_order(self):
        # newest first, as the backend returns them
        records = [_row(day, day) for day in range(20, 0, -1)]
        points = build_time_series(records)
        assert TIME_SERIES_LIMIT == 15
        assert len(points) == 15
        assert [p["percent"] for p in points] == list(range(6, 21))
        assert points[0]["x"] == 0
        assert points[-1]["x"] == 100

    def test_custom_limit(self):
        records = [_row(day, day) for day in range(1, 11)]
        points = build_time_series(records, limit=3)
        assert [p["id"] for p in points] == ["r8", "r9", "r10"]

    def test_ties_keep_input_order(self):
        records = [_row(5, 10, id_="first"), _row(5, 20, id_="second"), _row(4, 30, id_="earlier")]
        points = build_time_series(records)
        assert [p["id"] for p in points] == ["earlier", "first", "second"]

    def test_label_format(self):
        points = build_time_series([_row(5, 80, subject="GS1")])
        assert points[0]["date_label"] == "5 Jan"
        assert points[0]["label"] == "5 Jan - GS1"
        assert points[0]["subject"] == "GS1"

    def test_undated_records_are_skipped(self):
        records = [_row(1, 50), {"id": "x", "score": 9, "score_total": 10, "created_at": None}]
        points = build_time_series(records)
        assert [p["id"] for p in points] == ["r1"]

    def test_unscored_records_are_skipped(self):
        records = [_row(1, 50), {"id": "p", "status": "pending", "created_at": "2024-01-02"}]
        assert [p["id"] for p in build_time_series(records)] == ["r1"]

    def test_sample(self):
        points = build_time_series(load_records(SAMPLE_CSV))
        assert len(points) == 7
        assert points[0]["x"] == 0
        assert points[0]["y"] == 20
        assert points[0]["label"] == "1 Jan - General Studies I"
        assert points[-1]["x"] == 100
        assert points[-1]["y"] == 30
        assert points[-1]["label"] == "2 Feb - Ethics"


class TestFormatDateLabel:
    def test_no_zero_padding(self):
        assert format_date_label(pd.Timestamp("2024-03-07", tz="UTC")) == "7 Mar"
        assert format_date_label(pd.Timestamp("2024-12-25", tz="UTC")) == "25 Dec"


class TestSubjectColor:
    def test_palette_size(self):
        assert len(SUBJECT_PALETTE) == 6

    def test_cycles(self):
        assert subject_color(0) == SUBJECT_PALETTE[0]
        assert subject_color(5) == SUBJECT_PALETTE[5]
        assert subject_color(6) == SUBJECT_PALETTE[0]
        assert subject_color(13) == SUBJECT_PALETTE[1]


class TestChartSegments:
    @pytest.fixture
    def summary(self):
        df = load_records(SAMPLE_CSV)
        return aggregate(df, to_scored(df))

    def test_donut_closes_the_ring(self, summary):
        segments = build_donut_segments(summary["subject_distribution"])
        assert len(segments) == 7
        assert segments[0]["start"] == 0
        assert segments[-1]["end"] == pytest.approx(100)
        for prev, nxt in zip(segments, segments[1:]):
            assert nxt["start"] == pytest.approx(prev["end"])

    def test_donut_colours_by_position(self, summary):
        segments = build_donut_segments(summary["subject_distribution"])
        assert [s["color"] for s in segments[:6]] == SUBJECT_PALETTE
        assert segments[6]["color"] == SUBJECT_PALETTE[0]
        assert segments[0]["subject"] == "General Studies I"

    def test_donut_empty(self):
        assert build_donut_segments([]) == []

    def test_histogram_bars(self, summary):
        bars = build_histogram_bars(summary["score_histogram"])
        assert [b["range"] for b in bars] == ["90-100", "70-89", "50-69", "0-49"]
        assert [b["count"] for b in bars] == [1, 4, 1, 1]
        assert all(b["height"] == b["percent_of_scored"] for b in bars)

    def test_performance_bars(self, summary):
        bars = build_performance_bars(summary["per_subject_performance"])
        assert [b["index"] for b in bars] == list(range(len(bars)))
        assert bars[1]["subject"] == "Essay"
        assert bars[1]["color"] == SUBJECT_PALETTE[1]
