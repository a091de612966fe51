"""
Tests for core/filters.py — time windows (inclusive cutoff), subject matching, options.
"""

import os
import sys
from datetime import datetime, timezone

import pandas as pd
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.filters import (
    filter_submissions,
    normalize_filter_params,
    resolve_now,
    subject_options,
    window_cutoff,
)
from core.records import load_records

SAMPLE_CSV = os.path.join(os.path.dirname(__file__), "..", "sample_data", "sample_submissions.csv")


@pytest.fixture
def scenario_records():
    return [
        {"id": "1", "paperType": "GS1", "status": "Evaluated", "score": 12, "scoreTotal": 15, "createdAt": "2024-01-01"},
        {"id": "2", "paperType": "GS1", "status": "Pending", "score": None, "scoreTotal": None, "createdAt": "2024-01-05"},
        {"id": "3", "paperType": "Essay", "status": "Evaluated", "score": 8, "scoreTotal": 10, "createdAt": "2024-01-10"},
    ]


class TestNormalizeFilterParams:
    def test_defaults(self):
        assert normalize_filter_params(None) == {"time_window": "all", "subject": "all"}

    def test_accepts_camel_case(self):
        params = normalize_filter_params({"timeWindow": "last7Days", "subject": "GS1"})
        assert params == {"time_window": "last7Days", "subject": "GS1"}

    def test_rejects_unknown_window(self):
        with pytest.raises(ValueError):
            normalize_filter_params({"time_window": "last90Days"})

    @pytest.mark.parametrize("params", ["last7Days", ["all"], ("all", "GS1")])
    def test_rejects_non_mapping(self, params):
        with pytest.raises(ValueError):
            normalize_filter_params(params)

    @pytest.mark.parametrize("params", [
        {"time_window": ["last7Days"]},
        {"timeWindow": {"days": 7}},
        {"subject": ["GS1"]},
        {"subject": 3},
    ])
    def test_rejects_non_string_values(self, params):
        with pytest.raises(ValueError):
            normalize_filter_params(params)


class TestResolveNow:
    def test_naive_is_utc(self):
        assert resolve_now(datetime(2024, 1, 11)) == pd.Timestamp("2024-01-11", tz="UTC")

    def test_aware_is_converted(self):
        now = pd.Timestamp("2024-01-11T05:30:00+05:30")
        assert resolve_now(now) == pd.Timestamp("2024-01-11T00:00:00", tz="UTC")

    def test_defaults_to_current_time(self):
        assert resolve_now().tzinfo is not None

    @pytest.mark.parametrize("now", ["not a date", "", {"day": 11}, [2024, 1, 11]])
    def test_rejects_invalid_values(self, now):
        with pytest.raises(ValueError):
            resolve_now(now)


class TestTimeWindow:
    NOW = datetime(2024, 1, 11, tzinfo=timezone.utc)

    def test_cutoff_is_wall_clock(self):
        now = datetime(2024, 1, 11, 15, 30, tzinfo=timezone.utc)
        assert window_cutoff("last7Days", now) == pd.Timestamp("2024-01-04T15:30:00", tz="UTC")
        assert window_cutoff("all", now) is None

    def test_cutoff_boundary_is_inclusive(self):
        records = [
            {"id": "on", "created_at": "2024-01-04T00:00:00+00:00"},
            {"id": "before", "created_at": "2024-01-03T23:59:59+00:00"},
        ]
        out = filter_submissions(records, {"time_window": "last7Days"}, now=self.NOW)
        assert out["id"].tolist() == ["on"]

    def test_thirty_day_boundary_is_inclusive(self):
        records = [
            {"id": "on", "created_at": "2023-12-12T00:00:00Z"},
            {"id": "before", "created_at": "2023-12-11T23:59:59Z"},
        ]
        out = filter_submissions(records, {"time_window": "last30Days"}, now=self.NOW)
        assert out["id"].tolist() == ["on"]

    def test_last7_days_at_jan_11(self, scenario_records):
        # cutoff 2024-01-04, so the 5 Jan record is still inside the window
        out = filter_submissions(scenario_records, {"time_window": "last7Days"}, now=self.NOW)
        assert out["id"].tolist() == ["2", "3"]

    def test_last7_days_at_jan_13(self, scenario_records):
        now = datetime(2024, 1, 13, tzinfo=timezone.utc)
        out = filter_submissions(scenario_records, {"time_window": "last7Days"}, now=now)
        assert out["id"].tolist() == ["3"]

    def test_all_keeps_everything(self, scenario_records):
        out = filter_submissions(scenario_records, {"time_window": "all"}, now=self.NOW)
        assert len(out) == 3

    def test_undated_records_only_pass_unbounded_window(self):
        records = [{"id": "x", "created_at": None}, {"id": "y", "created_at": "garbage"}]
        assert len(filter_submissions(records, {"time_window": "last30Days"}, now=self.NOW)) == 0
        assert len(filter_submissions(records, {"time_window": "all"}, now=self.NOW)) == 2

    def test_sample_windows(self):
        df = load_records(SAMPLE_CSV)
        now = datetime(2024, 2, 3, tzinfo=timezone.utc)
        assert filter_submissions(df, {"time_window": "last7Days"}, now=now)["id"].tolist() == ["SUB011", "SUB012"]
        assert len(filter_submissions(df, {"time_window": "last30Days"}, now=now)) == 11


class TestSubjectFilter:
    def test_exact_match(self, scenario_records):
        out = filter_submissions(scenario_records, {"subject": "GS1"})
        assert out["id"].tolist() == ["1", "2"]

    def test_case_sensitive(self, scenario_records):
        assert len(filter_submissions(scenario_records, {"subject": "gs1"})) == 0

    def test_unknown_subject_selects_missing(self):
        records = [{"id": "a", "paper_type": None}, {"id": "b", "paper_type": "Essay"}]
        out = filter_submissions(records, {"subject": "Unknown"})
        assert out["id"].tolist() == ["a"]

    def test_combined_with_window(self, scenario_records):
        now = datetime(2024, 1, 11, tzinfo=timezone.utc)
        out = filter_submissions(scenario_records, {"time_window": "last7Days", "subject": "GS1"}, now=now)
        assert out["id"].tolist() == ["2"]


class TestEmptyInput:
    def test_empty_list(self):
        out = filter_submissions([], {"time_window": "last7Days", "subject": "GS1"})
        assert len(out) == 0

    def test_subject_options_empty(self):
        assert subject_options([]) == ["all"]


class TestSubjectOptions:
    def test_first_seen_order(self):
        df = load_records(SAMPLE_CSV)
        assert subject_options(df) == [
            "all",
            "General Studies I",
            "Essay",
            "General Studies II",
            "Ethics",
            "General Studies III",
            "Unknown",
            "Other",
        ]
