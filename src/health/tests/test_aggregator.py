"""Tests for per-day aggregation of cumulative metrics."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.health.aggregator import CumulativeSample, aggregate_daily, daily_totals
from src.health.codes import Metric


class TestDailyAggregation:
    def test_sums_samples_per_day(self) -> None:
        samples = [
            CumulativeSample("2026-02-22T08:00:00Z", 10),
            CumulativeSample("2026-02-22T12:30:00Z", 5),
            CumulativeSample("2026-02-23T09:15:00Z", 7),
        ]
        result = aggregate_daily(samples, Metric.STEPS)
        by_day = {o.effective_date_time: o.scalar_value() for o in result}
        assert by_day == {"2026-02-22": 15, "2026-02-23": 7}

    def test_empty_input_yields_empty_output(self) -> None:
        assert aggregate_daily([], Metric.STEPS) == []

    def test_days_without_samples_are_not_zero_filled(self) -> None:
        samples = [
            CumulativeSample("2026-02-01T08:00:00Z", 100),
            CumulativeSample("2026-02-05T08:00:00Z", 200),
        ]
        result = aggregate_daily(samples, Metric.STEPS)
        assert [o.effective_date_time for o in result] == ["2026-02-01", "2026-02-05"]

    def test_observations_are_coded_as_daily_steps(self) -> None:
        (obs,) = aggregate_daily([CumulativeSample("2026-02-22T08:00:00Z", 42)], Metric.STEPS)
        fhir = obs.to_fhir()
        assert fhir["status"] == "final"
        assert fhir["code"]["coding"][0]["code"] == "41950-7"
        assert fhir["valueQuantity"]["code"] == "/d"

    def test_distance_is_aggregated_in_metres(self) -> None:
        samples = [
            CumulativeSample("2026-02-22T08:00:00Z", 1200.5),
            CumulativeSample("2026-02-22T18:00:00Z", 799.5),
        ]
        (obs,) = aggregate_daily(samples, Metric.DISTANCE)
        assert obs.scalar_value() == pytest.approx(2000.0)
        assert obs.value_quantity.unit == "m"

    def test_point_metric_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="heartRate"):
            aggregate_daily([CumulativeSample("2026-02-22", 1)], Metric.HEART_RATE)


class TestDayGrouping:
    def test_groups_by_utc_day(self) -> None:
        # 23:30 at UTC-2 is 01:30 UTC the next day
        totals = daily_totals([CumulativeSample("2026-02-22T23:30:00-02:00", 3)])
        assert totals == {"2026-02-23": 3}

    def test_accepts_datetime_timestamps(self) -> None:
        ts = datetime(2026, 2, 22, 7, 0, tzinfo=timezone.utc)
        assert daily_totals([CumulativeSample(ts, 4), CumulativeSample(ts, 6)]) == {
            "2026-02-22": 10
        }

    def test_sorted_by_day_by_default(self) -> None:
        samples = [
            CumulativeSample("2026-02-23T08:00:00Z", 1),
            CumulativeSample("2026-02-21T08:00:00Z", 2),
            CumulativeSample("2026-02-22T08:00:00Z", 3),
        ]
        assert list(daily_totals(samples)) == ["2026-02-21", "2026-02-22", "2026-02-23"]

    def test_first_seen_order_when_unsorted(self) -> None:
        samples = [
            CumulativeSample("2026-02-23T08:00:00Z", 1),
            CumulativeSample("2026-02-21T08:00:00Z", 2),
        ]
        result = aggregate_daily(samples, Metric.STEPS, sort_days=False)
        assert [o.effective_date_time for o in result] == ["2026-02-23", "2026-02-21"]

    @pytest.mark.parametrize(
        "sample",
        [
            CumulativeSample(None, 10),
            CumulativeSample("", 10),
            CumulativeSample("not a date", 10),
            CumulativeSample("2026-02-22T08:00:00Z", None),
            CumulativeSample("2026-02-22T08:00:00Z", "lots"),
            CumulativeSample("2026-02-22T08:00:00Z", float("nan")),
        ],
    )
    def test_malformed_samples_are_dropped(self, sample: CumulativeSample) -> None:
        good = CumulativeSample("2026-02-22T09:00:00Z", 5)
        assert daily_totals([sample, good]) == {"2026-02-22": 5}
