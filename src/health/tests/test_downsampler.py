"""Tests for stride downsampling and axis-label thinning."""

from __future__ import annotations

import math

import pytest

from src.health.codes import Metric
from src.health.config_loader import DownsampleConfig
from src.health.downsampler import ChartPoint, compute_stride, downsample
from src.health.observation import (
    Observation,
    Quantity,
    blood_pressure_observation,
    quantity_observation,
)


@pytest.fixture
def cfg() -> DownsampleConfig:
    return DownsampleConfig()


class TestStride:
    @pytest.mark.parametrize(
        "count,expected",
        [(0, 1), (1, 1), (29, 1), (30, 1), (59, 1), (60, 2), (89, 2), (90, 3), (1000, 33)],
    )
    def test_compute_stride(self, count: int, expected: int) -> None:
        assert compute_stride(count, 30) == expected


class TestOutputLength:
    def test_empty_input_yields_empty_output(self, cfg: DownsampleConfig) -> None:
        assert downsample([], cfg) == []

    @pytest.mark.parametrize("count", [1, 9, 10, 29, 30, 31, 50, 59, 60, 61, 100, 299, 1000])
    def test_length_is_ceil_of_count_over_stride(
        self, cfg: DownsampleConfig, make_series, count: int
    ) -> None:
        stride = max(1, count // 30)
        result = downsample(make_series(count), cfg)
        assert len(result) == math.ceil(count / stride)

    @pytest.mark.parametrize("count", [30, 60, 90, 300, 3000])
    def test_multiples_of_target_hit_target_exactly(
        self, cfg: DownsampleConfig, make_series, count: int
    ) -> None:
        assert len(downsample(make_series(count), cfg)) == 30

    @pytest.mark.parametrize("count", [31, 50, 100, 1000])
    def test_cap_to_target_enforces_bound(self, make_series, count: int) -> None:
        capped = DownsampleConfig(cap_to_target=True)
        result = downsample(make_series(count), capped)
        assert len(result) <= 30


class TestOrderAndDeterminism:
    def test_rerun_is_identical(self, cfg: DownsampleConfig, make_series) -> None:
        series = make_series(137)
        assert downsample(series, cfg) == downsample(series, cfg)

    def test_output_is_positional_subsequence(
        self, cfg: DownsampleConfig, make_series
    ) -> None:
        series = make_series(137)
        stride = 137 // 30
        result = downsample(series, cfg)
        expected = [series[i].scalar_value() for i in range(0, 137, stride)]
        assert [p.value for p in result] == expected
        times = [p.time for p in result]
        assert times == sorted(times)

    def test_no_averaging_of_dropped_points(self, cfg: DownsampleConfig, make_series) -> None:
        series = make_series(60)  # stride 2 → keeps even positions only
        series[1] = quantity_observation(
            Metric.HEART_RATE, series[1].effective_date_time, 250.0
        )
        assert 250.0 not in [p.value for p in downsample(series, cfg)]

    def test_time_is_epoch_milliseconds(self, cfg: DownsampleConfig) -> None:
        obs = quantity_observation(Metric.WEIGHT, "2026-02-23T06:45:00.000Z", 72.5)
        (point,) = downsample([obs], cfg)
        assert point == ChartPoint(
            value=72.5, time=1771829100000, label="23.02.2026 06:45", show_label=True
        )


class TestLabels:
    def test_dense_mode_labels_every_point(self, cfg: DownsampleConfig, make_series) -> None:
        result = downsample(make_series(9), cfg)
        assert len(result) == 9
        assert all(p.show_label for p in result)
        assert all(p.label for p in result)

    def test_ten_points_is_not_dense(self, cfg: DownsampleConfig, make_series) -> None:
        result = downsample(make_series(10), cfg)
        assert [p.show_label for p in result] == [i % 5 == 0 for i in range(10)]

    def test_sparse_mode_labels_every_fifth_point(
        self, cfg: DownsampleConfig, make_series
    ) -> None:
        result = downsample(make_series(50), cfg)
        for index, point in enumerate(result):
            assert point.show_label is (index % 5 == 0)
            assert (point.label is not None) is point.show_label

    def test_dense_mode_counts_filtered_input(self, cfg: DownsampleConfig, make_series) -> None:
        # 12 observations, but 4 have no value → 8 usable → dense mode
        usable = make_series(8)
        series = usable + [
            Observation(code=usable[0].code, effective_date_time="2026-02-03T08:00:00Z")
            for _ in range(4)
        ]
        result = downsample(series, cfg)
        assert len(result) == 8
        assert all(p.show_label for p in result)

    def test_day_timestamps_use_day_format(self, cfg: DownsampleConfig) -> None:
        obs = quantity_observation(Metric.STEPS, "2026-02-23", 10412)
        (point,) = downsample([obs], cfg)
        assert point.label == "23.02.2026"

    def test_custom_label_interval(self, make_series) -> None:
        result = downsample(make_series(30), DownsampleConfig(label_every=3))
        assert [p.show_label for p in result] == [i % 3 == 0 for i in range(30)]


class TestFiltering:
    def test_observation_without_quantity_is_excluded(
        self, cfg: DownsampleConfig, make_series
    ) -> None:
        series = make_series(5)
        series.insert(
            2,
            Observation(
                code=series[0].code,
                effective_date_time="2026-02-01T09:00:00Z",
                value_quantity=Quantity(unit="beats/minute", code="/min"),
            ),
        )
        result = downsample(series, cfg)
        assert len(result) == 5

    def test_composite_observation_is_excluded(self, cfg: DownsampleConfig) -> None:
        bp = blood_pressure_observation("2026-02-01T09:00:00Z", 120.0, 80.0)
        weight = quantity_observation(Metric.WEIGHT, "2026-02-01T09:00:00Z", 70.0)
        result = downsample([bp, weight], cfg)
        assert [p.value for p in result] == [70.0]

    def test_missing_or_bad_timestamp_is_excluded(self, cfg: DownsampleConfig) -> None:
        good = quantity_observation(Metric.WEIGHT, "2026-02-01T09:00:00Z", 70.0)
        no_time = good.model_copy(update={"effective_date_time": None})
        bad_time = good.model_copy(update={"effective_date_time": "yesterday"})
        assert len(downsample([no_time, good, bad_time], cfg)) == 1

    def test_non_finite_value_is_excluded(self, cfg: DownsampleConfig) -> None:
        nan = quantity_observation(Metric.WEIGHT, "2026-02-01T09:00:00Z", float("nan"))
        inf = quantity_observation(Metric.WEIGHT, "2026-02-01T10:00:00Z", float("inf"))
        assert downsample([nan, inf], cfg) == []

    def test_stride_uses_filtered_count(self, cfg: DownsampleConfig, make_series) -> None:
        # 40 usable + 30 composites: stride from 40 → 1, so all 40 are kept
        composites = [
            blood_pressure_observation("2026-02-01T09:00:00Z", 120.0, 80.0)
            for _ in range(30)
        ]
        assert len(downsample(make_series(40) + composites, cfg)) == 40


class TestDefaultConfig:
    def test_uses_loaded_config_when_none_given(self, make_series) -> None:
        assert len(downsample(make_series(90))) == 30
