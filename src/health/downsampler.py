"""Series downsampler: observations → bounded, chart-ready points.

Algorithm:
1. Drop observations without a parseable timestamp or a usable scalar value
   (composite blood-pressure observations have no scalar and are dropped).
2. ``stride = max(1, n // target_points)`` where ``n`` is the filtered count.
3. Keep positions 0, stride, 2·stride, … in input order.  This is plain
   subsampling: dropped points are not averaged into kept ones, so a
   transient spike between kept samples can disappear from the chart.
4. Label every ``label_every``-th kept point, or every point when the
   filtered series is shorter than ``dense_label_threshold``.

The output has exactly ``ceil(n / stride)`` points unless
``cap_to_target`` is set, in which case it is truncated to the target.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable

from src.health.base import parse_iso_datetime
from src.health.config_loader import DownsampleConfig, get_collector_config
from src.health.observation import Observation

logger = logging.getLogger("healthcollector.downsampler")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class ChartPoint:
    """One point handed to the charting collaborator.

    Attributes:
        value:      Numeric value plotted on the y axis.
        time:       Epoch milliseconds (UTC).
        label:      Axis label text, None for unlabelled points.
        show_label: Whether the axis label/tick is drawn for this point.
    """

    value: float
    time: int
    label: str | None
    show_label: bool


@dataclass(frozen=True)
class _Plottable:
    value: float
    moment: datetime
    is_day: bool


def compute_stride(count: int, target_points: int) -> int:
    """Return the subsampling stride for ``count`` points."""
    return max(1, count // target_points)


def _plottable(observations: Iterable[Observation]) -> list[_Plottable]:
    kept: list[_Plottable] = []
    for obs in observations:
        if obs is None:
            continue
        value = obs.scalar_value()
        moment = parse_iso_datetime(obs.effective_date_time)
        if value is None or moment is None:
            continue
        is_day = len(obs.effective_date_time.strip()) == 10
        kept.append(_Plottable(value, moment, is_day))
    return kept


def downsample(
    observations: Iterable[Observation],
    config: DownsampleConfig | None = None,
) -> list[ChartPoint]:
    """Reduce an observation series to chart points.

    Pure and deterministic: the same input always yields the same output.

    Args:
        observations: Canonical observations, in display order.
        config:       Downsampling settings. Defaults to the loaded collector config.

    Returns:
        Chart points in input order.
    """
    cfg = config or get_collector_config().downsample
    series = _plottable(observations)
    count = len(series)
    if count == 0:
        return []

    stride = compute_stride(count, cfg.target_points)
    kept = series[::stride]
    if cfg.cap_to_target:
        kept = kept[: cfg.target_points]
    dense = count < cfg.dense_label_threshold

    points: list[ChartPoint] = []
    for index, item in enumerate(kept):
        show = dense or index % cfg.label_every == 0
        label = None
        if show:
            fmt = cfg.day_label_format if item.is_day else cfg.label_format
            label = item.moment.strftime(fmt)
        points.append(
            ChartPoint(
                value=item.value,
                time=(item.moment - _EPOCH) // timedelta(milliseconds=1),
                label=label,
                show_label=show,
            )
        )

    logger.debug(
        "Downsampled %d point(s) to %d (stride=%d, dense=%s)",
        count,
        len(points),
        stride,
        dense,
    )
    return points
