"""Daily aggregation for cumulative metrics (steps, distance).

Platforms report cumulative metrics as many partial samples, each covering
an arbitrary interval.  The chart wants one total per calendar day, so the
samples are grouped by the UTC date of a chosen timestamp and summed.

Days with no samples produce no observation; there is no zero-filling.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from src.health.base import day_key, safe_float
from src.health.codes import Metric, definition
from src.health.observation import Observation, quantity_observation

logger = logging.getLogger("healthcollector.aggregator")


@dataclass(frozen=True)
class CumulativeSample:
    """One partial count from a platform store.

    Attributes:
        timestamp: The timestamp used for day grouping (ISO string or datetime).
        quantity:  Partial count for the sample's interval.
    """

    timestamp: datetime | str | None
    quantity: float | int | None


def daily_totals(
    samples: Iterable[CumulativeSample], *, sort_days: bool = True
) -> dict[str, float]:
    """Sum sample quantities per UTC calendar day.

    Samples with a missing/unparseable timestamp or a non-finite quantity
    are dropped.

    Args:
        samples:   Raw cumulative samples.
        sort_days: Return days in ascending order; otherwise first-seen order.

    Returns:
        ``YYYY-MM-DD`` → total.
    """
    totals: dict[str, float] = {}
    dropped = 0
    for sample in samples:
        day = day_key(sample.timestamp)
        quantity = safe_float(sample.quantity)
        if day is None or quantity is None:
            dropped += 1
            continue
        totals[day] = totals.get(day, 0.0) + quantity

    if dropped:
        logger.debug("Dropped %d malformed cumulative sample(s)", dropped)
    if sort_days:
        return dict(sorted(totals.items()))
    return totals


def aggregate_daily(
    samples: Iterable[CumulativeSample],
    metric: Metric,
    *,
    sort_days: bool = True,
) -> list[Observation]:
    """Collapse cumulative samples into one Observation per calendar day.

    Each observation's ``effective_date_time`` is the day string.  An empty
    input yields an empty list.

    Args:
        samples:   Raw cumulative samples.
        metric:    A cumulative metric (e.g. ``Metric.STEPS``).
        sort_days: Emit days in ascending order (default).

    Returns:
        Daily Observations.

    Raises:
        ValueError: If ``metric`` is not cumulative.
    """
    if not definition(metric).is_cumulative:
        raise ValueError(f"{metric.value} is not a cumulative metric")
    totals = daily_totals(samples, sort_days=sort_days)
    return [quantity_observation(metric, day, total) for day, total in totals.items()]
