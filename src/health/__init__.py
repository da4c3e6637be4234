"""Health observation collector core.

This package normalizes platform health records into canonical
Observations and reduces observation series into chart-ready points.

Subpackages:
    sources/ — Platform sources (Health Connect, HealthKit, unsupported)

Core modules:
    codes         — Metric identifiers and their LOINC/UCUM coding
    observation   — Canonical Observation model
    base          — MetricSource ABC and record helpers
    aggregator    — Per-day totals for cumulative metrics
    downsampler   — Stride subsampling and axis-label thinning
    collector     — Collector facade and screen session
    config_loader — Load/validate/hot-reload collector_config.yaml
"""

from src.health.aggregator import CumulativeSample, aggregate_daily
from src.health.base import MetricSource
from src.health.codes import Metric, parse_metric
from src.health.collector import CollectorSession, HealthCollector
from src.health.config_loader import CollectorConfig, get_collector_config
from src.health.downsampler import ChartPoint, downsample
from src.health.errors import (
    CollectorError,
    PermissionDenied,
    SourceUnavailable,
    UnsupportedMetric,
)
from src.health.observation import Observation

__all__ = [
    "Metric",
    "parse_metric",
    "Observation",
    "MetricSource",
    "CumulativeSample",
    "aggregate_daily",
    "ChartPoint",
    "downsample",
    "HealthCollector",
    "CollectorSession",
    "CollectorConfig",
    "get_collector_config",
    "CollectorError",
    "PermissionDenied",
    "SourceUnavailable",
    "UnsupportedMetric",
]
