"""Collector facade: metric identifier + range → canonical observations.

``HealthCollector`` is what the screen layer calls.  It resolves the metric
identifier, dispatches to the platform source chosen at startup, and hands
back either the full observation list or a single ``CollectorError``.  It
never retries and never caches.

``CollectorSession`` holds the series currently on screen.  Every load takes
a request-generation token; a response that resolves after a newer request
was issued is discarded instead of overwriting the newer series.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from src.health.base import MetricSource
from src.health.codes import Metric, definition, parse_metric
from src.health.config_loader import CollectorConfig, get_collector_config
from src.health.downsampler import ChartPoint, downsample
from src.health.errors import CollectorError, UnsupportedMetric
from src.health.observation import Observation

logger = logging.getLogger("healthcollector.collector")


class HealthCollector:
    """Dispatches metric requests to the configured platform source."""

    def __init__(
        self,
        source: MetricSource,
        config: CollectorConfig | None = None,
    ) -> None:
        self._source = source
        self._config = config or get_collector_config()

    @property
    def source(self) -> MetricSource:
        return self._source

    @property
    def config(self) -> CollectorConfig:
        return self._config

    def available_metrics(self) -> list[Metric]:
        """Metrics the current source can read, in catalog order."""
        return [m for m in Metric if self._source.supports(m)]

    def default_range(self, now: datetime | None = None) -> tuple[datetime, datetime]:
        """Return the range offered before the user picks one."""
        end = now or datetime.now(timezone.utc)
        return end - timedelta(days=self._config.default_range_days), end

    async def collect(
        self, metric_id: str | Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        """Fetch canonical observations for one metric and range.

        Args:
            metric_id: Metric identifier (e.g. ``"heartRate"``).
            start:     Range start, passed through to the platform.
            end:       Range end, passed through to the platform.

        Returns:
            Observations in platform order (daily totals for cumulative metrics).

        Raises:
            UnsupportedMetric: Unknown identifier; the source is not called.
            SourceUnavailable: The platform store is not available.
            PermissionDenied:  Read access was refused.
        """
        metric = parse_metric(metric_id)
        try:
            observations = await self._source.fetch(metric, start, end)
        except CollectorError as exc:
            logger.warning(
                "Collecting %s from %s failed: %s",
                metric.value,
                self._source.DISPLAY_NAME,
                exc,
            )
            raise
        logger.info(
            "Collected %d %s observation(s) for %s → %s",
            len(observations),
            metric.value,
            start.isoformat(),
            end.isoformat(),
        )
        return observations

    async def collect_chart(
        self, metric_id: str | Metric, start: datetime, end: datetime
    ) -> list[ChartPoint]:
        """Fetch observations and downsample them into chart points."""
        observations = await self.collect(metric_id, start, end)
        return downsample(observations, self._config.downsample)


# ---------------------------------------------------------------------------
# Screen-facing session state
# ---------------------------------------------------------------------------


@dataclass
class SeriesState:
    """What the screen currently shows.

    Attributes:
        metric:       Identifier of the last metric requested.
        observations: Observations of the last successful load.
        points:       Chart points derived from ``observations``.
        error:        User-facing error message, None when there is none.
        loading:      True while the newest request is in flight.
    """

    metric: str | None = None
    observations: list[Observation] = field(default_factory=list)
    points: list[ChartPoint] = field(default_factory=list)
    error: str | None = None
    loading: bool = False

    @property
    def has_data(self) -> bool:
        return bool(self.observations)


def metric_label(metric_id: str | Metric) -> str:
    """Return the UI label for a metric identifier, or the identifier itself."""
    try:
        return definition(parse_metric(metric_id)).label
    except UnsupportedMetric:
        return str(metric_id)


class CollectorSession:
    """Tracks the displayed series across overlapping range/metric changes.

    Usage::

        session = CollectorSession(collector)
        await session.load("steps", start, end)
        if session.state.error:
            show_banner(session.state.error)
        elif not session.state.has_data:
            show_no_data()
    """

    def __init__(self, collector: HealthCollector) -> None:
        self._collector = collector
        self._generation = 0
        self.state = SeriesState()

    @property
    def generation(self) -> int:
        return self._generation

    def _begin(self, metric_id: str) -> int:
        self._generation += 1
        self.state.metric = metric_id
        self.state.loading = True
        self.state.error = None
        return self._generation

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    async def load(
        self, metric_id: str | Metric, start: datetime, end: datetime
    ) -> bool:
        """Load a series and update ``state`` unless a newer load superseded it.

        Any failure, including errors raised by the platform client itself,
        clears the displayed series and sets ``state.error`` to
        ``"Error reading <label>: <message>"``.

        Returns:
            True if the result was applied, False if it was stale.
        """
        identifier = metric_id.value if isinstance(metric_id, Metric) else metric_id
        token = self._begin(identifier)
        try:
            observations = await self._collector.collect(identifier, start, end)
            if not self._is_current(token):
                logger.debug("Discarding stale result for request #%d", token)
                return False
            self.state.observations = observations
            self.state.points = downsample(
                observations, self._collector.config.downsample
            )
            self.state.error = None
            return True
        except Exception as exc:
            if not self._is_current(token):
                logger.debug("Discarding stale failure for request #%d", token)
                return False
            if not isinstance(exc, CollectorError):
                logger.warning("Platform error while reading %s: %s", identifier, exc)
            self.state.observations = []
            self.state.points = []
            self.state.error = f"Error reading {metric_label(identifier)}: {exc}"
            return True
        finally:
            if self._is_current(token):
                self.state.loading = False

    def dismiss_error(self) -> None:
        self.state.error = None
