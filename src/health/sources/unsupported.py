"""Fallback source for platforms without a health data store."""

from __future__ import annotations

import logging
from datetime import datetime

from src.health.base import MetricSource
from src.health.codes import Metric
from src.health.errors import SourceUnavailable
from src.health.observation import Observation

logger = logging.getLogger("healthcollector.sources.unsupported")


class UnsupportedSource(MetricSource):
    """Source used when the runtime platform has no health store.

    Every fetch fails with ``SourceUnavailable``.
    """

    PLATFORM_ID = "unsupported"
    DISPLAY_NAME = "Unsupported platform"

    def __init__(self, platform: str = "unknown") -> None:
        self._platform = platform

    def supports(self, metric: Metric) -> bool:
        return False

    async def fetch(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        logger.warning(
            "Health data requested for %s on unsupported platform %r",
            metric.value,
            self._platform,
        )
        raise SourceUnavailable(
            self._platform, "health data is not supported on this platform"
        )
