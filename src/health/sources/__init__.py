"""Platform metric sources.

Each source implements the MetricSource ABC and handles:
- checking the platform health store is available
- requesting read authorization for the metric's record types
- reading raw records and normalizing them into canonical Observations

Available sources:
    HealthConnectSource — Android Health Connect
    HealthKitSource     — Apple HealthKit
    UnsupportedSource   — any other platform; every fetch fails

The source is chosen once at process start from the runtime platform value
(see ``detect_platform()``), not per request.
"""

from __future__ import annotations

import logging
import sys

from src.health.base import MetricSource
from src.health.config_loader import CollectorConfig
from src.health.sources.health_connect import HealthConnectSource
from src.health.sources.healthkit import HealthKitSource
from src.health.sources.unsupported import UnsupportedSource

__all__ = [
    "HealthConnectSource",
    "HealthKitSource",
    "UnsupportedSource",
    "SOURCE_REGISTRY",
    "create_source",
    "detect_platform",
    "get_source_class",
]

logger = logging.getLogger("healthcollector.sources")

# Registry: platform value → source class
SOURCE_REGISTRY: dict[str, type[MetricSource]] = {
    "android": HealthConnectSource,
    "ios": HealthKitSource,
}


def detect_platform() -> str:
    """Return the runtime platform value (``sys.platform``, lower-cased)."""
    return sys.platform.lower()


def get_source_class(platform: str) -> type[MetricSource]:
    """Return the source class for a platform value.

    Unknown platforms map to ``UnsupportedSource`` rather than raising, so
    the failure surfaces per request as ``SourceUnavailable``.
    """
    return SOURCE_REGISTRY.get(platform.lower(), UnsupportedSource)


def create_source(
    platform: str,
    client: object | None = None,
    config: CollectorConfig | None = None,
) -> MetricSource:
    """Instantiate the source for a platform.

    Args:
        platform: Runtime platform value (e.g. 'android', 'ios').
        client:   Platform store client; required for supported platforms.
        config:   Collector config passed to the source.

    Returns:
        A ready MetricSource.

    Raises:
        ValueError: If a supported platform is selected without a client.
    """
    source_cls = get_source_class(platform)
    if source_cls is UnsupportedSource:
        logger.info("No health store for platform %r; using UnsupportedSource", platform)
        return UnsupportedSource(platform)
    if client is None:
        raise ValueError(f"A {source_cls.DISPLAY_NAME} client is required on {platform!r}")
    logger.info("Using %s source for platform %r", source_cls.DISPLAY_NAME, platform)
    return source_cls(client, config=config)
