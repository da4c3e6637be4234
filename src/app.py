"""Process-start wiring for the health collector.

Usage from the host app::

    from src.app import create_collector

    collector = create_collector(client=health_connect_bridge)
    observations = await collector.collect("heartRate", start, end)
"""

from __future__ import annotations

import logging
import sys

from src.config import Settings, get_settings
from src.health.collector import HealthCollector
from src.health.config_loader import get_collector_config, load_collector_config
from src.health.sources import create_source, detect_platform

logger = logging.getLogger("healthcollector")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


def create_collector(
    client: object | None = None,
    settings: Settings | None = None,
) -> HealthCollector:
    """Build a HealthCollector for the running platform.

    The platform comes from ``settings.platform`` when set, otherwise from
    ``detect_platform()``.

    Args:
        client:   Platform store client (Health Connect or HealthKit bridge).
        settings: Settings override; defaults to ``get_settings()``.

    Returns:
        A HealthCollector bound to the selected source.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    if settings.collector_config_path:
        config = load_collector_config(settings.collector_config_path)
    else:
        config = get_collector_config()

    platform = settings.platform or detect_platform()
    source = create_source(platform, client, config=config)
    logger.info(
        "Starting %s v%s [%s] on %s",
        settings.app_name,
        settings.app_version,
        settings.environment,
        platform,
    )
    return HealthCollector(source, config)
