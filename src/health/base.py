"""Base class for platform metric sources and shared record helpers.

A ``MetricSource`` wraps one platform's health data store (Health Connect on
Android, HealthKit on iOS) and converts its raw records into canonical
Observations.  The store client itself is an injected collaborator: sources
never touch sensors or OS permission dialogs directly, they call the client
and normalize whatever it hands back.
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from datetime import date, datetime, timezone

from src.health.codes import Metric
from src.health.observation import Observation

logger = logging.getLogger("healthcollector.sources")


class MetricSource(ABC):
    """Abstract base class for all platform metric sources.

    Subclasses must implement ``fetch()``.  A fetch:

    1. checks the platform store is available (``SourceUnavailable`` if not),
    2. requests read authorization for exactly the record types the metric
       needs (``PermissionDenied`` if refused),
    3. reads raw records for ``[start, end]`` and returns them as canonical
       Observations in platform order.

    ``start`` and ``end`` are passed through to the platform unvalidated.
    """

    #: Slug matching the runtime platform value (e.g. 'android', 'ios').
    PLATFORM_ID: str = "unknown"

    #: Human-readable name for logging and UI.
    DISPLAY_NAME: str = "Unknown platform"

    @abstractmethod
    async def fetch(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        """Fetch and normalize one metric's records for a time range.

        Args:
            metric: Metric to read.
            start:  Range start, passed to the platform as-is.
            end:    Range end, passed to the platform as-is.

        Returns:
            Canonical Observations, ordered as the platform returned them.

        Raises:
            SourceUnavailable: The platform store is not initialized.
            PermissionDenied:  Read access for the metric was refused.
            UnsupportedMetric: This source has no reader for the metric.
        """

    def supports(self, metric: Metric) -> bool:
        """Return True if this source can read the given metric."""
        return True


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def safe_float(value: object) -> float | None:
    """Coerce a value to a finite float, returning None on failure."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def dig(record: dict, path: tuple[str, ...]) -> object:
    """Walk nested dict keys, returning None as soon as a level is missing."""
    current: object = record
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def parse_iso_datetime(value: object) -> datetime | None:
    """Parse an ISO-8601 string (or pass a datetime through) as aware UTC.

    Naive values are assumed to be UTC.  Day-only strings parse to midnight.
    Returns None if the value is missing or unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Could not parse datetime string: %r", value)
            return None
    else:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_instant(value: datetime) -> str:
    """Format a datetime as a UTC ISO-8601 instant with millisecond precision.

    Example: ``2026-02-23T06:45:00.000Z``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.replace(tzinfo=None).isoformat(timespec="milliseconds") + "Z"


def normalize_instant(value: object) -> str | None:
    """Parse any supported timestamp and re-emit it as a canonical instant."""
    dt = parse_iso_datetime(value)
    return format_instant(dt) if dt is not None else None


def day_key(value: object) -> str | None:
    """Return the UTC calendar day (``YYYY-MM-DD``) of a timestamp."""
    dt = parse_iso_datetime(value)
    return dt.date().isoformat() if dt is not None else None
