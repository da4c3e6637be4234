"""Failure conditions raised by the collector core.

All of them derive from ``CollectorError`` so the UI layer can catch one
type and surface ``str(exc)`` verbatim.  Malformed source records are not
errors: sources drop them and carry on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.health.codes import Metric


class CollectorError(Exception):
    """Base class for every condition the collector propagates to callers."""


class SourceUnavailable(CollectorError):
    """The platform health data store could not be initialized."""

    def __init__(self, platform: str, reason: str | None = None) -> None:
        self.platform = platform
        self.reason = reason or "health data is not available on this device"
        super().__init__(f"{platform}: {self.reason}")


class PermissionDenied(CollectorError):
    """The user or the platform refused read access for a metric."""

    def __init__(self, metric: Metric, label: str | None = None) -> None:
        from src.health.codes import definition

        self.metric = metric
        self.label = label or definition(metric).label
        super().__init__(
            f"Permission to read {self.label} data ({metric.value}) was not granted"
        )


class UnsupportedMetric(CollectorError):
    """No source can serve the requested metric identifier."""

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"Unsupported metric: {identifier}")
