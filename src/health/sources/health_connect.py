"""Android Health Connect source.

Health Connect is reached through an injected client exposing the three
calls the collector needs (all coroutines):

    initialize() -> bool
    request_permission(permissions: list[dict]) -> list[dict]
        permissions: [{"accessType": "read", "recordType": "HeartRate"}, ...]
        returns the subset that was granted
    read_records(record_type: str, options: dict) -> {"records": [...]}
        options: {"timeRangeFilter": {"operator": "between",
                                      "startTime": iso, "endTime": iso}}

Records are JSON dicts in Health Connect's own shape.  Per record type:

    HeartRate         samples[].time, samples[].beatsPerMinute (series record)
    RestingHeartRate  time, beatsPerMinute
    BloodPressure     time, systolic.inMillimetersOfMercury, diastolic.…
    BloodGlucose      time, level.inMilligramsPerDeciliter
    Steps             startTime, endTime, count (cumulative)
    Distance          startTime, endTime, distance.inMeters (cumulative)
    Weight            time, weight.inKilograms
    Height            time, height.inMeters (reported in cm)
    BodyTemperature   time, temperature.inCelsius
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Protocol

from src.health.aggregator import CumulativeSample, aggregate_daily
from src.health.base import (
    MetricSource,
    dig,
    format_instant,
    normalize_instant,
    safe_float,
)
from src.health.codes import Metric
from src.health.config_loader import CollectorConfig, get_collector_config
from src.health.errors import PermissionDenied, SourceUnavailable, UnsupportedMetric
from src.health.observation import (
    Observation,
    blood_pressure_observation,
    quantity_observation,
)

logger = logging.getLogger("healthcollector.sources.health_connect")


class HealthConnectClient(Protocol):
    async def initialize(self) -> bool: ...

    async def request_permission(self, permissions: list[dict]) -> list[dict]: ...

    async def read_records(self, record_type: str, options: dict) -> dict: ...


# metric → (record type, value path, scale to canonical unit)
_POINT_RECORDS: dict[Metric, tuple[str, tuple[str, ...], float]] = {
    Metric.RESTING_HEART_RATE: ("RestingHeartRate", ("beatsPerMinute",), 1.0),
    Metric.BLOOD_GLUCOSE: ("BloodGlucose", ("level", "inMilligramsPerDeciliter"), 1.0),
    Metric.WEIGHT: ("Weight", ("weight", "inKilograms"), 1.0),
    Metric.HEIGHT: ("Height", ("height", "inMeters"), 100.0),
    Metric.BODY_TEMPERATURE: ("BodyTemperature", ("temperature", "inCelsius"), 1.0),
}

# metric → (record type, value path); grouped by the day of startTime
_CUMULATIVE_RECORDS: dict[Metric, tuple[str, tuple[str, ...]]] = {
    Metric.STEPS: ("Steps", ("count",)),
    Metric.DISTANCE: ("Distance", ("distance", "inMeters")),
}

_HEART_RATE = "HeartRate"
_BLOOD_PRESSURE = "BloodPressure"


class HealthConnectSource(MetricSource):
    """Reads metrics from Android Health Connect."""

    PLATFORM_ID = "android"
    DISPLAY_NAME = "Health Connect"

    def __init__(
        self,
        client: HealthConnectClient,
        config: CollectorConfig | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            client: Health Connect client (see module docstring).
            config: Collector config. Defaults to the loaded singleton.
        """
        self._client = client
        self._config = config or get_collector_config()
        self._readers: dict[
            Metric, Callable[[datetime, datetime], Awaitable[list[Observation]]]
        ] = {
            Metric.HEART_RATE: self._read_heart_rate,
            Metric.BLOOD_PRESSURE: self._read_blood_pressure,
        }
        for metric in _POINT_RECORDS:
            self._readers[metric] = self._point_reader(metric)
        for metric in _CUMULATIVE_RECORDS:
            self._readers[metric] = self._cumulative_reader(metric)

    def supports(self, metric: Metric) -> bool:
        return metric in self._readers

    async def fetch(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        reader = self._readers.get(metric)
        if reader is None:
            raise UnsupportedMetric(metric.value)
        await self._ensure_initialized()
        observations = await reader(start, end)
        logger.info(
            "Health Connect: read %d %s observation(s)", len(observations), metric.value
        )
        return observations

    # ------------------------------------------------------------------
    # Platform plumbing
    # ------------------------------------------------------------------

    async def _ensure_initialized(self) -> None:
        if not await self._client.initialize():
            raise SourceUnavailable(
                self.DISPLAY_NAME, "Health Connect SDK is not initialized"
            )

    async def _authorize(self, metric: Metric, record_type: str) -> None:
        granted = await self._client.request_permission(
            [{"accessType": "read", "recordType": record_type}]
        )
        if not any(
            isinstance(p, dict)
            and p.get("recordType") == record_type
            and p.get("accessType", "read") == "read"
            for p in granted or []
        ):
            logger.warning("Health Connect: read permission for %s refused", record_type)
            raise PermissionDenied(metric)

    async def _read(
        self, metric: Metric, record_type: str, start: datetime, end: datetime
    ) -> list[dict[str, Any]]:
        await self._authorize(metric, record_type)
        response = await self._client.read_records(
            record_type,
            {
                "timeRangeFilter": {
                    "operator": "between",
                    "startTime": format_instant(start),
                    "endTime": format_instant(end),
                }
            },
        )
        records = (response or {}).get("records") or []
        return [r for r in records if isinstance(r, dict)]

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    async def _read_heart_rate(self, start: datetime, end: datetime) -> list[Observation]:
        records = await self._read(Metric.HEART_RATE, _HEART_RATE, start, end)
        observations: list[Observation] = []
        for record in records:
            for sample in record.get("samples") or []:
                if not isinstance(sample, dict):
                    continue
                effective = normalize_instant(sample.get("time"))
                value = safe_float(sample.get("beatsPerMinute"))
                if effective is None or value is None:
                    logger.debug("Skipping malformed heart rate sample: %r", sample)
                    continue
                observations.append(
                    quantity_observation(Metric.HEART_RATE, effective, value)
                )
        return observations

    async def _read_blood_pressure(
        self, start: datetime, end: datetime
    ) -> list[Observation]:
        records = await self._read(Metric.BLOOD_PRESSURE, _BLOOD_PRESSURE, start, end)
        observations: list[Observation] = []
        for record in records:
            effective = normalize_instant(record.get("time"))
            systolic = safe_float(dig(record, ("systolic", "inMillimetersOfMercury")))
            diastolic = safe_float(dig(record, ("diastolic", "inMillimetersOfMercury")))
            if effective is None or systolic is None or diastolic is None:
                logger.debug("Skipping malformed blood pressure record: %r", record)
                continue
            observations.append(
                blood_pressure_observation(effective, systolic, diastolic)
            )
        return observations

    def _point_reader(
        self, metric: Metric
    ) -> Callable[[datetime, datetime], Awaitable[list[Observation]]]:
        record_type, path, scale = _POINT_RECORDS[metric]

        async def read(start: datetime, end: datetime) -> list[Observation]:
            records = await self._read(metric, record_type, start, end)
            observations: list[Observation] = []
            for record in records:
                effective = normalize_instant(record.get("time"))
                value = safe_float(dig(record, path))
                if effective is None or value is None:
                    logger.debug("Skipping malformed %s record: %r", record_type, record)
                    continue
                observations.append(quantity_observation(metric, effective, value * scale))
            return observations

        return read

    def _cumulative_reader(
        self, metric: Metric
    ) -> Callable[[datetime, datetime], Awaitable[list[Observation]]]:
        record_type, path = _CUMULATIVE_RECORDS[metric]

        async def read(start: datetime, end: datetime) -> list[Observation]:
            records = await self._read(metric, record_type, start, end)
            samples = [
                CumulativeSample(timestamp=r.get("startTime"), quantity=dig(r, path))
                for r in records
            ]
            return aggregate_daily(
                samples, metric, sort_days=self._config.aggregation.sort_days
            )

        return read
