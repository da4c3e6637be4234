"""Apple HealthKit source.

HealthKit is reached through an injected client (all coroutines):

    is_health_data_available() -> bool
    request_authorization(read_types: list[str]) -> bool
    query_quantity_samples(identifier, *, from_, to, unit=None) -> list[dict]
        each sample: {"quantity": float, "startDate": ..., "endDate": ...}

Samples are stamped with their ``endDate``.  Blood pressure has no paired
sample type, so it is read as two quantity queries (systolic, diastolic)
that are zipped by position.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Protocol

from src.health.aggregator import CumulativeSample, aggregate_daily
from src.health.base import MetricSource, normalize_instant, safe_float
from src.health.codes import Metric
from src.health.config_loader import CollectorConfig, get_collector_config
from src.health.errors import PermissionDenied, SourceUnavailable, UnsupportedMetric
from src.health.observation import (
    Observation,
    blood_pressure_observation,
    quantity_observation,
)

logger = logging.getLogger("healthcollector.sources.healthkit")

# HKQuantityTypeIdentifier constants
HK_HEART_RATE = "HKQuantityTypeIdentifierHeartRate"
HK_HRV = "HKQuantityTypeIdentifierHeartRateVariabilitySDNN"
HK_RESTING_HR = "HKQuantityTypeIdentifierRestingHeartRate"
HK_BP_SYSTOLIC = "HKQuantityTypeIdentifierBloodPressureSystolic"
HK_BP_DIASTOLIC = "HKQuantityTypeIdentifierBloodPressureDiastolic"
HK_BLOOD_GLUCOSE = "HKQuantityTypeIdentifierBloodGlucose"
HK_STEP_COUNT = "HKQuantityTypeIdentifierStepCount"
HK_DISTANCE = "HKQuantityTypeIdentifierDistanceWalkingRunning"
HK_BODY_MASS = "HKQuantityTypeIdentifierBodyMass"
HK_HEIGHT = "HKQuantityTypeIdentifierHeight"
HK_BODY_TEMPERATURE = "HKQuantityTypeIdentifierBodyTemperature"


class HealthKitClient(Protocol):
    async def is_health_data_available(self) -> bool: ...

    async def request_authorization(self, read_types: list[str]) -> bool: ...

    async def query_quantity_samples(
        self,
        identifier: str,
        *,
        from_: datetime,
        to: datetime,
        unit: str | None = None,
    ) -> list[dict]: ...


# metric → (identifier, unit HealthKit should convert to)
_POINT_QUERIES: dict[Metric, tuple[str, str]] = {
    Metric.HEART_RATE: (HK_HEART_RATE, "count/min"),
    Metric.RESTING_HEART_RATE: (HK_RESTING_HR, "count/min"),
    Metric.BLOOD_GLUCOSE: (HK_BLOOD_GLUCOSE, "mg/dL"),
    Metric.WEIGHT: (HK_BODY_MASS, "kg"),
    Metric.HEIGHT: (HK_HEIGHT, "cm"),
    Metric.BODY_TEMPERATURE: (HK_BODY_TEMPERATURE, "degC"),
}

_CUMULATIVE_QUERIES: dict[Metric, tuple[str, str]] = {
    Metric.STEPS: (HK_STEP_COUNT, "count"),
    Metric.DISTANCE: (HK_DISTANCE, "m"),
}

# Read types requested per metric.  Heart rate also asks for HRV so the
# user sees a single prompt covering both.
_AUTHORIZATION: dict[Metric, list[str]] = {
    Metric.HEART_RATE: [HK_HEART_RATE, HK_HRV],
    Metric.BLOOD_PRESSURE: [HK_BP_SYSTOLIC, HK_BP_DIASTOLIC],
    **{m: [ident] for m, (ident, _) in _POINT_QUERIES.items() if m is not Metric.HEART_RATE},
    **{m: [ident] for m, (ident, _) in _CUMULATIVE_QUERIES.items()},
}


class HealthKitSource(MetricSource):
    """Reads metrics from Apple HealthKit."""

    PLATFORM_ID = "ios"
    DISPLAY_NAME = "Apple Health"

    def __init__(
        self,
        client: HealthKitClient,
        config: CollectorConfig | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            client: HealthKit client (see module docstring).
            config: Collector config. Defaults to the loaded singleton.
        """
        self._client = client
        self._config = config or get_collector_config()

    def supports(self, metric: Metric) -> bool:
        return metric in _AUTHORIZATION

    async def fetch(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        if not self.supports(metric):
            raise UnsupportedMetric(metric.value)
        await self._ensure_available()
        await self._authorize(metric)

        if metric is Metric.BLOOD_PRESSURE:
            observations = await self._read_blood_pressure(start, end)
        elif metric in _CUMULATIVE_QUERIES:
            observations = await self._read_cumulative(metric, start, end)
        else:
            observations = await self._read_point(metric, start, end)

        logger.info(
            "HealthKit: read %d %s observation(s)", len(observations), metric.value
        )
        return observations

    # ------------------------------------------------------------------
    # Platform plumbing
    # ------------------------------------------------------------------

    async def _ensure_available(self) -> None:
        if not await self._client.is_health_data_available():
            raise SourceUnavailable(
                self.DISPLAY_NAME, "Health data is not available on this device"
            )

    async def _authorize(self, metric: Metric) -> None:
        if not await self._client.request_authorization(list(_AUTHORIZATION[metric])):
            logger.warning("HealthKit: authorization for %s refused", metric.value)
            raise PermissionDenied(metric)

    async def _query(
        self, identifier: str, start: datetime, end: datetime, unit: str | None
    ) -> list[dict[str, Any]]:
        samples = await self._client.query_quantity_samples(
            identifier, from_=start, to=end, unit=unit
        )
        return [s for s in samples or [] if isinstance(s, dict)]

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    async def _read_point(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        identifier, unit = _POINT_QUERIES[metric]
        observations: list[Observation] = []
        for sample in await self._query(identifier, start, end, unit):
            effective = normalize_instant(sample.get("endDate"))
            value = safe_float(sample.get("quantity"))
            if effective is None or value is None:
                logger.debug("Skipping malformed %s sample: %r", identifier, sample)
                continue
            observations.append(quantity_observation(metric, effective, value))
        return observations

    async def _read_cumulative(
        self, metric: Metric, start: datetime, end: datetime
    ) -> list[Observation]:
        identifier, unit = _CUMULATIVE_QUERIES[metric]
        samples = [
            CumulativeSample(timestamp=s.get("endDate"), quantity=s.get("quantity"))
            for s in await self._query(identifier, start, end, unit)
        ]
        return aggregate_daily(
            samples, metric, sort_days=self._config.aggregation.sort_days
        )

    async def _read_blood_pressure(
        self, start: datetime, end: datetime
    ) -> list[Observation]:
        systolic = await self._query(HK_BP_SYSTOLIC, start, end, "mmHg")
        diastolic = await self._query(HK_BP_DIASTOLIC, start, end, "mmHg")
        if len(systolic) != len(diastolic):
            # TODO: pair by timestamp (or HKCorrelation) once the intended
            # alignment is confirmed; index pairing truncates silently today.
            logger.warning(
                "HealthKit: blood pressure streams differ in length "
                "(systolic=%d, diastolic=%d); pairing the first %d",
                len(systolic),
                len(diastolic),
                min(len(systolic), len(diastolic)),
            )

        observations: list[Observation] = []
        for sys_sample, dia_sample in zip(systolic, diastolic):
            effective = normalize_instant(sys_sample.get("endDate"))
            sys_value = safe_float(sys_sample.get("quantity"))
            dia_value = safe_float(dia_sample.get("quantity"))
            if effective is None or sys_value is None or dia_value is None:
                logger.debug(
                    "Skipping malformed blood pressure pair: %r / %r",
                    sys_sample,
                    dia_sample,
                )
                continue
            observations.append(
                blood_pressure_observation(effective, sys_value, dia_value)
            )
        return observations
