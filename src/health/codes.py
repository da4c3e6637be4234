"""Canonical metric catalog: the fixed set of concepts an Observation may carry.

Every platform source maps its native record types onto one of the
``Metric`` identifiers below, and every Observation it emits is coded with
the LOINC concept and UCUM unit registered here.  Nothing outside this
module should spell out a LOINC code or a unit string.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.health.errors import UnsupportedMetric

LOINC_SYSTEM = "http://loinc.org"
UCUM_SYSTEM = "http://unitsofmeasure.org"


class Metric(str, Enum):
    """Metric identifiers accepted by the collector facade."""

    HEART_RATE = "heartRate"
    RESTING_HEART_RATE = "restingHeartRate"
    BLOOD_PRESSURE = "bloodPressure"
    BLOOD_GLUCOSE = "bloodGlucose"
    STEPS = "steps"
    WEIGHT = "weight"
    HEIGHT = "height"
    BODY_TEMPERATURE = "bodyTemperature"
    DISTANCE = "distance"


class MetricKind(str, Enum):
    """How raw samples of a metric turn into observations."""

    POINT = "point"            # one reading → one observation
    CUMULATIVE = "cumulative"  # partial counts, summed per calendar day
    COMPOSITE = "composite"    # paired components (blood pressure)


@dataclass(frozen=True)
class Concept:
    """A coded concept plus the unit its quantity is expressed in.

    Attributes:
        code:      LOINC code.
        display:   LOINC display text, also used as the concept text.
        unit:      Human-readable unit (``Quantity.unit``).
        unit_code: UCUM unit code (``Quantity.code``).
    """

    code: str
    display: str
    unit: str = ""
    unit_code: str = ""


@dataclass(frozen=True)
class MetricDefinition:
    """Catalog entry for one metric.

    Attributes:
        metric:  The metric identifier.
        label:   Short UI label used in user-facing messages.
        concept: Concept the observation is coded with.
        kind:    Point, cumulative or composite.
    """

    metric: Metric
    label: str
    concept: Concept
    kind: MetricKind = MetricKind.POINT

    @property
    def is_cumulative(self) -> bool:
        return self.kind is MetricKind.CUMULATIVE

    @property
    def is_composite(self) -> bool:
        return self.kind is MetricKind.COMPOSITE


SYSTOLIC = Concept("8480-6", "Systolic blood pressure", "mmHg", "mm[Hg]")
DIASTOLIC = Concept("8462-4", "Diastolic blood pressure", "mmHg", "mm[Hg]")

CATALOG: dict[Metric, MetricDefinition] = {
    Metric.HEART_RATE: MetricDefinition(
        Metric.HEART_RATE,
        "Heart rate",
        Concept("8867-4", "Heart rate", "beats/minute", "/min"),
    ),
    Metric.RESTING_HEART_RATE: MetricDefinition(
        Metric.RESTING_HEART_RATE,
        "Resting heart rate",
        Concept("40443-4", "Heart rate --resting", "beats/minute", "/min"),
    ),
    Metric.BLOOD_PRESSURE: MetricDefinition(
        Metric.BLOOD_PRESSURE,
        "Blood pressure",
        Concept("85354-9", "Blood pressure panel"),
        MetricKind.COMPOSITE,
    ),
    Metric.BLOOD_GLUCOSE: MetricDefinition(
        Metric.BLOOD_GLUCOSE,
        "Blood glucose",
        Concept("15074-8", "Blood glucose", "mg/dL", "mg/dL"),
    ),
    Metric.STEPS: MetricDefinition(
        Metric.STEPS,
        "Steps",
        Concept("41950-7", "Number of steps in 24 hour Measured", "steps per day", "/d"),
        MetricKind.CUMULATIVE,
    ),
    Metric.WEIGHT: MetricDefinition(
        Metric.WEIGHT,
        "Weight",
        Concept("29463-7", "Body weight", "kg", "kg"),
    ),
    Metric.HEIGHT: MetricDefinition(
        Metric.HEIGHT,
        "Height",
        Concept("8302-2", "Body height", "cm", "cm"),
    ),
    Metric.BODY_TEMPERATURE: MetricDefinition(
        Metric.BODY_TEMPERATURE,
        "Body temperature",
        Concept("8310-5", "Body temperature", "Cel", "Cel"),
    ),
    Metric.DISTANCE: MetricDefinition(
        Metric.DISTANCE,
        "Distance",
        Concept("41953-1", "Walking distance 24 hour Measured", "m", "m"),
        MetricKind.CUMULATIVE,
    ),
}


def definition(metric: Metric) -> MetricDefinition:
    """Return the catalog entry for a metric."""
    return CATALOG[metric]


def parse_metric(identifier: str | Metric) -> Metric:
    """Resolve a metric identifier string to a ``Metric``.

    Args:
        identifier: e.g. ``"heartRate"`` or ``Metric.HEART_RATE``.

    Returns:
        The matching Metric.

    Raises:
        UnsupportedMetric: If the identifier is not in the catalog.
    """
    if isinstance(identifier, Metric):
        return identifier
    try:
        return Metric(identifier)
    except ValueError:
        raise UnsupportedMetric(identifier) from None
