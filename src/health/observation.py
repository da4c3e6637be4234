"""Canonical Observation model shared by every source, aggregator and chart.

The shape is a small subset of a FHIR R5 ``Observation`` resource.  Python
attribute names are snake_case; ``to_fhir()`` dumps the camelCase aliases
(``effectiveDateTime``, ``valueQuantity``) expected by FHIR consumers.

Observations are built per request and never cached or persisted.
"""

from __future__ import annotations

import math
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.health.codes import (
    CATALOG,
    DIASTOLIC,
    LOINC_SYSTEM,
    SYSTOLIC,
    UCUM_SYSTEM,
    Concept,
    Metric,
    definition,
)


class FhirBase(BaseModel):
    """Base model with shared config for the FHIR-shaped schemas."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class Coding(FhirBase):
    system: str = LOINC_SYSTEM
    code: str
    display: str


class CodeableConcept(FhirBase):
    coding: list[Coding] = Field(default_factory=list)
    text: str | None = None

    @classmethod
    def from_concept(cls, concept: Concept) -> CodeableConcept:
        return cls(
            coding=[Coding(code=concept.code, display=concept.display)],
            text=concept.display,
        )

    @property
    def primary_code(self) -> str | None:
        return self.coding[0].code if self.coding else None


class Quantity(FhirBase):
    value: float | None = None
    unit: str | None = None
    system: str | None = UCUM_SYSTEM
    code: str | None = None

    @classmethod
    def from_concept(cls, value: float, concept: Concept) -> Quantity:
        return cls(value=value, unit=concept.unit, code=concept.unit_code)

    @property
    def is_usable(self) -> bool:
        """True when the value is a finite real number."""
        return (
            self.value is not None
            and not isinstance(self.value, bool)
            and math.isfinite(self.value)
        )


class ObservationComponent(FhirBase):
    code: CodeableConcept
    value_quantity: Quantity | None = Field(default=None, alias="valueQuantity")


# LOINC code → catalog entry, for validating parsed observations
_DEFINITIONS_BY_CODE = {d.concept.code: d for d in CATALOG.values()}
_COMPONENT_CODES = [SYSTOLIC.code, DIASTOLIC.code]


class Observation(FhirBase):
    """One health measurement (or measurement pair) in canonical form.

    Attributes:
        resource_type:       Always ``"Observation"``.
        status:              Always ``"final"``.
        code:                The measured concept.
        effective_date_time: ISO-8601 instant or ``YYYY-MM-DD`` day string.
        value_quantity:      Single quantity, absent for composites.
        component:           Exactly two entries (systolic, diastolic) for
                             blood pressure, absent otherwise.
    """

    resource_type: Literal["Observation"] = Field(
        default="Observation", alias="resourceType"
    )
    status: Literal["final"] = "final"
    code: CodeableConcept
    effective_date_time: str | None = Field(default=None, alias="effectiveDateTime")
    value_quantity: Quantity | None = Field(default=None, alias="valueQuantity")
    component: list[ObservationComponent] | None = None

    @model_validator(mode="after")
    def _check_catalog_concept(self) -> Observation:
        code = self.code.primary_code
        entry = _DEFINITIONS_BY_CODE.get(code)
        if entry is None:
            raise ValueError(f"Observation code {code!r} is not a catalogued metric concept")
        if entry.is_composite:
            codes = [c.code.primary_code for c in self.component or []]
            if codes != _COMPONENT_CODES:
                raise ValueError(
                    f"{entry.metric.value} needs components {_COMPONENT_CODES}, got {codes}"
                )
            if self.value_quantity is not None:
                raise ValueError(f"{entry.metric.value} must not carry valueQuantity")
        elif self.component:
            raise ValueError(f"{entry.metric.value} must not carry components")
        return self

    @property
    def is_composite(self) -> bool:
        return bool(self.component)

    def scalar_value(self) -> float | None:
        """Return the single numeric value, or None if there isn't a usable one."""
        if self.value_quantity is None or not self.value_quantity.is_usable:
            return None
        return float(self.value_quantity.value)

    def component_value(self, code: str) -> float | None:
        """Return the value of the component coded with ``code``, if any."""
        for comp in self.component or []:
            if comp.code.primary_code == code and comp.value_quantity is not None:
                return comp.value_quantity.value
        return None

    def to_fhir(self) -> dict:
        """Serialize to a FHIR JSON-compatible dict (camelCase, no nulls)."""
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Builders used by the platform sources
# ---------------------------------------------------------------------------


def quantity_observation(metric: Metric, effective: str, value: float) -> Observation:
    """Build a single-quantity observation for a catalogued metric."""
    concept = definition(metric).concept
    return Observation(
        code=CodeableConcept.from_concept(concept),
        effective_date_time=effective,
        value_quantity=Quantity.from_concept(value, concept),
    )


def blood_pressure_observation(
    effective: str, systolic: float, diastolic: float
) -> Observation:
    """Build a composite blood-pressure observation (systolic, diastolic)."""
    return Observation(
        code=CodeableConcept.from_concept(definition(Metric.BLOOD_PRESSURE).concept),
        effective_date_time=effective,
        component=[
            ObservationComponent(
                code=CodeableConcept.from_concept(SYSTOLIC),
                value_quantity=Quantity.from_concept(systolic, SYSTOLIC),
            ),
            ObservationComponent(
                code=CodeableConcept.from_concept(DIASTOLIC),
                value_quantity=Quantity.from_concept(diastolic, DIASTOLIC),
            ),
        ],
    )
