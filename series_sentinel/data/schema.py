"""
Canonical series schema for the alert pipeline.

This module defines how one business time series is identified and what an
observation looks like once it has left the ingestion layer. Every record
source is converted to these models before any statistics are computed.

Design rationale:
- One series per key: position x indicator x concept x branch x business unit
- Key components are trimmed strings so "1002", 1002 and " 1002 " match
- Periods are opaque tokens (e.g. "202452"); ordering is lexicographic
- Values may be missing upstream; cleaning happens in preprocessing, not here
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def normalize_component(value: Any) -> str:
    """
    Normalize one key component to its canonical string form.

    Integers stored as floats by spreadsheets ("1002.0") collapse to "1002".
    """
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if text.endswith(".0") and text[:-2].lstrip("-").isdigit():
        text = text[:-2]
    return text


class SeriesKey(BaseModel):
    """
    Composite identity of one time series.

    Attributes:
        position: Job position label
        indicator: Indicator name
        concept: Concept code
        branch: Branch name
        business_unit: Business unit code

    Notes:
        - Hashable and ordered, usable as a dict key and as a sort tie-breaker
        - Equality compares the normalized strings
    """

    model_config = ConfigDict(frozen=True)

    position: str
    indicator: str
    concept: str
    branch: str
    business_unit: str

    @field_validator("position", "indicator", "concept", "branch", "business_unit", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_component(value)

    def as_tuple(self) -> Tuple[str, str, str, str, str]:
        return (self.position, self.indicator, self.concept, self.branch, self.business_unit)

    @property
    def label(self) -> str:
        """Short human-readable label for logs."""
        return f"{self.position[:20]}|{self.indicator[:30]}|{self.concept}|{self.branch}|{self.business_unit}"

    def __lt__(self, other: "SeriesKey") -> bool:
        if not isinstance(other, SeriesKey):
            return NotImplemented
        return self.as_tuple() < other.as_tuple()


class ObservationPoint(BaseModel):
    """Single observation of a series for one period."""

    model_config = ConfigDict(frozen=True)

    period: str = Field(..., min_length=1)
    value: Optional[float] = None

    @field_validator("period", mode="before")
    @classmethod
    def _normalize_period(cls, value: Any) -> str:
        return normalize_component(value)


class HistoricalSeries(BaseModel):
    """
    Past observations of one series, excluding the evaluated period.

    Points are sorted by period on construction.
    """

    model_config = ConfigDict(frozen=True)

    key: SeriesKey
    points: Tuple[ObservationPoint, ...] = ()

    @field_validator("points", mode="after")
    @classmethod
    def _sort_points(cls, points: Tuple[ObservationPoint, ...]) -> Tuple[ObservationPoint, ...]:
        return tuple(sorted(points, key=lambda p: p.period))

    @property
    def raw_values(self) -> List[Optional[float]]:
        """Raw values in period order (may include None/NaN)."""
        return [p.value for p in self.points]

    @property
    def periods(self) -> List[str]:
        return [p.period for p in self.points]

    def excluding(self, period: str) -> "HistoricalSeries":
        """Copy of the series without any point for ``period``."""
        period = normalize_component(period)
        return HistoricalSeries(key=self.key, points=tuple(p for p in self.points if p.period != period))


class CurrentObservation(BaseModel):
    """Observation of one series for the evaluated period."""

    model_config = ConfigDict(frozen=True)

    key: SeriesKey
    period: str
    value: float

    @field_validator("period", mode="before")
    @classmethod
    def _normalize_period(cls, value: Any) -> str:
        return normalize_component(value)


class RawRecord(BaseModel):
    """
    One flat input row as produced by ingestion.

    Every record source (CSV, JSON, DataFrame) maps its columns onto these
    fields before grouping into series.
    """

    model_config = ConfigDict(frozen=True)

    position: str
    indicator: str
    concept: str
    branch: str
    business_unit: str
    period: str = Field(..., min_length=1)
    value: Optional[float] = None

    @field_validator("position", "indicator", "concept", "branch", "business_unit", "period", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        return normalize_component(value)

    @property
    def key(self) -> SeriesKey:
        return SeriesKey(
            position=self.position,
            indicator=self.indicator,
            concept=self.concept,
            branch=self.branch,
            business_unit=self.business_unit,
        )
