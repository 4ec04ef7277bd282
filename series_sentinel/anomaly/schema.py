"""
Schema definitions for alert results.

All alert outputs are deterministic and explainable. Each result references
its observed value, the expected value and dispersion, the limits it was
compared against, and the checks that decided the verdict.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from series_sentinel.data.schema import SeriesKey


class AlertSeverity(str, Enum):
    """Severity levels for alert results."""

    NORMAL = "NORMAL"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"
    NO_CURRENT_DATA = "NO_CURRENT_DATA"


class AlertFamily(str, Enum):
    """Detection method that produced a result."""

    ZSCORE = "ZSCORE"
    ARIMA = "ARIMA"


class Direction(str, Enum):
    """Side of the limits an observation fell on."""

    ABOVE = "ABOVE"
    BELOW = "BELOW"
    NONE = "NONE"


class ResultFlag(str, Enum):
    """Data-quality adjustments applied while evaluating a key."""

    SIGMA_FLOORED = "sigma_floored"
    SIGMA_CAPPED = "sigma_capped"
    DUPLICATE_AVERAGED = "duplicate_averaged"
    APPROXIMATE_REVERSAL = "approximate_reversal"


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    MODEL_FIT = "MODEL_FIT"


class ThresholdLimits(BaseModel):
    """
    Adaptive band around the historical mean.

    Fields:
    - mean: historical mean
    - std_dev: historical standard deviation (after floor/cap)
    - margin: half-width of the band
    - lower_limit / upper_limit: mean -/+ margin
    """

    model_config = ConfigDict(frozen=True)

    mean: float
    std_dev: float
    margin: float = Field(ge=0.0)
    lower_limit: float
    upper_limit: float

    def contains(self, value: float) -> bool:
        return self.lower_limit <= value <= self.upper_limit


class ConditionChecks(BaseModel):
    """The three triple-validation conditions for one observation."""

    model_config = ConfigDict(frozen=True)

    outside_limits: bool
    material_difference: bool
    significant_zscore: bool

    @property
    def all_met(self) -> bool:
        return self.outside_limits and self.material_difference and self.significant_zscore


class AlertResult(BaseModel):
    """
    Verdict for one series key in one run.

    Fields:
    - family / key / period: what was evaluated
    - observed_value: current value (None when there is no current data)
    - expected_mean / expected_std_dev: historical mean and sigma (Z-Score)
      or point forecast and standard error (ARIMA)
    - z_score: (observed - expected_mean) / expected_std_dev
    - lower_limit / upper_limit: band the observation is compared against
    - margin: band half-width (Z-Score only)
    - is_out_of_range: observation outside the band, or no current data
    - alert_active: the family's alert decision
    - severity: tier from |z|, or NO_CURRENT_DATA
    - direction / out_of_range_magnitude / deviation_pct: how far beyond
      the nearest limit the observation fell
    - history_length / robust_model / warning: history depth information
    - model: selected ARIMA notation (ARIMA only)
    - condition_checks: triple-validation breakdown (Z-Score only)
    - flags: data-quality adjustments applied
    """

    family: AlertFamily
    key: SeriesKey
    period: str
    observed_value: Optional[float] = None
    expected_mean: Optional[float] = None
    expected_std_dev: Optional[float] = None
    z_score: Optional[float] = None
    lower_limit: Optional[float] = None
    upper_limit: Optional[float] = None
    margin: Optional[float] = None
    is_out_of_range: bool
    alert_active: bool = False
    severity: AlertSeverity
    direction: Direction = Direction.NONE
    out_of_range_magnitude: float = Field(0.0, ge=0.0)
    deviation_pct: float = Field(0.0, ge=0.0)
    history_length: int = Field(0, ge=0)
    robust_model: bool = False
    warning: Optional[str] = None
    model: Optional[str] = None
    condition_checks: Optional[ConditionChecks] = None
    flags: List[ResultFlag] = Field(default_factory=list)

    @property
    def has_current_data(self) -> bool:
        return self.severity != AlertSeverity.NO_CURRENT_DATA


class EvaluationError(BaseModel):
    """A key that could not be evaluated."""

    key: SeriesKey
    kind: ErrorKind
    message: str


class AlertSummary(BaseModel):
    """
    Aggregate counters for one run.

    percent_out_of_range is computed over results that have current data.
    """

    total_evaluated: int = 0
    counts_by_severity: Dict[AlertSeverity, int] = Field(default_factory=dict)
    no_current_data_count: int = 0
    invalid_model_count: int = 0
    too_short_count: int = 0
    active_alert_count: int = 0
    out_of_range_count: int = 0
    percent_out_of_range: float = 0.0
    sigma_floored_count: int = 0
    sigma_capped_count: int = 0
    duplicate_current_count: int = 0
    robust_model_count: int = 0
    non_robust_model_count: int = 0


class AlertRunResponse(BaseModel):
    """
    Response of one alert family run.

    An unsuccessful response carries ``message`` and no results.
    """

    success: bool
    family: AlertFamily
    period: str
    branch_filter: Optional[str] = None
    business_unit_filter: Optional[str] = None
    results: List[AlertResult] = Field(default_factory=list)
    summary: AlertSummary = Field(default_factory=AlertSummary)
    errors: List[EvaluationError] = Field(default_factory=list)
    message: Optional[str] = None
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def failure(
        cls,
        family: AlertFamily,
        period: str,
        message: str,
        branch_filter: Optional[str] = None,
        business_unit_filter: Optional[str] = None,
    ) -> "AlertRunResponse":
        return cls(
            success=False,
            family=family,
            period=period,
            branch_filter=branch_filter,
            business_unit_filter=business_unit_filter,
            message=message,
        )

    def active_alerts(self) -> List[AlertResult]:
        return [r for r in self.results if r.alert_active]


class CombinedAlertResponse(BaseModel):
    """Both alert families for one request, with a general summary."""

    period: str
    zscore: AlertRunResponse
    arima: AlertRunResponse
    total_evaluated: int = 0
    critical_zscore_alerts: int = 0
    arima_out_of_range: int = 0
    percent_active_alerts: float = 0.0

    @property
    def success(self) -> bool:
        return self.zscore.success and self.arima.success
