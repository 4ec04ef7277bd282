"""
Schema definitions for the ARIMA alert family.

A fitted model and its one-step forecast are plain immutable values: they are
created by the selector and forecaster and never updated afterwards.
"""

from __future__ import annotations

import math
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class ArimaModel(BaseModel):
    """
    Fitted ARIMA(p,d,q) approximation.

    Fields:
    - p, d, q: model orders (an ARMA candidate is stored as AR(max(p,q)), q=0)
    - ar_coefficients / ma_coefficients: approximate coefficients
    - intercept: always 0 for the approximate fitters
    - aic / bic: information criteria used for selection
    - residual_variance: population variance of in-sample residuals
    - std_error: sqrt(residual_variance)
    - n_observations: length of the fitted (differenced) series
    - is_stationary: |ACF(1)| of the fitted series is below 0.9; False when
      max_d was reached first
    - series_mean: mean of the fitted series
    """

    model_config = ConfigDict(frozen=True)

    p: int = Field(ge=0)
    d: int = Field(ge=0)
    q: int = Field(ge=0)
    ar_coefficients: Tuple[float, ...] = ()
    ma_coefficients: Tuple[float, ...] = ()
    intercept: float = 0.0
    aic: float
    bic: float
    residual_variance: float
    std_error: float
    n_observations: int = Field(ge=0)
    is_stationary: bool = True
    series_mean: float = 0.0

    @property
    def notation(self) -> str:
        return f"ARIMA({self.p},{self.d},{self.q})"

    @property
    def is_pure_ma(self) -> bool:
        return self.p == 0 and self.q > 0

    def is_valid(self) -> bool:
        """
        Adequacy rule: at least two observations per parameter and a
        finite, positive standard error.
        """
        return (
            self.n_observations >= 2 * (self.p + self.d + self.q + 1)
            and math.isfinite(self.std_error)
            and self.std_error > 0
        )


class ForecastResult(BaseModel):
    """One-step-ahead forecast with its prediction interval."""

    model_config = ConfigDict(frozen=True)

    point_forecast: float
    lower_bound: float
    upper_bound: float
    std_error: float = Field(ge=0.0)
    confidence_level: float = Field(gt=0.0, lt=1.0)
    z_value: float = Field(gt=0.0)

    @property
    def interval_width(self) -> float:
        return self.upper_bound - self.lower_bound

    def contains(self, value: float) -> bool:
        return self.lower_bound <= value <= self.upper_bound
