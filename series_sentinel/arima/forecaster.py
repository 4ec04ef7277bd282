"""
One-step-ahead forecasting with a prediction interval.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from .schema import ArimaModel, ForecastResult

logger = logging.getLogger(__name__)


def forecast_one_step(
    original: Sequence[float],
    differenced: Sequence[float],
    model: ArimaModel,
    z_value: float = 1.96,
    confidence_level: float = 0.95,
) -> ForecastResult:
    """
    Forecast the next value of ``original``.

    Args:
        original: Clean series on its original scale
        differenced: The series the model was fitted on (d differences applied)
        model: Selected model
        z_value: Interval multiplier (1.96 for 95%)
        confidence_level: Nominal coverage reported with the interval

    Notes:
        - AR models (including the AR(0) random walk when d > 0) predict
          sum(coef[i] * x[last - i]) on the fitted series
        - Pure MA models predict the mean of the fitted series
        - With d > 0 the forecast is un-differenced once by adding the last
          original value; exact only for d <= 1
    """
    fitted = np.asarray(differenced, dtype=float)

    if model.is_pure_ma:
        forecast = float(fitted.mean()) if fitted.size else 0.0
    else:
        forecast = 0.0
        for i, coefficient in enumerate(model.ar_coefficients):
            if i >= fitted.size:
                break
            forecast += coefficient * fitted[fitted.size - 1 - i]

    if model.d > 0:
        if model.d > 1:
            logger.debug(f"{model.notation}: reversing d={model.d} with a single step")
        forecast = float(original[-1]) + forecast

    se = model.std_error
    return ForecastResult(
        point_forecast=forecast,
        lower_bound=forecast - z_value * se,
        upper_bound=forecast + z_value * se,
        std_error=se,
        confidence_level=confidence_level,
        z_value=z_value,
    )
