"""
Automatic ARIMA: clean, difference, select, forecast.

A simplified take on R's ``auto.arima`` for short business series:

    1. Validate length (>= min_periods clean observations)
    2. Drop missing and non-finite values
    3. Choose d from the lag-1 autocorrelation
    4. Grid-search (p, q) and keep the best AIC/BIC model
    5. Forecast one step with a z-based prediction interval
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from series_sentinel.core.config import AlertConfig
from series_sentinel.core.exceptions import DataValidationError
from series_sentinel.data.preprocessing import clean_series

from .fitting import select_model
from .forecaster import forecast_one_step
from .schema import ArimaModel, ForecastResult
from .stationarity import apply_differencing, determine_differencing_order

logger = logging.getLogger(__name__)


def fit_and_forecast(
    values: Sequence[Optional[float]],
    config: AlertConfig,
) -> Tuple[ArimaModel, ForecastResult]:
    """
    Fit the best approximate ARIMA model to ``values`` and forecast one step.

    Args:
        values: Historical values in period order; may contain None/NaN
        config: Alert configuration (grid limits, criterion, z value)

    Returns:
        Tuple of (selected model, forecast)

    Raises:
        DataValidationError: If fewer than ``min_periods`` clean values remain
        ModelFitError: If no candidate model is valid
    """
    clean = clean_series(values)
    if len(clean) < config.min_periods:
        raise DataValidationError(
            f"Series too short: {len(clean)} observations (minimum {config.min_periods})"
        )

    d = determine_differencing_order(clean, config.max_d)
    differenced = apply_differencing(clean, d)
    model = select_model(differenced, d, config)
    if not model.is_stationary:
        logger.debug(f"Series still non-stationary after d={d} (max_d={config.max_d})")
    forecast = forecast_one_step(
        clean,
        differenced,
        model,
        z_value=config.z_value,
        confidence_level=config.confidence_level,
    )

    logger.debug(
        f"{model.notation}: forecast {forecast.point_forecast:.4f} "
        f"[{forecast.lower_bound:.4f}, {forecast.upper_bound:.4f}]"
    )
    return model, forecast
