"""
ARIMA module: approximate auto-ARIMA fit and one-step forecast.
"""

from .auto import fit_and_forecast
from .fitting import ar_residuals, fit_ar, fit_candidate, fit_ma, select_model
from .forecaster import forecast_one_step
from .schema import ArimaModel, ForecastResult
from .stationarity import (
	apply_differencing,
	autocorrelation,
	autocorrelations,
	determine_differencing_order,
	difference,
	is_stationary,
)

__all__ = [
	"ArimaModel",
	"ForecastResult",
	"fit_and_forecast",
	"forecast_one_step",
	"select_model",
	"fit_candidate",
	"fit_ar",
	"fit_ma",
	"ar_residuals",
	"autocorrelation",
	"autocorrelations",
	"difference",
	"apply_differencing",
	"determine_differencing_order",
	"is_stationary",
]
