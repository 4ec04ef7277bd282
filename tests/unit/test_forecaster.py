"""
Unit tests for one-step forecasting and the auto-ARIMA pipeline.
"""

import math

import numpy as np
import pytest

from series_sentinel.arima.auto import fit_and_forecast
from series_sentinel.arima.forecaster import forecast_one_step
from series_sentinel.arima.schema import ArimaModel
from series_sentinel.core.config import AlertConfig
from series_sentinel.core.exceptions import DataValidationError


def _model(p=0, d=0, q=0, ar=(), ma=(), std_error=0.5) -> ArimaModel:
    return ArimaModel(
        p=p,
        d=d,
        q=q,
        ar_coefficients=ar,
        ma_coefficients=ma,
        aic=0.0,
        bic=0.0,
        residual_variance=std_error ** 2,
        std_error=std_error,
        n_observations=20,
    )


class TestForecastOneStep:

    def test_ar_forecast(self):
        series = [1.0, 2.0, 3.0, 4.0]
        model = _model(p=2, ar=(0.5, 0.25))

        result = forecast_one_step(series, series, model)

        assert result.point_forecast == pytest.approx(0.5 * 4.0 + 0.25 * 3.0)

    def test_ma_forecast_is_mean(self):
        series = [1.0, 2.0, 3.0, 6.0]
        model = _model(q=1, ma=(0.3,))

        result = forecast_one_step(series, series, model)

        assert result.point_forecast == pytest.approx(3.0)

    def test_differenced_forecast_adds_last_original_value(self):
        original = [10.0, 11.0, 13.0, 16.0]
        differenced = [1.0, 2.0, 3.0]
        model = _model(p=1, d=1, ar=(0.5,))

        result = forecast_one_step(original, differenced, model)

        assert result.point_forecast == pytest.approx(16.0 + 0.5 * 3.0)

    def test_random_walk_forecast(self):
        original = [10.0, 11.0, 13.0]
        model = _model(p=0, d=1, q=0)

        result = forecast_one_step(original, [1.0, 2.0], model)

        assert result.point_forecast == pytest.approx(13.0)

    def test_interval(self):
        model = _model(p=1, ar=(1.0,), std_error=2.0)

        result = forecast_one_step([5.0], [5.0], model, z_value=1.96, confidence_level=0.95)

        assert result.lower_bound == pytest.approx(5.0 - 3.92)
        assert result.upper_bound == pytest.approx(5.0 + 3.92)
        assert result.interval_width == pytest.approx(7.84)
        assert result.confidence_level == 0.95
        assert result.contains(5.0)
        assert not result.contains(9.0)


class TestFitAndForecast:

    def test_too_short_series(self):
        with pytest.raises(DataValidationError):
            fit_and_forecast([1.0] * 11, AlertConfig())

    def test_missing_values_do_not_count(self):
        values = list(np.random.default_rng(2).normal(size=11)) + [None, math.nan]
        with pytest.raises(DataValidationError):
            fit_and_forecast(values, AlertConfig())

    def test_ar1_series(self, ar1_values):
        model, forecast = fit_and_forecast(ar1_values, AlertConfig())

        assert model.d == 0
        assert model.is_valid()
        assert forecast.lower_bound < forecast.point_forecast < forecast.upper_bound
        assert forecast.std_error == pytest.approx(model.std_error)

    def test_trending_series_is_differenced(self):
        rng = np.random.default_rng(9)
        values = list(np.arange(40, dtype=float) + rng.normal(0.0, 0.1, size=40))

        model, forecast = fit_and_forecast(values, AlertConfig())

        assert model.d >= 1
        assert forecast.point_forecast == pytest.approx(values[-1], abs=5.0)

    def test_stationarity_reported(self):
        rng = np.random.default_rng(8)
        trend = np.arange(60, dtype=float) + rng.normal(0.0, 0.1, size=60)

        capped, _ = fit_and_forecast(trend, AlertConfig(max_d=0))
        differenced, _ = fit_and_forecast(trend, AlertConfig())

        assert capped.d == 0
        assert not capped.is_stationary
        assert differenced.d == 1
        assert differenced.is_stationary
