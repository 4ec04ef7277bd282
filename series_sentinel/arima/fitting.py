"""
Approximate ARIMA fitters and grid-search model selection.

These are deliberately light approximations, not maximum-likelihood fits:

- AR(p): coefficients from the autocorrelations, coef[i] = acf[i+1] / acf[0]
  (a shortcut of the Yule-Walker equations, no matrix solve)
- MA(q): coefficients 0.8 * ACF(i+1); residuals are deviations from the mean
- ARMA(p,q): fitted as AR(max(p,q))

Every candidate is scored with a Gaussian log-likelihood of its residuals and
ranked by AIC or BIC.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from series_sentinel.core.config import AlertConfig, SelectionCriterion
from series_sentinel.core.exceptions import ModelFitError

from .schema import ArimaModel
from .stationarity import ACF_EPSILON, autocorrelation, autocorrelations, is_stationary

logger = logging.getLogger(__name__)

MA_SHRINKAGE = 0.8


def ar_residuals(series: np.ndarray, coefficients: Sequence[float]) -> np.ndarray:
    """One-step in-sample errors x_t - sum(coef[i] * x_{t-1-i}) for t >= p."""
    p = len(coefficients)
    n = series.size
    residuals = np.empty(n - p)
    for t in range(p, n):
        prediction = sum(coefficients[i] * series[t - i - 1] for i in range(p))
        residuals[t - p] = series[t] - prediction
    return residuals


def _information_criteria(residual_variance: float, n: int, k: int):
    log_lik = -0.5 * n * math.log(2 * math.pi * residual_variance) - 0.5 * n
    aic = -2 * log_lik + 2 * k
    bic = -2 * log_lik + k * math.log(n)
    return aic, bic


def _build_model(
    series: np.ndarray,
    residuals: np.ndarray,
    p: int,
    d: int,
    q: int,
    ar: Sequence[float],
    ma: Sequence[float],
) -> Optional[ArimaModel]:
    n = series.size
    variance = float(np.var(residuals)) if residuals.size else 0.0
    if not math.isfinite(variance) or variance <= 0:
        logger.debug(f"ARIMA({p},{d},{q}) rejected: residual variance {variance}")
        return None

    aic, bic = _information_criteria(variance, n, k=max(p, q) + 1)
    return ArimaModel(
        p=p,
        d=d,
        q=q,
        ar_coefficients=tuple(float(c) for c in ar),
        ma_coefficients=tuple(float(c) for c in ma),
        intercept=0.0,
        aic=aic,
        bic=bic,
        residual_variance=variance,
        std_error=math.sqrt(variance),
        n_observations=n,
        is_stationary=is_stationary(series),
        series_mean=float(series.mean()),
    )


def fit_ar(series: Sequence[float], p: int, d: int) -> Optional[ArimaModel]:
    """
    Fit AR(p) on an already differenced series.

    Returns None when the residual variance is degenerate.
    """
    x = np.asarray(series, dtype=float)
    acf = autocorrelations(x, p)
    coefficients = [acf[i + 1] / (acf[0] + ACF_EPSILON) for i in range(p)]
    residuals = ar_residuals(x, coefficients)
    return _build_model(x, residuals, p=p, d=d, q=0, ar=coefficients, ma=())


def fit_ma(series: Sequence[float], q: int, d: int) -> Optional[ArimaModel]:
    """Fit MA(q) with the innovations shortcut."""
    x = np.asarray(series, dtype=float)
    coefficients = [MA_SHRINKAGE * autocorrelation(x, i + 1) for i in range(q)]
    residuals = x - x.mean()
    return _build_model(x, residuals, p=0, d=d, q=q, ar=(), ma=coefficients)


def fit_candidate(series: Sequence[float], p: int, d: int, q: int) -> Optional[ArimaModel]:
    """
    Fit one (p, d, q) candidate on the differenced series.

    Returns:
        ArimaModel, or None if the series is too short for the orders or the
        fit is degenerate
    """
    n = len(series)
    if n < max(p, q) + 1:
        return None

    if q == 0:
        return fit_ar(series, p, d)
    if p == 0:
        return fit_ma(series, q, d)
    return fit_ar(series, max(p, q), d)


def select_model(differenced: Sequence[float], d: int, config: AlertConfig) -> ArimaModel:
    """
    Grid-search p in [0, max_p] and q in [0, max_q] and keep the best model.

    The (0, 0) candidate is skipped when d == 0. Candidates failing the
    adequacy rule (``ArimaModel.is_valid``) are discarded.

    Raises:
        ModelFitError: If no candidate is valid
    """
    use_bic = config.selection_criterion == SelectionCriterion.BIC
    best: Optional[ArimaModel] = None
    best_score = math.inf
    tried: List[str] = []

    for p in range(config.max_p + 1):
        for q in range(config.max_q + 1):
            if p == 0 and q == 0 and d == 0:
                continue

            model = fit_candidate(differenced, p, d, q)
            tried.append(f"({p},{d},{q})")
            if model is None or not model.is_valid():
                continue

            score = model.bic if use_bic else model.aic
            if score < best_score:
                best_score = score
                best = model

    if best is None:
        raise ModelFitError(
            f"No valid ARIMA model among {len(tried)} candidates "
            f"for a series of {len(differenced)} observations"
        )

    logger.debug(f"Selected {best.notation} ({config.selection_criterion.value}={best_score:.2f})")
    return best
