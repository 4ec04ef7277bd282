"""
Autocorrelation and differencing.

Stationarity is judged with a simplified rule: a series whose lag-1
autocorrelation has magnitude 0.9 or more is treated as non-stationary and
differenced once more, up to ``max_d`` times.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

ACF_EPSILON = 1e-10
NON_STATIONARY_ACF = 0.9


def autocorrelation(series: Sequence[float], lag: int) -> float:
    """
    Sample autocorrelation at ``lag``.

    ACF(k) = sum((x_i - mean) * (x_{i-k} - mean)) / (sum((x_i - mean)^2) + eps)

    Returns 1.0 for lag 0 and 0.0 when the lag is not shorter than the series.
    A constant series has a zero numerator and therefore ACF 0 at every lag > 0.
    """
    x = np.asarray(series, dtype=float)
    n = x.size
    if lag >= n:
        return 0.0
    if lag == 0:
        return 1.0

    centered = x - x.mean()
    denominator = float(np.dot(centered, centered)) + ACF_EPSILON
    numerator = float(np.dot(centered[lag:], centered[:-lag]))
    return numerator / denominator


def autocorrelations(series: Sequence[float], max_lag: int) -> np.ndarray:
    """ACF values for lags 0..max_lag."""
    return np.array([autocorrelation(series, k) for k in range(max_lag + 1)])


def difference(series: Sequence[float]) -> np.ndarray:
    """First difference: y'(t) = y(t) - y(t-1). One element shorter."""
    return np.diff(np.asarray(series, dtype=float))


def apply_differencing(series: Sequence[float], d: int) -> np.ndarray:
    """Apply ``d`` successive first differences."""
    result = np.asarray(series, dtype=float)
    for _ in range(d):
        result = difference(result)
    return result


def is_stationary(series: Sequence[float]) -> bool:
    """True when |ACF(1)| is below the non-stationarity threshold."""
    return abs(autocorrelation(series, 1)) < NON_STATIONARY_ACF


def determine_differencing_order(series: Sequence[float], max_d: int) -> int:
    """
    Smallest d (<= max_d) after which |ACF(1)| < 0.9.

    Example:
        >>> determine_differencing_order([5.0] * 20, max_d=2)
        0
    """
    current = np.asarray(series, dtype=float)
    d = 0

    while d < max_d:
        if is_stationary(current):
            break
        logger.debug(f"ACF(1)={autocorrelation(current, 1):.3f} at d={d}, differencing")
        current = difference(current)
        d += 1

    return d
