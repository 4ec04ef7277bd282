"""
Adaptive threshold calculation.

The band half-width (margin) depends on how volatile the history is:

    sigma <  stable_threshold        -> stable_factor * stable_threshold
    sigma <  volatility_threshold    -> medium_volatility_factor * sigma
    otherwise                        -> sigma

and is then clamped to [min_margin, max_margin].
"""

from __future__ import annotations

import logging

from series_sentinel.core.config import AlertConfig

from .schema import ThresholdLimits

logger = logging.getLogger(__name__)


def compute_margin(sigma: float, config: AlertConfig) -> float:
    """
    Volatility-tiered margin for a historical sigma.

    Example:
        >>> round(compute_margin(0.03, AlertConfig()), 6)
        0.039
    """
    if sigma < 0:
        logger.warning(f"Negative sigma {sigma:.6f} received, using its absolute value")
        sigma = abs(sigma)

    if sigma < config.stable_threshold:
        margin = config.stable_factor * config.stable_threshold
    elif sigma < config.volatility_threshold:
        margin = config.medium_volatility_factor * sigma
    else:
        margin = sigma

    return min(max(margin, config.min_margin), config.max_margin)


def compute_limits(mean: float, sigma: float, config: AlertConfig) -> ThresholdLimits:
    """Band mean -/+ margin around the historical mean."""
    margin = compute_margin(sigma, config)
    return ThresholdLimits(
        mean=mean,
        std_dev=abs(sigma),
        margin=margin,
        lower_limit=mean - margin,
        upper_limit=mean + margin,
    )
