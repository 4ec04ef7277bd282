"""
Historical baseline estimation for the Z-Score family.

The baseline is the mean and population standard deviation of the full clean
history of a key. Sigma is guarded on both sides: a zero or undefined sigma is
replaced by a floor so a flat history still produces finite z-scores, and an
extreme sigma is capped so one wild period cannot hide every later deviation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np

logger = logging.getLogger(__name__)

# Below this a sigma is numerically zero (e.g. rounding noise of a flat history)
ZERO_SIGMA = 1e-12


@dataclass(frozen=True)
class HistoricalBaseline:
    """
    Mean and guarded sigma of a history.

    Fields:
    - mean: arithmetic mean
    - std: population standard deviation after floor/cap
    - raw_std: standard deviation before adjustment
    - count: number of observations used
    - sigma_floored / sigma_capped: which guard, if any, was applied
    """

    mean: float
    std: float
    raw_std: float
    count: int
    sigma_floored: bool = False
    sigma_capped: bool = False


@dataclass
class BaselineEstimator:
    """
    Computes a HistoricalBaseline from clean values.

    Warm-up: callers must supply at least one value; the minimum-history rule
    is enforced by the engine before estimation.
    """

    sigma_floor: float = 0.01
    sigma_cap: float = 2.0

    def estimate(self, values: Sequence[float]) -> HistoricalBaseline:
        if len(values) == 0:
            raise ValueError("cannot estimate a baseline from an empty history")

        x = np.asarray(values, dtype=float)
        mean = float(x.mean())
        raw_std = float(x.std())
        std, floored, capped = self.adjust_sigma(raw_std)
        if floored or capped:
            logger.debug(f"Sigma {raw_std:.6f} adjusted to {std:.4f}")

        return HistoricalBaseline(
            mean=mean,
            std=std,
            raw_std=raw_std,
            count=int(x.size),
            sigma_floored=floored,
            sigma_capped=capped,
        )

    def adjust_sigma(self, sigma: float):
        """
        Apply the sigma floor and cap.

        Returns:
            Tuple of (adjusted sigma, floored, capped)
        """
        if math.isnan(sigma) or sigma <= ZERO_SIGMA:
            return self.sigma_floor, True, False
        if sigma > self.sigma_cap:
            return self.sigma_cap, False, True
        return sigma, False, False
