"""
Detectors for statistical deviations.

Implements explainable methods:
- Z-score against a historical baseline
- Triple validation of a candidate alert
"""

from __future__ import annotations

from dataclasses import dataclass

from .baselines import HistoricalBaseline
from .schema import ConditionChecks, ThresholdLimits


@dataclass
class ZScoreDetector:
    """
    Z-score detector.

    The baseline sigma is already floored, so the division is always defined.
    """

    def compute(self, observed: float, baseline: HistoricalBaseline) -> float:
        return (observed - baseline.mean) / baseline.std


@dataclass
class TripleValidator:
    """
    Three-condition alert rule.

    An alert fires only if the value is outside the limits, its magnitude is
    material (|value| > min_abs_difference) and the deviation is significant
    (|z| > min_zscore). With ``enabled=False`` only the first condition is used.
    """

    min_abs_difference: float = 0.01
    min_zscore: float = 1.0
    enabled: bool = True

    def check(self, value: float, zscore: float, limits: ThresholdLimits) -> ConditionChecks:
        return ConditionChecks(
            outside_limits=not limits.contains(value),
            material_difference=abs(value) > self.min_abs_difference,
            significant_zscore=abs(zscore) > self.min_zscore,
        )

    def is_alert(self, checks: ConditionChecks) -> bool:
        if not self.enabled:
            return checks.outside_limits
        return checks.all_met
