"""
Severity classification for alert results.

Maps |z| to severity tiers with configurable, inclusive thresholds.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from series_sentinel.core.config import AlertConfig

from .schema import AlertSeverity

SEVERITY_ORDER = [
    AlertSeverity.NO_CURRENT_DATA,
    AlertSeverity.NORMAL,
    AlertSeverity.MODERATE,
    AlertSeverity.HIGH,
    AlertSeverity.CRITICAL,
]


@dataclass
class SeverityClassifier:
    """
    Maps z-scores to severity levels.
    """

    critical_threshold: float = 2.5
    high_threshold: float = 1.96
    moderate_threshold: float = 1.0

    @classmethod
    def from_config(cls, config: AlertConfig) -> "SeverityClassifier":
        return cls(
            critical_threshold=config.critical_threshold,
            high_threshold=config.high_threshold,
            moderate_threshold=config.moderate_threshold,
        )

    def classify(self, zscore: Optional[float]) -> AlertSeverity:
        if zscore is None:
            return AlertSeverity.NO_CURRENT_DATA
        z = abs(zscore)
        if z >= self.critical_threshold:
            return AlertSeverity.CRITICAL
        if z >= self.high_threshold:
            return AlertSeverity.HIGH
        if z >= self.moderate_threshold:
            return AlertSeverity.MODERATE
        return AlertSeverity.NORMAL

