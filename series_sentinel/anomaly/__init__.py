"""
Anomaly module: Z-Score and ARIMA alert evaluation.

Implements historical baselines, adaptive thresholds, triple validation,
severity classification, and the per-key alert engine.
"""

from .baselines import BaselineEstimator, HistoricalBaseline
from .detectors import TripleValidator, ZScoreDetector
from .engine import AlertEngine, KeyOutcome
from .schema import (
	AlertFamily,
	AlertResult,
	AlertRunResponse,
	AlertSeverity,
	AlertSummary,
	CombinedAlertResponse,
	ConditionChecks,
	Direction,
	ErrorKind,
	EvaluationError,
	ResultFlag,
	ThresholdLimits,
)
from .scoring import SeverityClassifier
from .thresholds import compute_limits, compute_margin

__all__ = [
	"AlertEngine",
	"KeyOutcome",
	"AlertFamily",
	"AlertResult",
	"AlertRunResponse",
	"AlertSeverity",
	"AlertSummary",
	"CombinedAlertResponse",
	"ConditionChecks",
	"Direction",
	"ErrorKind",
	"EvaluationError",
	"ResultFlag",
	"ThresholdLimits",
	"BaselineEstimator",
	"HistoricalBaseline",
	"ZScoreDetector",
	"TripleValidator",
	"SeverityClassifier",
	"compute_margin",
	"compute_limits",
]
