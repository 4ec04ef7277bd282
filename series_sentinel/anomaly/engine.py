"""
Alert engine: per-key evaluation of historical series against the current
period, for either alert family.

Consumes HistoricalSeries and CurrentObservation objects (usually from a
SeriesRepository), evaluates every key with the Z-Score or ARIMA pipeline,
and aggregates verdicts into an AlertRunResponse with summary counters.
"""

from __future__ import annotations

import logging
import warnings
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from series_sentinel.arima import fit_and_forecast
from series_sentinel.core.config import AlertConfig, config as default_config
from series_sentinel.core.exceptions import (
    MissingCurrentDataWarning,
    ModelFitError,
    RepositoryError,
)
from series_sentinel.data.aggregation import merge_current_observations
from series_sentinel.data.preprocessing import clean_series
from series_sentinel.data.repository import SeriesRepository
from series_sentinel.data.schema import CurrentObservation, HistoricalSeries, SeriesKey

from .baselines import BaselineEstimator
from .detectors import TripleValidator, ZScoreDetector
from .schema import (
    AlertFamily,
    AlertResult,
    AlertRunResponse,
    AlertSeverity,
    AlertSummary,
    CombinedAlertResponse,
    Direction,
    ErrorKind,
    EvaluationError,
    ResultFlag,
)
from .scoring import SEVERITY_ORDER, SeverityClassifier
from .thresholds import compute_limits

logger = logging.getLogger(__name__)

HIGH_ALERT_RATE_PCT = 10.0


@dataclass
class KeyOutcome:
    """Outcome of one key: exactly one of result or error is set."""

    key: SeriesKey
    result: Optional[AlertResult] = None
    error: Optional[EvaluationError] = None


def _beyond_limits(value: float, lower: float, upper: float) -> Tuple[Direction, float, float]:
    """Direction, absolute distance and percent distance beyond the nearest limit."""
    if value > upper:
        magnitude = value - upper
        limit = upper
        direction = Direction.ABOVE
    elif value < lower:
        magnitude = lower - value
        limit = lower
        direction = Direction.BELOW
    else:
        return Direction.NONE, 0.0, 0.0

    pct = magnitude / abs(limit) * 100.0 if limit != 0 else 0.0
    return direction, magnitude, pct


def _zscore_sort_key(result: AlertResult):
    no_data = result.severity == AlertSeverity.NO_CURRENT_DATA
    magnitude = abs(result.z_score) if result.z_score is not None else 0.0
    return (no_data, -magnitude, result.key.as_tuple())


def _arima_sort_key(result: AlertResult):
    no_data = result.severity == AlertSeverity.NO_CURRENT_DATA
    return (no_data, -result.out_of_range_magnitude, result.key.as_tuple())


@dataclass
class AlertEngine:
    """
    Deterministic alert engine for both families.

    Notes:
    - Keys are independent; one failing key never aborts its siblings.
    - Only too-short histories and failed model fits become EvaluationErrors;
      any other exception propagates.
    - With max_workers > 1 keys are evaluated on a thread pool; results are
      sorted afterwards so the output does not depend on scheduling.
    """

    repository: Optional[SeriesRepository] = None
    config: AlertConfig = field(default_factory=lambda: default_config.alerts)

    def __post_init__(self) -> None:
        self._baselines = BaselineEstimator(
            sigma_floor=self.config.sigma_floor,
            sigma_cap=self.config.sigma_cap,
        )
        self._z_detector = ZScoreDetector()
        self._validator = TripleValidator(
            min_abs_difference=self.config.min_abs_difference,
            min_zscore=self.config.min_zscore,
            enabled=self.config.use_triple_validation,
        )
        self._classifier = SeverityClassifier.from_config(self.config)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(
        self,
        period: str,
        family: Union[AlertFamily, str] = AlertFamily.ZSCORE,
        branch_filter: Optional[str] = None,
        business_unit_filter: Optional[str] = None,
    ) -> AlertRunResponse:
        """
        Fetch data for ``period`` from the repository and evaluate it.

        Repository failures and empty data sets produce an unsuccessful
        response instead of raising.
        """
        family = AlertFamily(family.upper())
        logger.info(
            f"{family.value} alerts for period {period} "
            f"(branch={branch_filter or 'ALL'}, business_unit={business_unit_filter or 'ALL'})"
        )

        try:
            historical, current = self._fetch(period, branch_filter, business_unit_filter)
        except RepositoryError as e:
            logger.error(f"{family.value} run for {period} failed: {e}")
            return AlertRunResponse.failure(
                family,
                period,
                str(e),
                branch_filter=branch_filter,
                business_unit_filter=business_unit_filter,
            )

        response = self.detect(historical, current, period, family)
        return response.model_copy(
            update={"branch_filter": branch_filter, "business_unit_filter": business_unit_filter}
        )

    def run_all(
        self,
        period: str,
        branch_filter: Optional[str] = None,
        business_unit_filter: Optional[str] = None,
    ) -> CombinedAlertResponse:
        """Run both families and build the general summary."""
        zscore = self.run(period, AlertFamily.ZSCORE, branch_filter, business_unit_filter)
        arima = self.run(period, AlertFamily.ARIMA, branch_filter, business_unit_filter)

        total = len(zscore.results) + len(arima.results)
        active = zscore.summary.active_alert_count + arima.summary.active_alert_count

        return CombinedAlertResponse(
            period=period,
            zscore=zscore,
            arima=arima,
            total_evaluated=total,
            critical_zscore_alerts=zscore.summary.counts_by_severity.get(AlertSeverity.CRITICAL, 0),
            arima_out_of_range=arima.summary.out_of_range_count,
            percent_active_alerts=round(active * 100.0 / total, 1) if total else 0.0,
        )

    def detect(
        self,
        historical: Iterable[HistoricalSeries],
        current: Iterable[CurrentObservation],
        period: str,
        family: Union[AlertFamily, str] = AlertFamily.ZSCORE,
    ) -> AlertRunResponse:
        """
        Evaluate every historical series against its current observation.

        Args:
            historical: One series per key (points for ``period`` are ignored)
            current: Observations for ``period``; duplicates per key are averaged
            period: Evaluated period
            family: ZSCORE or ARIMA

        Returns:
            Successful AlertRunResponse with sorted results, errors and summary
        """
        family = AlertFamily(family.upper())
        merged, duplicated = merge_current_observations(current)
        duplicated_keys: Set[SeriesKey] = set(duplicated)

        series_list = sorted((s.excluding(period) for s in historical), key=lambda s: s.key)
        orphan_count = len(set(merged) - {s.key for s in series_list})
        if orphan_count:
            logger.debug(f"{orphan_count} current observations have no history and were ignored")

        def evaluate(series: HistoricalSeries) -> KeyOutcome:
            return self.evaluate_key(
                series,
                merged.get(series.key),
                period,
                family,
                duplicated=series.key in duplicated_keys,
            )

        if self.config.max_workers > 1 and len(series_list) > 1:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
                outcomes = list(pool.map(evaluate, series_list))
        else:
            outcomes = [evaluate(s) for s in series_list]

        results = [o.result for o in outcomes if o.result is not None]
        errors = [o.error for o in outcomes if o.error is not None]

        sort_key = _zscore_sort_key if family == AlertFamily.ZSCORE else _arima_sort_key
        results.sort(key=sort_key)
        errors.sort(key=lambda e: e.key.as_tuple())

        summary = self._summarize(results, errors, len(duplicated))
        self._report(family, period, summary)

        return AlertRunResponse(
            success=True,
            family=family,
            period=period,
            results=results,
            summary=summary,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Per-key evaluation
    # ------------------------------------------------------------------

    def evaluate_key(
        self,
        series: HistoricalSeries,
        observation: Optional[CurrentObservation],
        period: str,
        family: AlertFamily,
        duplicated: bool = False,
    ) -> KeyOutcome:
        key = series.key
        clean = clean_series(series.raw_values)

        if len(clean) < self.config.min_periods:
            logger.debug(f"Series too short for {key.label}: {len(clean)} < {self.config.min_periods}")
            return KeyOutcome(
                key=key,
                error=EvaluationError(
                    key=key,
                    kind=ErrorKind.VALIDATION,
                    message=f"Series too short: {len(clean)} observations (minimum {self.config.min_periods})",
                ),
            )

        context = self._history_context(len(clean))
        flags: List[ResultFlag] = [ResultFlag.DUPLICATE_AVERAGED] if duplicated else []

        if family == AlertFamily.ZSCORE:
            result = self._evaluate_zscore(key, clean, observation, period, flags, context)
            return KeyOutcome(key=key, result=result)

        if observation is None:
            return KeyOutcome(key=key, result=self._no_current_data(family, key, period, context))

        try:
            result = self._evaluate_arima(key, clean, observation, period, flags, context)
        except ModelFitError as e:
            logger.debug(f"No valid model for {key.label}: {e}")
            return KeyOutcome(
                key=key,
                error=EvaluationError(key=key, kind=ErrorKind.MODEL_FIT, message=str(e)),
            )
        return KeyOutcome(key=key, result=result)

    def _history_context(self, length: int) -> Dict[str, object]:
        robust = length >= self.config.robust_model_periods
        warning = None
        if not robust:
            warning = (
                f"Only {length} historical periods; "
                f"{self.config.robust_model_periods} recommended for a robust model"
            )
        return {"history_length": length, "robust_model": robust, "warning": warning}

    def _no_current_data(
        self,
        family: AlertFamily,
        key: SeriesKey,
        period: str,
        context: Dict[str, object],
        flags: Optional[List[ResultFlag]] = None,
        **expected: Optional[float],
    ) -> AlertResult:
        return AlertResult(
            family=family,
            key=key,
            period=period,
            observed_value=None,
            z_score=None,
            is_out_of_range=True,
            alert_active=False,
            severity=AlertSeverity.NO_CURRENT_DATA,
            flags=flags or [],
            **expected,
            **context,
        )

    def _evaluate_zscore(
        self,
        key: SeriesKey,
        clean: Sequence[float],
        observation: Optional[CurrentObservation],
        period: str,
        flags: List[ResultFlag],
        context: Dict[str, object],
    ) -> AlertResult:
        baseline = self._baselines.estimate(clean)
        if baseline.sigma_floored:
            flags.append(ResultFlag.SIGMA_FLOORED)
        if baseline.sigma_capped:
            flags.append(ResultFlag.SIGMA_CAPPED)

        limits = compute_limits(baseline.mean, baseline.std, self.config)

        if observation is None:
            return self._no_current_data(
                AlertFamily.ZSCORE,
                key,
                period,
                context,
                flags=flags,
                expected_mean=limits.mean,
                expected_std_dev=limits.std_dev,
                lower_limit=limits.lower_limit,
                upper_limit=limits.upper_limit,
                margin=limits.margin,
            )

        value = observation.value
        zscore = self._z_detector.compute(value, baseline)
        checks = self._validator.check(value, zscore, limits)
        direction, magnitude, pct = _beyond_limits(value, limits.lower_limit, limits.upper_limit)

        return AlertResult(
            family=AlertFamily.ZSCORE,
            key=key,
            period=period,
            observed_value=value,
            expected_mean=limits.mean,
            expected_std_dev=limits.std_dev,
            z_score=zscore,
            lower_limit=limits.lower_limit,
            upper_limit=limits.upper_limit,
            margin=limits.margin,
            is_out_of_range=checks.outside_limits,
            alert_active=self._validator.is_alert(checks),
            severity=self._classifier.classify(zscore),
            direction=direction,
            out_of_range_magnitude=magnitude,
            deviation_pct=pct,
            condition_checks=checks,
            flags=flags,
            **context,
        )

    def _evaluate_arima(
        self,
        key: SeriesKey,
        clean: Sequence[float],
        observation: CurrentObservation,
        period: str,
        flags: List[ResultFlag],
        context: Dict[str, object],
    ) -> AlertResult:
        model, forecast = fit_and_forecast(clean, self.config)
        if model.d > 1:
            flags.append(ResultFlag.APPROXIMATE_REVERSAL)

        value = observation.value
        zscore = (value - forecast.point_forecast) / forecast.std_error
        outside = not forecast.contains(value)
        severity = self._classifier.classify(zscore) if outside else AlertSeverity.NORMAL
        direction, magnitude, pct = _beyond_limits(value, forecast.lower_bound, forecast.upper_bound)

        if outside:
            logger.debug(
                f"Out of range: {key.label} | obs {value:.4f}, "
                f"interval [{forecast.lower_bound:.4f}, {forecast.upper_bound:.4f}]"
            )

        return AlertResult(
            family=AlertFamily.ARIMA,
            key=key,
            period=period,
            observed_value=value,
            expected_mean=forecast.point_forecast,
            expected_std_dev=forecast.std_error,
            z_score=zscore,
            lower_limit=forecast.lower_bound,
            upper_limit=forecast.upper_bound,
            is_out_of_range=outside,
            alert_active=outside,
            severity=severity,
            direction=direction,
            out_of_range_magnitude=magnitude,
            deviation_pct=pct,
            model=model.notation,
            flags=flags,
            **context,
        )

    # ------------------------------------------------------------------
    # Repository access and reporting
    # ------------------------------------------------------------------

    def _fetch(
        self,
        period: str,
        branch_filter: Optional[str],
        business_unit_filter: Optional[str],
    ) -> Tuple[List[HistoricalSeries], List[CurrentObservation]]:
        if self.repository is None:
            raise RepositoryError("No series repository configured")

        try:
            historical = self.repository.fetch_historical(
                period, branch_filter, business_unit_filter, self.config
            )
            current = self.repository.fetch_current(
                period, branch_filter, business_unit_filter, self.config
            )
        except RepositoryError:
            raise
        except Exception as e:
            raise RepositoryError(f"Error fetching data: {e}") from e

        if not historical:
            raise RepositoryError(f"No historical data found for period {period}")
        if not current:
            raise RepositoryError(f"No current data found for period {period}")

        logger.info(f"Fetched {len(historical)} historical series, {len(current)} current observations")
        return list(historical), list(current)

    def _summarize(
        self,
        results: List[AlertResult],
        errors: List[EvaluationError],
        duplicate_count: int,
    ) -> AlertSummary:
        counts = {severity: 0 for severity in SEVERITY_ORDER}
        for result in results:
            counts[result.severity] += 1

        with_data = [r for r in results if r.has_current_data]
        out_of_range = sum(1 for r in with_data if r.is_out_of_range)
        percent = round(out_of_range * 100.0 / len(with_data), 2) if with_data else 0.0

        return AlertSummary(
            total_evaluated=len(results),
            counts_by_severity=counts,
            no_current_data_count=counts[AlertSeverity.NO_CURRENT_DATA],
            invalid_model_count=sum(1 for e in errors if e.kind == ErrorKind.MODEL_FIT),
            too_short_count=sum(1 for e in errors if e.kind == ErrorKind.VALIDATION),
            active_alert_count=sum(1 for r in results if r.alert_active),
            out_of_range_count=out_of_range,
            percent_out_of_range=percent,
            sigma_floored_count=sum(1 for r in results if ResultFlag.SIGMA_FLOORED in r.flags),
            sigma_capped_count=sum(1 for r in results if ResultFlag.SIGMA_CAPPED in r.flags),
            duplicate_current_count=duplicate_count,
            robust_model_count=sum(1 for r in results if r.robust_model),
            non_robust_model_count=sum(1 for r in results if not r.robust_model),
        )

    def _report(self, family: AlertFamily, period: str, summary: AlertSummary) -> None:
        if summary.no_current_data_count:
            message = f"{summary.no_current_data_count} series without data for period {period}"
            logger.warning(message)
            warnings.warn(message, MissingCurrentDataWarning, stacklevel=3)

        if summary.invalid_model_count:
            logger.warning(f"{summary.invalid_model_count} series could not be modeled")
        if summary.too_short_count:
            logger.info(f"{summary.too_short_count} series skipped for insufficient history")
        if summary.sigma_floored_count or summary.sigma_capped_count:
            logger.info(
                f"Sigma adjusted: {summary.sigma_floored_count} floored, "
                f"{summary.sigma_capped_count} capped"
            )

        logger.info(
            f"{family.value} completed - evaluated: {summary.total_evaluated}, "
            f"active alerts: {summary.active_alert_count}, "
            f"out of range: {summary.percent_out_of_range:.1f}%"
        )
        if summary.percent_out_of_range > HIGH_ALERT_RATE_PCT:
            logger.warning(
                f"More than {HIGH_ALERT_RATE_PCT:.0f}% of series are out of range, review model quality"
            )
