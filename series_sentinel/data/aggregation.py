"""
Grouping of raw records into per-key series.

Splits flat records into the historical series of every key (all periods
except the evaluated one) and the current-period observations. Applies the
request filters and the configured exclusions on the way.

Design:
- One HistoricalSeries per SeriesKey, points in period order
- Several records for the same key and period are averaged into one point
- Current observations are returned as found; duplicates are merged later by
  ``merge_current_observations`` so the engine can count and report them
- Branch filter: case-insensitive substring; "TODAS"/"ALL"/empty means no filter
- Business-unit filter: exact match; empty or "0" means no filter
"""

import logging
import warnings
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Tuple

from series_sentinel.core.config import AlertConfig
from series_sentinel.core.exceptions import DataQualityWarning
from series_sentinel.data.preprocessing import is_finite_number
from series_sentinel.data.schema import (
    CurrentObservation,
    HistoricalSeries,
    ObservationPoint,
    RawRecord,
    SeriesKey,
    normalize_component,
)

logger = logging.getLogger(__name__)

ALL_BRANCHES = {"", "TODAS", "ALL"}


def matches_filters(
    key: SeriesKey,
    branch_filter: Optional[str] = None,
    business_unit_filter: Optional[str] = None,
) -> bool:
    """
    Check a key against the request filters.

    Args:
        key: Series key to test
        branch_filter: Substring of the branch name (case-insensitive)
        business_unit_filter: Exact business unit code

    Returns:
        True if the key passes both filters
    """
    branch = normalize_component(branch_filter)
    if branch.upper() not in ALL_BRANCHES and branch.lower() not in key.branch.lower():
        return False

    unit = normalize_component(business_unit_filter)
    if unit not in ("", "0") and key.business_unit != unit:
        return False

    return True


def is_excluded(key: SeriesKey, config: AlertConfig) -> bool:
    """True if the key's concept, business unit or position is excluded."""
    return (
        key.concept in config.excluded_concepts
        or key.business_unit in config.excluded_business_units
        or key.position in config.excluded_positions
    )


def _selected(
    records: Iterable[RawRecord],
    branch_filter: Optional[str],
    business_unit_filter: Optional[str],
    config: AlertConfig,
) -> Iterable[Tuple[SeriesKey, RawRecord]]:
    for record in records:
        key = record.key
        if is_excluded(key, config):
            continue
        if not matches_filters(key, branch_filter, business_unit_filter):
            continue
        yield key, record


def group_historical(
    records: Iterable[RawRecord],
    period: str,
    config: AlertConfig,
    branch_filter: Optional[str] = None,
    business_unit_filter: Optional[str] = None,
) -> List[HistoricalSeries]:
    """
    Build the historical series of every key, excluding ``period``.

    Returns:
        HistoricalSeries list ordered by key
    """
    period = normalize_component(period)
    buckets: Dict[SeriesKey, Dict[str, List[Optional[float]]]] = defaultdict(lambda: defaultdict(list))

    for key, record in _selected(records, branch_filter, business_unit_filter, config):
        if record.period == period:
            continue
        buckets[key][record.period].append(record.value)

    series: List[HistoricalSeries] = []
    for key in sorted(buckets):
        points = []
        for point_period, values in buckets[key].items():
            finite = [v for v in values if is_finite_number(v)]
            if len(values) > 1:
                logger.debug(f"{len(values)} records for {key.label} @ {point_period}, averaging")
            value = sum(finite) / len(finite) if finite else None
            points.append(ObservationPoint(period=point_period, value=value))
        series.append(HistoricalSeries(key=key, points=tuple(points)))

    return series


def collect_current(
    records: Iterable[RawRecord],
    period: str,
    config: AlertConfig,
    branch_filter: Optional[str] = None,
    business_unit_filter: Optional[str] = None,
) -> List[CurrentObservation]:
    """
    Collect current-period observations, duplicates included.

    Records with a missing or non-finite value are dropped: a key without a
    usable current value is reported as having no current data.
    """
    period = normalize_component(period)
    observations: List[CurrentObservation] = []

    for key, record in _selected(records, branch_filter, business_unit_filter, config):
        if record.period != period:
            continue
        if not is_finite_number(record.value):
            logger.debug(f"Current value missing for {key.label}")
            continue
        observations.append(CurrentObservation(key=key, period=period, value=record.value))

    return observations


def merge_current_observations(
    observations: Iterable[CurrentObservation],
) -> Tuple[Dict[SeriesKey, CurrentObservation], List[SeriesKey]]:
    """
    Collapse observations to one per key, averaging duplicates.

    Returns:
        Tuple of (observation per key, keys that had duplicates)

    Notes:
        - The merged value is the arithmetic mean of all duplicates
        - A DataQualityWarning is emitted once when any duplicates are found
        - Observations with a non-finite value are dropped, so the key is
          treated as having no current data
    """
    grouped: Dict[SeriesKey, List[CurrentObservation]] = defaultdict(list)
    for observation in observations:
        if not is_finite_number(observation.value):
            logger.debug(f"Non-finite current value dropped for {observation.key.label}")
            continue
        grouped[observation.key].append(observation)

    merged: Dict[SeriesKey, CurrentObservation] = {}
    duplicated: List[SeriesKey] = []

    for key, items in grouped.items():
        if len(items) == 1:
            merged[key] = items[0]
            continue

        mean_value = sum(o.value for o in items) / len(items)
        logger.warning(
            "Duplicate current observation for %s: averaging %s -> %.4f",
            key.label,
            ", ".join(f"{o.value:.4f}" for o in items),
            mean_value,
        )
        merged[key] = CurrentObservation(key=key, period=items[0].period, value=mean_value)
        duplicated.append(key)

    if duplicated:
        warnings.warn(
            f"{len(duplicated)} series had duplicate current observations; values were averaged",
            DataQualityWarning,
            stacklevel=2,
        )

    return merged, sorted(duplicated)
