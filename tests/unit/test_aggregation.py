"""
Unit tests for grouping records into series.
"""

import pytest

from series_sentinel.core.config import AlertConfig
from series_sentinel.core.exceptions import DataQualityWarning
from series_sentinel.data.aggregation import (
    collect_current,
    group_historical,
    is_excluded,
    matches_filters,
    merge_current_observations,
)
from series_sentinel.data.schema import CurrentObservation, RawRecord, SeriesKey


def _key(**overrides) -> SeriesKey:
    data = {
        "position": "Cashier",
        "indicator": "Sales",
        "concept": "1002",
        "branch": "North Plaza",
        "business_unit": "1",
    }
    data.update(overrides)
    return SeriesKey(**data)


def _record(period, value, **overrides) -> RawRecord:
    return RawRecord(**_key(**overrides).model_dump(), period=period, value=value)


class TestFilters:

    @pytest.mark.parametrize("branch", [None, "", "TODAS", "all", "plaza", "NORTH"])
    def test_branch_filter_matches(self, branch):
        assert matches_filters(_key(), branch_filter=branch)

    def test_branch_filter_rejects(self):
        assert not matches_filters(_key(), branch_filter="South")

    @pytest.mark.parametrize("unit", [None, "", "0", 0, "1", 1])
    def test_business_unit_filter_matches(self, unit):
        assert matches_filters(_key(), business_unit_filter=unit)

    def test_business_unit_filter_is_exact(self):
        assert not matches_filters(_key(business_unit="12"), business_unit_filter="1")

    def test_exclusions(self):
        cfg = AlertConfig(excluded_concepts=["1002"])
        assert is_excluded(_key(), cfg)
        assert not is_excluded(_key(concept="2001"), cfg)

        cfg = AlertConfig(excluded_positions=["Clerk"], excluded_business_units=[3])
        assert is_excluded(_key(position="Clerk"), cfg)
        assert is_excluded(_key(business_unit="3"), cfg)
        assert not is_excluded(_key(), cfg)


class TestGroupHistorical:

    def test_excludes_evaluated_period(self, alert_config):
        records = [_record("202401", 1.0), _record("202402", 2.0), _record("202403", 9.0)]

        series = group_historical(records, "202403", alert_config)

        assert len(series) == 1
        assert series[0].periods == ["202401", "202402"]
        assert series[0].raw_values == [1.0, 2.0]

    def test_one_series_per_key_in_key_order(self, alert_config):
        records = [
            _record("202401", 1.0, position="Manager"),
            _record("202401", 2.0, position="Cashier"),
            _record("202402", 3.0, position="Manager"),
        ]

        series = group_historical(records, "202409", alert_config)

        assert [s.key.position for s in series] == ["Cashier", "Manager"]
        assert len(series[1].points) == 2

    def test_same_period_records_averaged(self, alert_config):
        records = [_record("202401", 1.0), _record("202401", 3.0), _record("202401", None)]

        series = group_historical(records, "202409", alert_config)

        assert series[0].raw_values == [pytest.approx(2.0)]

    def test_missing_values_kept_as_none(self, alert_config):
        series = group_historical([_record("202401", None)], "202409", alert_config)
        assert series[0].raw_values == [None]

    def test_filters_and_exclusions_applied(self):
        cfg = AlertConfig(excluded_concepts=["2001"])
        records = [
            _record("202401", 1.0),
            _record("202401", 1.0, branch="South"),
            _record("202401", 1.0, concept="2001"),
        ]

        series = group_historical(records, "202409", cfg, branch_filter="north")

        assert [s.key.branch for s in series] == ["North Plaza"]


class TestCurrent:

    def test_collect_keeps_duplicates_and_drops_missing(self, alert_config):
        records = [
            _record("202409", 0.1),
            _record("202409", 0.3),
            _record("202409", None, position="Clerk"),
            _record("202408", 0.5),
        ]

        current = collect_current(records, "202409", alert_config)

        assert [o.value for o in current] == [0.1, 0.3]

    def test_merge_averages_duplicates(self):
        key = _key()
        observations = [
            CurrentObservation(key=key, period="202409", value=0.10),
            CurrentObservation(key=key, period="202409", value=0.30),
            CurrentObservation(key=_key(position="Clerk"), period="202409", value=0.05),
        ]

        with pytest.warns(DataQualityWarning):
            merged, duplicated = merge_current_observations(observations)

        assert len(merged) == 2
        assert merged[key].value == pytest.approx(0.20)
        assert duplicated == [key]

    def test_merge_three_duplicates_uses_arithmetic_mean(self):
        key = _key()
        observations = [CurrentObservation(key=key, period="202409", value=v) for v in (1.0, 2.0, 6.0)]

        with pytest.warns(DataQualityWarning):
            merged, _ = merge_current_observations(observations)

        assert merged[key].value == pytest.approx(3.0)

    def test_merge_without_duplicates(self, recwarn):
        observations = [CurrentObservation(key=_key(), period="202409", value=0.1)]

        merged, duplicated = merge_current_observations(observations)

        assert duplicated == []
        assert len(merged) == 1
        assert not [w for w in recwarn if issubclass(w.category, DataQualityWarning)]

    @pytest.mark.parametrize("bad_value", [float("nan"), float("inf"), float("-inf")])
    def test_merge_drops_non_finite_values(self, bad_value):
        key = _key()
        observations = [
            CurrentObservation(key=key, period="202409", value=bad_value),
            CurrentObservation(key=_key(position="Clerk"), period="202409", value=bad_value),
            CurrentObservation(key=key, period="202409", value=0.4),
        ]

        merged, duplicated = merge_current_observations(observations)

        assert list(merged) == [key]
        assert merged[key].value == pytest.approx(0.4)
        assert duplicated == []
