"""
Integration test for the full alert pipeline.

Tests end-to-end flow from a record file to alert responses.
"""

import json

import numpy as np
import pytest

from series_sentinel.anomaly import AlertEngine, AlertFamily, AlertSeverity
from series_sentinel.core.config import AlertConfig
from series_sentinel.core.exceptions import DataQualityWarning, MissingCurrentDataWarning
from series_sentinel.data.repository import InMemorySeriesRepository

PERIOD = "202430"


def _export_rows():
    """
    Thirty weekly periods for four keys in two branches, in the legacy
    export's column layout.
    """
    rng = np.random.default_rng(2024)
    rows = []
    keys = [
        ("Cashier", "North", 1),
        ("Manager", "North", 1),
        ("Cashier", "South", 2),
        ("Clerk", "North", 1),
    ]
    for position, branch, unit in keys:
        level = 0.03 if position != "Manager" else 0.10
        for week in range(1, 30):
            rows.append(
                {
                    "puesto": position,
                    "indicador": "Sales",
                    "conceptoDetalle": 1002,
                    "sucursal": branch,
                    "negocio": unit,
                    "periodo": f"2024{week:02d}",
                    "valor": round(level + rng.normal(0.0, 0.01), 5),
                }
            )

    current = {
        ("Cashier", "North"): [0.40],
        ("Manager", "North"): [0.09, 0.11],
        ("Cashier", "South"): [0.031],
    }
    for (position, branch), values in current.items():
        unit = 2 if branch == "South" else 1
        for value in values:
            rows.append(
                {
                    "puesto": position,
                    "indicador": "Sales",
                    "conceptoDetalle": 1002,
                    "sucursal": branch,
                    "negocio": unit,
                    "periodo": PERIOD,
                    "valor": value,
                }
            )
    return rows


@pytest.fixture
def repository(tmp_path):
    path = tmp_path / "export.json"
    path.write_text(json.dumps(_export_rows()), encoding="utf-8")
    return InMemorySeriesRepository.from_source(path)


@pytest.mark.integration
class TestAlertPipeline:
    """End-to-end: record file -> repository -> engine -> response."""

    def test_zscore_run(self, repository):
        engine = AlertEngine(repository=repository, config=AlertConfig())

        with pytest.warns(UserWarning) as record:
            response = engine.run(PERIOD, AlertFamily.ZSCORE)

        categories = {w.category for w in record}
        assert {DataQualityWarning, MissingCurrentDataWarning} <= categories

        assert response.success
        assert response.summary.total_evaluated == 4
        assert response.summary.duplicate_current_count == 1
        assert response.summary.no_current_data_count == 1
        assert response.summary.robust_model_count == 4

        top = response.results[0]
        assert (top.key.position, top.key.branch) == ("Cashier", "North")
        assert top.severity == AlertSeverity.CRITICAL
        assert top.alert_active

        manager = next(r for r in response.results if r.key.position == "Manager")
        assert manager.observed_value == pytest.approx(0.10)

        assert response.results[-1].severity == AlertSeverity.NO_CURRENT_DATA
        assert response.results[-1].key.position == "Clerk"

    def test_branch_and_business_unit_filters(self, repository):
        engine = AlertEngine(repository=repository, config=AlertConfig())

        response = engine.run(PERIOD, AlertFamily.ZSCORE, branch_filter="south", business_unit_filter="2")

        assert response.success
        assert [(r.key.position, r.key.branch) for r in response.results] == [("Cashier", "South")]
        assert response.results[0].severity == AlertSeverity.NORMAL

    def test_exclusions(self, repository):
        engine = AlertEngine(
            repository=repository,
            config=AlertConfig(excluded_positions=["Clerk", "Manager"]),
        )

        response = engine.run(PERIOD, AlertFamily.ZSCORE)

        assert {r.key.position for r in response.results} == {"Cashier"}
        assert response.summary.no_current_data_count == 0

    def test_arima_run(self, repository):
        engine = AlertEngine(repository=repository, config=AlertConfig())

        with pytest.warns(MissingCurrentDataWarning):
            response = engine.run(PERIOD, AlertFamily.ARIMA)

        assert response.success
        evaluated = len(response.results) + response.summary.invalid_model_count
        assert evaluated == 4
        for result in response.results:
            if result.severity == AlertSeverity.NO_CURRENT_DATA:
                continue
            assert result.model.startswith("ARIMA(")
            assert result.lower_limit < result.upper_limit
            assert result.is_out_of_range == (
                not result.lower_limit <= result.observed_value <= result.upper_limit
            )

    def test_run_all_serializes(self, repository):
        engine = AlertEngine(repository=repository, config=AlertConfig(max_workers=2))

        combined = engine.run_all(PERIOD)
        payload = json.loads(combined.model_dump_json())

        assert payload["zscore"]["success"] is True
        assert payload["arima"]["success"] is True
        assert payload["critical_zscore_alerts"] >= 1
        assert payload["total_evaluated"] == len(combined.zscore.results) + len(combined.arima.results)
