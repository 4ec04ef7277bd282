"""
Unit tests for the command-line runner.
"""

import json

import pytest

from series_sentinel import cli
from series_sentinel.cli import load_alert_config, main
from series_sentinel.core.config import AlertConfig, SelectionCriterion
from series_sentinel.core.exceptions import ConfigurationError


@pytest.fixture
def export_csv(tmp_path, sample_dataframe):
    path = tmp_path / "export.csv"
    sample_dataframe.to_csv(path, index=False)
    return path


def test_zscore_run_to_file(export_csv, tmp_path):
    output = tmp_path / "out.json"

    code = main([str(export_csv), "--period", "202425", "--output", str(output)])

    assert code == 0
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["success"] is True
    assert payload["family"] == "ZSCORE"
    assert payload["results"][0]["severity"] == "CRITICAL"


def test_latest_period_used_by_default(export_csv, capsys):
    code = main([str(export_csv), "--family", "all"])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["period"] == "202425"
    assert payload["zscore"]["success"] is True
    assert payload["arima"]["family"] == "ARIMA"


def test_config_document_applied(export_csv, tmp_path, capsys):
    config_path = tmp_path / "alerts.json"
    config_path.write_text(json.dumps({"periodosMinimos": 30}), encoding="utf-8")

    code = main([str(export_csv), "--period", "202425", "--config", str(config_path)])

    assert code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["results"] == []
    assert payload["summary"]["too_short_count"] == 3


def test_unknown_period_returns_failure(export_csv, capsys):
    code = main([str(export_csv), "--period", "209901"])

    assert code == 1
    assert json.loads(capsys.readouterr().out)["success"] is False


def test_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.csv")]) == 2


def test_invalid_config(export_csv, tmp_path):
    config_path = tmp_path / "alerts.json"
    config_path.write_text(json.dumps({"umbralCritico": 0.5}), encoding="utf-8")

    assert main([str(export_csv), "--config", str(config_path)]) == 2


class TestLoadAlertConfig:

    def test_preset_without_document(self):
        assert load_alert_config(None, "conservative").selection_criterion == SelectionCriterion.BIC

    def test_document_overrides_preset(self, tmp_path):
        path = tmp_path / "alerts.json"
        path.write_text(json.dumps({"maxP": 1}), encoding="utf-8")

        cfg = load_alert_config(str(path), "conservative")

        assert cfg.max_p == 1
        assert cfg.min_periods == 16

    def test_document_must_be_object(self, tmp_path):
        path = tmp_path / "alerts.json"
        path.write_text("[1, 2]", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_alert_config(str(path))

    def test_unreadable_document(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_alert_config(str(tmp_path / "missing.json"))

    def test_document_validated_against_environment_base(self, tmp_path, monkeypatch):
        monkeypatch.setattr(cli.config, "alerts", AlertConfig(critical_threshold=4.0))
        path = tmp_path / "alerts.json"
        path.write_text(json.dumps({"umbralAlto": 3.0}), encoding="utf-8")

        cfg = load_alert_config(str(path))

        assert (cfg.critical_threshold, cfg.high_threshold, cfg.moderate_threshold) == (4.0, 3.0, 1.0)

    def test_field_names_and_unknown_options(self, tmp_path):
        path = tmp_path / "alerts.json"
        path.write_text(
            json.dumps({"max_p": 2, "puestosExcluidos": ["Clerk"], "colorPorDefecto": "red"}),
            encoding="utf-8",
        )

        cfg = load_alert_config(str(path))

        assert cfg.max_p == 2
        assert cfg.excluded_positions == ["Clerk"]
