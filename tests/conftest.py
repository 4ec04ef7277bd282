"""
Pytest configuration and shared fixtures.

Provides test configuration instances and sample series data for unit and
integration tests.
"""

import pytest
from typing import Any, Dict, List

import numpy as np
import pandas as pd

from series_sentinel.core.config import AlertConfig
from series_sentinel.data.schema import RawRecord, SeriesKey

EVAL_PERIOD = "202425"


def _make_key(position: str, branch: str = "North") -> SeriesKey:
    return SeriesKey(
        position=position,
        indicator="Sales",
        concept=1002,
        branch=branch,
        business_unit=1,
    )


def _week_periods(count: int, year: int = 2024) -> List[str]:
    """Weekly period tokens 202401, 202402, ... (all before EVAL_PERIOD for count <= 24)."""
    return [f"{year}{week:02d}" for week in range(1, count + 1)]


@pytest.fixture
def alert_config() -> AlertConfig:
    """
    Fixture providing an explicit alert configuration.

    Built from defaults rather than the environment so tests run
    consistently regardless of .env settings.
    """
    return AlertConfig()


@pytest.fixture
def stable_values() -> List[float]:
    """Twenty periods of a low-volatility variation series around 2%."""
    rng = np.random.default_rng(7)
    return list(0.02 + rng.normal(0.0, 0.005, size=20))


@pytest.fixture
def ar1_values() -> List[float]:
    """Synthetic AR(1) series with phi = 0.7 and unit Gaussian noise."""
    rng = np.random.default_rng(42)
    phi = 0.7
    values = np.zeros(500)
    noise = rng.normal(0.0, 1.0, size=500)
    for t in range(1, 500):
        values[t] = phi * values[t - 1] + noise[t]
    return list(values)


@pytest.fixture
def sample_records(stable_values) -> List[RawRecord]:
    """
    Records for three keys: a stable key whose current value spikes, a
    stable key with a normal current value, and a key without current data.
    """
    records: List[RawRecord] = []
    keys = {
        "spike": _make_key(position="Cashier"),
        "normal": _make_key(position="Manager"),
        "missing": _make_key(position="Clerk"),
    }
    for key in keys.values():
        for period, value in zip(_week_periods(len(stable_values)), stable_values):
            records.append(RawRecord(**key.model_dump(), period=period, value=value))

    records.append(RawRecord(**keys["spike"].model_dump(), period=EVAL_PERIOD, value=0.35))
    records.append(RawRecord(**keys["normal"].model_dump(), period=EVAL_PERIOD, value=0.021))
    return records


@pytest.fixture
def sample_rows(sample_records) -> List[Dict[str, Any]]:
    """The sample records as raw rows with the legacy export headers."""
    return [
        {
            "puesto": r.position,
            "indicador": r.indicator,
            "conceptoDetalle": r.concept,
            "sucursal": r.branch,
            "negocio": r.business_unit,
            "periodo": r.period,
            "valor": r.value,
        }
        for r in sample_records
    ]


@pytest.fixture
def sample_dataframe(sample_rows) -> pd.DataFrame:
    """Convenience fixture with the sample rows as a DataFrame."""
    return pd.DataFrame(sample_rows)


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
