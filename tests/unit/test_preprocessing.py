"""
Unit tests for series cleaning.
"""

import math

from series_sentinel.data.preprocessing import clean_series, is_finite_number


def test_clean_series_drops_missing_and_non_finite():
    raw = [1.0, None, math.nan, 2.0, math.inf, -math.inf, 3.0]
    assert clean_series(raw) == [1.0, 2.0, 3.0]


def test_clean_series_preserves_order():
    raw = [5.0, 1.0, None, 3.0]
    assert clean_series(raw) == [5.0, 1.0, 3.0]


def test_clean_series_empty():
    assert clean_series([]) == []
    assert clean_series([None, math.nan]) == []


def test_is_finite_number():
    assert is_finite_number(0)
    assert is_finite_number(-0.5)
    assert not is_finite_number(None)
    assert not is_finite_number(True)
    assert not is_finite_number("abc")
    assert not is_finite_number(math.nan)
