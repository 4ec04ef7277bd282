"""
Series cleaning shared by both alert families.

Drops missing and non-finite observations while keeping chronological order.
No interpolation is performed: a gap simply shortens the series, and the
minimum-history check downstream decides whether what remains is usable.
"""

from __future__ import annotations

import math
from typing import Iterable, List, Optional


def is_finite_number(value: Optional[float]) -> bool:
    """True for real, finite numbers (bools are rejected)."""
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def clean_series(values: Iterable[Optional[float]]) -> List[float]:
    """
    Return the finite values of ``values`` in their original order.

    Example:
        >>> clean_series([1.0, None, float("nan"), 2.0, float("inf")])
        [1.0, 2.0]
    """
    return [float(v) for v in values if is_finite_number(v)]
