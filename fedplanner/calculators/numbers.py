"""Numeric coercion helpers shared by every calculator.

Scenario values arrive from partially filled forms or persisted JSON, so any
field may be missing, a string, ``NaN`` or otherwise unusable.  The helpers in
this module turn such values into a finite float (or int) with a documented
fallback instead of raising, which keeps the calculation layer total.

Example
-------

>>> coerce_finite_number("12.5")
12.5
>>> coerce_finite_number(None, fallback=4.0)
4.0
>>> coerce_finite_number(float("nan"), fallback=1.0, min_value=0.0)
1.0
>>> coerce_finite_number(150, max_value=100)
100.0
"""

from __future__ import annotations

import math
from typing import Any, Optional


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp ``value`` into ``[lo, hi]``."""
    return min(hi, max(lo, value))


def coerce_finite_number(
    value: Any,
    fallback: float = 0.0,
    min_value: Optional[float] = None,
    max_value: Optional[float] = None,
) -> float:
    """Convert ``value`` to a finite float, or return ``fallback``.

    Parameters
    ----------
    value : Any
        Raw input.  Numbers, numeric strings and booleans are accepted.
    fallback : float, optional
        Returned when ``value`` is missing, unparsable or not finite.
    min_value, max_value : float, optional
        Bounds applied to the converted value (the fallback is not clamped).

    Returns
    -------
    float
    """
    if value is None:
        return fallback
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return fallback
    try:
        n = float(value)
    except (TypeError, ValueError, OverflowError):
        return fallback
    if not math.isfinite(n):
        return fallback
    if min_value is not None:
        n = max(min_value, n)
    if max_value is not None:
        n = min(max_value, n)
    return n


def coerce_int(
    value: Any,
    fallback: int = 0,
    min_value: Optional[int] = None,
    max_value: Optional[int] = None,
) -> int:
    """Like :func:`coerce_finite_number` but floors the result to an ``int``."""
    n = coerce_finite_number(value, fallback=float("nan"))
    if math.isnan(n):
        return fallback
    n = int(math.floor(n))
    if min_value is not None:
        n = max(min_value, n)
    if max_value is not None:
        n = min(max_value, n)
    return n


__all__ = ["clamp", "coerce_finite_number", "coerce_int"]
