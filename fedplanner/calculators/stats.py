"""Percentile summaries of simulated outcomes.

Percentiles use ``np.percentile`` with the ``linear`` method: interpolation
between order statistics at index ``(n - 1) * p`` (the "R-7" definition).

Example
-------

>>> summarize_percentiles([10, 20, 30, 40, 50])
{'p10': 14.0, 'p50': 30.0, 'p90': 46.0}
>>> summarize_percentiles([]) is None
True
"""

from __future__ import annotations

import math
from typing import Dict, Iterable, Optional, Sequence

import numpy as np

from .numbers import clamp, coerce_finite_number

SUMMARY_POINTS = {"p10": 0.10, "p50": 0.50, "p90": 0.90}


def percentile(values: Sequence[float], p: float) -> Optional[float]:
    """Percentile ``p`` (a fraction, clamped to ``[0, 1]``) of ``values``."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return None
    p = clamp(coerce_finite_number(p, fallback=0.5), 0.0, 1.0)
    return float(np.percentile(arr, p * 100, method="linear"))


def summarize_percentiles(values: Optional[Iterable]) -> Optional[Dict[str, float]]:
    """Return ``{"p10", "p50", "p90"}`` of the finite entries of ``values``.

    Non-numeric and non-finite entries are discarded.  ``None`` is returned
    when nothing usable remains.
    """
    nums = [coerce_finite_number(v, fallback=float("nan")) for v in (values or [])]
    finite = [v for v in nums if not math.isnan(v)]
    if not finite:
        return None
    return {k: percentile(finite, p) for k, p in SUMMARY_POINTS.items()}


__all__ = ["percentile", "summarize_percentiles"]
