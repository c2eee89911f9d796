"""Seeded random number source for the Monte Carlo simulator.

Every call to :func:`seeded_generator` owns its own ``numpy.random.Generator``
so simulations never touch numpy's global state and two callers using the
same seed see the same stream.  :func:`standard_normal` turns two uniform
draws into one standard-normal sample with the Box-Muller transform.

Example
-------

>>> draw = seeded_generator(42)
>>> again = seeded_generator(42)
>>> draw() == again()
True
"""

from __future__ import annotations

import math
import time
from typing import Any, Callable

import numpy as np

from .numbers import coerce_finite_number

SEED_MODULUS = 2 ** 32
PATH_SEED_STRIDE = 7919  # odd, so path seeds never collide within a run
MIN_UNIFORM = 1e-12

Draw = Callable[[], float]


def wall_clock_seed() -> int:
    return int(time.time() * 1000) % SEED_MODULUS


def coerce_seed(seed: Any) -> int:
    """Map ``seed`` to a non-negative 32-bit integer.

    ``None`` or anything that is not a finite number falls back to the wall
    clock, so an unseeded run is still a valid (non-repeatable) run.
    """
    n = coerce_finite_number(seed, fallback=float("nan"))
    if math.isnan(n):
        return wall_clock_seed()
    return int(n) % SEED_MODULUS


def path_seed(master_seed: Any, path_index: int) -> int:
    """Effective seed of one simulated path."""
    return (coerce_seed(master_seed) + int(path_index) * PATH_SEED_STRIDE) % SEED_MODULUS


def seeded_generator(seed: Any) -> Draw:
    """Return a ``draw()`` callable producing floats in ``[0, 1)``."""
    rng = np.random.default_rng(coerce_seed(seed))

    def draw() -> float:
        return float(rng.random())

    return draw


def standard_normal(draw: Draw) -> float:
    """Box-Muller: two uniform draws -> one N(0, 1) sample."""
    u1 = max(MIN_UNIFORM, draw())
    u2 = draw()
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)


__all__ = [
    "coerce_seed",
    "path_seed",
    "seeded_generator",
    "standard_normal",
    "wall_clock_seed",
]
