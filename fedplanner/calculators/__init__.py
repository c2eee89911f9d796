"""Core projection and simulation calculators.

Each module implements one piece of the federal retirement planning logic:

* ``numbers`` – tolerant numeric coercion used at every public entry point.
* ``rng`` – seeded uniform and standard-normal draws.
* ``stats`` – percentile summaries of simulated balances.
* ``tsp`` – Thrift Savings Plan contributions and balance projections.
* ``fers`` – FERS annuity, retirement eligibility and MRA+10 reduction.
* ``fire`` – FIRE gap analysis and pension bridge estimates.
* ``social_security`` – Social Security income as configured on a scenario.
* ``monte_carlo`` – Monte Carlo success probabilities and balance bands.
* ``optimizer`` – grid search for earlier FIRE ages.

All functions are pure: they take plain values or scenario records and
return plain dicts.  See individual docstrings for details.
"""

from . import numbers, rng, stats, tsp, fers, fire, social_security, monte_carlo, optimizer  # noqa: F401

__all__ = [
    "numbers",
    "rng",
    "stats",
    "tsp",
    "fers",
    "fire",
    "social_security",
    "monte_carlo",
    "optimizer",
]
