"""Social Security income as configured on a scenario.

The planner does not model an earnings record.  A scenario carries one of
three Social Security modes:

* ``not_configured`` – no benefit is assumed.
* ``estimate`` – a rough benefit of ``percent_of_salary`` of the current
  annual salary, paid monthly.
* ``manual`` – the user's own monthly figure (e.g. from an SSA statement).

The claiming age defaults to 67 (full retirement age for people born 1960 or
later).

Example
-------

>>> from fedplanner.scenario import Scenario
>>> s = Scenario.from_dict({"tsp": {"annual_salary": 120000},
...                         "summary": {"social_security": {"mode": "estimate"}}})
>>> social_security_from_scenario(s)["monthly"]
3000.0
"""

from __future__ import annotations

from typing import Dict

from .numbers import coerce_finite_number

DEFAULT_CLAIMING_AGE = 67
DEFAULT_PERCENT_OF_SALARY = 30.0

NOT_CONFIGURED = "not_configured"
ESTIMATE = "estimate"
MANUAL = "manual"
MODES = (NOT_CONFIGURED, ESTIMATE, MANUAL)


def estimated_monthly_benefit(annual_salary: float, percent_of_salary: float = DEFAULT_PERCENT_OF_SALARY) -> float:
    """Monthly benefit approximated as a percent of today's salary."""
    salary = coerce_finite_number(annual_salary)
    if salary <= 0:
        return 0.0
    return salary * coerce_finite_number(percent_of_salary, DEFAULT_PERCENT_OF_SALARY) / 100 / 12


def social_security_from_scenario(scenario) -> Dict:
    """Resolve ``{"mode", "claiming_age", "monthly"}`` for ``scenario``.

    Unknown modes are treated as ``not_configured``.
    """
    ss = scenario.summary.social_security
    mode = ss.mode if ss.mode in MODES else NOT_CONFIGURED
    claiming_age = coerce_finite_number(ss.claiming_age, DEFAULT_CLAIMING_AGE)

    if mode == MANUAL:
        monthly = coerce_finite_number(ss.monthly_benefit, min_value=0.0)
    elif mode == ESTIMATE:
        monthly = estimated_monthly_benefit(scenario.tsp.annual_salary, ss.percent_of_salary)
    else:
        monthly = 0.0
    return {"mode": mode, "claiming_age": claiming_age, "monthly": monthly}


__all__ = ["MODES", "estimated_monthly_benefit", "social_security_from_scenario"]
