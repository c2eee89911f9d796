"""Grid search for plan tweaks that reach FIRE earlier.

Every combination of

* retirement age: baseline, +1, +2, +3 and +5 years (at most 80, at least
  one year after the current age),
* TSP contribution: baseline, +2, +5 and +10 percentage points (at most 50%),
* monthly expenses: baseline, 95% and 90% of baseline

is re-projected with the deterministic TSP projector and FERS calculator.
The earliest age at which passive income covers the goal is found by scanning
the yearly projection in age order.  Candidates are scored by

``earliest_age * 100 + |Δ retirement age| * 10 + |Δ contribution| * 2 + |Δ expenses| / 100``

so an earlier FIRE age always wins and smaller changes break ties.  Up to
three candidates strictly earlier than the baseline are returned.

Example
-------

>>> from fedplanner.scenario import default_scenario
>>> res = build_optimization_suggestions(default_scenario())
>>> sorted(res)
['baseline', 'suggestions']
"""

from __future__ import annotations

import dataclasses
import itertools
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .fers import pension_results, scenario_pension_start_age
from .fire import clamp_swr
from .numbers import coerce_finite_number
from .social_security import social_security_from_scenario
from .tsp import project_tsp

MAX_RETIREMENT_AGE = 80
MAX_CONTRIBUTION_PCT = 50.0
RETIREMENT_OFFSETS = (0, 1, 2, 3, 5)
CONTRIBUTION_OFFSETS = (0, 2, 5, 10)
EXPENSE_FACTORS = (1.0, 0.95, 0.90)
MAX_SUGGESTIONS = 3

_MAX_INCOME = 1e9


def estimate_earliest_fire_age(
    yearly_data: Optional[Sequence[Dict[str, float]]],
    safe_withdrawal_rate: float,
    fire_income_goal_monthly: float,
    side_hustle_income: float = 0.0,
    spouse_income: float = 0.0,
    pension_monthly: float = 0.0,
    pension_start_age: float = 0.0,
    ss_monthly: float = 0.0,
    ss_start_age: float = 67.0,
) -> Optional[float]:
    """First age in ``yearly_data`` whose passive income meets the goal.

    Each point's ``display_balance`` (falling back to ``balance``) is drawn
    at the safe withdrawal rate; pension and Social Security count once their
    start age (if positive) is reached.  Returns ``None`` for an empty
    projection, a non-positive goal, or a goal never met.
    """
    swr = clamp_swr(safe_withdrawal_rate)
    goal = coerce_finite_number(fire_income_goal_monthly, min_value=0.0, max_value=_MAX_INCOME)
    data = list(yearly_data or [])
    if not data or goal <= 0:
        return None

    side = coerce_finite_number(side_hustle_income, min_value=0.0, max_value=_MAX_INCOME)
    spouse = coerce_finite_number(spouse_income, min_value=0.0, max_value=_MAX_INCOME)
    pension = coerce_finite_number(pension_monthly, min_value=0.0, max_value=_MAX_INCOME)
    pension_age = coerce_finite_number(pension_start_age, min_value=0.0, max_value=200.0)
    ss = coerce_finite_number(ss_monthly, min_value=0.0, max_value=_MAX_INCOME)
    ss_age = coerce_finite_number(ss_start_age, 67.0, min_value=0.0, max_value=200.0)

    for point in data:
        age = coerce_finite_number(point.get("age"), min_value=0.0, max_value=200.0)
        balance = coerce_finite_number(
            point.get("display_balance", point.get("balance")), min_value=0.0, max_value=1e12
        )
        income = balance * swr / 12 + side + spouse
        if pension_age > 0 and age >= pension_age:
            income += pension
        if ss_age > 0 and age >= ss_age:
            income += ss
        if income >= goal:
            return age
    return None


def _evaluate(scenario, retirement_age: float, contribution_pct: float, monthly_expenses: float,
              ss: Dict[str, Any]) -> Dict[str, Any]:
    tsp, fers, fire, summary = scenario.tsp, scenario.fers, scenario.fire, scenario.summary

    projection = project_tsp(dataclasses.replace(
        tsp, retirement_age=retirement_age, contribution_percent=contribution_pct
    ))
    pension = pension_results(
        years_of_service=fers.years_of_service,
        months_of_service=fers.months_of_service,
        high3_salary=fers.high3_salary,
        current_age=fers.current_age,
        retirement_age=retirement_age,
        include_future_service=True,
        retirement_end_age=summary.pension_end_age,
        mra=fers.mra,
    )
    pension_monthly = pension["stay_federal"]["monthly_pension"]

    # Expenses only stand in for the goal when no FIRE income goal is set.
    goal = coerce_finite_number(fire.monthly_fire_income_goal, min_value=0.0, max_value=_MAX_INCOME)
    if goal <= 0:
        goal = coerce_finite_number(monthly_expenses, min_value=0.0, max_value=_MAX_INCOME)

    earliest = estimate_earliest_fire_age(
        projection["yearly_data"],
        summary.safe_withdrawal_rate,
        goal,
        side_hustle_income=fire.side_hustle_income,
        spouse_income=fire.spouse_income,
        pension_monthly=pension_monthly,
        pension_start_age=scenario_pension_start_age(scenario, retirement_age),
        ss_monthly=ss["monthly"],
        ss_start_age=ss["claiming_age"],
    )
    return {
        "earliest_fire_age": earliest,
        "tsp_projected_balance": projection["display_balance"],
        "pension_monthly": pension_monthly,
        "goal_monthly": goal,
    }


def _candidates(base: float, values: List[float]) -> List[float]:
    return list(dict.fromkeys([base] + values))


def build_optimization_suggestions(scenario) -> Dict[str, Any]:
    """Search nearby retirement ages, contribution rates and expense levels.

    Returns
    -------
    dict
        ``baseline`` (the scenario's own parameters and earliest FIRE age) and
        ``suggestions``: up to three candidates, best score first, each with
        ``id``, ``retirement_age``, ``contribution_pct``, ``monthly_expenses``,
        ``earliest_fire_age``, ``improvement_years``, ``score`` and
        ``metrics``.  No suggestions are produced without a scenario or a
        positive goal.
    """
    if scenario is None:
        return {"baseline": None, "suggestions": []}

    tsp, fire, summary = scenario.tsp, scenario.fire, scenario.summary
    current_age = coerce_finite_number(tsp.current_age, min_value=0.0, max_value=120.0)
    base_age = coerce_finite_number(tsp.retirement_age, 62.0, min_value=current_age + 1,
                                    max_value=MAX_RETIREMENT_AGE)
    base_pct = coerce_finite_number(tsp.contribution_percent, 10.0, min_value=0.0, max_value=100.0)
    base_expenses = coerce_finite_number(summary.monthly_expenses, min_value=0.0, max_value=_MAX_INCOME)

    goal_base = coerce_finite_number(fire.monthly_fire_income_goal, min_value=0.0, max_value=_MAX_INCOME)
    if goal_base <= 0:
        goal_base = base_expenses

    baseline = {
        "retirement_age": base_age,
        "contribution_pct": base_pct,
        "monthly_expenses": base_expenses,
        "earliest_fire_age": None,
    }
    if goal_base <= 0:
        logger.debug("Optimizer skipped: no FIRE income goal or monthly expenses")
        return {"baseline": baseline, "suggestions": []}

    ss = social_security_from_scenario(scenario)
    base_metrics = _evaluate(scenario, base_age, base_pct, base_expenses, ss)
    base_earliest = base_metrics["earliest_fire_age"]
    baseline["earliest_fire_age"] = base_earliest

    ages = [a for a in _candidates(base_age, [min(MAX_RETIREMENT_AGE, base_age + d) for d in RETIREMENT_OFFSETS[1:]])
            if a >= current_age + 1]
    pcts = _candidates(base_pct, [min(MAX_CONTRIBUTION_PCT, base_pct + d) for d in CONTRIBUTION_OFFSETS[1:]])
    expenses = _candidates(base_expenses, [base_expenses * f for f in EXPENSE_FACTORS[1:]])
    logger.debug("Optimizer: {} candidates, baseline earliest FIRE age {}",
                 len(ages) * len(pcts) * len(expenses), base_earliest)

    scored = []
    for age, pct, exp in itertools.product(ages, pcts, expenses):
        metrics = _evaluate(scenario, age, pct, exp, ss)
        earliest = metrics["earliest_fire_age"]
        if earliest is None:
            continue
        score = (earliest * 100 + abs(age - base_age) * 10 + abs(pct - base_pct) * 2
                 + abs(exp - base_expenses) / 100)
        scored.append({
            "retirement_age": age,
            "contribution_pct": pct,
            "monthly_expenses": exp,
            "earliest_fire_age": earliest,
            "improvement_years": base_earliest - earliest if base_earliest is not None else 0.0,
            "score": score,
            "metrics": metrics,
        })
    scored.sort(key=lambda c: c["score"])

    suggestions = []
    for c in scored:
        if base_earliest is not None and c["earliest_fire_age"] >= base_earliest:
            continue
        c["id"] = f"opt_{len(suggestions)}_{c['retirement_age']:g}_{c['contribution_pct']:g}"
        suggestions.append(c)
        if len(suggestions) >= MAX_SUGGESTIONS:
            break

    return {"baseline": baseline, "suggestions": suggestions}


__all__ = ["build_optimization_suggestions", "estimate_earliest_fire_age"]
