"""Monte Carlo outcome simulator.

Each simulated path walks one year at a time from the current age to an end
age (95 by default).  Years before ``min(retirement_age, desired_fire_age)``
are accumulation years: the year's contributions go in and the balance grows
by a random annual return.  From the desired FIRE age on, the inflation
escalated spending need, less pension, Social Security and other income, is
withdrawn first and the remainder then grows.  A path fails, and stops, the
first time a withdrawal would take the balance below zero.

Returns are drawn as ``mean + stddev * z`` with ``z`` standard normal and
clamped to ``[-0.65, 0.65]``.  The mean and standard deviation come from the
scenario allocation (correlations between funds are ignored).

Each path owns its own generator seeded with ``seed + i * 7919`` so the run
is reproducible for a given master seed.

Example
-------

>>> from fedplanner.scenario import default_scenario
>>> res = simulate(default_scenario(), settings={"simulations": 100, "seed": 7})
>>> 0.0 <= res["outcomes"]["probability_funds_last_to_end_age"] <= 1.0
True
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

import numpy as np
from loguru import logger

from .fers import pension_from_scenario
from .fire import DEFAULT_SAFE_WITHDRAWAL_RATE, passive_monthly_income
from .numbers import clamp, coerce_finite_number, coerce_int
from .rng import Draw, coerce_seed, path_seed, seeded_generator, standard_normal
from .social_security import social_security_from_scenario
from .stats import summarize_percentiles
from .tsp import (
    DEFAULT_FUND_STDDEV,
    FUNDS,
    annual_contribution,
    fund_returns_from_percent,
    portfolio_mean_return,
    portfolio_stddev,
    portfolio_weights,
)

DEFAULT_SIMULATIONS = 750
MIN_SIMULATIONS = 100
DEFAULT_END_AGE = 95
DEFAULT_SOCIAL_SECURITY_START_AGE = 67
RETURN_BAND = 0.65


def _fund_stddev_from_percent(percent_stddev: Optional[Mapping]) -> Dict[str, float]:
    sd = percent_stddev if isinstance(percent_stddev, Mapping) else {}
    return {
        f: coerce_finite_number(sd.get(f), DEFAULT_FUND_STDDEV[f] * 100, min_value=0.0) / 100.0
        for f in FUNDS
    }


def _not_applicable(inputs: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "applicable": False,
        "inputs": inputs,
        "outcomes": {
            "probability_fire_by_desired_age": 0.0,
            "probability_funds_last_to_end_age": 0.0,
            "balance_at_retirement": None,
            "balance_at_desired_fire_age": None,
        },
    }


def _run_inputs(
    scenario,
    pension_monthly: float,
    pension_start_age: Optional[float],
    social_security_monthly: float,
    social_security_start_age: float,
    settings: Mapping,
) -> Dict[str, Any]:
    """Resolve everything a path needs into one flat dict."""
    tsp, fire, summary = scenario.tsp, scenario.fire, scenario.summary

    current_age = coerce_finite_number(tsp.current_age, min_value=0.0)
    retirement_age = coerce_finite_number(tsp.retirement_age, min_value=0.0)
    desired = coerce_finite_number(fire.desired_fire_age, retirement_age)
    end_age = max(desired, coerce_finite_number(settings.get("end_age"), DEFAULT_END_AGE))

    weights = portfolio_weights(tsp.allocation)
    goal = coerce_finite_number(fire.monthly_fire_income_goal, min_value=0.0)
    if goal <= 0:
        goal = coerce_finite_number(summary.monthly_expenses, min_value=0.0)

    return {
        "simulations": max(MIN_SIMULATIONS, coerce_int(settings.get("simulations"), DEFAULT_SIMULATIONS)),
        "seed": coerce_seed(settings.get("seed")),
        "current_age": current_age,
        "retirement_age": retirement_age,
        "desired_fire_age": desired,
        "end_age": end_age,
        "swr": coerce_finite_number(summary.safe_withdrawal_rate, DEFAULT_SAFE_WITHDRAWAL_RATE),
        "inflation_rate": coerce_finite_number(tsp.inflation_rate, 2.5) / 100.0,
        "mean_return": portfolio_mean_return(weights, fund_returns_from_percent(tsp.fund_returns)),
        "portfolio_stddev": portfolio_stddev(weights, _fund_stddev_from_percent(tsp.fund_stddev)),
        "fire_goal_monthly": goal,
        "start_balance": coerce_finite_number(tsp.current_balance, min_value=0.0),
        "annual_salary": coerce_finite_number(tsp.annual_salary, min_value=0.0),
        "salary_growth": coerce_finite_number(tsp.annual_salary_growth_rate, 3.0) / 100.0,
        "contribution": {
            "employee_pct": tsp.contribution_percent,
            "contribution_type": tsp.contribution_type,
            "current_tax_rate": tsp.current_tax_rate,
            "include_match": tsp.include_employer_match,
            "include_automatic": tsp.include_automatic_1_percent,
            "deferral_limit": tsp.annual_employee_deferral_limit,
            "catch_up_limit": tsp.annual_catch_up_limit,
            "catch_up_age": tsp.catch_up_age,
        },
        "side_hustle_income": coerce_finite_number(fire.side_hustle_income, min_value=0.0),
        "spouse_income": coerce_finite_number(fire.spouse_income, min_value=0.0),
        "pension_monthly": coerce_finite_number(pension_monthly, min_value=0.0),
        "pension_start_age": coerce_finite_number(pension_start_age, retirement_age, min_value=0.0),
        "social_security_monthly": coerce_finite_number(social_security_monthly, min_value=0.0),
        "social_security_start_age": coerce_finite_number(
            social_security_start_age, DEFAULT_SOCIAL_SECURITY_START_AGE, min_value=0.0
        ),
    }


def simulate_path(run: Mapping[str, Any], draw: Draw) -> Dict[str, Any]:
    """Simulate one trajectory.

    Parameters
    ----------
    run : mapping
        Resolved run inputs (see :func:`simulate`'s ``inputs`` plus the
        contribution and income settings).
    draw : callable
        Uniform ``[0, 1)`` source, normally from :func:`seeded_generator`.

    Returns
    -------
    dict
        ``balance_at_retirement`` and ``balance_at_desired_fire_age`` (``None``
        when the path never reached that age), ``failed`` and ``fire_met``.
    """
    current_age = run["current_age"]
    retirement_age = run["retirement_age"]
    desired = run["desired_fire_age"]
    work_end_age = min(retirement_age, desired)
    mu, sigma = run["mean_return"], run["portfolio_stddev"]

    other_annual = (run["side_hustle_income"] + run["spouse_income"]) * 12
    pension_annual = run["pension_monthly"] * 12
    ss_annual = run["social_security_monthly"] * 12

    balance = run["start_balance"]
    salary = run["annual_salary"]
    failed = False
    at_retirement = at_desired = None

    for year in range(int(run["end_age"] - current_age) + 1):
        age = current_age + year
        r = clamp(mu + sigma * standard_normal(draw), -RETURN_BAND, RETURN_BAND)

        if age < work_end_age:
            contrib = annual_contribution(salary, age=age, **run["contribution"])
            balance = (balance + contrib["credited"]) * (1 + r)
            salary *= 1 + run["salary_growth"]
        else:
            if age >= desired:
                need = run["fire_goal_monthly"] * 12 * (1 + run["inflation_rate"]) ** (age - desired)
                pension = pension_annual if age >= run["pension_start_age"] else 0.0
                ss = ss_annual if age >= run["social_security_start_age"] else 0.0
                balance -= max(0.0, need - pension - ss - other_annual)
                if balance < 0:
                    failed = True
                    break
            balance *= 1 + r

        if age == retirement_age:
            at_retirement = balance
        if age == desired:
            at_desired = balance

    passive = passive_monthly_income(
        at_desired,
        run["swr"],
        desired,
        pension_monthly=run["pension_monthly"],
        pension_start_age=run["pension_start_age"],
        ss_monthly=run["social_security_monthly"],
        ss_start_age=run["social_security_start_age"],
        side_hustle_income=run["side_hustle_income"],
        spouse_income=run["spouse_income"],
    )
    return {
        "balance_at_retirement": at_retirement,
        "balance_at_desired_fire_age": at_desired,
        "failed": failed,
        "fire_met": passive >= run["fire_goal_monthly"],
    }


def simulate(
    scenario,
    pension_monthly: float = 0.0,
    pension_start_age: Optional[float] = None,
    social_security_monthly: float = 0.0,
    social_security_start_age: float = DEFAULT_SOCIAL_SECURITY_START_AGE,
    settings: Optional[Mapping] = None,
) -> Dict[str, Any]:
    """Run the Monte Carlo analysis for ``scenario``.

    Parameters
    ----------
    scenario : Scenario or None
        ``None`` yields a not-applicable result.
    pension_monthly, pension_start_age : float, optional
        FERS annuity and the age it starts (defaults to the TSP retirement age).
    social_security_monthly, social_security_start_age : float, optional
        Social Security benefit and claiming age.
    settings : mapping, optional
        ``simulations`` (at least 100, default 750), ``end_age`` (default 95,
        never before the desired FIRE age) and ``seed`` (default: wall clock).

    Returns
    -------
    dict
        ``applicable``, ``inputs`` (the resolved run parameters) and
        ``outcomes``: the two success probabilities and P10/P50/P90 balance
        bands at the retirement and desired FIRE ages.
    """
    settings = settings if isinstance(settings, Mapping) else {}
    if scenario is None:
        logger.debug("Monte Carlo skipped: no scenario")
        return _not_applicable({})

    run = _run_inputs(
        scenario, pension_monthly, pension_start_age,
        social_security_monthly, social_security_start_age, settings,
    )
    inputs = {k: v for k, v in run.items() if k != "contribution"}
    if run["fire_goal_monthly"] <= 0:
        logger.debug("Monte Carlo skipped: no FIRE income goal or monthly expenses")
        return _not_applicable(inputs)

    logger.debug(
        "Monte Carlo: {} paths, seed={}, ages {}-{}, mu={:.4f}, sigma={:.4f}",
        run["simulations"], run["seed"], run["current_age"], run["end_age"],
        run["mean_return"], run["portfolio_stddev"],
    )

    at_retirement: List[float] = []
    at_desired: List[float] = []
    survived = np.zeros(run["simulations"], dtype=bool)
    fire_met = np.zeros(run["simulations"], dtype=bool)

    for i in range(run["simulations"]):
        res = simulate_path(run, seeded_generator(path_seed(run["seed"], i)))
        if res["balance_at_retirement"] is not None:
            at_retirement.append(res["balance_at_retirement"])
        if res["balance_at_desired_fire_age"] is not None:
            at_desired.append(res["balance_at_desired_fire_age"])
        survived[i] = not res["failed"]
        fire_met[i] = res["fire_met"]

    return {
        "applicable": True,
        "inputs": inputs,
        "outcomes": {
            "probability_fire_by_desired_age": float(np.mean(fire_met)),
            "probability_funds_last_to_end_age": float(np.mean(survived)),
            "balance_at_retirement": summarize_percentiles(at_retirement),
            "balance_at_desired_fire_age": summarize_percentiles(at_desired),
        },
    }


def simulate_scenario(scenario, settings: Optional[Mapping] = None) -> Dict[str, Any]:
    """:func:`simulate` with the pension and Social Security derived from ``scenario``."""
    if scenario is None:
        return simulate(None, settings=settings)
    pension = pension_from_scenario(scenario)
    ss = social_security_from_scenario(scenario)
    return simulate(
        scenario,
        pension_monthly=pension["pension_monthly"],
        pension_start_age=pension["pension_start_age"],
        social_security_monthly=ss["monthly"],
        social_security_start_age=ss["claiming_age"],
        settings=settings,
    )


__all__ = ["DEFAULT_SIMULATIONS", "MIN_SIMULATIONS", "simulate", "simulate_path", "simulate_scenario"]
