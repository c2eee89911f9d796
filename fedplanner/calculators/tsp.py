"""Thrift Savings Plan (TSP) growth projections.

Two projectors live here:

* :func:`project_balance` – a single-bucket projector with a fixed monthly
  contribution.  :func:`compare_traditional_roth` runs it twice to contrast
  the traditional (pre-tax) and Roth (post-tax) treatments of the same
  payroll percentage.
* :func:`project_tsp` – the dual-bucket projector used for planning.  Salary
  grows every year, employee deferrals are a percent of salary clamped at the
  IRS-style annual limit (plus the catch-up allowance from the catch-up age),
  agency contributions follow the simplified FERS rule and always land in the
  traditional bucket, and Roth deferrals cost the current marginal tax rate.
  Nominal and inflation-deflated ("real") values are tracked side by side.

In both projectors growth compounds monthly: each month adds that month's
contribution first and then applies ``annual_return / 12`` of growth.

The agency contribution rule is simplified to

* 1% of salary automatically (when enabled), and
* a match of 100% on the first 3% the employee defers plus 50% on the next
  2% (when enabled),

for a maximum of 5% of salary.

Tax rates are expressed in percent (``22`` means 22%), matching the way the
scenario stores them; fund returns and standard deviations are fractions.

Example
-------

>>> weighted_return({"G": 100, "F": 0, "C": 0, "S": 0, "I": 0})
0.02
>>> res = project_balance(10000, 0, 0.06, 0, "traditional", 40, 15)
>>> res["projected_balance"], len(res["yearly_data"])
(10000.0, 1)
"""

from __future__ import annotations

import math
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

import pandas as pd
from loguru import logger

from .numbers import coerce_finite_number, coerce_int

FUNDS = ("G", "F", "C", "S", "I")

DEFAULT_FUND_RETURNS = {"G": 0.02, "F": 0.03, "C": 0.07, "S": 0.08, "I": 0.06}
# Coarse annualized volatilities; used to approximate portfolio volatility.
DEFAULT_FUND_STDDEV = {"G": 0.01, "F": 0.05, "C": 0.16, "S": 0.18, "I": 0.17}
DEFAULT_ALLOCATION = {"G": 10.0, "F": 20.0, "C": 40.0, "S": 20.0, "I": 10.0}

DEFAULT_DEFERRAL_LIMIT = 23500.0
DEFAULT_CATCH_UP_LIMIT = 7500.0
DEFAULT_CATCH_UP_AGE = 50

AUTOMATIC_PERCENT = 1.0
MAX_EMPLOYER_PERCENT = 5.0

TRADITIONAL = "traditional"
ROTH = "roth"


# ---------- Allocation & returns ----------
def _allocation_values(allocation: Optional[Mapping]) -> Dict[str, float]:
    a = allocation if isinstance(allocation, Mapping) else {}
    return {f: coerce_finite_number(a.get(f), 0.0, min_value=0.0) for f in FUNDS}


def _valid_allocation(allocation: Optional[Mapping]) -> Dict[str, float]:
    values = _allocation_values(allocation)
    if sum(values.values()) <= 0:
        logger.warning("Allocation {} is empty or malformed; using the default allocation", allocation)
        return dict(DEFAULT_ALLOCATION)
    return values


def weighted_return(
    allocation: Optional[Mapping],
    fund_returns: Mapping[str, float] = DEFAULT_FUND_RETURNS,
) -> float:
    """Blended expected annual return: ``Σ allocation[f] / 100 * return[f]``."""
    values = _valid_allocation(allocation)
    return sum(
        values[f] / 100.0 * coerce_finite_number(fund_returns.get(f), DEFAULT_FUND_RETURNS[f])
        for f in FUNDS
    )


def portfolio_weights(allocation: Optional[Mapping]) -> Dict[str, float]:
    """Allocation normalized to fractions that sum to one."""
    values = _valid_allocation(allocation)
    total = sum(values.values())
    return {f: values[f] / total for f in FUNDS}


def portfolio_mean_return(
    weights: Mapping[str, float],
    fund_returns: Mapping[str, float] = DEFAULT_FUND_RETURNS,
) -> float:
    return sum(weights[f] * fund_returns[f] for f in FUNDS)


def portfolio_stddev(
    weights: Mapping[str, float],
    fund_stddev: Mapping[str, float] = DEFAULT_FUND_STDDEV,
) -> float:
    """Naive portfolio volatility ``sqrt(Σ (w * sd)^2)``; correlations are ignored."""
    return math.sqrt(sum((weights[f] * fund_stddev[f]) ** 2 for f in FUNDS))


def fund_returns_from_percent(percent_returns: Optional[Mapping]) -> Dict[str, float]:
    """Convert scenario fund returns (percent) to fractions, defaulting per fund."""
    pr = percent_returns if isinstance(percent_returns, Mapping) else {}
    return {
        f: coerce_finite_number(pr.get(f), DEFAULT_FUND_RETURNS[f] * 100) / 100.0
        for f in FUNDS
    }


# ---------- Contributions ----------
def employer_contribution_percent(
    employee_pct: float,
    include_match: bool = True,
    include_automatic: bool = True,
) -> float:
    """Agency contribution as a percent of salary for a given deferral percent."""
    p = coerce_finite_number(employee_pct, 0.0, min_value=0.0)
    pct = AUTOMATIC_PERCENT if include_automatic else 0.0
    if include_match:
        first3 = min(3.0, p)
        next2 = max(0.0, min(5.0, p) - 3.0)
        pct += first3 + next2 * 0.5
    return pct


def effective_deferral_limit(
    age: float,
    deferral_limit: float = DEFAULT_DEFERRAL_LIMIT,
    catch_up_limit: float = DEFAULT_CATCH_UP_LIMIT,
    catch_up_age: float = DEFAULT_CATCH_UP_AGE,
) -> float:
    """Annual employee deferral cap, including catch-up once ``age`` reaches ``catch_up_age``."""
    limit = coerce_finite_number(deferral_limit, DEFAULT_DEFERRAL_LIMIT, min_value=0.0)
    if coerce_finite_number(age, 0.0) >= coerce_finite_number(catch_up_age, DEFAULT_CATCH_UP_AGE, min_value=0.0):
        limit += coerce_finite_number(catch_up_limit, DEFAULT_CATCH_UP_LIMIT, min_value=0.0)
    return limit


def monthly_contributions(
    annual_salary: float,
    employee_pct: float,
    annual_limit: float,
    include_match: bool = True,
    include_automatic: bool = True,
) -> Iterator[Tuple[float, float]]:
    """Yield the twelve ``(employee, employer)`` contributions of one year.

    Employee deferrals accumulate until ``annual_limit``; the month that would
    cross it is truncated and later months defer nothing.  The match follows
    the percent actually deferred in each month, so a capped month only earns
    the automatic 1%.
    """
    monthly_salary = max(0.0, coerce_finite_number(annual_salary)) / 12.0
    pct = coerce_finite_number(employee_pct, 0.0, min_value=0.0)
    limit = max(0.0, coerce_finite_number(annual_limit))
    desired = monthly_salary * pct / 100.0
    deferred = 0.0
    for _month in range(12):
        employee = min(desired, max(0.0, limit - deferred))
        deferred += employee
        actual_pct = employee / monthly_salary * 100.0 if monthly_salary > 0 else 0.0
        employer = monthly_salary * employer_contribution_percent(
            actual_pct, include_match, include_automatic
        ) / 100.0
        yield employee, employer


def annual_contribution(
    annual_salary: float,
    employee_pct: float,
    age: float,
    contribution_type: str = TRADITIONAL,
    current_tax_rate: float = 0.0,
    include_match: bool = True,
    include_automatic: bool = True,
    deferral_limit: float = DEFAULT_DEFERRAL_LIMIT,
    catch_up_limit: float = DEFAULT_CATCH_UP_LIMIT,
    catch_up_age: float = DEFAULT_CATCH_UP_AGE,
) -> Dict[str, float]:
    """One year of contributions.

    Returns
    -------
    dict
        ``employee`` and ``employer`` gross dollars, ``credited`` (what reaches
        the account after the Roth tax drag) and the effective ``limit``.
    """
    limit = effective_deferral_limit(age, deferral_limit, catch_up_limit, catch_up_age)
    employee = employer = 0.0
    for e, m in monthly_contributions(annual_salary, employee_pct, limit, include_match, include_automatic):
        employee += e
        employer += m
    credited_employee = employee
    if contribution_type == ROTH:
        credited_employee = employee * (1 - _tax_fraction(current_tax_rate))
    return {
        "employee": employee,
        "employer": employer,
        "credited": credited_employee + employer,
        "limit": limit,
    }


def _tax_fraction(rate_pct: float) -> float:
    return coerce_finite_number(rate_pct, 0.0, min_value=0.0, max_value=100.0) / 100.0


# ---------- Single-bucket projector ----------
def iter_projection(
    start_balance: float,
    monthly_contribution: float,
    annual_return: float,
    years: int,
    tax_treatment: str,
    current_age: float,
    retirement_tax_rate: float,
) -> Iterator[Dict[str, float]]:
    """Yield one point per year from ``current_age`` to ``current_age + years``."""
    balance = coerce_finite_number(start_balance)
    contrib = coerce_finite_number(monthly_contribution)
    monthly_return = coerce_finite_number(annual_return) / 12.0
    years = coerce_int(years)
    age0 = coerce_finite_number(current_age)
    keep = 1 - _tax_fraction(retirement_tax_rate) if tax_treatment == TRADITIONAL else 1.0

    total_contributions = 0.0
    for year in range(years + 1):
        if year > 0:
            for _month in range(12):
                balance += contrib
                total_contributions += contrib
                balance *= 1 + monthly_return
        yield {
            "age": age0 + year,
            "balance": balance,
            "after_tax_value": balance * keep,
            "contributions": total_contributions,
        }


def project_balance(
    start_balance: float,
    monthly_contribution: float,
    annual_return: float,
    years: int,
    tax_treatment: str,
    current_age: float,
    retirement_tax_rate: float,
) -> Dict:
    """Project a single TSP bucket.

    Parameters
    ----------
    start_balance : float
        Balance today.
    monthly_contribution : float
        Dollars added every month of every projected year.
    annual_return : float
        Expected annual return as a fraction; compounded monthly.
    years : int
        Horizon.  ``0`` yields a single point at ``current_age``; a negative
        horizon yields no points and no growth.
    tax_treatment : str
        ``"traditional"`` (withdrawals taxed at ``retirement_tax_rate``) or
        ``"roth"`` (withdrawals untaxed).
    current_age : float
        Age labelling the first point.
    retirement_tax_rate : float
        Percent tax applied to traditional balances in retirement.

    Returns
    -------
    dict
        ``projected_balance``, ``total_contributions``, ``total_growth``,
        ``yearly_data`` and ``after_tax_value``.
    """
    start = coerce_finite_number(start_balance)
    yearly_data = list(iter_projection(
        start, monthly_contribution, annual_return, years, tax_treatment, current_age, retirement_tax_rate
    ))
    if yearly_data:
        last = yearly_data[-1]
        balance, contributions, after_tax = last["balance"], last["contributions"], last["after_tax_value"]
    else:
        balance, contributions = start, 0.0
        keep = 1 - _tax_fraction(retirement_tax_rate) if tax_treatment == TRADITIONAL else 1.0
        after_tax = start * keep
    return {
        "projected_balance": balance,
        "total_contributions": contributions,
        "total_growth": balance - start - contributions,
        "yearly_data": yearly_data,
        "after_tax_value": after_tax,
    }


def compare_traditional_roth(
    current_balance: float,
    annual_salary: float,
    contribution_percent: float,
    current_age: float,
    retirement_age: float,
    allocation: Optional[Mapping],
    current_tax_rate: float,
    retirement_tax_rate: float,
    fund_returns: Mapping[str, float] = DEFAULT_FUND_RETURNS,
) -> Dict:
    """Same payroll percentage under both tax treatments.

    The Roth contribution is reduced by ``current_tax_rate`` because the same
    gross deferral costs that much more in take-home pay.
    """
    age = coerce_finite_number(current_age)
    years = coerce_int(coerce_finite_number(retirement_age) - age)
    monthly = coerce_finite_number(annual_salary) * coerce_finite_number(contribution_percent) / 100.0 / 12.0
    rate = weighted_return(allocation, fund_returns)
    start = coerce_finite_number(current_balance)

    traditional = project_balance(start, monthly, rate, years, TRADITIONAL, age, retirement_tax_rate)
    roth = project_balance(
        start, monthly * (1 - _tax_fraction(current_tax_rate)), rate, years, ROTH, age, retirement_tax_rate
    )
    return {
        "traditional": traditional,
        "roth": roth,
        "weighted_return": rate,
        "monthly_contribution": monthly,
        "years": years,
    }


# ---------- Dual-bucket projector ----------
def _tsp_params(params):
    # scenario imports this package
    from ..scenario import Scenario, TspParams

    if isinstance(params, TspParams):
        return params
    return Scenario.from_dict({"tsp": params if isinstance(params, Mapping) else {}}).tsp


def project_tsp(params) -> Dict:
    """Dual-bucket projection from ``params``.

    ``params`` is a :class:`fedplanner.scenario.TspParams` or a plain dict of
    its fields; missing fields (or ``None``) take the scenario defaults.

    Each yearly point records the participant's age at the end of the
    projected year, which is also the age used for catch-up eligibility.

    Returns
    -------
    dict
        Totals for the final year plus ``yearly_data`` (one dict per year,
        ``current_age`` through ``retirement_age`` inclusive).
    """
    params = _tsp_params(params)
    current_age = coerce_int(params.current_age, min_value=0)
    retirement_age = coerce_int(params.retirement_age, min_value=0)
    years = retirement_age - current_age

    monthly_return = weighted_return(params.allocation, fund_returns_from_percent(params.fund_returns)) / 12.0
    salary_growth = coerce_finite_number(params.annual_salary_growth_rate) / 100.0
    inflation = coerce_finite_number(params.inflation_rate, 2.5) / 100.0
    roth = params.contribution_type == ROTH
    take_home = 1 - _tax_fraction(params.current_tax_rate)
    keep_traditional = 1 - _tax_fraction(params.retirement_tax_rate)
    real_mode = params.value_mode == "real"

    traditional = coerce_finite_number(params.current_balance, min_value=0.0)
    roth_balance = 0.0
    salary = coerce_finite_number(params.annual_salary, min_value=0.0)
    total_employee = total_employer = total_credited = 0.0
    yearly_data: List[Dict[str, float]] = []

    for year in range(years + 1):
        age = current_age + year
        employee_year = employer_year = 0.0
        limit = effective_deferral_limit(age, params.annual_employee_deferral_limit,
                                         params.annual_catch_up_limit, params.catch_up_age)
        salary_year = 0.0
        if year > 0:
            salary_year = salary
            for employee, employer in monthly_contributions(
                salary, params.contribution_percent, limit,
                params.include_employer_match, params.include_automatic_1_percent,
            ):
                if roth:
                    credited = employee * take_home
                    roth_balance += credited
                else:
                    credited = employee
                    traditional += credited
                traditional += employer
                total_credited += credited + employer
                employee_year += employee
                employer_year += employer
                traditional *= 1 + monthly_return
                roth_balance *= 1 + monthly_return
            salary *= 1 + salary_growth
        total_employee += employee_year
        total_employer += employer_year

        deflator = (1 + inflation) ** year
        balance = traditional + roth_balance
        after_tax = traditional * keep_traditional + roth_balance
        point = {
            "age": age,
            "balance": balance,
            "traditional_balance": traditional,
            "roth_balance": roth_balance,
            "after_tax_value": after_tax,
            "real_balance": balance / deflator,
            "real_after_tax_value": after_tax / deflator,
            "employee_contribution": employee_year,
            "employer_contribution": employer_year,
            "salary": salary_year,
            "deferral_limit": limit,
        }
        point["display_balance"] = point["real_balance"] if real_mode else balance
        yearly_data.append(point)

    start = coerce_finite_number(params.current_balance, min_value=0.0)
    last = yearly_data[-1] if yearly_data else {
        "balance": start, "traditional_balance": start, "roth_balance": 0.0,
        "after_tax_value": start * keep_traditional, "real_balance": start,
        "real_after_tax_value": start * keep_traditional, "display_balance": start,
    }
    return {
        "projected_balance": last["balance"],
        "traditional_balance": last["traditional_balance"],
        "roth_balance": last["roth_balance"],
        "after_tax_value": last["after_tax_value"],
        "real_balance": last["real_balance"],
        "real_after_tax_value": last["real_after_tax_value"],
        "display_balance": last["display_balance"],
        "total_employee_contributions": total_employee,
        "total_employer_contributions": total_employer,
        "total_growth": last["balance"] - start - total_credited,
        "value_mode": "real" if real_mode else "nominal",
        "years": max(0, years),
        "yearly_data": yearly_data,
    }


def projection_frame(yearly_data: List[Dict[str, float]]) -> pd.DataFrame:
    """Yearly points as a DataFrame indexed by age."""
    df = pd.DataFrame(list(yearly_data))
    if df.empty:
        return df
    return df.set_index("age")


__all__ = [
    "FUNDS",
    "DEFAULT_FUND_RETURNS",
    "DEFAULT_FUND_STDDEV",
    "DEFAULT_ALLOCATION",
    "weighted_return",
    "portfolio_weights",
    "portfolio_mean_return",
    "portfolio_stddev",
    "fund_returns_from_percent",
    "employer_contribution_percent",
    "effective_deferral_limit",
    "monthly_contributions",
    "annual_contribution",
    "iter_projection",
    "project_balance",
    "compare_traditional_roth",
    "project_tsp",
    "projection_frame",
]
