"""FIRE (financial independence, retire early) gap analysis.

Passive monthly income is compared with a monthly spending goal:

* savings withdrawal ``balance × safe withdrawal rate / 12``;
* the FERS pension, counted at the desired FIRE age only if it has started;
* Social Security, counted once its start age is reached;
* side-hustle and spouse income.

When the pension starts after the desired FIRE age a "bridge" estimate is
reported: the monthly shortfall before the pension, times 12, times the years
between the two ages.  The estimate ignores growth and inflation.

Example
-------

>>> gap = fire_gap(1_200_000, 1000, {"monthly_fire_income_goal": 4000})
>>> gap["total_passive_income"], gap["is_fire_ready"]
(5000.0, True)
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from .fers import pension_from_scenario
from .numbers import clamp, coerce_finite_number
from .social_security import social_security_from_scenario

DEFAULT_SAFE_WITHDRAWAL_RATE = 0.04
SAFE_WITHDRAWAL_RATE_PRESETS = (0.03, 0.035, 0.04)
MIN_SAFE_WITHDRAWAL_RATE = 0.01
MAX_SAFE_WITHDRAWAL_RATE = 0.10

HIGH_CONFIDENCE_SURPLUS = 25.0
MEDIUM_CONFIDENCE_SURPLUS = 10.0


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def clamp_swr(safe_withdrawal_rate: Any) -> float:
    rate = coerce_finite_number(safe_withdrawal_rate, DEFAULT_SAFE_WITHDRAWAL_RATE)
    return clamp(rate, MIN_SAFE_WITHDRAWAL_RATE, MAX_SAFE_WITHDRAWAL_RATE)


def bridge_strategy(
    desired_fire_age: float,
    pension_start_age: float,
    fire_income_goal_monthly: float,
    monthly_income_before_pension: float,
) -> Dict[str, float]:
    """Cash needed to cover the pre-pension shortfall (no growth, level dollars)."""
    desired = coerce_finite_number(desired_fire_age)
    pension_start = coerce_finite_number(pension_start_age)
    years_to_bridge = max(0.0, pension_start - desired) if desired > 0 and pension_start > 0 else 0.0
    goal = coerce_finite_number(fire_income_goal_monthly, min_value=0.0)
    pre = coerce_finite_number(monthly_income_before_pension, min_value=0.0)
    shortfall = max(0.0, goal - pre)
    return {
        "years_to_bridge": years_to_bridge,
        "monthly_shortfall": shortfall,
        "required_bridge_assets": shortfall * 12 * years_to_bridge,
    }


def pension_asset_equivalent(pension_monthly: float, safe_withdrawal_rate: float = DEFAULT_SAFE_WITHDRAWAL_RATE) -> float:
    """Savings balance whose safe withdrawal would match the pension."""
    swr = clamp_swr(safe_withdrawal_rate)
    return coerce_finite_number(pension_monthly, min_value=0.0) * 12 / swr


def confidence_level(monthly_gap: float, goal: float) -> str:
    """``high``/``medium``/``low`` from the surplus as a percent of the goal."""
    if monthly_gap < 0:
        return "low"
    surplus_pct = monthly_gap / (goal if goal > 0 else 1) * 100
    if surplus_pct >= HIGH_CONFIDENCE_SURPLUS:
        return "high"
    if surplus_pct >= MEDIUM_CONFIDENCE_SURPLUS:
        return "medium"
    return "low"


def fire_gap(
    tsp_projected_balance: float,
    pension_monthly: float,
    fire: Optional[Any] = None,
    safe_withdrawal_rate: float = DEFAULT_SAFE_WITHDRAWAL_RATE,
    desired_fire_age: Optional[float] = None,
    pension_start_age: Optional[float] = None,
    social_security_monthly: float = 0.0,
    social_security_start_age: Optional[float] = None,
) -> Dict:
    """Surplus or shortfall of passive income against the FIRE goal.

    Parameters
    ----------
    tsp_projected_balance : float
        Savings balance available at the desired FIRE age.
    pension_monthly : float
        Monthly pension once it starts.
    fire : mapping or FireParams, optional
        Reads ``monthly_fire_income_goal``, ``side_hustle_income``,
        ``spouse_income``, ``desired_fire_age`` and ``pension_start_age``.
    safe_withdrawal_rate : float, optional
        Clamped to ``[0.01, 0.10]``.
    desired_fire_age, pension_start_age : float, optional
        When both are known and the pension starts later, the pension is
        excluded at the desired age and a bridge estimate is produced.
        Both fall back to the FIRE record.
    social_security_monthly, social_security_start_age : float, optional
        Benefit resolved by
        :func:`fedplanner.calculators.social_security.social_security_from_scenario`;
        counted when no ages are known or once the desired age reaches the
        start age.

    Returns
    -------
    dict
        Income totals, gaps and readiness at the desired age and after the
        pension starts, ``confidence_level``, ``pension`` and ``bridge``
        details and the normalized ``inputs``.
    """
    fire = fire if fire is not None else {}
    swr = clamp_swr(safe_withdrawal_rate)
    withdrawal = coerce_finite_number(tsp_projected_balance, min_value=0.0) * swr / 12

    side = coerce_finite_number(_field(fire, "side_hustle_income"), min_value=0.0)
    spouse = coerce_finite_number(_field(fire, "spouse_income"), min_value=0.0)
    goal = coerce_finite_number(_field(fire, "monthly_fire_income_goal"), min_value=0.0)

    desired = coerce_finite_number(
        desired_fire_age if desired_fire_age is not None else _field(fire, "desired_fire_age")
    )
    pension_start = coerce_finite_number(
        pension_start_age if pension_start_age is not None else _field(fire, "pension_start_age")
    )
    pension_started = desired >= pension_start if desired > 0 and pension_start > 0 else True

    pension_after_start = coerce_finite_number(pension_monthly, min_value=0.0)
    pension_at_desired = pension_after_start if pension_started else 0.0

    ss_monthly = coerce_finite_number(social_security_monthly, min_value=0.0)
    ss_start = coerce_finite_number(social_security_start_age)
    ss_at_desired = ss_monthly if desired <= 0 or ss_start <= 0 or desired >= ss_start else 0.0

    before_pension = withdrawal + side + spouse + ss_at_desired
    total_at_desired = before_pension + pension_at_desired
    total_after_pension = before_pension + pension_after_start

    gap_at_desired = total_at_desired - goal
    gap_after_pension = total_after_pension - goal

    return {
        "tsp_monthly_withdrawal": withdrawal,
        "total_passive_income": total_at_desired,
        "total_passive_income_at_desired_age": total_at_desired,
        "total_passive_income_after_pension": total_after_pension,
        "fire_income_goal": goal,
        "monthly_gap": gap_at_desired,
        "monthly_gap_at_desired_age": gap_at_desired,
        "monthly_gap_after_pension": gap_after_pension,
        "is_fire_ready": gap_at_desired >= 0,
        "is_fire_ready_at_desired_age": gap_at_desired >= 0,
        "is_fire_ready_after_pension": gap_after_pension >= 0,
        "confidence_level": confidence_level(gap_at_desired, goal),
        "pension": {
            "desired_fire_age": desired or None,
            "pension_start_age": pension_start or None,
            "pension_monthly_at_desired_age": pension_at_desired,
            "pension_monthly_after_start": pension_after_start,
            "pension_included_at_desired_age": pension_started,
            "pension_asset_equivalent": pension_asset_equivalent(pension_after_start, swr),
        },
        "bridge": bridge_strategy(desired, pension_start, goal, before_pension),
        "inputs": {
            "safe_withdrawal_rate": swr,
            "side_hustle_income": side,
            "spouse_income": spouse,
            "social_security_monthly": ss_at_desired,
            "desired_fire_age": desired or None,
            "pension_start_age": pension_start or None,
        },
    }


def fire_gap_for_scenario(scenario, tsp_projected_balance: float) -> Dict:
    """:func:`fire_gap` with pension and Social Security taken from ``scenario``.

    Uses the same pension start age and Social Security benefit as the Monte
    Carlo simulator and the optimizer.
    """
    pension = pension_from_scenario(scenario)
    ss = social_security_from_scenario(scenario)
    return fire_gap(
        tsp_projected_balance,
        pension["pension_monthly"],
        scenario.fire,
        safe_withdrawal_rate=scenario.summary.safe_withdrawal_rate,
        pension_start_age=pension["pension_start_age"],
        social_security_monthly=ss["monthly"],
        social_security_start_age=ss["claiming_age"],
    )


def passive_monthly_income(
    balance: float,
    safe_withdrawal_rate: float,
    age: float,
    pension_monthly: float = 0.0,
    pension_start_age: float = 0.0,
    ss_monthly: float = 0.0,
    ss_start_age: float = 0.0,
    side_hustle_income: float = 0.0,
    spouse_income: float = 0.0,
) -> float:
    """Passive monthly income at ``age`` from a given savings balance.

    A start age of zero or less means the stream is not configured.
    """
    b = coerce_finite_number(balance, min_value=0.0)
    swr = coerce_finite_number(safe_withdrawal_rate, DEFAULT_SAFE_WITHDRAWAL_RATE)
    a = coerce_finite_number(age)
    p_age = coerce_finite_number(pension_start_age)
    s_age = coerce_finite_number(ss_start_age)
    pension = coerce_finite_number(pension_monthly, min_value=0.0) if p_age > 0 and a >= p_age else 0.0
    ss = coerce_finite_number(ss_monthly, min_value=0.0) if s_age > 0 and a >= s_age else 0.0
    return (
        b * swr / 12
        + pension
        + ss
        + coerce_finite_number(side_hustle_income, min_value=0.0)
        + coerce_finite_number(spouse_income, min_value=0.0)
    )


__all__ = [
    "DEFAULT_SAFE_WITHDRAWAL_RATE",
    "SAFE_WITHDRAWAL_RATE_PRESETS",
    "bridge_strategy",
    "clamp_swr",
    "confidence_level",
    "fire_gap",
    "fire_gap_for_scenario",
    "passive_monthly_income",
    "pension_asset_equivalent",
]
