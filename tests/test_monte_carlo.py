"""Tests for the Monte Carlo outcome simulator."""

import pytest

from fedplanner.calculators import monte_carlo
from fedplanner.calculators.fers import pension_from_scenario
from fedplanner.scenario import Scenario, default_scenario

ZERO = {"G": 0, "F": 0, "C": 0, "S": 0, "I": 0}


def _flat_scenario(**fire_overrides) -> Scenario:
    """No volatility, no returns, no salary: every path is identical."""
    fire = {
        "desired_fire_age": 55,
        "monthly_fire_income_goal": 1000,
        "side_hustle_income": 0,
        "spouse_income": 0,
    }
    fire.update(fire_overrides)
    return Scenario.from_dict({
        "tsp": {
            "current_age": 50,
            "retirement_age": 55,
            "current_balance": 100000,
            "annual_salary": 0,
            "inflation_rate": 0,
            "fund_returns": ZERO,
            "fund_stddev": ZERO,
        },
        "fire": fire,
    })


def _run(**overrides) -> dict:
    run = {
        "current_age": 50.0,
        "retirement_age": 51.0,
        "desired_fire_age": 51.0,
        "end_age": 51.0,
        "swr": 0.04,
        "inflation_rate": 0.0,
        "mean_return": 0.0,
        "portfolio_stddev": 10.0,
        "fire_goal_monthly": 0.0,
        "start_balance": 100000.0,
        "annual_salary": 0.0,
        "salary_growth": 0.0,
        "contribution": {
            "employee_pct": 0,
            "contribution_type": "traditional",
            "current_tax_rate": 22,
            "include_match": True,
            "include_automatic": True,
            "deferral_limit": 23500,
            "catch_up_limit": 7500,
            "catch_up_age": 50,
        },
        "side_hustle_income": 0.0,
        "spouse_income": 0.0,
        "pension_monthly": 0.0,
        "pension_start_age": 0.0,
        "social_security_monthly": 0.0,
        "social_security_start_age": 67.0,
    }
    run.update(overrides)
    return run


def test_repeatability_with_seed():
    settings = {"simulations": 100, "seed": 12345}
    a = monte_carlo.simulate(default_scenario(), 2000, 62, settings=settings)
    b = monte_carlo.simulate(default_scenario(), 2000, 62, settings=settings)
    assert a == b


def test_different_seeds_differ():
    a = monte_carlo.simulate(default_scenario(), settings={"simulations": 100, "seed": 1})
    b = monte_carlo.simulate(default_scenario(), settings={"simulations": 100, "seed": 2})
    assert a["outcomes"]["balance_at_retirement"] != b["outcomes"]["balance_at_retirement"]


@pytest.mark.parametrize("sims", [0, -5, "bad", None, 50])
def test_simulation_count_clamped(sims):
    res = monte_carlo.simulate(default_scenario(), settings={"simulations": sims, "seed": 3})
    assert res["inputs"]["simulations"] >= monte_carlo.MIN_SIMULATIONS
    outcomes = res["outcomes"]
    assert 0.0 <= outcomes["probability_fire_by_desired_age"] <= 1.0
    assert 0.0 <= outcomes["probability_funds_last_to_end_age"] <= 1.0


def test_default_simulation_count():
    res = monte_carlo.simulate(default_scenario(), settings={"seed": 3})
    assert res["inputs"]["simulations"] == monte_carlo.DEFAULT_SIMULATIONS


def test_missing_scenario_not_applicable():
    res = monte_carlo.simulate(None)
    assert res["applicable"] is False
    assert res["outcomes"]["probability_fire_by_desired_age"] == 0
    assert res["outcomes"]["balance_at_retirement"] is None


def test_no_goal_not_applicable():
    s = Scenario.from_dict({"fire": {"monthly_fire_income_goal": 0}, "summary": {"monthly_expenses": 0}})
    res = monte_carlo.simulate(s, settings={"seed": 1})
    assert res["applicable"] is False
    assert res["outcomes"]["probability_funds_last_to_end_age"] == 0


def test_monthly_expenses_stand_in_for_missing_goal():
    s = Scenario.from_dict({"fire": {"monthly_fire_income_goal": 0}, "summary": {"monthly_expenses": 3500}})
    res = monte_carlo.simulate(s, settings={"simulations": 100, "seed": 1})
    assert res["applicable"] is True
    assert res["inputs"]["fire_goal_monthly"] == 3500


def test_end_age_never_before_desired_age():
    res = monte_carlo.simulate(default_scenario(), settings={"simulations": 100, "seed": 1, "end_age": 40})
    assert res["inputs"]["end_age"] == 55


def test_deterministic_path_survives():
    res = monte_carlo.simulate(_flat_scenario(), settings={"simulations": 100, "seed": 9, "end_age": 60})
    out = res["outcomes"]
    assert out["probability_funds_last_to_end_age"] == 1.0
    # 100,000 less the first year's 12,000 withdrawal at the desired age
    assert out["balance_at_desired_fire_age"]["p50"] == pytest.approx(88000)
    assert out["balance_at_retirement"]["p50"] == pytest.approx(88000)
    # 88,000 at 4% is far below 1,000 a month
    assert out["probability_fire_by_desired_age"] == 0.0


def test_deterministic_path_depletes():
    res = monte_carlo.simulate(_flat_scenario(), settings={"simulations": 100, "seed": 9, "end_age": 70})
    assert res["outcomes"]["probability_funds_last_to_end_age"] == 0.0


def test_other_income_covers_need():
    res = monte_carlo.simulate(
        _flat_scenario(spouse_income=1000), settings={"simulations": 100, "seed": 9, "end_age": 90}
    )
    out = res["outcomes"]
    assert out["probability_funds_last_to_end_age"] == 1.0
    assert out["probability_fire_by_desired_age"] == 1.0
    assert out["balance_at_desired_fire_age"]["p50"] == pytest.approx(100000)


def test_pension_reduces_withdrawals_once_started():
    kwargs = {"settings": {"simulations": 100, "seed": 9, "end_age": 70}}
    late = monte_carlo.simulate(_flat_scenario(), pension_monthly=1000, pension_start_age=63, **kwargs)
    early = monte_carlo.simulate(_flat_scenario(), pension_monthly=1000, pension_start_age=60, **kwargs)
    # withdrawals stop once the pension starts: 55..62 is 8 years of 12,000
    assert late["outcomes"]["probability_funds_last_to_end_age"] == 1.0
    assert early["outcomes"]["probability_funds_last_to_end_age"] == 1.0
    too_late = monte_carlo.simulate(_flat_scenario(), pension_monthly=1000, pension_start_age=64, **kwargs)
    assert too_late["outcomes"]["probability_funds_last_to_end_age"] == 0.0


def test_returns_are_clamped():
    # draw() == 0.5 gives z = -1.177; with sd 10 the raw return would be -1177%
    res = monte_carlo.simulate_path(_run(), lambda: 0.5)
    assert res["balance_at_retirement"] == pytest.approx(100000 * 0.35 * 0.35)
    assert res["failed"] is False


def test_path_failure_stops_simulation():
    res = monte_carlo.simulate_path(
        _run(portfolio_stddev=0.0, fire_goal_monthly=10000, end_age=60), lambda: 0.5
    )
    assert res["failed"] is True
    assert res["balance_at_retirement"] is None
    assert res["fire_met"] is False


def test_simulate_scenario_uses_pension_and_social_security():
    s = Scenario.from_dict({"summary": {"social_security": {"mode": "manual", "monthly_benefit": 1800}}})
    res = monte_carlo.simulate_scenario(s, settings={"simulations": 100, "seed": 5})
    assert res["inputs"]["pension_monthly"] == pytest.approx(pension_from_scenario(s)["pension_monthly"])
    assert res["inputs"]["pension_start_age"] == 62
    assert res["inputs"]["social_security_monthly"] == 1800
    assert monte_carlo.simulate_scenario(None)["applicable"] is False


def test_simulate_scenario_pension_start_from_fire_record():
    s = Scenario.from_dict({"fers": {"retirement_age": 60}, "fire": {"pension_start_age": 65}})
    res = monte_carlo.simulate_scenario(s, settings={"simulations": 100, "seed": 5})
    assert res["inputs"]["pension_start_age"] == 65
    assert res["inputs"]["pension_start_age"] == pension_from_scenario(s)["pension_start_age"]
