"""Tests for the FERS annuity and eligibility rules."""

import itertools

import pytest

from fedplanner.calculators import fers
from fedplanner.calculators.fers import EligibilityStatus
from fedplanner.scenario import Scenario, default_scenario


@pytest.mark.parametrize(
    "age,years,expected",
    [(62, 20, 0.011), (70, 35, 0.011), (61, 25, 0.01), (62, 19, 0.01), (55, 10, 0.01)],
)
def test_pension_multiplier_boundaries(age, years, expected):
    assert fers.pension_multiplier(age, years) == expected


def test_exactly_one_eligibility_state():
    for age, years in itertools.product(range(0, 76), range(0, 41)):
        v = fers.regular_eligibility(age, years)
        flags = [
            v.is_eligible_immediate_unreduced,
            v.is_eligible_immediate_mra10,
            v.is_eligible_deferred,
            v.is_ineligible,
        ]
        assert sum(flags) == 1, (age, years)


@pytest.mark.parametrize(
    "age,years,status",
    [
        (62, 5, EligibilityStatus.UNREDUCED),
        (60, 20, EligibilityStatus.UNREDUCED),
        (57, 30, EligibilityStatus.UNREDUCED),
        (58, 12, EligibilityStatus.MRA_10),
        (61, 19, EligibilityStatus.MRA_10),
        (55, 12, EligibilityStatus.DEFERRED),
        (61, 5, EligibilityStatus.DEFERRED),
        (40, 3, EligibilityStatus.INELIGIBLE),
    ],
)
def test_regular_eligibility_status(age, years, status):
    assert fers.regular_eligibility(age, years).status is status


def test_mra10_verdict_carries_reduction():
    v = fers.regular_eligibility(58, 12)
    assert v.reduction_percent == pytest.approx(20.0)
    assert v.is_eligible_immediate
    assert "MRA+10" in v.messages[0]
    assert v.to_dict()["status"] == "mra_10"


def test_custom_mra():
    assert fers.regular_eligibility(56, 12, mra=56).status is EligibilityStatus.MRA_10
    assert fers.regular_eligibility(56, 12, mra=57).status is EligibilityStatus.DEFERRED


@pytest.mark.parametrize(
    "start_age,expected",
    [(57, 25.0), (62, 0.0), (65, 0.0), (59.5, 12.5), (56, 0.0), (0, 0.0), (-3, 0.0)],
)
def test_mra10_reduction_percent(start_age, expected):
    assert fers.mra10_reduction_percent(start_age, mra=57) == pytest.approx(expected)


@pytest.mark.parametrize(
    "current_age,years,max_age,expected",
    [(40, 10, 70, 57), (30, 0, 70, 57), (50, 0, 70, 60), (65, 0, 70, 70), (66, 0, 70, None), (0, 5, 70, None)],
)
def test_earliest_immediate_retirement_age(current_age, years, max_age, expected):
    assert fers.earliest_immediate_retirement_age(current_age, years, max_age_to_check=max_age) == expected


def test_future_service_projection():
    res = fers.pension_results(
        years_of_service=10,
        months_of_service=0,
        high3_salary=100000,
        current_age=40,
        retirement_age=60,
        include_future_service=True,
    )
    assert res["projected_years"] == 30
    assert res["stay_federal"]["annual_pension"] == pytest.approx(30000)
    assert res["stay_federal"]["annual_pension"] > 0
    assert res["stay_federal"]["is_eligible"]


def test_months_of_service_count_as_fractional_years():
    res = fers.pension_results(20, 6, 100000, 62, 62)
    assert res["total_years"] == pytest.approx(20.5)
    assert res["stay_federal"]["multiplier"] == 0.011
    assert res["stay_federal"]["monthly_pension"] == pytest.approx(100000 * 20.5 * 0.011 / 12)


def test_lifetime_pension_and_leave_early():
    res = fers.pension_results(20, 0, 100000, 45, 62)
    stay = res["stay_federal"]
    leave = res["leave_early"]
    assert stay["lifetime_pension"] == pytest.approx(22000 * 23)
    assert stay["total_lifetime_earnings"] == pytest.approx(17 * 100000 + 22000 * 23)
    assert leave["deferred_pension"] == pytest.approx(20000)
    assert leave["lifetime_deferred"] == pytest.approx(20000 * 28)
    assert leave["break_even_age"] == 0


def test_break_even_age_with_comparison():
    res = fers.pension_results(
        20, 0, 100000, 45, 62, comparison={"private_job_salary": 150000, "private_job_years": 17}
    )
    leave_total = 20 * 100000 + 17 * 150000 + 20000 * 28
    stay_total = 17 * 100000 + 22000 * 23
    assert res["leave_early"]["total_lifetime_earnings"] == pytest.approx(leave_total)
    assert res["leave_early"]["break_even_age"] == pytest.approx(62 + (leave_total - stay_total) / 2000)


def test_bad_inputs_do_not_raise():
    res = fers.pension_results(None, "x", float("nan"), None, None)
    assert res["total_years"] == 0
    assert res["stay_federal"]["annual_pension"] == 0
    assert res["stay_federal"]["eligibility"]["status"] == "ineligible"


def test_pension_from_scenario():
    res = fers.pension_from_scenario(default_scenario())
    # 20 years today + 20 more to age 62 at the enhanced multiplier
    assert res["pension_monthly"] == pytest.approx(85000 * 40 * 0.011 / 12)
    assert res["pension_start_age"] == 62


def test_negative_inputs_clamped_to_zero():
    res = fers.pension_results(-10, -6, 100000, 40, 60)
    assert res["total_years"] == 0
    assert res["stay_federal"]["annual_pension"] == 0

    res = fers.pension_results(10, 0, -100000, 40, 60, include_future_service=True)
    assert res["stay_federal"]["annual_pension"] == 0
    assert res["leave_early"]["deferred_pension"] == 0

    res = fers.pension_results(
        20, 0, 100000, 45, 62, deferred_years_assumption=-5,
        comparison={"private_job_salary": -150000, "private_job_years": 17},
    )
    assert res["leave_early"]["deferred_pension"] == 0
    assert res["leave_early"]["total_lifetime_earnings"] == 0
    assert fers.annual_pension(-100000, 20, 62)["annual_pension"] == 0


def test_pension_start_age_from_fire_record():
    s = Scenario.from_dict({"fers": {"retirement_age": 60}, "fire": {"pension_start_age": 65}})
    assert fers.pension_from_scenario(s)["pension_start_age"] == 65
    assert fers.scenario_pension_start_age(s, 58) == 65

    unset = Scenario.from_dict({"fers": {"retirement_age": 60}, "fire": {"pension_start_age": 0}})
    assert fers.pension_from_scenario(unset)["pension_start_age"] == 60
    assert fers.scenario_pension_start_age(unset, 58) == 58
