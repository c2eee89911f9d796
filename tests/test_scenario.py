"""Tests for scenario records, templates and diffs."""

import dataclasses
import json

import pytest

from fedplanner.scenario import (
    Scenario,
    default_scenario,
    scenario_diff,
    scenario_from_template,
    scenario_templates,
)


def test_from_dict_none_gives_defaults():
    assert Scenario.from_dict(None) == Scenario()
    assert Scenario.from_dict({}) == default_scenario()


def test_from_dict_coerces_fields():
    s = Scenario.from_dict({
        "name": "Mine",
        "tsp": {
            "current_age": "40",
            "contribution_percent": "abc",
            "include_employer_match": False,
            "include_automatic_1_percent": "yes",
            "allocation": {"C": 100},
            "fund_returns": {"C": "9"},
        },
        "fire": {"pension_start_age": "60"},
        "unknown": 1,
    })
    assert s.name == "Mine"
    assert s.tsp.current_age == 40.0
    assert s.tsp.contribution_percent == 10.0
    assert s.tsp.include_employer_match is False
    assert s.tsp.include_automatic_1_percent is True
    assert s.tsp.allocation == {"G": 0.0, "F": 0.0, "C": 100.0, "S": 0.0, "I": 0.0}
    assert s.tsp.fund_returns["C"] == 9.0
    assert s.tsp.fund_returns["G"] == 2.0
    assert s.fire.pension_start_age == 60.0


def test_round_trip_through_dict():
    s = scenario_from_template("template_40s")
    assert Scenario.from_dict(s.to_dict()) == s


def test_scenario_is_immutable():
    s = default_scenario()
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.name = "changed"
    changed = dataclasses.replace(s, tsp=dataclasses.replace(s.tsp, retirement_age=60))
    assert changed.tsp.retirement_age == 60
    assert s.tsp.retirement_age == 62


def test_templates():
    templates = scenario_templates()
    assert [t["id"] for t in templates] == ["template_20s", "template_30s", "template_40s", "template_50s"]


def test_scenario_from_template():
    s = scenario_from_template("template_30s")
    assert s.template_id == "template_30s"
    assert s.name == "Starter (30s)"
    assert s.tsp.annual_salary == 90000
    assert s.fire.desired_fire_age == 55
    assert s.summary.monthly_expenses == 4200
    # untouched fields keep their defaults
    assert s.tsp.inflation_rate == 2.5


def test_unknown_template_returns_default():
    s = scenario_from_template("nope", name="Plain")
    assert s == default_scenario("Plain")


def test_scenario_diff():
    before = default_scenario()
    after = dataclasses.replace(before, tsp=dataclasses.replace(before.tsp, contribution_percent=15))
    diffs = scenario_diff(before, after)
    assert diffs == [{"path": "tsp.contribution_percent", "label": "TSP: contribution %", "from": 10.0, "to": 15}]
    assert scenario_diff(before, before) == []
    assert scenario_diff(None, after) == []


def test_fund_tables_are_read_only():
    s = default_scenario()
    with pytest.raises(TypeError):
        s.tsp.allocation["C"] = 0
    assert s.tsp.allocation["C"] == 40.0
    changed = dataclasses.replace(s.tsp, allocation={"C": 100})
    assert changed.allocation["C"] == 100
    assert s.tsp.allocation["C"] == 40.0


def test_to_dict_is_json_serializable():
    s = scenario_from_template("template_50s")
    data = json.loads(json.dumps(s.to_dict()))
    assert data["tsp"]["allocation"] == dict(s.tsp.allocation)
    assert Scenario.from_dict(data) == s
