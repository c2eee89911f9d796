"""Scenario records consumed by the calculators.

A :class:`Scenario` bundles the TSP, FERS, FIRE and summary inputs of one
plan.  It is an immutable value: callers build a new scenario (for example
with :func:`dataclasses.replace`) rather than editing one in place.

Scenarios are usually loaded from plain nested dicts (form state or persisted
JSON) through :meth:`Scenario.from_dict`, which merges the dict over the
defaults and coerces every field, so a half-filled form still produces a
usable scenario.  Starter templates and the list of fields compared by
:func:`scenario_diff` are shipped in ``data/templates.json``.

Example
-------

>>> s = Scenario.from_dict({"tsp": {"current_age": "40", "allocation": {"C": 100}}})
>>> s.tsp.current_age, s.tsp.allocation["C"], s.tsp.allocation["G"]
(40.0, 100.0, 0.0)
>>> scenario_from_template("template_30s").fire.desired_fire_age
55.0
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Protocol

from .calculators.numbers import coerce_finite_number

SCHEMA_VERSION = 2

_TEMPLATES_PATH = Path(__file__).resolve().parent / "data" / "templates.json"


def _default_allocation() -> Dict[str, float]:
    return {"G": 10.0, "F": 20.0, "C": 40.0, "S": 20.0, "I": 10.0}


def _default_fund_returns() -> Dict[str, float]:
    return {"G": 2.0, "F": 3.0, "C": 7.0, "S": 8.0, "I": 6.0}


def _default_fund_stddev() -> Dict[str, float]:
    return {"G": 1.0, "F": 5.0, "C": 16.0, "S": 18.0, "I": 17.0}


@dataclass(frozen=True)
class TspParams:
    current_balance: float = 50000.0
    current_age: float = 35.0
    retirement_age: float = 62.0
    contribution_percent: float = 10.0
    annual_salary: float = 80000.0
    annual_salary_growth_rate: float = 3.0
    include_employer_match: bool = True
    include_automatic_1_percent: bool = True
    annual_employee_deferral_limit: float = 23500.0
    annual_catch_up_limit: float = 7500.0
    catch_up_age: float = 50.0
    inflation_rate: float = 2.5
    value_mode: str = "nominal"  # "nominal" | "real"
    allocation: Mapping[str, float] = field(default_factory=_default_allocation)
    fund_returns: Mapping[str, float] = field(default_factory=_default_fund_returns)  # percent
    fund_stddev: Mapping[str, float] = field(default_factory=_default_fund_stddev)  # percent
    contribution_type: str = "traditional"  # "traditional" | "roth"
    current_tax_rate: float = 22.0
    retirement_tax_rate: float = 15.0

    def __post_init__(self):
        # per-fund tables are read-only views
        for name in ("allocation", "fund_returns", "fund_stddev"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))


@dataclass(frozen=True)
class FersParams:
    years_of_service: float = 20.0
    months_of_service: float = 0.0
    high3_salary: float = 85000.0
    retirement_age: float = 62.0
    current_age: float = 42.0
    mra: float = 57.0
    private_job_salary: float = 0.0
    private_job_years: float = 0.0


@dataclass(frozen=True)
class FireParams:
    desired_fire_age: float = 55.0
    monthly_fire_income_goal: float = 6000.0
    side_hustle_income: float = 500.0
    spouse_income: float = 4000.0
    pension_start_age: Optional[float] = None


@dataclass(frozen=True)
class SocialSecurityParams:
    mode: str = "not_configured"  # "not_configured" | "estimate" | "manual"
    claiming_age: float = 67.0
    monthly_benefit: float = 0.0
    percent_of_salary: float = 30.0


@dataclass(frozen=True)
class SummaryParams:
    monthly_expenses: float = 4000.0
    social_security: SocialSecurityParams = field(default_factory=SocialSecurityParams)
    pension_end_age: float = 85.0
    safe_withdrawal_rate: float = 0.04


@dataclass(frozen=True)
class Scenario:
    name: str = "New Scenario"
    tsp: TspParams = field(default_factory=TspParams)
    fers: FersParams = field(default_factory=FersParams)
    fire: FireParams = field(default_factory=FireParams)
    summary: SummaryParams = field(default_factory=SummaryParams)
    schema_version: int = SCHEMA_VERSION
    template_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "Scenario":
        """Merge ``data`` over the defaults, coercing every field."""
        return _build(cls, data if isinstance(data, Mapping) else {})

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dicts, ready for ``json.dumps``."""
        return _plain(self)


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    return value


def _coerce_like(default: Any, value: Any, type_hint: str = "") -> Any:
    if value is None:
        return default
    if isinstance(default, bool):
        return value if isinstance(value, bool) else default
    if isinstance(default, str) or (default is None and "str" in type_hint):
        return str(value)
    if isinstance(default, int):
        return int(coerce_finite_number(value, default))
    if isinstance(default, float) or default is None:
        return coerce_finite_number(value, default)
    if isinstance(default, dict):
        return dict(default)
    return value


def _build(cls, data: Mapping):
    kwargs = {}
    for f in dataclasses.fields(cls):
        default = f.default if f.default is not dataclasses.MISSING else f.default_factory()
        value = data.get(f.name)
        if dataclasses.is_dataclass(default):
            kwargs[f.name] = _build(type(default), value if isinstance(value, Mapping) else {})
        elif isinstance(default, dict) and f.name == "allocation" and isinstance(value, Mapping):
            # Funds missing from a supplied allocation mean 0%, not the default weight.
            kwargs[f.name] = {k: coerce_finite_number(value.get(k), 0.0, min_value=0.0) for k in default}
        elif isinstance(default, dict) and isinstance(value, Mapping):
            kwargs[f.name] = {k: coerce_finite_number(value.get(k), v) for k, v in default.items()}
        else:
            kwargs[f.name] = _coerce_like(default, value, str(f.type))
    return cls(**kwargs)


def _deep_merge(base: Mapping, overrides: Mapping) -> Dict[str, Any]:
    merged = dict(base)
    for k, v in overrides.items():
        if isinstance(v, Mapping) and isinstance(merged.get(k), Mapping):
            merged[k] = _deep_merge(merged[k], v)
        else:
            merged[k] = v
    return merged


@lru_cache(maxsize=None)
def _load_templates_file(path: Optional[Path] = None) -> Dict[str, Any]:
    with open(path or _TEMPLATES_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def default_scenario(name: str = "New Scenario") -> Scenario:
    return Scenario(name=name)


def scenario_templates(path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Starter templates (``id``, ``name``, ``description``, ``overrides``)."""
    return [dict(t) for t in _load_templates_file(path)["templates"]]


def scenario_from_template(template_id: str, name: Optional[str] = None, path: Optional[Path] = None) -> Scenario:
    """Default scenario with a template's overrides applied.

    Unknown template ids return the plain default scenario.
    """
    template = next((t for t in scenario_templates(path) if t["id"] == template_id), None)
    if template is None:
        return default_scenario(name or "New Scenario")
    data = _deep_merge(default_scenario().to_dict(), template.get("overrides", {}))
    data["name"] = name or template["name"]
    data["template_id"] = template["id"]
    return Scenario.from_dict(data)


def _value_at(obj: Any, path: str) -> Any:
    for key in path.split("."):
        obj = getattr(obj, key, None)
    return obj


def scenario_diff(before: Optional[Scenario], after: Optional[Scenario], path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Tracked fields whose value differs between two scenarios."""
    if before is None or after is None:
        return []
    diffs = []
    for field_path, label in _load_templates_file(path)["diff_fields"]:
        old, new = _value_at(before, field_path), _value_at(after, field_path)
        if old != new:
            diffs.append({"path": field_path, "label": label, "from": old, "to": new})
    return diffs


class ScenarioStore(Protocol):
    """Persistence boundary; implemented outside the engine."""

    def load(self, scenario_id: str) -> Optional[Scenario]:
        ...

    def save(self, scenario_id: str, scenario: Scenario) -> None:
        ...


__all__ = [
    "TspParams",
    "FersParams",
    "FireParams",
    "SocialSecurityParams",
    "SummaryParams",
    "Scenario",
    "ScenarioStore",
    "default_scenario",
    "scenario_templates",
    "scenario_from_template",
    "scenario_diff",
]
