"""Projection and simulation engine for federal employee retirement planning."""

from .scenario import Scenario, default_scenario, scenario_from_template  # noqa: F401

__version__ = "0.1.0"

__all__ = ["Scenario", "default_scenario", "scenario_from_template"]
