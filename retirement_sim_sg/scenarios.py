"""Scenario definitions and multi-scenario execution."""

import dataclasses

from retirement_sim_sg.params import DEFAULT_MAX_AGE, UserData, YearMonth
from retirement_sim_sg.simulation import Projection, project

SCENARIOS = {
    "low-growth": {
        "expected_return_rate": 0.04,
        "inflation_rate": 0.015,
    },
    "standard": {
        "expected_return_rate": 0.06,
        "inflation_rate": 0.025,
    },
    "high-growth": {
        "expected_return_rate": 0.08,
        "inflation_rate": 0.035,
    },
    "stagflation": {
        "expected_return_rate": 0.035,  # real return below zero
        "inflation_rate": 0.045,
    },
}
SCENARIO_ORDER = list(SCENARIOS)


def run_scenarios(
    base: UserData,
    anchor: YearMonth,
    max_age: float = DEFAULT_MAX_AGE,
    scenarios: dict[str, dict] | None = None,
) -> dict[str, Projection]:
    """Run one independent projection per scenario, with the scenario's rates applied to `base`."""
    if scenarios is None:
        scenarios = SCENARIOS
    all_results = {}
    for name, overrides in scenarios.items():
        data = dataclasses.replace(base, **overrides)
        all_results[name] = project(data, anchor, max_age)
    return all_results
