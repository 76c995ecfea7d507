"""CLI entry point for scenario comparison."""

import sys

from retirement_sim_sg.config import parse_args
from retirement_sim_sg.scenarios import SCENARIO_ORDER, SCENARIOS, run_scenarios
from retirement_sim_sg.validation import InvalidInputError


def print_parameters():
    print("=" * 80)
    print("[Scenario assumptions]")
    print("-" * 80)
    print(f"{'Scenario':<16} {'Return':>10} {'Inflation':>10} {'Real':>10}")
    print("-" * 80)
    for name in SCENARIO_ORDER:
        s = SCENARIOS[name]
        ret = s["expected_return_rate"] * 100
        infl = s["inflation_rate"] * 100
        print(f"{name:<16} {ret:>9.1f}% {infl:>9.1f}% {ret - infl:>9.1f}%")
    print("-" * 80)
    print()


def _depletion_cell(result) -> str:
    if result.years_until_depletion is None:
        return f"{'lasts':>12}"
    label = f"age {result.depletion_age:.1f}"
    return f"{label:>12}"


def print_results(all_results: dict):
    print("=" * 80)
    print("[Outcome by scenario]")
    print("-" * 80)
    print(f"{'Scenario':<16} {'Future value':>16} {'Today money':>16} {'Depletion':>12} {'Warn':>6}")
    print("-" * 80)
    for name in SCENARIO_ORDER:
        r = all_results[name].result
        warn = "!" if r.sustainability_warning else ""
        print(
            f"{name:<16} {r.future_value:>16,.0f} {r.inflation_adjusted_value:>16,.0f}"
            f" {_depletion_cell(r)} {warn:>6}"
        )
    print("-" * 80)


def main():
    data, anchor, r, _ = parse_args("Retirement projection: scenario comparison")
    print_parameters()
    try:
        all_results = run_scenarios(data, anchor, max_age=r["max_age"])
    except InvalidInputError as e:
        for issue in e.issues:
            print(f"  {issue}", file=sys.stderr)
        raise SystemExit(1)
    print_results(all_results)


if __name__ == "__main__":
    main()
