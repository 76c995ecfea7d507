"""CLI entry point for chart generation."""

import argparse
import sys
from pathlib import Path

from retirement_sim_sg.charts import plot_cpf_balances, plot_trajectory
from retirement_sim_sg.config import parse_args
from retirement_sim_sg.params import MONTHS_PER_YEAR, UserData, YearMonth
from retirement_sim_sg.scenarios import run_scenarios
from retirement_sim_sg.simulation import project
from retirement_sim_sg.validation import InvalidInputError


def _add_args(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="Output directory (default: reports/charts)",
    )
    parser.add_argument(
        "--scenarios", action="store_true",
        help="Plot one trajectory per scenario instead of the configured rates only",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="Output filename suffix (e.g. 30 -> trajectory-30.png)",
    )


def event_markers(data: UserData, anchor: YearMonth) -> list[tuple[float, float, str]]:
    """One-off returns (+) and one-time expenses (-) as (age, signed amount, label)."""
    def age_at(date: str) -> float:
        return data.current_age + anchor.months_until(YearMonth.parse(date)) / MONTHS_PER_YEAR

    markers = [(age_at(r.date), r.amount, r.description or "return") for r in data.one_off_returns]
    markers += [(age_at(e.date), -e.amount, e.name) for e in data.one_time_expenses]
    return sorted(m for m in markers if m[0] >= data.current_age)


def main():
    data, anchor, r, args = parse_args("Retirement projection: charts", _add_args)
    try:
        base = project(data, anchor, max_age=r["max_age"])
        if args.scenarios:
            print("Running scenarios...", file=sys.stderr)
            projections = run_scenarios(data, anchor, max_age=r["max_age"])
        else:
            projections = {"configured": base}
    except InvalidInputError as e:
        for issue in e.issues:
            print(f"  {issue}", file=sys.stderr)
        raise SystemExit(1)

    path = plot_trajectory(projections, args.output, name=args.name, event_markers=event_markers(data, anchor))
    print(f"  -> {path}", file=sys.stderr)
    path = plot_cpf_balances(base, args.output, name=args.name)
    if path is not None:
        print(f"  -> {path}", file=sys.stderr)
    print("Done", file=sys.stderr)


if __name__ == "__main__":
    main()
