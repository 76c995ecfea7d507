"""CLI entry point for a single retirement projection."""

import sys

from retirement_sim_sg.annuity import compare_strategies
from retirement_sim_sg.config import parse_args
from retirement_sim_sg.cpf import age55_withdrawal, retirement_sum_progress
from retirement_sim_sg.params import UserData, YearMonth
from retirement_sim_sg.simulation import Projection, project
from retirement_sim_sg.validation import InvalidInputError


def _print_header(data: UserData, anchor: YearMonth):
    years = data.retirement_age - data.current_age
    print("=" * 80)
    print(f"Retirement projection (age {data.current_age} -> {data.retirement_age}, {years} years, from {anchor})")
    print(
        f"  Savings: {data.current_savings:,.0f} / return {data.expected_return_rate:.1%}"
        f" / inflation {data.inflation_rate:.1%}"
    )
    print(
        f"  Income sources: {len(data.income_sources)} / expenses: {len(data.expenses)}"
        f" / loans: {len(data.loans)} / one-off returns: {len(data.one_off_returns)}"
    )
    if data.cpf_enabled:
        cpf = data.cpf
        print(
            f"  CPF: target {cpf.retirement_sum_target}, plan {cpf.plan}, payout from {cpf.payout_age}"
            f" (balances {cpf.balances.total:,.0f})"
        )
    print("=" * 80)
    print()


def _print_summary(projection: Projection):
    r = projection.result
    print("[Result at retirement]")
    print("-" * 60)
    print(f"{'Future value':<28} {r.future_value:>16,.2f}")
    print(f"{'Total contributions':<28} {r.total_contributions:>16,.2f}")
    print(f"{'Investment growth':<28} {r.investment_growth:>16,.2f}")
    print(f"{'In today money':<28} {r.inflation_adjusted_value:>16,.2f}")
    print("-" * 60)
    if r.years_until_depletion is None:
        if projection.drawdown:
            print(f"  Portfolio lasts to the horizon (age {projection.drawdown[-1].age:.0f})")
    else:
        print(
            f"  Portfolio depleted after {r.years_until_depletion:.2f} years"
            f" (age {r.depletion_age:.2f})"
        )
    if r.sustainability_warning:
        print("  WARNING: first-year withdrawal exceeds 5% of the portfolio")


def _print_cpf(projection: Projection, data: UserData):
    if projection.final_cpf is None:
        return
    acc = projection.final_cpf
    print("\n[CPF at end of accumulation]")
    print("-" * 60)
    for label, value in (
        ("Ordinary (OA)", acc.ordinary),
        ("Special (SA)", acc.special),
        ("MediSave (MA)", acc.medisave),
        ("Retirement (RA)", acc.retirement),
    ):
        print(f"{label:<28} {value:>16,.2f}")
    print("-" * 60)
    t = projection.transition
    if t is not None:
        print(
            f"  Age-55 transfer: {t.from_special:,.2f} from SA + {t.from_ordinary:,.2f} from OA"
            f" (withdrawable {t.withdrawable:,.2f})"
        )
    else:
        w = age55_withdrawal(acc)
        print(f"  Withdrawable at 55 (estimate): {w.withdrawable:,.2f}")
    progress = retirement_sum_progress(acc.retirement, data.cpf.retirement_sum_target)
    print(
        f"  Retirement sum: {progress.current:,.2f} / {progress.target:,.0f}"
        f" ({progress.percentage_complete:.1f}%)"
    )
    if projection.drawdown and acc.retirement > 0:
        target_income = projection.drawdown[0].expenses
        if target_income > 0:
            cmp = compare_strategies(acc.retirement, target_income)
            print(f"  {cmp.recommendation}")


def _print_yearly_log(projection: Projection):
    print("\n[Yearly log]")
    print("-" * 80)
    print(f"{'Age':<7} {'Income':>12} {'Expenses':>12} {'Contributed':>14} {'Portfolio':>16}")
    print("-" * 80)
    points = projection.accumulation
    for i, p in enumerate(points):
        if p.month == 12 or i == len(points) - 1:
            print(
                f"{p.age:<7.1f} {p.income:>12,.2f} {p.expenses:>12,.2f}"
                f" {p.contributions:>14,.2f} {p.portfolio_value:>16,.2f}"
            )
    for i, p in enumerate(projection.drawdown):
        if p.month == 12 or i == len(projection.drawdown) - 1:
            print(
                f"{p.age:<7.1f} {p.annuity_income:>12,.2f} {p.withdrawal:>12,.2f}"
                f" {'':>14} {p.portfolio_value:>16,.2f}"
            )
    print("-" * 80)


def main():
    """Run one projection and print the report."""
    data, anchor, r, _ = parse_args("Retirement projection with CPF")
    _print_header(data, anchor)
    try:
        projection = project(data, anchor, max_age=r["max_age"])
    except InvalidInputError as e:
        for issue in e.issues:
            print(f"  {issue}", file=sys.stderr)
        raise SystemExit(1)
    _print_summary(projection)
    _print_cpf(projection, data)
    _print_yearly_log(projection)


if __name__ == "__main__":
    main()
