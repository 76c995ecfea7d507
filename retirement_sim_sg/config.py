"""TOML/JSON config loader with CLI > config > default resolution."""

import argparse
import datetime
import json
import logging
import re
import sys
import tomllib
from collections.abc import Callable
from pathlib import Path

from retirement_sim_sg.migration import migrate_v1_to_v2
from retirement_sim_sg.params import (
    DEFAULT_MAX_AGE,
    AgeWindow,
    CPFAccounts,
    CPFConfig,
    DateWindow,
    ExtraPayment,
    IncomeStream,
    Loan,
    OneOffReturn,
    OneTimeExpense,
    RetirementExpense,
    UserData,
    WithdrawalConfig,
    YearMonth,
)

DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULTS = {
    "current_age": 30,
    "retirement_age": 65,
    "current_savings": 50000.0,
    "expected_return_rate": 0.07,
    "inflation_rate": 0.03,
    "monthly_contribution": 0.0,
    "anchor": "",  # empty = current month
    "max_age": DEFAULT_MAX_AGE,
}

# Names in the exported JSON contract that differ from ours beyond camelCase
_ALIASES = {
    "type": "income_type",
    "current_balances": "balances",
    "ordinary_account": "ordinary",
    "special_account": "special",
    "medisave_account": "medisave",
    "retirement_account": "retirement",
    "cpf_life_plan": "plan",
    "cpf_life_payout_age": "payout_age",
    "withdrawal_config": "withdrawal",
}


def _snake(key: str) -> str:
    key = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", key).lower()
    return _ALIASES.get(key, key)


def normalize_keys(value):
    """Recursively convert camelCase keys to snake_case."""
    if isinstance(value, dict):
        return {_snake(k): normalize_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_keys(v) for v in value]
    return value


def load_config(path: Path | None = None) -> dict:
    """Load a TOML or JSON config file. Returns empty dict if the file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        if path.suffix == ".json":
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
        else:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        print(f"Failed to read config file {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # Exported payloads wrap the record as {"version": ..., "user": {...}}
    if "user" in raw and "version" in raw:
        raw = migrate_v1_to_v2(raw)["user"]
    return normalize_keys(raw)


# --- dict -> records ---

def _pick(d: dict, cls_fields: tuple[str, ...]) -> dict:
    return {k: d[k] for k in cls_fields if k in d}


def _income(d: dict) -> IncomeStream:
    return IncomeStream(**_pick(d, (
        "name", "amount", "frequency", "start_date", "end_date",
        "custom_frequency_days", "cpf_eligible", "income_type",
    )))


def _window(d: dict) -> DateWindow | AgeWindow:
    has_dates = d.get("start_date") is not None or d.get("end_date") is not None
    has_ages = d.get("start_age") is not None or d.get("end_age") is not None
    if has_dates and has_ages:
        raise ValueError(
            f"Expense '{d.get('name', '')}' mixes date and age windows; use one or the other"
        )
    if has_ages:
        return AgeWindow(d.get("start_age"), d.get("end_age"))
    return DateWindow(d.get("start_date"), d.get("end_date"))


def _expense(d: dict) -> RetirementExpense:
    return RetirementExpense(
        window=_window(d),
        **_pick(d, ("name", "monthly_amount", "inflation_rate", "category")),
    )


def _loan(d: dict) -> Loan:
    extras = [ExtraPayment(e["date"], e["amount"]) for e in d.get("extra_payments", [])]
    return Loan(
        extra_payments=extras,
        **_pick(d, (
            "name", "principal", "interest_rate", "term_months", "start_date",
            "category", "use_cpf", "cpf_percentage",
        )),
    )


def _cpf(d: dict) -> CPFConfig:
    balances = CPFAccounts(**_pick(d.get("balances", {}), ("ordinary", "special", "medisave", "retirement")))
    return CPFConfig(
        balances=balances,
        **_pick(d, ("enabled", "retirement_sum_target", "plan", "payout_age")),
    )


def user_data_from_dict(raw: dict, overrides: dict | None = None) -> UserData:
    """Build UserData from a (snake_case or camelCase) mapping.

    `overrides` holds already-resolved scalar values and wins over `raw`.
    Raises ValueError on malformed records.
    """
    d = normalize_keys(raw)
    scalars = {k: d.get(k, DEFAULTS[k]) for k in (
        "current_age", "retirement_age", "current_savings",
        "expected_return_rate", "inflation_rate", "monthly_contribution",
    )}
    if overrides:
        scalars.update({k: v for k, v in overrides.items() if k in scalars})
    try:
        return UserData(
            **scalars,
            income_sources=[_income(x) for x in d.get("income_sources", [])],
            one_off_returns=[OneOffReturn(**_pick(x, ("date", "amount", "description")))
                             for x in d.get("one_off_returns", [])],
            expenses=[_expense(x) for x in d.get("expenses", [])],
            loans=[_loan(x) for x in d.get("loans", [])],
            one_time_expenses=[
                OneTimeExpense(**_pick(x, ("name", "amount", "date", "category", "description")))
                for x in d.get("one_time_expenses", [])
            ],
            cpf=_cpf(d["cpf"]) if "cpf" in d else None,
            withdrawal=(WithdrawalConfig(**_pick(d["withdrawal"], ("strategy", "fixed_amount", "percentage")))
                        if "withdrawal" in d else None),
        )
    except (TypeError, KeyError) as e:
        raise ValueError(f"Malformed record in config: {e}") from e


# --- CLI ---

def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared simulation flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="Config file, TOML or JSON (default: config.toml)")
    parser.add_argument("--current-age", type=int, default=None, help=f"Current age (default: {d['current_age']})")
    parser.add_argument("--retirement-age", type=int, default=None, help=f"Retirement age (default: {d['retirement_age']})")
    parser.add_argument("--savings", dest="current_savings", type=float, default=None,
                        help=f"Current savings (default: {d['current_savings']:.0f})")
    parser.add_argument("--return-rate", dest="expected_return_rate", type=float, default=None,
                        help=f"Expected annual return, decimal (default: {d['expected_return_rate']})")
    parser.add_argument("--inflation", dest="inflation_rate", type=float, default=None,
                        help=f"Annual inflation, decimal (default: {d['inflation_rate']})")
    parser.add_argument("--monthly-contribution", type=float, default=None,
                        help="Legacy flat monthly saving, used when no income sources are configured")
    parser.add_argument("--anchor", type=str, default=None, help="Month zero as YYYY-MM (default: current month)")
    parser.add_argument("--max-age", type=int, default=None, help=f"Drawdown horizon age (default: {d['max_age']})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log lifecycle events")
    return parser


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config file > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    return resolved


def resolve_anchor(value: str) -> YearMonth:
    """Parse the anchor month; empty means the current month."""
    if not value:
        today = datetime.date.today()
        return YearMonth(today.year, today.month)
    return YearMonth.parse(value)


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[UserData, YearMonth, dict, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (user_data, anchor, resolved_dict, namespace). Exits with status 1
    on malformed config or anchor.
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)
    r = resolve(args, config)
    try:
        anchor = resolve_anchor(r["anchor"])
        user_data = user_data_from_dict(config, overrides=r)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)
    return user_data, anchor, r, args
