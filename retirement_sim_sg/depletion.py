"""Post-retirement drawdown: withdraw, add annuity income, grow, until empty or max age."""

import logging
import math
from dataclasses import dataclass, field

from retirement_sim_sg.annuity import payout_for_year
from retirement_sim_sg.cashflow import CashFlowNormalizer
from retirement_sim_sg.loans import amortization_schedule, payment_for_month
from retirement_sim_sg.params import (
    DEFAULT_MAX_AGE,
    MAX_CALCULATION_MONTHS,
    MONTHS_PER_YEAR,
    UserData,
    WithdrawalConfig,
    round2,
)

logger = logging.getLogger(__name__)

SUSTAINABLE_WITHDRAWAL_RATE = 0.05


@dataclass(frozen=True)
class AnnuityIncome:
    """A CPF LIFE payout stream starting at a global month offset."""

    start_offset: int
    initial_payout: float
    plan: str = "standard"

    def for_month(self, month_index: int) -> float:
        if month_index < self.start_offset or self.initial_payout <= 0:
            return 0.0
        years = (month_index - self.start_offset) // MONTHS_PER_YEAR
        return payout_for_year(self.initial_payout, years, self.plan)


@dataclass(frozen=True)
class PostRetirementDataPoint:
    month_index: int
    year: int
    month: int
    age: float
    expenses: float
    withdrawal: float  # amount actually taken: max(strategy, expenses)
    annuity_income: float
    portfolio_value: float
    growth: float


@dataclass
class DepletionOutcome:
    records: list[PostRetirementDataPoint] = field(default_factory=list)
    years_until_depletion: float | None = None  # None = lasted to the horizon
    depletion_age: float | None = None

    @property
    def depleted(self) -> bool:
        return self.years_until_depletion is not None


def withdrawal_amount(config: WithdrawalConfig | None, balance: float) -> float:
    """Monthly withdrawal dictated by the strategy alone."""
    if config is None:
        return 0.0
    fixed = config.fixed_amount or 0.0
    pct = (config.percentage or 0.0) * max(balance, 0.0) / MONTHS_PER_YEAR
    if config.strategy == "fixed":
        return round2(fixed)
    if config.strategy == "percentage":
        return round2(pct)
    if config.strategy == "combined":
        return round2(fixed + pct)
    return 0.0


def _post_retirement_expenses(
    normalizer: CashFlowNormalizer, data: UserData, month_index: int, schedules: list,
) -> float:
    total = normalizer.expenses_for_month(data.expenses, month_index, data.one_time_expenses)
    ym = normalizer.calendar(month_index)
    for loan, schedule in schedules:
        total = round2(total + payment_for_month(loan, ym.year, ym.month, schedule))
    return total


def simulate_depletion(
    data: UserData,
    normalizer: CashFlowNormalizer,
    start_balance: float,
    start_offset: int,
    annuity: AnnuityIncome | None = None,
    max_age: float = DEFAULT_MAX_AGE,
) -> DepletionOutcome:
    """Run the drawdown loop from global month `start_offset` (the retirement month).

    Each month takes the greater of the strategy withdrawal and modelled
    expenses. The run stops the month the balance plus annuity income cannot
    cover it; that month's elapsed time is the depletion time.
    """
    retirement_age = normalizer.current_age + start_offset / MONTHS_PER_YEAR
    max_months = min(
        math.floor((max_age - retirement_age) * MONTHS_PER_YEAR), MAX_CALCULATION_MONTHS,
    )
    monthly_rate = data.expected_return_rate / MONTHS_PER_YEAR
    schedules = [(loan, amortization_schedule(loan)) for loan in data.loans]

    outcome = DepletionOutcome()
    balance = round2(start_balance)

    for k in range(max(0, max_months)):
        idx = start_offset + k
        ym = normalizer.calendar(idx)
        expenses = _post_retirement_expenses(normalizer, data, idx, schedules)
        required = max(withdrawal_amount(data.withdrawal, balance), expenses)
        income = annuity.for_month(idx) if annuity else 0.0

        if round2(balance + income) < required:
            _mark_depleted(outcome, k, retirement_age)
            break

        before = balance
        balance = round2(balance + income - required)
        grown = round2(balance * (1 + monthly_rate))
        outcome.records.append(PostRetirementDataPoint(
            month_index=idx,
            year=ym.year,
            month=ym.month,
            age=round2(retirement_age + k / MONTHS_PER_YEAR),
            expenses=expenses,
            withdrawal=required,
            annuity_income=income,
            portfolio_value=grown,
            growth=round2(grown - before - income + required),
        ))
        balance = grown
        if balance <= 0:
            _mark_depleted(outcome, k, retirement_age)
            break
    return outcome


def _mark_depleted(outcome: DepletionOutcome, k: int, retirement_age: float) -> None:
    outcome.years_until_depletion = round2(k / MONTHS_PER_YEAR)
    outcome.depletion_age = round2(retirement_age + k / MONTHS_PER_YEAR)
    logger.debug(
        "Portfolio depleted after %d months (age %.2f)", k, outcome.depletion_age,
    )


def years_until_depletion(
    data: UserData,
    normalizer: CashFlowNormalizer,
    start_balance: float,
    start_offset: int,
    annuity: AnnuityIncome | None = None,
    max_age: float = DEFAULT_MAX_AGE,
) -> float | None:
    """Fractional years the portfolio lasts, or None if it reaches `max_age`."""
    return simulate_depletion(
        data, normalizer, start_balance, start_offset, annuity, max_age,
    ).years_until_depletion


def initial_monthly_expenses(data: UserData, normalizer: CashFlowNormalizer, start_offset: int) -> float:
    """Modelled expenses in the first retirement month."""
    schedules = [(loan, amortization_schedule(loan)) for loan in data.loans]
    return _post_retirement_expenses(normalizer, data, start_offset, schedules)


def annual_withdrawal(config: WithdrawalConfig | None, portfolio: float, monthly_expenses: float) -> float:
    """First-year withdrawal: the strategy's annual amount or twelve months of expenses."""
    strategy = 0.0
    if config is not None:
        fixed = (config.fixed_amount or 0.0) * MONTHS_PER_YEAR
        pct = (config.percentage or 0.0) * portfolio
        strategy = {"fixed": fixed, "percentage": pct, "combined": fixed + pct}.get(config.strategy, 0.0)
    return round2(max(strategy, monthly_expenses * MONTHS_PER_YEAR))


def check_sustainability_warning(portfolio: float, annual: float) -> bool:
    """True when the withdrawal rate exceeds 5% a year, or there is nothing to withdraw from."""
    if portfolio <= 0:
        return True
    return annual / portfolio > SUSTAINABLE_WITHDRAWAL_RATE
