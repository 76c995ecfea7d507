"""Core simulation engine: month-by-month accumulation, then post-retirement drawdown."""

import dataclasses
import logging
import math
from dataclasses import dataclass, field

from retirement_sim_sg.annuity import estimate_monthly_payout
from retirement_sim_sg.cashflow import CashFlowNormalizer
from retirement_sim_sg.cpf import NO_CONTRIBUTION, CPFContribution, CPFLedger, TransitionResult
from retirement_sim_sg.depletion import (
    AnnuityIncome,
    PostRetirementDataPoint,
    annual_withdrawal,
    check_sustainability_warning,
    initial_monthly_expenses,
    simulate_depletion,
)
from retirement_sim_sg.loans import amortization_schedule, payment_for_month
from retirement_sim_sg.migration import (
    convert_monthly_contribution_to_income_source,
    migrate_expense_windows,
)
from retirement_sim_sg.params import (
    DEFAULT_MAX_AGE,
    MONTHS_PER_YEAR,
    CPFAccounts,
    UserData,
    YearMonth,
    round2,
)
from retirement_sim_sg.validation import require_valid

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CPFMonthlySnapshot:
    month_index: int
    age: int
    accounts: CPFAccounts
    contribution: CPFContribution
    interest: CPFAccounts  # base interest per bucket
    extra_interest: float
    total_interest: float
    year_to_date: float


@dataclass(frozen=True)
class MonthlyDataPoint:
    month_index: int
    year: int
    month: int
    age: float
    income: float
    expenses: float
    contributions: float  # cumulative: starting savings + positive monthly nets
    portfolio_value: float
    growth: float
    cpf: CPFMonthlySnapshot | None = None
    annuity_income: float | None = None


@dataclass(frozen=True)
class CalculationResult:
    future_value: float
    total_contributions: float
    investment_growth: float
    inflation_adjusted_value: float
    years_to_retirement: int
    years_until_depletion: float | None
    depletion_age: float | None
    sustainability_warning: bool


@dataclass
class Projection:
    """Full result of one run: summary plus both time series."""

    result: CalculationResult
    accumulation: list[MonthlyDataPoint] = field(default_factory=list)
    drawdown: list[PostRetirementDataPoint] = field(default_factory=list)
    transition: TransitionResult | None = None
    final_cpf: CPFAccounts | None = None


# --- Closed-form helpers ---

def calculate_future_value(principal: float, monthly_contribution: float, annual_rate: float, years: float) -> float:
    """FV = PV(1+r)^n + PMT((1+r)^n - 1)/r, monthly compounding."""
    r = annual_rate / MONTHS_PER_YEAR
    n = years * MONTHS_PER_YEAR
    if r == 0:
        return principal + monthly_contribution * n
    growth = (1 + r) ** n
    return principal * growth + monthly_contribution * (growth - 1) / r


def adjust_for_inflation(nominal: float, inflation_rate: float, years: float) -> float:
    """Deflate a nominal value to today's money."""
    if inflation_rate == 0:
        return nominal
    return nominal / (1 + inflation_rate) ** years


def apply_inflation_adjustment(points: list[MonthlyDataPoint], inflation_rate: float) -> list[MonthlyDataPoint]:
    """Return copies of `points` with monetary fields in today's money (end-of-month)."""
    adjusted = []
    for p in points:
        years = (p.month_index + 1) / MONTHS_PER_YEAR

        def real(v: float) -> float:
            return round2(adjust_for_inflation(v, inflation_rate, years))

        adjusted.append(dataclasses.replace(
            p,
            income=real(p.income),
            expenses=real(p.expenses),
            contributions=real(p.contributions),
            portfolio_value=real(p.portfolio_value),
            growth=real(p.growth),
        ))
    return adjusted


# --- Accumulation ---

def find_income_end_offset(data: UserData, anchor: YearMonth) -> int:
    """Months from `anchor` until income effectively stops.

    This is the retirement month, pushed later by any income stream whose
    explicit end date falls after it.
    """
    end = (data.retirement_age - data.current_age) * MONTHS_PER_YEAR
    for source in data.income_sources:
        if source.end_date is not None:
            end = max(end, anchor.months_until(YearMonth.parse(source.end_date)))
    return end


@dataclass
class _AccumulationRun:
    points: list[MonthlyDataPoint]
    balance: float
    contributions: float
    ledger: CPFLedger | None
    annuity: AnnuityIncome | None


def _run_accumulation(data: UserData, anchor: YearMonth, months: int) -> _AccumulationRun:
    normalizer = CashFlowNormalizer(anchor, data.current_age)
    monthly_rate = data.expected_return_rate / MONTHS_PER_YEAR
    ledger = CPFLedger(data.cpf, data.current_age) if data.cpf_enabled else None
    plan = data.cpf.plan if data.cpf else "standard"
    payout_age = data.cpf.payout_age if data.cpf else 0
    schedules = [(loan, amortization_schedule(loan)) for loan in data.loans]

    balance = round2(data.current_savings)
    contributions = balance
    annuity: AnnuityIncome | None = None
    points: list[MonthlyDataPoint] = []

    for idx in range(months):
        ym = anchor.plus_months(idx)
        age = data.current_age + idx / MONTHS_PER_YEAR
        whole_age = math.floor(age)

        if ledger is not None:
            if idx > 0 and ym.month == 1:
                ledger.reset_year_to_date()
            ledger.transition_if_due(age)
            if annuity is None and age >= payout_age:
                annuity = AnnuityIncome(
                    start_offset=idx,
                    initial_payout=estimate_monthly_payout(ledger.accounts.retirement, plan, payout_age),
                    plan=plan,
                )
                logger.debug(
                    "CPF LIFE payouts start at age %.2f: %.2f/month", age, annuity.initial_payout,
                )

        income = normalizer.income_for_month(data.income_sources, idx, data.one_off_returns)
        annuity_income = annuity.for_month(idx) if annuity else 0.0
        income = round2(income + annuity_income)

        expenses = normalizer.expenses_for_month(data.expenses, idx, data.one_time_expenses)
        for loan, schedule in schedules:
            payment = payment_for_month(loan, ym.year, ym.month, schedule)
            if ledger is not None and payment > 0 and loan.use_cpf and loan.category == "housing":
                from_oa = ledger.pay_from_ordinary(round2(payment * loan.cpf_percentage / 100))
                payment = round2(payment - from_oa)
            expenses = round2(expenses + payment)

        contribution = NO_CONTRIBUTION
        if ledger is not None:
            eligible = normalizer.cpf_eligible_income(data.income_sources, idx)
            if eligible > 0:
                contribution = ledger.contribute(eligible, whole_age)
                income = round2(income - contribution.employee)

        net = round2(income - expenses)
        before = balance
        balance = round2(balance + net)
        contributions = round2(contributions + max(0.0, net))
        balance = round2(balance * (1 + monthly_rate))
        growth = round2(balance - before - net)

        snapshot = None
        if ledger is not None:
            base, extra = ledger.accrue_interest(whole_age)
            snapshot = CPFMonthlySnapshot(
                month_index=idx,
                age=whole_age,
                accounts=ledger.accounts.copy(),
                contribution=contribution,
                interest=base,
                extra_interest=extra,
                total_interest=round2(base.total + extra),
                year_to_date=ledger.year_to_date,
            )

        points.append(MonthlyDataPoint(
            month_index=idx,
            year=ym.year,
            month=ym.month,
            age=round2(age),
            income=income,
            expenses=expenses,
            contributions=contributions,
            portfolio_value=balance,
            growth=growth,
            cpf=snapshot,
            annuity_income=annuity_income if annuity_income > 0 else None,
        ))

    return _AccumulationRun(points, balance, contributions, ledger, annuity)


def generate_monthly_projections(
    data: UserData, anchor: YearMonth, max_age: float | None = None,
) -> list[MonthlyDataPoint]:
    """Month-by-month accumulation from `anchor`.

    Runs until income stops (see `find_income_end_offset`), or to `max_age`
    when given.
    """
    if max_age is None:
        months = find_income_end_offset(data, anchor)
    else:
        months = round((max_age - data.current_age) * MONTHS_PER_YEAR)
    return _run_accumulation(data, anchor, max(0, months)).points


# --- Full result ---

def _prepare(data: UserData, anchor: YearMonth) -> UserData:
    data = convert_monthly_contribution_to_income_source(data, anchor)
    return migrate_expense_windows(data, anchor)


def _drawdown_annuity(data: UserData, run: _AccumulationRun, normalizer: CashFlowNormalizer) -> AnnuityIncome | None:
    """Annuity stream for the drawdown phase.

    Continues the stream started during accumulation. Otherwise the payout is
    estimated from the RA balance at the end of accumulation; RA interest
    between retirement and the payout age is not added.
    """
    if run.annuity is not None:
        return run.annuity
    if run.ledger is None or run.ledger.accounts.retirement <= 0:
        return None
    cpf = data.cpf
    return AnnuityIncome(
        start_offset=normalizer.age_offset(cpf.payout_age),
        initial_payout=estimate_monthly_payout(run.ledger.accounts.retirement, cpf.plan, cpf.payout_age),
        plan=cpf.plan,
    )


def project(data: UserData, anchor: YearMonth, max_age: float = DEFAULT_MAX_AGE) -> Projection:
    """Validate, accumulate, then draw down. Raises InvalidInputError on bad input."""
    require_valid(data)
    data = _prepare(data, anchor)

    months = find_income_end_offset(data, anchor)
    run = _run_accumulation(data, anchor, months)
    future_value = run.balance
    total_contributions = run.contributions
    years_accumulating = months / MONTHS_PER_YEAR

    drawdown: list[PostRetirementDataPoint] = []
    years_left = None
    depletion_age = None
    warning = False
    if data.expenses or data.withdrawal is not None:
        normalizer = CashFlowNormalizer(anchor, data.current_age)
        outcome = simulate_depletion(
            data, normalizer, future_value, months,
            annuity=_drawdown_annuity(data, run, normalizer), max_age=max_age,
        )
        drawdown = outcome.records
        years_left = outcome.years_until_depletion
        depletion_age = outcome.depletion_age
        annual = annual_withdrawal(
            data.withdrawal, future_value, initial_monthly_expenses(data, normalizer, months),
        )
        warning = check_sustainability_warning(future_value, annual)

    result = CalculationResult(
        future_value=future_value,
        total_contributions=total_contributions,
        investment_growth=round2(future_value - total_contributions),
        inflation_adjusted_value=round2(
            adjust_for_inflation(future_value, data.inflation_rate, years_accumulating)
        ),
        years_to_retirement=data.retirement_age - data.current_age,
        years_until_depletion=years_left,
        depletion_age=depletion_age,
        sustainability_warning=warning,
    )
    return Projection(
        result=result,
        accumulation=run.points,
        drawdown=drawdown,
        transition=run.ledger.transition if run.ledger else None,
        final_cpf=run.ledger.accounts.copy() if run.ledger else None,
    )


def calculate_retirement(data: UserData, anchor: YearMonth, max_age: float = DEFAULT_MAX_AGE) -> CalculationResult:
    """Summary result for `data`, with month zero pinned to `anchor`."""
    return project(data, anchor, max_age).result
