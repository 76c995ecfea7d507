"""CPF LIFE annuity estimates and a manual-drawdown comparison."""

from dataclasses import dataclass

from retirement_sim_sg.params import MAX_CALCULATION_MONTHS, MONTHS_PER_YEAR, round2
from retirement_sim_sg.rates import (
    ANNUITY_PAYOUT_RANGES,
    DEFERMENT_MULTIPLIER,
    DEFERRED_PAYOUT_AGE,
    ESCALATION_RATE,
    PAYOUT_AGE,
    PLAN_MULTIPLIERS,
    RA_INTEREST_RATE,
    RETIREMENT_SUMS,
)

LIFE_EXPECTANCY = 90
INCOME_TARGET_THRESHOLD = 0.9  # annuity "meets" a target at 90% of it


@dataclass(frozen=True)
class DrawdownResult:
    months_until_depletion: int
    total_withdrawn: float
    total_interest: float


@dataclass(frozen=True)
class StrategyComparison:
    annuity_payout: float
    annuity_lifetime_total: float
    drawdown_monthly: float
    drawdown_months: int
    drawdown_total: float
    recommendation: str


def _average_payout(tier: str) -> float:
    low, high = ANNUITY_PAYOUT_RANGES[tier]
    return (low + high) / 2


def estimate_monthly_payout(balance: float, plan: str = "standard", payout_age: int = PAYOUT_AGE) -> float:
    """Estimated CPF LIFE monthly payout for a retirement-account balance.

    The balance is pro-rated against the tier it falls into, using the mean of
    that tier's published payout range; balances above the full sum scale the
    enhanced tier. Deferring to 70 and the plan choice apply as multipliers.
    """
    if balance <= 0:
        return 0.0
    if balance <= RETIREMENT_SUMS["basic"]:
        tier = "basic"
    elif balance <= RETIREMENT_SUMS["full"]:
        tier = "full"
    else:
        tier = "enhanced"
    payout = _average_payout(tier) * balance / RETIREMENT_SUMS[tier]
    if payout_age == DEFERRED_PAYOUT_AGE:
        payout *= DEFERMENT_MULTIPLIER
    payout *= PLAN_MULTIPLIERS.get(plan, PLAN_MULTIPLIERS["standard"])
    return round2(payout)


def payout_for_year(initial_payout: float, years_since_start: int, plan: str) -> float:
    """Monthly payout in a given payout year. Only the escalating plan grows."""
    if plan == "escalating" and years_since_start > 0:
        return round2(initial_payout * (1 + ESCALATION_RATE) ** years_since_start)
    return initial_payout


def resolve_payout_age(defer_to_age: int | None = None) -> int:
    if defer_to_age and PAYOUT_AGE < defer_to_age <= DEFERRED_PAYOUT_AGE:
        return defer_to_age
    return PAYOUT_AGE


def ra_depletion(
    balance: float, monthly_withdrawal: float, annual_rate: float = RA_INTEREST_RATE,
) -> DrawdownResult:
    """Drain a retirement balance manually: interest first, then the withdrawal, each month."""
    monthly_rate = annual_rate / MONTHS_PER_YEAR
    months = 0
    withdrawn = 0.0
    interest_total = 0.0
    while balance > 0 and months < MAX_CALCULATION_MONTHS:
        interest = round2(balance * monthly_rate)
        balance = round2(balance + interest)
        interest_total = round2(interest_total + interest)
        take = min(balance, monthly_withdrawal)
        balance = round2(balance - take)
        withdrawn = round2(withdrawn + take)
        months += 1
    return DrawdownResult(months, withdrawn, interest_total)


def compare_strategies(balance: float, target_monthly_income: float) -> StrategyComparison:
    """Compare a standard-plan annuity with drawing the same balance down by hand."""
    lifetime_months = (LIFE_EXPECTANCY - PAYOUT_AGE) * MONTHS_PER_YEAR
    payout = estimate_monthly_payout(balance, "standard")
    drawdown = ra_depletion(balance, target_monthly_income)

    if payout >= target_monthly_income * INCOME_TARGET_THRESHOLD:
        recommendation = "CPF LIFE recommended: guaranteed lifetime income meets the target."
    elif drawdown.months_until_depletion >= lifetime_months:
        recommendation = "Either works: manual drawdown meets the target past life expectancy."
    else:
        recommendation = (
            f"CPF LIFE strongly recommended: manual drawdown runs out before age {LIFE_EXPECTANCY}."
        )
    return StrategyComparison(
        annuity_payout=payout,
        annuity_lifetime_total=round2(payout * lifetime_months),
        drawdown_monthly=target_monthly_income,
        drawdown_months=drawdown.months_until_depletion,
        drawdown_total=drawdown.total_withdrawn,
        recommendation=recommendation,
    )
