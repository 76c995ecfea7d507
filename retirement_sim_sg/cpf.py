"""CPF engine: contributions, allocation, monthly interest and the age-55 transition.

Buckets are held in `CPFAccounts` (ordinary/special/medisave/retirement).
Every function here returns new values rounded to the cent; only `CPFLedger`
mutates state, and one ledger is created per simulation run.
"""

import logging
import math
from dataclasses import dataclass, field

from retirement_sim_sg.params import MONTHS_PER_YEAR, CPFAccounts, CPFConfig, round2
from retirement_sim_sg.rates import (
    AGE55_MIN_WITHDRAWAL,
    ANNUAL_CONTRIBUTION_LIMIT,
    EXTRA_BALANCE_CAP_UNDER_55,
    EXTRA_FIRST_TIER_CAP,
    EXTRA_FIRST_TIER_RATE,
    EXTRA_OA_CAP_UNDER_55,
    EXTRA_RATE_UNDER_55,
    EXTRA_SECOND_TIER_CAP,
    EXTRA_SECOND_TIER_RATE,
    HIGHEST_RETIREMENT_SUM,
    MA_INTEREST_RATE,
    MONTHLY_WAGE_CEILING,
    OA_INTEREST_RATE,
    RA_INTEREST_RATE,
    SA_INTEREST_RATE,
    TRANSITION_AGE,
    get_allocation_rate,
    get_contribution_rate,
    get_retirement_sum,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CPFContribution:
    employee: float
    employer: float
    total: float
    allocation: CPFAccounts = field(default_factory=CPFAccounts)


NO_CONTRIBUTION = CPFContribution(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class TransitionResult:
    accounts: CPFAccounts
    from_special: float
    from_ordinary: float
    total_transferred: float
    withdrawable: float  # informational only, balances are not reduced


@dataclass(frozen=True)
class RetirementSumProgress:
    target: float
    current: float
    shortfall: float
    percentage_complete: float
    is_met: bool


@dataclass(frozen=True)
class Age55Withdrawal:
    minimum: float
    excess_above_target: float
    withdrawable: float
    can_withdraw: bool


# --- Contributions ---

def allocate_contribution(total: float, age: int) -> CPFAccounts:
    """Split a (capped) total contribution across the four buckets.

    Each share is rounded to the cent on its own, so the shares may differ from
    `total` by a cent or two. From 55 the special share is routed to the
    retirement account.
    """
    rates = get_allocation_rate(age)
    ordinary = round2(total * rates.ordinary)
    special = round2(total * rates.special)
    medisave = round2(total * rates.medisave)
    retirement = round2(total * rates.retirement)
    if age >= TRANSITION_AGE:
        retirement = round2(retirement + special)
        special = 0.0
    return CPFAccounts(ordinary, special, medisave, retirement)


def calculate_contribution(monthly_wage: float, age: int, year_to_date: float = 0.0) -> CPFContribution:
    """Employee/employer contribution for one month's CPF-eligible wage.

    The wage is capped at the monthly ceiling. If the annual limit would be
    exceeded, both portions are scaled so the total equals the remaining headroom.
    """
    wage = min(monthly_wage, MONTHLY_WAGE_CEILING)
    if wage <= 0:
        return NO_CONTRIBUTION
    rates = get_contribution_rate(age)
    employee = wage * rates.employee_rate
    employer = wage * rates.employer_rate
    gross = employee + employer

    remaining = max(0.0, ANNUAL_CONTRIBUTION_LIMIT - year_to_date)
    if gross > remaining:
        total = round2(remaining)
        employee = round2(employee * remaining / gross)
        employer = round2(total - employee)
    else:
        employee = round2(employee)
        employer = round2(employer)
        total = round2(employee + employer)
    if total == 0:
        return NO_CONTRIBUTION
    return CPFContribution(employee, employer, total, allocate_contribution(total, age))


# --- Interest ---

def calculate_monthly_interest(accounts: CPFAccounts, age: int) -> CPFAccounts:
    """Base interest per bucket for one month. SA earns only below 55, RA only from 55."""
    before_55 = age < TRANSITION_AGE
    return CPFAccounts(
        ordinary=round2(accounts.ordinary * OA_INTEREST_RATE / MONTHS_PER_YEAR),
        special=round2(accounts.special * SA_INTEREST_RATE / MONTHS_PER_YEAR) if before_55 else 0.0,
        medisave=round2(accounts.medisave * MA_INTEREST_RATE / MONTHS_PER_YEAR),
        retirement=0.0 if before_55 else round2(accounts.retirement * RA_INTEREST_RATE / MONTHS_PER_YEAR),
    )


def _eligible_under_55(accounts: CPFAccounts) -> tuple[float, float, float]:
    """Balances earning extra interest below 55: (ordinary, special, medisave)."""
    oa = min(accounts.ordinary, EXTRA_OA_CAP_UNDER_55)
    sa_ma = accounts.special + accounts.medisave
    sm_eligible = min(sa_ma, EXTRA_BALANCE_CAP_UNDER_55 - oa)
    if sa_ma <= 0:
        return oa, 0.0, 0.0
    return oa, sm_eligible * accounts.special / sa_ma, sm_eligible * accounts.medisave / sa_ma


def calculate_extra_interest(accounts: CPFAccounts, age: int) -> float:
    """Monthly extra interest on top of the base rates."""
    if age < TRANSITION_AGE:
        eligible = min(sum(_eligible_under_55(accounts)), EXTRA_BALANCE_CAP_UNDER_55)
        return round2(eligible * EXTRA_RATE_UNDER_55 / MONTHS_PER_YEAR)

    total = accounts.total
    first = min(total, EXTRA_FIRST_TIER_CAP)
    second = min(max(0.0, total - EXTRA_FIRST_TIER_CAP), EXTRA_SECOND_TIER_CAP)
    return round2(
        first * EXTRA_FIRST_TIER_RATE / MONTHS_PER_YEAR
        + second * EXTRA_SECOND_TIER_RATE / MONTHS_PER_YEAR
    )


def _allocate_extra_interest(accounts: CPFAccounts, age: int, extra: float) -> CPFAccounts:
    if extra == 0:
        return CPFAccounts()
    if age < TRANSITION_AGE:
        oa, sa, ma = _eligible_under_55(accounts)
        weights = (oa, sa, ma, 0.0)
    else:
        weights = (accounts.ordinary, accounts.special, accounts.medisave, accounts.retirement)
    denom = sum(weights)
    if denom <= 0:
        return CPFAccounts()
    return CPFAccounts(*(round2(extra * w / denom) for w in weights))


def apply_monthly_interest(accounts: CPFAccounts, age: int) -> CPFAccounts:
    """Return balances after one month of base plus extra interest."""
    base = calculate_monthly_interest(accounts, age)
    extra = _allocate_extra_interest(accounts, age, calculate_extra_interest(accounts, age))
    return CPFAccounts(
        ordinary=round2(accounts.ordinary + base.ordinary + extra.ordinary),
        special=round2(accounts.special + base.special + extra.special),
        medisave=round2(accounts.medisave + base.medisave + extra.medisave),
        retirement=round2(accounts.retirement + base.retirement + extra.retirement),
    )


def effective_interest_rate(accounts: CPFAccounts, age: int) -> float:
    """Annualised blended rate (base + extra) over the total balance, 4 decimals."""
    total = accounts.total
    if total <= 0:
        return 0.0
    before_55 = age < TRANSITION_AGE
    annual_base = (
        accounts.ordinary * OA_INTEREST_RATE
        + (accounts.special * SA_INTEREST_RATE if before_55 else 0.0)
        + accounts.medisave * MA_INTEREST_RATE
        + (0.0 if before_55 else accounts.retirement * RA_INTEREST_RATE)
    )
    annual_extra = calculate_extra_interest(accounts, age) * MONTHS_PER_YEAR
    return math.floor((annual_base + annual_extra) / total * 10_000 + 0.5) / 10_000


# --- Age-55 transition ---

def _withdrawable(ordinary: float, special: float) -> float:
    return round2(max(AGE55_MIN_WITHDRAWAL, ordinary + special - HIGHEST_RETIREMENT_SUM))


def handle_age55_transition(accounts: CPFAccounts, target: str = "full") -> TransitionResult:
    """Close the special account and fund the retirement account up to `target`.

    Funds come from the special account first, then the ordinary account.
    Whatever is left in the special account after reaching the target moves
    to the ordinary account, so A + B before == A + D(transferred) after.
    """
    needed = get_retirement_sum(target)
    from_special = min(accounts.special, needed) if accounts.special > 0 else 0.0
    needed -= from_special
    from_ordinary = min(accounts.ordinary, needed) if needed > 0 and accounts.ordinary > 0 else 0.0
    leftover_special = accounts.special - from_special

    new_accounts = CPFAccounts(
        ordinary=round2(accounts.ordinary - from_ordinary + leftover_special),
        special=0.0,
        medisave=accounts.medisave,
        retirement=round2(accounts.retirement + from_special + from_ordinary),
    )
    return TransitionResult(
        accounts=new_accounts,
        from_special=round2(from_special),
        from_ordinary=round2(from_ordinary),
        total_transferred=round2(from_special + from_ordinary),
        withdrawable=_withdrawable(accounts.ordinary, accounts.special),
    )


def apply_post55_contribution(accounts: CPFAccounts, allocation: CPFAccounts) -> CPFAccounts:
    """Add a post-55 allocation. RA is capped at the highest retirement sum; overflow goes to OA."""
    to_ra = allocation.retirement + allocation.special
    to_oa = allocation.ordinary
    overflow = max(0.0, accounts.retirement + to_ra - HIGHEST_RETIREMENT_SUM)
    if overflow > 0:
        overflow = min(overflow, to_ra)
        to_ra -= overflow
        to_oa += overflow
    return CPFAccounts(
        ordinary=round2(accounts.ordinary + to_oa),
        special=accounts.special,
        medisave=round2(accounts.medisave + allocation.medisave),
        retirement=round2(accounts.retirement + to_ra),
    )


def retirement_sum_progress(ra_balance: float, target: str = "full") -> RetirementSumProgress:
    target_amount = get_retirement_sum(target)
    return RetirementSumProgress(
        target=target_amount,
        current=round2(ra_balance),
        shortfall=round2(max(0.0, target_amount - ra_balance)),
        percentage_complete=round2(min(100.0, ra_balance / target_amount * 100)),
        is_met=ra_balance >= target_amount,
    )


def age55_withdrawal(accounts: CPFAccounts) -> Age55Withdrawal:
    """Amount that may be withdrawn at 55: the minimum or the OA+SA excess over the highest sum."""
    excess = round2(max(0.0, accounts.ordinary + accounts.special - HIGHEST_RETIREMENT_SUM))
    return Age55Withdrawal(
        minimum=float(AGE55_MIN_WITHDRAWAL),
        excess_above_target=excess,
        withdrawable=_withdrawable(accounts.ordinary, accounts.special),
        can_withdraw=accounts.total >= AGE55_MIN_WITHDRAWAL,
    )


# --- Per-run state ---

class CPFLedger:
    """Mutable CPF state for one simulation run."""

    def __init__(self, config: CPFConfig, current_age: float):
        self.accounts = config.balances.copy()
        self.target = config.retirement_sum_target
        self.year_to_date = 0.0
        # Starting at or past 55 means the transition already happened
        self.transitioned = current_age >= TRANSITION_AGE
        self.transition: TransitionResult | None = None

    def reset_year_to_date(self) -> None:
        self.year_to_date = 0.0

    def transition_if_due(self, age: float) -> TransitionResult | None:
        """Run the age-55 transition the first time `age` reaches 55."""
        if self.transitioned or age < TRANSITION_AGE:
            return None
        result = handle_age55_transition(self.accounts, self.target)
        self.accounts = result.accounts
        self.transitioned = True
        self.transition = result
        logger.debug(
            "Age-55 transition at %.2f: %.2f from SA, %.2f from OA, RA now %.2f",
            age, result.from_special, result.from_ordinary, result.accounts.retirement,
        )
        return result

    def contribute(self, eligible_wage: float, age: int) -> CPFContribution:
        contribution = calculate_contribution(eligible_wage, age, self.year_to_date)
        if contribution.total == 0:
            return contribution
        self.year_to_date = round2(self.year_to_date + contribution.total)
        if age >= TRANSITION_AGE:
            self.accounts = apply_post55_contribution(self.accounts, contribution.allocation)
        else:
            a = contribution.allocation
            self.accounts = CPFAccounts(
                ordinary=round2(self.accounts.ordinary + a.ordinary),
                special=round2(self.accounts.special + a.special),
                medisave=round2(self.accounts.medisave + a.medisave),
                retirement=self.accounts.retirement,
            )
        return contribution

    def pay_from_ordinary(self, amount: float) -> float:
        """Draw up to `amount` from the ordinary account. Returns the amount drawn."""
        used = round2(min(self.accounts.ordinary, max(0.0, amount)))
        if used > 0:
            self.accounts.ordinary = round2(self.accounts.ordinary - used)
        return used

    def accrue_interest(self, age: int) -> tuple[CPFAccounts, float]:
        """Apply one month of interest. Returns (base interest per bucket, extra interest)."""
        base = calculate_monthly_interest(self.accounts, age)
        extra = calculate_extra_interest(self.accounts, age)
        self.accounts = apply_monthly_interest(self.accounts, age)
        return base, extra
