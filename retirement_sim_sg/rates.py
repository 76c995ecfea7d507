"""CPF rate tables: contribution, allocation, interest, ceilings and retirement sums (2025)."""

from dataclasses import dataclass


class RateTableError(RuntimeError):
    """Rate table is broken (gap, overlap or bad allocation row). Never a user error."""


@dataclass(frozen=True)
class ContributionBracket:
    age_min: int
    age_max: int
    employer_rate: float
    employee_rate: float

    @property
    def total_rate(self) -> float:
        return self.employer_rate + self.employee_rate


@dataclass(frozen=True)
class AllocationBracket:
    age_min: int
    age_max: int
    ordinary: float
    special: float
    medisave: float
    retirement: float

    @property
    def total(self) -> float:
        return self.ordinary + self.special + self.medisave + self.retirement


# Integer ages, both bounds inclusive
CONTRIBUTION_RATES: tuple[ContributionBracket, ...] = (
    ContributionBracket(0, 55, 0.17, 0.20),
    ContributionBracket(56, 60, 0.155, 0.17),
    ContributionBracket(61, 65, 0.115, 0.13),
    ContributionBracket(66, 70, 0.09, 0.105),
    ContributionBracket(71, 120, 0.075, 0.075),
)

ALLOCATION_RATES: tuple[AllocationBracket, ...] = (
    AllocationBracket(0, 35, 0.6217, 0.1621, 0.2162, 0.0),
    AllocationBracket(36, 40, 0.5677, 0.1891, 0.2432, 0.0),
    AllocationBracket(41, 45, 0.5136, 0.2162, 0.2702, 0.0),
    AllocationBracket(46, 50, 0.4595, 0.2432, 0.2973, 0.0),
    AllocationBracket(51, 55, 0.4055, 0.3108, 0.2837, 0.0),
    AllocationBracket(56, 60, 0.1231, 0.0, 0.3385, 0.5384),
    AllocationBracket(61, 65, 0.0327, 0.0, 0.4082, 0.5591),
    AllocationBracket(66, 120, 0.1026, 0.0, 0.3590, 0.5384),
)

# Base interest (annual)
OA_INTEREST_RATE = 0.025
SA_INTEREST_RATE = 0.04
MA_INTEREST_RATE = 0.04
RA_INTEREST_RATE = 0.04

# Extra interest below 55: +1% on first 60k combined, at most 20k of it from OA
EXTRA_RATE_UNDER_55 = 0.01
EXTRA_BALANCE_CAP_UNDER_55 = 60_000
EXTRA_OA_CAP_UNDER_55 = 20_000
# Extra interest from 55: +2% on first 30k, +1% on next 30k of the combined balance
EXTRA_FIRST_TIER_RATE = 0.02
EXTRA_FIRST_TIER_CAP = 30_000
EXTRA_SECOND_TIER_RATE = 0.01
EXTRA_SECOND_TIER_CAP = 30_000

MONTHLY_WAGE_CEILING = 7_400
ANNUAL_CONTRIBUTION_LIMIT = 37_740

TRANSITION_AGE = 55
AGE55_MIN_WITHDRAWAL = 5_000

RETIREMENT_SUMS: dict[str, float] = {
    "basic": 106_500,
    "full": 213_000,
    "enhanced": 426_000,
}
RETIREMENT_SUM_TARGETS = tuple(RETIREMENT_SUMS)
HIGHEST_RETIREMENT_SUM = max(RETIREMENT_SUMS.values())

# CPF LIFE monthly payout estimates at 65 (min, max) per retirement sum tier
ANNUITY_PAYOUT_RANGES: dict[str, tuple[float, float]] = {
    "basic": (860, 930),
    "full": (1_610, 1_730),
    "enhanced": (3_100, 3_330),
}

PLAN_MULTIPLIERS: dict[str, float] = {
    "standard": 1.0,
    "basic": 1.15,       # higher flat payout, no escalation
    "escalating": 0.85,  # lower start, +2% a year
}
ANNUITY_PLANS = tuple(PLAN_MULTIPLIERS)
ESCALATION_RATE = 0.02

PAYOUT_AGE = 65
DEFERRED_PAYOUT_AGE = 70
DEFERMENT_MULTIPLIER = 1.403  # 65 -> 70 deferral, ~7%/yr compounded

_ALLOCATION_TOLERANCE = 1e-4
_MAX_TABLE_AGE = 120


def _check_contiguous(name: str, brackets) -> None:
    if not brackets or brackets[0].age_min != 0:
        raise RateTableError(f"{name}: brackets must start at age 0")
    for prev, cur in zip(brackets, brackets[1:]):
        if cur.age_min != prev.age_max + 1:
            raise RateTableError(
                f"{name}: gap or overlap between {prev.age_min}-{prev.age_max} "
                f"and {cur.age_min}-{cur.age_max}"
            )
    if brackets[-1].age_max < _MAX_TABLE_AGE:
        raise RateTableError(f"{name}: brackets must cover age {_MAX_TABLE_AGE}")


def validate_rate_tables() -> None:
    """Check bracket contiguity and allocation sums. Raises RateTableError."""
    _check_contiguous("contribution rates", CONTRIBUTION_RATES)
    _check_contiguous("allocation rates", ALLOCATION_RATES)
    for b in ALLOCATION_RATES:
        if abs(b.total - 1.0) > _ALLOCATION_TOLERANCE:
            raise RateTableError(
                f"allocation rates {b.age_min}-{b.age_max} sum to {b.total:.4f}, not 1.0"
            )
        if b.age_max < TRANSITION_AGE + 1 and b.retirement != 0:
            raise RateTableError(f"allocation rates {b.age_min}-{b.age_max}: RA share before 55")
        if b.age_min > TRANSITION_AGE and b.special != 0:
            raise RateTableError(f"allocation rates {b.age_min}-{b.age_max}: SA share after 55")


def _find_bracket(name: str, brackets, age: int):
    for b in brackets:
        if b.age_min <= age <= b.age_max:
            return b
    raise RateTableError(f"No {name} found for age {age}")


def get_contribution_rate(age: int) -> ContributionBracket:
    """Return the contribution bracket for an integer age."""
    return _find_bracket("contribution rate", CONTRIBUTION_RATES, age)


def get_allocation_rate(age: int) -> AllocationBracket:
    """Return the allocation bracket for an integer age."""
    return _find_bracket("allocation rate", ALLOCATION_RATES, age)


def get_retirement_sum(target: str) -> float:
    """Retirement sum for 'basic' / 'full' / 'enhanced'. Unknown targets fall back to full."""
    return RETIREMENT_SUMS.get(target, RETIREMENT_SUMS["full"])


validate_rate_tables()
