"""Input records (UserData and its nested streams) and shared money/calendar helpers."""

import math
import re
from dataclasses import dataclass, field

MONTHS_PER_YEAR = 12
MIN_AGE = 0
MAX_AGE = 120
DEFAULT_MAX_AGE = 95  # post-retirement projection horizon
MAX_CALCULATION_MONTHS = 1200  # 100 years

FREQUENCIES = ("daily", "weekly", "monthly", "yearly", "custom")
EXPENSE_CATEGORIES = ("living", "healthcare", "travel", "other")
LOAN_CATEGORIES = ("housing", "auto", "personal", "other")
WITHDRAWAL_STRATEGIES = ("fixed", "percentage", "combined")

_DATE_RE = re.compile(r"^\d{4}-\d{2}$")
MIN_YEAR = 1900
MAX_YEAR = 2200


def round2(value: float) -> float:
    """Round half-up to the cent. Applied after every monetary step."""
    return math.floor(value * 100 + 0.5) / 100


def is_valid_month_string(s: str) -> bool:
    """True for a YYYY-MM string with year 1900-2200 and month 1-12."""
    if not isinstance(s, str) or not _DATE_RE.match(s):
        return False
    year, month = (int(x) for x in s.split("-"))
    return MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12


@dataclass(frozen=True, order=True)
class YearMonth:
    """Calendar month. The simulation anchor (month zero) is one of these."""

    year: int
    month: int

    @classmethod
    def parse(cls, s: str) -> "YearMonth":
        if not is_valid_month_string(s):
            raise ValueError(f"Invalid month '{s}': expected YYYY-MM")
        year, month = (int(x) for x in s.split("-"))
        return cls(year, month)

    def plus_months(self, n: int) -> "YearMonth":
        total = self.year * MONTHS_PER_YEAR + (self.month - 1) + n
        return YearMonth(total // MONTHS_PER_YEAR, total % MONTHS_PER_YEAR + 1)

    def months_until(self, other: "YearMonth") -> int:
        """Signed month offset from self to other."""
        return (other.year - self.year) * MONTHS_PER_YEAR + (other.month - self.month)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass
class IncomeStream:
    name: str
    amount: float
    frequency: str
    start_date: str
    end_date: str | None = None  # None = open-ended
    custom_frequency_days: float | None = None
    cpf_eligible: bool = False
    income_type: str = "salary"


@dataclass
class OneOffReturn:
    date: str
    amount: float
    description: str = ""


@dataclass(frozen=True)
class DateWindow:
    """Calendar activation window [start, end). None start = simulation start."""

    start: str | None = None
    end: str | None = None


@dataclass(frozen=True)
class AgeWindow:
    """Age activation window [start_age, end_age). None start = current age."""

    start_age: float | None = None
    end_age: float | None = None


@dataclass
class RetirementExpense:
    name: str
    monthly_amount: float
    inflation_rate: float = 0.0
    window: DateWindow | AgeWindow = field(default_factory=DateWindow)
    category: str = "living"


@dataclass
class OneTimeExpense:
    name: str
    amount: float
    date: str
    category: str = "other"
    description: str = ""


@dataclass
class ExtraPayment:
    date: str
    amount: float


@dataclass
class Loan:
    name: str
    principal: float
    interest_rate: float  # annual, decimal
    term_months: int
    start_date: str
    extra_payments: list[ExtraPayment] = field(default_factory=list)
    category: str = "other"
    use_cpf: bool = False  # housing loans only: pay from OA first
    cpf_percentage: float = 100.0


@dataclass
class CPFAccounts:
    """Four CPF buckets: OA (A), SA (B), MA (C), RA (D)."""

    ordinary: float = 0.0
    special: float = 0.0
    medisave: float = 0.0
    retirement: float = 0.0

    @property
    def total(self) -> float:
        return self.ordinary + self.special + self.medisave + self.retirement

    def copy(self) -> "CPFAccounts":
        return CPFAccounts(self.ordinary, self.special, self.medisave, self.retirement)


@dataclass
class CPFConfig:
    enabled: bool = False
    balances: CPFAccounts = field(default_factory=CPFAccounts)
    retirement_sum_target: str = "full"
    plan: str = "standard"
    payout_age: int = 65  # 65, or 70 when deferred


@dataclass
class WithdrawalConfig:
    strategy: str = "fixed"
    fixed_amount: float | None = None  # per month
    percentage: float | None = None    # annual share of the current balance


@dataclass
class UserData:
    current_age: int
    retirement_age: int
    current_savings: float = 0.0
    expected_return_rate: float = 0.07
    inflation_rate: float = 0.03
    # Legacy flat monthly saving, replaced by income_sources
    monthly_contribution: float = 0.0
    income_sources: list[IncomeStream] = field(default_factory=list)
    one_off_returns: list[OneOffReturn] = field(default_factory=list)
    expenses: list[RetirementExpense] = field(default_factory=list)
    loans: list[Loan] = field(default_factory=list)
    one_time_expenses: list[OneTimeExpense] = field(default_factory=list)
    cpf: CPFConfig | None = None
    withdrawal: WithdrawalConfig | None = None

    @property
    def cpf_enabled(self) -> bool:
        return self.cpf is not None and self.cpf.enabled
