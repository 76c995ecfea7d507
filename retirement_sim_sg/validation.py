"""Input validation. Issues are collected, never raised, except by `require_valid`."""

from dataclasses import dataclass

from retirement_sim_sg.params import (
    FREQUENCIES,
    MAX_AGE,
    MIN_AGE,
    WITHDRAWAL_STRATEGIES,
    AgeWindow,
    DateWindow,
    UserData,
    YearMonth,
    is_valid_month_string,
)
from retirement_sim_sg.rates import ANNUITY_PLANS, DEFERRED_PAYOUT_AGE, PAYOUT_AGE, RETIREMENT_SUM_TARGETS

MIN_INFLATION_RATE = -0.5
MAX_INFLATION_RATE = 1.0
MAX_LOAN_TERM_MONTHS = 600


@dataclass(frozen=True)
class ValidationIssue:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class InvalidInputError(ValueError):
    """Raised by the full-result entry point when validation fails."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        super().__init__("Invalid input data: " + ", ".join(i.message for i in issues))


def _blank(s: str | None) -> bool:
    return not s or not s.strip()


def _end_after_start(start: str, end: str) -> bool:
    return YearMonth.parse(end) > YearMonth.parse(start)


def _check_income_sources(data: UserData) -> list[ValidationIssue]:
    issues = []
    for i, src in enumerate(data.income_sources):
        p = f"income_sources[{i}]"
        if _blank(src.name):
            issues.append(ValidationIssue(f"{p}.name", "Income source name is required"))
        if src.amount < 0:
            issues.append(ValidationIssue(f"{p}.amount", "Income amount cannot be negative"))
        if src.frequency not in FREQUENCIES:
            issues.append(ValidationIssue(
                f"{p}.frequency", f"Frequency must be one of {', '.join(FREQUENCIES)}",
            ))
        start_ok = is_valid_month_string(src.start_date)
        if not start_ok:
            issues.append(ValidationIssue(f"{p}.start_date", "Start date must be in YYYY-MM format"))
        if src.end_date is not None:
            if not is_valid_month_string(src.end_date):
                issues.append(ValidationIssue(f"{p}.end_date", "End date must be in YYYY-MM format"))
            elif start_ok and not _end_after_start(src.start_date, src.end_date):
                issues.append(ValidationIssue(f"{p}.end_date", "End date must be after start date"))
        if src.frequency == "custom" and (not src.custom_frequency_days or src.custom_frequency_days <= 0):
            issues.append(ValidationIssue(
                f"{p}.custom_frequency_days", "Custom frequency days must be greater than 0",
            ))
    return issues


def _check_one_off_returns(data: UserData) -> list[ValidationIssue]:
    issues = []
    for i, ret in enumerate(data.one_off_returns):
        p = f"one_off_returns[{i}]"
        if not is_valid_month_string(ret.date):
            issues.append(ValidationIssue(f"{p}.date", "Date must be in YYYY-MM format"))
        if ret.amount <= 0:
            issues.append(ValidationIssue(f"{p}.amount", "Amount must be greater than 0"))
        if _blank(ret.description):
            issues.append(ValidationIssue(f"{p}.description", "Description is required"))
    return issues


def _check_expense_window(window, prefix: str, current_age: float) -> list[ValidationIssue]:
    issues = []
    if isinstance(window, AgeWindow):
        if window.start_age is not None and window.start_age < current_age:
            issues.append(ValidationIssue(
                f"{prefix}.start_age", "Start age cannot be in the past (must be at or after current age)",
            ))
        if window.end_age is not None:
            if window.end_age <= current_age:
                issues.append(ValidationIssue(f"{prefix}.end_age", "End age must be after current age"))
            if window.start_age is not None and window.end_age <= window.start_age:
                issues.append(ValidationIssue(f"{prefix}.end_age", "End age must be after start age"))
    elif isinstance(window, DateWindow):
        start_ok = window.start is None or is_valid_month_string(window.start)
        if not start_ok:
            issues.append(ValidationIssue(f"{prefix}.start", "Start date must be in YYYY-MM format"))
        if window.end is not None:
            if not is_valid_month_string(window.end):
                issues.append(ValidationIssue(f"{prefix}.end", "End date must be in YYYY-MM format"))
            elif window.start is not None and start_ok and not _end_after_start(window.start, window.end):
                issues.append(ValidationIssue(f"{prefix}.end", "End date must be after start date"))
    else:
        issues.append(ValidationIssue(prefix, "Window must be a date window or an age window"))
    return issues


def _check_expenses(data: UserData) -> list[ValidationIssue]:
    issues = []
    for i, exp in enumerate(data.expenses):
        p = f"expenses[{i}]"
        if _blank(exp.name):
            issues.append(ValidationIssue(f"{p}.name", "Expense name is required"))
        if exp.monthly_amount < 0:
            issues.append(ValidationIssue(f"{p}.monthly_amount", "Monthly amount cannot be negative"))
        if not MIN_INFLATION_RATE <= exp.inflation_rate <= MAX_INFLATION_RATE:
            issues.append(ValidationIssue(
                f"{p}.inflation_rate", "Inflation rate must be between -50% and 100%",
            ))
        issues.extend(_check_expense_window(exp.window, f"{p}.window", data.current_age))
    return issues


def _check_loans(data: UserData) -> list[ValidationIssue]:
    issues = []
    for i, loan in enumerate(data.loans):
        p = f"loans[{i}]"
        if _blank(loan.name):
            issues.append(ValidationIssue(f"{p}.name", "Loan name is required"))
        if loan.principal <= 0:
            issues.append(ValidationIssue(f"{p}.principal", "Principal must be greater than 0"))
        if not 0 <= loan.interest_rate <= 1:
            issues.append(ValidationIssue(f"{p}.interest_rate", "Interest rate must be between 0% and 100%"))
        if (not isinstance(loan.term_months, int)
                or not 1 <= loan.term_months <= MAX_LOAN_TERM_MONTHS):
            issues.append(ValidationIssue(
                f"{p}.term_months", f"Term must be a whole number of months between 1 and {MAX_LOAN_TERM_MONTHS}",
            ))
        if not is_valid_month_string(loan.start_date):
            issues.append(ValidationIssue(f"{p}.start_date", "Start date must be in YYYY-MM format"))
        if not 0 <= loan.cpf_percentage <= 100:
            issues.append(ValidationIssue(f"{p}.cpf_percentage", "CPF percentage must be between 0 and 100"))
        for j, extra in enumerate(loan.extra_payments):
            q = f"{p}.extra_payments[{j}]"
            if not is_valid_month_string(extra.date):
                issues.append(ValidationIssue(f"{q}.date", "Date must be in YYYY-MM format"))
            if extra.amount <= 0:
                issues.append(ValidationIssue(f"{q}.amount", "Amount must be greater than 0"))
    return issues


def _check_one_time_expenses(data: UserData) -> list[ValidationIssue]:
    issues = []
    for i, exp in enumerate(data.one_time_expenses):
        p = f"one_time_expenses[{i}]"
        if _blank(exp.name):
            issues.append(ValidationIssue(f"{p}.name", "Expense name is required"))
        if exp.amount <= 0:
            issues.append(ValidationIssue(f"{p}.amount", "Amount must be greater than 0"))
        if not is_valid_month_string(exp.date):
            issues.append(ValidationIssue(f"{p}.date", "Date must be in YYYY-MM format"))
    return issues


def _check_withdrawal(data: UserData) -> list[ValidationIssue]:
    cfg = data.withdrawal
    if cfg is None:
        return []
    issues = []
    if cfg.strategy not in WITHDRAWAL_STRATEGIES:
        issues.append(ValidationIssue(
            "withdrawal.strategy", f"Strategy must be one of {', '.join(WITHDRAWAL_STRATEGIES)}",
        ))
    if cfg.strategy in ("fixed", "combined") and (cfg.fixed_amount is None or cfg.fixed_amount < 0):
        issues.append(ValidationIssue(
            "withdrawal.fixed_amount", "Fixed amount must be specified and cannot be negative",
        ))
    if cfg.strategy in ("percentage", "combined") and (
            cfg.percentage is None or not 0 <= cfg.percentage <= 1):
        issues.append(ValidationIssue(
            "withdrawal.percentage", "Percentage must be specified and between 0% and 100%",
        ))
    return issues


def _check_cpf(data: UserData) -> list[ValidationIssue]:
    cfg = data.cpf
    if cfg is None or not cfg.enabled:
        return []
    issues = []
    for name in ("ordinary", "special", "medisave", "retirement"):
        if getattr(cfg.balances, name) < 0:
            issues.append(ValidationIssue(f"cpf.balances.{name}", "CPF balances cannot be negative"))
    if cfg.retirement_sum_target not in RETIREMENT_SUM_TARGETS:
        issues.append(ValidationIssue(
            "cpf.retirement_sum_target", f"Target must be one of {', '.join(RETIREMENT_SUM_TARGETS)}",
        ))
    if cfg.plan not in ANNUITY_PLANS:
        issues.append(ValidationIssue("cpf.plan", f"Plan must be one of {', '.join(ANNUITY_PLANS)}"))
    if cfg.payout_age not in (PAYOUT_AGE, DEFERRED_PAYOUT_AGE):
        issues.append(ValidationIssue(
            "cpf.payout_age", f"Payout age must be {PAYOUT_AGE} or {DEFERRED_PAYOUT_AGE}",
        ))
    return issues


def validate_inputs(data: UserData) -> list[ValidationIssue]:
    """Return every problem found in `data`. An empty list means valid."""
    issues = []
    if not MIN_AGE <= data.current_age <= MAX_AGE:
        issues.append(ValidationIssue("current_age", f"Current age must be between {MIN_AGE} and {MAX_AGE}"))
    if not MIN_AGE <= data.retirement_age <= MAX_AGE:
        issues.append(ValidationIssue(
            "retirement_age", f"Retirement age must be between {MIN_AGE} and {MAX_AGE}",
        ))
    if data.current_age >= data.retirement_age:
        issues.append(ValidationIssue("retirement_age", "Retirement age must be greater than current age"))
    if data.current_savings < 0:
        issues.append(ValidationIssue("current_savings", "Current savings cannot be negative"))
    if data.monthly_contribution < 0:
        issues.append(ValidationIssue("monthly_contribution", "Monthly contribution cannot be negative"))
    if not 0 <= data.expected_return_rate <= 1:
        issues.append(ValidationIssue(
            "expected_return_rate", "Expected return rate must be between 0% and 100%",
        ))
    if not 0 <= data.inflation_rate <= 1:
        issues.append(ValidationIssue("inflation_rate", "Inflation rate must be between 0% and 100%"))

    issues.extend(_check_income_sources(data))
    issues.extend(_check_one_off_returns(data))
    issues.extend(_check_expenses(data))
    issues.extend(_check_loans(data))
    issues.extend(_check_one_time_expenses(data))
    issues.extend(_check_withdrawal(data))
    issues.extend(_check_cpf(data))
    return issues


def require_valid(data: UserData) -> None:
    """Raise InvalidInputError listing every issue, if any."""
    issues = validate_inputs(data)
    if issues:
        raise InvalidInputError(issues)
