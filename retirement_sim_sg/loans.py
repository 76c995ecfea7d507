"""Loan amortization: level monthly payment, schedule with extra payments, lookups by month."""

from dataclasses import dataclass

from retirement_sim_sg.params import MONTHS_PER_YEAR, Loan, YearMonth, round2

BALANCE_EPSILON = 0.005  # below half a cent the loan is paid off


@dataclass(frozen=True)
class PaymentBreakdown:
    month_index: int  # 0 = first payment, counted from the loan's start month
    payment: float    # scheduled payment actually due (interest + principal)
    principal: float
    interest: float
    extra_payment: float
    remaining_balance: float


def calculate_monthly_payment(principal: float, annual_rate: float, term_months: int) -> float:
    """Level monthly payment M = P*r(1+r)^n / ((1+r)^n - 1), rounded to the cent."""
    if principal <= 0 or term_months <= 0:
        return 0.0
    if annual_rate == 0:
        return round2(principal / term_months)
    r = annual_rate / MONTHS_PER_YEAR
    n = term_months
    return round2(principal * r * (1 + r) ** n / ((1 + r) ** n - 1))


def _extra_payments_by_month(loan: Loan, start: YearMonth) -> dict[int, float]:
    extras: dict[int, float] = {}
    for extra in loan.extra_payments:
        idx = start.months_until(YearMonth.parse(extra.date))
        if 0 <= idx < loan.term_months:
            extras[idx] = round2(extras.get(idx, 0.0) + extra.amount)
    return extras


def amortization_schedule(loan: Loan) -> list[PaymentBreakdown]:
    """Month-by-month schedule. Shorter than the term when extra payments pay it off early."""
    payment = calculate_monthly_payment(loan.principal, loan.interest_rate, loan.term_months)
    if payment == 0:
        return []
    monthly_rate = loan.interest_rate / MONTHS_PER_YEAR
    extras = _extra_payments_by_month(loan, YearMonth.parse(loan.start_date))
    last_index = loan.term_months - 1

    schedule: list[PaymentBreakdown] = []
    balance = round2(loan.principal)
    idx = 0
    while balance > BALANCE_EPSILON and idx < loan.term_months:
        interest = round2(balance * monthly_rate)
        if idx == last_index:
            principal = balance  # final payment clears residual cents
        else:
            principal = min(max(0.0, round2(payment - interest)), balance)
        extra = min(extras.get(idx, 0.0), round2(balance - principal))
        balance = round2(balance - principal - extra)
        schedule.append(PaymentBreakdown(
            month_index=idx,
            payment=round2(interest + principal),
            principal=principal,
            interest=interest,
            extra_payment=extra,
            remaining_balance=balance,
        ))
        idx += 1
    return schedule


def total_interest(loan: Loan) -> float:
    total = 0.0
    for row in amortization_schedule(loan):
        total = round2(total + row.interest)
    return total


def payment_for_month(
    loan: Loan, year: int, month: int, schedule: list[PaymentBreakdown] | None = None,
) -> float:
    """Payment plus extra payment due in the given calendar month, 0 if none.

    Pass a precomputed `schedule` when calling repeatedly for the same loan.
    """
    idx = YearMonth.parse(loan.start_date).months_until(YearMonth(year, month))
    if idx < 0:
        return 0.0
    if schedule is None:
        schedule = amortization_schedule(loan)
    if idx >= len(schedule):
        return 0.0
    row = schedule[idx]
    return round2(row.payment + row.extra_payment)
