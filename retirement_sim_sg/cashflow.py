"""Turn income, expense, loan and one-off records into monthly amounts."""

from collections.abc import Iterable

from retirement_sim_sg.loans import payment_for_month
from retirement_sim_sg.params import (
    MONTHS_PER_YEAR,
    AgeWindow,
    DateWindow,
    IncomeStream,
    Loan,
    OneOffReturn,
    OneTimeExpense,
    RetirementExpense,
    YearMonth,
    round2,
)

DAYS_PER_MONTH = 30.44
WEEKS_PER_YEAR = 52
DAYS_PER_YEAR = 365.25


def convert_to_monthly(amount: float, frequency: str, custom_days: float | None = None) -> float:
    """Convert an amount paid at `frequency` into a monthly amount. Unknown frequency -> 0."""
    if frequency == "daily":
        return amount * DAYS_PER_MONTH
    if frequency == "weekly":
        return amount * WEEKS_PER_YEAR / MONTHS_PER_YEAR
    if frequency == "monthly":
        return amount
    if frequency == "yearly":
        return amount / MONTHS_PER_YEAR
    if frequency == "custom":
        if not custom_days or custom_days <= 0:
            return 0.0
        return amount * DAYS_PER_YEAR / custom_days / MONTHS_PER_YEAR
    return 0.0


class CashFlowNormalizer:
    """Evaluate records against a month index counted from `anchor` (month zero).

    All start/end offsets are global: a stream starting in 2030-01 is active
    from the same month index no matter where the caller's loop begins.
    """

    def __init__(self, anchor: YearMonth, current_age: float):
        self.anchor = anchor
        self.current_age = current_age
        self._offsets: dict[str, int] = {}

    def offset(self, date: str) -> int:
        """Month offset of a YYYY-MM string from the anchor (negative = past)."""
        if date not in self._offsets:
            self._offsets[date] = self.anchor.months_until(YearMonth.parse(date))
        return self._offsets[date]

    def age_offset(self, age: float) -> int:
        """Month offset at which the person reaches `age`."""
        return round((age - self.current_age) * MONTHS_PER_YEAR)

    def calendar(self, month_index: int) -> YearMonth:
        return self.anchor.plus_months(month_index)

    def monthly_amount(
        self, record, month_index: int, year: int | None = None, month: int | None = None,
    ) -> float:
        """Amount `record` contributes in month `month_index` (0 when inactive)."""
        if isinstance(record, IncomeStream):
            return self._income_amount(record, month_index)
        if isinstance(record, RetirementExpense):
            return self._expense_amount(record, month_index)
        if isinstance(record, (OneOffReturn, OneTimeExpense)):
            return record.amount if self.offset(record.date) == month_index else 0.0
        if isinstance(record, Loan):
            if year is None or month is None:
                ym = self.calendar(month_index)
                year, month = ym.year, ym.month
            return payment_for_month(record, year, month)
        raise TypeError(f"Unsupported cash-flow record: {type(record).__name__}")

    def _income_amount(self, stream: IncomeStream, month_index: int) -> float:
        start = self.offset(stream.start_date)
        if month_index < start:
            return 0.0
        if stream.end_date is not None and month_index >= self.offset(stream.end_date):
            return 0.0
        return round2(convert_to_monthly(
            stream.amount, stream.frequency, stream.custom_frequency_days,
        ))

    def _window_bounds(self, window: DateWindow | AgeWindow) -> tuple[int, int | None]:
        if isinstance(window, AgeWindow):
            start_age = self.current_age if window.start_age is None else window.start_age
            end = None if window.end_age is None else self.age_offset(window.end_age)
            return self.age_offset(start_age), end
        start = 0 if window.start is None else self.offset(window.start)
        end = None if window.end is None else self.offset(window.end)
        return start, end

    def _expense_amount(self, expense: RetirementExpense, month_index: int) -> float:
        start, end = self._window_bounds(expense.window)
        if month_index < start or (end is not None and month_index >= end):
            return 0.0
        # Inflate from the later of the expense's own start and month zero
        years = max(0, month_index - max(start, 0)) / MONTHS_PER_YEAR
        return round2(expense.monthly_amount * (1 + expense.inflation_rate) ** years)

    def income_for_month(
        self,
        sources: Iterable[IncomeStream],
        month_index: int,
        one_off_returns: Iterable[OneOffReturn] = (),
    ) -> float:
        total = 0.0
        for source in sources:
            total = round2(total + self.monthly_amount(source, month_index))
        for one_off in one_off_returns:
            total = round2(total + self.monthly_amount(one_off, month_index))
        return total

    def cpf_eligible_income(self, sources: Iterable[IncomeStream], month_index: int) -> float:
        return self.income_for_month(
            (s for s in sources if s.cpf_eligible), month_index,
        )

    def expenses_for_month(
        self,
        expenses: Iterable[RetirementExpense],
        month_index: int,
        one_time_expenses: Iterable[OneTimeExpense] = (),
    ) -> float:
        """Recurring expenses (inflated) plus one-time expenses falling in this month.

        Loan payments are handled by the caller, since a housing loan may be
        partly paid from the ordinary account.
        """
        total = 0.0
        for expense in expenses:
            total = round2(total + self.monthly_amount(expense, month_index))
        for expense in one_time_expenses:
            total = round2(total + self.monthly_amount(expense, month_index))
        return total
