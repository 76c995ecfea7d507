"""Adapters from older input shapes to the current ones."""

import dataclasses

from retirement_sim_sg.params import (
    MONTHS_PER_YEAR,
    AgeWindow,
    DateWindow,
    IncomeStream,
    UserData,
    YearMonth,
)

LEGACY_VERSION = "1.0.0"
CURRENT_VERSION = "2.0.0"
LEGACY_INCOME_NAME = "Monthly Contribution (Legacy)"


def age_window_to_date_window(window: AgeWindow, current_age: float, anchor: YearMonth) -> DateWindow:
    """Express an age window as calendar months, counting from `anchor` at `current_age`."""

    def to_month(age: float | None) -> str | None:
        if age is None:
            return None
        return str(anchor.plus_months(round((age - current_age) * MONTHS_PER_YEAR)))

    return DateWindow(start=to_month(window.start_age), end=to_month(window.end_age))


def migrate_expense_windows(data: UserData, anchor: YearMonth) -> UserData:
    """Return a copy of `data` with every age-window expense converted to a date window."""
    if not any(isinstance(e.window, AgeWindow) for e in data.expenses):
        return data
    expenses = [
        dataclasses.replace(e, window=age_window_to_date_window(e.window, data.current_age, anchor))
        if isinstance(e.window, AgeWindow) else e
        for e in data.expenses
    ]
    return dataclasses.replace(data, expenses=expenses)


def needs_migration(payload: dict) -> bool:
    return payload.get("version") == LEGACY_VERSION


def migrate_v1_to_v2(payload: dict) -> dict:
    """Bump a raw v1 payload to v2. The user record itself is already compatible."""
    if not needs_migration(payload):
        return payload
    migrated = dict(payload)
    migrated["version"] = CURRENT_VERSION
    if "user" in payload:
        migrated["user"] = dict(payload["user"])
    return migrated


def convert_monthly_contribution_to_income_source(data: UserData, anchor: YearMonth) -> UserData:
    """Turn the legacy flat monthly saving into a monthly income stream starting at `anchor`.

    No-op when income streams already exist or there is nothing to convert.
    """
    if data.income_sources or data.monthly_contribution == 0:
        return data
    stream = IncomeStream(
        name=LEGACY_INCOME_NAME,
        amount=data.monthly_contribution,
        frequency="monthly",
        start_date=str(anchor),
        income_type="custom",
    )
    return dataclasses.replace(data, income_sources=[stream])
