"""Tests for the post-retirement drawdown loop."""

import logging

import pytest
from retirement_sim_sg.cashflow import CashFlowNormalizer
from retirement_sim_sg.depletion import (
    AnnuityIncome,
    annual_withdrawal,
    check_sustainability_warning,
    initial_monthly_expenses,
    simulate_depletion,
    withdrawal_amount,
    years_until_depletion,
)
from retirement_sim_sg.params import (
    DateWindow,
    Loan,
    OneTimeExpense,
    RetirementExpense,
    UserData,
    WithdrawalConfig,
    YearMonth,
)

ANCHOR = YearMonth(2025, 1)


def _retiree(expense=1000.0, rate=0.0, inflation=0.0, **kw) -> UserData:
    expenses = [RetirementExpense("Living", expense, inflation, DateWindow())] if expense else []
    return UserData(current_age=65, retirement_age=65, expected_return_rate=rate, expenses=expenses, **kw)


class TestWithdrawalAmount:
    def test_none(self):
        assert withdrawal_amount(None, 10_000) == 0

    def test_fixed(self):
        assert withdrawal_amount(WithdrawalConfig("fixed", fixed_amount=2000), 10_000) == 2000

    def test_percentage(self):
        assert withdrawal_amount(WithdrawalConfig("percentage", percentage=0.12), 10_000) == 100

    def test_combined(self):
        config = WithdrawalConfig("combined", fixed_amount=500, percentage=0.12)
        assert withdrawal_amount(config, 10_000) == 600

    def test_percentage_of_negative_balance(self):
        assert withdrawal_amount(WithdrawalConfig("percentage", percentage=0.12), -500) == 0


class TestSimulateDepletion:
    def setup_method(self):
        self.n = CashFlowNormalizer(ANCHOR, current_age=65)

    def test_runs_out(self):
        outcome = simulate_depletion(_retiree(), self.n, 12_000, 0)
        assert outcome.depleted
        assert outcome.years_until_depletion == 0.92
        assert outcome.depletion_age == 65.92
        assert len(outcome.records) == 12

    def test_annuity_stretches_portfolio(self):
        annuity = AnnuityIncome(0, 500.0)
        outcome = simulate_depletion(_retiree(), self.n, 12_000, 0, annuity)
        assert outcome.years_until_depletion == 1.92
        assert outcome.records[0].annuity_income == 500

    def test_shortfall_stops_before_withdrawal(self):
        outcome = simulate_depletion(_retiree(), self.n, 2500, 0)
        assert len(outcome.records) == 2
        assert outcome.years_until_depletion == 0.17

    def test_lasts_to_max_age(self):
        outcome = simulate_depletion(_retiree(), self.n, 1_000_000, 0, max_age=66)
        assert not outcome.depleted
        assert outcome.depletion_age is None
        assert len(outcome.records) == 12

    def test_balance_decreases_monotonically(self):
        outcome = simulate_depletion(_retiree(rate=0.02), self.n, 50_000, 0)
        values = [r.portfolio_value for r in outcome.records]
        assert all(b < a for a, b in zip(values, values[1:]))

    def test_growth_recorded(self):
        outcome = simulate_depletion(_retiree(expense=0, rate=0.12), self.n, 10_000, 0, max_age=66)
        first = outcome.records[0]
        assert first.growth == 100
        assert first.portfolio_value == 10_100

    def test_strategy_above_expenses(self):
        data = _retiree(withdrawal=WithdrawalConfig("fixed", fixed_amount=2000))
        outcome = simulate_depletion(data, self.n, 100_000, 0, max_age=66)
        assert outcome.records[0].withdrawal == 2000
        assert outcome.records[0].expenses == 1000

    def test_expense_inflation_from_its_own_start(self):
        data = _retiree(expense=0)
        data.expenses = [RetirementExpense("Care", 1000, 0.10, DateWindow(start="2026-01"))]
        outcome = simulate_depletion(data, self.n, 1_000_000, 12, max_age=70)
        assert outcome.records[0].expenses == 1000
        assert outcome.records[12].expenses == 1100

    def test_starts_at_offset_calendar(self):
        outcome = simulate_depletion(_retiree(), self.n, 100_000, 14, max_age=70)
        first = outcome.records[0]
        assert (first.year, first.month) == (2026, 3)
        assert first.age == pytest.approx(66.17)

    def test_loan_payments_and_one_time_expenses_drawn(self):
        data = _retiree(
            loans=[Loan("Car", 10_000, 0.06, 12, "2025-01")],
            one_time_expenses=[OneTimeExpense("Roof", 5000, "2025-02")],
        )
        outcome = simulate_depletion(data, self.n, 100_000, 0, max_age=66)
        assert outcome.records[0].expenses == pytest.approx(1860.66)
        assert outcome.records[1].expenses == pytest.approx(6860.66)

    def test_depletion_logged(self, caplog):
        with caplog.at_level(logging.DEBUG, logger="retirement_sim_sg.depletion"):
            simulate_depletion(_retiree(), self.n, 12_000, 0)
        assert "depleted" in caplog.text

    def test_years_until_depletion_wrapper(self):
        assert years_until_depletion(_retiree(), self.n, 12_000, 0) == 0.92
        assert years_until_depletion(_retiree(), self.n, 1_000_000, 0, max_age=66) is None


class TestAnnuityIncome:
    def test_starts_at_offset(self):
        a = AnnuityIncome(12, 1000.0, "escalating")
        assert a.for_month(11) == 0
        assert a.for_month(12) == 1000
        assert a.for_month(24) == 1020

    def test_zero_payout(self):
        assert AnnuityIncome(0, 0.0).for_month(5) == 0


class TestSustainability:
    def test_initial_monthly_expenses(self):
        n = CashFlowNormalizer(ANCHOR, current_age=65)
        data = _retiree(loans=[Loan("Flat", 100_000, 0.05, 360, "2025-01")])
        assert initial_monthly_expenses(data, n, 0) == pytest.approx(1536.82)

    def test_annual_withdrawal_uses_larger(self):
        assert annual_withdrawal(WithdrawalConfig("fixed", fixed_amount=3000), 1_000_000, 1000) == 36_000
        assert annual_withdrawal(WithdrawalConfig("percentage", percentage=0.04), 1_000_000, 1000) == 40_000
        assert annual_withdrawal(None, 1_000_000, 1000) == 12_000

    def test_warning_threshold(self):
        assert not check_sustainability_warning(1_000_000, 40_000)
        assert not check_sustainability_warning(1_000_000, 50_000)
        assert check_sustainability_warning(1_000_000, 60_000)

    def test_warning_on_empty_portfolio(self):
        assert check_sustainability_warning(0, 0)
