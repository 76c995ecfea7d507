"""Tests for the CPF engine."""

import logging

import pytest
from retirement_sim_sg.cpf import (
    CPFLedger,
    NO_CONTRIBUTION,
    age55_withdrawal,
    allocate_contribution,
    apply_monthly_interest,
    apply_post55_contribution,
    calculate_contribution,
    calculate_extra_interest,
    calculate_monthly_interest,
    effective_interest_rate,
    handle_age55_transition,
    retirement_sum_progress,
)
from retirement_sim_sg.params import CPFAccounts, CPFConfig, round2
from retirement_sim_sg.rates import get_allocation_rate


class TestContribution:
    def test_standard_wage(self):
        c = calculate_contribution(5000, 30)
        assert c.employee == 1000
        assert c.employer == 850
        assert c.total == 1850

    def test_wage_capped_at_ceiling(self):
        c = calculate_contribution(10_000, 30)
        assert c.total == 2738
        assert c.employee == 1480
        assert c.employer == 1258

    def test_annual_limit_scales_both_portions(self):
        c = calculate_contribution(10_000, 30, year_to_date=37_000)
        assert c.total == 740
        assert c.employee == 400
        assert c.employer == 340

    def test_annual_limit_reached(self):
        assert calculate_contribution(5000, 30, year_to_date=37_740) == NO_CONTRIBUTION

    @pytest.mark.parametrize("wage", [0, -100])
    def test_no_wage(self, wage):
        assert calculate_contribution(wage, 30) == NO_CONTRIBUTION

    def test_older_bracket_lower_rates(self):
        assert calculate_contribution(5000, 62).total < calculate_contribution(5000, 50).total


class TestAllocation:
    @pytest.mark.parametrize("age", [25, 38, 44, 48, 53, 58, 63, 70])
    def test_shares_sum_to_total(self, age):
        acc = allocate_contribution(1850, age)
        assert acc.total == pytest.approx(1850, abs=0.02)

    def test_no_retirement_share_before_55(self):
        acc = allocate_contribution(1850, 30)
        assert acc.retirement == 0
        assert acc.special > 0

    def test_special_share_routed_to_retirement_after_55(self):
        acc = allocate_contribution(1000, 58)
        assert acc.special == 0
        assert acc.retirement == pytest.approx(538.4)

    def test_each_share_rounded_on_its_own(self):
        rates = get_allocation_rate(30)
        acc = allocate_contribution(1850, 30)
        assert acc.ordinary == round2(1850 * rates.ordinary)
        assert acc.special == round2(1850 * rates.special)
        assert acc.medisave == round2(1850 * rates.medisave)

    def test_contribution_carries_allocation(self):
        c = calculate_contribution(5000, 30)
        assert c.allocation.total == pytest.approx(c.total, abs=0.02)


class TestInterest:
    def test_base_interest_under_55(self):
        i = calculate_monthly_interest(CPFAccounts(12_000, 12_000, 12_000, 0), 40)
        assert i.ordinary == 25
        assert i.special == 40
        assert i.medisave == 40
        assert i.retirement == 0

    def test_no_special_interest_from_55(self):
        i = calculate_monthly_interest(CPFAccounts(0, 12_000, 0, 12_000), 60)
        assert i.special == 0
        assert i.retirement == 40

    def test_extra_interest_full_cap_under_55(self):
        assert calculate_extra_interest(CPFAccounts(20_000, 40_000, 0, 0), 40) == 50.0

    def test_extra_interest_ordinary_capped(self):
        assert calculate_extra_interest(CPFAccounts(100_000, 0, 0, 0), 40) == 16.67

    def test_extra_interest_tiers_from_55(self):
        assert calculate_extra_interest(CPFAccounts(0, 0, 0, 60_000), 60) == 75.0

    def test_extra_interest_first_tier_only(self):
        assert calculate_extra_interest(CPFAccounts(0, 0, 0, 12_000), 60) == 20.0

    def test_apply_monthly_interest_grows_balances(self):
        before = CPFAccounts(20_000, 40_000, 10_000, 0)
        after = apply_monthly_interest(before, 40)
        assert after.ordinary > before.ordinary
        assert after.special > before.special
        assert after.retirement == 0
        base = calculate_monthly_interest(before, 40)
        extra = calculate_extra_interest(before, 40)
        assert after.total == pytest.approx(before.total + base.total + extra, abs=0.02)

    def test_empty_accounts_earn_nothing(self):
        assert apply_monthly_interest(CPFAccounts(), 40) == CPFAccounts()

    def test_effective_rate(self):
        assert effective_interest_rate(CPFAccounts(10_000, 0, 0, 0), 30) == 0.035
        assert effective_interest_rate(CPFAccounts(), 30) == 0.0


class TestAge55Transition:
    def test_special_then_ordinary(self):
        r = handle_age55_transition(CPFAccounts(200_000, 100_000, 50_000, 0), "full")
        assert r.from_special == 100_000
        assert r.from_ordinary == 113_000
        assert r.accounts.retirement == 213_000
        assert r.accounts.ordinary == 87_000
        assert r.accounts.special == 0
        assert r.accounts.medisave == 50_000
        assert r.withdrawable == 5000

    def test_leftover_special_moves_to_ordinary(self):
        r = handle_age55_transition(CPFAccounts(10_000, 300_000, 0, 0), "full")
        assert r.accounts.retirement == 213_000
        assert r.accounts.ordinary == 97_000
        assert r.from_ordinary == 0

    def test_conservation(self):
        before = CPFAccounts(150_000, 80_000, 40_000, 0)
        r = handle_age55_transition(before, "enhanced")
        assert r.accounts.total == pytest.approx(before.total)
        assert r.total_transferred == 230_000

    def test_short_of_target(self):
        r = handle_age55_transition(CPFAccounts(50_000, 30_000, 0, 0), "basic")
        assert r.accounts.retirement == 80_000
        assert r.accounts.ordinary == 0

    def test_withdrawable_above_highest_sum(self):
        r = handle_age55_transition(CPFAccounts(400_000, 100_000, 0, 0), "basic")
        assert r.withdrawable == 74_000


class TestPost55Contribution:
    def test_routes_to_retirement(self):
        after = apply_post55_contribution(CPFAccounts(0, 0, 0, 100_000), CPFAccounts(100, 0, 300, 600))
        assert after.retirement == 100_600
        assert after.ordinary == 100
        assert after.medisave == 300

    def test_overflow_to_ordinary(self):
        after = apply_post55_contribution(CPFAccounts(0, 0, 0, 425_900), CPFAccounts(100, 0, 0, 500))
        assert after.retirement == 426_000
        assert after.ordinary == 500

    def test_special_balance_kept(self):
        after = apply_post55_contribution(CPFAccounts(0, 2_000, 0, 100_000), CPFAccounts(100, 0, 300, 600))
        assert after.special == 2_000
        assert after.retirement == 100_600


class TestReporting:
    def test_retirement_sum_progress(self):
        p = retirement_sum_progress(106_500, "full")
        assert p.target == 213_000
        assert p.shortfall == 106_500
        assert p.percentage_complete == 50.0
        assert not p.is_met

    def test_progress_capped_at_100(self):
        p = retirement_sum_progress(300_000, "full")
        assert p.percentage_complete == 100.0
        assert p.is_met

    def test_age55_withdrawal(self):
        w = age55_withdrawal(CPFAccounts(400_000, 100_000, 0, 0))
        assert w.excess_above_target == 74_000
        assert w.withdrawable == 74_000
        assert w.can_withdraw

    def test_age55_withdrawal_small_balance(self):
        w = age55_withdrawal(CPFAccounts(1000, 0, 0, 0))
        assert w.withdrawable == 5000
        assert not w.can_withdraw


class TestLedger:
    def setup_method(self):
        self.config = CPFConfig(enabled=True, balances=CPFAccounts(10_000, 5_000, 3_000, 0))

    def test_starts_from_copy(self):
        ledger = CPFLedger(self.config, 30)
        ledger.accounts.ordinary = 0
        assert self.config.balances.ordinary == 10_000

    def test_starting_past_55_means_transitioned(self):
        config = CPFConfig(enabled=True, balances=CPFAccounts(0, 0, 0, 50_000))
        ledger = CPFLedger(config, 60)
        assert ledger.transitioned
        assert ledger.transition_if_due(60) is None

    def test_retirement_balance_before_55_still_transitions(self):
        config = CPFConfig(enabled=True, balances=CPFAccounts(50_000, 40_000, 10_000, 1_000))
        ledger = CPFLedger(config, 54)
        assert not ledger.transitioned
        result = ledger.transition_if_due(55.0)
        assert result.from_special == 40_000
        assert ledger.accounts.special == 0
        assert ledger.accounts.retirement == 1_000 + result.total_transferred
        assert ledger.accounts.total == 101_000

    def test_transition_once(self, caplog):
        ledger = CPFLedger(self.config, 54)
        assert ledger.transition_if_due(54.9) is None
        with caplog.at_level(logging.DEBUG, logger="retirement_sim_sg.cpf"):
            result = ledger.transition_if_due(55.0)
        assert result is not None
        assert ledger.accounts.special == 0
        assert ledger.accounts.retirement == 15_000
        assert "Age-55 transition" in caplog.text
        assert ledger.transition_if_due(56) is None

    def test_contribute_tracks_year_to_date(self):
        ledger = CPFLedger(self.config, 30)
        ledger.contribute(5000, 30)
        ledger.contribute(5000, 30)
        assert ledger.year_to_date == 3700
        assert ledger.accounts.total == pytest.approx(18_000 + 3700, abs=0.05)
        ledger.reset_year_to_date()
        assert ledger.year_to_date == 0

    def test_contribute_after_55_funds_retirement(self):
        config = CPFConfig(enabled=True, balances=CPFAccounts(0, 0, 0, 100_000))
        ledger = CPFLedger(config, 58)
        ledger.contribute(5000, 58)
        assert ledger.accounts.retirement > 100_000
        assert ledger.accounts.special == 0

    def test_pay_from_ordinary(self):
        ledger = CPFLedger(self.config, 30)
        assert ledger.pay_from_ordinary(4000) == 4000
        assert ledger.accounts.ordinary == 6000
        assert ledger.pay_from_ordinary(10_000) == 6000
        assert ledger.accounts.ordinary == 0
        assert ledger.pay_from_ordinary(100) == 0

    def test_accrue_interest(self):
        ledger = CPFLedger(self.config, 30)
        before = ledger.accounts.total
        base, extra = ledger.accrue_interest(30)
        assert extra > 0
        assert ledger.accounts.total == pytest.approx(before + base.total + extra, abs=0.02)
