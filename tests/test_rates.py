"""Tests for CPF rate tables."""

import pytest
from retirement_sim_sg.rates import (
    ALLOCATION_RATES,
    CONTRIBUTION_RATES,
    HIGHEST_RETIREMENT_SUM,
    RateTableError,
    get_allocation_rate,
    get_contribution_rate,
    get_retirement_sum,
    validate_rate_tables,
)


class TestTableIntegrity:
    def test_validate_passes(self):
        validate_rate_tables()

    @pytest.mark.parametrize("table", [CONTRIBUTION_RATES, ALLOCATION_RATES])
    def test_contiguous_from_zero(self, table):
        assert table[0].age_min == 0
        for prev, cur in zip(table, table[1:]):
            assert cur.age_min == prev.age_max + 1
        assert table[-1].age_max >= 120

    def test_allocation_rows_sum_to_one(self):
        for b in ALLOCATION_RATES:
            assert b.total == pytest.approx(1.0, abs=1e-4), f"{b.age_min}-{b.age_max}"

    def test_no_retirement_share_before_55(self):
        for b in ALLOCATION_RATES:
            if b.age_max <= 55:
                assert b.retirement == 0

    def test_no_special_share_after_55(self):
        for b in ALLOCATION_RATES:
            if b.age_min > 55:
                assert b.special == 0


class TestLookups:
    def test_contribution_standard_bracket(self):
        b = get_contribution_rate(30)
        assert b.employer_rate == 0.17
        assert b.employee_rate == 0.20

    def test_contribution_bracket_edges(self):
        assert get_contribution_rate(55).employee_rate == 0.20
        assert get_contribution_rate(56).employee_rate == 0.17
        assert get_contribution_rate(120).employee_rate == 0.075

    def test_allocation_after_55(self):
        b = get_allocation_rate(58)
        assert b.special == 0
        assert b.retirement == 0.5384

    def test_age_outside_table_is_fatal(self):
        with pytest.raises(RateTableError, match="age 121"):
            get_contribution_rate(121)
        with pytest.raises(RateTableError):
            get_allocation_rate(-1)


class TestRetirementSums:
    def test_tiers(self):
        assert get_retirement_sum("basic") == 106_500
        assert get_retirement_sum("full") == 213_000
        assert get_retirement_sum("enhanced") == 426_000

    def test_unknown_falls_back_to_full(self):
        assert get_retirement_sum("platinum") == 213_000

    def test_highest(self):
        assert HIGHEST_RETIREMENT_SUM == 426_000
