"""Tests for input records and calendar/money helpers."""

import pytest
from retirement_sim_sg.params import (
    CPFAccounts,
    CPFConfig,
    UserData,
    YearMonth,
    is_valid_month_string,
    round2,
)


class TestRound2:
    def test_half_rounds_up(self):
        assert round2(0.125) == 0.13

    def test_negative_half_rounds_toward_positive(self):
        """Matches JS Math.round: -12.5 -> -12."""
        assert round2(-0.125) == -0.12

    def test_already_rounded(self):
        assert round2(536.82) == 536.82
        assert round2(10.0) == 10.0


class TestYearMonth:
    def test_parse_and_format(self):
        ym = YearMonth.parse("2025-03")
        assert ym == YearMonth(2025, 3)
        assert str(ym) == "2025-03"

    def test_plus_months_crosses_year(self):
        assert YearMonth(2025, 3).plus_months(10) == YearMonth(2026, 1)
        assert YearMonth(2025, 3).plus_months(-3) == YearMonth(2024, 12)

    def test_months_until(self):
        assert YearMonth(2025, 1).months_until(YearMonth(2026, 3)) == 14
        assert YearMonth(2025, 1).months_until(YearMonth(2024, 12)) == -1

    def test_ordering(self):
        assert YearMonth(2025, 12) < YearMonth(2026, 1)

    @pytest.mark.parametrize("bad", ["2025-13", "2025-1", "25-01", "1899-12", "2201-01", ""])
    def test_parse_rejects(self, bad):
        assert not is_valid_month_string(bad)
        with pytest.raises(ValueError, match="YYYY-MM"):
            YearMonth.parse(bad)


class TestRecords:
    def test_cpf_accounts_total_and_copy(self):
        acc = CPFAccounts(1.0, 2.0, 3.0, 4.0)
        copy = acc.copy()
        copy.ordinary = 100.0
        assert acc.total == 10.0
        assert acc.ordinary == 1.0

    def test_cpf_enabled(self):
        data = UserData(current_age=30, retirement_age=65)
        assert not data.cpf_enabled
        data.cpf = CPFConfig(enabled=False)
        assert not data.cpf_enabled
        data.cpf = CPFConfig(enabled=True)
        assert data.cpf_enabled
