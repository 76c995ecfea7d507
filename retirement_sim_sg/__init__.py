"""Retirement Projection Package (Singapore CPF)."""

from retirement_sim_sg.params import (
    AgeWindow,
    CPFAccounts,
    CPFConfig,
    DateWindow,
    ExtraPayment,
    IncomeStream,
    Loan,
    OneOffReturn,
    OneTimeExpense,
    RetirementExpense,
    UserData,
    WithdrawalConfig,
    YearMonth,
    round2,
)
from retirement_sim_sg.rates import RateTableError, validate_rate_tables
from retirement_sim_sg.cashflow import CashFlowNormalizer, convert_to_monthly
from retirement_sim_sg.loans import (
    PaymentBreakdown,
    amortization_schedule,
    calculate_monthly_payment,
    payment_for_month,
    total_interest,
)
from retirement_sim_sg.cpf import (
    CPFContribution,
    CPFLedger,
    apply_monthly_interest,
    calculate_contribution,
    handle_age55_transition,
)
from retirement_sim_sg.annuity import estimate_monthly_payout, payout_for_year
from retirement_sim_sg.depletion import simulate_depletion
from retirement_sim_sg.simulation import (
    CalculationResult,
    MonthlyDataPoint,
    Projection,
    calculate_retirement,
    generate_monthly_projections,
    project,
)
from retirement_sim_sg.validation import InvalidInputError, ValidationIssue, validate_inputs

__all__ = [
    "AgeWindow",
    "CPFAccounts",
    "CPFConfig",
    "DateWindow",
    "ExtraPayment",
    "IncomeStream",
    "Loan",
    "OneOffReturn",
    "OneTimeExpense",
    "RetirementExpense",
    "UserData",
    "WithdrawalConfig",
    "YearMonth",
    "round2",
    "RateTableError",
    "validate_rate_tables",
    "CashFlowNormalizer",
    "convert_to_monthly",
    "PaymentBreakdown",
    "amortization_schedule",
    "calculate_monthly_payment",
    "payment_for_month",
    "total_interest",
    "CPFContribution",
    "CPFLedger",
    "apply_monthly_interest",
    "calculate_contribution",
    "handle_age55_transition",
    "estimate_monthly_payout",
    "payout_for_year",
    "simulate_depletion",
    "CalculationResult",
    "MonthlyDataPoint",
    "Projection",
    "calculate_retirement",
    "generate_monthly_projections",
    "project",
    "InvalidInputError",
    "ValidationIssue",
    "validate_inputs",
]
