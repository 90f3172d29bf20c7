"""
Contribution and Loan Ledger Calculator for Chama savings groups.
"""

from .settings import LedgerSettings, ledger_settings
from .models import (
    ApprovalStatus,
    ArrearsResult,
    Classification,
    Loan,
    LoanBalance,
    LoanInstallment,
    LoanInterestRule,
    LoanPayment,
    LoanPaymentStatus,
    LoanPortfolioSummary,
    LoanRules,
    LoanStatus,
    MemberFinancialSummary,
    MemberPeriodSummary,
    MonthlyContributionRule,
    PaymentEntry,
    PaymentInput,
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    PaymentType,
    PenaltyRule,
    PeriodSummary,
    Rules,
    SeedMoneyRule,
)
from .money import (
    apply_rate,
    clamp_zero,
    format_currency,
    format_number_with_commas,
    from_cents,
    parse_formatted_number,
    percentage,
    to_cents,
)
from .rules import (
    expected_amount_for,
    normalize_payment_method,
    normalize_rules,
    penalty_rule_for,
    validate_rules,
)
from .schedule import build_member_records, contribution_due_date, cycle_periods, validate_period
from .transitions import derive_record_approval
from .arrears import compute_arrears
from .payments import (
    apply_payment,
    approve_entry,
    check_record_cache,
    recompute_record,
    reject_entry,
)
from .loans import (
    approve_loan,
    approve_repayment,
    check_loan_cache,
    disburse_loan,
    interest_schedule,
    loan_balance,
    recompute_loan,
    reject_loan,
    reject_repayment,
    request_loan,
    submit_repayment,
)
from .aggregation import (
    member_financial_summary,
    reconcile_summary,
    summarize_loans,
    summarize_period,
)

__all__ = [
    # Settings
    "LedgerSettings",
    "ledger_settings",
    # Models
    "ApprovalStatus",
    "ArrearsResult",
    "Classification",
    "Loan",
    "LoanBalance",
    "LoanInstallment",
    "LoanInterestRule",
    "LoanPayment",
    "LoanPaymentStatus",
    "LoanPortfolioSummary",
    "LoanRules",
    "LoanStatus",
    "MemberFinancialSummary",
    "MemberPeriodSummary",
    "MonthlyContributionRule",
    "PaymentEntry",
    "PaymentInput",
    "PaymentMethod",
    "PaymentRecord",
    "PaymentStatus",
    "PaymentType",
    "PenaltyRule",
    "PeriodSummary",
    "Rules",
    "SeedMoneyRule",
    # Money
    "apply_rate",
    "clamp_zero",
    "format_currency",
    "format_number_with_commas",
    "from_cents",
    "parse_formatted_number",
    "percentage",
    "to_cents",
    # Rules
    "expected_amount_for",
    "normalize_payment_method",
    "normalize_rules",
    "penalty_rule_for",
    "validate_rules",
    # Schedule
    "build_member_records",
    "contribution_due_date",
    "cycle_periods",
    "validate_period",
    # Arrears
    "compute_arrears",
    "derive_record_approval",
    # Payments
    "apply_payment",
    "approve_entry",
    "check_record_cache",
    "recompute_record",
    "reject_entry",
    # Loans
    "approve_loan",
    "approve_repayment",
    "check_loan_cache",
    "disburse_loan",
    "interest_schedule",
    "loan_balance",
    "recompute_loan",
    "reject_loan",
    "reject_repayment",
    "request_loan",
    "submit_repayment",
    # Aggregation
    "member_financial_summary",
    "reconcile_summary",
    "summarize_loans",
    "summarize_period",
]
