"""
Loan ledger: request, approval, disbursement and repayment of member loans.

Interest Model:
    The principal is split evenly over the repayment months (any remainder
    goes on the first installment). Each month is charged interest once, at
    the rate of its bucket, on the principal still outstanding at the start
    of that month:

        month 1      -> loan_interest.month1
        month 2      -> loan_interest.month2
        month 3 .. n -> loan_interest.month3_and_beyond

    Interest is flat per bucket and never compounds. Total interest and total
    repayable are fixed when the loan is approved and never change.

Lifecycle:
    pending -> approved -> active -> repaid
    pending -> rejected

    A loan becomes repaid automatically when its approved repayments reach
    the total repayable.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from chama_ledger.domain.exceptions import (
    InconsistentLedgerException,
    PaymentEntryNotFoundException,
    StateTransitionException,
    ValidationException,
)

from .dates import as_utc
from .models import (
    Loan,
    LoanBalance,
    LoanInstallment,
    LoanInterestRule,
    LoanPayment,
    LoanPaymentStatus,
    LoanStatus,
    PaymentInput,
    Rules,
)
from .money import apply_rate, clamp_zero, percentage
from .settings import LedgerSettings, ledger_settings
from .transitions import check_loan_payment_transition, check_loan_transition

OPEN_LOAN_STATUSES = (LoanStatus.PENDING, LoanStatus.APPROVED, LoanStatus.ACTIVE)


def interest_schedule(
    principal_cents: int,
    months: int,
    interest_rule: LoanInterestRule,
) -> Tuple[LoanInstallment, ...]:
    """
    Build the repayment schedule of a loan.

    Example:
        100,000.00 over 1 month at month1 = 10%
        -> one installment: principal 100,000.00, interest 10,000.00

        90,000.00 over 3 months at 10% / 5% / 5%
        -> principal 30,000.00 each month
        -> interest 9,000.00 (on 90k), 3,000.00 (on 60k), 1,500.00 (on 30k)

    Args:
        principal_cents: Amount lent
        months: Number of monthly installments (at least 1)
        interest_rule: Rates by month bucket

    Returns:
        Installments without due dates (set at disbursement)
    """
    if months < 1:
        raise ValidationException("Repayment period must be at least 1 month")

    base, remainder = divmod(principal_cents, months)
    outstanding = principal_cents
    installments = []

    for month_index in range(1, months + 1):
        principal_part = base + (remainder if month_index == 1 else 0)
        interest = apply_rate(outstanding, interest_rule.rate_for_month(month_index))
        installments.append(LoanInstallment(
            month_index=month_index,
            principal_cents=principal_part,
            interest_cents=interest,
        ))
        outstanding -= principal_part

    return tuple(installments)


def request_loan(
    group_id: str,
    borrower_id: str,
    amount_cents: int,
    purpose: str,
    repayment_months: int,
    rules: Rules,
    existing_loans: Iterable[Loan],
    now: datetime,
    settings: LedgerSettings = ledger_settings,
) -> Loan:
    """
    Create a pending loan request after checking it against the group's loan rules.

    Checks:
        - amount positive and within min/max (max 0 = no upper limit)
        - repayment months within the allowed range
        - borrower below the open-loan limit (pending, approved or active)
        - purpose not longer than the configured maximum

    Raises:
        ValidationException: Listing every failed check
    """
    loan_rules = rules.loan_rules
    purpose = (purpose or "").strip()
    errors = []

    if amount_cents <= 0:
        errors.append("loan amount must be positive")
    elif amount_cents < loan_rules.min_loan_cents:
        errors.append(f"loan amount is below the minimum of {loan_rules.min_loan_cents} cents")
    elif loan_rules.max_loan_cents and amount_cents > loan_rules.max_loan_cents:
        errors.append(f"loan amount exceeds the maximum of {loan_rules.max_loan_cents} cents")

    if not loan_rules.min_repayment_months <= repayment_months <= loan_rules.max_repayment_months:
        errors.append(
            f"repayment period must be between {loan_rules.min_repayment_months} "
            f"and {loan_rules.max_repayment_months} months"
        )

    open_loans = [
        loan for loan in existing_loans
        if loan.borrower_id == borrower_id and loan.status in OPEN_LOAN_STATUSES
    ]
    if len(open_loans) >= loan_rules.max_active_loans_per_member:
        errors.append(
            f"member already has {len(open_loans)} open loan(s); "
            f"limit is {loan_rules.max_active_loans_per_member}"
        )

    if len(purpose) > settings.max_purpose_length:
        errors.append(f"purpose must be at most {settings.max_purpose_length} characters")

    if errors:
        raise ValidationException(errors)

    return Loan(
        group_id=group_id,
        borrower_id=borrower_id,
        loan_amount_cents=amount_cents,
        purpose=purpose,
        repayment_months=repayment_months,
        requested_at=as_utc(now),
        total_repayable_cents=amount_cents,
    )


def approve_loan(loan: Loan, admin_id: str, rules: Rules, now: datetime) -> Loan:
    """
    Approve a pending loan and fix its interest and total repayable.

    Raises:
        StateTransitionException: If the loan is not pending
    """
    check_loan_transition(loan.status, LoanStatus.APPROVED)

    schedule = interest_schedule(loan.loan_amount_cents, loan.repayment_months, rules.loan_interest)
    total_interest = sum(item.interest_cents for item in schedule)

    return replace(
        loan,
        status=LoanStatus.APPROVED,
        approved_at=as_utc(now),
        approved_by=admin_id,
        schedule=schedule,
        total_interest_cents=total_interest,
        total_repayable_cents=loan.loan_amount_cents + total_interest,
    )


def reject_loan(loan: Loan, admin_id: str, reason: str, now: datetime) -> Loan:
    """
    Reject a pending loan request.

    Raises:
        ValidationException: If no reason is given
        StateTransitionException: If the loan is not pending
    """
    if not reason or not reason.strip():
        raise ValidationException("A rejection reason is required")
    check_loan_transition(loan.status, LoanStatus.REJECTED)
    return replace(
        loan,
        status=LoanStatus.REJECTED,
        rejected_at=as_utc(now),
        rejected_by=admin_id,
        rejection_reason=reason.strip(),
    )


def disburse_loan(
    loan: Loan,
    admin_id: str,
    now: datetime,
    settings: LedgerSettings = ledger_settings,
) -> Loan:
    """
    Mark an approved loan as handed over; repayment clocks start now.

    Installment k falls due k * installment_interval_days after disbursement.

    Raises:
        StateTransitionException: If the loan is not approved
    """
    check_loan_transition(loan.status, LoanStatus.ACTIVE)

    disbursed_at = as_utc(now)
    interval = timedelta(days=settings.installment_interval_days)
    schedule = tuple(
        replace(item, due_date=disbursed_at + interval * item.month_index)
        for item in loan.schedule
    )

    return recompute_loan(replace(
        loan,
        status=LoanStatus.ACTIVE,
        disbursed_at=disbursed_at,
        disbursed_by=admin_id,
        schedule=schedule,
    ))


def submit_repayment(loan: Loan, payment: PaymentInput, now: datetime, notes: str = "") -> Loan:
    """
    Record a repayment submitted by the borrower, awaiting admin approval.

    Raises:
        StateTransitionException: If the loan is not active
        ValidationException: If the payment is invalid or exceeds the amount remaining
    """
    if loan.status != LoanStatus.ACTIVE:
        raise StateTransitionException(
            "loan", loan.status.value,
            message=f"Repayments are only accepted on active loans (loan is {loan.status.value})",
        )

    errors = payment.validate(now)
    if not errors and payment.amount_cents > loan.amount_remaining_cents:
        errors.append(
            f"repayment of {payment.amount_cents} cents exceeds the "
            f"{loan.amount_remaining_cents} cents remaining"
        )
    if errors:
        raise ValidationException(errors)

    entry = LoanPayment(
        amount_cents=payment.amount_cents,
        payment_date=as_utc(payment.payment_date),
        submitted_at=as_utc(now),
        submitted_by=payment.submitted_by,
        proof_url=payment.proof_url.strip(),
        method=payment.method,
        notes=notes,
    )
    return replace(loan, payments=loan.payments + (entry,))


def _find_payment(loan: Loan, payment_id: str) -> LoanPayment:
    payment = loan.find_payment(payment_id)
    if payment is None:
        raise PaymentEntryNotFoundException(loan.id, payment_id)
    return payment


def late_penalty(loan: Loan, payment: LoanPayment, rules: Rules) -> int:
    """
    Late surcharge for a repayment.

    A payment is late when its date is after the due date of the first
    unpaid installment plus the loan penalty grace period. The surcharge is
    loan_penalty.rate percent of the payment amount.
    """
    due = next((item.due_date for item in loan.schedule if not item.paid and item.due_date), None)
    if due is None:
        return 0
    deadline = as_utc(due) + timedelta(days=rules.loan_penalty.grace_period_days)
    if as_utc(payment.payment_date) > deadline:
        return apply_rate(payment.amount_cents, rules.loan_penalty.rate)
    return 0


def approve_repayment(
    loan: Loan,
    payment_id: str,
    admin_id: str,
    rules: Rules,
    now: datetime,
) -> Loan:
    """
    Approve a pending repayment.

    Any late penalty is attached to the payment itself and is never added to
    the loan's total repayable. Reaching zero remaining moves the loan to repaid.

    Raises:
        PaymentEntryNotFoundException: If the payment is not on the loan
        StateTransitionException: If the payment was already reviewed or the loan is not active
        ValidationException: If approving would repay more than is owed
    """
    payment = _find_payment(loan, payment_id)
    check_loan_payment_transition(payment.status, LoanPaymentStatus.APPROVED)

    if loan.status != LoanStatus.ACTIVE:
        raise StateTransitionException(
            "loan", loan.status.value,
            message=f"Repayments can only be approved on active loans (loan is {loan.status.value})",
        )
    if payment.amount_cents > loan.amount_remaining_cents:
        raise ValidationException(
            f"repayment of {payment.amount_cents} cents exceeds the "
            f"{loan.amount_remaining_cents} cents remaining"
        )

    approved = replace(
        payment,
        status=LoanPaymentStatus.APPROVED,
        approved_by=admin_id,
        reviewed_at=as_utc(now),
        penalty_cents=late_penalty(loan, payment, rules),
    )
    payments = tuple(approved if p.id == payment_id else p for p in loan.payments)
    return recompute_loan(replace(loan, payments=payments))


def reject_repayment(
    loan: Loan,
    payment_id: str,
    admin_id: str,
    reason: str,
    now: datetime,
) -> Loan:
    """
    Reject a pending repayment. It stays on the loan for audit.

    Raises:
        ValidationException: If no reason is given
        PaymentEntryNotFoundException: If the payment is not on the loan
        StateTransitionException: If the payment was already reviewed
    """
    if not reason or not reason.strip():
        raise ValidationException("A rejection reason is required")

    payment = _find_payment(loan, payment_id)
    check_loan_payment_transition(payment.status, LoanPaymentStatus.REJECTED)

    rejected = replace(
        payment,
        status=LoanPaymentStatus.REJECTED,
        approved_by=admin_id,
        reviewed_at=as_utc(now),
        rejection_reason=reason.strip(),
    )
    payments = tuple(rejected if p.id == payment_id else p for p in loan.payments)
    return recompute_loan(replace(loan, payments=payments))


def _repaid_total(payments: Iterable[LoanPayment]) -> int:
    return sum(p.amount_cents for p in payments if p.is_approved)


def recompute_loan(loan: Loan) -> Loan:
    """
    Refresh amount_repaid, installment paid flags and the repaid transition.

    Approved repayments are allocated to installments in order; an
    installment is paid once the cumulative repayments cover it.
    """
    repaid = _repaid_total(loan.payments)

    schedule: List[LoanInstallment] = []
    covered = 0
    for item in loan.schedule:
        covered += item.amount_cents
        schedule.append(replace(item, paid=covered <= repaid))

    status = loan.status
    if status == LoanStatus.ACTIVE and clamp_zero(loan.total_repayable_cents - repaid) == 0:
        check_loan_transition(status, LoanStatus.REPAID)
        status = LoanStatus.REPAID

    return replace(loan, amount_repaid_cents=repaid, schedule=tuple(schedule), status=status)


def loan_balance(loan: Loan) -> LoanBalance:
    """Derived repayment position of a loan, computed from its payments."""
    repaid = _repaid_total(loan.payments)
    return LoanBalance(
        amount_repaid_cents=repaid,
        amount_remaining_cents=clamp_zero(loan.total_repayable_cents - repaid),
        pending_cents=sum(
            p.amount_cents for p in loan.payments if p.status == LoanPaymentStatus.PENDING
        ),
        penalties_cents=sum(p.penalty_cents for p in loan.payments if p.is_approved),
        progress_percent=percentage(repaid, loan.total_repayable_cents),
    )


def check_loan_cache(loan: Loan) -> None:
    """
    Verify the cached amount repaid against the approved repayments.

    Raises:
        InconsistentLedgerException: If they differ
    """
    actual = _repaid_total(loan.payments)
    if loan.amount_repaid_cents != actual:
        raise InconsistentLedgerException(
            loan.id,
            {"amount_repaid_cents": (loan.amount_repaid_cents, actual)},
        )


def next_installment(loan: Loan) -> Optional[LoanInstallment]:
    """First installment not yet covered by approved repayments."""
    return next((item for item in loan.schedule if not item.paid), None)
