"""
Group and member aggregation.

Summaries are always recomputed from records and loans. The member
financial summary stored on the Member row is a cache of
member_financial_summary(); reconcile_summary() compares the two.
"""

from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Sequence

from chama_ledger.domain.exceptions import InconsistentLedgerException

from .arrears import compute_arrears, pending_total
from .loans import loan_balance
from .models import (
    Classification,
    Loan,
    LoanPortfolioSummary,
    LoanStatus,
    MemberFinancialSummary,
    MemberPeriodSummary,
    PaymentRecord,
    PeriodSummary,
    Rules,
)
from .money import percentage
from .settings import LedgerSettings, ledger_settings

LENT_STATUSES = (LoanStatus.APPROVED, LoanStatus.ACTIVE, LoanStatus.REPAID)

# Arrears and penalties grow with time, so only money movements are reconciled
RECONCILED_FIELDS = (
    "total_paid_cents",
    "total_pending_cents",
    "total_loans_cents",
    "total_loans_paid_cents",
)


def classify(paid_cents: int, expected_cents: int) -> Classification:
    """
    Classify a member's position for a period.

    Fully paid when approved payments cover the expected amount (penalties
    are ignored here), partial when something but not everything was paid,
    unpaid when nothing approved has arrived.
    """
    if paid_cents >= expected_cents and (paid_cents > 0 or expected_cents == 0):
        return Classification.FULLY_PAID
    if paid_cents > 0:
        return Classification.PARTIAL
    return Classification.UNPAID


def summarize_period(
    records: Sequence[PaymentRecord],
    rules: Rules,
    now: datetime,
) -> PeriodSummary:
    """
    Aggregate one reporting period across the group's members.

    Records are grouped by member, so a member with several records in the
    period (seed money and a month, or a whole year) is classified once on
    their combined totals.

    Rates:
        collection_rate = collected / expected * 100 (0.0 when nothing is
            expected). Overpayment can push it above 100; it is not clamped.
        compliance_rate = fully paid members / members * 100

    Example:
        3 members each owing 5,000.00; one paid 5,000.00, one 2,500.00,
        one nothing -> collected 7,500.00, collection_rate 50.0,
        fully_paid 1, partial 1, unpaid 1
    """
    per_member: Dict[str, List[PaymentRecord]] = OrderedDict()
    for record in records:
        per_member.setdefault(record.member_id, []).append(record)

    members = []
    for member_id, member_records in per_member.items():
        expected = paid = pending = arrears = penalty = 0
        for record in member_records:
            result = compute_arrears(record, rules, now)
            expected += record.total_amount_cents
            paid += result.paid_so_far_cents
            pending += pending_total(record)
            arrears += result.arrears_cents
            penalty += result.penalty_cents

        members.append(MemberPeriodSummary(
            member_id=member_id,
            expected_cents=expected,
            paid_cents=paid,
            pending_cents=pending,
            arrears_cents=arrears,
            penalty_cents=penalty,
            percentage_paid=percentage(paid, expected),
            classification=classify(paid, expected),
        ))

    total_expected = sum(m.expected_cents for m in members)
    total_collected = sum(m.paid_cents for m in members)
    fully_paid = sum(1 for m in members if m.classification == Classification.FULLY_PAID)
    partial = sum(1 for m in members if m.classification == Classification.PARTIAL)

    return PeriodSummary(
        total_expected_cents=total_expected,
        total_collected_cents=total_collected,
        total_pending_approval_cents=sum(m.pending_cents for m in members),
        total_outstanding_cents=sum(m.arrears_cents for m in members),
        total_penalties_cents=sum(m.penalty_cents for m in members),
        collection_rate=percentage(total_collected, total_expected),
        compliance_rate=percentage(fully_paid, len(members)),
        fully_paid=fully_paid,
        partial=partial,
        unpaid=len(members) - fully_paid - partial,
        members=members,
    )


def summarize_loans(loans: Iterable[Loan]) -> LoanPortfolioSummary:
    """Group-wide loan totals (counts by status, money lent and recovered)."""
    loans = list(loans)
    counts = {status: 0 for status in LoanStatus}
    disbursed = outstanding = repaid = interest = penalties = 0

    for loan in loans:
        counts[loan.status] += 1
        balance = loan_balance(loan)
        repaid += balance.amount_repaid_cents
        penalties += balance.penalties_cents
        if loan.status in (LoanStatus.ACTIVE, LoanStatus.REPAID):
            disbursed += loan.loan_amount_cents
            interest += loan.total_interest_cents
        if loan.status == LoanStatus.ACTIVE:
            outstanding += balance.amount_remaining_cents

    return LoanPortfolioSummary(
        pending_count=counts[LoanStatus.PENDING] + counts[LoanStatus.APPROVED],
        active_count=counts[LoanStatus.ACTIVE],
        repaid_count=counts[LoanStatus.REPAID],
        rejected_count=counts[LoanStatus.REJECTED],
        total_disbursed_cents=disbursed,
        total_outstanding_cents=outstanding,
        total_repaid_cents=repaid,
        total_interest_cents=interest,
        total_penalties_cents=penalties,
    )


def member_financial_summary(
    records: Iterable[PaymentRecord],
    loans: Iterable[Loan],
    rules: Rules,
    now: datetime,
) -> MemberFinancialSummary:
    """
    Re-derive a member's financial summary from their records and loans.

    Loans count toward total_loans once approved; rejected and pending
    requests are excluded.
    """
    paid = arrears = pending = penalties = 0
    for record in records:
        result = compute_arrears(record, rules, now)
        paid += result.paid_so_far_cents
        arrears += result.arrears_cents
        pending += pending_total(record)
        penalties += result.penalty_cents

    total_loans = loans_paid = 0
    for loan in loans:
        balance = loan_balance(loan)
        loans_paid += balance.amount_repaid_cents
        penalties += balance.penalties_cents
        if loan.status in LENT_STATUSES:
            total_loans += loan.loan_amount_cents

    return MemberFinancialSummary(
        total_paid_cents=paid,
        total_arrears_cents=arrears,
        total_pending_cents=pending,
        total_loans_cents=total_loans,
        total_loans_paid_cents=loans_paid,
        total_penalties_cents=penalties,
    )


def reconcile_summary(
    entity_id: str,
    cached: MemberFinancialSummary,
    recomputed: MemberFinancialSummary,
    settings: LedgerSettings = ledger_settings,
) -> MemberFinancialSummary:
    """
    Compare a cached summary with one recomputed from source.

    Returns:
        The recomputed summary when every field is within tolerance

    Raises:
        InconsistentLedgerException: Naming each field that drifted
    """
    tolerance = settings.reconciliation_tolerance_cents
    cached_values = cached.to_dict()
    recomputed_values = recomputed.to_dict()
    drift = {
        field: (cached_values[field], recomputed_values[field])
        for field in RECONCILED_FIELDS
        if abs(cached_values[field] - recomputed_values[field]) > tolerance
    }
    if drift:
        raise InconsistentLedgerException(entity_id, drift)
    return recomputed
