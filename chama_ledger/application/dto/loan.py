"""Data transfer objects for loan operations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from chama_ledger.service.ledger import format_currency, loan_balance


@dataclass(frozen=True)
class LoanApplication:
    """Input data for a member requesting a loan."""
    borrower_id: str
    amount_cents: int
    repayment_months: int
    purpose: str = ""


@dataclass(frozen=True)
class RepaymentRequest:
    """Input data for a borrower submitting a repayment."""
    actor_id: str
    amount_cents: int
    proof_url: str
    method: str = "Other"
    payment_date: Optional[datetime] = None
    notes: str = ""


@dataclass(frozen=True)
class InstallmentDTO:
    """Single installment within a loan response."""
    month_index: int
    due_date: Optional[str]
    principal_cents: int
    interest_cents: int
    amount_cents: int
    paid: bool


@dataclass(frozen=True)
class LoanPaymentDTO:
    """Single repayment within a loan response."""
    payment_id: str
    amount_cents: int
    payment_date: str
    submitted_by: str
    proof_url: str
    method: str
    status: str
    penalty_cents: int
    approved_by: Optional[str]
    rejection_reason: Optional[str]


@dataclass(frozen=True)
class LoanResponse:
    """Response data for a loan with its derived balance."""

    loan_id: str
    group_id: str
    borrower_id: str
    status: str
    loan_amount_cents: int
    purpose: str
    repayment_months: int
    requested_at: str
    approved_at: Optional[str]
    disbursed_at: Optional[str]
    rejected_at: Optional[str]
    rejection_reason: Optional[str]
    total_interest_cents: int
    total_repayable_cents: int
    amount_repaid_cents: int
    amount_remaining_cents: int
    pending_cents: int
    penalties_cents: int
    progress_percent: float
    amount_remaining_display: str
    version: int
    schedule: List[InstallmentDTO] = field(default_factory=list)
    payments: List[LoanPaymentDTO] = field(default_factory=list)

    @classmethod
    def from_entity(cls, loan, currency: str) -> "LoanResponse":
        balance = loan_balance(loan)

        def iso(value):
            return value.isoformat() if value else None

        return cls(
            loan_id=loan.id,
            group_id=loan.group_id,
            borrower_id=loan.borrower_id,
            status=loan.status.value,
            loan_amount_cents=loan.loan_amount_cents,
            purpose=loan.purpose,
            repayment_months=loan.repayment_months,
            requested_at=loan.requested_at.isoformat(),
            approved_at=iso(loan.approved_at),
            disbursed_at=iso(loan.disbursed_at),
            rejected_at=iso(loan.rejected_at),
            rejection_reason=loan.rejection_reason,
            total_interest_cents=loan.total_interest_cents,
            total_repayable_cents=loan.total_repayable_cents,
            amount_repaid_cents=balance.amount_repaid_cents,
            amount_remaining_cents=balance.amount_remaining_cents,
            pending_cents=balance.pending_cents,
            penalties_cents=balance.penalties_cents,
            progress_percent=balance.progress_percent,
            amount_remaining_display=format_currency(balance.amount_remaining_cents, currency),
            version=loan.version,
            schedule=[
                InstallmentDTO(
                    month_index=item.month_index,
                    due_date=iso(item.due_date),
                    principal_cents=item.principal_cents,
                    interest_cents=item.interest_cents,
                    amount_cents=item.amount_cents,
                    paid=item.paid,
                )
                for item in loan.schedule
            ],
            payments=[
                LoanPaymentDTO(
                    payment_id=p.id,
                    amount_cents=p.amount_cents,
                    payment_date=p.payment_date.isoformat(),
                    submitted_by=p.submitted_by,
                    proof_url=p.proof_url,
                    method=p.method.value,
                    status=p.status.value,
                    penalty_cents=p.penalty_cents,
                    approved_by=p.approved_by,
                    rejection_reason=p.rejection_reason,
                )
                for p in loan.payments
            ],
        )
