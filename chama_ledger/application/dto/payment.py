"""Data transfer objects for contribution payment operations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from chama_ledger.service.ledger import format_currency


@dataclass(frozen=True)
class SubmitPaymentRequest:
    """
    Input data for paying into a record.

    admin_entered marks a payment recorded by an admin on a member's behalf;
    it is approved immediately instead of waiting for review.
    """
    actor_id: str
    amount_cents: int
    method: str
    proof_url: str
    payment_date: Optional[datetime] = None
    admin_entered: bool = False


@dataclass(frozen=True)
class ReviewRequest:
    """Input data for an admin approving or rejecting a payment."""
    actor_id: str
    reason: Optional[str] = None


@dataclass(frozen=True)
class PaymentEntryDTO:
    """Single payment entry within a record response."""
    entry_id: str
    amount_cents: int
    payment_date: str
    method: str
    proof_url: str
    submitted_by: str
    approval_status: str
    approved_by: Optional[str]
    reviewed_at: Optional[str]
    rejection_reason: Optional[str]

    @classmethod
    def from_entity(cls, entry) -> "PaymentEntryDTO":
        return cls(
            entry_id=entry.id,
            amount_cents=entry.amount_cents,
            payment_date=entry.payment_date.isoformat(),
            method=entry.method.value,
            proof_url=entry.proof_url,
            submitted_by=entry.submitted_by,
            approval_status=entry.approval_status.value,
            approved_by=entry.approved_by,
            reviewed_at=entry.reviewed_at.isoformat() if entry.reviewed_at else None,
            rejection_reason=entry.rejection_reason,
        )


@dataclass(frozen=True)
class PaymentRecordResponse:
    """Response data for a payment record and its position at request time."""

    record_id: str
    group_id: str
    member_id: str
    payment_type: str
    period_key: str
    year: int
    month: Optional[str]
    due_date: Optional[str]
    total_amount_cents: int
    amount_paid_cents: int
    arrears_cents: int
    penalty_cents: int
    surplus_cents: int
    base_arrears_cents: int
    is_overdue: bool
    approval_status: str
    payment_status: str
    display_status: str
    arrears_display: str
    version: int
    entries: List[PaymentEntryDTO] = field(default_factory=list)

    @classmethod
    def from_entity(cls, record, arrears, currency: str) -> "PaymentRecordResponse":
        return cls(
            record_id=record.id,
            group_id=record.group_id,
            member_id=record.member_id,
            payment_type=record.payment_type.value,
            period_key=record.period_key,
            year=record.year,
            month=record.month,
            due_date=record.due_date.isoformat() if record.due_date else None,
            total_amount_cents=record.total_amount_cents,
            amount_paid_cents=arrears.paid_so_far_cents,
            arrears_cents=arrears.arrears_cents,
            penalty_cents=arrears.penalty_cents,
            surplus_cents=arrears.surplus_cents,
            base_arrears_cents=arrears.base_arrears_cents,
            is_overdue=arrears.is_overdue,
            approval_status=record.approval_status.value,
            payment_status=arrears.status.value,
            display_status=record.display_status,
            arrears_display=format_currency(arrears.arrears_cents, currency),
            version=record.version,
            entries=[PaymentEntryDTO.from_entity(e) for e in record.entries],
        )
