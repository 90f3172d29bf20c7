"""
Payment application for contribution records.

Every function returns a new PaymentRecord; the input snapshot is never
modified. After each change the record's cached fields are recomputed in
full from its entries, so applying the same recompute twice is a no-op.
"""

from dataclasses import replace
from datetime import datetime
from typing import Optional

from chama_ledger.domain.exceptions import (
    InconsistentLedgerException,
    PaymentEntryNotFoundException,
    ValidationException,
)

from .arrears import approved_total, compute_arrears
from .dates import as_utc
from .models import (
    ApprovalStatus,
    PaymentEntry,
    PaymentInput,
    PaymentRecord,
    Rules,
)
from .transitions import check_entry_transition, derive_record_approval


def recompute_record(record: PaymentRecord, rules: Rules, now: datetime) -> PaymentRecord:
    """
    Refresh every cached field of a record from its entries.

    amount_paid, arrears, penalty, surplus, payment status and the derived
    approval status are all rebuilt; nothing from the previous cache is read.
    """
    result = compute_arrears(record, rules, now)
    return replace(
        record,
        amount_paid_cents=result.paid_so_far_cents,
        arrears_cents=result.arrears_cents,
        penalty_cents=result.penalty_cents,
        surplus_cents=result.surplus_cents,
        payment_status=result.status,
        approval_status=derive_record_approval(record.entries),
    )


def apply_payment(
    record: PaymentRecord,
    payment: PaymentInput,
    rules: Rules,
    now: datetime,
    *,
    admin_entered: bool = False,
) -> PaymentRecord:
    """
    Append a payment entry to a record.

    Member submissions start pending and only count once an admin approves
    them. Payments entered directly by an admin are approved immediately
    with the admin as approver. Overpayment is accepted and reported as
    surplus.

    Args:
        record: Record being paid
        payment: Amount, method, proof reference and submitter
        rules: Group rules
        now: Current time
        admin_entered: Whether an admin recorded the payment

    Returns:
        New record with the entry appended and caches recomputed

    Raises:
        ValidationException: If amount, method, proof or submitter is invalid,
            or the payment is dated after now
    """
    errors = payment.validate(now)
    if errors:
        raise ValidationException(errors)

    now = as_utc(now)
    entry = PaymentEntry(
        amount_cents=payment.amount_cents,
        payment_date=as_utc(payment.payment_date),
        method=payment.method,
        proof_url=payment.proof_url.strip(),
        submitted_by=payment.submitted_by,
        approval_status=ApprovalStatus.APPROVED if admin_entered else ApprovalStatus.PENDING,
        approved_by=payment.submitted_by if admin_entered else None,
        reviewed_at=now if admin_entered else None,
    )

    updated = replace(record, entries=record.entries + (entry,))
    return recompute_record(updated, rules, now)


def _review_entry(
    record: PaymentRecord,
    entry_id: str,
    target: ApprovalStatus,
    admin_id: str,
    rules: Rules,
    now: datetime,
    reason: Optional[str] = None,
) -> PaymentRecord:
    entry = record.find_entry(entry_id)
    if entry is None:
        raise PaymentEntryNotFoundException(record.id, entry_id)

    check_entry_transition(entry.approval_status, target)

    now = as_utc(now)
    reviewed = replace(
        entry,
        approval_status=target,
        approved_by=admin_id,
        reviewed_at=now,
        rejection_reason=reason,
    )
    entries = tuple(reviewed if e.id == entry_id else e for e in record.entries)
    return recompute_record(replace(record, entries=entries), rules, now)


def approve_entry(
    record: PaymentRecord,
    entry_id: str,
    admin_id: str,
    rules: Rules,
    now: datetime,
) -> PaymentRecord:
    """
    Approve a pending entry; its amount starts counting toward the record.

    Raises:
        PaymentEntryNotFoundException: If the entry is not on the record
        StateTransitionException: If the entry was already reviewed
    """
    return _review_entry(record, entry_id, ApprovalStatus.APPROVED, admin_id, rules, now)


def reject_entry(
    record: PaymentRecord,
    entry_id: str,
    admin_id: str,
    reason: str,
    rules: Rules,
    now: datetime,
) -> PaymentRecord:
    """
    Reject a pending entry. It stays on the record for audit and never counts.

    Raises:
        ValidationException: If no reason is given
        PaymentEntryNotFoundException: If the entry is not on the record
        StateTransitionException: If the entry was already reviewed
    """
    if not reason or not reason.strip():
        raise ValidationException("A rejection reason is required")
    return _review_entry(
        record, entry_id, ApprovalStatus.REJECTED, admin_id, rules, now, reason=reason.strip()
    )


def check_record_cache(record: PaymentRecord) -> None:
    """
    Verify the cached amount paid against the approved entries.

    Raises:
        InconsistentLedgerException: If they differ
    """
    actual = approved_total(record)
    if record.amount_paid_cents != actual:
        raise InconsistentLedgerException(
            record.id,
            {"amount_paid_cents": (record.amount_paid_cents, actual)},
        )
