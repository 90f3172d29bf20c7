"""
Arrears and late-penalty engine for contribution records.

The arrears of a record is what the member still owes for that period,
penalty included. It is always derived from the record's approved entries,
the group's penalty rule and the injected current time; nothing here reads
a clock.
"""

from datetime import datetime, timedelta
from typing import Optional

from .dates import as_utc
from .models import ApprovalStatus, ArrearsResult, PaymentRecord, PaymentStatus, Rules
from .money import apply_rate, clamp_zero
from .rules import penalty_rule_for


def approved_total(record: PaymentRecord, until: Optional[datetime] = None) -> int:
    """
    Sum of approved entries, optionally only those paid on or before `until`.

    Pending and rejected entries never count.
    """
    limit = as_utc(until)
    return sum(
        entry.amount_cents
        for entry in record.entries
        if entry.is_approved and (limit is None or as_utc(entry.payment_date) <= limit)
    )


def pending_total(record: PaymentRecord) -> int:
    """Sum of entries still awaiting admin review."""
    return sum(
        entry.amount_cents
        for entry in record.entries
        if entry.approval_status == ApprovalStatus.PENDING
    )


def penalty_deadline(record: PaymentRecord, rules: Rules) -> Optional[datetime]:
    """Instant after which a late penalty applies (None for flexible due dates)."""
    if record.due_date is None:
        return None
    rule = penalty_rule_for(rules, record.payment_type)
    return as_utc(record.due_date) + timedelta(days=rule.grace_period_days)


def compute_arrears(record: PaymentRecord, rules: Rules, now: datetime) -> ArrearsResult:
    """
    Compute the derived position of a payment record at `now`.

    Algorithm:
        1. paid_so_far = sum of approved entries
        2. base_arrears = max(total - paid_so_far, 0)
        3. If the record has a due date and now is strictly after
           due_date + grace period, penalty = rate% of the amount that was
           still unpaid at that deadline. Payments approved later reduce
           what is owed but not the penalty they incurred.
        4. total_due (the record's arrears) = max(total + penalty - paid_so_far, 0)
        5. surplus = max(paid_so_far - total - penalty, 0)
        6. Completed iff nothing is due

    Example (rate 10%, no grace, 5,000.00 due yesterday):
        nothing paid  -> penalty 500.00, total_due 5,500.00, Pending
        5,500.00 paid -> total_due 0, surplus 0, Completed
        6,000.00 paid -> total_due 0, surplus 500.00, Completed

    Edge Cases:
        - No due date: never penalised
        - Overpayment: surplus reported, never carried to another record
        - Zero-amount record: Completed immediately

    Args:
        record: Payment record snapshot
        rules: Group rules (penalty rate and grace period)
        now: Current time (naive values are UTC)

    Returns:
        ArrearsResult for the record
    """
    now = as_utc(now)
    total = record.total_amount_cents
    paid_so_far = approved_total(record)

    penalty = 0
    is_overdue = False
    deadline = penalty_deadline(record, rules)
    if deadline is not None and now > deadline:
        is_overdue = True
        unpaid_at_deadline = clamp_zero(total - approved_total(record, until=deadline))
        penalty = apply_rate(
            unpaid_at_deadline,
            penalty_rule_for(rules, record.payment_type).rate,
        )

    total_due = clamp_zero(total + penalty - paid_so_far)

    return ArrearsResult(
        paid_so_far_cents=paid_so_far,
        base_arrears_cents=clamp_zero(total - paid_so_far),
        penalty_cents=penalty,
        total_due_cents=total_due,
        surplus_cents=clamp_zero(paid_so_far - total - penalty),
        status=PaymentStatus.COMPLETED if total_due == 0 else PaymentStatus.PENDING,
        is_overdue=is_overdue,
    )
