"""
Contribution schedule for a group cycle.

When a member joins, the group creates one Seed Money record (if seed money
is required) and one Monthly Contribution record per month of the cycle.
Each record's total is fixed from the Rules in force at that moment.
"""

import calendar
from datetime import datetime, timezone
from typing import List, Tuple

from chama_ledger.domain.exceptions import ValidationException

from .dates import MONTH_NAMES, as_utc, month_number
from .models import PaymentRecord, PaymentType, Rules


def contribution_due_date(year: int, month: int, day_of_month: int) -> datetime:
    """
    Due date of a monthly contribution, midnight UTC.

    The day is clamped to the length of the month, so a group paying on the
    31st is due on the 30th in April and on the 28th (or 29th) in February.
    """
    last_day = calendar.monthrange(year, month)[1]
    return datetime(year, month, min(day_of_month, last_day), tzinfo=timezone.utc)


def cycle_periods(cycle_start: datetime, months: int) -> List[Tuple[int, str]]:
    """
    List (year, month name) pairs for a cycle, starting at the cycle start month.

    Example:
        cycle_periods(datetime(2024, 11, 5), 3)
        -> [(2024, "November"), (2024, "December"), (2025, "January")]
    """
    start = as_utc(cycle_start)
    periods = []
    year, month = start.year, start.month
    for _ in range(months):
        periods.append((year, MONTH_NAMES[month - 1]))
        month += 1
        if month > 12:
            month = 1
            year += 1
    return periods


def build_member_records(
    group_id: str,
    member_id: str,
    rules: Rules,
    cycle_start: datetime,
) -> List[PaymentRecord]:
    """
    Create the payment records for a new member.

    Args:
        group_id: Group the member joined
        member_id: The new member
        rules: Group rules at join time (amounts are fixed from them)
        cycle_start: First month of the contribution cycle

    Returns:
        Seed money record (when required) followed by one monthly record per period
    """
    records = []
    start = as_utc(cycle_start)

    if rules.seed_money.required:
        records.append(PaymentRecord(
            group_id=group_id,
            member_id=member_id,
            payment_type=PaymentType.SEED_MONEY,
            year=(rules.seed_money.due_date or start).year,
            total_amount_cents=rules.seed_money.amount_cents,
            due_date=as_utc(rules.seed_money.due_date),
            arrears_cents=rules.seed_money.amount_cents,
        ))

    for year, month_name in cycle_periods(start, rules.cycle_months):
        records.append(PaymentRecord(
            group_id=group_id,
            member_id=member_id,
            payment_type=PaymentType.MONTHLY_CONTRIBUTION,
            year=year,
            month=month_name,
            total_amount_cents=rules.monthly_contribution.amount_cents,
            due_date=contribution_due_date(
                year, month_number(month_name), rules.monthly_contribution.day_of_month
            ),
            arrears_cents=rules.monthly_contribution.amount_cents,
        ))

    return records


def validate_period(record: PaymentRecord, rules: Rules, cycle_start: datetime) -> None:
    """
    Check that a monthly record belongs to the group's cycle.

    Raises:
        ValidationException: If the month name is unknown or the period is outside the cycle
    """
    if record.payment_type != PaymentType.MONTHLY_CONTRIBUTION:
        return

    if not record.month or month_number(record.month) == 0:
        raise ValidationException(f"Unknown month: {record.month!r}")

    if (record.year, record.month) not in cycle_periods(cycle_start, rules.cycle_months):
        raise ValidationException(
            f"Period {record.period_key} is outside the contribution cycle"
        )
