"""
Unit Tests for contribution records.

These tests verify:
1. Schedule generation (records per member, due-date clamping)
2. Arrears and penalty computation, including the worked examples
3. Ledger properties (non-negative arrears, idempotent recompute,
   monotonic arrears as approved money arrives)
4. Payment submission, approval and rejection
5. Status transition tables

Test Categories:
- TestSchedule: schedule.py
- TestComputeArrears / TestLedgerProperties: arrears.py
- TestApplyPayment / TestReview: payments.py
- TestTransitions: transitions.py
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from chama_ledger.domain.exceptions import (
    InconsistentLedgerException,
    PaymentEntryNotFoundException,
    StateTransitionException,
    ValidationException,
)
from chama_ledger.service.ledger.arrears import compute_arrears, pending_total
from chama_ledger.service.ledger.models import (
    ApprovalStatus,
    LoanPaymentStatus,
    LoanStatus,
    MonthlyContributionRule,
    PaymentEntry,
    PaymentInput,
    PaymentMethod,
    PaymentRecord,
    PaymentStatus,
    PaymentType,
    PenaltyRule,
    Rules,
    SeedMoneyRule,
)
from chama_ledger.service.ledger.payments import (
    apply_payment,
    approve_entry,
    check_record_cache,
    recompute_record,
    reject_entry,
)
from chama_ledger.service.ledger.schedule import (
    build_member_records,
    contribution_due_date,
    cycle_periods,
    validate_period,
)
from chama_ledger.service.ledger.transitions import (
    check_entry_transition,
    check_loan_payment_transition,
    check_loan_transition,
    derive_record_approval,
)


# =============================================================================
# Test Fixtures
# =============================================================================

NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)
YESTERDAY = NOW - timedelta(days=1)


def make_rules(rate: float = 10, grace_days: int = 0, **kwargs) -> Rules:
    return Rules(
        monthly_contribution=MonthlyContributionRule(amount_cents=500_000, day_of_month=5),
        monthly_penalty=PenaltyRule(rate=rate, grace_period_days=grace_days),
        **kwargs,
    )


def make_entry(
    amount_cents: int,
    paid_at: datetime = NOW,
    status: ApprovalStatus = ApprovalStatus.APPROVED,
) -> PaymentEntry:
    return PaymentEntry(
        amount_cents=amount_cents,
        payment_date=paid_at,
        method=PaymentMethod.MOBILE_MONEY,
        proof_url="https://example.com/receipt.png",
        submitted_by="member-1",
        approval_status=status,
    )


def make_record(
    total_cents: int = 500_000,
    due_date: datetime | None = YESTERDAY,
    entries: tuple = (),
    payment_type: PaymentType = PaymentType.MONTHLY_CONTRIBUTION,
) -> PaymentRecord:
    return PaymentRecord(
        group_id="group-1",
        member_id="member-1",
        payment_type=payment_type,
        year=2024,
        month="March" if payment_type == PaymentType.MONTHLY_CONTRIBUTION else None,
        total_amount_cents=total_cents,
        due_date=due_date,
        entries=entries,
    )


def make_payment(amount_cents: int = 200_000, **overrides) -> PaymentInput:
    values = dict(
        amount_cents=amount_cents,
        method=PaymentMethod.CASH,
        proof_url="https://example.com/receipt.png",
        submitted_by="member-1",
        payment_date=NOW,
    )
    values.update(overrides)
    return PaymentInput(**values)


# =============================================================================
# Schedule Tests
# =============================================================================

class TestSchedule:
    """Tests for schedule generation."""

    def test_due_day_clamped_to_month_length(self):
        assert contribution_due_date(2024, 2, 31) == datetime(2024, 2, 29, tzinfo=timezone.utc)
        assert contribution_due_date(2023, 2, 31) == datetime(2023, 2, 28, tzinfo=timezone.utc)
        assert contribution_due_date(2024, 4, 31) == datetime(2024, 4, 30, tzinfo=timezone.utc)

    def test_cycle_crosses_year_end(self):
        periods = cycle_periods(datetime(2024, 11, 5), 3)

        assert periods == [(2024, "November"), (2024, "December"), (2025, "January")]

    def test_member_records_with_seed_money(self):
        rules = make_rules(
            seed_money=SeedMoneyRule(
                amount_cents=1_000_000,
                due_date=datetime(2024, 1, 31, tzinfo=timezone.utc),
            ),
        )

        records = build_member_records("group-1", "member-1", rules, datetime(2024, 1, 1))

        assert len(records) == 13
        seed = records[0]
        assert seed.payment_type == PaymentType.SEED_MONEY
        assert seed.period_key == "2024_SeedMoney"
        assert seed.arrears_cents == 1_000_000

        january = records[1]
        assert january.period_key == "2024_January"
        assert january.due_date == datetime(2024, 1, 5, tzinfo=timezone.utc)
        assert january.total_amount_cents == 500_000
        assert all(r.approval_status == ApprovalStatus.UNPAID for r in records)

    def test_member_records_without_seed_money(self):
        rules = make_rules(seed_money=SeedMoneyRule(required=False), cycle_months=6)

        records = build_member_records("group-1", "member-1", rules, datetime(2024, 1, 1))

        assert len(records) == 6
        assert {r.payment_type for r in records} == {PaymentType.MONTHLY_CONTRIBUTION}

    def test_period_outside_cycle_is_rejected(self):
        rules = make_rules(cycle_months=3)
        record = replace(make_record(), year=2030)

        with pytest.raises(ValidationException):
            validate_period(record, rules, datetime(2024, 1, 1))

    def test_unknown_month_is_rejected(self):
        record = replace(make_record(), month="Smarch")

        with pytest.raises(ValidationException):
            validate_period(record, make_rules(), datetime(2024, 1, 1))

    def test_seed_money_record_needs_no_period(self):
        record = make_record(payment_type=PaymentType.SEED_MONEY)

        validate_period(record, make_rules(cycle_months=1), datetime(2020, 1, 1))


# =============================================================================
# Arrears Tests
# =============================================================================

class TestComputeArrears:
    """Tests for compute_arrears()."""

    def test_overdue_with_nothing_paid(self):
        """5,000.00 due yesterday at 10%: 500.00 penalty, 5,500.00 due."""
        result = compute_arrears(make_record(), make_rules(), NOW)

        assert result.base_arrears_cents == 500_000
        assert result.penalty_cents == 50_000
        assert result.total_due_cents == 550_000
        assert result.arrears_cents == 550_000
        assert result.status == PaymentStatus.PENDING
        assert result.is_overdue is True

    def test_paying_amount_plus_penalty_completes(self):
        record = make_record(entries=(make_entry(550_000),))

        result = compute_arrears(record, make_rules(), NOW)

        assert result.arrears_cents == 0
        assert result.surplus_cents == 0
        assert result.status == PaymentStatus.COMPLETED

    def test_overpayment_is_surplus(self):
        record = make_record(entries=(make_entry(600_000),))

        result = compute_arrears(record, make_rules(), NOW)

        assert result.arrears_cents == 0
        assert result.surplus_cents == 50_000
        assert result.status == PaymentStatus.COMPLETED

    def test_no_penalty_before_deadline(self):
        record = make_record(due_date=NOW + timedelta(days=1))

        result = compute_arrears(record, make_rules(), NOW)

        assert result.penalty_cents == 0
        assert result.arrears_cents == 500_000
        assert result.is_overdue is False

    def test_no_penalty_exactly_at_deadline(self):
        result = compute_arrears(make_record(due_date=NOW), make_rules(), NOW)

        assert result.penalty_cents == 0

    def test_no_penalty_inside_grace_period(self):
        result = compute_arrears(make_record(), make_rules(grace_days=3), NOW)

        assert result.penalty_cents == 0
        assert result.is_overdue is False

    def test_flexible_due_date_is_never_penalised(self):
        result = compute_arrears(make_record(due_date=None), make_rules(), NOW + timedelta(days=999))

        assert result.penalty_cents == 0
        assert result.arrears_cents == 500_000

    def test_penalty_on_amount_unpaid_at_deadline(self):
        """Money paid before the deadline shrinks the penalty base."""
        early = make_entry(200_000, paid_at=YESTERDAY - timedelta(days=2))

        result = compute_arrears(make_record(entries=(early,)), make_rules(), NOW)

        assert result.penalty_cents == 30_000
        assert result.arrears_cents == 330_000

    def test_paid_in_full_on_time_has_no_penalty(self):
        on_time = make_entry(500_000, paid_at=YESTERDAY - timedelta(hours=1))

        result = compute_arrears(make_record(entries=(on_time,)), make_rules(), NOW)

        assert result.penalty_cents == 0
        assert result.status == PaymentStatus.COMPLETED

    def test_pending_and_rejected_entries_do_not_count(self):
        record = make_record(entries=(
            make_entry(100_000, status=ApprovalStatus.PENDING),
            make_entry(200_000, status=ApprovalStatus.REJECTED),
        ))

        result = compute_arrears(record, make_rules(), NOW)

        assert result.paid_so_far_cents == 0
        assert pending_total(record) == 100_000

    def test_zero_amount_record_is_completed(self):
        result = compute_arrears(make_record(total_cents=0), make_rules(), NOW)

        assert result.status == PaymentStatus.COMPLETED
        assert result.arrears_cents == 0

    def test_seed_money_uses_dedicated_rate(self):
        rules = make_rules(seed_money=SeedMoneyRule(amount_cents=500_000, penalty_rate=20))
        record = make_record(payment_type=PaymentType.SEED_MONEY)

        result = compute_arrears(record, rules, NOW)

        assert result.penalty_cents == 100_000


class TestLedgerProperties:
    """Properties that hold for every record."""

    @pytest.mark.parametrize("paid", [0, 1, 250_000, 499_999, 500_000, 550_000, 900_000])
    @pytest.mark.parametrize("due_offset_days", [-30, -1, 0, 1])
    def test_arrears_and_surplus_never_negative(self, paid, due_offset_days):
        entries = (make_entry(paid),) if paid else ()
        record = make_record(due_date=NOW + timedelta(days=due_offset_days), entries=entries)

        result = compute_arrears(record, make_rules(), NOW)

        assert result.arrears_cents >= 0
        assert result.surplus_cents >= 0
        assert result.base_arrears_cents >= 0

    def test_recompute_is_idempotent(self):
        record = make_record(entries=(make_entry(120_000), make_entry(80_000, status=ApprovalStatus.PENDING)))

        once = recompute_record(record, make_rules(), NOW)
        twice = recompute_record(once, make_rules(), NOW)

        assert once == twice

    def test_approved_payments_never_increase_arrears(self):
        record = make_record()
        previous = compute_arrears(record, make_rules(), NOW).arrears_cents

        for amount in (1, 99_999, 250_000, 300_000, 100_000):
            record = replace(record, entries=record.entries + (make_entry(amount),))
            current = compute_arrears(record, make_rules(), NOW).arrears_cents
            assert current <= previous
            previous = current

        assert previous == 0


# =============================================================================
# Payment Application Tests
# =============================================================================

class TestApplyPayment:
    """Tests for apply_payment()."""

    def test_member_payment_waits_for_approval(self):
        record = make_record()

        updated = apply_payment(record, make_payment(), make_rules(), NOW)

        assert len(updated.entries) == 1
        assert updated.entries[0].approval_status == ApprovalStatus.PENDING
        assert updated.amount_paid_cents == 0
        assert updated.approval_status == ApprovalStatus.PENDING
        assert updated.arrears_cents == 550_000
        assert record.entries == ()

    def test_admin_entered_payment_is_approved(self):
        updated = apply_payment(
            make_record(), make_payment(550_000, submitted_by="admin-1"), make_rules(), NOW,
            admin_entered=True,
        )

        entry = updated.entries[0]
        assert entry.approval_status == ApprovalStatus.APPROVED
        assert entry.approved_by == "admin-1"
        assert updated.amount_paid_cents == 550_000
        assert updated.payment_status == PaymentStatus.COMPLETED
        assert updated.display_status == "Completed"

    def test_invalid_payment_lists_every_problem(self):
        with pytest.raises(ValidationException) as exc_info:
            apply_payment(
                make_record(),
                make_payment(0, method=None, proof_url=" "),
                make_rules(),
                NOW,
            )

        assert len(exc_info.value.errors) == 3

    def test_negative_amount_is_rejected(self):
        with pytest.raises(ValidationException):
            apply_payment(make_record(), make_payment(-100), make_rules(), NOW)

    def test_future_dated_payment_is_rejected(self):
        payment = make_payment(payment_date=NOW + timedelta(hours=1))

        with pytest.raises(ValidationException) as exc_info:
            apply_payment(make_record(), payment, make_rules(), NOW)

        assert exc_info.value.errors == ["payment date must not be in the future"]

    def test_payment_dated_now_is_accepted(self):
        updated = apply_payment(make_record(), make_payment(), make_rules(), NOW)

        assert updated.entries[0].payment_date == NOW


class TestReview:
    """Tests for approve_entry() and reject_entry()."""

    def _submitted(self, amount_cents: int = 200_000) -> PaymentRecord:
        return apply_payment(make_record(), make_payment(amount_cents), make_rules(), NOW)

    def test_approval_counts_the_entry(self):
        record = self._submitted()
        entry_id = record.entries[0].id

        updated = approve_entry(record, entry_id, "admin-1", make_rules(), NOW)

        assert updated.amount_paid_cents == 200_000
        assert updated.arrears_cents == 350_000
        assert updated.approval_status == ApprovalStatus.APPROVED
        assert updated.display_status == "Pending"
        assert updated.find_entry(entry_id).approved_by == "admin-1"

    def test_entry_cannot_be_approved_twice(self):
        record = self._submitted()
        entry_id = record.entries[0].id
        approved = approve_entry(record, entry_id, "admin-1", make_rules(), NOW)

        with pytest.raises(StateTransitionException):
            approve_entry(approved, entry_id, "admin-1", make_rules(), NOW)

    def test_rejection_keeps_entry_for_audit(self):
        record = self._submitted()
        entry_id = record.entries[0].id

        updated = reject_entry(record, entry_id, "admin-1", "blurry receipt", make_rules(), NOW)

        entry = updated.find_entry(entry_id)
        assert entry.approval_status == ApprovalStatus.REJECTED
        assert entry.rejection_reason == "blurry receipt"
        assert updated.amount_paid_cents == 0
        assert updated.approval_status == ApprovalStatus.REJECTED
        assert updated.display_status == "Unpaid"

    def test_rejection_needs_a_reason(self):
        record = self._submitted()

        with pytest.raises(ValidationException):
            reject_entry(record, record.entries[0].id, "admin-1", "  ", make_rules(), NOW)

    def test_rejected_entry_cannot_be_approved(self):
        record = self._submitted()
        entry_id = record.entries[0].id
        rejected = reject_entry(record, entry_id, "admin-1", "duplicate", make_rules(), NOW)

        with pytest.raises(StateTransitionException):
            approve_entry(rejected, entry_id, "admin-1", make_rules(), NOW)

    def test_unknown_entry(self):
        with pytest.raises(PaymentEntryNotFoundException):
            approve_entry(self._submitted(), "missing", "admin-1", make_rules(), NOW)

    def test_cache_drift_is_detected(self):
        record = recompute_record(make_record(entries=(make_entry(200_000),)), make_rules(), NOW)
        check_record_cache(record)

        corrupted = replace(record, amount_paid_cents=300_000)

        with pytest.raises(InconsistentLedgerException) as exc_info:
            check_record_cache(corrupted)

        assert exc_info.value.drift == {"amount_paid_cents": (300_000, 200_000)}


# =============================================================================
# Transition Tests
# =============================================================================

class TestTransitions:
    """Tests for the status transition tables."""

    @pytest.mark.parametrize("current,target", [
        (LoanStatus.PENDING, LoanStatus.APPROVED),
        (LoanStatus.PENDING, LoanStatus.REJECTED),
        (LoanStatus.APPROVED, LoanStatus.ACTIVE),
        (LoanStatus.ACTIVE, LoanStatus.REPAID),
    ])
    def test_legal_loan_transitions(self, current, target):
        check_loan_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (LoanStatus.PENDING, LoanStatus.ACTIVE),
        (LoanStatus.APPROVED, LoanStatus.REJECTED),
        (LoanStatus.REJECTED, LoanStatus.APPROVED),
        (LoanStatus.REPAID, LoanStatus.ACTIVE),
    ])
    def test_illegal_loan_transitions(self, current, target):
        with pytest.raises(StateTransitionException) as exc_info:
            check_loan_transition(current, target)

        assert exc_info.value.current == current.value
        assert exc_info.value.target == target.value

    def test_reviewed_entries_are_final(self):
        with pytest.raises(StateTransitionException):
            check_entry_transition(ApprovalStatus.APPROVED, ApprovalStatus.REJECTED)
        with pytest.raises(StateTransitionException):
            check_loan_payment_transition(LoanPaymentStatus.REJECTED, LoanPaymentStatus.APPROVED)

    def test_record_approval_is_derived_from_entries(self):
        approved = make_entry(1)
        pending = make_entry(1, status=ApprovalStatus.PENDING)
        rejected = make_entry(1, status=ApprovalStatus.REJECTED)

        assert derive_record_approval([]) == ApprovalStatus.UNPAID
        assert derive_record_approval([approved, pending]) == ApprovalStatus.PENDING
        assert derive_record_approval([approved, rejected]) == ApprovalStatus.APPROVED
        assert derive_record_approval([rejected]) == ApprovalStatus.REJECTED

    def test_legacy_loan_status_aliases(self):
        assert LoanStatus.parse("disbursed") == LoanStatus.ACTIVE
        assert LoanStatus.parse("Completed") == LoanStatus.REPAID
        assert LoanStatus.parse("pending") == LoanStatus.PENDING
