"""
Status transition tables.

Every status change in the ledger goes through one of the check_* functions
below. A transition missing from its table raises StateTransitionException.
"""

from typing import Dict, FrozenSet, Iterable

from chama_ledger.domain.exceptions import StateTransitionException

from .models import ApprovalStatus, LoanPaymentStatus, LoanStatus, PaymentEntry

ENTRY_TRANSITIONS: Dict[ApprovalStatus, FrozenSet[ApprovalStatus]] = {
    ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
    ApprovalStatus.APPROVED: frozenset(),
    ApprovalStatus.REJECTED: frozenset(),
}

LOAN_TRANSITIONS: Dict[LoanStatus, FrozenSet[LoanStatus]] = {
    LoanStatus.PENDING: frozenset({LoanStatus.APPROVED, LoanStatus.REJECTED}),
    LoanStatus.APPROVED: frozenset({LoanStatus.ACTIVE}),
    LoanStatus.ACTIVE: frozenset({LoanStatus.REPAID}),
    LoanStatus.REPAID: frozenset(),
    LoanStatus.REJECTED: frozenset(),
}

LOAN_PAYMENT_TRANSITIONS: Dict[LoanPaymentStatus, FrozenSet[LoanPaymentStatus]] = {
    LoanPaymentStatus.PENDING: frozenset({LoanPaymentStatus.APPROVED, LoanPaymentStatus.REJECTED}),
    LoanPaymentStatus.APPROVED: frozenset(),
    LoanPaymentStatus.REJECTED: frozenset(),
}


def check_entry_transition(current: ApprovalStatus, target: ApprovalStatus) -> None:
    if target not in ENTRY_TRANSITIONS.get(current, frozenset()):
        raise StateTransitionException("payment_entry", current.value, target.value)


def check_loan_transition(current: LoanStatus, target: LoanStatus) -> None:
    if target not in LOAN_TRANSITIONS.get(current, frozenset()):
        raise StateTransitionException("loan", current.value, target.value)


def check_loan_payment_transition(current: LoanPaymentStatus, target: LoanPaymentStatus) -> None:
    if target not in LOAN_PAYMENT_TRANSITIONS.get(current, frozenset()):
        raise StateTransitionException("loan_payment", current.value, target.value)


def derive_record_approval(entries: Iterable[PaymentEntry]) -> ApprovalStatus:
    """
    Derive a record's approval status from its entries.

    No entries: unpaid. Any entry awaiting review: pending. Otherwise approved
    when at least one entry was approved, rejected when all were rejected.
    """
    statuses = [entry.approval_status for entry in entries]
    if not statuses:
        return ApprovalStatus.UNPAID
    if ApprovalStatus.PENDING in statuses:
        return ApprovalStatus.PENDING
    if ApprovalStatus.APPROVED in statuses:
        return ApprovalStatus.APPROVED
    return ApprovalStatus.REJECTED
