"""Lookup failures for ledger entities."""

from .base import DomainException


class GroupNotFoundException(DomainException):
    """Raised when a group cannot be found."""

    def __init__(self, group_id: str):
        super().__init__(
            message=f"Group not found: {group_id}",
            code="GROUP_NOT_FOUND",
        )
        self.group_id = group_id


class MemberNotFoundException(DomainException):
    """Raised when a member is not part of the group."""

    def __init__(self, group_id: str, member_id: str):
        super().__init__(
            message=f"Member {member_id} not found in group {group_id}",
            code="MEMBER_NOT_FOUND",
        )
        self.group_id = group_id
        self.member_id = member_id


class PaymentRecordNotFoundException(DomainException):
    """Raised when a payment record cannot be found."""

    def __init__(self, record_id: str):
        super().__init__(
            message=f"Payment record not found: {record_id}",
            code="PAYMENT_RECORD_NOT_FOUND",
        )
        self.record_id = record_id


class PaymentEntryNotFoundException(DomainException):
    """Raised when a payment entry id is not on the record or loan."""

    def __init__(self, parent_id: str, entry_id: str):
        super().__init__(
            message=f"Payment {entry_id} not found on {parent_id}",
            code="PAYMENT_NOT_FOUND",
        )
        self.parent_id = parent_id
        self.entry_id = entry_id


class LoanNotFoundException(DomainException):
    """Raised when a loan cannot be found."""

    def __init__(self, loan_id: str):
        super().__init__(
            message=f"Loan not found: {loan_id}",
            code="LOAN_NOT_FOUND",
        )
        self.loan_id = loan_id
