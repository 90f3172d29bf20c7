"""Domain Exceptions - Business rule violations and domain errors."""

from .base import DomainException
from .ledger import (
    ConcurrentModificationException,
    InconsistentLedgerException,
    NotAuthorizedException,
    StateTransitionException,
    ValidationException,
)
from .not_found import (
    GroupNotFoundException,
    LoanNotFoundException,
    MemberNotFoundException,
    PaymentEntryNotFoundException,
    PaymentRecordNotFoundException,
)

__all__ = [
    "DomainException",
    "ValidationException",
    "StateTransitionException",
    "InconsistentLedgerException",
    "ConcurrentModificationException",
    "NotAuthorizedException",
    "GroupNotFoundException",
    "MemberNotFoundException",
    "PaymentRecordNotFoundException",
    "PaymentEntryNotFoundException",
    "LoanNotFoundException",
]
