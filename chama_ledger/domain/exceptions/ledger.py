"""Ledger calculation and workflow exceptions."""

from typing import Dict, List, Optional

from .base import DomainException


class ValidationException(DomainException):
    """Raised when ledger input is malformed."""

    def __init__(self, errors: List[str] | str):
        if isinstance(errors, str):
            errors = [errors]
        super().__init__(
            message="; ".join(errors),
            code="VALIDATION_ERROR",
        )
        self.errors = list(errors)


class StateTransitionException(DomainException):
    """Raised when an operation is not allowed in the entity's current state."""

    def __init__(
        self,
        entity: str,
        current: str,
        target: Optional[str] = None,
        message: Optional[str] = None,
    ):
        if message is None:
            if target is None:
                message = f"{entity} cannot be modified while {current}"
            else:
                message = f"{entity} cannot move from {current} to {target}"
        super().__init__(
            message=message,
            code="INVALID_STATE_TRANSITION",
        )
        self.entity = entity
        self.current = current
        self.target = target


class InconsistentLedgerException(DomainException):
    """
    Raised when a recompute from the ledger disagrees with a cached value.

    Signals upstream data corruption. The cached value is never overwritten
    silently; callers must rebuild it explicitly.
    """

    def __init__(self, entity_id: str, drift: Dict[str, tuple]):
        details = ", ".join(
            f"{field} cached={cached} ledger={actual}"
            for field, (cached, actual) in sorted(drift.items())
        )
        super().__init__(
            message=f"Ledger mismatch for {entity_id}: {details}",
            code="INCONSISTENT_LEDGER",
        )
        self.entity_id = entity_id
        self.drift = drift


class ConcurrentModificationException(DomainException):
    """Raised when a record changed between read and write."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            message=f"{entity} {entity_id} was modified concurrently; reload and retry",
            code="CONCURRENT_MODIFICATION",
        )
        self.entity = entity
        self.entity_id = entity_id


class NotAuthorizedException(DomainException):
    """Raised when a member attempts an admin-only action."""

    def __init__(self, member_id: str, action: str):
        super().__init__(
            message=f"Member {member_id} is not allowed to {action}",
            code="NOT_AUTHORIZED",
        )
        self.member_id = member_id
        self.action = action
