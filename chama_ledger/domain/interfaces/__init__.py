"""
Domain Interfaces (Ports)
"""

from .repositories import (
    GroupRepository,
    LoanRepository,
    MemberRepository,
    PaymentRecordRepository,
)
from .clients import NotificationClient

__all__ = [
    "GroupRepository",
    "MemberRepository",
    "PaymentRecordRepository",
    "LoanRepository",
    "NotificationClient",
]
