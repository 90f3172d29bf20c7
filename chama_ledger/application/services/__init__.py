"""Application services (use cases)."""

from .member_ledger import MemberLedger
from .group_service import GroupService
from .payment_service import PaymentService
from .loan_service import LoanService
from .report_service import ReportService

__all__ = [
    "MemberLedger",
    "GroupService",
    "PaymentService",
    "LoanService",
    "ReportService",
]
