"""Data Transfer Objects for application layer."""

from .group import (
    AddMemberRequest,
    CreateGroupRequest,
    GroupResponse,
    MemberResponse,
    MemberSummaryResponse,
    RegistrationRequest,
)
from .loan import LoanApplication, LoanResponse, RepaymentRequest
from .payment import PaymentRecordResponse, ReviewRequest, SubmitPaymentRequest
from .report import ContributionReportResponse, LoanReportResponse

__all__ = [
    "AddMemberRequest",
    "CreateGroupRequest",
    "GroupResponse",
    "MemberResponse",
    "MemberSummaryResponse",
    "RegistrationRequest",
    "LoanApplication",
    "LoanResponse",
    "RepaymentRequest",
    "PaymentRecordResponse",
    "ReviewRequest",
    "SubmitPaymentRequest",
    "ContributionReportResponse",
    "LoanReportResponse",
]
