"""Pydantic schemas for API request/response validation."""

from .error import ErrorResponseSchema
from .group import (
    ActorSchema,
    AddMemberSchema,
    CreateGroupSchema,
    GroupSchema,
    MemberSchema,
    MemberSummarySchema,
    RegisterMemberSchema,
    UpdateRulesSchema,
)
from .loan import LoanRequestSchema, LoanSchema, RepaymentSchema
from .payment import (
    PaymentRecordListSchema,
    PaymentRecordSchema,
    ReviewSchema,
    SubmitPaymentSchema,
)
from .report import ContributionReportSchema, LoanReportSchema

__all__ = [
    "ErrorResponseSchema",
    "ActorSchema",
    "AddMemberSchema",
    "CreateGroupSchema",
    "GroupSchema",
    "MemberSchema",
    "MemberSummarySchema",
    "RegisterMemberSchema",
    "UpdateRulesSchema",
    "LoanRequestSchema",
    "LoanSchema",
    "RepaymentSchema",
    "PaymentRecordListSchema",
    "PaymentRecordSchema",
    "ReviewSchema",
    "SubmitPaymentSchema",
    "ContributionReportSchema",
    "LoanReportSchema",
]
