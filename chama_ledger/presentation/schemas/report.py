"""Report Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MemberPeriodSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    member_id: str
    display_name: str
    expected_cents: int
    paid_cents: int
    pending_cents: int
    arrears_cents: int
    penalty_cents: int
    percentage_paid: float
    classification: str = Field(..., examples=["fully_paid"])


class ContributionReportSchema(BaseModel):
    """Schema for GET /v1/groups/{group_id}/reports/contributions."""

    model_config = ConfigDict(from_attributes=True)

    group_id: str
    year: Optional[int] = None
    month: Optional[str] = None
    payment_type: Optional[str] = None
    total_expected_cents: int
    total_collected_cents: int
    total_pending_approval_cents: int
    total_outstanding_cents: int
    total_penalties_cents: int
    collection_rate: float = Field(..., description="Collected as a percentage of expected")
    compliance_rate: float = Field(..., description="Fully paid members as a percentage")
    fully_paid: int
    partial: int
    unpaid: int
    total_collected_display: str
    members: list[MemberPeriodSchema] = Field(default_factory=list)


class LoanReportSchema(BaseModel):
    """Schema for GET /v1/groups/{group_id}/reports/loans."""

    model_config = ConfigDict(from_attributes=True)

    group_id: str
    pending_count: int
    active_count: int
    repaid_count: int
    rejected_count: int
    total_disbursed_cents: int
    total_outstanding_cents: int
    total_repaid_cents: int
    total_interest_cents: int
    total_penalties_cents: int
