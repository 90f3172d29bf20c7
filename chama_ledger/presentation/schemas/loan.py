"""Loan Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class LoanRequestSchema(BaseModel):
    """Schema for POST /v1/groups/{group_id}/loans request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "borrower_id": "2b1f0c4e-6a57-4f0e-9d0b-3a1c2e4f5a6b",
                    "amount_cents": 10000000,
                    "repayment_months": 3,
                    "purpose": "School fees",
                }
            ]
        }
    )

    borrower_id: str = Field(..., min_length=1)
    amount_cents: int = Field(..., gt=0, description="Principal in cents")
    repayment_months: int = Field(..., ge=1, description="Number of monthly installments")
    purpose: str = Field("", description="What the loan is for")


class RepaymentSchema(BaseModel):
    """Schema for POST /v1/loans/{loan_id}/payments request body."""

    actor_id: str = Field(..., min_length=1, description="Borrower submitting the repayment")
    amount_cents: int = Field(..., gt=0)
    proof_url: str = Field(..., min_length=1, description="Link to the payment proof")
    method: str = Field("Other", description="Payment method")
    payment_date: Optional[datetime] = None
    notes: str = ""


class InstallmentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month_index: int = Field(..., ge=1)
    due_date: Optional[str] = Field(None, description="Set when the loan is disbursed")
    principal_cents: int
    interest_cents: int
    amount_cents: int
    paid: bool


class LoanPaymentSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_id: str
    amount_cents: int
    payment_date: str
    submitted_by: str
    proof_url: str
    method: str
    status: str
    penalty_cents: int
    approved_by: Optional[str] = None
    rejection_reason: Optional[str] = None


class LoanSchema(BaseModel):
    """Schema for a loan with its schedule, repayments and balance."""

    model_config = ConfigDict(from_attributes=True)

    loan_id: str
    group_id: str
    borrower_id: str
    status: str = Field(..., examples=["active"])
    loan_amount_cents: int
    purpose: str
    repayment_months: int
    requested_at: str
    approved_at: Optional[str] = None
    disbursed_at: Optional[str] = None
    rejected_at: Optional[str] = None
    rejection_reason: Optional[str] = None
    total_interest_cents: int
    total_repayable_cents: int
    amount_repaid_cents: int
    amount_remaining_cents: int
    pending_cents: int
    penalties_cents: int
    progress_percent: float
    amount_remaining_display: str
    version: int
    schedule: list[InstallmentSchema] = Field(default_factory=list)
    payments: list[LoanPaymentSchema] = Field(default_factory=list)
