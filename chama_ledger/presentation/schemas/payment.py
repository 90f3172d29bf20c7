"""Contribution payment Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SubmitPaymentSchema(BaseModel):
    """Schema for POST /v1/payments/{record_id}/entries request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "actor_id": "2b1f0c4e-6a57-4f0e-9d0b-3a1c2e4f5a6b",
                    "amount_cents": 200000,
                    "method": "Mobile Money",
                    "proof_url": "https://example.com/receipts/123.png",
                }
            ]
        }
    )

    actor_id: str = Field(..., min_length=1, description="Member submitting the payment")
    amount_cents: int = Field(..., gt=0, description="Amount paid in cents")
    method: str = Field(..., min_length=1, description="Payment method", examples=["Cash"])
    proof_url: str = Field(..., min_length=1, description="Link to the payment proof")
    payment_date: Optional[datetime] = Field(None, description="Defaults to now")
    admin_entered: bool = Field(
        False,
        description="Recorded by an admin on the member's behalf; approved immediately",
    )


class ReviewSchema(BaseModel):
    """Schema for approve/reject request bodies."""

    actor_id: str = Field(..., min_length=1, description="Admin reviewing")
    reason: Optional[str] = Field(None, description="Required when rejecting")


class PaymentEntrySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    amount_cents: int
    payment_date: str
    method: str
    proof_url: str
    submitted_by: str
    approval_status: str
    approved_by: Optional[str] = None
    reviewed_at: Optional[str] = None
    rejection_reason: Optional[str] = None


class PaymentRecordSchema(BaseModel):
    """Schema for a payment record with arrears computed at request time."""

    model_config = ConfigDict(from_attributes=True)

    record_id: str
    group_id: str
    member_id: str
    payment_type: str = Field(..., examples=["MonthlyContribution"])
    period_key: str = Field(..., examples=["2024_January"])
    year: int
    month: Optional[str] = None
    due_date: Optional[str] = None
    total_amount_cents: int
    amount_paid_cents: int
    arrears_cents: int
    penalty_cents: int
    surplus_cents: int
    base_arrears_cents: int
    is_overdue: bool
    approval_status: str
    payment_status: str
    display_status: str
    arrears_display: str
    version: int
    entries: list[PaymentEntrySchema] = Field(default_factory=list)


class PaymentRecordListSchema(BaseModel):
    records: list[PaymentRecordSchema]
