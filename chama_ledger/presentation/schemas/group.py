"""Group and membership Pydantic schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class CreateGroupSchema(BaseModel):
    """Schema for POST /v1/groups request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Tiyende Pamodzi",
                    "creator_name": "Chikondi Banda",
                    "cycle_start": "2024-01-01T00:00:00Z",
                    "rules": {
                        "seed_money": {"amount_cents": 500000, "due_date": "2024-01-31T00:00:00Z"},
                        "monthly_contribution": {"amount_cents": 200000, "day_of_month": 5},
                        "monthly_penalty": {"rate": 10, "grace_period_days": 5},
                        "loan_interest": {"month1": 10, "month2": 5, "month3_and_beyond": 5},
                        "loan_rules": {"max_loan_cents": 50000000, "max_repayment_months": 3},
                    },
                }
            ]
        }
    )

    name: str = Field(..., min_length=1, max_length=255, description="Group name")
    creator_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name of the founding member, who becomes senior admin",
    )
    cycle_start: datetime = Field(..., description="Start of the contribution cycle")
    rules: dict[str, Any] = Field(
        default_factory=dict,
        description="Group rules; canonical or legacy field names are accepted",
    )

    @field_validator("name", "creator_name")
    @classmethod
    def strip_names(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty or whitespace")
        return v.strip()


class UpdateRulesSchema(BaseModel):
    """Schema for PUT /v1/groups/{group_id}/rules request body."""

    actor_id: str = Field(..., min_length=1, description="Admin making the change")
    rules: dict[str, Any] = Field(..., description="Replacement rules")


class AddMemberSchema(BaseModel):
    """Schema for POST /v1/groups/{group_id}/members request body."""

    actor_id: str = Field(..., min_length=1, description="Admin adding the member")
    display_name: str = Field(..., min_length=1, max_length=255)
    role: Literal["member", "admin", "senior_admin"] = "member"


class RegisterMemberSchema(BaseModel):
    """Schema for POST /v1/groups/{group_id}/registrations request body."""

    display_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("display_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("cannot be empty or whitespace")
        return v.strip()


class ActorSchema(BaseModel):
    """Request body naming the member performing an action."""

    actor_id: str = Field(..., min_length=1)


class MemberSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    member_id: str
    group_id: str
    display_name: str
    role: str
    status: str
    joined_at: str


class GroupSchema(BaseModel):
    """Schema for a group with its normalized rules and members."""

    model_config = ConfigDict(from_attributes=True)

    group_id: str
    name: str
    status: str
    cycle_start: str
    created_by: str
    rules: dict[str, Any] = Field(..., description="Rules in canonical form")
    members: list[MemberSchema] = Field(default_factory=list)


class MemberSummarySchema(BaseModel):
    """Schema for a member's financial summary."""

    model_config = ConfigDict(from_attributes=True)

    group_id: str
    member_id: str
    total_paid_cents: int = Field(..., ge=0)
    total_arrears_cents: int = Field(..., ge=0)
    total_pending_cents: int = Field(..., ge=0)
    total_loans_cents: int = Field(..., ge=0)
    total_loans_paid_cents: int = Field(..., ge=0)
    total_penalties_cents: int = Field(..., ge=0)
    total_paid_display: str = Field(..., examples=["MWK 12,000.00"])
    total_arrears_display: str
