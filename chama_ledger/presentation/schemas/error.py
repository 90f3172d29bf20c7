"""Pydantic schema for API error responses."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponseSchema(BaseModel):
    """Standard error response format for all API errors."""
    error: str = Field(
        ...,
        description="Error code",
        examples=["INVALID_STATE_TRANSITION"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["loan cannot move from pending to active"],
    )
    request_id: str | None = Field(
        None,
        description="Request ID for tracing",
    )
    details: list[str] | None = Field(
        None,
        description="Individual validation errors",
    )
    drift: dict[str, Any] | None = Field(
        None,
        description="Cached and ledger values of fields that disagree",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "error": "VALIDATION_ERROR",
                    "message": "amount_cents must be positive",
                    "request_id": "abc123",
                    "details": ["amount_cents must be positive"],
                }
            ]
        }
    }
