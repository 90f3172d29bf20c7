"""Contribution payment endpoints."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query

from chama_ledger.application.dto import ReviewRequest, SubmitPaymentRequest
from chama_ledger.application.services import PaymentService
from chama_ledger.core.dependencies import get_payment_service
from chama_ledger.presentation.schemas import (
    ErrorResponseSchema,
    PaymentRecordListSchema,
    PaymentRecordSchema,
    ReviewSchema,
    SubmitPaymentSchema,
)
from chama_ledger.service.ledger import PaymentType

payments_router = APIRouter(
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        403: {"model": ErrorResponseSchema, "description": "Not allowed"},
        404: {"model": ErrorResponseSchema, "description": "Record or payment not found"},
        409: {"model": ErrorResponseSchema, "description": "Conflict with current state"},
    },
)

RecordId = Annotated[str, Path(description="ID of the payment record")]
EntryId = Annotated[str, Path(description="ID of the payment entry")]


@payments_router.get(
    "/groups/{group_id}/payments",
    response_model=PaymentRecordListSchema,
    summary="List Payment Records",
)
async def list_records(
    group_id: Annotated[str, Path(description="ID of the group")],
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
    member_id: Annotated[Optional[str], Query(description="Only this member's records")] = None,
    year: Annotated[Optional[int], Query(ge=1900, le=9999)] = None,
    payment_type: Annotated[Optional[PaymentType], Query()] = None,
) -> PaymentRecordListSchema:
    records = await payment_service.list_records(
        group_id, member_id=member_id, year=year, payment_type=payment_type
    )
    return PaymentRecordListSchema(
        records=[PaymentRecordSchema.model_validate(r) for r in records]
    )


@payments_router.get(
    "/payments/{record_id}",
    response_model=PaymentRecordSchema,
    summary="Get Payment Record",
    description="""
    Retrieve a payment record. Arrears and penalties are computed at
    request time; 409 is returned if the cached amount paid disagrees
    with the approved entries.
    """,
)
async def get_record(
    record_id: RecordId,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentRecordSchema:
    response = await payment_service.get_record(record_id)
    return PaymentRecordSchema.model_validate(response)


@payments_router.post(
    "/payments/{record_id}/entries",
    response_model=PaymentRecordSchema,
    status_code=201,
    summary="Submit Payment",
)
async def submit_payment(
    record_id: RecordId,
    request: SubmitPaymentSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentRecordSchema:
    dto = SubmitPaymentRequest(
        actor_id=request.actor_id,
        amount_cents=request.amount_cents,
        method=request.method,
        proof_url=request.proof_url,
        payment_date=request.payment_date,
        admin_entered=request.admin_entered,
    )
    response = await payment_service.submit_payment(record_id, dto)
    return PaymentRecordSchema.model_validate(response)


@payments_router.post(
    "/payments/{record_id}/entries/{entry_id}/approve",
    response_model=PaymentRecordSchema,
    summary="Approve Payment",
)
async def approve_entry(
    record_id: RecordId,
    entry_id: EntryId,
    request: ReviewSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentRecordSchema:
    dto = ReviewRequest(actor_id=request.actor_id, reason=request.reason)
    response = await payment_service.approve_entry(record_id, entry_id, dto)
    return PaymentRecordSchema.model_validate(response)


@payments_router.post(
    "/payments/{record_id}/entries/{entry_id}/reject",
    response_model=PaymentRecordSchema,
    summary="Reject Payment",
    description="Reject a pending payment. A reason is required.",
)
async def reject_entry(
    record_id: RecordId,
    entry_id: EntryId,
    request: ReviewSchema,
    payment_service: Annotated[PaymentService, Depends(get_payment_service)],
) -> PaymentRecordSchema:
    dto = ReviewRequest(actor_id=request.actor_id, reason=request.reason)
    response = await payment_service.reject_entry(record_id, entry_id, dto)
    return PaymentRecordSchema.model_validate(response)
