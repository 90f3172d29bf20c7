"""Loan lifecycle endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Path

from chama_ledger.application.dto import LoanApplication, RepaymentRequest, ReviewRequest
from chama_ledger.application.services import LoanService
from chama_ledger.core.dependencies import get_loan_service
from chama_ledger.presentation.schemas import (
    ErrorResponseSchema,
    LoanRequestSchema,
    LoanSchema,
    RepaymentSchema,
    ReviewSchema,
)

loans_router = APIRouter(
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        403: {"model": ErrorResponseSchema, "description": "Not allowed"},
        404: {"model": ErrorResponseSchema, "description": "Loan not found"},
        409: {"model": ErrorResponseSchema, "description": "Conflict with current state"},
    },
)

LoanId = Annotated[str, Path(description="ID of the loan")]
PaymentId = Annotated[str, Path(description="ID of the repayment")]


def _review(request: ReviewSchema) -> ReviewRequest:
    return ReviewRequest(actor_id=request.actor_id, reason=request.reason)


@loans_router.post(
    "/groups/{group_id}/loans",
    response_model=LoanSchema,
    status_code=201,
    summary="Request Loan",
)
async def request_loan(
    group_id: Annotated[str, Path(description="ID of the group")],
    request: LoanRequestSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    dto = LoanApplication(
        borrower_id=request.borrower_id,
        amount_cents=request.amount_cents,
        repayment_months=request.repayment_months,
        purpose=request.purpose,
    )
    response = await loan_service.request_loan(group_id, dto)
    return LoanSchema.model_validate(response)


@loans_router.get(
    "/loans/{loan_id}",
    response_model=LoanSchema,
    summary="Get Loan",
)
async def get_loan(
    loan_id: LoanId,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    response = await loan_service.get_loan(loan_id)
    return LoanSchema.model_validate(response)


@loans_router.post(
    "/loans/{loan_id}/approve",
    response_model=LoanSchema,
    summary="Approve Loan",
    description="Approve a pending loan and fix its interest schedule.",
)
async def approve_loan(
    loan_id: LoanId,
    request: ReviewSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    response = await loan_service.approve_loan(loan_id, _review(request))
    return LoanSchema.model_validate(response)


@loans_router.post(
    "/loans/{loan_id}/reject",
    response_model=LoanSchema,
    summary="Reject Loan",
)
async def reject_loan(
    loan_id: LoanId,
    request: ReviewSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    response = await loan_service.reject_loan(loan_id, _review(request))
    return LoanSchema.model_validate(response)


@loans_router.post(
    "/loans/{loan_id}/disburse",
    response_model=LoanSchema,
    summary="Disburse Loan",
    description="Hand out an approved loan; installment due dates start from now.",
)
async def disburse_loan(
    loan_id: LoanId,
    request: ReviewSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    response = await loan_service.disburse_loan(loan_id, _review(request))
    return LoanSchema.model_validate(response)


@loans_router.post(
    "/loans/{loan_id}/payments",
    response_model=LoanSchema,
    status_code=201,
    summary="Submit Repayment",
)
async def submit_repayment(
    loan_id: LoanId,
    request: RepaymentSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    dto = RepaymentRequest(
        actor_id=request.actor_id,
        amount_cents=request.amount_cents,
        proof_url=request.proof_url,
        method=request.method,
        payment_date=request.payment_date,
        notes=request.notes,
    )
    response = await loan_service.submit_repayment(loan_id, dto)
    return LoanSchema.model_validate(response)


@loans_router.post(
    "/loans/{loan_id}/payments/{payment_id}/approve",
    response_model=LoanSchema,
    summary="Approve Repayment",
)
async def approve_repayment(
    loan_id: LoanId,
    payment_id: PaymentId,
    request: ReviewSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    response = await loan_service.approve_repayment(loan_id, payment_id, _review(request))
    return LoanSchema.model_validate(response)


@loans_router.post(
    "/loans/{loan_id}/payments/{payment_id}/reject",
    response_model=LoanSchema,
    summary="Reject Repayment",
)
async def reject_repayment(
    loan_id: LoanId,
    payment_id: PaymentId,
    request: ReviewSchema,
    loan_service: Annotated[LoanService, Depends(get_loan_service)],
) -> LoanSchema:
    response = await loan_service.reject_repayment(loan_id, payment_id, _review(request))
    return LoanSchema.model_validate(response)
