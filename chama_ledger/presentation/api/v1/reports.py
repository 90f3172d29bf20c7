"""Group report endpoints."""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query

from chama_ledger.application.services import ReportService
from chama_ledger.core.dependencies import get_report_service
from chama_ledger.presentation.schemas import (
    ContributionReportSchema,
    ErrorResponseSchema,
    LoanReportSchema,
)
from chama_ledger.service.ledger import PaymentType

reports_router = APIRouter(
    prefix="/groups/{group_id}/reports",
    responses={
        404: {"model": ErrorResponseSchema, "description": "Group not found"},
    },
)

GroupId = Annotated[str, Path(description="ID of the group")]


@reports_router.get(
    "/contributions",
    response_model=ContributionReportSchema,
    summary="Contribution Report",
    description="""
    Expected, collected, pending and outstanding totals for a period,
    with per-member classification. Filtering by month implies monthly
    contributions.
    """,
)
async def contribution_report(
    group_id: GroupId,
    report_service: Annotated[ReportService, Depends(get_report_service)],
    year: Annotated[Optional[int], Query(ge=1900, le=9999)] = None,
    month: Annotated[Optional[str], Query(description="Month name, e.g. January")] = None,
    payment_type: Annotated[Optional[PaymentType], Query()] = None,
) -> ContributionReportSchema:
    response = await report_service.contribution_report(
        group_id, year=year, month=month, payment_type=payment_type
    )
    return ContributionReportSchema.model_validate(response)


@reports_router.get(
    "/loans",
    response_model=LoanReportSchema,
    summary="Loan Portfolio Report",
)
async def loan_report(
    group_id: GroupId,
    report_service: Annotated[ReportService, Depends(get_report_service)],
) -> LoanReportSchema:
    response = await report_service.loan_report(group_id)
    return LoanReportSchema.model_validate(response)
