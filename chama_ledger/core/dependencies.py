"""Dependency injection for FastAPI."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from chama_ledger.infrastructure.database import get_db_session
from chama_ledger.infrastructure.repositories import (
    PostgresGroupRepository,
    PostgresLoanRepository,
    PostgresMemberRepository,
    PostgresPaymentRecordRepository,
)
from chama_ledger.infrastructure.clients import HttpNotificationClient
from chama_ledger.application.services import (
    GroupService,
    LoanService,
    MemberLedger,
    PaymentService,
    ReportService,
)


# Repository dependencies
async def get_group_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresGroupRepository:
    """Get a GroupRepository instance."""
    return PostgresGroupRepository(session)


async def get_member_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresMemberRepository:
    """Get a MemberRepository instance."""
    return PostgresMemberRepository(session)


async def get_record_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresPaymentRecordRepository:
    """Get a PaymentRecordRepository instance."""
    return PostgresPaymentRecordRepository(session)


async def get_loan_repository(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> PostgresLoanRepository:
    """Get a LoanRepository instance."""
    return PostgresLoanRepository(session)


# External client dependencies
def get_notification_client() -> HttpNotificationClient:
    """Get a NotificationClient instance."""
    return HttpNotificationClient()


# Service dependencies
async def get_member_ledger(
    group_repo: Annotated[PostgresGroupRepository, Depends(get_group_repository)],
    member_repo: Annotated[PostgresMemberRepository, Depends(get_member_repository)],
    record_repo: Annotated[PostgresPaymentRecordRepository, Depends(get_record_repository)],
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
) -> MemberLedger:
    """Get the shared member ledger helper."""
    return MemberLedger(
        group_repository=group_repo,
        member_repository=member_repo,
        record_repository=record_repo,
        loan_repository=loan_repo,
    )


async def get_group_service(
    group_repo: Annotated[PostgresGroupRepository, Depends(get_group_repository)],
    member_repo: Annotated[PostgresMemberRepository, Depends(get_member_repository)],
    record_repo: Annotated[PostgresPaymentRecordRepository, Depends(get_record_repository)],
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    member_ledger: Annotated[MemberLedger, Depends(get_member_ledger)],
    notification_client: Annotated[HttpNotificationClient, Depends(get_notification_client)],
) -> GroupService:
    """Get a GroupService instance."""
    return GroupService(
        group_repository=group_repo,
        member_repository=member_repo,
        record_repository=record_repo,
        loan_repository=loan_repo,
        member_ledger=member_ledger,
        notification_client=notification_client,
    )


async def get_payment_service(
    record_repo: Annotated[PostgresPaymentRecordRepository, Depends(get_record_repository)],
    member_ledger: Annotated[MemberLedger, Depends(get_member_ledger)],
    notification_client: Annotated[HttpNotificationClient, Depends(get_notification_client)],
) -> PaymentService:
    """Get a PaymentService instance."""
    return PaymentService(
        record_repository=record_repo,
        member_ledger=member_ledger,
        notification_client=notification_client,
    )


async def get_loan_service(
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    member_ledger: Annotated[MemberLedger, Depends(get_member_ledger)],
    notification_client: Annotated[HttpNotificationClient, Depends(get_notification_client)],
) -> LoanService:
    """Get a LoanService instance."""
    return LoanService(
        loan_repository=loan_repo,
        member_ledger=member_ledger,
        notification_client=notification_client,
    )


async def get_report_service(
    member_repo: Annotated[PostgresMemberRepository, Depends(get_member_repository)],
    record_repo: Annotated[PostgresPaymentRecordRepository, Depends(get_record_repository)],
    loan_repo: Annotated[PostgresLoanRepository, Depends(get_loan_repository)],
    member_ledger: Annotated[MemberLedger, Depends(get_member_ledger)],
) -> ReportService:
    """Get a ReportService instance."""
    return ReportService(
        member_repository=member_repo,
        record_repository=record_repo,
        loan_repository=loan_repo,
        member_ledger=member_ledger,
    )
