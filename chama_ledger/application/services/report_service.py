"""Report service - contribution and loan dashboards for a group."""

from typing import Optional

import structlog

from chama_ledger.application.dto import ContributionReportResponse, LoanReportResponse
from chama_ledger.core.config import settings
from chama_ledger.domain.interfaces import (
    LoanRepository,
    MemberRepository,
    PaymentRecordRepository,
)
from chama_ledger.service.ledger import PaymentType, summarize_loans, summarize_period

from .member_ledger import Clock, MemberLedger, utcnow

logger = structlog.get_logger(__name__)


class ReportService:
    """
    Application service for group reports.

    Reports are always computed from the records and loans, never from the
    members' cached summaries.
    """

    def __init__(
        self,
        member_repository: MemberRepository,
        record_repository: PaymentRecordRepository,
        loan_repository: LoanRepository,
        member_ledger: MemberLedger,
        clock: Clock = utcnow,
    ):
        self._member_repo = member_repository
        self._record_repo = record_repository
        self._loan_repo = loan_repository
        self._ledger = member_ledger
        self._clock = clock

    async def contribution_report(
        self,
        group_id: str,
        year: Optional[int] = None,
        month: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
    ) -> ContributionReportResponse:
        """
        Aggregate a group's contributions for a period.

        Args:
            group_id: The group
            year: Restrict to one year
            month: Restrict to one month name (monthly contributions only)
            payment_type: Restrict to seed money or monthly contributions
        """
        group = await self._ledger.require_group(group_id)
        if month is not None and payment_type is None:
            payment_type = PaymentType.MONTHLY_CONTRIBUTION

        records = await self._record_repo.list(
            group_id, year=year, month=month, payment_type=payment_type
        )
        summary = summarize_period(records, group.rules, self._clock())
        members = await self._member_repo.list_by_group(group_id)

        logger.info(
            "contribution_report_generated",
            group_id=group_id,
            year=year,
            month=month,
            records=len(records),
            collection_rate=summary.collection_rate,
        )

        return ContributionReportResponse.from_summary(
            group_id,
            summary,
            names={m.id: m.display_name for m in members},
            currency=settings.currency,
            year=year,
            month=month,
            payment_type=payment_type.value if payment_type else None,
        )

    async def loan_report(self, group_id: str) -> LoanReportResponse:
        """Summarize every loan of a group by status."""
        await self._ledger.require_group(group_id)
        loans = await self._loan_repo.list_by_group(group_id)
        summary = summarize_loans(loans)

        logger.info("loan_report_generated", group_id=group_id, loans=len(loans))

        return LoanReportResponse.from_summary(group_id, summary)
