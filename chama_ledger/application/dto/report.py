"""Data transfer objects for group reports."""

from dataclasses import dataclass, field
from typing import List, Optional

from chama_ledger.service.ledger import format_currency


@dataclass(frozen=True)
class MemberPeriodDTO:
    """One member's line in a contribution report."""
    member_id: str
    display_name: str
    expected_cents: int
    paid_cents: int
    pending_cents: int
    arrears_cents: int
    penalty_cents: int
    percentage_paid: float
    classification: str


@dataclass(frozen=True)
class ContributionReportResponse:
    """Contribution totals for a group and period."""

    group_id: str
    year: Optional[int]
    month: Optional[str]
    payment_type: Optional[str]
    total_expected_cents: int
    total_collected_cents: int
    total_pending_approval_cents: int
    total_outstanding_cents: int
    total_penalties_cents: int
    collection_rate: float
    compliance_rate: float
    fully_paid: int
    partial: int
    unpaid: int
    total_collected_display: str
    members: List[MemberPeriodDTO] = field(default_factory=list)

    @classmethod
    def from_summary(
        cls,
        group_id: str,
        summary,
        names: dict,
        currency: str,
        year: Optional[int] = None,
        month: Optional[str] = None,
        payment_type: Optional[str] = None,
    ) -> "ContributionReportResponse":
        return cls(
            group_id=group_id,
            year=year,
            month=month,
            payment_type=payment_type,
            total_expected_cents=summary.total_expected_cents,
            total_collected_cents=summary.total_collected_cents,
            total_pending_approval_cents=summary.total_pending_approval_cents,
            total_outstanding_cents=summary.total_outstanding_cents,
            total_penalties_cents=summary.total_penalties_cents,
            collection_rate=summary.collection_rate,
            compliance_rate=summary.compliance_rate,
            fully_paid=summary.fully_paid,
            partial=summary.partial,
            unpaid=summary.unpaid,
            total_collected_display=format_currency(summary.total_collected_cents, currency),
            members=[
                MemberPeriodDTO(
                    member_id=m.member_id,
                    display_name=names.get(m.member_id, ""),
                    expected_cents=m.expected_cents,
                    paid_cents=m.paid_cents,
                    pending_cents=m.pending_cents,
                    arrears_cents=m.arrears_cents,
                    penalty_cents=m.penalty_cents,
                    percentage_paid=m.percentage_paid,
                    classification=m.classification.value,
                )
                for m in summary.members
            ],
        )


@dataclass(frozen=True)
class LoanReportResponse:
    """Loan portfolio totals for a group."""

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

    @classmethod
    def from_summary(cls, group_id: str, summary) -> "LoanReportResponse":
        return cls(
            group_id=group_id,
            pending_count=summary.pending_count,
            active_count=summary.active_count,
            repaid_count=summary.repaid_count,
            rejected_count=summary.rejected_count,
            total_disbursed_cents=summary.total_disbursed_cents,
            total_outstanding_cents=summary.total_outstanding_cents,
            total_repaid_cents=summary.total_repaid_cents,
            total_interest_cents=summary.total_interest_cents,
            total_penalties_cents=summary.total_penalties_cents,
        )
