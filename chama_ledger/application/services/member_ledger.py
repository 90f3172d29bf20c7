"""Shared helpers for services that read or change a member's ledger."""

from datetime import datetime, timezone
from typing import Callable

import structlog

from chama_ledger.core.metrics import record_inconsistency
from chama_ledger.domain.entities import Group, Member, MemberStatus
from chama_ledger.domain.exceptions import (
    GroupNotFoundException,
    InconsistentLedgerException,
    MemberNotFoundException,
    NotAuthorizedException,
    StateTransitionException,
)
from chama_ledger.domain.interfaces import (
    GroupRepository,
    LoanRepository,
    MemberRepository,
    PaymentRecordRepository,
)
from chama_ledger.service.ledger import (
    MemberFinancialSummary,
    member_financial_summary,
    reconcile_summary,
)

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemberLedger:
    """
    Loads groups and members and keeps each member's cached summary in step
    with their records and loans.
    """

    def __init__(
        self,
        group_repository: GroupRepository,
        member_repository: MemberRepository,
        record_repository: PaymentRecordRepository,
        loan_repository: LoanRepository,
    ):
        self._group_repo = group_repository
        self._member_repo = member_repository
        self._record_repo = record_repository
        self._loan_repo = loan_repository

    async def require_group(self, group_id: str) -> Group:
        group = await self._group_repo.get_by_id(group_id)
        if group is None:
            logger.warning("group_not_found", group_id=group_id)
            raise GroupNotFoundException(group_id)
        return group

    async def require_open_group(self, group_id: str) -> Group:
        """
        Load a group that still accepts new members, payments and loans.

        Raises:
            GroupNotFoundException: If the group does not exist
            StateTransitionException: If the group is closed
        """
        group = await self.require_group(group_id)
        if not group.is_active:
            logger.warning("group_closed_refused", group_id=group_id)
            raise StateTransitionException(
                "group", group.status.value,
                message=f"Group {group_id} is closed",
            )
        return group

    async def require_member(self, group_id: str, member_id: str) -> Member:
        member = await self._member_repo.get(group_id, member_id)
        if member is None:
            logger.warning("member_not_found", group_id=group_id, member_id=member_id)
            raise MemberNotFoundException(group_id, member_id)
        return member

    async def require_active_member(self, group_id: str, member_id: str) -> Member:
        member = await self.require_member(group_id, member_id)
        if member.status != MemberStatus.ACTIVE:
            raise StateTransitionException(
                "member", member.status.value,
                message=f"Member {member_id} is awaiting approval",
            )
        return member

    async def require_admin(self, group_id: str, actor_id: str, action: str) -> Member:
        """
        Load the acting member and check they hold an admin role.

        Raises:
            MemberNotFoundException: If the actor is not in the group
            StateTransitionException: If the actor is awaiting approval
            NotAuthorizedException: If the actor is not an admin
        """
        actor = await self.require_active_member(group_id, actor_id)
        if not actor.is_admin:
            logger.warning("admin_action_refused", group_id=group_id, member_id=actor_id, action=action)
            raise NotAuthorizedException(actor_id, action)
        return actor

    async def recompute_summary(self, group: Group, member_id: str, now: datetime) -> MemberFinancialSummary:
        """Derive a member's summary from their records and loans."""
        records = await self._record_repo.list(group.id, member_id=member_id)
        loans = await self._loan_repo.list_by_borrower(group.id, member_id)
        return member_financial_summary(records, loans, group.rules, now)

    async def refresh_summary(self, group: Group, member_id: str, now: datetime) -> Member:
        """Recompute a member's summary and overwrite the cached copy."""
        member = await self.require_member(group.id, member_id)
        member.financial_summary = await self.recompute_summary(group, member_id, now)
        return await self._member_repo.update(member)

    async def verified_summary(self, group: Group, member_id: str, now: datetime) -> MemberFinancialSummary:
        """
        Recompute a member's summary and check it against the cache.

        Raises:
            InconsistentLedgerException: If the cache drifted beyond tolerance
        """
        member = await self.require_member(group.id, member_id)
        recomputed = await self.recompute_summary(group, member_id, now)
        try:
            return reconcile_summary(member.id, member.financial_summary, recomputed)
        except InconsistentLedgerException as exc:
            logger.error(
                "ledger_inconsistency_detected",
                entity="member_summary",
                group_id=group.id,
                member_id=member_id,
                drift={k: list(v) for k, v in exc.drift.items()},
            )
            record_inconsistency("member_summary")
            raise
