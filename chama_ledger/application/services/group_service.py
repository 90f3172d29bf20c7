"""Group service - group setup and closure, membership and member summaries."""

from typing import Any, Dict

import structlog

from chama_ledger.application.dto import (
    AddMemberRequest,
    CreateGroupRequest,
    GroupResponse,
    MemberResponse,
    MemberSummaryResponse,
    RegistrationRequest,
)
from chama_ledger.core.config import settings
from chama_ledger.domain.entities import Group, GroupStatus, Member, MemberRole, MemberStatus
from chama_ledger.domain.exceptions import StateTransitionException, ValidationException
from chama_ledger.domain.interfaces import (
    GroupRepository,
    LoanRepository,
    MemberRepository,
    NotificationClient,
    PaymentRecordRepository,
)
from chama_ledger.service.ledger import build_member_records, normalize_rules
from chama_ledger.service.ledger.dates import as_utc

from .member_ledger import Clock, MemberLedger, utcnow

logger = structlog.get_logger(__name__)


class GroupService:
    """
    Application service for group and membership use cases.
    """

    def __init__(
        self,
        group_repository: GroupRepository,
        member_repository: MemberRepository,
        record_repository: PaymentRecordRepository,
        loan_repository: LoanRepository,
        member_ledger: MemberLedger,
        notification_client: NotificationClient,
        clock: Clock = utcnow,
    ):
        self._group_repo = group_repository
        self._member_repo = member_repository
        self._record_repo = record_repository
        self._loan_repo = loan_repository
        self._notifier = notification_client
        self._ledger = member_ledger
        self._clock = clock

    async def create_group(self, request: CreateGroupRequest) -> GroupResponse:
        """
        Create a group; its creator joins as senior admin.

        The creator's payment records are created from the group schedule
        like any other member's.

        Raises:
            ValidationException: If the request or the rules are invalid
        """
        errors = request.validate()
        if errors:
            raise ValidationException(errors)

        rules = normalize_rules(request.rules)
        now = self._clock()

        creator = Member(
            group_id="",
            display_name=request.creator_name.strip(),
            role=MemberRole.SENIOR_ADMIN,
            joined_at=now,
        )
        group = Group(
            name=request.name.strip(),
            rules=rules,
            cycle_start=as_utc(request.cycle_start),
            created_by=creator.id,
            created_at=now,
        )
        creator.group_id = group.id

        await self._group_repo.save(group)
        await self._member_repo.save(creator)
        records = build_member_records(group.id, creator.id, rules, group.cycle_start)
        await self._record_repo.save_many(records)

        logger.info(
            "group_created",
            group_id=group.id,
            creator_id=creator.id,
            records_created=len(records),
        )

        return GroupResponse.from_entity(group, [creator])

    async def get_group(self, group_id: str) -> GroupResponse:
        """
        Raises:
            GroupNotFoundException: If the group does not exist
        """
        group = await self._ledger.require_group(group_id)
        members = await self._member_repo.list_by_group(group_id)
        return GroupResponse.from_entity(group, members)

    async def update_rules(self, group_id: str, actor_id: str, raw_rules: Dict[str, Any]) -> GroupResponse:
        """
        Replace a group's rules (admin only).

        Existing payment records keep the totals they were created with;
        penalties on them follow the new rates from now on.
        """
        group = await self._ledger.require_open_group(group_id)
        await self._ledger.require_admin(group_id, actor_id, "update group rules")

        group.rules = normalize_rules(raw_rules)
        group = await self._group_repo.update(group)

        logger.info("group_rules_updated", group_id=group_id, actor_id=actor_id)

        members = await self._member_repo.list_by_group(group_id)
        return GroupResponse.from_entity(group, members)

    async def add_member(self, group_id: str, request: AddMemberRequest) -> MemberResponse:
        """
        Add a member to a group (admin only) and create their payment records.

        Raises:
            ValidationException: If the request is invalid
            NotAuthorizedException: If the actor is not an admin
            StateTransitionException: If the group is closed
        """
        errors = request.validate()
        if errors:
            raise ValidationException(errors)

        group = await self._ledger.require_open_group(group_id)
        await self._ledger.require_admin(group_id, request.actor_id, "add members")

        member = Member(
            group_id=group_id,
            display_name=request.display_name.strip(),
            role=MemberRole(request.role),
            joined_at=self._clock(),
        )
        await self._member_repo.save(member)
        records = build_member_records(group_id, member.id, group.rules, group.cycle_start)
        await self._record_repo.save_many(records)

        logger.info(
            "member_added",
            group_id=group_id,
            member_id=member.id,
            actor_id=request.actor_id,
            records_created=len(records),
        )

        return MemberResponse.from_entity(member)

    async def close_group(self, group_id: str, actor_id: str) -> GroupResponse:
        """
        Close a group (admin only).

        A closed group takes no new members, contribution payments or loan
        requests. Pending reviews, disbursements and repayments of loans
        already granted carry on.

        Raises:
            NotAuthorizedException: If the actor is not an admin
            StateTransitionException: If the group is already closed
        """
        group = await self._ledger.require_open_group(group_id)
        await self._ledger.require_admin(group_id, actor_id, "close the group")

        group.status = GroupStatus.CLOSED
        group = await self._group_repo.update(group)

        logger.info("group_closed", group_id=group_id, actor_id=actor_id)
        await self._notifier.send_event("group_closed", group_id, {"actor_id": actor_id})

        members = await self._member_repo.list_by_group(group_id)
        return GroupResponse.from_entity(group, members)

    async def register_member(self, group_id: str, request: RegistrationRequest) -> MemberResponse:
        """
        Record a request to join a group.

        The member starts pending, owns no payment records and cannot act in
        the group until an admin approves them.
        """
        errors = request.validate()
        if errors:
            raise ValidationException(errors)

        await self._ledger.require_open_group(group_id)

        member = Member(
            group_id=group_id,
            display_name=request.display_name.strip(),
            status=MemberStatus.PENDING,
            joined_at=self._clock(),
        )
        await self._member_repo.save(member)

        logger.info("member_registered", group_id=group_id, member_id=member.id)

        return MemberResponse.from_entity(member)

    async def approve_member(self, group_id: str, member_id: str, actor_id: str) -> MemberResponse:
        """
        Approve a pending member (admin only) and create their payment records.

        Raises:
            NotAuthorizedException: If the actor is not an admin
            StateTransitionException: If the group is closed or the member
                is already active
        """
        group = await self._ledger.require_open_group(group_id)
        await self._ledger.require_admin(group_id, actor_id, "approve members")
        member = await self._ledger.require_member(group_id, member_id)

        if member.status != MemberStatus.PENDING:
            raise StateTransitionException("member", member.status.value, MemberStatus.ACTIVE.value)

        member.status = MemberStatus.ACTIVE
        member.joined_at = self._clock()
        member = await self._member_repo.update(member)
        records = build_member_records(group_id, member.id, group.rules, group.cycle_start)
        await self._record_repo.save_many(records)

        logger.info(
            "member_approved",
            group_id=group_id,
            member_id=member_id,
            actor_id=actor_id,
            records_created=len(records),
        )
        await self._notifier.send_event(
            "member_approved", group_id, {"member_id": member_id, "actor_id": actor_id}
        )

        return MemberResponse.from_entity(member)

    async def remove_member(self, group_id: str, member_id: str, actor_id: str) -> None:
        """
        Remove a member from a group (admin only).

        Only members with nothing on the ledger can be removed: no payment
        entries of any status and no loans. Their unpaid records go with
        them. Removing a pending member declines their registration.

        Raises:
            NotAuthorizedException: If the actor is not an admin
            ValidationException: If the member founded the group
            StateTransitionException: If the member has payments or loans
        """
        group = await self._ledger.require_group(group_id)
        await self._ledger.require_admin(group_id, actor_id, "remove members")
        member = await self._ledger.require_member(group_id, member_id)

        if member.id == group.created_by:
            raise ValidationException("the group's founder cannot be removed")

        records = await self._record_repo.list(group_id, member_id=member_id)
        loans = await self._loan_repo.list_by_borrower(group_id, member_id)
        if any(record.entries for record in records) or loans:
            logger.warning(
                "member_removal_refused",
                group_id=group_id,
                member_id=member_id,
                loans=len(loans),
            )
            raise StateTransitionException(
                "member", member.status.value,
                message=f"Member {member_id} has payments or loans on the ledger and cannot be removed",
            )

        deleted = await self._record_repo.delete_by_member(group_id, member_id)
        await self._member_repo.delete(member)

        logger.info(
            "member_removed",
            group_id=group_id,
            member_id=member_id,
            actor_id=actor_id,
            records_deleted=deleted,
        )
        await self._notifier.send_event(
            "member_removed", group_id, {"member_id": member_id, "actor_id": actor_id}
        )

    async def get_member_summary(self, group_id: str, member_id: str) -> MemberSummaryResponse:
        """
        Recompute a member's summary from source and verify the cached copy.

        Raises:
            InconsistentLedgerException: If the cache disagrees with the ledger
        """
        group = await self._ledger.require_group(group_id)
        summary = await self._ledger.verified_summary(group, member_id, self._clock())
        return MemberSummaryResponse.from_summary(group_id, member_id, summary, settings.currency)

    async def rebuild_member_summary(self, group_id: str, member_id: str, actor_id: str) -> MemberSummaryResponse:
        """
        Discard a member's cached summary and rebuild it from source (admin only).
        """
        group = await self._ledger.require_group(group_id)
        await self._ledger.require_admin(group_id, actor_id, "rebuild member summaries")

        member = await self._ledger.refresh_summary(group, member_id, self._clock())

        logger.info(
            "member_summary_rebuilt",
            group_id=group_id,
            member_id=member_id,
            actor_id=actor_id,
        )

        return MemberSummaryResponse.from_summary(
            group_id, member_id, member.financial_summary, settings.currency
        )
