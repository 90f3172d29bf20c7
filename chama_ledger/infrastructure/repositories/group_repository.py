"""PostgreSQL repository implementations for groups and members."""

from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chama_ledger.domain.entities import Group, GroupStatus, Member, MemberRole, MemberStatus
from chama_ledger.domain.exceptions import ConcurrentModificationException
from chama_ledger.domain.interfaces import GroupRepository, MemberRepository
from chama_ledger.infrastructure.database.models import GroupModel, MemberModel
from chama_ledger.service.ledger import MemberFinancialSummary, normalize_rules
from chama_ledger.service.ledger.dates import as_utc


class PostgresGroupRepository(GroupRepository):
    """PostgreSQL-backed group repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, group: Group) -> Group:
        model = GroupModel(
            id=group.id,
            name=group.name,
            status=group.status.value,
            rules=group.rules.to_dict(),
            cycle_start=group.cycle_start,
            created_by=group.created_by,
            version=group.version,
            created_at=group.created_at,
        )

        self._session.add(model)
        await self._session.flush()

        return group

    async def get_by_id(self, group_id: str) -> Optional[Group]:
        stmt = (
            select(GroupModel)
            .where(GroupModel.id == group_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def update(self, group: Group) -> Group:
        stmt = (
            update(GroupModel)
            .where(GroupModel.id == group.id, GroupModel.version == group.version)
            .values(
                name=group.name,
                status=group.status.value,
                rules=group.rules.to_dict(),
                cycle_start=group.cycle_start,
                version=group.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException("group", group.id)

        group.version += 1
        return group

    def _to_entity(self, model: GroupModel) -> Group:
        return Group(
            id=model.id,
            name=model.name,
            status=GroupStatus(model.status),
            rules=normalize_rules(model.rules),
            cycle_start=as_utc(model.cycle_start),
            created_by=model.created_by,
            created_at=as_utc(model.created_at),
            version=model.version,
        )


class PostgresMemberRepository(MemberRepository):
    """PostgreSQL-backed member repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, member: Member) -> Member:
        model = MemberModel(
            id=member.id,
            group_id=member.group_id,
            display_name=member.display_name,
            role=member.role.value,
            status=member.status.value,
            financial_summary=member.financial_summary.to_dict(),
            version=member.version,
            joined_at=member.joined_at,
        )

        self._session.add(model)
        await self._session.flush()

        return member

    async def get(self, group_id: str, member_id: str) -> Optional[Member]:
        stmt = (
            select(MemberModel)
            .where(MemberModel.group_id == group_id, MemberModel.id == member_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_group(self, group_id: str) -> List[Member]:
        stmt = (
            select(MemberModel)
            .where(MemberModel.group_id == group_id)
            .order_by(MemberModel.joined_at)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def update(self, member: Member) -> Member:
        stmt = (
            update(MemberModel)
            .where(MemberModel.id == member.id, MemberModel.version == member.version)
            .values(
                display_name=member.display_name,
                role=member.role.value,
                status=member.status.value,
                financial_summary=member.financial_summary.to_dict(),
                version=member.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException("member", member.id)

        member.version += 1
        return member

    async def delete(self, member: Member) -> None:
        stmt = (
            delete(MemberModel)
            .where(MemberModel.id == member.id, MemberModel.version == member.version)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException("member", member.id)

    def _to_entity(self, model: MemberModel) -> Member:
        return Member(
            id=model.id,
            group_id=model.group_id,
            display_name=model.display_name,
            role=MemberRole(model.role),
            status=MemberStatus(model.status),
            joined_at=as_utc(model.joined_at),
            financial_summary=MemberFinancialSummary.from_dict(model.financial_summary),
            version=model.version,
        )
