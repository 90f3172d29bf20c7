"""PostgreSQL repository implementation for contribution payment records."""

from dataclasses import replace
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chama_ledger.domain.exceptions import ConcurrentModificationException
from chama_ledger.domain.interfaces import PaymentRecordRepository
from chama_ledger.infrastructure.database.models import PaymentRecordModel
from chama_ledger.service.ledger import (
    ApprovalStatus,
    PaymentEntry,
    PaymentRecord,
    PaymentStatus,
    PaymentType,
)
from chama_ledger.service.ledger.dates import MONTH_NAMES, as_utc


def _period_order(record: PaymentRecord) -> tuple:
    # Seed money first, then months in calendar order
    if record.payment_type == PaymentType.SEED_MONEY:
        return (record.year, 0)
    month = record.month or ""
    return (record.year, MONTH_NAMES.index(month) + 1 if month in MONTH_NAMES else 13)


class PostgresPaymentRecordRepository(PaymentRecordRepository):
    """
    PostgreSQL-backed payment record repository.

    Writes are guarded by the row's version column: an update only lands
    when the stored version still equals the version that was read.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save_many(self, records: List[PaymentRecord]) -> List[PaymentRecord]:
        for record in records:
            self._session.add(PaymentRecordModel(
                id=record.id,
                group_id=record.group_id,
                member_id=record.member_id,
                payment_type=record.payment_type.value,
                year=record.year,
                month=record.month,
                total_amount_cents=record.total_amount_cents,
                due_date=record.due_date,
                version=record.version,
                **self._cached_values(record),
            ))

        await self._session.flush()

        return records

    async def get_by_id(self, record_id: str) -> Optional[PaymentRecord]:
        stmt = (
            select(PaymentRecordModel)
            .where(PaymentRecordModel.id == record_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def list(
        self,
        group_id: str,
        member_id: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
    ) -> List[PaymentRecord]:
        stmt = (
            select(PaymentRecordModel)
            .where(PaymentRecordModel.group_id == group_id)
            .execution_options(populate_existing=True)
        )
        if member_id is not None:
            stmt = stmt.where(PaymentRecordModel.member_id == member_id)
        if year is not None:
            stmt = stmt.where(PaymentRecordModel.year == year)
        if month is not None:
            stmt = stmt.where(PaymentRecordModel.month == month)
        if payment_type is not None:
            stmt = stmt.where(PaymentRecordModel.payment_type == payment_type.value)

        result = await self._session.execute(stmt)
        records = [self._to_entity(model) for model in result.scalars().all()]

        return sorted(records, key=lambda r: (_period_order(r), r.member_id))

    async def update(self, record: PaymentRecord) -> PaymentRecord:
        stmt = (
            update(PaymentRecordModel)
            .where(
                PaymentRecordModel.id == record.id,
                PaymentRecordModel.version == record.version,
            )
            .values(
                total_amount_cents=record.total_amount_cents,
                due_date=record.due_date,
                version=record.version + 1,
                **self._cached_values(record),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException("payment_record", record.id)

        return replace(record, version=record.version + 1)

    async def delete_by_member(self, group_id: str, member_id: str) -> int:
        stmt = (
            delete(PaymentRecordModel)
            .where(
                PaymentRecordModel.group_id == group_id,
                PaymentRecordModel.member_id == member_id,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        return result.rowcount

    @staticmethod
    def _cached_values(record: PaymentRecord) -> dict:
        return {
            "entries": [entry.to_dict() for entry in record.entries],
            "amount_paid_cents": record.amount_paid_cents,
            "arrears_cents": record.arrears_cents,
            "penalty_cents": record.penalty_cents,
            "surplus_cents": record.surplus_cents,
            "approval_status": record.approval_status.value,
            "payment_status": record.payment_status.value,
        }

    def _to_entity(self, model: PaymentRecordModel) -> PaymentRecord:
        return PaymentRecord(
            id=model.id,
            group_id=model.group_id,
            member_id=model.member_id,
            payment_type=PaymentType(model.payment_type),
            year=model.year,
            month=model.month,
            total_amount_cents=model.total_amount_cents,
            due_date=as_utc(model.due_date),
            entries=tuple(PaymentEntry.from_dict(item) for item in model.entries or []),
            amount_paid_cents=model.amount_paid_cents,
            arrears_cents=model.arrears_cents,
            penalty_cents=model.penalty_cents,
            surplus_cents=model.surplus_cents,
            approval_status=ApprovalStatus(model.approval_status),
            payment_status=PaymentStatus(model.payment_status),
            version=model.version,
        )
