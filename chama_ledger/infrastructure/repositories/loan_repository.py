"""PostgreSQL repository implementation for member loans."""

from dataclasses import replace
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chama_ledger.domain.exceptions import ConcurrentModificationException
from chama_ledger.domain.interfaces import LoanRepository
from chama_ledger.infrastructure.database.models import LoanModel
from chama_ledger.service.ledger import Loan, LoanInstallment, LoanPayment, LoanStatus
from chama_ledger.service.ledger.dates import as_utc


class PostgresLoanRepository(LoanRepository):
    """
    PostgreSQL-backed loan repository.

    The schedule and repayments live in JSON columns on the loan row and
    are written together with it under the version check.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def save(self, loan: Loan) -> Loan:
        model = LoanModel(
            id=loan.id,
            group_id=loan.group_id,
            borrower_id=loan.borrower_id,
            loan_amount_cents=loan.loan_amount_cents,
            purpose=loan.purpose,
            repayment_months=loan.repayment_months,
            requested_at=loan.requested_at,
            version=loan.version,
            **self._mutable_values(loan),
        )

        self._session.add(model)
        await self._session.flush()

        return loan

    async def get_by_id(self, loan_id: str) -> Optional[Loan]:
        stmt = (
            select(LoanModel)
            .where(LoanModel.id == loan_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_group(self, group_id: str) -> List[Loan]:
        stmt = (
            select(LoanModel)
            .where(LoanModel.group_id == group_id)
            .order_by(LoanModel.requested_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def list_by_borrower(self, group_id: str, borrower_id: str) -> List[Loan]:
        stmt = (
            select(LoanModel)
            .where(LoanModel.group_id == group_id, LoanModel.borrower_id == borrower_id)
            .order_by(LoanModel.requested_at.desc())
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars().all()]

    async def update(self, loan: Loan) -> Loan:
        stmt = (
            update(LoanModel)
            .where(LoanModel.id == loan.id, LoanModel.version == loan.version)
            .values(version=loan.version + 1, **self._mutable_values(loan))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrentModificationException("loan", loan.id)

        return replace(loan, version=loan.version + 1)

    @staticmethod
    def _mutable_values(loan: Loan) -> dict:
        return {
            "status": loan.status.value,
            "approved_at": loan.approved_at,
            "approved_by": loan.approved_by,
            "disbursed_at": loan.disbursed_at,
            "disbursed_by": loan.disbursed_by,
            "rejected_at": loan.rejected_at,
            "rejected_by": loan.rejected_by,
            "rejection_reason": loan.rejection_reason,
            "total_interest_cents": loan.total_interest_cents,
            "total_repayable_cents": loan.total_repayable_cents,
            "amount_repaid_cents": loan.amount_repaid_cents,
            "schedule": [item.to_dict() for item in loan.schedule],
            "payments": [payment.to_dict() for payment in loan.payments],
        }

    def _to_entity(self, model: LoanModel) -> Loan:
        return Loan(
            id=model.id,
            group_id=model.group_id,
            borrower_id=model.borrower_id,
            loan_amount_cents=model.loan_amount_cents,
            purpose=model.purpose,
            repayment_months=model.repayment_months,
            requested_at=as_utc(model.requested_at),
            status=LoanStatus.parse(model.status),
            approved_at=as_utc(model.approved_at),
            approved_by=model.approved_by,
            disbursed_at=as_utc(model.disbursed_at),
            disbursed_by=model.disbursed_by,
            rejected_at=as_utc(model.rejected_at),
            rejected_by=model.rejected_by,
            rejection_reason=model.rejection_reason,
            total_interest_cents=model.total_interest_cents,
            total_repayable_cents=model.total_repayable_cents,
            amount_repaid_cents=model.amount_repaid_cents,
            schedule=tuple(LoanInstallment.from_dict(item) for item in model.schedule or []),
            payments=tuple(LoanPayment.from_dict(item) for item in model.payments or []),
            version=model.version,
        )
