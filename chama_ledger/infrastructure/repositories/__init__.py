"""Repository implementations."""

from .group_repository import PostgresGroupRepository, PostgresMemberRepository
from .loan_repository import PostgresLoanRepository
from .payment_record_repository import PostgresPaymentRecordRepository

__all__ = [
    "PostgresGroupRepository",
    "PostgresMemberRepository",
    "PostgresPaymentRecordRepository",
    "PostgresLoanRepository",
]
