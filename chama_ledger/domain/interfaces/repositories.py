"""Repository interfaces for data persistence."""

from abc import ABC, abstractmethod
from typing import List, Optional

from chama_ledger.domain.entities import Group, Member
from chama_ledger.service.ledger import Loan, PaymentRecord, PaymentType


class GroupRepository(ABC):
    """
    Abstract repository for Group persistence.

    Implementations may use PostgreSQL, in-memory storage, etc.
    """

    @abstractmethod
    async def save(self, group: Group) -> Group:
        """
        Persist a new group.

        Args:
            group: The group to save

        Returns:
            The saved group
        """
        ...

    @abstractmethod
    async def get_by_id(self, group_id: str) -> Optional[Group]:
        """
        Retrieve a group by ID.

        Returns:
            The group if found, None otherwise
        """
        ...

    @abstractmethod
    async def update(self, group: Group) -> Group:
        """
        Write back a changed group, guarded by its version.

        Returns:
            The group with its version incremented

        Raises:
            ConcurrentModificationException: If the stored version moved on
        """
        ...


class MemberRepository(ABC):
    """Abstract repository for group members."""

    @abstractmethod
    async def save(self, member: Member) -> Member:
        ...

    @abstractmethod
    async def get(self, group_id: str, member_id: str) -> Optional[Member]:
        """
        Retrieve a member of a group.

        Returns:
            The member if they belong to the group, None otherwise
        """
        ...

    @abstractmethod
    async def list_by_group(self, group_id: str) -> List[Member]:
        ...

    @abstractmethod
    async def update(self, member: Member) -> Member:
        """
        Write back a changed member (role, status or financial summary).

        Raises:
            ConcurrentModificationException: If the stored version moved on
        """
        ...

    @abstractmethod
    async def delete(self, member: Member) -> None:
        """
        Remove a member, guarded by their version.

        Raises:
            ConcurrentModificationException: If the stored version moved on
        """
        ...


class PaymentRecordRepository(ABC):
    """
    Abstract repository for contribution payment records.

    Entries are stored with their record; a record is always read and
    written as a whole.
    """

    @abstractmethod
    async def save_many(self, records: List[PaymentRecord]) -> List[PaymentRecord]:
        """
        Persist newly created records (a member's schedule).

        Returns:
            The saved records
        """
        ...

    @abstractmethod
    async def get_by_id(self, record_id: str) -> Optional[PaymentRecord]:
        ...

    @abstractmethod
    async def list(
        self,
        group_id: str,
        member_id: Optional[str] = None,
        year: Optional[int] = None,
        month: Optional[str] = None,
        payment_type: Optional[PaymentType] = None,
    ) -> List[PaymentRecord]:
        """
        Retrieve a group's records, optionally filtered.

        Returns:
            Matching records ordered by year and period
        """
        ...

    @abstractmethod
    async def update(self, record: PaymentRecord) -> PaymentRecord:
        """
        Write back a record if nobody changed it since it was read.

        The record's version is the one that was read; the stored row is
        only updated when its version still matches.

        Returns:
            The record with its version incremented

        Raises:
            ConcurrentModificationException: If the stored version moved on
        """
        ...

    @abstractmethod
    async def delete_by_member(self, group_id: str, member_id: str) -> int:
        """
        Delete every record owned by a member.

        Returns:
            Number of records deleted
        """
        ...


class LoanRepository(ABC):
    """Abstract repository for member loans and their repayments."""

    @abstractmethod
    async def save(self, loan: Loan) -> Loan:
        ...

    @abstractmethod
    async def get_by_id(self, loan_id: str) -> Optional[Loan]:
        ...

    @abstractmethod
    async def list_by_group(self, group_id: str) -> List[Loan]:
        ...

    @abstractmethod
    async def list_by_borrower(self, group_id: str, borrower_id: str) -> List[Loan]:
        ...

    @abstractmethod
    async def update(self, loan: Loan) -> Loan:
        """
        Write back a loan if nobody changed it since it was read.

        Returns:
            The loan with its version incremented

        Raises:
            ConcurrentModificationException: If the stored version moved on
        """
        ...
