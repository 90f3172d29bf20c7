"""Group member domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from chama_ledger.service.ledger import MemberFinancialSummary


class MemberRole(str, Enum):
    MEMBER = "member"
    ADMIN = "admin"
    SENIOR_ADMIN = "senior_admin"


class MemberStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"


@dataclass
class Member:
    """
    A member of a savings group.

    financial_summary is a cache of the member's records and loans. It is
    rewritten after every ledger change and can always be rebuilt from source.
    """

    group_id: str
    display_name: str
    role: MemberRole = MemberRole.MEMBER
    status: MemberStatus = MemberStatus.ACTIVE
    id: str = field(default_factory=lambda: str(uuid4()))
    joined_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    financial_summary: MemberFinancialSummary = field(default_factory=MemberFinancialSummary)
    version: int = 0

    @property
    def is_admin(self) -> bool:
        return self.role in (MemberRole.ADMIN, MemberRole.SENIOR_ADMIN)

    def to_dict(self) -> dict:
        return {
            "member_id": self.id,
            "group_id": self.group_id,
            "display_name": self.display_name,
            "role": self.role.value,
            "status": self.status.value,
            "joined_at": self.joined_at.isoformat(),
            "financial_summary": self.financial_summary.to_dict(),
        }
