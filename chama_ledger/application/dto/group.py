"""Data transfer objects for group and member operations."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from chama_ledger.service.ledger import format_currency


@dataclass(frozen=True)
class CreateGroupRequest:
    """Input data for creating a savings group."""
    name: str
    creator_name: str
    cycle_start: datetime
    rules: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> List[str]:
        errors = []

        if not self.name or not self.name.strip():
            errors.append("name is required")

        if not self.creator_name or not self.creator_name.strip():
            errors.append("creator_name is required")

        return errors


@dataclass(frozen=True)
class AddMemberRequest:
    """Input data for an admin adding a member to a group."""
    actor_id: str
    display_name: str
    role: str = "member"

    def validate(self) -> List[str]:
        errors = []

        if not self.display_name or not self.display_name.strip():
            errors.append("display_name is required")

        if self.role not in ("member", "admin", "senior_admin"):
            errors.append(f"unknown role: {self.role}")

        return errors


@dataclass(frozen=True)
class RegistrationRequest:
    """Input data for a person asking to join a group."""
    display_name: str

    def validate(self) -> List[str]:
        if not self.display_name or not self.display_name.strip():
            return ["display_name is required"]
        return []


@dataclass(frozen=True)
class MemberResponse:
    """Response data for a group member."""

    member_id: str
    group_id: str
    display_name: str
    role: str
    status: str
    joined_at: str

    @classmethod
    def from_entity(cls, member) -> "MemberResponse":
        return cls(
            member_id=member.id,
            group_id=member.group_id,
            display_name=member.display_name,
            role=member.role.value,
            status=member.status.value,
            joined_at=member.joined_at.isoformat(),
        )


@dataclass(frozen=True)
class GroupResponse:
    """Response data for a group with its canonical rules."""

    group_id: str
    name: str
    status: str
    cycle_start: str
    created_by: str
    rules: Dict[str, Any]
    members: List[MemberResponse] = field(default_factory=list)

    @classmethod
    def from_entity(cls, group, members: Optional[list] = None) -> "GroupResponse":
        return cls(
            group_id=group.id,
            name=group.name,
            status=group.status.value,
            cycle_start=group.cycle_start.isoformat(),
            created_by=group.created_by,
            rules=group.rules.to_dict(),
            members=[MemberResponse.from_entity(m) for m in members or []],
        )


@dataclass(frozen=True)
class MemberSummaryResponse:
    """A member's financial summary, recomputed from the ledger."""

    group_id: str
    member_id: str
    total_paid_cents: int
    total_arrears_cents: int
    total_pending_cents: int
    total_loans_cents: int
    total_loans_paid_cents: int
    total_penalties_cents: int
    total_paid_display: str
    total_arrears_display: str

    @classmethod
    def from_summary(cls, group_id: str, member_id: str, summary, currency: str) -> "MemberSummaryResponse":
        return cls(
            group_id=group_id,
            member_id=member_id,
            total_paid_display=format_currency(summary.total_paid_cents, currency),
            total_arrears_display=format_currency(summary.total_arrears_cents, currency),
            **summary.to_dict(),
        )
