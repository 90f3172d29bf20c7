"""Savings group domain entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from chama_ledger.service.ledger import Rules


class GroupStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass
class Group:
    """A savings group (chama) and the rules its members contribute under."""

    name: str
    rules: Rules
    cycle_start: datetime
    created_by: str
    id: str = field(default_factory=lambda: str(uuid4()))
    status: GroupStatus = GroupStatus.ACTIVE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == GroupStatus.ACTIVE

    def to_dict(self) -> dict:
        return {
            "group_id": self.id,
            "name": self.name,
            "status": self.status.value,
            "cycle_start": self.cycle_start.isoformat(),
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat(),
            "rules": self.rules.to_dict(),
        }
