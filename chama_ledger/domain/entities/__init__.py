"""Domain Entities - Core business objects."""

from .group import Group, GroupStatus
from .member import Member, MemberRole, MemberStatus

__all__ = [
    "Group",
    "GroupStatus",
    "Member",
    "MemberRole",
    "MemberStatus",
]
