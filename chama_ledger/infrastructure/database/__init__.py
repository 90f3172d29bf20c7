"""Database infrastructure."""

from .connection import get_db_session, DatabaseSessionManager, db_manager
from .models import Base, GroupModel, MemberModel, PaymentRecordModel, LoanModel

__all__ = [
    "get_db_session",
    "DatabaseSessionManager",
    "db_manager",
    "Base",
    "GroupModel",
    "MemberModel",
    "PaymentRecordModel",
    "LoanModel",
]
