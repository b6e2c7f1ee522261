from .base import Base
from .session import engine, async_session_factory, get_db_session
from .models import AuditFindingModel, DepartmentModel, QueryAuditLogModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db_session",
    "AuditFindingModel",
    "DepartmentModel",
    "QueryAuditLogModel",
]
