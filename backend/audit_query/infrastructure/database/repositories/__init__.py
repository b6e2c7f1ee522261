from .finding_repository import SQLAlchemyFindingRepository
from .department_repository import SQLAlchemyDepartmentRepository
from .query_audit_log_repository import SQLAlchemyQueryAuditLogRepository, audit_log_repository_scope

__all__ = [
    "SQLAlchemyFindingRepository",
    "SQLAlchemyDepartmentRepository",
    "SQLAlchemyQueryAuditLogRepository",
    "audit_log_repository_scope",
]
