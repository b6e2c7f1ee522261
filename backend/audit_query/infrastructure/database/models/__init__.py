from .audit_finding import AuditFindingModel
from .department import DepartmentModel
from .query_audit_log import QueryAuditLogModel

__all__ = [
    "AuditFindingModel",
    "DepartmentModel",
    "QueryAuditLogModel",
]
