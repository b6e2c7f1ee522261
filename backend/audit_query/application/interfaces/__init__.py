from .chat_provider import ChatProvider
from .department_repository import DepartmentRepository
from .embedding_provider import EmbeddingProvider
from .finding_repository import FindingRepository
from .query_audit_log_repository import (
    QueryAuditLogRepository,
    QueryAuditLogRepositoryScope,
    QueryAuditSink,
)

__all__ = [
    "ChatProvider",
    "DepartmentRepository",
    "EmbeddingProvider",
    "FindingRepository",
    "QueryAuditLogRepository",
    "QueryAuditLogRepositoryScope",
    "QueryAuditSink",
]
