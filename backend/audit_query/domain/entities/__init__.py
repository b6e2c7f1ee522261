from .chat_message import ChatMessage, TokenUsage, ChatCompletionResult
from .department import Department
from .finding import AuditFinding, FindingStatus, Severity
from .masking import MaskingResult, MaskingToken
from .query import (
    ExecutionResult,
    ExtractedFilters,
    MatchResult,
    ParameterExtractor,
    PatternValidation,
    QueryFilter,
    QueryIntent,
    QueryPattern,
    QueryPlan,
    QuerySort,
    QueryType,
)
from .query_audit_log import QueryAuditLog
from .query_response import (
    PATTERN_QUERY_TYPE,
    ErrorCode,
    QueryErrorDetail,
    QueryErrorResponse,
    QueryMetadata,
    QueryOptions,
    QueryResponse,
    RouterResult,
    RouterStage,
)
from .retrieval import (
    ContextSelectionResult,
    RetrievalCandidate,
    RetrievalStrategy,
    SelectionMetadata,
)

__all__ = [
    "ChatMessage",
    "TokenUsage",
    "ChatCompletionResult",
    "Department",
    "AuditFinding",
    "FindingStatus",
    "Severity",
    "MaskingResult",
    "MaskingToken",
    "ExecutionResult",
    "ExtractedFilters",
    "MatchResult",
    "ParameterExtractor",
    "PatternValidation",
    "QueryFilter",
    "QueryIntent",
    "QueryPattern",
    "QueryPlan",
    "QuerySort",
    "QueryType",
    "QueryAuditLog",
    "PATTERN_QUERY_TYPE",
    "ErrorCode",
    "QueryErrorDetail",
    "QueryErrorResponse",
    "QueryMetadata",
    "QueryOptions",
    "QueryResponse",
    "RouterResult",
    "RouterStage",
    "ContextSelectionResult",
    "RetrievalCandidate",
    "RetrievalStrategy",
    "SelectionMetadata",
]
