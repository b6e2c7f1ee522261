"""Domain entities for router output: a tagged union of success and error."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from audit_query.domain.entities.chat_message import ChatMessage
from audit_query.domain.entities.finding import AuditFinding
from audit_query.domain.entities.query import QueryType


class ErrorCode(str, Enum):
    CLASSIFICATION_ERROR = "CLASSIFICATION_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"
    AI_ERROR = "AI_ERROR"
    PATTERN_VALIDATION_ERROR = "PATTERN_VALIDATION_ERROR"
    NO_RESULTS = "NO_RESULTS"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"


class RouterStage(str, Enum):
    """States a query moves through inside the router."""

    RECEIVED = "received"
    PATTERN_MATCHING = "pattern_matching"
    FAST_PATH_EXECUTE = "fast_path_execute"
    CLASSIFYING = "classifying"
    EXECUTING = "executing"
    RETRIEVING_CONTEXT = "retrieving_context"
    AI_INVOKING = "ai_invoking"
    MERGING = "merging"
    DONE = "done"


# metadata.query_type for answers served by the pattern fast path
PATTERN_QUERY_TYPE = "simple_query"


@dataclass
class QueryOptions:
    """Per-call knobs supplied by the caller."""

    max_results: int | None = None
    thinking_mode: str = "low"  # "low" | "high"
    session_id: str | None = None
    history: list[ChatMessage] = field(default_factory=list)
    force_type: QueryType | None = None


@dataclass
class QueryMetadata:
    query_type: str
    execution_time_ms: int = 0
    findings_analyzed: int = 0
    confidence: float = 0.0
    results_count: int | None = None
    pattern_matched: str | None = None
    strategy_used: str | None = None
    tokens_used: int | None = None
    filters_applied: dict[str, Any] = field(default_factory=dict)
    department_variants: list[str] = field(default_factory=list)
    stages: list[str] = field(default_factory=list)
    ai_error: str | None = None


@dataclass
class QueryResponse:
    type: QueryType
    answer: str
    metadata: QueryMetadata
    findings: list[AuditFinding] = field(default_factory=list)
    code: ErrorCode | None = None  # NO_RESULTS for an empty but successful lookup
    success: bool = True


@dataclass
class QueryErrorDetail:
    code: ErrorCode
    message: str
    suggestion: str
    fallback_data: list[AuditFinding] | None = None


@dataclass
class QueryErrorResponse:
    error: QueryErrorDetail
    metadata: QueryMetadata | None = None
    success: bool = False


RouterResult = QueryResponse | QueryErrorResponse
