"""Domain entity for per-query audit records written by the router."""

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class QueryAuditLog:
    """One routed query with the metadata copied from its response.

    Written fire-and-forget after every query so usage of the fast path
    versus the AI paths can be tracked over time.
    """

    query_text: str
    query_type: str
    execution_time_ms: int = 0
    results_count: int = 0
    confidence: float = 0.0
    pattern_matched: str | None = None
    success: bool = True
    error_code: str | None = None
    session_id: str | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
