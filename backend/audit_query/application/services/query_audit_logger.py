"""Query audit logger: persists one metadata record per routed query.

The router calls ``record`` with a short timeout and ignores failures, so
this class is free to raise; it never sits on the user-facing path. Each
entry is written in its own unit of work, so a failed or abandoned audit
write leaves the request's database session untouched.
"""

import logging

from audit_query.application.interfaces import QueryAuditLogRepositoryScope, QueryAuditSink
from audit_query.domain.entities import QueryAuditLog

logger = logging.getLogger(__name__)


class QueryAuditLogger(QueryAuditSink):
    """Tracks router usage (fast path vs. AI) in the audit log table.

    Usage:
        sink = QueryAuditLogger(audit_log_repository_scope(async_session_factory))
        await sink.record(QueryAuditLog(query_text="…", query_type="simple_query"))
    """

    def __init__(self, repository_scope: QueryAuditLogRepositoryScope):
        self._repository_scope = repository_scope

    async def record(self, entry: QueryAuditLog) -> None:
        async with self._repository_scope() as repo:
            saved = await repo.create(entry)

        pattern_str = f" pattern={entry.pattern_matched}" if entry.pattern_matched else ""
        error_str = f" error={entry.error_code}" if entry.error_code else ""
        logger.info(
            "QUERY [%s] results=%d confidence=%.2f %dms id=%s%s%s",
            entry.query_type,
            entry.results_count,
            entry.confidence,
            entry.execution_time_ms,
            saved.id,
            pattern_str,
            error_str,
        )
