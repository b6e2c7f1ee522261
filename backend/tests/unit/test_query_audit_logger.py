"""Unit tests for the QueryAuditLogger sink."""

import logging
from contextlib import asynccontextmanager

import pytest

from audit_query.application.interfaces import QueryAuditLogRepository
from audit_query.application.services.query_audit_logger import QueryAuditLogger
from audit_query.domain.entities import QueryAuditLog


# ── Fakes ──


class FakeAuditLogRepository(QueryAuditLogRepository):
    def __init__(self, *, error: Exception | None = None):
        self._error = error
        self.rows: list[QueryAuditLog] = []

    async def create(self, log):
        if self._error is not None:
            raise self._error
        log.id = len(self.rows) + 1
        self.rows.append(log)
        return log

    async def get_all(self, *, skip=0, limit=100):
        return list(reversed(self.rows))[skip:skip + limit]


class FakeRepositoryScope:
    """Hands out the same repository and records how each unit of work ended."""

    def __init__(self, repo: FakeAuditLogRepository):
        self.repo = repo
        self.outcomes: list[str] = []

    @asynccontextmanager
    async def __call__(self):
        try:
            yield self.repo
        except BaseException:
            self.outcomes.append("rolled back")
            raise
        self.outcomes.append("committed")


# ── Tests ──


@pytest.mark.asyncio
async def test_record_persists_entry_in_its_own_unit_of_work(caplog):
    scope = FakeRepositoryScope(FakeAuditLogRepository())
    sink = QueryAuditLogger(scope)
    entry = QueryAuditLog(
        query_text="Show me all critical findings from 2024",
        query_type="simple_query",
        execution_time_ms=12,
        results_count=3,
        confidence=0.925,
        pattern_matched="severity-year",
    )

    with caplog.at_level(logging.INFO):
        await sink.record(entry)

    assert scope.repo.rows == [entry]
    assert scope.outcomes == ["committed"]
    assert entry.id == 1
    assert "pattern=severity-year" in caplog.text
    assert "QUERY [simple_query] results=3" in caplog.text


@pytest.mark.asyncio
async def test_each_entry_gets_a_fresh_scope():
    scope = FakeRepositoryScope(FakeAuditLogRepository())
    sink = QueryAuditLogger(scope)

    await sink.record(QueryAuditLog(query_text="a", query_type="simple"))
    await sink.record(QueryAuditLog(query_text="b", query_type="simple"))

    assert scope.outcomes == ["committed", "committed"]


@pytest.mark.asyncio
async def test_record_logs_error_code(caplog):
    sink = QueryAuditLogger(FakeRepositoryScope(FakeAuditLogRepository()))
    entry = QueryAuditLog(
        query_text="why", query_type="error", success=False, error_code="AI_ERROR"
    )
    with caplog.at_level(logging.INFO):
        await sink.record(entry)
    assert "error=AI_ERROR" in caplog.text


@pytest.mark.asyncio
async def test_repository_failure_rolls_back_and_propagates():
    scope = FakeRepositoryScope(FakeAuditLogRepository(error=RuntimeError("table missing")))
    sink = QueryAuditLogger(scope)

    with pytest.raises(RuntimeError, match="table missing"):
        await sink.record(QueryAuditLog(query_text="x", query_type="simple"))

    assert scope.outcomes == ["rolled back"]
