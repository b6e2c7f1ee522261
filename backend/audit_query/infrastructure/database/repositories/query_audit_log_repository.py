"""Concrete repository for query audit logs backed by SQLAlchemy."""

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from audit_query.application.interfaces import QueryAuditLogRepository
from audit_query.domain.entities import QueryAuditLog
from audit_query.infrastructure.database.models import QueryAuditLogModel


class SQLAlchemyQueryAuditLogRepository(QueryAuditLogRepository):
    """Implements the QueryAuditLogRepository port using SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: QueryAuditLogModel) -> QueryAuditLog:
        """Map ORM model → domain entity."""
        return QueryAuditLog(
            id=model.id,
            query_text=model.query_text,
            query_type=model.query_type,
            execution_time_ms=model.execution_time_ms,
            results_count=model.results_count,
            confidence=model.confidence,
            pattern_matched=model.pattern_matched,
            success=model.success,
            error_code=model.error_code,
            session_id=model.session_id,
            created_at=model.created_at,
        )

    def _to_model(self, entity: QueryAuditLog) -> QueryAuditLogModel:
        """Map domain entity → ORM model."""
        return QueryAuditLogModel(
            query_text=entity.query_text,
            query_type=entity.query_type,
            execution_time_ms=entity.execution_time_ms,
            results_count=entity.results_count,
            confidence=entity.confidence,
            pattern_matched=entity.pattern_matched,
            success=entity.success,
            error_code=entity.error_code,
            session_id=entity.session_id,
            created_at=entity.created_at,
        )

    async def create(self, log: QueryAuditLog) -> QueryAuditLog:
        model = self._to_model(log)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_all(
        self, *, skip: int = 0, limit: int = 100
    ) -> list[QueryAuditLog]:
        stmt = (
            select(QueryAuditLogModel)
            .offset(skip)
            .limit(limit)
            .order_by(QueryAuditLogModel.created_at.desc())
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]


def audit_log_repository_scope(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[[], AbstractAsyncContextManager[SQLAlchemyQueryAuditLogRepository]]:
    """Scope factory for the audit sink: one short-lived session per entry.

    The session is committed when the scope exits cleanly; on error or
    cancellation it is closed, which rolls the entry back.
    """

    @asynccontextmanager
    async def scope() -> AsyncIterator[SQLAlchemyQueryAuditLogRepository]:
        async with session_factory() as session:
            yield SQLAlchemyQueryAuditLogRepository(session)
            await session.commit()

    return scope
