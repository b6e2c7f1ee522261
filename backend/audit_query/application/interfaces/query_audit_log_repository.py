"""Abstract repository interface for query audit logs."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from audit_query.domain.entities import QueryAuditLog


class QueryAuditLogRepository(ABC):
    """Port: defines persistence operations for query audit logs."""

    @abstractmethod
    async def create(self, log: QueryAuditLog) -> QueryAuditLog:
        """Persist a new audit entry.

        Returns:
            The created log with its assigned ID.
        """
        ...

    @abstractmethod
    async def get_all(
        self, *, skip: int = 0, limit: int = 100
    ) -> list[QueryAuditLog]:
        """Retrieve audit entries, ordered by most recent first."""
        ...


class QueryAuditSink(ABC):
    """Port: receives one metadata record per routed query."""

    @abstractmethod
    async def record(self, entry: QueryAuditLog) -> None:
        ...


# Opens a repository on its own unit of work; committed when the scope exits cleanly
QueryAuditLogRepositoryScope = Callable[[], AbstractAsyncContextManager[QueryAuditLogRepository]]

