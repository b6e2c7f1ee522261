"""Abstract repository interface for audit findings."""

from abc import ABC, abstractmethod

from audit_query.domain.entities import AuditFinding, QueryFilter, QuerySort


class FindingRepository(ABC):
    """Port: the structured record store the router queries.

    Implementations only need to honour native operators
    (``==, !=, <, <=, >, >=, in, not_in``); anything else is applied
    client-side by the query executor.
    """

    @abstractmethod
    async def query(
        self,
        filters: list[QueryFilter],
        sorts: list[QuerySort],
        limit: int | None = None,
    ) -> list[AuditFinding]:
        """Return findings matching every filter, ordered by ``sorts``."""
        ...

    @abstractmethod
    async def add_many(self, findings: list[AuditFinding]) -> int:
        """Persist findings; returns the number stored."""
        ...
