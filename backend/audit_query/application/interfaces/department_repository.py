"""Abstract repository interface for department records."""

from abc import ABC, abstractmethod

from audit_query.domain.entities import Department


class DepartmentRepository(ABC):
    """Port: lookup of canonical departments and their original spellings."""

    @abstractmethod
    async def get_by_category(self, category: str) -> list[Department]:
        ...

    @abstractmethod
    async def search_by_name(self, name: str) -> list[Department]:
        """Departments whose canonical or original name contains ``name``."""
        ...
