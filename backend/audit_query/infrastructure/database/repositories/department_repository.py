"""Concrete repository for departments backed by SQLAlchemy."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from audit_query.application.interfaces import DepartmentRepository
from audit_query.domain.entities import Department
from audit_query.infrastructure.database.models import DepartmentModel


class SQLAlchemyDepartmentRepository(DepartmentRepository):
    """Implements the DepartmentRepository port using SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: DepartmentModel) -> Department:
        return Department(
            id=model.id,
            name=model.name,
            category=model.category,
            original_names=list(model.original_names or []),
            keywords=list(model.keywords or []),
        )

    async def create(self, department: Department) -> Department:
        model = DepartmentModel(
            name=department.name,
            category=department.category,
            original_names=list(department.original_names),
            keywords=list(department.keywords),
        )
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def get_by_category(self, category: str) -> list[Department]:
        stmt = (
            select(DepartmentModel)
            .where(DepartmentModel.category == category)
            .order_by(DepartmentModel.name)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def search_by_name(self, name: str) -> list[Department]:
        # original_names is a JSON list, so match it in Python after a
        # broad fetch; the table holds a few dozen rows at most.
        needle = name.strip().lower()
        if not needle:
            return []
        result = await self._session.execute(
            select(DepartmentModel).order_by(DepartmentModel.name)
        )
        matches = []
        for row in result.scalars().all():
            names = [row.name, *(row.original_names or [])]
            if any(needle in n.lower() for n in names):
                matches.append(self._to_entity(row))
        return matches
