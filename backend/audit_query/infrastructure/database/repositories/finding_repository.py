"""Concrete repository for audit findings backed by SQLAlchemy."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from audit_query.application.interfaces import FindingRepository
from audit_query.domain.entities import AuditFinding, QueryFilter, QuerySort
from audit_query.infrastructure.database.models import AuditFindingModel

logger = logging.getLogger(__name__)

_OPERATORS = {
    "==": lambda col, v: col == v,
    "!=": lambda col, v: col != v,
    "<": lambda col, v: col < v,
    "<=": lambda col, v: col <= v,
    ">": lambda col, v: col > v,
    ">=": lambda col, v: col >= v,
    "in": lambda col, v: col.in_(list(v)),
    "not_in": lambda col, v: col.not_in(list(v)),
}


class SQLAlchemyFindingRepository(FindingRepository):
    """Implements the FindingRepository port using SQLAlchemy async sessions.

    Only native operators are translated to SQL; the executor applies
    ``contains`` and derived-field filters itself before calling here.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: AuditFindingModel) -> AuditFinding:
        """Map ORM model → domain entity."""
        return AuditFinding(
            id=model.id,
            year=model.year,
            project_name=model.project_name,
            department=model.department,
            risk_area=model.risk_area,
            description=model.description,
            code=model.code,
            subholding=model.subholding,
            project_id=model.project_id,
            project_type=model.project_type,
            weight=model.weight,
            likelihood=model.likelihood,
            risk_score=model.risk_score,
            status=model.status,
        )

    def _to_model(self, entity: AuditFinding) -> AuditFindingModel:
        """Map domain entity → ORM model."""
        return AuditFindingModel(
            id=entity.id,
            year=entity.year,
            project_name=entity.project_name,
            department=entity.department,
            risk_area=entity.risk_area,
            description=entity.description,
            code=entity.code,
            subholding=entity.subholding,
            project_id=entity.project_id,
            project_type=entity.project_type,
            weight=entity.weight,
            likelihood=entity.likelihood,
            risk_score=entity.risk_score,
            status=entity.status,
        )

    @staticmethod
    def _column(field: str) -> Any:
        column = AuditFindingModel.__table__.columns.get(field)
        if column is None:
            raise ValueError(f"Unknown finding field '{field}'")
        return getattr(AuditFindingModel, field)

    async def query(
        self,
        filters: list[QueryFilter],
        sorts: list[QuerySort],
        limit: int | None = None,
    ) -> list[AuditFinding]:
        stmt = select(AuditFindingModel)
        for flt in filters:
            build = _OPERATORS.get(flt.operator)
            if build is None:
                raise ValueError(f"Operator '{flt.operator}' is not supported by the store")
            stmt = stmt.where(build(self._column(flt.field), flt.value))

        for sort in sorts:
            column = self._column(sort.field)
            stmt = stmt.order_by(column.desc() if sort.direction == "desc" else column.asc())
        # Stable tie-break so repeated queries page identically
        stmt = stmt.order_by(AuditFindingModel.id.asc())

        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self._session.execute(stmt)
        rows = [self._to_entity(row) for row in result.scalars().all()]
        logger.debug("Finding query returned %d rows (%d filters)", len(rows), len(filters))
        return rows

    async def add_many(self, findings: list[AuditFinding]) -> int:
        for finding in findings:
            await self._session.merge(self._to_model(finding))
        await self._session.flush()
        return len(findings)
