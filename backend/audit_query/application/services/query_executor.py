"""Query executor: runs structured finding queries against the record store.

Responsibilities beyond a plain pass-through:
  - the first sort key must be the inequality field when one is present
    (the store rejects anything else); missing sorts are inserted
  - only one field may carry inequality filters natively; others, and
    derived fields such as ``severity`` or free-text ``text`` search, are
    applied client-side over a widened fetch
  - department filters are expanded to every known spelling, one store
    query per variant, then merged, re-sorted and capped
"""

import logging
import time
from typing import Any

from audit_query.application.interfaces import FindingRepository
from audit_query.application.services.department_resolver import DepartmentResolver
from audit_query.application.services.query_patterns import DEFAULT_SORTS
from audit_query.domain.entities import (
    AuditFinding,
    ExecutionResult,
    ExtractedFilters,
    QueryFilter,
    QueryPattern,
    QueryPlan,
    QuerySort,
)
from audit_query.domain.entities.query import FILTER_OPERATORS, INEQUALITY_OPERATORS
from audit_query.domain.exceptions import RecordStoreError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
_MAX_FETCH = 500
_CLIENT_SIDE_FETCH_FACTOR = 5

# Fields the store does not hold as columns
_DERIVED_FIELDS = frozenset({"severity", "text"})


class QueryExecutor:
    """Builds and executes ``QueryPlan``s.

    Args:
        repository: The record store port.
        department_resolver: Expands department names to stored spellings.
        default_limit: Result cap when the plan does not set one.
    """

    def __init__(
        self,
        repository: FindingRepository,
        *,
        department_resolver: DepartmentResolver | None = None,
        default_limit: int = DEFAULT_LIMIT,
        max_fetch: int = _MAX_FETCH,
    ):
        self._repository = repository
        self._departments = department_resolver or DepartmentResolver()
        self._default_limit = default_limit
        self._max_fetch = max_fetch

    # ── Plan building ────────────────────────────────────────────────

    @staticmethod
    def plan_from_pattern(pattern: QueryPattern, params: dict[str, Any]) -> QueryPlan:
        limit = params.get("limit")
        return QueryPlan(
            filters=list(pattern.filter_builder(params)),
            sorts=list(pattern.sort_builder(params)),
            limit=int(limit) if isinstance(limit, (int, float)) and limit > 0 else None,
            source=pattern.id,
        )

    @staticmethod
    def plan_from_filters(
        filters: ExtractedFilters,
        *,
        limit: int | None = None,
        include_keywords: bool = True,
    ) -> QueryPlan:
        """Translate classifier filters into store filters and sorts."""
        out: list[QueryFilter] = []
        if filters.year is not None:
            out.append(QueryFilter("year", "==", filters.year))
        if filters.department:
            out.append(QueryFilter("department", "==", filters.department))
        if filters.project_type:
            out.append(QueryFilter("project_type", "==", filters.project_type))
        if len(filters.status) == 1:
            out.append(QueryFilter("status", "==", filters.status[0].value))
        elif filters.status:
            out.append(QueryFilter("status", "in", [s.value for s in filters.status]))

        if filters.severity:
            lowers = [s.score_range()[0] for s in filters.severity]
            uppers = [s.score_range()[1] for s in filters.severity]
            if None not in lowers:
                out.append(QueryFilter("risk_score", ">=", min(lowers)))
            if None not in uppers:
                out.append(QueryFilter("risk_score", "<", max(uppers)))
            out.append(QueryFilter("severity", "in", [s.value for s in filters.severity]))

        if include_keywords and filters.keywords:
            out.append(QueryFilter("text", "contains", list(filters.keywords)))

        return QueryPlan(filters=out, sorts=list(DEFAULT_SORTS), limit=limit)

    @staticmethod
    def order_sorts(filters: list[QueryFilter], sorts: list[QuerySort]) -> list[QuerySort]:
        """Put the inequality field first in ``sorts``, inserting it if missing."""
        inequality = next((f.field for f in filters if f.is_inequality), None)
        if inequality is None:
            return list(sorts)
        existing = next((s for s in sorts if s.field == inequality), None)
        head = existing or QuerySort(inequality, "desc")
        return [head, *(s for s in sorts if s.field != inequality)]

    # ── Execution ────────────────────────────────────────────────────

    async def execute(self, plan: QueryPlan) -> ExecutionResult:
        start = time.monotonic()
        native, client = self._split_filters(plan.filters)
        sorts = self.order_sorts(native, plan.sorts)
        limit = plan.limit or self._default_limit
        fetch_limit = (
            min(self._max_fetch, max(limit * _CLIENT_SIDE_FETCH_FACTOR, limit))
            if client else limit
        )

        variants, queries = await self._expand_departments(native)

        collected: list[AuditFinding] = []
        issued = 0
        for filters in queries:
            try:
                rows = await self._repository.query(filters, sorts, fetch_limit)
            except Exception as e:
                logger.error(
                    "Record store query failed after %d/%d queries: %s",
                    issued, len(queries), e,
                )
                raise RecordStoreError(
                    f"Finding query failed: {e}",
                    partial_results=self._finish(collected, client, sorts, limit),
                ) from e
            issued += 1
            collected.extend(rows)

        findings = self._finish(collected, client, sorts, limit)
        logger.info(
            "Executed %s: %d queries → %d findings (%dms) filters=%s sorts=%s",
            plan.source,
            issued,
            len(findings),
            int((time.monotonic() - start) * 1000),
            [(f.field, f.operator, f.value) for f in native],
            [(s.field, s.direction) for s in sorts],
        )
        return ExecutionResult(
            findings=findings,
            filters_applied=native,
            sorts_applied=sorts,
            client_side_filters=client,
            department_variants=variants,
            queries_issued=issued,
        )

    # ── Private helpers ──────────────────────────────────────────────

    @staticmethod
    def _split_filters(
        filters: list[QueryFilter],
    ) -> tuple[list[QueryFilter], list[QueryFilter]]:
        native: list[QueryFilter] = []
        client: list[QueryFilter] = []
        inequality_field: str | None = None
        for flt in filters:
            if flt.operator not in FILTER_OPERATORS:
                raise ValueError(f"Unsupported filter operator '{flt.operator}'")
            if flt.operator == "contains" or flt.field in _DERIVED_FIELDS:
                client.append(flt)
            elif flt.operator in INEQUALITY_OPERATORS:
                if inequality_field is None:
                    inequality_field = flt.field
                if flt.field == inequality_field:
                    native.append(flt)
                else:
                    client.append(flt)
            else:
                native.append(flt)
        return native, client

    async def _expand_departments(
        self, filters: list[QueryFilter]
    ) -> tuple[list[str], list[list[QueryFilter]]]:
        """One filter list per department spelling (or just ``filters``)."""
        index = next(
            (i for i, f in enumerate(filters) if f.field == "department" and f.operator == "=="),
            None,
        )
        if index is None:
            return [], [filters]

        variants = await self._departments.resolve(str(filters[index].value))
        if not variants:
            return [], [filters]
        queries = []
        for variant in variants:
            expanded = list(filters)
            expanded[index] = QueryFilter("department", "==", variant)
            queries.append(expanded)
        return variants, queries

    def _finish(
        self,
        rows: list[AuditFinding],
        client: list[QueryFilter],
        sorts: list[QuerySort],
        limit: int,
    ) -> list[AuditFinding]:
        seen: set[str] = set()
        merged = []
        for row in rows:
            if row.id in seen:
                continue
            seen.add(row.id)
            if all(_matches(row, flt) for flt in client):
                merged.append(row)
        return sort_findings(merged, sorts)[:limit]


def sort_findings(findings: list[AuditFinding], sorts: list[QuerySort]) -> list[AuditFinding]:
    """Multi-key in-memory sort; records missing a value go last."""
    items = list(findings)
    for sort in reversed(sorts):
        present = [f for f in items if _read(f, sort.field) is not None]
        missing = [f for f in items if _read(f, sort.field) is None]
        present.sort(key=lambda f: _read(f, sort.field), reverse=sort.direction == "desc")
        items = present + missing
    return items


def _read(finding: AuditFinding, field: str) -> Any:
    if field == "text":
        return finding.searchable_text()
    if field == "severity":
        return finding.severity.value
    return getattr(finding, field, None)


def _matches(finding: AuditFinding, flt: QueryFilter) -> bool:
    value = _read(finding, flt.field)
    op = flt.operator
    if op == "contains":
        needles = flt.value if isinstance(flt.value, (list, tuple, set)) else [flt.value]
        haystack = str(value or "").lower()
        return any(str(n).lower() in haystack for n in needles)
    if op == "in":
        return value in flt.value
    if op == "not_in":
        return value not in flt.value
    if op == "==":
        return value == flt.value
    if op == "!=":
        return value != flt.value
    if value is None:
        return False
    if op == "<":
        return value < flt.value
    if op == "<=":
        return value <= flt.value
    if op == ">":
        return value > flt.value
    return value >= flt.value
