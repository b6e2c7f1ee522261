"""Domain entities for natural-language query classification and planning."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from audit_query.domain.entities.finding import AuditFinding, FindingStatus, Severity


class QueryType(str, Enum):
    """How a question is answered."""

    SIMPLE = "simple"    # structured lookup only
    COMPLEX = "complex"  # AI analysis over retrieved context
    HYBRID = "hybrid"    # both, merged


INEQUALITY_OPERATORS = frozenset({"<", "<=", ">", ">="})
NATIVE_OPERATORS = frozenset({"==", "!=", "in", "not_in"}) | INEQUALITY_OPERATORS
FILTER_OPERATORS = NATIVE_OPERATORS | {"contains"}


@dataclass(frozen=True)
class ExtractedFilters:
    """Structured filters pulled out of the query text. Never mutated."""

    year: int | None = None
    severity: tuple[Severity, ...] = ()
    status: tuple[FindingStatus, ...] = ()
    project_type: str | None = None
    department: str | None = None
    keywords: tuple[str, ...] = ()

    @property
    def structured_count(self) -> int:
        """Number of structured (non-keyword) fields that are set."""
        return sum((
            self.year is not None,
            bool(self.severity),
            bool(self.status),
            self.project_type is not None,
            self.department is not None,
        ))

    @property
    def is_empty(self) -> bool:
        return self.structured_count == 0 and not self.keywords

    def as_dict(self) -> dict[str, Any]:
        """Compact dict of the fields that are set, for logs and API output."""
        data: dict[str, Any] = {}
        if self.year is not None:
            data["year"] = self.year
        if self.severity:
            data["severity"] = [s.value for s in self.severity]
        if self.status:
            data["status"] = [s.value for s in self.status]
        if self.project_type:
            data["project_type"] = self.project_type
        if self.department:
            data["department"] = self.department
        if self.keywords:
            data["keywords"] = list(self.keywords)
        return data


@dataclass(frozen=True)
class QueryIntent:
    """Classifier output for a single question."""

    type: QueryType
    confidence: float
    extracted_filters: ExtractedFilters = field(default_factory=ExtractedFilters)
    analysis_keywords: tuple[str, ...] = ()

    @property
    def requires_ai(self) -> bool:
        return self.type is not QueryType.SIMPLE


# ── Structured query building blocks ─────────────────────────────────


@dataclass(frozen=True)
class QueryFilter:
    """A single ``field operator value`` predicate against the record store."""

    field: str
    operator: str
    value: Any

    @property
    def is_inequality(self) -> bool:
        return self.operator in INEQUALITY_OPERATORS


@dataclass(frozen=True)
class QuerySort:
    field: str
    direction: str = "desc"  # "asc" | "desc"


@dataclass(frozen=True)
class ParameterExtractor:
    """Declares how one regex capture becomes a typed pattern parameter."""

    name: str
    type: str = "string"  # "string" | "number" | "boolean"
    capture_group: int = 1
    normalizer: str | None = None  # "trim" | "uppercase" | "lowercase" | "capitalize" | "title"


FilterBuilder = Callable[[dict[str, Any]], list[QueryFilter]]
SortBuilder = Callable[[dict[str, Any]], list[QuerySort]]


@dataclass(frozen=True)
class QueryPattern:
    """A declarative fast-path rule: regex + extractors + pure builders."""

    id: str
    name: str
    priority: int
    regex: re.Pattern
    parameter_extractors: tuple[ParameterExtractor, ...]
    filter_builder: FilterBuilder
    sort_builder: SortBuilder
    description: str = ""


@dataclass
class PatternValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)
    conflicts: list[str] = field(default_factory=list)


@dataclass
class MatchResult:
    """Outcome of running the pattern registry over a query."""

    matched: bool
    pattern: QueryPattern | None = None
    params: dict[str, Any] = field(default_factory=dict)
    confidence: float = 0.0


@dataclass
class QueryPlan:
    """Filters, sorts and limit ready for the query executor."""

    filters: list[QueryFilter] = field(default_factory=list)
    sorts: list[QuerySort] = field(default_factory=list)
    limit: int | None = None
    source: str = "classifier"  # pattern id or "classifier"


@dataclass
class ExecutionResult:
    """Records returned by the executor plus what was actually run."""

    findings: list[AuditFinding]
    filters_applied: list[QueryFilter] = field(default_factory=list)
    sorts_applied: list[QuerySort] = field(default_factory=list)
    client_side_filters: list[QueryFilter] = field(default_factory=list)
    department_variants: list[str] = field(default_factory=list)
    queries_issued: int = 0
