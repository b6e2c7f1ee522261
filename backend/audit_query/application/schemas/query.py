"""Pydantic schemas for query API requests and responses."""

from typing import Any, Literal

from pydantic import BaseModel, Field


# ── Request Schemas ──────────────────────────────────────────────────


class HistoryMessageSchema(BaseModel):
    """A prior conversation turn passed through to AI analysis."""

    role: Literal["user", "assistant"]
    content: str


class QueryRequest(BaseModel):
    """Request body for a natural-language finding query."""

    query: str = Field(..., min_length=1, description="Question about audit findings")
    max_results: int | None = Field(default=None, ge=1, le=500, description="Result cap")
    thinking_mode: Literal["low", "high"] = "low"
    session_id: str | None = None
    history: list[HistoryMessageSchema] = []


class ClassifyRequest(BaseModel):
    """Request body for an intent preview."""

    query: str = Field(..., min_length=1)


class ExecuteAsRequest(QueryRequest):
    """Request body for running a query as a forced type."""

    query_type: Literal["simple", "complex", "hybrid"]


# ── Response Schemas ─────────────────────────────────────────────────


class FindingSchema(BaseModel):
    """A single audit finding in a response."""

    id: str
    year: int
    project_name: str
    department: str
    risk_area: str = ""
    description: str = ""
    code: str = ""
    subholding: str = ""
    project_id: str = ""
    project_type: str = ""
    weight: float = 0
    likelihood: float = 0
    risk_score: float = 0
    severity: str
    status: str


class QueryMetadataSchema(BaseModel):
    """Execution metadata attached to every router result."""

    query_type: str
    execution_time_ms: int = 0
    findings_analyzed: int = 0
    confidence: float = 0.0
    results_count: int | None = None
    pattern_matched: str | None = None
    strategy_used: str | None = None
    tokens_used: int | None = None
    filters_applied: dict[str, Any] = {}
    department_variants: list[str] = []
    stages: list[str] = []
    ai_error: str | None = None


class QueryResponseSchema(BaseModel):
    """Successful router result."""

    success: Literal[True] = True
    type: str
    answer: str
    code: str | None = None
    findings: list[FindingSchema] = []
    metadata: QueryMetadataSchema


class QueryErrorSchema(BaseModel):
    code: str
    message: str
    suggestion: str
    fallback_data: list[FindingSchema] | None = None


class QueryErrorResponseSchema(BaseModel):
    """Failed router result; still returned with HTTP 200."""

    success: Literal[False] = False
    error: QueryErrorSchema
    metadata: QueryMetadataSchema | None = None


class ExtractedFiltersSchema(BaseModel):
    year: int | None = None
    severity: list[str] = []
    status: list[str] = []
    project_type: str | None = None
    department: str | None = None
    keywords: list[str] = []


class QueryIntentSchema(BaseModel):
    """Classifier output for the intent preview endpoint."""

    type: str
    confidence: float
    requires_ai: bool
    extracted_filters: ExtractedFiltersSchema
    analysis_keywords: list[str] = []
