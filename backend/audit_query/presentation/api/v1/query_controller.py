"""Query API controller: natural-language questions over audit findings."""

from fastapi import APIRouter, Depends

from audit_query.application.schemas.query import (
    ClassifyRequest,
    ExecuteAsRequest,
    ExtractedFiltersSchema,
    FindingSchema,
    QueryErrorResponseSchema,
    QueryErrorSchema,
    QueryIntentSchema,
    QueryMetadataSchema,
    QueryRequest,
    QueryResponseSchema,
)
from audit_query.application.services.query_router_service import QueryRouterService
from audit_query.domain.entities import (
    AuditFinding,
    ChatMessage,
    QueryErrorResponse,
    QueryIntent,
    QueryMetadata,
    QueryOptions,
    QueryType,
    RouterResult,
)
from audit_query.infrastructure.dependencies import get_query_router_service

router = APIRouter(prefix="/query", tags=["query"])

QueryResultSchema = QueryResponseSchema | QueryErrorResponseSchema


# ── Helpers ──────────────────────────────────────────────────────────


def _to_options(body: QueryRequest) -> QueryOptions:
    return QueryOptions(
        max_results=body.max_results,
        thinking_mode=body.thinking_mode,
        session_id=body.session_id,
        history=[ChatMessage(role=m.role, content=m.content) for m in body.history],
    )


def _to_finding_schema(finding: AuditFinding) -> FindingSchema:
    return FindingSchema(
        id=finding.id,
        year=finding.year,
        project_name=finding.project_name,
        department=finding.department,
        risk_area=finding.risk_area,
        description=finding.description,
        code=finding.code,
        subholding=finding.subholding,
        project_id=finding.project_id,
        project_type=finding.project_type,
        weight=finding.weight,
        likelihood=finding.likelihood,
        risk_score=finding.risk_score,
        severity=finding.severity.value,
        status=finding.status,
    )


def _to_metadata_schema(meta: QueryMetadata | None) -> QueryMetadataSchema | None:
    if meta is None:
        return None
    return QueryMetadataSchema(
        query_type=meta.query_type,
        execution_time_ms=meta.execution_time_ms,
        findings_analyzed=meta.findings_analyzed,
        confidence=meta.confidence,
        results_count=meta.results_count,
        pattern_matched=meta.pattern_matched,
        strategy_used=meta.strategy_used,
        tokens_used=meta.tokens_used,
        filters_applied=meta.filters_applied,
        department_variants=meta.department_variants,
        stages=meta.stages,
        ai_error=meta.ai_error,
    )


def _to_result_schema(result: RouterResult) -> QueryResultSchema:
    """Map the router's success/error union to its response schema."""
    if isinstance(result, QueryErrorResponse):
        fallback = result.error.fallback_data
        return QueryErrorResponseSchema(
            error=QueryErrorSchema(
                code=result.error.code.value,
                message=result.error.message,
                suggestion=result.error.suggestion,
                fallback_data=(
                    [_to_finding_schema(f) for f in fallback] if fallback is not None else None
                ),
            ),
            metadata=_to_metadata_schema(result.metadata),
        )
    return QueryResponseSchema(
        type=result.type.value,
        answer=result.answer,
        code=result.code.value if result.code else None,
        findings=[_to_finding_schema(f) for f in result.findings],
        metadata=_to_metadata_schema(result.metadata),
    )


def _to_intent_schema(intent: QueryIntent) -> QueryIntentSchema:
    filters = intent.extracted_filters
    return QueryIntentSchema(
        type=intent.type.value,
        confidence=intent.confidence,
        requires_ai=intent.requires_ai,
        extracted_filters=ExtractedFiltersSchema(
            year=filters.year,
            severity=[s.value for s in filters.severity],
            status=[s.value for s in filters.status],
            project_type=filters.project_type,
            department=filters.department,
            keywords=list(filters.keywords),
        ),
        analysis_keywords=list(intent.analysis_keywords),
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.post("", response_model=QueryResultSchema)
async def route_query(
    body: QueryRequest,
    service: QueryRouterService = Depends(get_query_router_service),
):
    """Answer a question via the fast path, a structured lookup or AI analysis."""
    result = await service.route_query(body.query, _to_options(body))
    return _to_result_schema(result)


@router.post("/classify", response_model=QueryIntentSchema)
async def classify_query(
    body: ClassifyRequest,
    service: QueryRouterService = Depends(get_query_router_service),
):
    """Classify a question without executing anything."""
    return _to_intent_schema(service.classify_query(body.query))


@router.post("/execute-as", response_model=QueryResultSchema)
async def execute_as(
    body: ExecuteAsRequest,
    service: QueryRouterService = Depends(get_query_router_service),
):
    """Run a question as a forced query type, skipping pattern matching."""
    result = await service.execute_as(body.query, QueryType(body.query_type), _to_options(body))
    return _to_result_schema(result)
