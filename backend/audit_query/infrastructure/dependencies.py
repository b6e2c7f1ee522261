"""FastAPI dependency injection: wires infrastructure to application layer."""

import logging
from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from audit_query.config import get_settings
from audit_query.application.services import (
    AIAnalysisService,
    DataMaskingService,
    DepartmentResolver,
    EmbeddingCache,
    HybridRetrievalEngine,
    PatternMatcher,
    QueryAuditLogger,
    QueryClassifier,
    QueryExecutor,
    QueryRouterService,
    build_default_patterns,
)
from audit_query.infrastructure.database.session import async_session_factory, get_db_session
from audit_query.infrastructure.database.repositories import (
    SQLAlchemyDepartmentRepository,
    SQLAlchemyFindingRepository,
    audit_log_repository_scope,
)
from audit_query.infrastructure.openrouter import OpenRouterClient, OpenRouterEmbeddingProvider

logger = logging.getLogger(__name__)


# ── Process-wide singletons ──────────────────────────────────────────


@lru_cache
def get_pattern_matcher() -> PatternMatcher:
    """Default pattern registry, compiled once."""
    return PatternMatcher(build_default_patterns())


@lru_cache
def get_query_classifier() -> QueryClassifier:
    return QueryClassifier()


@lru_cache
def get_embedding_cache() -> EmbeddingCache:
    """Finding embeddings survive across requests."""
    return EmbeddingCache()


@lru_cache
def get_audit_sink() -> QueryAuditLogger:
    """Audit entries are written on their own session, never the request's."""
    return QueryAuditLogger(audit_log_repository_scope(async_session_factory))


def _build_analysis_service() -> AIAnalysisService | None:
    settings = get_settings()
    api_key = settings.openrouter_api_key.strip()
    if not api_key:
        logger.warning("OPENROUTER_API_KEY is not configured; AI analysis is disabled.")
        return None
    provider = OpenRouterClient(
        api_key=api_key,
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
    )
    return AIAnalysisService(
        provider,
        model=settings.analysis_model,
        high_model=settings.analysis_model_high,
        temperature=settings.analysis_temperature,
        max_tokens=settings.analysis_max_tokens,
    )


def _build_retrieval_engine() -> HybridRetrievalEngine:
    settings = get_settings()
    embedding_provider = OpenRouterEmbeddingProvider(
        api_key=settings.openrouter_api_key.strip(),
        base_url=settings.openrouter_base_url,
        app_name=settings.openrouter_app_name,
        model=settings.embedding_model,
        model_dimensions=settings.embedding_dimensions,
    )
    return HybridRetrievalEngine(
        embedding_provider,
        cache=get_embedding_cache(),
        keyword_weight=settings.hybrid_keyword_weight,
        semantic_weight=settings.hybrid_semantic_weight,
        min_similarity=settings.min_semantic_similarity,
        max_concurrency=settings.embedding_concurrency,
        batch_size=settings.embedding_batch_size,
        default_max_results=settings.context_max_results,
        default_max_tokens=settings.context_max_tokens,
    )


# ── Request-scoped services ──────────────────────────────────────────


async def get_query_router_service(
    session: AsyncSession = Depends(get_db_session),
) -> AsyncGenerator[QueryRouterService, None]:
    """Provides a QueryRouterService bound to the request's DB session."""
    settings = get_settings()

    executor = QueryExecutor(
        SQLAlchemyFindingRepository(session),
        department_resolver=DepartmentResolver(SQLAlchemyDepartmentRepository(session)),
        default_limit=settings.default_max_results,
    )
    yield QueryRouterService(
        pattern_matcher=get_pattern_matcher(),
        classifier=get_query_classifier(),
        executor=executor,
        retrieval=_build_retrieval_engine(),
        analysis_service=_build_analysis_service(),
        audit_sink=get_audit_sink(),
        masker=DataMaskingService() if settings.mask_sensitive_data else None,
        default_max_results=settings.default_max_results,
        candidate_pool_size=settings.candidate_pool_size,
        context_max_results=settings.context_max_results,
        context_max_tokens=settings.context_max_tokens,
        fast_path_budget_ms=settings.fast_path_budget_ms,
        query_timeout_seconds=settings.query_timeout_seconds,
        audit_timeout_seconds=settings.audit_timeout_seconds,
    )
