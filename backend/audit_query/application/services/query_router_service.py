"""Query router: the single entry point for natural-language finding questions.

State flow per query:
    received → pattern_matching ─┬→ fast_path_execute → done
                                 └→ classifying → executing ─┬→ done                (simple)
                                                             └→ retrieving_context
                                                                → ai_invoking → merging → done

A matched pattern never reaches the classifier or the AI model. Every
failure is converted into a ``QueryErrorResponse``; ``route_query`` does
not raise (cancellation by the caller excepted).
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any

from audit_query.application.interfaces import QueryAuditSink
from audit_query.application.services.ai_analysis_service import AIAnalysisService, AnalysisResult
from audit_query.application.services.data_masking import DataMaskingService
from audit_query.application.services.hybrid_retrieval import HybridRetrievalEngine
from audit_query.application.services.pattern_matcher import PatternMatcher
from audit_query.application.services.query_classifier import QueryClassifier
from audit_query.application.services.query_executor import QueryExecutor
from audit_query.application.services.response_formatter import ResponseFormatter
from audit_query.domain.entities import (
    PATTERN_QUERY_TYPE,
    AuditFinding,
    ErrorCode,
    ExecutionResult,
    MatchResult,
    MaskingResult,
    QueryAuditLog,
    QueryErrorDetail,
    QueryErrorResponse,
    QueryFilter,
    QueryIntent,
    QueryMetadata,
    QueryOptions,
    QueryPlan,
    QueryResponse,
    QueryType,
    RouterResult,
    RouterStage,
)
from audit_query.domain.exceptions import RecordStoreError
from audit_query.infrastructure.logging.colored_logger import QueryStage, RouterLogger

logger = logging.getLogger(__name__)
rlog = RouterLogger("QueryRouter")

# Unexpected failures are reported against the stage they escaped from;
# context selection and merging belong to the analysis half of a query.
_STAGE_ERROR_CODES = {
    RouterStage.CLASSIFYING: ErrorCode.CLASSIFICATION_ERROR,
    RouterStage.FAST_PATH_EXECUTE: ErrorCode.DATABASE_ERROR,
    RouterStage.EXECUTING: ErrorCode.DATABASE_ERROR,
    RouterStage.RETRIEVING_CONTEXT: ErrorCode.AI_ERROR,
    RouterStage.AI_INVOKING: ErrorCode.AI_ERROR,
    RouterStage.MERGING: ErrorCode.AI_ERROR,
}


@dataclass
class _QueryTrace:
    """Per-query bookkeeping: stage trail and start time."""

    started: float = field(default_factory=time.monotonic)
    stages: list[RouterStage] = field(default_factory=list)

    def enter(self, stage: RouterStage) -> None:
        self.stages.append(stage)

    @property
    def current(self) -> RouterStage | None:
        return self.stages[-1] if self.stages else None

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)

    def trail(self) -> list[str]:
        return [s.value for s in self.stages]


class QueryRouterService:
    """Routes a question to the fast path, a structured lookup, or AI analysis.

    Collaborators are injected; ``analysis_service``, ``audit_sink`` and
    ``masker`` are optional. Without an analysis service, complex questions
    fail with ``AI_ERROR`` and hybrid questions return the database half only.
    With a masker, classification and analysis see the masked question and
    the AI answer is unmasked before it is returned.
    """

    def __init__(
        self,
        *,
        pattern_matcher: PatternMatcher,
        classifier: QueryClassifier,
        executor: QueryExecutor,
        retrieval: HybridRetrievalEngine,
        analysis_service: AIAnalysisService | None = None,
        audit_sink: QueryAuditSink | None = None,
        formatter: ResponseFormatter | None = None,
        masker: DataMaskingService | None = None,
        default_max_results: int = 50,
        candidate_pool_size: int = 200,
        context_max_results: int = 20,
        context_max_tokens: int = 10_000,
        fast_path_budget_ms: int = 500,
        query_timeout_seconds: float = 30.0,
        audit_timeout_seconds: float = 2.0,
    ):
        self._matcher = pattern_matcher
        self._classifier = classifier
        self._executor = executor
        self._retrieval = retrieval
        self._analysis = analysis_service
        self._audit_sink = audit_sink
        self._formatter = formatter or ResponseFormatter()
        self._masker = masker
        self._default_max_results = default_max_results
        self._candidate_pool_size = candidate_pool_size
        self._context_max_results = context_max_results
        self._context_max_tokens = context_max_tokens
        self._fast_path_budget_ms = fast_path_budget_ms
        self._query_timeout = query_timeout_seconds
        self._audit_timeout = audit_timeout_seconds

    # ── Public API ───────────────────────────────────────────────────

    async def route_query(
        self, query_text: str, options: QueryOptions | None = None
    ) -> RouterResult:
        """Answer ``query_text``; always returns a response or an error variant."""
        options = options or QueryOptions()
        trace = _QueryTrace()
        rlog.step_start(QueryStage.RECEIVED, "Routing query", query=_clip(query_text))

        try:
            result = await asyncio.wait_for(
                self._route(query_text or "", options, trace),
                timeout=self._query_timeout,
            )
        except asyncio.TimeoutError:
            rlog.step_error(QueryStage.ERROR, f"Query timed out after {self._query_timeout}s")
            result = self._error(ErrorCode.TIMEOUT_ERROR, trace)
        except Exception as e:
            code = _STAGE_ERROR_CODES.get(trace.current, ErrorCode.DATABASE_ERROR)
            logger.exception("Unexpected router failure in stage %s", trace.current)
            result = self._error(code, trace, detail=str(e))

        await self._emit_audit(query_text, result, options)
        return result

    def classify_query(self, query_text: str) -> QueryIntent:
        """Classification preview; nothing is executed."""
        return self._classifier.classify(query_text)

    async def execute_as(
        self,
        query_text: str,
        query_type: QueryType,
        options: QueryOptions | None = None,
    ) -> RouterResult:
        """Run ``query_text`` as ``query_type``, bypassing pattern matching."""
        options = replace(options or QueryOptions(), force_type=query_type)
        return await self.route_query(query_text, options)

    # ── State machine ────────────────────────────────────────────────

    async def _route(self, text: str, options: QueryOptions, trace: _QueryTrace) -> RouterResult:
        trace.enter(RouterStage.RECEIVED)

        if options.force_type is None:
            trace.enter(RouterStage.PATTERN_MATCHING)
            match, plan = self._try_patterns(text, options)
            if plan is not None:
                return await self._fast_path(match, plan, trace)

        trace.enter(RouterStage.CLASSIFYING)
        try:
            masking = self._mask(text)
            with rlog.timed_step(QueryStage.CLASSIFY, "Classifying query"):
                intent = self._classifier.classify(masking.masked_text)
        except Exception as e:
            return self._error(ErrorCode.CLASSIFICATION_ERROR, trace, detail=str(e))

        if options.force_type is not None and options.force_type is not intent.type:
            rlog.detail("Forced query type", forced=options.force_type.value, classified=intent.type.value)
            intent = QueryIntent(
                type=options.force_type,
                confidence=intent.confidence,
                extracted_filters=intent.extracted_filters,
                analysis_keywords=intent.analysis_keywords,
            )
        rlog.detail(
            "Intent",
            type=intent.type.value,
            confidence=intent.confidence,
            requires_ai=intent.requires_ai,
        )

        if intent.type is QueryType.SIMPLE:
            return await self._simple(text, intent, options, trace)
        return await self._analyze(masking, intent, options, trace)

    def _try_patterns(
        self, text: str, options: QueryOptions
    ) -> tuple[MatchResult, QueryPlan | None]:
        """Match and build the fast-path plan; any failure falls through to the classifier."""
        try:
            match = self._matcher.match(text)
            if not match.matched:
                rlog.detail("No pattern matched")
                return match, None
            plan = self._executor.plan_from_pattern(match.pattern, match.params)
        except Exception as e:
            logger.warning("Pattern matching failed, using classifier: %s", e)
            return MatchResult(matched=False), None

        if plan.limit is None:
            plan.limit = options.max_results
        rlog.step_complete(
            QueryStage.PATTERN,
            f"Matched '{match.pattern.id}'",
            confidence=match.confidence,
            params=match.params,
        )
        return match, plan

    async def _fast_path(
        self, match: MatchResult, plan: QueryPlan, trace: _QueryTrace
    ) -> RouterResult:
        trace.enter(RouterStage.FAST_PATH_EXECUTE)
        start = time.monotonic()
        try:
            execution = await self._executor.execute(plan)
        except Exception as e:
            return self._database_error(e, trace)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if elapsed_ms > self._fast_path_budget_ms:
            rlog.warning(
                QueryStage.PATTERN,
                "Fast path exceeded budget",
                pattern=match.pattern.id,
                elapsed_ms=elapsed_ms,
                budget_ms=self._fast_path_budget_ms,
            )

        findings = execution.findings
        trace.enter(RouterStage.DONE)
        return QueryResponse(
            type=QueryType.SIMPLE,
            answer=self._formatter.format_simple(findings),
            findings=findings,
            code=None if findings else ErrorCode.NO_RESULTS,
            metadata=self._metadata(
                trace,
                query_type=PATTERN_QUERY_TYPE,
                confidence=match.confidence,
                findings=findings,
                pattern_matched=match.pattern.id,
                filters_applied=dict(match.params),
                execution=execution,
            ),
        )

    async def _simple(
        self, text: str, intent: QueryIntent, options: QueryOptions, trace: _QueryTrace
    ) -> RouterResult:
        trace.enter(RouterStage.EXECUTING)
        plan = self._executor.plan_from_filters(
            intent.extracted_filters,
            limit=options.max_results or self._default_max_results,
        )
        if intent.extracted_filters.is_empty and intent.confidence == 0 and text.strip():
            # Nothing recognised: search for the raw text instead of listing everything
            plan.filters.append(QueryFilter("text", "contains", [text.strip()]))

        try:
            with rlog.timed_step(QueryStage.EXECUTE, "Structured lookup"):
                execution = await self._executor.execute(plan)
        except Exception as e:
            return self._database_error(e, trace)

        findings = execution.findings
        trace.enter(RouterStage.DONE)
        return QueryResponse(
            type=QueryType.SIMPLE,
            answer=self._formatter.format_simple(findings),
            findings=findings,
            code=None if findings else ErrorCode.NO_RESULTS,
            metadata=self._metadata(
                trace,
                query_type=intent.type.value,
                confidence=intent.confidence,
                findings=findings,
                filters_applied=intent.extracted_filters.as_dict(),
                execution=execution,
            ),
        )

    async def _analyze(
        self,
        masking: MaskingResult,
        intent: QueryIntent,
        options: QueryOptions,
        trace: _QueryTrace,
    ) -> RouterResult:
        # Only masked text leaves the process (embeddings and chat)
        text = masking.masked_text
        filters = intent.extracted_filters

        trace.enter(RouterStage.EXECUTING)
        plan = self._executor.plan_from_filters(
            filters, limit=self._candidate_pool_size, include_keywords=False
        )
        try:
            with rlog.timed_step(QueryStage.EXECUTE, "Fetching candidates"):
                execution = await self._executor.execute(plan)
        except Exception as e:
            return self._database_error(e, trace)

        candidates = execution.findings
        display_limit = options.max_results or self._default_max_results
        db_findings = candidates[:display_limit]
        if not candidates:
            trace.enter(RouterStage.DONE)
            return QueryResponse(
                type=intent.type,
                answer=self._formatter.format_simple([]),
                code=ErrorCode.NO_RESULTS,
                metadata=self._metadata(
                    trace,
                    query_type=intent.type.value,
                    confidence=intent.confidence,
                    findings=[],
                    filters_applied=filters.as_dict(),
                    execution=execution,
                ),
            )

        trace.enter(RouterStage.RETRIEVING_CONTEXT)
        with rlog.timed_step(QueryStage.CONTEXT, "Selecting context", candidates=len(candidates)):
            selection = await self._retrieval.select_context(
                text,
                candidates,
                filters,
                max_results=self._context_max_results,
                max_tokens=self._context_max_tokens,
                analysis_terms=intent.analysis_keywords,
            )

        trace.enter(RouterStage.AI_INVOKING)
        analysis: AnalysisResult | None = None
        ai_error: str | None = None
        if self._analysis is None:
            ai_error = "AI analysis is not configured"
        else:
            try:
                with rlog.timed_step(QueryStage.AI, "Invoking AI analysis", mode=options.thinking_mode):
                    analysis = await self._analysis.invoke(
                        selection.context_text,
                        text,
                        history=options.history,
                        mode=options.thinking_mode,
                    )
            except Exception as e:
                ai_error = getattr(e, "message", None) or str(e) or type(e).__name__

        metadata_kwargs: dict[str, Any] = dict(
            query_type=intent.type.value,
            confidence=intent.confidence,
            findings_analyzed=len(selection.selected_results),
            filters_applied=filters.as_dict(),
            execution=execution,
            strategy_used=selection.strategy_used.value,
            tokens_used=selection.estimated_tokens,
        )

        if ai_error is not None and intent.type is not QueryType.HYBRID:
            return self._error(
                ErrorCode.AI_ERROR,
                trace,
                detail=ai_error,
                fallback=selection.findings or db_findings,
                metadata=self._metadata(trace, findings=selection.findings, **metadata_kwargs),
            )

        trace.enter(RouterStage.MERGING)
        ai_text = self._unmask(analysis.text, masking) if analysis else None
        if intent.type is QueryType.HYBRID:
            answer = self._formatter.format_hybrid(db_findings, ai_text)
            findings = db_findings
        else:
            answer = self._formatter.format_complex(ai_text, selection.findings)
            findings = selection.findings

        if ai_error is not None:
            rlog.warning(QueryStage.AI, "AI failed, returning database results only", error=ai_error)
        trace.enter(RouterStage.DONE)
        metadata = self._metadata(trace, findings=findings, **metadata_kwargs)
        metadata.ai_error = ai_error
        return QueryResponse(
            type=intent.type,
            answer=answer,
            findings=findings,
            metadata=metadata,
        )

    # ── Private helpers ──────────────────────────────────────────────

    def _mask(self, text: str) -> MaskingResult:
        if self._masker is None:
            return MaskingResult(masked_text=text)
        masking = self._masker.mask(text)
        if masking.masked:
            rlog.detail(
                "Masked sensitive data",
                tokens=len(masking.tokens),
                kinds=",".join(t.kind for t in masking.tokens),
            )
        return masking

    def _unmask(self, text: str, masking: MaskingResult) -> str:
        if self._masker is None or not masking.masked:
            return text
        return self._masker.unmask(text, masking.tokens)

    def _metadata(
        self,
        trace: _QueryTrace,
        *,
        query_type: str,
        confidence: float,
        findings: list[AuditFinding],
        execution: ExecutionResult | None = None,
        findings_analyzed: int | None = None,
        pattern_matched: str | None = None,
        filters_applied: dict[str, Any] | None = None,
        strategy_used: str | None = None,
        tokens_used: int | None = None,
    ) -> QueryMetadata:
        return QueryMetadata(
            query_type=query_type,
            execution_time_ms=trace.elapsed_ms(),
            findings_analyzed=len(findings) if findings_analyzed is None else findings_analyzed,
            confidence=confidence,
            results_count=len(findings),
            pattern_matched=pattern_matched,
            strategy_used=strategy_used,
            tokens_used=tokens_used,
            filters_applied=filters_applied or {},
            department_variants=list(execution.department_variants) if execution else [],
            stages=trace.trail(),
        )

    def _database_error(self, error: Exception, trace: _QueryTrace) -> QueryErrorResponse:
        partial = error.partial_results if isinstance(error, RecordStoreError) else []
        detail = error.message if isinstance(error, RecordStoreError) else str(error)
        return self._error(
            ErrorCode.DATABASE_ERROR, trace, detail=detail, fallback=partial or None
        )

    def _error(
        self,
        code: ErrorCode,
        trace: _QueryTrace,
        *,
        detail: str | None = None,
        fallback: list[AuditFinding] | None = None,
        metadata: QueryMetadata | None = None,
    ) -> QueryErrorResponse:
        message, suggestion = self._formatter.error_text(code)
        rlog.step_error(QueryStage.ERROR, f"{code.value}: {detail or message}")
        if metadata is None:
            metadata = QueryMetadata(
                query_type="error",
                execution_time_ms=trace.elapsed_ms(),
                stages=trace.trail(),
            )
        return QueryErrorResponse(
            error=QueryErrorDetail(
                code=code,
                message=f"{message} {detail}" if detail else message,
                suggestion=suggestion,
                fallback_data=fallback,
            ),
            metadata=metadata,
        )

    async def _emit_audit(
        self, query_text: str, result: RouterResult, options: QueryOptions
    ) -> None:
        if self._audit_sink is None:
            return
        meta = result.metadata
        entry = QueryAuditLog(
            query_text=query_text,
            query_type=meta.query_type if meta else "error",
            execution_time_ms=meta.execution_time_ms if meta else 0,
            results_count=(meta.results_count or 0) if meta else 0,
            confidence=meta.confidence if meta else 0.0,
            pattern_matched=meta.pattern_matched if meta else None,
            success=result.success,
            error_code=result.error.code.value if isinstance(result, QueryErrorResponse) else None,
            session_id=options.session_id,
        )
        try:
            await asyncio.wait_for(self._audit_sink.record(entry), timeout=self._audit_timeout)
        except Exception as e:
            logger.warning("Audit sink failed (ignored): %s: %s", type(e).__name__, e)


def _clip(value: str, limit: int = 120) -> str:
    text = (value or "").replace("\n", " ").strip()
    if len(text) <= limit:
        return text
    return f"{text[: limit - 3]}..."
