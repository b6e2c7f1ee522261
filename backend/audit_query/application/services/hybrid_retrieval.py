"""Hybrid retrieval engine: picks which findings to hand to the AI model.

Three strategies:
  1. keyword : field matches + lexical overlap, no embedding calls
  2. semantic: cosine similarity between the query and finding embeddings
  3. hybrid  : keyword pre-ranking, then a weighted sum of both scores

The ranked list is capped at ``max_results`` and then walked in order until
the estimated token count would exceed ``max_tokens``. When the embedding
backend is unavailable (or fails mid-call) every strategy degrades to
keyword scoring without raising.
"""

import asyncio
import logging
import math
import re
import time

from audit_query.application.interfaces.embedding_provider import EmbeddingProvider
from audit_query.application.services.embedding_cache import EmbeddingCache
from audit_query.domain.entities import (
    AuditFinding,
    ContextSelectionResult,
    ExtractedFilters,
    RetrievalCandidate,
    RetrievalStrategy,
    SelectionMetadata,
)
from audit_query.domain.exceptions import EmbeddingProviderError
from audit_query.domain.vocabulary import STOP_WORDS, canonical_department

logger = logging.getLogger(__name__)

CHARS_PER_TOKEN = 4
CONTEXT_HEADER = "Relevant Audit Findings:\n\n"

_DEFAULT_MAX_RESULTS = 20
_DEFAULT_MAX_TOKENS = 10_000
_HYBRID_PREFILTER_FACTOR = 3
_MIN_HYBRID_SCORE = 0.1
_LONG_QUERY_WORDS = 12

# Keyword relevance points (out of 100 when every criterion applies)
_PTS_YEAR = 25
_PTS_DEPARTMENT = 20
_PTS_PROJECT_TYPE = 15
_PTS_SEVERITY = 10
_PTS_STATUS = 10
_PTS_TERMS = 20

_TERM_RE = re.compile(r"[A-Za-z][A-Za-z0-9\-]{2,}")


def cosine_similarity(a: list[float], b: list[float]) -> float:
    if len(a) != len(b) or not a:
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def estimate_tokens(text: str) -> int:
    """Length-based token estimate; not a real tokenizer."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def format_finding(index: int, finding: AuditFinding) -> str:
    project = finding.project_name
    if finding.project_type:
        project = f"{project} ({finding.project_type})"
    lines = [
        f"Audit Finding {index} [{finding.id}]:",
        f"- Project: {project}",
        f"- Year: {finding.year}",
        f"- Department: {finding.department}",
        f"- Risk Area: {finding.risk_area or 'N/A'}",
        f"- Description: {finding.description or 'N/A'}",
        f"- Code: {finding.code or 'N/A (non-finding)'}",
        f"- Severity: {finding.severity.value} (Score: {finding.risk_score:g})",
        f"- Status: {finding.status}",
    ]
    if finding.subholding:
        lines.append(f"- Subholding: {finding.subholding}")
    return "\n".join(lines) + "\n\n"


class HybridRetrievalEngine:
    """Selects and formats AI context from a candidate set of findings.

    Owns its ``EmbeddingCache``; pass one in to share it between engines.
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider | None = None,
        *,
        cache: EmbeddingCache | None = None,
        keyword_weight: float = 0.5,
        semantic_weight: float = 0.5,
        min_similarity: float = 0.3,
        max_concurrency: int = 4,
        batch_size: int = 16,
        default_max_results: int = _DEFAULT_MAX_RESULTS,
        default_max_tokens: int = _DEFAULT_MAX_TOKENS,
    ):
        self._provider = embedding_provider
        self._cache = cache if cache is not None else EmbeddingCache()
        self._keyword_weight = keyword_weight
        self._semantic_weight = semantic_weight
        self._min_similarity = min_similarity
        self._max_concurrency = max(1, max_concurrency)
        self._batch_size = max(1, batch_size)
        self._default_max_results = default_max_results
        self._default_max_tokens = default_max_tokens

    @property
    def cache(self) -> EmbeddingCache:
        return self._cache

    # ── Public API ───────────────────────────────────────────────────

    async def select_context(
        self,
        query: str,
        candidates: list[AuditFinding],
        filters: ExtractedFilters | None = None,
        *,
        max_results: int | None = None,
        max_tokens: int | None = None,
        analysis_terms: tuple[str, ...] | list[str] = (),
        strategy: RetrievalStrategy | None = None,
    ) -> ContextSelectionResult:
        """Rank ``candidates`` for ``query`` and pack them into a token budget."""
        start = time.monotonic()
        filters = filters or ExtractedFilters()
        max_results = max_results or self._default_max_results
        max_tokens = self._default_max_tokens if max_tokens is None else max_tokens

        requested = strategy or self.choose_strategy(query, filters, analysis_terms)
        available = self._embeddings_available()
        effective = requested if available else RetrievalStrategy.KEYWORD
        if effective is not requested:
            logger.info("Embeddings unavailable; %s downgraded to keyword", requested.value)

        if not candidates:
            return ContextSelectionResult(strategy_used=effective)

        terms = self._query_terms(query, filters)
        ranked: list[RetrievalCandidate]
        if effective is RetrievalStrategy.KEYWORD:
            ranked = self._rank_keyword(candidates, filters, terms)
        else:
            try:
                if effective is RetrievalStrategy.SEMANTIC:
                    ranked = await self._rank_semantic(query, candidates, analysis_terms)
                else:
                    ranked = await self._rank_hybrid(
                        query, candidates, filters, terms, analysis_terms, max_results
                    )
            except Exception as e:
                logger.warning(
                    "Semantic scoring failed (%s: %s); falling back to keyword",
                    type(e).__name__, e,
                )
                effective = RetrievalStrategy.KEYWORD
                ranked = self._rank_keyword(candidates, filters, terms)

        result = self._pack(ranked, effective, max_results, max_tokens)
        result.metadata.total_candidates = len(candidates)

        logger.info(
            "Context selected: strategy=%s %d/%d findings ~%d tokens truncated=%s (%dms)",
            effective.value,
            result.metadata.selected_count,
            len(candidates),
            result.estimated_tokens,
            result.metadata.truncated,
            int((time.monotonic() - start) * 1000),
        )
        return result

    @staticmethod
    def choose_strategy(
        query: str,
        filters: ExtractedFilters,
        analysis_terms: tuple[str, ...] | list[str] = (),
    ) -> RetrievalStrategy:
        has_filters = filters.structured_count > 0
        analytical = bool(analysis_terms) or len(query.split()) >= _LONG_QUERY_WORDS
        if analytical and has_filters:
            return RetrievalStrategy.HYBRID
        if analytical:
            return RetrievalStrategy.SEMANTIC
        return RetrievalStrategy.KEYWORD

    def keyword_score(
        self, finding: AuditFinding, filters: ExtractedFilters, terms: list[str]
    ) -> float:
        """Share of the applicable criteria the finding satisfies, in [0, 1]."""
        earned = 0
        possible = 0

        if filters.year is not None:
            possible += _PTS_YEAR
            if finding.year == filters.year:
                earned += _PTS_YEAR
        if filters.department:
            possible += _PTS_DEPARTMENT
            if _same_department(finding.department, filters.department):
                earned += _PTS_DEPARTMENT
        if filters.project_type:
            possible += _PTS_PROJECT_TYPE
            if finding.project_type.lower() == filters.project_type.lower():
                earned += _PTS_PROJECT_TYPE
        if filters.severity:
            possible += _PTS_SEVERITY
            if finding.severity in filters.severity:
                earned += _PTS_SEVERITY
        if filters.status:
            possible += _PTS_STATUS
            if finding.status in {s.value for s in filters.status}:
                earned += _PTS_STATUS
        if terms:
            possible += _PTS_TERMS
            text = finding.searchable_text().lower()
            hits = sum(1 for t in terms if t in text)
            earned += _PTS_TERMS * hits / len(terms)

        if possible == 0:
            return 0.0
        return earned / possible

    # ── Ranking ──────────────────────────────────────────────────────

    def _rank_keyword(
        self, candidates: list[AuditFinding], filters: ExtractedFilters, terms: list[str]
    ) -> list[RetrievalCandidate]:
        scored = []
        for finding in candidates:
            score = self.keyword_score(finding, filters, terms)
            scored.append(
                RetrievalCandidate(
                    finding=finding,
                    relevance_score=score,
                    match_reason=RetrievalStrategy.KEYWORD,
                    keyword_score=score,
                )
            )
        scored.sort(key=lambda c: c.relevance_score, reverse=True)
        return scored

    async def _rank_semantic(
        self,
        query: str,
        candidates: list[AuditFinding],
        analysis_terms: tuple[str, ...] | list[str],
    ) -> list[RetrievalCandidate]:
        similarities = await self._similarities(query, candidates, analysis_terms)
        ranked = [
            RetrievalCandidate(
                finding=f,
                relevance_score=similarities[f.id],
                match_reason=RetrievalStrategy.SEMANTIC,
                semantic_score=similarities[f.id],
            )
            for f in candidates
            if similarities.get(f.id, 0.0) >= self._min_similarity
        ]
        ranked.sort(key=lambda c: c.relevance_score, reverse=True)
        return ranked

    async def _rank_hybrid(
        self,
        query: str,
        candidates: list[AuditFinding],
        filters: ExtractedFilters,
        terms: list[str],
        analysis_terms: tuple[str, ...] | list[str],
        max_results: int,
    ) -> list[RetrievalCandidate]:
        pre = self._rank_keyword(candidates, filters, terms)[: max_results * _HYBRID_PREFILTER_FACTOR]
        similarities = await self._similarities(query, [c.finding for c in pre], analysis_terms)

        total_weight = (self._keyword_weight + self._semantic_weight) or 1.0
        ranked = []
        for cand in pre:
            semantic = max(0.0, similarities.get(cand.finding.id, 0.0))
            combined = (
                self._keyword_weight * (cand.keyword_score or 0.0)
                + self._semantic_weight * semantic
            ) / total_weight
            if combined < _MIN_HYBRID_SCORE:
                continue
            ranked.append(
                RetrievalCandidate(
                    finding=cand.finding,
                    relevance_score=combined,
                    match_reason=RetrievalStrategy.HYBRID,
                    keyword_score=cand.keyword_score,
                    semantic_score=semantic,
                )
            )
        ranked.sort(key=lambda c: c.relevance_score, reverse=True)
        return ranked

    # ── Embeddings ───────────────────────────────────────────────────

    def _embeddings_available(self) -> bool:
        if self._provider is None:
            return False
        try:
            return bool(self._provider.is_available())
        except Exception as e:
            logger.warning("Embedding availability check failed: %s", e)
            return False

    async def _similarities(
        self,
        query: str,
        findings: list[AuditFinding],
        analysis_terms: tuple[str, ...] | list[str],
    ) -> dict[str, float]:
        extra = [t for t in analysis_terms if t not in query.lower()]
        query_vector = await self._provider.embed(" ".join([query, *extra]))
        vectors = await self._embed_findings(findings)
        return {
            f.id: cosine_similarity(query_vector, vectors[f.id])
            for f in findings
            if f.id in vectors
        }

    async def _embed_findings(self, findings: list[AuditFinding]) -> dict[str, list[float]]:
        """Cached vectors for ``findings``; misses are embedded in concurrent batches."""
        vectors: dict[str, list[float]] = {}
        missing: dict[str, AuditFinding] = {}
        for f in findings:
            if f.id in self._cache:
                vectors[f.id] = self._cache.get(f.id)
            else:
                missing[f.id] = f

        if not missing:
            return vectors

        pending = list(missing.values())
        batches = [
            pending[i : i + self._batch_size]
            for i in range(0, len(pending), self._batch_size)
        ]
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(batch: list[AuditFinding]) -> dict[str, list[float]]:
            async with semaphore:
                embedded = await self._provider.generate_embeddings(
                    [f.searchable_text() for f in batch]
                )
            if len(embedded) != len(batch):
                raise EmbeddingProviderError(
                    500, f"expected {len(batch)} vectors, got {len(embedded)}"
                )
            return {finding.id: vector for finding, vector in zip(batch, embedded)}

        # One task per batch; each finding's cache entry awaits its batch
        batch_of: dict[str, asyncio.Future] = {}
        tasks = []
        for batch in batches:
            task = asyncio.ensure_future(run(batch))
            tasks.append(task)
            for f in batch:
                batch_of[f.id] = task

        async def from_batch(finding_id: str) -> list[float]:
            return (await batch_of[finding_id])[finding_id]

        try:
            computed = await asyncio.gather(
                *(
                    self._cache.get_or_compute(fid, lambda fid=fid: from_batch(fid))
                    for fid in missing
                )
            )
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        vectors.update(zip(missing, computed))
        logger.debug(
            "Embedded %d findings in %d batch(es); cache=%s",
            len(pending), len(batches), self._cache.stats(),
        )
        return vectors

    # ── Budgeting ────────────────────────────────────────────────────

    def _pack(
        self,
        ranked: list[RetrievalCandidate],
        strategy: RetrievalStrategy,
        max_results: int,
        max_tokens: int,
    ) -> ContextSelectionResult:
        header_tokens = estimate_tokens(CONTEXT_HEADER)
        full_tokens = header_tokens + sum(
            estimate_tokens(format_finding(i, c.finding)) for i, c in enumerate(ranked, 1)
        )

        selected: list[RetrievalCandidate] = []
        blocks: list[str] = []
        running = header_tokens
        stopped = False
        for cand in ranked[:max_results]:
            block = format_finding(len(selected) + 1, cand.finding)
            cost = estimate_tokens(block)
            if running + cost > max_tokens:
                stopped = True
                break
            selected.append(cand)
            blocks.append(block)
            running += cost

        truncated = stopped or (bool(ranked) and full_tokens > max_tokens)
        if not selected:
            return ContextSelectionResult(
                strategy_used=strategy,
                metadata=SelectionMetadata(truncated=truncated),
            )

        average = sum(c.relevance_score for c in selected) / len(selected)
        return ContextSelectionResult(
            selected_results=selected,
            strategy_used=strategy,
            estimated_tokens=running,
            context_text=CONTEXT_HEADER + "".join(blocks),
            metadata=SelectionMetadata(
                selected_count=len(selected),
                average_relevance=round(average, 4),
                truncated=truncated,
            ),
        )

    @staticmethod
    def _query_terms(query: str, filters: ExtractedFilters) -> list[str]:
        if filters.keywords:
            return [k.lower() for k in filters.keywords]
        terms: list[str] = []
        for word in _TERM_RE.findall(query.lower()):
            if word not in STOP_WORDS and word not in terms:
                terms.append(word)
        return terms


def _same_department(value: str, wanted: str) -> bool:
    if value.lower() == wanted.lower():
        return True
    canonical = canonical_department(value)
    return canonical is not None and canonical == canonical_department(wanted)
