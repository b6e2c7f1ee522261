"""Query classifier: decides whether a question is simple, complex or hybrid.

Each intent class has its own small scoring function over the signals the
filter extractor finds:
  1. simple : lookup verbs + concrete filter values, damped by analysis terms
  2. complex: analytical terms, damped by how specific the filters are
  3. hybrid : concrete filters AND analytical terms together

The highest score wins. Scores within ``_TIE_MARGIN`` count as a tie; ties
go to hybrid when a structured filter and an analysis term are both present,
otherwise to simple.
"""

import logging
import math

from audit_query.application.services.filter_extractor import FilterExtractor, QuerySignals
from audit_query.domain.entities import QueryIntent, QueryType

logger = logging.getLogger(__name__)

# Signal weights
_W_LOOKUP = 0.4
_W_FILTER = 0.3          # per structured filter, capped at 1.0
_W_KEYWORDS = 0.2        # free-text search terms present
_W_FILTER_DAMPING = 0.5  # how much specific filters pull a question away from "complex"
_HYBRID_LOOKUP_BONUS = 0.15

_TIE_MARGIN = 0.05


def filter_strength(signals: QuerySignals) -> float:
    return min(1.0, _W_FILTER * signals.filters.structured_count)


def simple_score(signals: QuerySignals) -> float:
    base = filter_strength(signals)
    if signals.has_lookup:
        base += _W_LOOKUP
    if signals.filters.keywords:
        base += _W_KEYWORDS
    return min(1.0, base) * (1.0 - signals.analysis_strength)


def complex_score(signals: QuerySignals) -> float:
    return signals.analysis_strength * (1.0 - _W_FILTER_DAMPING * filter_strength(signals))


def hybrid_score(signals: QuerySignals) -> float:
    strength = filter_strength(signals)
    if strength == 0 or signals.analysis_strength == 0:
        return 0.0
    score = math.sqrt(strength * signals.analysis_strength)
    if signals.has_lookup:
        score += _HYBRID_LOOKUP_BONUS
    return min(1.0, score)


class QueryClassifier:
    """Classifies free-text questions into a ``QueryIntent``."""

    def __init__(self, extractor: FilterExtractor | None = None):
        self._extractor = extractor or FilterExtractor()

    def classify(self, query_text: str) -> QueryIntent:
        signals = self._extractor.analyze(query_text or "")
        scores = self.score(signals)
        query_type = self._pick(scores, signals)

        intent = QueryIntent(
            type=query_type,
            confidence=round(min(max(scores[query_type], 0.0), 1.0), 3),
            extracted_filters=signals.filters,
            analysis_keywords=(
                tuple(signals.analysis_terms) if query_type is not QueryType.SIMPLE else ()
            ),
        )
        logger.info(
            "Classified as %s (confidence=%.2f) scores=%s filters=%s",
            intent.type.value,
            intent.confidence,
            {t.value: round(s, 3) for t, s in scores.items()},
            signals.filters.as_dict(),
        )
        return intent

    @staticmethod
    def score(signals: QuerySignals) -> dict[QueryType, float]:
        return {
            QueryType.SIMPLE: simple_score(signals),
            QueryType.COMPLEX: complex_score(signals),
            QueryType.HYBRID: hybrid_score(signals),
        }

    @staticmethod
    def _pick(scores: dict[QueryType, float], signals: QuerySignals) -> QueryType:
        best = max(scores.values())
        tied = [t for t in QueryType if best - scores[t] <= _TIE_MARGIN]
        if len(tied) == 1:
            return tied[0]
        if signals.filters.structured_count and signals.has_analysis:
            return QueryType.HYBRID
        if QueryType.SIMPLE in tied:
            return QueryType.SIMPLE
        return tied[0]
