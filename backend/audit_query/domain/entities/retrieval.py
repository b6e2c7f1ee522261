"""Domain entities for context selection in the hybrid retrieval engine."""

from dataclasses import dataclass, field
from enum import Enum

from audit_query.domain.entities.finding import AuditFinding


class RetrievalStrategy(str, Enum):
    KEYWORD = "keyword"
    SEMANTIC = "semantic"
    HYBRID = "hybrid"


@dataclass
class RetrievalCandidate:
    """A finding annotated with how (and how strongly) it matched."""

    finding: AuditFinding
    relevance_score: float                # 0.0 – 1.0 for keyword/hybrid, cosine for semantic
    match_reason: RetrievalStrategy
    keyword_score: float | None = None
    semantic_score: float | None = None


@dataclass
class SelectionMetadata:
    total_candidates: int = 0
    selected_count: int = 0
    average_relevance: float = 0.0
    truncated: bool = False


@dataclass
class ContextSelectionResult:
    """Ordered, budgeted context handed to the AI model."""

    selected_results: list[RetrievalCandidate] = field(default_factory=list)
    strategy_used: RetrievalStrategy = RetrievalStrategy.KEYWORD
    estimated_tokens: int = 0
    context_text: str = ""
    metadata: SelectionMetadata = field(default_factory=SelectionMetadata)

    @property
    def findings(self) -> list[AuditFinding]:
        return [c.finding for c in self.selected_results]
