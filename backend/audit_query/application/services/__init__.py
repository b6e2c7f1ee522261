from .ai_analysis_service import AIAnalysisService, AnalysisResult
from .data_masking import DataMaskingService
from .department_resolver import DepartmentResolver
from .embedding_cache import EmbeddingCache
from .filter_extractor import FilterExtractor, QuerySignals
from .hybrid_retrieval import HybridRetrievalEngine
from .pattern_matcher import PatternMatcher
from .query_audit_logger import QueryAuditLogger
from .query_classifier import QueryClassifier
from .query_executor import QueryExecutor
from .query_patterns import build_default_patterns
from .query_router_service import QueryRouterService
from .response_formatter import ResponseFormatter

__all__ = [
    "AIAnalysisService",
    "AnalysisResult",
    "DataMaskingService",
    "DepartmentResolver",
    "EmbeddingCache",
    "FilterExtractor",
    "QuerySignals",
    "HybridRetrievalEngine",
    "PatternMatcher",
    "QueryAuditLogger",
    "QueryClassifier",
    "QueryExecutor",
    "build_default_patterns",
    "QueryRouterService",
    "ResponseFormatter",
]
