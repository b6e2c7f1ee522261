from .query import (
    ClassifyRequest,
    ExecuteAsRequest,
    ExtractedFiltersSchema,
    FindingSchema,
    HistoryMessageSchema,
    QueryErrorResponseSchema,
    QueryErrorSchema,
    QueryIntentSchema,
    QueryMetadataSchema,
    QueryRequest,
    QueryResponseSchema,
)

__all__ = [
    "ClassifyRequest",
    "ExecuteAsRequest",
    "ExtractedFiltersSchema",
    "FindingSchema",
    "HistoryMessageSchema",
    "QueryErrorResponseSchema",
    "QueryErrorSchema",
    "QueryIntentSchema",
    "QueryMetadataSchema",
    "QueryRequest",
    "QueryResponseSchema",
]
