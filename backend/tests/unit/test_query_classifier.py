"""Unit tests for the QueryClassifier and its scoring functions."""

import pytest

from audit_query.application.services.filter_extractor import QuerySignals
from audit_query.application.services.query_classifier import (
    QueryClassifier,
    complex_score,
    filter_strength,
    hybrid_score,
    simple_score,
)
from audit_query.domain.entities import ExtractedFilters, FindingStatus, QueryType, Severity


@pytest.fixture
def classifier() -> QueryClassifier:
    return QueryClassifier()


# ── Scoring functions ──


def test_filter_strength_is_capped():
    filters = ExtractedFilters(
        year=2024,
        severity=(Severity.HIGH,),
        status=(FindingStatus.OPEN,),
        project_type="Hotel",
    )
    assert filter_strength(QuerySignals(filters=filters)) == 1.0


def test_simple_score_damped_by_analysis():
    signals = QuerySignals(
        filters=ExtractedFilters(year=2024),
        lookup_verbs=["show"],
        analysis_strength=0.5,
    )
    assert simple_score(signals) == pytest.approx((0.3 + 0.4) * 0.5)


def test_complex_score_damped_by_filters():
    signals = QuerySignals(
        filters=ExtractedFilters(project_type="Hospital"),
        analysis_terms=["why"],
        analysis_strength=0.6,
    )
    assert complex_score(signals) == pytest.approx(0.6 * (1 - 0.5 * 0.3))


def test_hybrid_score_needs_both_signals():
    filters_only = QuerySignals(filters=ExtractedFilters(year=2024), lookup_verbs=["list"])
    analysis_only = QuerySignals(filters=ExtractedFilters(), analysis_terms=["why"], analysis_strength=0.6)
    assert hybrid_score(filters_only) == 0.0
    assert hybrid_score(analysis_only) == 0.0


# ── Classification ──


def test_simple_lookup(classifier):
    intent = classifier.classify("Show me all critical findings from 2024")
    assert intent.type is QueryType.SIMPLE
    assert intent.requires_ai is False
    assert intent.extracted_filters.year == 2024
    assert Severity.CRITICAL in intent.extracted_filters.severity
    assert intent.analysis_keywords == ()


def test_complex_analysis(classifier):
    intent = classifier.classify(
        "What are the main patterns in our hospital audit findings and what should we prioritize?"
    )
    assert intent.type is QueryType.COMPLEX
    assert intent.requires_ai is True
    assert intent.extracted_filters.project_type == "Hospital"
    assert intent.confidence == pytest.approx(0.85)
    assert "prioritize" in intent.analysis_keywords


def test_hybrid_lookup_and_analysis(classifier):
    intent = classifier.classify("List all open findings in hotels and explain what trends you see")
    assert intent.type is QueryType.HYBRID
    assert intent.requires_ai is True
    assert intent.extracted_filters.status == (FindingStatus.OPEN,)
    assert intent.extracted_filters.project_type == "Hotel"
    assert set(intent.analysis_keywords) == {"explain", "trends"}


def test_gibberish_is_simple_with_zero_confidence(classifier):
    intent = classifier.classify("asdkjhaslkdj")
    assert intent.type is QueryType.SIMPLE
    assert intent.confidence == 0.0
    assert intent.extracted_filters.is_empty


def test_empty_text_does_not_raise(classifier):
    intent = classifier.classify("")
    assert intent.type is QueryType.SIMPLE


def test_tie_prefers_hybrid_when_filters_and_analysis_present():
    signals = QuerySignals(
        filters=ExtractedFilters(year=2024),
        analysis_terms=["why"],
        analysis_strength=0.5,
    )
    scores = {QueryType.SIMPLE: 0.40, QueryType.COMPLEX: 0.42, QueryType.HYBRID: 0.41}
    assert QueryClassifier._pick(scores, signals) is QueryType.HYBRID


def test_tie_without_both_signals_prefers_simple():
    signals = QuerySignals(filters=ExtractedFilters(), analysis_terms=["why"], analysis_strength=0.5)
    scores = {QueryType.SIMPLE: 0.40, QueryType.COMPLEX: 0.43, QueryType.HYBRID: 0.0}
    assert QueryClassifier._pick(scores, signals) is QueryType.SIMPLE


@pytest.mark.parametrize(
    "text",
    [
        "Show me all critical findings from 2024",
        "why are findings increasing",
        "list open hotel findings and analyze root cause",
        "payroll",
        "",
        "Finance findings in 2023",
        "compare HR and IT findings trend",
    ],
)
def test_requires_ai_consistent_with_type(classifier, text):
    intent = classifier.classify(text)
    assert intent.requires_ai is (intent.type is not QueryType.SIMPLE)
    assert 0.0 <= intent.confidence <= 1.0
