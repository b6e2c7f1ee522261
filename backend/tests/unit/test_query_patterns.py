"""Unit tests for the default fast-path pattern table."""

import pytest

from audit_query.application.services.pattern_matcher import PatternMatcher
from audit_query.application.services.query_patterns import build_default_patterns, severity_filters
from audit_query.domain.entities import QueryFilter, QuerySort


@pytest.fixture
def matcher() -> PatternMatcher:
    return PatternMatcher(build_default_patterns())


def _plan(matcher: PatternMatcher, text: str):
    result = matcher.match(text)
    assert result.matched, f"expected a pattern for {text!r}"
    pattern = result.pattern
    return pattern.id, result.params, pattern.filter_builder(result.params), pattern.sort_builder(result.params)


def test_severity_and_year(matcher):
    pattern_id, params, filters, sorts = _plan(matcher, "Show me all critical findings from 2024")

    assert pattern_id == "severity-year"
    assert params == {"severity": "critical", "year": 2024}
    assert QueryFilter("year", "==", 2024) in filters
    assert QueryFilter("risk_score", ">=", 15) in filters
    assert sorts[0] == QuerySort("risk_score", "desc")


def test_department_synonym_is_canonicalized(matcher):
    pattern_id, params, filters, _ = _plan(matcher, "Keuangan findings")

    assert pattern_id == "department"
    assert params == {"department": "Keuangan"}
    assert filters == [QueryFilter("department", "==", "Finance")]


@pytest.mark.parametrize(
    "text, expected_id",
    [
        ("findings from 2023", "year"),
        ("2023 findings", "year-prefix"),
        ("list the high risk findings", "severity"),
        ("Finance findings in 2022", "department-year"),
        ("2022 HR findings", "year-department"),
        ("critical findings in the Finance department", "severity-department"),
        ("findings for the IT department", "department-suffix"),
        ("top 5 findings", "top-n"),
        ("hotel findings", "project-type"),
        ("Marina Bay project findings", "project-suffix"),
        ("findings for project Marina Bay", "project-named"),
        ("open findings", "status"),
        ("findings in SH3", "subholding"),
        ("findings only", "findings-only"),
        ("findings only for 2024", "findings-only-year"),
        ("findings only in Finance", "findings-only-department"),
        ("non-findings in 2021", "non-findings-year"),
        ("non findings", "non-findings"),
    ],
)
def test_pattern_routing(matcher, text, expected_id):
    assert matcher.match(text).pattern.id == expected_id


@pytest.mark.parametrize(
    "text",
    [
        "What are the main patterns in our hospital audit findings and what should we prioritize?",
        "List all open findings in hotels and explain what trends you see",
        "why did critical findings from 2024 increase?",
        "Explain the trends in Raffles project findings",
        "Summarize Citra Garden project findings",
        "findings for project Raffles and explain what trends you see",
        "How are Marina Bay project findings",
        "asdkjhaslkdj",
    ],
)
def test_analytical_or_unknown_questions_fall_through(matcher, text):
    assert matcher.match(text).matched is False


def test_top_n_carries_limit(matcher):
    _, params, filters, _ = _plan(matcher, "top 5 findings")
    assert params == {"limit": 5}
    assert filters == []


def test_subholding_sorts_by_year(matcher):
    _, params, filters, sorts = _plan(matcher, "SH 2 findings")
    assert filters == [QueryFilter("subholding", "==", "SH2")]
    assert sorts[0] == QuerySort("year", "desc")


def test_status_synonym(matcher):
    _, _, filters, _ = _plan(matcher, "resolved findings")
    assert filters == [QueryFilter("status", "==", "Closed")]


def test_findings_only_excludes_blank_codes(matcher):
    _, _, filters, _ = _plan(matcher, "findings only for 2024")
    assert QueryFilter("code", "!=", "") in filters
    assert QueryFilter("year", "==", 2024) in filters


@pytest.mark.parametrize(
    "word, expected",
    [
        ("critical", [QueryFilter("risk_score", ">=", 15)]),
        ("high", [QueryFilter("risk_score", ">=", 10), QueryFilter("risk_score", "<", 15)]),
        ("minor", [QueryFilter("risk_score", "<", 5)]),
        ("unknown", []),
    ],
)
def test_severity_filters(word, expected):
    assert severity_filters(word) == expected


@pytest.mark.parametrize(
    "text",
    ["Show me Citra Garden project findings", "findings for project Citra Garden?"],
)
def test_project_name_is_captured_without_lookup_words(matcher, text):
    _, params, filters, _ = _plan(matcher, text)
    assert params == {"project_name": "Citra Garden"}
    assert filters == [QueryFilter("project_name", "==", "Citra Garden")]
