"""Unit tests for the fast-path PatternMatcher."""

import re

import pytest

from audit_query.application.services.pattern_matcher import PatternMatcher
from audit_query.application.services.query_patterns import build_default_patterns
from audit_query.domain.entities import ParameterExtractor, QueryFilter, QueryPattern, QuerySort
from audit_query.domain.exceptions import PatternValidationError


# ── Helpers ──


def _no_filters(params):
    return []


def _no_sorts(params):
    return []


def _pattern(
    pattern_id: str,
    regex: str,
    *,
    priority: int = 10,
    extractors: tuple[ParameterExtractor, ...] = (),
    flags: int = re.IGNORECASE,
) -> QueryPattern:
    return QueryPattern(
        id=pattern_id,
        name=pattern_id.replace("-", " ").title(),
        priority=priority,
        regex=re.compile(regex, flags),
        parameter_extractors=extractors,
        filter_builder=_no_filters,
        sort_builder=_no_sorts,
    )


# ── Registration ──


def test_default_patterns_register_without_conflicts():
    matcher = PatternMatcher(build_default_patterns())
    priorities = [p.priority for p in matcher.patterns]
    assert priorities == sorted(priorities, reverse=True)
    assert matcher.get("severity-year") is not None


def test_register_rejects_duplicate_id():
    matcher = PatternMatcher([_pattern("dup", r"^a$")])
    with pytest.raises(PatternValidationError) as exc_info:
        matcher.register(_pattern("dup", r"^b$"))
    assert exc_info.value.conflicts == ["dup"]


def test_register_rejects_identical_regex():
    matcher = PatternMatcher([_pattern("first", r"^findings$")])
    with pytest.raises(PatternValidationError) as exc_info:
        matcher.register(_pattern("second", r"^findings$"))
    assert exc_info.value.pattern_id == "second"
    assert "first" in exc_info.value.conflicts
    assert len(matcher.patterns) == 1


def test_validate_pattern_reports_structural_errors():
    bad = QueryPattern(
        id="",
        name="Broken",
        priority=10,
        regex=re.compile(r"(\d+)"),
        parameter_extractors=(
            ParameterExtractor("n", "number", 2),
            ParameterExtractor("m", "decimal", 1, "shout"),
        ),
        filter_builder=None,  # type: ignore[arg-type]
        sort_builder=_no_sorts,
    )
    validation = PatternMatcher.validate_pattern(bad)

    assert validation.valid is False
    assert "id is required" in validation.errors
    assert "filter_builder must be callable" in validation.errors
    assert any("capture group 2" in e for e in validation.errors)
    assert any("unknown type 'decimal'" in e for e in validation.errors)
    assert any("unknown normalizer 'shout'" in e for e in validation.errors)


def test_validate_pattern_does_not_call_builders():
    calls = []

    def spy(params):
        calls.append(params)
        return []

    pattern = QueryPattern(
        id="spy",
        name="Spy",
        priority=1,
        regex=re.compile("x"),
        parameter_extractors=(),
        filter_builder=spy,
        sort_builder=spy,
    )
    PatternMatcher().register(pattern)
    assert calls == []


def test_register_raises_for_invalid_pattern():
    matcher = PatternMatcher()
    with pytest.raises(PatternValidationError):
        matcher.register(_pattern("bad-group", r"^x$", extractors=(ParameterExtractor("x", "string", 1),)))
    assert matcher.patterns == ()


# ── Matching ──


def test_higher_priority_wins_regardless_of_registration_order():
    low = _pattern("low", r"findings", priority=10)
    high = _pattern("high", r"findings\s+2024", priority=20)
    matcher = PatternMatcher([low, high])

    result = matcher.match("findings 2024")

    assert result.matched
    assert result.pattern.id == "high"


def test_equal_priority_keeps_registration_order():
    matcher = PatternMatcher([
        _pattern("first", r"findings", priority=10),
        _pattern("second", r"find", priority=10),
    ])
    assert matcher.match("findings").pattern.id == "first"


def test_no_match_returns_zero_confidence():
    matcher = PatternMatcher([_pattern("year", r"^findings (20\d{2})$")])
    result = matcher.match("why are findings increasing?")
    assert result.matched is False
    assert result.confidence == 0.0
    assert result.pattern is None


def test_empty_query_never_matches():
    matcher = PatternMatcher(build_default_patterns())
    assert matcher.match("   ").matched is False


def test_confidence_grows_with_priority_and_coverage():
    matcher = PatternMatcher([
        _pattern("wide", r"^top findings$", priority=40),
        _pattern("narrow", r"risk", priority=0),
    ])
    full = matcher.match("top findings")
    partial = matcher.match("some risk words here")

    assert full.confidence == pytest.approx(1.0)
    assert 0.6 <= partial.confidence < full.confidence


def test_parameter_extraction_is_deterministic_and_normalized():
    pattern = _pattern(
        "dept-year",
        r"^(\w+(?:\s+\w+)?) findings (20\d{2})$",
        extractors=(
            ParameterExtractor("department", "string", 1, "title"),
            ParameterExtractor("year", "number", 2),
        ),
    )
    matcher = PatternMatcher([pattern])

    first = matcher.match("general affairs findings 2023")
    second = matcher.match("general affairs findings 2023")

    assert first.params == {"department": "General Affairs", "year": 2023}
    assert first.params == second.params


def test_optional_group_that_did_not_match_is_skipped():
    m = re.match(r"findings(?: in (\w+))?", "findings")
    params = PatternMatcher.extract_parameters(m, (ParameterExtractor("where", "string", 1),))
    assert params == {}


@pytest.mark.parametrize(
    "normalizer, raw, expected",
    [
        ("trim", "  Hotel  ", "Hotel"),
        ("uppercase", "fad", "FAD"),
        ("lowercase", "CRITICAL", "critical"),
        ("capitalize", "fINANCE", "Finance"),
        ("title", "human  capital", "Human Capital"),
    ],
)
def test_normalizers(normalizer, raw, expected):
    m = re.match(r"(.*)", raw)
    params = PatternMatcher.extract_parameters(m, (ParameterExtractor("v", "string", 1, normalizer),))
    assert params["v"] == expected


def test_boolean_and_bad_number_coercion():
    m = re.match(r"(\w+) (\w+)", "yes abc")
    params = PatternMatcher.extract_parameters(
        m,
        (ParameterExtractor("flag", "boolean", 1), ParameterExtractor("n", "number", 2)),
    )
    assert params == {"flag": True}


def test_builders_receive_extracted_params():
    pattern = QueryPattern(
        id="year",
        name="Year",
        priority=10,
        regex=re.compile(r"^(20\d{2})$"),
        parameter_extractors=(ParameterExtractor("year", "number", 1),),
        filter_builder=lambda p: [QueryFilter("year", "==", p["year"])],
        sort_builder=lambda p: [QuerySort("risk_score")],
    )
    result = PatternMatcher([pattern]).match("2022")
    assert result.pattern.filter_builder(result.params) == [QueryFilter("year", "==", 2022)]
