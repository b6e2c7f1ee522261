"""Default fast-path pattern table for audit-finding lookups.

Every pattern is anchored to the whole query (with an optional leading
lookup verb such as "show me all") so that longer analytical questions
fall through to the classifier instead of being answered by a bare
database lookup.

Priorities, highest first:
    30–35  composite finding-type (findings only / non-findings + year/department)
    20–25  composite severity + year, department + year, severity + department
    15     severity, top-N, named project
    10–12  department, project type, project suffix, year, subholding, status
    5      finding type alone
"""

import re
from typing import Any

from audit_query.domain.entities import ParameterExtractor, QueryFilter, QueryPattern, QuerySort
from audit_query.domain.vocabulary import (
    ANALYSIS_KEYWORDS,
    PROJECT_TYPE_ALIASES,
    SEVERITY_SYNONYMS,
    STATUS_SYNONYMS,
    alternation,
    canonical_department,
    department_terms,
    project_type_for,
    severity_for,
    status_for,
)

# ── Regex building blocks ────────────────────────────────────────────

_LEAD = (
    r"^\s*(?:(?:please\s+)?(?:show|list|get|find|display|give|fetch)\s+(?:me\s+)?)?"
    r"(?:all\s+)?(?:the\s+)?(?:of\s+the\s+)?"
)
_TAIL = r"\s*[?.!]*\s*$"
_FINDINGS = r"(?:audit\s+)?(?:findings?|audit\s+results?|results?|issues?)"
_YEAR = r"(20\d{2})"
_PREP = r"(?:from|in|for|during)"

_SEV = f"({alternation(SEVERITY_SYNONYMS)})"
_DEPT = f"({alternation(department_terms())})"
_PTYPE = f"({alternation(PROJECT_TYPE_ALIASES)})"
_STATUS = f"({alternation(STATUS_SYNONYMS)})"

# Project names are plain words; a word that opens an analytical phrase or a
# question ends the match so the question reaches the classifier.
_QUESTION_WORDS = ("what", "why", "how", "which", "when", "where", "who")
_NAME_WORD = (
    rf"(?!(?:{alternation(ANALYSIS_KEYWORDS)}|{alternation(_QUESTION_WORDS)})\b)"
    r"[\w&'/-]+"
)
_PROJECT_NAME = rf"({_NAME_WORD}(?:\s+{_NAME_WORD})*?)"


def _rx(body: str) -> re.Pattern:
    return re.compile(_LEAD + body + _TAIL, re.IGNORECASE)


# ── Builders (pure) ──────────────────────────────────────────────────

DEFAULT_SORTS = (QuerySort("risk_score", "desc"), QuerySort("year", "desc"))


def _default_sorts(params: dict[str, Any]) -> list[QuerySort]:
    return list(DEFAULT_SORTS)


def _by_year_sorts(params: dict[str, Any]) -> list[QuerySort]:
    return [QuerySort("year", "desc"), QuerySort("risk_score", "desc")]


def severity_filters(word: str) -> list[QueryFilter]:
    """Express a severity word as a risk-score band."""
    severity = severity_for(word)
    if severity is None:
        return []
    lower, upper = severity.score_range()
    filters = []
    if lower is not None:
        filters.append(QueryFilter("risk_score", ">=", lower))
    if upper is not None:
        filters.append(QueryFilter("risk_score", "<", upper))
    return filters


def _department_value(raw: str) -> str:
    return canonical_department(raw) or raw


def _year_filters(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("year", "==", params["year"])]


def _severity_only(params: dict[str, Any]) -> list[QueryFilter]:
    return severity_filters(params["severity"])


def _severity_year(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("year", "==", params["year"]), *severity_filters(params["severity"])]


def _department_only(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("department", "==", _department_value(params["department"]))]


def _department_year(params: dict[str, Any]) -> list[QueryFilter]:
    return [*_department_only(params), QueryFilter("year", "==", params["year"])]


def _severity_department(params: dict[str, Any]) -> list[QueryFilter]:
    return [*_department_only(params), *severity_filters(params["severity"])]


def _project_name(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("project_name", "==", params["project_name"])]


def _project_type(params: dict[str, Any]) -> list[QueryFilter]:
    value = project_type_for(params["project_type"]) or params["project_type"]
    return [QueryFilter("project_type", "==", value)]


def _subholding(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("subholding", "==", f"SH{params['subholding']}")]


def _status(params: dict[str, Any]) -> list[QueryFilter]:
    status = status_for(params["status"])
    value = status.value if status else params["status"]
    return [QueryFilter("status", "==", value)]


def _no_filters(params: dict[str, Any]) -> list[QueryFilter]:
    return []


def _findings_only(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("code", "!=", "")]


def _non_findings(params: dict[str, Any]) -> list[QueryFilter]:
    return [QueryFilter("code", "==", "")]


def _findings_only_year(params: dict[str, Any]) -> list[QueryFilter]:
    return [*_findings_only(params), *_year_filters(params)]


def _non_findings_year(params: dict[str, Any]) -> list[QueryFilter]:
    return [*_non_findings(params), *_year_filters(params)]


def _findings_only_department(params: dict[str, Any]) -> list[QueryFilter]:
    return [*_findings_only(params), *_department_only(params)]


# ── Pattern table ────────────────────────────────────────────────────

_YEAR_PARAM = ParameterExtractor("year", "number", 1)


def build_default_patterns() -> list[QueryPattern]:
    """Fresh list of the built-in patterns, in registration order."""
    return [
        # composite finding type
        QueryPattern(
            id="findings-only-department",
            name="Findings only for department",
            priority=35,
            regex=_rx(rf"(?:actual\s+)?findings?\s+only\s+{_PREP}\s+(?:the\s+)?{_DEPT}(?:\s+department)?"),
            parameter_extractors=(ParameterExtractor("department", "string", 1, "trim"),),
            filter_builder=_findings_only_department,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="findings-only-year",
            name="Findings only for year",
            priority=30,
            regex=_rx(rf"(?:actual\s+)?findings?\s+only\s+{_PREP}\s+{_YEAR}"),
            parameter_extractors=(_YEAR_PARAM,),
            filter_builder=_findings_only_year,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="non-findings-year",
            name="Non-findings for year",
            priority=30,
            regex=_rx(rf"non[-\s]?findings?\s+{_PREP}\s+{_YEAR}"),
            parameter_extractors=(_YEAR_PARAM,),
            filter_builder=_non_findings_year,
            sort_builder=_default_sorts,
        ),
        # composite
        QueryPattern(
            id="severity-year",
            name="Severity findings for year",
            priority=25,
            regex=_rx(rf"{_SEV}(?:\s+risk)?\s+{_FINDINGS}\s+{_PREP}\s+{_YEAR}"),
            parameter_extractors=(
                ParameterExtractor("severity", "string", 1, "lowercase"),
                ParameterExtractor("year", "number", 2),
            ),
            filter_builder=_severity_year,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="department-year",
            name="Department findings for year",
            priority=22,
            regex=_rx(rf"{_DEPT}(?:\s+department)?\s+{_FINDINGS}\s+{_PREP}\s+{_YEAR}"),
            parameter_extractors=(
                ParameterExtractor("department", "string", 1, "trim"),
                ParameterExtractor("year", "number", 2),
            ),
            filter_builder=_department_year,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="year-department",
            name="Year then department findings",
            priority=22,
            regex=_rx(rf"{_YEAR}\s+{_DEPT}(?:\s+department)?\s+{_FINDINGS}"),
            parameter_extractors=(
                ParameterExtractor("year", "number", 1),
                ParameterExtractor("department", "string", 2, "trim"),
            ),
            filter_builder=_department_year,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="severity-department",
            name="Severity findings for department",
            priority=20,
            regex=_rx(
                rf"{_SEV}(?:\s+risk)?\s+{_FINDINGS}\s+{_PREP}\s+(?:the\s+)?{_DEPT}(?:\s+department)?"
            ),
            parameter_extractors=(
                ParameterExtractor("severity", "string", 1, "lowercase"),
                ParameterExtractor("department", "string", 2, "trim"),
            ),
            filter_builder=_severity_department,
            sort_builder=_default_sorts,
        ),
        # severity / ranking
        QueryPattern(
            id="top-n",
            name="Top N highest-risk findings",
            priority=15,
            regex=_rx(rf"top\s+(\d{{1,3}})\s+(?:highest[-\s]risk\s+|riskiest\s+|risk\s+)?{_FINDINGS}"),
            parameter_extractors=(ParameterExtractor("limit", "number", 1),),
            filter_builder=_no_filters,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="severity",
            name="Findings by severity",
            priority=15,
            regex=_rx(rf"{_SEV}(?:\s+risk)?\s+{_FINDINGS}"),
            parameter_extractors=(ParameterExtractor("severity", "string", 1, "lowercase"),),
            filter_builder=_severity_only,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="project-named",
            name="Findings for named project",
            priority=15,
            regex=_rx(rf"{_FINDINGS}\s+{_PREP}\s+(?:the\s+)?project\s+{_PROJECT_NAME}"),
            parameter_extractors=(ParameterExtractor("project_name", "string", 1, "trim"),),
            filter_builder=_project_name,
            sort_builder=_default_sorts,
        ),
        # single field
        QueryPattern(
            id="department",
            name="Findings by department",
            priority=12,
            regex=_rx(rf"{_DEPT}(?:\s+department)?\s+{_FINDINGS}"),
            parameter_extractors=(ParameterExtractor("department", "string", 1, "trim"),),
            filter_builder=_department_only,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="department-suffix",
            name="Findings for department",
            priority=12,
            regex=_rx(rf"{_FINDINGS}\s+{_PREP}\s+(?:the\s+)?{_DEPT}(?:\s+department)?"),
            parameter_extractors=(ParameterExtractor("department", "string", 1, "trim"),),
            filter_builder=_department_only,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="project-type",
            name="Findings by project type",
            priority=11,
            regex=_rx(rf"{_PTYPE}\s+(?:project\s+)?{_FINDINGS}"),
            parameter_extractors=(ParameterExtractor("project_type", "string", 1, "lowercase"),),
            filter_builder=_project_type,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="project-suffix",
            name="Project findings",
            priority=10,
            regex=_rx(rf"{_PROJECT_NAME}\s+project\s+{_FINDINGS}"),
            parameter_extractors=(ParameterExtractor("project_name", "string", 1, "trim"),),
            filter_builder=_project_name,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="year",
            name="Findings for year",
            priority=10,
            regex=_rx(rf"{_FINDINGS}\s+{_PREP}\s+{_YEAR}"),
            parameter_extractors=(_YEAR_PARAM,),
            filter_builder=_year_filters,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="year-prefix",
            name="Year findings",
            priority=10,
            regex=_rx(rf"{_YEAR}\s+{_FINDINGS}"),
            parameter_extractors=(_YEAR_PARAM,),
            filter_builder=_year_filters,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="subholding",
            name="Findings for subholding",
            priority=10,
            regex=_rx(rf"(?:{_FINDINGS}\s+{_PREP}\s+)?SH\s*(\d{{1,2}})(?:\s+{_FINDINGS})?"),
            parameter_extractors=(ParameterExtractor("subholding", "string", 1, "trim"),),
            filter_builder=_subholding,
            sort_builder=_by_year_sorts,
        ),
        QueryPattern(
            id="status",
            name="Findings by status",
            priority=10,
            regex=_rx(rf"{_STATUS}\s+{_FINDINGS}"),
            parameter_extractors=(ParameterExtractor("status", "string", 1, "lowercase"),),
            filter_builder=_status,
            sort_builder=_default_sorts,
        ),
        # finding type
        QueryPattern(
            id="findings-only",
            name="Findings only",
            priority=5,
            regex=_rx(r"(?:actual\s+)?findings?\s+only"),
            parameter_extractors=(),
            filter_builder=_findings_only,
            sort_builder=_default_sorts,
        ),
        QueryPattern(
            id="non-findings",
            name="Non-findings",
            priority=5,
            regex=_rx(r"non[-\s]?findings?"),
            parameter_extractors=(),
            filter_builder=_non_findings,
            sort_builder=_default_sorts,
        ),
    ]
