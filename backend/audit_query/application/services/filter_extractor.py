"""Filter extractor: pulls structured filters out of free-text questions.

Extraction is independent of the query type: the same filters are used by
simple lookups and as the candidate query for AI analysis.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from audit_query.domain.entities import ExtractedFilters, FindingStatus, Severity
from audit_query.domain.vocabulary import (
    ANALYSIS_KEYWORDS,
    CANONICAL_DEPARTMENTS,
    DOMAIN_NOUNS,
    LOOKUP_VERBS,
    PROJECT_TYPE_ALIASES,
    SEVERITY_SYNONYMS,
    STATUS_SYNONYMS,
    STOP_WORDS,
    alternation,
    canonical_department,
    project_type_for,
    severity_for,
    status_for,
)

logger = logging.getLogger(__name__)

_MIN_YEAR = 2000
_MAX_YEAR = 2099
_MAX_KEYWORDS = 8
_MIN_KEYWORD_LENGTH = 3

_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_RELATIVE_YEAR_RE = re.compile(r"\b(this|last|next|previous|current)\s+year\b", re.IGNORECASE)
_RELATIVE_OFFSETS = {"this": 0, "current": 0, "last": -1, "previous": -1, "next": 1}

_SEVERITY_RE = re.compile(rf"\b({alternation(SEVERITY_SYNONYMS)})\b", re.IGNORECASE)
_STATUS_RE = re.compile(rf"\b({alternation(STATUS_SYNONYMS)})\b", re.IGNORECASE)
_PROJECT_TYPE_RE = re.compile(rf"\b({alternation(PROJECT_TYPE_ALIASES)})\b", re.IGNORECASE)

# Short upper-case codes (IT, HR, FAD…) only count when written in capitals,
# otherwise "it" in "why is it happening" would become a department.
_DEPT_CODES = [v for vs in CANONICAL_DEPARTMENTS.values() for v in vs if len(v) <= 3]
_DEPT_NAMES = [v for vs in CANONICAL_DEPARTMENTS.values() for v in vs if len(v) > 3]
_DEPT_CODE_RE = re.compile(rf"\b({alternation(_DEPT_CODES)})\b")
_DEPT_NAME_RE = re.compile(rf"\b({alternation(_DEPT_NAMES)})\b", re.IGNORECASE)
_EXPLICIT_DEPT_RE = re.compile(
    r"\b(?:in|for|from|of)\s+(?:the\s+)?([A-Za-z&]+(?:\s+[A-Za-z&]+){0,2}?)\s+(?:department|dept|departemen)\b",
    re.IGNORECASE,
)

_ANALYSIS_RE = re.compile(rf"\b({alternation(ANALYSIS_KEYWORDS)})\b", re.IGNORECASE)
_LOOKUP_RE = re.compile(rf"\b({alternation(LOOKUP_VERBS)})\b", re.IGNORECASE)
_QUOTED_RE = re.compile(r"[\"“]([^\"”]{2,80})[\"”]")
_WORD_RE = re.compile(r"[A-Za-z][A-Za-z0-9'\-]*")


@dataclass
class QuerySignals:
    """Everything the classifier needs, extracted in one pass."""

    filters: ExtractedFilters
    analysis_terms: list[str] = field(default_factory=list)
    analysis_strength: float = 0.0
    lookup_verbs: list[str] = field(default_factory=list)

    @property
    def has_lookup(self) -> bool:
        return bool(self.lookup_verbs)

    @property
    def has_analysis(self) -> bool:
        return bool(self.analysis_terms)


class FilterExtractor:
    """Extracts year, severity, status, project type, department and keywords.

    Args:
        clock: Returns "today"; used for relative years ("last year").
        max_keywords: Upper bound on collected free-text keywords.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], date] = date.today,
        max_keywords: int = _MAX_KEYWORDS,
    ):
        self._clock = clock
        self._max_keywords = max_keywords

    def extract(self, text: str) -> ExtractedFilters:
        return self.analyze(text).filters

    def analyze(self, text: str) -> QuerySignals:
        """Extract filters plus the intent signals in a single pass."""
        text = text or ""
        claimed: set[str] = set()

        year = self.extract_year(text, claimed)
        severity = self.extract_severity(text, claimed)
        status = self.extract_status(text, claimed)
        project_type = self.extract_project_type(text, claimed)
        department = self.extract_department(text, claimed)

        analysis_terms, analysis_strength = self.extract_analysis_terms(text, claimed)
        lookup_verbs = self._collect(_LOOKUP_RE, text, claimed)

        structured = ExtractedFilters(
            year=year,
            severity=severity,
            status=status,
            project_type=project_type,
            department=department,
        )
        has_signal = bool(
            structured.structured_count
            or analysis_terms
            or lookup_verbs
            or _QUOTED_RE.search(text)
            or any(w.lower() in DOMAIN_NOUNS for w in _WORD_RE.findall(text))
        )
        keywords = self.extract_keywords(text, claimed) if has_signal else ()

        filters = ExtractedFilters(
            year=year,
            severity=severity,
            status=status,
            project_type=project_type,
            department=department,
            keywords=keywords,
        )
        logger.debug(
            "Extracted filters=%s analysis=%s lookup=%s",
            filters.as_dict(), analysis_terms, lookup_verbs,
        )
        return QuerySignals(
            filters=filters,
            analysis_terms=analysis_terms,
            analysis_strength=analysis_strength,
            lookup_verbs=lookup_verbs,
        )

    # ── Individual fields ────────────────────────────────────────────

    def extract_year(self, text: str, claimed: set[str] | None = None) -> int | None:
        m = _YEAR_RE.search(text)
        if m:
            year = int(m.group(1))
            if _MIN_YEAR <= year <= _MAX_YEAR:
                _claim(claimed, m.group(0))
                return year

        m = _RELATIVE_YEAR_RE.search(text)
        if m:
            _claim(claimed, m.group(0))
            return self._clock().year + _RELATIVE_OFFSETS[m.group(1).lower()]
        return None

    def extract_severity(self, text: str, claimed: set[str] | None = None) -> tuple[Severity, ...]:
        found: set[Severity] = set()
        for m in _SEVERITY_RE.finditer(text):
            severity = severity_for(m.group(1))
            if severity is not None:
                found.add(severity)
                _claim(claimed, m.group(0))
        return tuple(sorted(found, key=lambda s: s.rank))

    def extract_status(self, text: str, claimed: set[str] | None = None) -> tuple[FindingStatus, ...]:
        found: list[FindingStatus] = []
        for m in _STATUS_RE.finditer(text):
            status = status_for(m.group(1))
            if status is not None and status not in found:
                found.append(status)
                _claim(claimed, m.group(0))
        return tuple(found)

    def extract_project_type(self, text: str, claimed: set[str] | None = None) -> str | None:
        m = _PROJECT_TYPE_RE.search(text)
        if not m:
            return None
        _claim(claimed, m.group(0))
        return project_type_for(m.group(1))

    def extract_department(self, text: str, claimed: set[str] | None = None) -> str | None:
        m = _EXPLICIT_DEPT_RE.search(text)
        if m:
            raw = " ".join(m.group(1).split())
            _claim(claimed, m.group(0))
            return canonical_department(raw) or raw.title()

        candidates = [m for m in (_DEPT_CODE_RE.search(text), _DEPT_NAME_RE.search(text)) if m]
        if not candidates:
            return None
        first = min(candidates, key=lambda m: m.start())
        _claim(claimed, first.group(0))
        return canonical_department(first.group(1))

    def extract_analysis_terms(
        self, text: str, claimed: set[str] | None = None
    ) -> tuple[list[str], float]:
        """Analytical terms in order of appearance and their summed weight (capped at 1)."""
        terms = self._collect(_ANALYSIS_RE, text, claimed)
        strength = sum(ANALYSIS_KEYWORDS[t] for t in terms)
        return terms, min(strength, 1.0)

    def extract_keywords(self, text: str, claimed: set[str]) -> tuple[str, ...]:
        """Quoted phrases first, then unclaimed content words."""
        keywords: list[str] = []
        seen: set[str] = set()

        def add(word: str) -> None:
            key = word.lower()
            if key not in seen and len(keywords) < self._max_keywords:
                seen.add(key)
                keywords.append(word)

        for m in _QUOTED_RE.finditer(text):
            add(m.group(1).strip())
        unquoted = _QUOTED_RE.sub(" ", text)

        for word in _WORD_RE.findall(unquoted):
            lower = word.lower()
            if (
                len(lower) < _MIN_KEYWORD_LENGTH
                or lower in STOP_WORDS
                or lower in claimed
            ):
                continue
            add(lower)
        return tuple(keywords)

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _collect(pattern: re.Pattern, text: str, claimed: set[str] | None) -> list[str]:
        found: list[str] = []
        for m in pattern.finditer(text):
            term = " ".join(m.group(1).lower().split())
            if term not in found:
                found.append(term)
            _claim(claimed, m.group(0))
        return found


def _claim(claimed: set[str] | None, matched: str) -> None:
    if claimed is not None:
        claimed.update(w.lower() for w in matched.split())
