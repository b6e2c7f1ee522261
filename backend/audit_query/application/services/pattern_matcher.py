"""Fast-path pattern matcher: answers common phrasings without any AI call.

Patterns are kept in a priority-sorted tuple. Registration validates the
pattern, checks it against the registered set and then swaps in a new
tuple, so a concurrent ``match()`` sees either the old registry or the
new one.
"""

import logging
import re
from typing import Any, Iterable

from audit_query.domain.entities import (
    MatchResult,
    ParameterExtractor,
    PatternValidation,
    QueryPattern,
)
from audit_query.domain.exceptions import PatternValidationError

logger = logging.getLogger(__name__)

_PARAMETER_TYPES = frozenset({"string", "number", "boolean"})
_NORMALIZERS = {
    "trim": lambda v: v.strip(),
    "uppercase": lambda v: v.strip().upper(),
    "lowercase": lambda v: v.strip().lower(),
    "capitalize": lambda v: v.strip()[:1].upper() + v.strip()[1:].lower(),
    "title": lambda v: " ".join(w[:1].upper() + w[1:].lower() for w in v.split()),
}
_TRUE_WORDS = frozenset({"true", "yes", "y", "1"})

# Confidence = base + priority share + coverage share
_BASE_CONFIDENCE = 0.6
_PRIORITY_CEILING = 40


class PatternMatcher:
    """Registry of fast-path query patterns.

    Usage:
        matcher = PatternMatcher(build_default_patterns())
        result = matcher.match("Show me critical findings from 2024")
        if result.matched:
            plan = executor.plan_from_pattern(result.pattern, result.params)
    """

    def __init__(self, patterns: Iterable[QueryPattern] = ()):
        self._patterns: tuple[QueryPattern, ...] = ()
        for pattern in patterns:
            self.register(pattern)

    @property
    def patterns(self) -> tuple[QueryPattern, ...]:
        """Registered patterns in evaluation order."""
        return self._patterns

    def get(self, pattern_id: str) -> QueryPattern | None:
        return next((p for p in self._patterns if p.id == pattern_id), None)

    # ── Registration ─────────────────────────────────────────────────

    def register(self, pattern: QueryPattern) -> None:
        """Validate and add a pattern.

        Raises:
            PatternValidationError: structural problems or a collision with
                an already registered pattern.
        """
        validation = self.validate_pattern(pattern)
        if validation.valid:
            validation.conflicts = self.find_conflicts(pattern)
        if validation.errors or validation.conflicts:
            logger.error(
                "Rejected pattern '%s': errors=%s conflicts=%s",
                getattr(pattern, "id", "?"),
                validation.errors,
                validation.conflicts,
            )
            raise PatternValidationError(
                getattr(pattern, "id", "") or "<unnamed>",
                validation.errors,
                validation.conflicts,
            )

        # sorted() is stable, so equal priorities keep registration order
        self._patterns = tuple(
            sorted((*self._patterns, pattern), key=lambda p: -p.priority)
        )
        logger.debug("Registered pattern '%s' (priority=%d)", pattern.id, pattern.priority)

    @staticmethod
    def validate_pattern(pattern: QueryPattern) -> PatternValidation:
        """Structural validation only: builders are never executed here."""
        errors: list[str] = []

        if not getattr(pattern, "id", None):
            errors.append("id is required")
        if not getattr(pattern, "name", None):
            errors.append("name is required")
        if not isinstance(getattr(pattern, "priority", None), int):
            errors.append("priority must be an integer")
        if not isinstance(getattr(pattern, "regex", None), re.Pattern):
            errors.append("regex must be a compiled pattern")
        if not callable(getattr(pattern, "filter_builder", None)):
            errors.append("filter_builder must be callable")
        if not callable(getattr(pattern, "sort_builder", None)):
            errors.append("sort_builder must be callable")

        extractors = getattr(pattern, "parameter_extractors", None) or ()
        regex = getattr(pattern, "regex", None)
        group_count = regex.groups if isinstance(regex, re.Pattern) else 0
        names: set[str] = set()
        for extractor in extractors:
            if not extractor.name:
                errors.append("parameter extractor name is required")
            elif extractor.name in names:
                errors.append(f"duplicate parameter '{extractor.name}'")
            names.add(extractor.name)
            if extractor.type not in _PARAMETER_TYPES:
                errors.append(f"parameter '{extractor.name}' has unknown type '{extractor.type}'")
            if extractor.normalizer and extractor.normalizer not in _NORMALIZERS:
                errors.append(
                    f"parameter '{extractor.name}' has unknown normalizer '{extractor.normalizer}'"
                )
            if not 1 <= extractor.capture_group <= group_count:
                errors.append(
                    f"parameter '{extractor.name}' references capture group "
                    f"{extractor.capture_group} but regex has {group_count}"
                )

        return PatternValidation(valid=not errors, errors=errors)

    def find_conflicts(self, pattern: QueryPattern) -> list[str]:
        """Ids of registered patterns that collide with ``pattern``."""
        conflicts = []
        for existing in self._patterns:
            if existing.id == pattern.id:
                conflicts.append(existing.id)
            elif (
                existing.regex.pattern == pattern.regex.pattern
                and existing.regex.flags == pattern.regex.flags
            ):
                conflicts.append(existing.id)
        return conflicts

    # ── Matching ─────────────────────────────────────────────────────

    def match(self, query_text: str) -> MatchResult:
        """Return the highest-priority pattern matching ``query_text``."""
        text = (query_text or "").strip()
        if not text:
            return MatchResult(matched=False)

        for pattern in self._patterns:
            m = pattern.regex.search(text)
            if m is None:
                continue
            params = self.extract_parameters(m, pattern.parameter_extractors)
            confidence = self._confidence(pattern, m, len(text))
            logger.debug(
                "Pattern '%s' matched (confidence=%.2f) params=%s",
                pattern.id, confidence, params,
            )
            return MatchResult(
                matched=True, pattern=pattern, params=params, confidence=confidence
            )

        return MatchResult(matched=False)

    @staticmethod
    def extract_parameters(
        match: re.Match, extractors: Iterable[ParameterExtractor]
    ) -> dict[str, Any]:
        """Turn regex captures into typed, normalized parameters.

        Optional groups that did not participate in the match are skipped.
        """
        params: dict[str, Any] = {}
        for extractor in extractors:
            raw = match.group(extractor.capture_group)
            if raw is None:
                continue
            if extractor.normalizer:
                raw = _NORMALIZERS[extractor.normalizer](raw)
            value = _coerce(raw, extractor.type)
            if value is not None:
                params[extractor.name] = value
        return params

    @staticmethod
    def _confidence(pattern: QueryPattern, m: re.Match, text_length: int) -> float:
        coverage = (m.end() - m.start()) / text_length if text_length else 0.0
        priority_share = max(0, min(pattern.priority, _PRIORITY_CEILING)) / _PRIORITY_CEILING
        score = _BASE_CONFIDENCE + 0.2 * priority_share + 0.2 * coverage
        return round(min(max(score, 0.0), 1.0), 3)


def _coerce(raw: str, type_: str) -> Any:
    if type_ == "number":
        cleaned = raw.strip()
        try:
            return int(cleaned)
        except ValueError:
            pass
        try:
            return float(cleaned)
        except ValueError:
            logger.debug("Dropping non-numeric capture %r", raw)
            return None
    if type_ == "boolean":
        return raw.strip().lower() in _TRUE_WORDS
    return raw
