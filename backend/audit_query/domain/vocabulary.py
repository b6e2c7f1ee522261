"""Controlled vocabulary for audit-finding queries.

Shared by the fast-path pattern table and the filter extractor so both
recognise the same severity, status, project-type and department words.
"""

import re

from audit_query.domain.entities.finding import FindingStatus, Severity

# ── Severity / status synonyms ───────────────────────────────────────

SEVERITY_SYNONYMS: dict[str, Severity] = {
    "critical": Severity.CRITICAL,
    "urgent": Severity.CRITICAL,
    "severe": Severity.CRITICAL,
    "high risk": Severity.HIGH,
    "high": Severity.HIGH,
    "important": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "low": Severity.LOW,
    "minor": Severity.LOW,
}

STATUS_SYNONYMS: dict[str, FindingStatus] = {
    "in progress": FindingStatus.IN_PROGRESS,
    "ongoing": FindingStatus.IN_PROGRESS,
    "working": FindingStatus.IN_PROGRESS,
    "open": FindingStatus.OPEN,
    "pending": FindingStatus.OPEN,
    "new": FindingStatus.OPEN,
    "closed": FindingStatus.CLOSED,
    "resolved": FindingStatus.CLOSED,
    "done": FindingStatus.CLOSED,
    "completed": FindingStatus.CLOSED,
    "deferred": FindingStatus.DEFERRED,
    "postponed": FindingStatus.DEFERRED,
    "delayed": FindingStatus.DEFERRED,
}

# ── Project types ────────────────────────────────────────────────────

PROJECT_TYPE_ALIASES: dict[str, str] = {
    "hotels": "Hotel",
    "hotel": "Hotel",
    "hospitals": "Hospital",
    "hospital": "Hospital",
    "apartments": "Apartment",
    "apartment": "Apartment",
    "flats": "Apartment",
    "flat": "Apartment",
    "clinics": "Clinic",
    "clinic": "Clinic",
    "schools": "School",
    "school": "School",
    "universities": "University",
    "university": "University",
    "college": "University",
    "shopping center": "Mall",
    "malls": "Mall",
    "mall": "Mall",
    "office building": "Office Building",
    "offices": "Office Building",
    "office": "Office Building",
    "landed houses": "Landed House",
    "landed house": "Landed House",
    "houses": "Landed House",
    "insurance": "Insurance",
    "mixed use": "Mixed-Use Development",
    "mixed-use": "Mixed-Use Development",
}

# ── Departments ──────────────────────────────────────────────────────
#
# Canonical name → historical spellings found in imported data. The
# canonical name is always its own first variant.

CANONICAL_DEPARTMENTS: dict[str, tuple[str, ...]] = {
    "Finance": ("Finance", "Keuangan", "FAD", "Accounting", "Akuntansi"),
    "IT": ("IT", "ICT", "Teknologi Informasi", "Information Technology"),
    "HR": ("HR", "SDM", "Human Resources", "Human Capital"),
    "Sales": ("Sales", "Penjualan"),
    "Marketing": ("Marketing", "Pemasaran"),
    "Procurement": ("Procurement", "Pengadaan", "Purchasing"),
    "Legal": ("Legal", "Hukum"),
    "Operations": ("Operations", "Operasional"),
    "Compliance": ("Compliance", "Kepatuhan"),
    "Internal Audit": ("Internal Audit", "SPI"),
    "General Affairs": ("General Affairs", "GA", "Admin"),
    "Engineering": ("Engineering", "Teknik"),
}

_DEPARTMENT_LOOKUP: dict[str, str] = {
    variant.lower(): canonical
    for canonical, variants in CANONICAL_DEPARTMENTS.items()
    for variant in variants
}

# ── Intent signals ───────────────────────────────────────────────────

ANALYSIS_KEYWORDS: dict[str, float] = {
    "root cause": 0.6,
    "what should": 0.5,
    "why": 0.6,
    "analyze": 0.6,
    "analyse": 0.6,
    "analysis": 0.5,
    "explain": 0.6,
    "patterns": 0.6,
    "pattern": 0.6,
    "trends": 0.6,
    "trend": 0.6,
    "prioritize": 0.6,
    "prioritise": 0.6,
    "recommend": 0.6,
    "recommendations": 0.6,
    "suggest": 0.5,
    "compare": 0.5,
    "insights": 0.5,
    "insight": 0.5,
    "correlation": 0.5,
    "relationship": 0.4,
    "impact": 0.4,
    "cause": 0.4,
    "summarize": 0.4,
    "summary": 0.4,
    "improve": 0.4,
    "understand": 0.3,
}

LOOKUP_VERBS: tuple[str, ...] = (
    "how many",
    "show",
    "list",
    "find",
    "get",
    "display",
    "give",
    "fetch",
    "search",
    "count",
)

DOMAIN_NOUNS: frozenset[str] = frozenset({
    "finding", "findings", "audit", "audits", "result", "results",
    "issue", "issues", "risk", "risks", "observation", "observations",
})

STOP_WORDS: frozenset[str] = frozenset({
    "show", "list", "find", "get", "display", "give", "fetch", "search", "count",
    "findings", "finding", "audit", "audits", "results", "result",
    "the", "and", "for", "with", "from", "that", "this", "these", "those",
    "what", "which", "where", "when", "who", "how", "are", "was", "were", "is",
    "all", "any", "our", "your", "their", "you", "see", "can", "could",
    "would", "should", "about", "into", "have", "has", "had", "there",
    "main", "many", "much", "some", "more", "most", "please", "year", "years",
    "department", "departemen", "project", "projects", "last", "next", "than",
})


def alternation(terms) -> str:
    """Regex alternation over ``terms``, longest first, whitespace-tolerant."""
    ordered = sorted(set(terms), key=len, reverse=True)
    return "|".join(r"\s+".join(re.escape(w) for w in t.split()) for t in ordered)


def canonical_department(token: str) -> str | None:
    """Map a department spelling to its canonical name, case-insensitively."""
    return _DEPARTMENT_LOOKUP.get(" ".join(token.lower().split()))


def department_variants(canonical: str) -> tuple[str, ...]:
    return CANONICAL_DEPARTMENTS.get(canonical, ())


def department_terms() -> list[str]:
    """Every known department spelling, for building match expressions."""
    return [v for variants in CANONICAL_DEPARTMENTS.values() for v in variants]


def severity_for(word: str) -> Severity | None:
    return SEVERITY_SYNONYMS.get(" ".join(word.lower().split()))


def status_for(word: str) -> FindingStatus | None:
    return STATUS_SYNONYMS.get(" ".join(word.lower().split()))


def project_type_for(word: str) -> str | None:
    return PROJECT_TYPE_ALIASES.get(" ".join(word.lower().split()))
