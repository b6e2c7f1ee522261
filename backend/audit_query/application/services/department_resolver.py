"""Department resolver: maps a user-supplied department to every stored spelling.

Historical imports spelled departments inconsistently ("Finance",
"Keuangan", "FAD"…). Lookup order:
  1. the static canonical table in ``domain.vocabulary``
  2. the department repository: by category, then by name search
  3. the raw value itself
Results are cached per normalized name on the resolver instance.
"""

import logging
import re

from audit_query.application.interfaces import DepartmentRepository
from audit_query.domain.vocabulary import canonical_department, department_variants

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^\s*(?:departemen|department|dept\.?)\s+", re.IGNORECASE)
_SPECIAL_RE = re.compile(r"[^\w\s&-]")

# Category hints used when the name is not in the static table
_CATEGORY_HINTS: dict[str, tuple[str, ...]] = {
    "Finance": ("keuangan", "fad", "finance", "accounting", "akuntansi"),
    "IT": ("teknologi", "ict", "information", "it"),
    "HR": ("sdm", "human", "hr"),
}


def normalize_name(name: str) -> str:
    """Strip a 'Department'/'Departemen' prefix, punctuation and extra spaces."""
    cleaned = _PREFIX_RE.sub("", name or "")
    cleaned = _SPECIAL_RE.sub(" ", cleaned)
    return " ".join(cleaned.split())


def categorize_department(name: str) -> str | None:
    words = set(normalize_name(name).lower().split())
    for category, hints in _CATEGORY_HINTS.items():
        if words & set(hints):
            return category
    return None


def name_similarity(a: str, b: str) -> float:
    """Jaccard similarity over lower-cased words."""
    wa = set(normalize_name(a).lower().split())
    wb = set(normalize_name(b).lower().split())
    if not wa or not wb:
        return 0.0
    return len(wa & wb) / len(wa | wb)


class DepartmentResolver:
    """Resolves department names to their list of stored variants."""

    def __init__(self, repository: DepartmentRepository | None = None):
        self._repository = repository
        self._cache: dict[str, list[str]] = {}

    async def resolve(self, department: str) -> list[str]:
        """All known spellings for ``department``, canonical name first."""
        key = normalize_name(department).lower()
        if not key:
            return []
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        variants = await self._lookup(normalize_name(department))
        self._cache[key] = variants
        logger.debug("Resolved department '%s' → %s", department, variants)
        return variants

    def clear(self) -> None:
        self._cache = {}

    async def _lookup(self, name: str) -> list[str]:
        canonical = canonical_department(name)
        variants: list[str] = list(department_variants(canonical)) if canonical else []

        if self._repository is not None:
            departments = []
            category = canonical or categorize_department(name)
            if category:
                departments = await self._repository.get_by_category(category)
            if not departments:
                departments = await self._repository.search_by_name(name)
                departments = [
                    d for d in departments
                    if name.lower() in (v.lower() for v in d.variants())
                    or name_similarity(d.name, name) > 0.5
                ]
            for dept in departments:
                variants.extend(dept.variants())

        if not variants:
            variants = [name]
        return _dedupe(variants)


def _dedupe(values: list[str]) -> list[str]:
    seen: set[str] = set()
    out = []
    for value in values:
        if value.lower() not in seen:
            seen.add(value.lower())
            out.append(value)
    return out
