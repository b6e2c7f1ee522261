"""Domain entities for audit findings: the records the query router searches."""

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    """Severity bands derived from a finding's risk score."""

    CRITICAL = "Critical"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def from_risk_score(cls, risk_score: float) -> "Severity":
        if risk_score >= 15:
            return cls.CRITICAL
        if risk_score >= 10:
            return cls.HIGH
        if risk_score >= 5:
            return cls.MEDIUM
        return cls.LOW

    def score_range(self) -> tuple[float | None, float | None]:
        """Return the ``[lower, upper)`` risk-score band; ``None`` means unbounded."""
        return _SEVERITY_BANDS[self]

    @property
    def rank(self) -> int:
        """Ordering key, Critical first."""
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER = (Severity.CRITICAL, Severity.HIGH, Severity.MEDIUM, Severity.LOW)

_SEVERITY_BANDS: dict[Severity, tuple[float | None, float | None]] = {
    Severity.CRITICAL: (15, None),
    Severity.HIGH: (10, 15),
    Severity.MEDIUM: (5, 10),
    Severity.LOW: (None, 5),
}


class FindingStatus(str, Enum):
    """Remediation state of a finding."""

    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"
    DEFERRED = "Deferred"


@dataclass
class AuditFinding:
    """A single audit result row.

    ``risk_score`` is weight × likelihood as recorded by the auditor; it is
    stored rather than recomputed so imported historical data keeps its
    original score.
    """

    id: str
    year: int
    project_name: str
    department: str
    risk_area: str = ""
    description: str = ""
    code: str = ""
    subholding: str = ""
    project_id: str = ""
    project_type: str = ""
    weight: float = 0
    likelihood: float = 0
    risk_score: float = 0
    status: str = FindingStatus.OPEN.value

    @property
    def severity(self) -> Severity:
        return Severity.from_risk_score(self.risk_score)

    @property
    def is_finding(self) -> bool:
        """Rows without a finding code are observations, not findings."""
        return bool(self.code.strip())

    def searchable_text(self) -> str:
        """Concatenated free-text fields used for keyword and embedding matching."""
        parts = (
            self.project_name,
            self.project_type,
            self.department,
            self.risk_area,
            self.description,
            self.code,
            self.subholding,
        )
        return " ".join(p for p in parts if p)

    def field_value(self, name: str):
        """Read a filterable field by name, including the derived ``severity``."""
        if name == "severity":
            return self.severity.value
        return getattr(self, name)
