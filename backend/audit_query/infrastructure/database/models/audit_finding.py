"""SQLAlchemy ORM model for the AuditFinding entity."""

from sqlalchemy import Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from audit_query.infrastructure.database.base import Base


class AuditFindingModel(Base):
    """ORM model: maps to the 'audit_findings' table."""

    __tablename__ = "audit_findings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    department: Mapped[str] = mapped_column(String(255), nullable=False)
    risk_area: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    code: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    subholding: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    project_id: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    project_type: Mapped[str] = mapped_column(String(100), default="", nullable=False)
    weight: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    likelihood: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    risk_score: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="Open", nullable=False)

    __table_args__ = (
        Index("ix_audit_findings_year_risk", "year", "risk_score"),
        Index("ix_audit_findings_department", "department"),
        Index("ix_audit_findings_project_type", "project_type"),
    )

    def __repr__(self) -> str:
        return (
            f"<AuditFindingModel(id={self.id}, year={self.year}, "
            f"department='{self.department}', risk_score={self.risk_score})>"
        )
