"""SQLAlchemy ORM model for query audit logs."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from audit_query.infrastructure.database.base import Base


class QueryAuditLogModel(Base):
    """ORM model: maps to the 'query_audit_logs' table."""

    __tablename__ = "query_audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    query_text: Mapped[str] = mapped_column(Text, nullable=False)
    query_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    execution_time_ms: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    results_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    confidence: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    pattern_matched: Mapped[str | None] = mapped_column(String(100), nullable=True)
    success: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    error_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<QueryAuditLogModel(id={self.id}, type='{self.query_type}', "
            f"success={self.success}, ms={self.execution_time_ms})>"
        )
