"""SQLAlchemy ORM model for departments."""

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from audit_query.infrastructure.database.base import Base


class DepartmentModel(Base):
    """ORM model: maps to the 'departments' table."""

    __tablename__ = "departments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(100), default="", nullable=False, index=True)
    original_names: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    keywords: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<DepartmentModel(id={self.id}, name='{self.name}', category='{self.category}')>"
