"""SQLAlchemy declarative base shared by every ORM model."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for the finding, department and query-log models."""

    pass
