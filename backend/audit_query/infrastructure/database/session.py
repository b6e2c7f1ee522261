"""Async engine and per-request session for the finding store."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from audit_query.config import get_settings

_ASYNC_DRIVERS = {
    "sqlite:///": "sqlite+aiosqlite:///",
    "postgresql://": "postgresql+asyncpg://",
}


def to_async_url(url: str) -> str:
    """Swap a plain SQLite/PostgreSQL URL onto its async driver; others pass through."""
    for prefix, async_prefix in _ASYNC_DRIVERS.items():
        if url.startswith(prefix):
            return async_prefix + url[len(prefix):]
    return url


settings = get_settings()

# SQL echo is controlled through log_level_sql, not the engine flag
engine = create_async_engine(
    to_async_url(settings.database_url),
    pool_pre_ping=settings.database_url.startswith("postgresql"),
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, committed on success.

    Audit entries use their own sessions (see ``audit_log_repository_scope``).
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
