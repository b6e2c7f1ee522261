"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import func, select

from audit_query.config import get_settings
from audit_query.domain.entities import Department
from audit_query.domain.vocabulary import CANONICAL_DEPARTMENTS
from audit_query.infrastructure.database import Base, DepartmentModel, engine
from audit_query.infrastructure.database.repositories import SQLAlchemyDepartmentRepository
from audit_query.infrastructure.database.session import async_session_factory
from audit_query.infrastructure.dependencies import get_embedding_cache, get_pattern_matcher
from audit_query.infrastructure.logging.log_config import setup_logging
from audit_query.presentation.api.router import router as api_router

logger = logging.getLogger(__name__)


async def _seed_departments() -> None:
    """Load the canonical department table into an empty ``departments`` table.

    Idempotent: does nothing once any department row exists, so spellings
    curated in the database are never overwritten.
    """
    try:
        async with async_session_factory() as session:
            count = await session.scalar(select(func.count()).select_from(DepartmentModel))
            if count:
                logger.debug("Departments already seeded (%d rows)", count)
                return
            repo = SQLAlchemyDepartmentRepository(session)
            for canonical, spellings in CANONICAL_DEPARTMENTS.items():
                await repo.create(
                    Department(
                        name=canonical,
                        category=canonical,
                        original_names=[s for s in spellings if s != canonical],
                    )
                )
            await session.commit()
            logger.info("Seeded %d canonical departments", len(CANONICAL_DEPARTMENTS))
    except Exception as exc:
        logger.warning("Could not seed departments: %s", exc)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create tables, seed departments and compile the pattern registry."""
    setup_logging()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    await _seed_departments()

    # Compile patterns up front so a bad registry fails at startup
    matcher = get_pattern_matcher()
    logger.info("Query router ready: %d patterns registered", len(matcher.patterns))

    yield

    logger.info("Shutting down; embedding cache stats: %s", get_embedding_cache().stats())
    await engine.dispose()


def create_app() -> FastAPI:
    """Factory function that builds and configures the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(api_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "audit_query.main:app",
        host="0.0.0.0",
        port=8020,
        reload=True,
    )
