"""Centralized logging configuration.

Applies per-category log levels from Settings so that noisy loggers
(SQLAlchemy statements, httpx/httpcore) can be silenced independently of
the router's own stage logging.

Usage:
    from audit_query.infrastructure.logging.log_config import setup_logging
    setup_logging()   # once, from the FastAPI lifespan
"""

import logging
import sys

from audit_query.config import get_settings

# Settings field → logger names it controls
_CATEGORY_MAP: dict[str, list[str]] = {
    "log_level_sql": [
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "aiosqlite",
    ],
    "log_level_http": [
        "httpx",
        "httpcore",
    ],
    "log_level_uvicorn": [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
    ],
    "log_level_router": [
        "QueryRouter",
        "audit_query.application.services",
    ],
    "log_level_openrouter": [
        "audit_query.infrastructure.openrouter",
    ],
}


def setup_logging() -> None:
    """Configure Python logging levels from application settings."""
    settings = get_settings()

    root = logging.getLogger()
    root.setLevel(_parse_level(settings.log_level))

    # uvicorn normally installs a handler; tests and scripts may not
    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)-8s %(name)s: %(message)s"))
        root.addHandler(handler)

    for settings_field, logger_names in _CATEGORY_MAP.items():
        level = _parse_level(getattr(settings, settings_field, "INFO"))
        for name in logger_names:
            logging.getLogger(name).setLevel(level)

    logging.getLogger(__name__).debug(
        "Logging configured: %s",
        {f: getattr(settings, f, None) for f in ("log_level", *_CATEGORY_MAP)},
    )


def _parse_level(raw: str) -> int:
    """Convert a level name string to a logging constant, defaulting to INFO."""
    numeric = getattr(logging, str(raw).upper(), None)
    if isinstance(numeric, int):
        return numeric
    return logging.INFO
