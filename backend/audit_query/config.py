from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Audit Query Router API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    database_url: str = "sqlite:///./audit_findings.db"
    cors_origins: list[str] = ["http://localhost:3000"]

    # OpenRouter configuration
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_app_name: str = "Audit Query Router"

    # AI analysis via OpenRouter
    analysis_model: str = "google/gemini-2.5-flash"
    analysis_model_high: str = "anthropic/claude-sonnet-4.5"  # thinking_mode="high"
    analysis_temperature: float = 0.2
    analysis_max_tokens: int = 2048

    # Embeddings
    embedding_model: str = "google/gemini-embedding-001"
    embedding_dimensions: int = 768
    embedding_concurrency: int = 4
    embedding_batch_size: int = 16

    # Query routing
    default_max_results: int = 50
    candidate_pool_size: int = 200        # records fetched as AI candidates
    fast_path_budget_ms: int = 500        # SLO only; logged, never aborts
    query_timeout_seconds: float = 30.0
    audit_timeout_seconds: float = 2.0
    mask_sensitive_data: bool = True      # mask PII before classification and AI

    # Context selection
    context_max_results: int = 20
    context_max_tokens: int = 10_000
    min_semantic_similarity: float = 0.3
    hybrid_keyword_weight: float = 0.5
    hybrid_semantic_weight: float = 0.5

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_sql: str = "WARNING"           # sqlalchemy.engine: SQL queries
    log_level_http: str = "WARNING"          # httpx / httpcore: outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_router: str = "INFO"           # query router stages
    log_level_openrouter: str = "INFO"       # OpenRouter LLM client

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance: reads .env once."""
    return Settings()
