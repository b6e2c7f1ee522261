"""Unit tests for application settings configuration."""

from pathlib import Path

from audit_query.config import Settings


def test_settings_uses_backend_env_file_independent_of_cwd():
    """Settings should always include backend/.env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_backend_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_backend_env in normalized
    assert str(Path(".env")) in normalized


def test_router_defaults():
    settings = Settings(_env_file=None)
    assert settings.fast_path_budget_ms == 500
    assert settings.default_max_results == 50
    assert settings.context_max_results == 20
    assert settings.context_max_tokens == 10_000
    assert settings.hybrid_keyword_weight + settings.hybrid_semantic_weight == 1.0


def test_router_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("QUERY_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("ANALYSIS_MODEL_HIGH", "test/high")
    settings = Settings(_env_file=None)
    assert settings.query_timeout_seconds == 5.0
    assert settings.analysis_model_high == "test/high"
