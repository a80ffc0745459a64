from config.database import DatabaseConfig, DatabaseType
from config.settings import AppSettings, DEFAULT_ORIGINS, LLMConfig


def test_defaults(monkeypatch):
    for name in ("ANTHROPIC_API_KEY", "RCA_DB_TYPE", "ALLOWED_ORIGINS", "PORT", "RATE_LIMIT_ENABLED",
                 "RATE_LIMIT_STORAGE"):
        monkeypatch.delenv(name, raising=False)

    settings = AppSettings.from_env()
    assert settings.port == 5000
    assert settings.llm.api_key is None
    assert settings.llm.max_tokens == 1024
    assert settings.llm.solver_max_tokens == 2048
    assert settings.database.type == DatabaseType.SQLITE
    assert settings.allowed_origins == DEFAULT_ORIGINS
    assert settings.rate_limit_enabled is True
    assert settings.rate_limit_storage == "memory://"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setenv("LLM_MODEL", "claude-test")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("ALLOWED_ORIGINS", "https://rca.example.com, https://ops.example.com")
    monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
    monkeypatch.setenv("RATE_LIMIT_STORAGE", "redis://cache:6379")
    monkeypatch.setenv("LOG_JSON", "yes")

    settings = AppSettings.from_env()
    assert settings.llm.api_key == "sk-test"
    assert settings.llm.model == "claude-test"
    assert settings.port == 8080
    assert settings.is_production
    assert settings.allowed_origins == ["https://rca.example.com", "https://ops.example.com"]
    assert settings.rate_limit_enabled is False
    assert settings.rate_limit_storage == "redis://cache:6379"
    assert settings.log_json is True


def test_empty_api_key_disables_ai(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    assert LLMConfig.from_env().api_key is None


def test_postgres_config(monkeypatch):
    monkeypatch.setenv("RCA_DB_TYPE", "postgresql")
    monkeypatch.setenv("POSTGRES_HOST", "db.internal")
    monkeypatch.setenv("POSTGRES_DB", "incidents")
    monkeypatch.setenv("POSTGRES_MAX_CONNECTIONS", "20")

    config = DatabaseConfig.from_env()
    assert config.type == DatabaseType.POSTGRESQL
    assert config.postgres.host == "db.internal"
    assert config.postgres.database == "incidents"
    assert config.postgres.max_connections == 20
    assert config.postgres.port == 5432


def test_sqlite_path(monkeypatch, tmp_path):
    monkeypatch.delenv("RCA_DB_TYPE", raising=False)
    monkeypatch.setenv("SQLITE_PATH", str(tmp_path / "x.db"))
    config = DatabaseConfig.from_env()
    assert config.type == DatabaseType.SQLITE
    assert config.sqlite_path.endswith("x.db")
