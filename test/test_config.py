"""
Settings tests
"""

from app.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.ledger_backend in ("memory", "file", "sqlite", "supabase")
    assert settings.oracle_max_tokens == 200
    assert settings.fallback_reading.startswith("The oracle is silent")


def test_cors_origins_from_environment(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://oracle.example.com, http://localhost:3000 ,")
    settings = Settings(_env_file=None)
    assert settings.cors_origins == ["https://oracle.example.com", "http://localhost:3000"]


def test_ledger_backend_is_normalized(monkeypatch):
    monkeypatch.setenv("LEDGER_BACKEND", " File ")
    assert Settings(_env_file=None).ledger_backend == "file"


def test_environment_flag():
    assert Settings(_env_file=None, environment="development").is_development
    assert not Settings(_env_file=None, environment="production").is_development
