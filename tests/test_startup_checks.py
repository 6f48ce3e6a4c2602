"""Tests for configuration validation at startup."""
import pytest

from config.settings import DEFAULT_JWT_SECRET, settings
from src.startup_checks import validate_settings


def test_default_secret_is_fatal_in_production(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "JWT_SECRET", DEFAULT_JWT_SECRET)
    with pytest.raises(SystemExit):
        validate_settings()


def test_production_warnings(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "production")
    monkeypatch.setattr(settings, "JWT_SECRET", "a-real-secret")
    monkeypatch.setattr(settings, "CORS_ORIGINS", ["*"])
    monkeypatch.setattr(settings, "DATABASE_URL", "sqlite+aiosqlite:///prod.db")
    warnings = validate_settings()
    assert any("CORS_ORIGINS" in w for w in warnings)
    assert any("SQLite" in w for w in warnings)


def test_development_defaults_pass(monkeypatch):
    monkeypatch.setattr(settings, "ENVIRONMENT", "development")
    monkeypatch.setattr(settings, "CORS_ORIGINS", ["http://localhost:5173"])
    assert validate_settings() == []
