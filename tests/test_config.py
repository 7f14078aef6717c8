"""Tests for configuration module."""

from __future__ import annotations

import pytest

from core.config import Settings, get_database_url, get_settings, _ENV_PROFILES


def test_settings_dataclass():
    s = Settings(database_url="postgres://localhost/test")
    assert s.database_url == "postgres://localhost/test"
    assert s.app_env == "dev"
    assert s.insights_stale_after_minutes == 5
    assert s.sahha_api_base_url == "https://sandbox-api.sahha.ai"
    assert s.request_id_header_name == "X-Request-ID"


def test_settings_frozen():
    s = Settings(database_url="x")
    with pytest.raises(AttributeError):
        s.database_url = "y"


def test_settings_is_production():
    s = Settings(database_url="x", app_env="production")
    assert s.is_production is True
    assert s.is_dev is False


def test_settings_is_dev():
    s = Settings(database_url="x", app_env="dev")
    assert s.is_dev is True
    assert s.is_production is False


def test_sahha_configured_needs_both_credentials():
    assert not Settings(database_url="x").sahha_configured
    assert not Settings(database_url="x", sahha_client_id="id").sahha_configured
    assert Settings(database_url="x", sahha_client_id="id", sahha_client_secret="s").sahha_configured


def test_get_database_url_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://from-env/db")
    assert get_database_url() == "postgres://from-env/db"


def test_get_database_url_default(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    assert get_database_url().startswith("sqlite")


def test_get_settings_uses_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://test/db")
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("SAHHA_CLIENT_ID", "client")
    monkeypatch.setenv("SAHHA_CLIENT_SECRET", "secret")
    monkeypatch.delenv("SAHHA_API_BASE_URL", raising=False)
    s = get_settings()
    assert s.database_url == "postgres://test/db"
    assert s.app_env == "production"
    assert s.sahha_configured
    assert s.sahha_api_base_url == "https://api.sahha.ai"


def test_env_profiles_exist():
    assert "dev" in _ENV_PROFILES
    assert "test" in _ENV_PROFILES
    assert "staging" in _ENV_PROFILES
    assert "production" in _ENV_PROFILES


def test_dev_profile_debug_logging():
    assert _ENV_PROFILES["dev"]["log_level"] == "DEBUG"


def test_refresh_policy_from_env(monkeypatch):
    monkeypatch.setenv("INSIGHTS_STALE_AFTER_MINUTES", "15")
    monkeypatch.setenv("ROSTER_REFRESH_WORKERS", "3")
    s = get_settings()
    assert s.insights_stale_after_minutes == 15
    assert s.roster_refresh_workers == 3


def test_cors_origins_split(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test,,")
    assert get_settings().cors_origins == ["http://a.test", "http://b.test"]


def test_settings_profile_defaults(monkeypatch):
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ROSTER_REFRESH_WORKERS", raising=False)
    s = get_settings()
    assert s.log_level == "WARNING"
    assert s.roster_refresh_workers == 2


def test_unknown_env_falls_back_to_dev_profile(monkeypatch):
    monkeypatch.setenv("APP_ENV", "qa")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    assert get_settings().log_level == "DEBUG"
