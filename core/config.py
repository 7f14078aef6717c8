"""Application configuration with environment-specific profiles.

Supports dev, staging, test and production environments via APP_ENV.
All values can be overridden by environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Settings:
    """Immutable application settings resolved from environment."""

    database_url: str
    app_env: str = "dev"
    log_level: str = "INFO"

    # Sahha insight provider
    sahha_client_id: str = ""
    sahha_client_secret: str = ""
    sahha_api_base_url: str = "https://sandbox-api.sahha.ai"
    sahha_environment: str = "sandbox"
    provider_timeout_seconds: float = 30.0

    # Roster refresh policy
    insights_stale_after_minutes: int = 5
    roster_refresh_workers: int = 8

    # HTTP surface
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:8081"])
    request_id_header_name: str = "X-Request-ID"

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_dev(self) -> bool:
        return self.app_env == "dev"

    @property
    def sahha_configured(self) -> bool:
        return bool(self.sahha_client_id and self.sahha_client_secret)


# -- Environment profiles --

_ENV_PROFILES: dict[str, dict] = {
    "dev": {
        "log_level": "DEBUG",
        "sahha_environment": "sandbox",
    },
    "test": {
        "log_level": "WARNING",
        "sahha_environment": "sandbox",
        "roster_refresh_workers": 2,
    },
    "staging": {
        "log_level": "INFO",
        "sahha_environment": "sandbox",
    },
    "production": {
        "log_level": "WARNING",
        "sahha_environment": "production",
        "sahha_api_base_url": "https://api.sahha.ai",
    },
}


def get_database_url() -> str:
    """Resolve database URL from env var or a local default."""
    env_url = os.getenv("DATABASE_URL")
    if env_url:
        return env_url
    return "sqlite+pysqlite:///./health_insights.db"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def get_settings() -> Settings:
    """Build Settings by merging environment profile with env-var overrides."""
    app_env = os.getenv("APP_ENV", "dev")
    profile = _ENV_PROFILES.get(app_env, _ENV_PROFILES["dev"])

    cors = os.getenv("CORS_ORIGINS")
    return Settings(
        database_url=get_database_url(),
        app_env=app_env,
        log_level=os.getenv("LOG_LEVEL", profile.get("log_level", "INFO")),
        sahha_client_id=os.getenv("SAHHA_CLIENT_ID", ""),
        sahha_client_secret=os.getenv("SAHHA_CLIENT_SECRET", ""),
        sahha_api_base_url=os.getenv(
            "SAHHA_API_BASE_URL", profile.get("sahha_api_base_url", "https://sandbox-api.sahha.ai")
        ),
        sahha_environment=os.getenv("SAHHA_ENVIRONMENT", profile.get("sahha_environment", "sandbox")),
        provider_timeout_seconds=float(os.getenv("PROVIDER_TIMEOUT_SECONDS", "30")),
        insights_stale_after_minutes=int(os.getenv("INSIGHTS_STALE_AFTER_MINUTES", "5")),
        roster_refresh_workers=int(
            os.getenv("ROSTER_REFRESH_WORKERS", str(profile.get("roster_refresh_workers", 8)))
        ),
        cors_origins=_split_csv(cors) if cors else ["http://localhost:8081"],
        request_id_header_name=os.getenv("REQUEST_ID_HEADER_NAME", "X-Request-ID"),
    )
