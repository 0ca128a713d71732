"""
Application Configuration - Pydantic Settings for type-safe config.

FAIL FAST - Critical config is validated at startup.
The upstream API key is NOT critical at startup: a missing key is reported
per request as a server misconfiguration.
"""

import sys

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when critical configuration is missing or invalid."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration - NO DEFAULT for production safety
    database_url: str = ""
    database_read_url: str | None = None  # Optional read replica
    database_pool_size: int = 10
    database_max_overflow: int = 10
    database_pool_timeout: int = 30
    database_pool_recycle: int = 3600

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_title: str = "Novluma Generation API"
    api_version: str = "0.1.0"
    api_description: str = "Usage-metered content generation for the Novluma dashboard"

    # Identity - Firebase ID tokens
    firebase_project_id: str = ""

    # Upstream generation API (Gemini)
    gemini_api_key: str = ""
    vite_gemini_api_key: str = ""  # Legacy variable name, used when GEMINI_API_KEY is empty
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    gemini_default_model: str = "gemini-2.0-flash"
    gemini_default_version: str = "v1beta"
    upstream_timeout_seconds: float = 60.0

    @property
    def upstream_api_key(self) -> str | None:
        """First non-empty upstream API key, or None when neither is set."""
        for key in (self.gemini_api_key, self.vite_gemini_api_key):
            if key and key.strip():
                return key.strip()
        return None

    # Quota
    monthly_word_limit: int = 5000
    billing_cycle_days: int = 30

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or console

    # Observability - Metrics
    metrics_enabled: bool = True

    # Observability - Tracing
    tracing_enabled: bool = True
    otlp_endpoint: str = "http://otel-collector:4317"
    otlp_insecure: bool = True
    service_name: str = "novluma-generation-api"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_critical_config(self) -> "Settings":
        """
        FAIL FAST: Validate critical configuration at startup.

        The app MUST NOT start without a database to meter usage against.
        """
        errors: list[str] = []

        if not self.database_url:
            errors.append("DATABASE_URL is required but empty or missing")
        elif not self.database_url.startswith(("postgresql", "postgres")):
            errors.append(
                f"DATABASE_URL must be a PostgreSQL URL, got: {self.database_url[:20]}..."
            )

        if self.monthly_word_limit <= 0:
            errors.append(f"MONTHLY_WORD_LIMIT must be positive, got: {self.monthly_word_limit}")

        if self.billing_cycle_days <= 0:
            errors.append(f"BILLING_CYCLE_DAYS must be positive, got: {self.billing_cycle_days}")

        if errors:
            error_msg = "\n".join(
                [
                    "",
                    "=" * 60,
                    "CRITICAL CONFIGURATION ERROR - APPLICATION CANNOT START",
                    "=" * 60,
                    *[f"  ✗ {e}" for e in errors],
                    "=" * 60,
                    "",
                ]
            )
            print(error_msg, file=sys.stderr)
            raise ConfigurationError(error_msg)

        return self

    @property
    def read_database_url(self) -> str:
        """Get read database URL (fallback to primary if no replica)."""
        return self.database_read_url or self.database_url


# Global settings instance - validates at import time
settings = Settings()


def get_settings() -> Settings:
    """Get application settings instance."""
    return settings
