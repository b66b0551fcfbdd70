"""Configuration management for Engagement Tracker.

Settings are loaded with Pydantic Settings from environment variables
(prefix ``ENGAGETRACK_``) and an optional ``.env`` file. They are read once
at startup and cached for the lifetime of the process.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ENGAGETRACK_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "Engagement Tracker"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./et_data/engagetrack.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Security Settings
    secret_key: str = Field(
        default="change-me-in-production-use-openssl-rand-hex-32",
        description="Secret key used to verify access tokens",
    )
    access_token_expire_minutes: int = 60

    # CORS Settings
    cors_origins: list[str] = Field(default=["http://localhost:5173", "http://localhost:8080"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Role Management Settings
    role_change_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for one atomic directory mutation; exceeded means denied",
    )
    session_expiry_hours: int = 168  # 7 days
    session_expiring_window_hours: int = 24
    audit_log_default_limit: int = 50

    # Superadmin bootstrap
    superadmin_email: str | None = Field(
        default=None,
        description="Email granted SUPER_ADMIN on startup when no super admin exists",
    )
    superadmin_name: str | None = None

    # Email Settings
    email_provider: Literal["console", "resend", "smtp"] = "console"
    email_from_address: str = "onboarding@resend.dev"
    email_from_name: str = "Engagement Tracker"
    email_reply_to: str | None = None
    resend_api_key: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Parse CORS origins from a comma-separated string or list."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("superadmin_email")
    @classmethod
    def normalize_superadmin_email(cls, v: str | None) -> str | None:
        """Lower-case the bootstrap email so directory lookups match."""
        if v is None or not v.strip():
            return None
        return v.strip().lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: The process-wide settings instance.
    """
    return Settings()
