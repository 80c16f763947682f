from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """
    Application-level settings for the FastAPI service.

    This is separate from quantura.db.config.Settings, which focuses on the database layer.
    """

    # FastAPI metadata
    APP_NAME: str = Field(default="Quantura API")
    APP_DESCRIPTION: str = Field(
        default=(
            "Backend API for a multi-tenant inventory and business management platform. "
            "Provides tenant-scoped CRUD with audit logging, invitations and dashboards."
        )
    )
    APP_VERSION: str = Field(default="0.1.0")

    # CORS
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["*"],
        description="Comma-separated list or JSON array of allowed origins. Default: *",
    )
    CORS_ALLOW_CREDENTIALS: bool = Field(default=True)
    CORS_ALLOW_METHODS: List[str] = Field(default_factory=lambda: ["*"])
    CORS_ALLOW_HEADERS: List[str] = Field(default_factory=lambda: ["*"])

    # Startup behavior
    RUN_MIGRATIONS_ON_STARTUP: bool = Field(
        default=True,
        description="If true, run Alembic migrations (upgrade head) at app startup.",
    )
    AUTO_SEED: bool = Field(
        default=False,
        description="If true, seed a demo business after migrations.",
    )

    # Tokens
    JWT_SECRET_KEY: str = Field(default="change-me", description="Secret used to sign JWTs")
    JWT_ALGORITHM: str = Field(default="HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(default=60)
    REFRESH_TOKEN_EXPIRE_MINUTES: int = Field(default=60 * 24 * 7)

    # Read-path caching
    CACHE_TTL_SECONDS: float = Field(
        default=300.0, ge=0, description="Lifetime of cached tenant reads, in seconds."
    )
    CACHE_MAX_ENTRIES: int = Field(
        default=1000, ge=1, description="Upper bound on cached reads held in memory."
    )

    # Invitations and outbound mail
    INVITATION_TTL_HOURS: int = Field(default=24 * 7, ge=1)
    PUBLIC_BASE_URL: str = Field(
        default="http://localhost:3000", description="Base URL used to build invitation links."
    )
    MAIL_BACKEND: str = Field(default="log", description="'log' (development outbox) or 'resend'.")
    MAIL_FROM: str = Field(default="Quantura <onboarding@resend.dev>")
    RESEND_API_KEY: Optional[str] = Field(default=None)
    RESEND_API_URL: str = Field(default="https://api.resend.com/emails")
    MAIL_TIMEOUT_SECONDS: float = Field(default=10.0)

    # Environment label
    ENVIRONMENT: Optional[str] = Field(
        default=None, description="Environment label (dev/test/prod)"
    )

    # Automatically load from .env at runtime.
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """
        Accept both JSON array format and comma-separated formats for CORS origins.
        """
        if v is None:
            return ["*"]
        if isinstance(v, str):
            parts = [p.strip() for p in v.split(",") if p.strip()]
            return parts or ["*"]
        if isinstance(v, list):
            return v or ["*"]
        return ["*"]

    @field_validator("MAIL_BACKEND")
    @classmethod
    def _check_mail_backend(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in {"log", "resend"}:
            raise ValueError("MAIL_BACKEND must be 'log' or 'resend'")
        return v


# PUBLIC_INTERFACE
def get_app_settings() -> AppSettings:
    """
    Return a new AppSettings instance populated from environment variables.

    Note:
      For simplicity we construct a new instance each time.
    """
    return AppSettings()
