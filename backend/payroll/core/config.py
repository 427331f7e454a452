"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = BACKEND_ROOT / ".env"
LOCAL_AUTH_TOKEN_MIN_LENGTH = 50
LOCAL_AUTH_TOKEN_PLACEHOLDERS = frozenset(
    {
        "change-me",
        "changeme",
        "replace-me",
        "replace-with-strong-random-token",
    },
)


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load `backend/.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"
    database_url: str = "sqlite+aiosqlite:///./payroll.db"

    # Shared bearer token presented by the portal front end.
    local_auth_token: str

    cors_origins: str = ""
    base_url: str = ""

    # Database lifecycle
    db_auto_create: bool = False

    # Claim workflow
    decision_max_attempts: int = Field(default=3, ge=1)
    max_document_bytes: int = Field(default=10 * 1024 * 1024, gt=0)

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False
    request_log_slow_ms: int = Field(default=1000, ge=0)
    request_log_include_health: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        token = self.local_auth_token.strip()
        if (
            not token
            or len(token) < LOCAL_AUTH_TOKEN_MIN_LENGTH
            or token.lower() in LOCAL_AUTH_TOKEN_PLACEHOLDERS
        ):
            raise ValueError(
                "LOCAL_AUTH_TOKEN must be at least 50 characters and non-placeholder.",
            )
        if self.log_format not in {"text", "json"}:
            raise ValueError("LOG_FORMAT must be one of: text, json.")
        # In dev, create missing tables at startup so a fresh checkout runs as-is.
        if "db_auto_create" not in self.model_fields_set and self.environment == "dev":
            self.db_auto_create = True
        return self


settings = Settings()
