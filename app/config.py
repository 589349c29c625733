"""
app/config.py — Central configuration loaded from environment variables.
All modules import settings from here; never read os.environ directly elsewhere.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Database ──────────────────────────────────────────────────────────────
    database_url: str = Field(..., description="PostgreSQL connection URI")

    # ── Auth ──────────────────────────────────────────────────────────────────
    jwt_secret: str = Field(..., description="Secret used to sign access tokens")
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")
    jwt_expires_minutes: int = Field(
        default=24 * 60,
        gt=0,
        description="Access token lifetime in minutes",
    )
    password_hash_iterations: int = Field(
        default=260_000,
        ge=1,
        description="PBKDF2-SHA256 iterations for stored passwords",
    )

    # ── Bootstrap superadmin (scripts/setup_db.py) ────────────────────────────
    superadmin_email: str = Field(default="admin@example.com")
    superadmin_username: str = Field(default="superadmin")
    superadmin_password: str | None = Field(
        default=None,
        description="If unset, setup_db.py skips creating the superadmin",
    )

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Root log level")
    log_environment: str = Field(
        default="development",
        description="'development' for readable logs, anything else for JSON-like lines",
    )

    # ── Reviews ───────────────────────────────────────────────────────────────
    review_content_min_length: int = Field(default=10, ge=1)
    review_content_max_length: int = Field(default=10_000, ge=1)


# Singleton — import this everywhere
settings = Settings()
