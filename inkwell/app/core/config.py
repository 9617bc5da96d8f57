import json
import re
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _parse_cors_origins(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, list):
        items = [str(v).strip() for v in raw]
        return [v for v in items if v]

    raw = str(raw).strip()
    if not raw or raw == "[]":
        return []
    if raw == "*":
        return ["*"]

    # Prefer JSON, but tolerate comma/space separated values.
    if raw.startswith(("[", '"')):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            items = [str(v).strip() for v in parsed]
            return [v for v in items if v]
        if isinstance(parsed, str):
            raw = parsed.strip()

    origins: list[str] = []
    for part in re.split(r"[,\s]+", raw):
        if not part:
            continue
        if part == "*":
            return ["*"]
        if "://" in part:
            origins.append(part)
        else:
            # Browsers include the scheme in the Origin header.
            origins.append(f"http://{part}")
            origins.append(f"https://{part}")

    return list(dict.fromkeys(origins))


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be configured via environment variables or .env file.
    """

    # Debug mode - enables detailed error responses
    debug: bool = False

    # PostgreSQL settings (used when DATABASE_URL is not set)
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "inkwell"
    db_password: str = "inkwell"
    db_name: str = "inkwell"

    # Connection pool settings (PostgreSQL only)
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 300
    db_pool_pre_ping: bool = True
    db_command_timeout: float = 30.0

    # Explicit DATABASE_URL (takes priority over db_* settings)
    database_url_override: str = Field(default="", validation_alias="DATABASE_URL")

    @property
    def database_url(self) -> str:
        """Build database connection URL.

        Priority:
        1. database_url_override (DATABASE_URL env var or .env file)
        2. Built from db_* settings
        """
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}@"
            f"{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # Rate limiting settings
    rate_limit_interval_seconds: float = 60.0
    rate_limit_unique_tokens: int = 500
    comment_rate_limit: int = 10  # comments per interval per client
    comment_like_rate_limit: int = 60  # comment likes per interval per client

    # Honour X-Forwarded-For / X-Real-IP when resolving the client address.
    # Set TRUST_FORWARDED_FOR=false unless a trusted proxy overwrites these
    # headers: clients can forge them and pick a fresh rate limit bucket.
    trust_forwarded_for: bool = True

    # Comment moderation settings
    comment_max_length: int = 2000
    new_user_comment_threshold: int = 3

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "text"  # text | structured | json

    # CORS settings
    cors_origins: Annotated[list[str], NoDecode] = ["*"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def decode_cors_origins(cls, v: Any) -> list[str]:
        return _parse_cors_origins(v)

    @field_validator(
        "rate_limit_unique_tokens",
        "comment_rate_limit",
        "comment_like_rate_limit",
        "comment_max_length",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate limit values are positive."""
        if v < 1:
            raise ValueError("Limit values must be at least 1")
        return v

    @field_validator("rate_limit_interval_seconds")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        """Validate the rate limit window is positive."""
        if v <= 0:
            raise ValueError("rate_limit_interval_seconds must be positive")
        return v

    @field_validator("new_user_comment_threshold")
    @classmethod
    def validate_threshold(cls, v: int) -> int:
        if v < 0:
            raise ValueError("new_user_comment_threshold must not be negative")
        return v

    @field_validator("db_pool_size", "db_max_overflow")
    @classmethod
    def validate_pool_size_positive(cls, v: int) -> int:
        """Validate pool_size is positive."""
        if v < 1:
            raise ValueError("pool size values must be at least 1")
        return v

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Global settings instance
settings = Settings()
