"""Client configuration using pydantic-settings.

Environment variables (prefix PERPLEXITY_, also read from .env):

- PERPLEXITY_API_KEY (secret, default: empty)
- PERPLEXITY_ORIGIN (default: api.perplexity.ai)
- PERPLEXITY_BASE_PATH (default: empty)
- PERPLEXITY_REQUEST_TIMEOUT (seconds, default: 120)
- PERPLEXITY_CONNECT_TIMEOUT (seconds, default: 30)
- PERPLEXITY_LOG_LEVEL (default: INFO)
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ORIGIN = "api.perplexity.ai"


class Settings(BaseSettings):
    """Typed client settings."""

    api_key: SecretStr = Field(default=SecretStr(""))

    origin: str = Field(default=DEFAULT_ORIGIN)
    base_path: str = Field(default="")

    request_timeout: float = Field(default=120.0, ge=1.0)
    connect_timeout: float = Field(default=30.0, ge=1.0)

    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PERPLEXITY_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("origin", mode="before")
    @classmethod
    def _norm_origin(cls, v: object) -> str:
        return normalize_origin(v) or DEFAULT_ORIGIN

    @field_validator("base_path", mode="before")
    @classmethod
    def _norm_base_path(cls, v: object) -> str:
        return normalize_base_path(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def _norm_log_level(cls, v: object) -> str:
        return str(v or "INFO").strip().upper()


def normalize_origin(v: object) -> str:
    """Reduce an origin to its bare host[:port]; empty input stays empty."""
    if not v:
        return ""
    s = str(v).strip()
    for scheme in ("https://", "http://"):
        if s.lower().startswith(scheme):
            s = s[len(scheme):]
    return s.rstrip("/")


def normalize_base_path(v: object) -> str:
    """Return "" or "/a/b" (leading slash, no trailing slash)."""
    if not v:
        return ""
    s = str(v).strip().strip("/")
    return f"/{s}" if s else ""


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
