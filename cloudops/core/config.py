"""Service settings.

Everything is read from the environment (or a local ``.env``). The row store
and encryption variables keep the names the hosting platform injects.
"""

import logging
import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Pipeline settings.

    Production guards:
    - DEBUG must be off
    - CORS origins must be explicit
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        alias="ENVIRONMENT",
    )

    # Service
    app_name: str = "Cloud Ops Pipeline"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # =========================================================================
    # Row Store (PostgREST)
    # =========================================================================

    supabase_url: str | None = Field(default=None, alias="SUPABASE_URL")
    supabase_service_role_key: str | None = Field(default=None, alias="SUPABASE_SERVICE_ROLE_KEY")
    supabase_anon_key: str | None = Field(default=None, alias="SUPABASE_ANON_KEY")
    store_timeout_seconds: float = Field(default=30.0, alias="STORE_TIMEOUT_SECONDS")

    # Rows drained per queue when the request gives no max
    queue_default_max: int = Field(default=20, alias="QUEUE_DEFAULT_MAX")

    # Fernet key for cloud credential secrets
    encryption_key: str | None = Field(default=None, alias="ENCRYPTION_KEY")

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @field_validator("environment", mode="before")
    @classmethod
    def normalize_environment(cls, v: str | None) -> str:
        """Lower-case ENVIRONMENT, or infer it from PRODUCTION/PROD/STAGING flags."""
        if v:
            return v.lower()
        if os.getenv("PRODUCTION") or os.getenv("PROD"):
            return "production"
        if os.getenv("STAGING"):
            return "staging"
        return "development"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("queue_default_max")
    @classmethod
    def validate_queue_default_max(cls, v: int) -> int:
        if v < 1:
            raise ValueError("QUEUE_DEFAULT_MAX must be at least 1")
        return v

    @model_validator(mode="after")
    def reject_unsafe_production(self):
        """Refuse to start production with DEBUG on or a wildcard CORS origin."""
        if not self.is_production:
            return self

        if self.debug:
            logger.error("DEBUG is enabled with ENVIRONMENT=production; refusing to start")
            raise ValueError("DEBUG cannot be True in production environment")

        if any(origin.strip() == "*" for origin in self.cors_origins):
            logger.error("CORS_ORIGINS contains '*' with ENVIRONMENT=production; refusing to start")
            raise ValueError("Wildcard CORS origin (*) not allowed in production")

        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def store_key(self) -> str | None:
        """Service role key, falling back to the anon key."""
        return self.supabase_service_role_key or self.supabase_anon_key

    @property
    def is_store_configured(self) -> bool:
        return bool(self.supabase_url and self.store_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
