"""Application configuration via pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="POLYTIMES_ENV"
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="POLYTIMES_LOG_LEVEL"
    )

    # Database (hosted Postgres, e.g. the Supabase connection string).
    # Unset means the service runs without a backend handle.
    database_url: str | None = Field(default=None)
    db_pool_min_size: int = Field(default=1)
    db_pool_max_size: int = Field(default=5)

    # Shared secret for scheduled callers of /api/monitor
    cron_secret: SecretStr | None = Field(default=None)

    # Alerts read view
    alerts_window_hours: float = Field(
        default=2.0,
        description="Only alerts created within this many hours are returned",
    )
    alerts_limit: int = Field(default=10, description="Max alerts returned per request")
    alerts_revalidate_seconds: int = Field(
        default=60,
        description="Cache lifetime hint for the alerts response",
    )

    # Newsletter
    subscribe_rate_limit: str = Field(
        default="5 per 15 minutes",
        description="Per-client rate limit for the subscribe endpoint",
    )

    # Polymarket
    polymarket_gamma_api_url: str = Field(default="https://gamma-api.polymarket.com")
    polymarket_events_limit: int = Field(default=300)

    # Market monitoring
    monitor_swing_threshold: float = Field(
        default=0.10,
        description="Minimum absolute yes-price move for a market to be considered",
    )
    monitor_fallback_threshold: float = Field(
        default=0.15,
        description="Minimum move that still alerts when the LLM evaluation fails",
    )
    monitor_snapshot_retention_days: int = Field(default=7)
    monitor_interval_minutes: int = Field(
        default=0,
        description="Run the monitor in-process every N minutes (0 disables)",
    )

    # LLM Provider
    llm_provider: Literal["anthropic", "openai"] = Field(default="anthropic")
    anthropic_api_key: SecretStr | None = Field(default=None)
    openai_api_key: SecretStr | None = Field(default=None)
    openai_base_url: str | None = Field(default=None)
    llm_model: str = Field(default="claude-3-5-haiku-20241022")
    llm_model_smart: str = Field(default="claude-sonnet-4-20250514")

    @field_validator("database_url", mode="before")
    @classmethod
    def blank_database_url(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def is_production(self) -> bool:
        return self.env == "production"

    @property
    def is_development(self) -> bool:
        return self.env == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
