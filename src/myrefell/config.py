"""Runtime configuration for the Myrefell backend."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from the environment or a local ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MYREFELL_",
    )

    environment: str = Field(default="local", description="Deployment environment name")
    database_url: str = Field(
        default="sqlite:///myrefell.db", description="SQLAlchemy database URL"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements to the log")
    database_pool_size: int = Field(default=5, ge=1, description="Connection pool size")
    database_max_overflow: int = Field(default=10, ge=0, description="Pool overflow connections")
    database_pool_recycle: int = Field(
        default=3600, description="Seconds before a pooled connection is recycled"
    )
    database_pool_timeout: int = Field(
        default=30, ge=1, description="Seconds to wait for a pooled connection"
    )
    tick_interval_seconds: float = Field(
        default=86400.0,
        description="Real-time seconds between automatic world ticks when scheduling is enabled",
        gt=0.0,
    )
    debug_tick_speed_multiplier: float = Field(
        default=1.0,
        description="Multiplier applied to the tick interval to speed up or slow down ticks in development",
        gt=0.0,
    )
    allow_dev_actions: bool = Field(
        default=False,
        description="Enable development-only shortcuts such as skipping travel",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
