"""
Configuration settings for the adaptive content engine.

Uses Pydantic Settings for environment variable management with .env file support.
Every variable is prefixed with ``ADAPTIVE_`` (e.g. ``ADAPTIVE_LOG_LEVEL=DEBUG``).
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ADAPTIVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Question Compiler
    # ========================================
    precompile_batch_size: int = Field(
        default=50,
        ge=1,
        description="Compiled questions per template (seeds 0..N-1) cached at startup",
    )
    distractor_count: int = Field(
        default=3,
        ge=1,
        description="Wrong answers generated for every compiled question",
    )
    max_backfill_offset: int = Field(
        default=25,
        ge=1,
        description="Largest +/- offset tried when back-filling duplicate distractors",
    )
    template_paths: list[str] = Field(
        default_factory=list,
        description="Extra JSON template files registered after the built-in templates",
    )

    # ========================================
    # Session Exposure Tracker
    # ========================================
    wildcard_skill_area: str = Field(
        default="general",
        description="Skill area that matches every skill area of a subject",
    )

    # ========================================
    # In-Session Adaptive Manager
    # ========================================
    max_indicators_per_atom: int = Field(
        default=50,
        ge=2,
        description="Cap on struggling/mastery indicator lists (oldest dropped first)",
    )

    # ========================================
    # State Stores
    # ========================================
    idle_eviction_seconds: int = Field(
        default=0,
        ge=0,
        description="Evict atom and exposure records idle this long (0 disables the sweep)",
    )
    lock_stripes: int = Field(
        default=64,
        ge=1,
        description="Number of striped per-key locks in each state store",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str | None = Field(default=None, description="Optional log file path")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
