"""Application settings using Pydantic BaseSettings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    LOG_LEVEL: str = "INFO"

    # Triangle detection
    PATTERN_MIN_POINTS: int = 5
    PATTERN_TOLERANCE: float = 0.02
    PATTERN_MIN_CONFIDENCE: float = 0.6

    # MA convergence
    MA_PERIODS: list[int] = Field(default_factory=lambda: [20, 60, 120])
    MA_CONVERGENCE_THRESHOLD: float = 0.001
    MA_MIN_CONVERGENCE_DURATION_MS: int = 30 * 60 * 1000
    MA_SIGNAL_STRENGTH: float = 0.8

    # Registry
    PATTERN_EXPIRY_MS: int = 2 * 60 * 60 * 1000


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
