"""
Application configuration using Pydantic Settings.
All config is loaded from environment variables / .env file.
"""

from typing import Literal

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    # ── App ──────────────────────────────────────────────
    APP_NAME: str = "edugrade"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"  # DEBUG | INFO | WARNING | ERROR
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173"  # comma-separated

    # ── Grading ──────────────────────────────────────────
    PREDICTION_COMPLETED_WEIGHT: float = 50.0  # % of course assumed graded in performance overviews
    TRANSCRIPT_DEFAULT_LANGUAGE: Literal["vi", "en"] = "vi"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance (singleton)."""
    return Settings()
