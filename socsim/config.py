"""
Application configuration from environment variables.
Compatible with Pydantic v2.
"""

from typing import Optional

from pydantic_settings import BaseSettings
from pydantic import ConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """

    # =========================
    # Database (snapshot store)
    # =========================
    DATABASE_URL: str = "sqlite:///./socsim.db"
    STORAGE_KEY: str = "soc_sim_state_v1"
    PREFS_KEY: str = "soc_sim_prefs_v1"

    # =========================
    # API Settings
    # =========================
    API_KEY: str = "socsim_dev_key_change_later"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # =========================
    # Rate Limiting
    # =========================
    RATE_LIMIT: str = "200/minute"

    # =========================
    # Generator
    # =========================
    GENERATOR_ENABLED_AT_BOOT: bool = True
    GENERATOR_INTERVAL_SECONDS: float = 3.6
    GENERATOR_SPIKE_PROBABILITY: float = 0.14
    RANDOM_SEED: Optional[int] = None

    # =========================
    # Retention / Seeding
    # =========================
    MAX_ALERTS: int = 180
    MAX_LOGS: int = 500
    SEED_ALERT_COUNT: int = 16
    SEED_LOG_COUNT: int = 240
    LOG_VIEW_LIMIT: int = 220

    # =========================
    # Pydantic v2 Config
    # =========================
    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
