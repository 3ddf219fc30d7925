"""
Application configuration using Pydantic Settings.

Environment-based infrastructure switching is controlled by the ENVIRONMENT variable.
"""

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # ===========================================
    # Environment
    # ===========================================
    ENVIRONMENT: Literal["local", "test"] = "local"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # ===========================================
    # Database
    # ===========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./rescheduler.db"

    # ===========================================
    # Auth
    # ===========================================
    AUTH_PROVIDER: Literal["mock"] = "mock"
    AUTH_REQUIRED: bool = False

    # ===========================================
    # Server
    # ===========================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ALLOWED_ORIGINS: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"]
    )

    # ===========================================
    # Rescheduling
    # ===========================================
    # Used for users without a stored timezone preference
    DEFAULT_TIMEZONE: str = "America/Los_Angeles"

    # Days back (plus today) scanned for missing indefinite recurring instances
    RECURRING_LOOKBACK_DAYS: int = 7

    # Search horizon for free-mode tasks, which have no plan end date
    FREE_MODE_WINDOW_DAYS: int = 7

    # Background pass cadence
    AUTO_RESCHEDULE_INTERVAL_MINUTES: int = 30
    AUTO_RESCHEDULE_ENABLED: bool = True

    @property
    def is_test(self) -> bool:
        """Check if running under the test environment."""
        return self.ENVIRONMENT == "test"

    @property
    def is_local(self) -> bool:
        """Check if running in local environment."""
        return self.ENVIRONMENT == "local"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures settings are loaded only once.
    """
    return Settings()
