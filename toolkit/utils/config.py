"""
Configuration settings for the repository toolkit.
"""

from functools import lru_cache
from typing import Dict

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """Toolkit settings."""

    # Database
    DATABASE_URL: str = "sqlite:///./toolkit.db"

    # Database Pool
    POOL_SIZE: int = 5
    MAX_OVERFLOW: int = 10
    POOL_TIMEOUT: int = 30
    POOL_RECYCLE: int = 1800

    # Logging
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # Repositories: model identifier -> repository class path, JSON in the environment
    REPOSITORY_MAPPING: Dict[str, str] = {}

    # Environment
    ENVIRONMENT: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow"
    )

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
