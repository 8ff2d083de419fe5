"""
Application Settings

Environment-driven configuration for the PL/pgSQL test runner.
Values are read from the process environment and an optional `.env` file.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings (upper-case names mirror the environment variables)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Server
    APP_HOST: str = "127.0.0.1"
    APP_PORT: int = 3000
    APP_DEBUG: bool = False
    APP_RELOAD: bool = False
    CORS_ORIGINS: List[str] = ["*"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    LOG_FILE: Optional[str] = None

    # Database. The pool is normally created from the UI via /api/connect;
    # DATABASE_URL + CONNECT_ON_STARTUP allow a headless boot.
    DATABASE_URL: Optional[str] = None
    CONNECT_ON_STARTUP: bool = False

    POOL_MIN_SIZE: int = 1
    POOL_MAX_SIZE: int = 10
    POOL_ACQUIRE_TIMEOUT: float = 30.0
    POOL_CREATE_RETRIES: int = 3
    POOL_RETRY_DELAY: float = 1.0
    PROBE_TIMEOUT: float = 10.0

    # Upper bound for a single script execution (seconds); None disables it.
    COMMAND_TIMEOUT: Optional[float] = None


settings = Settings()
