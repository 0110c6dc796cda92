"""
Application settings
Loaded from environment variables (or a local .env file)
"""

from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment"""

    # ======================
    # Application
    # ======================
    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    CORS_ORIGINS: List[str] = [
        "http://localhost:4200",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    # ======================
    # Market data
    # ======================
    MARKET_DATA_BASE_URL: str = "https://query1.finance.yahoo.com/v8/finance/chart"
    MARKET_DATA_TIMEOUT: float = 30.0
    MARKET_DATA_INTERVAL: str = "1mo"
    MARKET_DATA_RANGE: str = "max"

    # ======================
    # Index cache
    # ======================
    INDEX_CACHE_TTL_HOURS: float = 24.0
    INDEX_CACHE_PRELOAD: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("APP_ENV")
    @classmethod
    def _check_env(cls, value: str) -> str:
        if value not in ("development", "staging", "production"):
            raise ValueError(
                f"invalid environment: {value} (must be development, staging, or production)"
            )
        return value

    @field_validator("LOG_LEVEL")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level: {value}")
        return level

    @field_validator("API_PORT")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if value < 1 or value > 65535:
            raise ValueError(f"server port must be between 1 and 65535, got {value}")
        return value

    @field_validator("INDEX_CACHE_TTL_HOURS", "MARKET_DATA_TIMEOUT")
    @classmethod
    def _check_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("must be positive")
        return value

    @property
    def is_development(self) -> bool:
        return self.APP_ENV == "development"
