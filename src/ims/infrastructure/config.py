from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="IMS_", env_file=".env", extra="ignore")

    # ==============================
    # Storage
    # ==============================
    DATA_DIR: Path = Path("data")

    # ==============================
    # Sales
    # ==============================
    CANCELLATION_WINDOW_HOURS: float = 24
    REVERSAL_STRATEGY: str = "newest_first"

    # ==============================
    # Concurrency
    # ==============================
    RETRY_ATTEMPTS: int = 3
    RETRY_BACKOFF_SECONDS: float = 0.05

    # ==============================
    # Reporting
    # ==============================
    TIMEZONE: str = "UTC"

    # ==============================
    # Logging
    # ==============================
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    @field_validator("REVERSAL_STRATEGY")
    @classmethod
    def _check_strategy(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("newest_first", "exact"):
            raise ValueError("REVERSAL_STRATEGY must be 'newest_first' or 'exact'")
        return value

    @field_validator("RETRY_ATTEMPTS")
    @classmethod
    def _check_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("RETRY_ATTEMPTS must be at least 1")
        return value

    @field_validator("CANCELLATION_WINDOW_HOURS")
    @classmethod
    def _check_window(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("CANCELLATION_WINDOW_HOURS must be positive")
        return value

    @field_validator("TIMEZONE")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value!r}") from exc
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()
