# palletflow/config/settings.py

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    app_name: str = "palletflow"
    environment: Literal["dev", "test", "prod"] = "dev"
    debug: bool = False
    version: str = "0.1.0"

    # --- Database ---
    database_url: str = "sqlite+aiosqlite:///./palletflow.db"
    database_echo: bool = False
    pool_size: int = Field(5, ge=1)
    max_overflow: int = Field(10, ge=0)
    pool_pre_ping: bool = True
    auto_create_schema: bool = True

    # --- Concurrency ---
    lock_retry_attempts: int = Field(5, ge=1)
    lock_retry_backoff_seconds: float = Field(0.05, ge=0.0)

    # --- Listing ---
    default_page_size: int = Field(100, ge=1)
    max_page_size: int = Field(500, ge=1)

    # --- Observability ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> AppSettings:
    return AppSettings()
