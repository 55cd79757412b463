"""
Configuration settings for the sales search service.

Uses Pydantic Settings to load environment variables for the structured store
connection, the fallback delimited-text source, logging, and query defaults.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Database
    db_host: str = Field("localhost", alias="DB_HOST")
    db_port: int = Field(5432, alias="DB_PORT")
    db_user: str = Field("postgres", alias="DB_USER")
    db_password: str = Field("postgres", alias="DB_PASSWORD")
    db_name: str = Field("retail_sales", alias="DB_NAME")
    db_pool_min_size: int = Field(1, alias="DB_POOL_MIN_SIZE")
    db_pool_max_size: int = Field(10, alias="DB_POOL_MAX_SIZE")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")

    # Fallback row source
    csv_path: str = Field("data/sales_data.csv", alias="CSV_PATH")
    csv_url: Optional[str] = Field(None, alias="CSV_URL")
    csv_http_timeout_seconds: float = Field(30.0, alias="CSV_HTTP_TIMEOUT_SECONDS")

    # Query and loading defaults
    default_page_size: int = Field(10, alias="DEFAULT_PAGE_SIZE")
    startup_load_enabled: bool = Field(False, alias="STARTUP_LOAD_ENABLED")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["Settings", "get_settings"]
