"""
Application settings loaded from environment variables.

Only the Supabase URL and key are required. Everything else tunes how the
catalog is read (table name, page and chunk sizes) and how much of each run
is logged.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """Settings read from .env or the environment (case-insensitive)."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # CATALOG
    # ===================
    catalog_table: str = Field(
        default="catalog",
        min_length=1,
        description="Table holding the reference firearm catalog"
    )
    catalog_page_size: int = Field(
        default=1000,
        ge=1,
        le=10000,
        description="Rows per page when scanning the full catalog"
    )
    catalog_in_chunk_size: int = Field(
        default=200,
        ge=1,
        le=1000,
        description="Identifiers per IN (...) query when fetching by UPC"
    )

    # ===================
    # DIAGNOSTICS
    # ===================
    diagnostic_sample_size: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Rows per run logged in detail by the match reporter"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Front-end origins allowed to upload (JSON list in env)"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Settings loaded once per process.

    Tests call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
