"""
Settings read from the environment or a .env file.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    Names are case-insensitive environment variables, e.g. STORAGE_BACKEND,
    IMPORT_DEFAULT_UNIT. Unknown variables are ignored.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===================
    # STORAGE
    # ===================
    storage_backend: str = Field(
        default="memory",
        pattern="^(memory|supabase)$",
        description="Where imported recipes and import logs are persisted"
    )
    supabase_url: Optional[str] = Field(None, description="Supabase project URL")
    supabase_key: Optional[str] = Field(None, description="Supabase API key")

    # ===================
    # IMPORT
    # ===================
    recipe_template_id: str = Field(
        default="standard_recipe_template",
        description="Template whose field order drives column mapping"
    )
    excel_sheet_part: str = Field(
        default="xl/worksheets/sheet1.xml",
        description="Archive member holding the worksheet to import"
    )
    import_default_category: str = Field(
        default="Uncategorized",
        min_length=1,
        description="Category used when a recipe row leaves it blank"
    )
    import_default_unit: str = Field(
        default="g",
        min_length=1,
        description="Unit used when a material row leaves it blank"
    )
    import_default_creator: str = Field(
        default="IMPORT",
        min_length=1,
        description="Creator recorded when the designer column is blank"
    )
    import_log_history_size: int = Field(
        default=100,
        ge=1,
        le=10000,
        description="Import log entries kept in memory"
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        ge=1024,
        description="Largest accepted upload in bytes"
    )

    # ===================
    # SERVER
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$"
    )
    debug: bool = Field(default=True, description="Expose /docs and error details")
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$"
    )
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1000, le=65535)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> Settings:
    """
    Load settings once.

    get_settings.cache_clear() reloads them (tests only).

    Raises:
        pydantic.ValidationError: If an environment value is invalid
    """
    return Settings()


settings = get_settings()
