"""
Configuration management using pydantic-settings.

Loads configuration from environment variables (``SPL_`` prefix) and .env file.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SPL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -----------------
    # Application
    # -----------------
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production",
    )

    # -----------------
    # SPL document format
    # -----------------
    confidentiality_code: str = Field(
        default="B",
        description="confidentialityCode value marking an organization as confidential",
    )
    default_author_type: str = Field(
        default="Labeler",
        description="Role tag written on DocumentAuthor rows",
    )
    active_ingredient_class_code: str = Field(
        default="ACTIB",
        description="Class code for <activeIngredient> rows without a classCode",
    )
    inactive_ingredient_class_code: str = Field(
        default="IACT",
        description="Class code for <inactiveIngredient> rows without a classCode",
    )

    # -----------------
    # Import behaviour
    # -----------------
    max_section_depth: int | None = Field(
        default=None,
        ge=1,
        description="Deepest section nesting level imported (None = unbounded)",
    )
    max_concurrent_files: int = Field(
        default=4,
        ge=1,
        description="Files imported concurrently by the batch importer",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
