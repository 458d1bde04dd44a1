"""
Configuration management for DraftSwiss.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. The database URL should be set via
environment variables or .env file in any shared deployment.

Usage:
    from draftswiss.config import settings
    print(settings.database_url)
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///./draftswiss.db",
        description="SQLAlchemy connection URL (PostgreSQL in production)",
    )

    # Pool settings only apply to server databases, SQLite ignores them
    db_pool_size: int = Field(
        default=5,
        description="Number of connections to keep in the pool",
    )
    db_max_overflow: int = Field(
        default=10,
        description="Max additional connections beyond pool_size",
    )

    # ==========================================================================
    # Tournament Defaults
    # ==========================================================================

    default_max_rounds: int = Field(
        default=3,
        description="Number of Swiss rounds when setup does not specify one",
    )
    default_round_duration_minutes: int = Field(
        default=50,
        description="Round clock length when setup does not specify one",
    )
    min_win_percentage: float = Field(
        default=1 / 3,
        description="Floor applied to match and game win percentages",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )
    api_port: int = Field(
        default=8000,
        description="Port for the API server",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("min_win_percentage")
    @classmethod
    def validate_min_win_percentage(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("min_win_percentage must be between 0 and 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
