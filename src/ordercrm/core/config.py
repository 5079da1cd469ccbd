"""
Application configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./ordercrm.db"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ORDERCRM_",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Application Settings
    # ==========================================================================
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=False, description="Emit JSON formatted logs")

    app_name: str = Field(default="ordercrm", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")

    # ==========================================================================
    # Database Configuration
    # ==========================================================================
    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="SQLAlchemy async connection string",
    )
    db_pool_size: int = Field(default=10, description="Database connection pool size")
    db_max_overflow: int = Field(default=5, description="Max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Pool timeout in seconds")

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v: str, info) -> str:
        """Normalize driver names and refuse the local default in production."""
        if v.startswith("postgresql://"):
            v = v.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif v.startswith("sqlite:///"):
            v = v.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        environment = info.data.get("environment", "development")
        if environment == "production" and v == DEFAULT_DATABASE_URL:
            raise ValueError(
                "DATABASE_URL must be set to a production database in production. "
                "Set ORDERCRM_DATABASE_URL environment variable."
            )
        return v

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured database is SQLite."""
        return self.database_url.startswith("sqlite")

    # ==========================================================================
    # Order Identifier Sequencing
    # ==========================================================================
    order_id_prefix: str = Field(default="AM", description="Prefix of generated order ids")
    order_id_field: str = Field(default="order_id", description="Data key holding the order id")
    order_type_field: str = Field(
        default="order_type", description="Data key holding the delivery/order type"
    )
    shop_name_field: str = Field(default="shop_name", description="Data key holding the shop name")
    order_status_field: str = Field(
        default="order_status", description="Data key holding the order status"
    )

    # ==========================================================================
    # Formula Fields
    # ==========================================================================
    formula_precision: int = Field(default=2, ge=0, le=10, description="Result decimal places")
    formula_sample_number: int = Field(
        default=10, description="Preview sample value for number fields"
    )
    formula_sample_currency: int = Field(
        default=100, description="Preview sample value for currency fields"
    )
    default_currency_symbol: str = Field(default="¥", description="Fallback currency symbol")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
