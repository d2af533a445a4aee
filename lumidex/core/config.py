"""
Application configuration settings.

All configuration is loaded from environment variables with sensible defaults.
"""
import json
from typing import Any
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Lumidex"
    api_debug: bool = True

    # API Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: list[str] = ["http://localhost:3000"]

    # Database
    postgres_host: str = "db"
    postgres_port: int = 5432
    postgres_user: str = "lumidex"
    postgres_password: str = "lumidex_password"
    postgres_db: str = "lumidex"
    database_url: str | None = None

    # Display defaults
    # Requests without an explicit currency/source fall back to these
    default_currency: str = "EUR"
    default_price_source: str = "cardmarket"

    # Exchange rates
    # Rate cache TTL is applied at read time (lazy expiry), 5 minutes by default
    rate_cache_ttl_seconds: int = 300
    rate_cache_max_size: int = 256
    cross_rate_intermediates: list[str] = ["USD", "EUR"]
    exchange_rate_api_url: str = "https://api.exchangerate-api.io/v4/latest"
    exchange_rate_base_currencies: list[str] = ["EUR", "USD"]
    external_api_timeout: int = 30

    # Batch normalization
    price_batch_concurrency: int = 20

    @field_validator(
        "cors_origins",
        "cross_rate_intermediates",
        "exchange_rate_base_currencies",
        mode="before",
    )
    @classmethod
    def parse_list(cls, v: Any) -> list[str]:
        """Parse list settings from JSON string or list."""
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def database_url_computed(self) -> str:
        """Compute database URL from components if not explicitly set."""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
