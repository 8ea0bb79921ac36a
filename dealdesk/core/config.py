"""
Application configuration using pydantic-settings.
"""
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Allow extra fields in .env
    )

    # Application
    APP_NAME: str = "Deal Pipeline CRM"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = Field(
        default="development",
        validation_alias=AliasChoices("NODE_ENV", "APP_ENV", "ENVIRONMENT"),
    )
    PORT: int = 5000

    # CORS (only enforced in production)
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    # Database
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_NAME: str = "cms_deals"
    DATABASE_URL: Optional[str] = None

    DB_POOL_SIZE: int = Field(default=10, ge=1)
    DB_POOL_TIMEOUT: float = 30.0  # seconds waiting for a free connection
    DB_STATEMENT_TIMEOUT: float = 30.0  # seconds per statement

    # Redis
    REDIS_URL: str = Field(default="redis://localhost:6379/0")

    # Rate limiting: 100 requests per 15 minutes per client
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW: int = 900

    LOG_FILE: Optional[str] = None

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def database_url(self) -> str:
        """DSN for the async engine; DATABASE_URL wins over the DB_* parts."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        auth = self.DB_USER
        if self.DB_PASSWORD:
            auth = f"{auth}:{self.DB_PASSWORD}"
        return f"postgresql+asyncpg://{auth}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def allowed_origins(self) -> list[str]:
        return self.CORS_ORIGINS if self.is_production else ["*"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
