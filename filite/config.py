"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from filite.schemas.hashing import HashParams


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./filite.db")
    database_timeout: float = Field(default=30.0)  # seconds a writer waits on a locked SQLite db
    pool_size: int = Field(default=5)
    max_overflow: int = Field(default=10)

    # Identifiers
    id_length: int = Field(default=8, ge=1, le=64)
    max_allocation_attempts: int = Field(default=32, ge=1)
    allocation_timeout: float | None = Field(default=None)

    # Entries
    count_views: bool = Field(default=True)
    max_upload_bytes: int = Field(default=10_000_000)

    # Password hashing (argon2id); unset values use the algorithm defaults
    hash_length: int | None = Field(default=None)
    hash_salt_length: int | None = Field(default=None)
    hash_lanes: int | None = Field(default=None)
    hash_mem_cost: int | None = Field(default=None)  # KiB
    hash_time_cost: int | None = Field(default=None)
    hash_secret: str | None = Field(default=None)
    hash_workers: int = Field(default=2, ge=1)

    # API
    log_level: str = Field(default="INFO")
    environment: str = Field(default="development")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has durable, peppered settings."""
        if self.environment == "production":
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                raise ValueError("DATABASE_URL must be durable in production")
            if not self.hash_secret:
                raise ValueError("HASH_SECRET must be set in production")
        return self

    @property
    def hash_params(self) -> HashParams:
        """Password hashing parameters built from the hash_* settings."""
        return HashParams(
            hash_length=self.hash_length,
            salt_length=self.hash_salt_length,
            lanes=self.hash_lanes,
            mem_cost=self.hash_mem_cost,
            time_cost=self.hash_time_cost,
            secret=self.hash_secret.encode() if self.hash_secret else None,
        )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
