"""Configuration models for the application."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class EventlyConfig(BaseSettings):
    """
    Main configuration for the Evently application.

    Every field is read from the environment variable of the same name
    (``DATABASE_URL``, ``REDIS_URL``, ...) or from ``.env``.
    """

    # Storage
    database_url: Optional[str] = Field(default=None, description="PostgreSQL connection URL")
    db_pool_size: int = Field(default=10, description="Maximum pool connections")
    db_pool_timeout: float = Field(default=30.0, description="Connect timeout in seconds")

    # Read cache (disabled when no URL is configured)
    redis_url: Optional[str] = Field(default=None, description="Redis URL for the read cache")
    redis_pool_size: int = Field(default=10)
    cache_ttl_seconds: int = Field(default=300)

    log_level: str = Field(default="INFO")

    class Config:
        """Pydantic config."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"

    @property
    def cache_enabled(self) -> bool:
        """Whether a Redis read cache is configured."""
        return bool(self.redis_url)
