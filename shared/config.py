"""
Shared configuration management for the media catalog cache layer.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CATALOG_",
        env_file=".env",
        case_sensitive=False,
        extra="allow",
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Stable catalog metadata and search results
    api_cache_max_entries: int = Field(default=200, ge=1)
    api_cache_ttl: float = Field(default=15 * 60, ge=0)

    # Per-user data (library items, profile)
    user_cache_max_entries: int = Field(default=50, ge=1)
    user_cache_ttl: float = Field(default=5 * 60, ge=0)

    # Lists change often
    list_cache_max_entries: int = Field(default=100, ge=1)
    list_cache_ttl: float = Field(default=2 * 60, ge=0)

    cache_schema_version: str = "2.0.0"

    # Asset preloading
    asset_load_timeout: float = Field(default=10.0, gt=0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
