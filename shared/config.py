"""
Shared configuration management for the Game Store Gateway.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment name")
    log_level: str = Field(default="info", description="Root log level")

    # External services
    supabase_url: str = Field(
        default="http://localhost:54321",
        description="Base URL of the auth and relational store APIs"
    )
    supabase_service_role_key: str = Field(
        default="",
        description="Privileged service credential for the store"
    )

    # HTTP
    cors_origin: str = Field(default="*", description="Allowed CORS origin(s), comma separated")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "gateway"
    port: int = 5000
    host: str = "0.0.0.0"

    @property
    def cors_origins(self) -> List[str]:
        """Split the configured CORS origin value into a list."""
        origins = [origin.strip() for origin in self.cors_origin.split(",")]
        return [origin for origin in origins if origin] or ["*"]


def get_config(service_name: str) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name)
