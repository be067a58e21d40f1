"""
Shared configuration management for the ReBAC authorization core.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="REBAC_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Tuple store backend
    openfga_url: str = Field(default="http://localhost:8080")
    openfga_store_name: str = Field(default="openobserve")
    openfga_store_id: str = Field(default="")
    openfga_model_id: Optional[str] = Field(default=None)
    request_timeout_seconds: float = Field(default=30.0)
    read_page_size: int = Field(default=100)
    bootstrap_batch_size: int = Field(default=50)

    # Authorization behaviour
    rbac_enabled: bool = Field(default=True)
    list_only_permitted: bool = Field(default=True)

    # Bootstrap data
    default_org: str = Field(default="default")
    meta_org: str = Field(default="_meta")
    root_user_email: str = Field(default="root@example.com")

    # Deployment
    cloud_deployment: bool = Field(default=False)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str

    def __init__(self, service_name: str, **kwargs):
        super().__init__(service_name=service_name, **kwargs)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
