"""
Shared configuration management for the SkillSnap Access Layer.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="SKILLSNAP_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Security
    jwt_secret: Optional[SecretStr] = Field(
        default=None,
        validation_alias=AliasChoices("SKILLSNAP_JWT_SECRET", "JWT_KEY"),
    )
    jwt_algorithm: str = Field(default="HS256")
    token_lifetime_hours: int = Field(default=24, ge=1)

    # Read cache TTLs (seconds)
    portfolio_user_list_ttl: int = Field(default=600, gt=0)
    portfolio_user_item_ttl: int = Field(default=900, gt=0)
    project_list_ttl: int = Field(default=300, gt=0)
    project_item_ttl: int = Field(default=600, gt=0)
    skill_list_ttl: int = Field(default=300, gt=0)
    skill_item_ttl: int = Field(default=600, gt=0)

    # Demo data
    seed_demo_data: bool = Field(default=True)
    seed_admin_email: str = Field(default="admin@skillsnap.com")
    seed_admin_password: SecretStr = Field(default=SecretStr("Admin123!"))

    # CORS
    allowed_origins: List[str] = Field(default_factory=list)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
