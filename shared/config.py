"""
Shared configuration management for the auth callback service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Facebook application
    facebook_app_id: Optional[str] = Field(default=None)
    facebook_secret: Optional[str] = Field(default=None)
    facebook_graph_url: str = Field(default="https://graph.facebook.com")
    facebook_graph_version: Optional[str] = Field(default=None)
    facebook_appsecret_proof: bool = Field(default=False)
    provider_timeout_seconds: float = Field(default=10.0)

    # Redirect targets
    auth_url: Optional[str] = Field(default=None)
    auth_callback_url_success: Optional[str] = Field(default=None)
    auth_callback_url_failure: Optional[str] = Field(default=None)

    # Signing
    jwt_secret: Optional[str] = Field(default=None)
    jwt_algorithm: str = Field(default="HS256")
    jwt_audience: str = Field(default="client")
    jwt_expiration_seconds: int = Field(default=86400)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)

    def missing(self, *names: str) -> list:
        """Return the names of fields that are unset or blank."""
        return [
            name for name in names
            if getattr(self, name, None) is None or not str(getattr(self, name)).strip()
        ]

    def require(self, *names: str) -> None:
        """Raise ConfigurationError unless every named field is set."""
        missing = self.missing(*names)
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                details={
                    "service": self.service_name,
                    "missing": missing,
                    "env_vars": [f"ACCESS_{name.upper()}" for name in missing]
                }
            )


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
