"""
Shared configuration management for the Cryptofolio market data gateway.
"""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CRYPTOFOLIO_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Market data provider
    coingecko_base_url: str = Field(default="https://api.coingecko.com/api/v3")
    coingecko_api_key: Optional[str] = Field(default=None)
    vs_currency: str = Field(default="usd")
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Cache and pacing
    cache_ttl_seconds: float = Field(default=300.0, gt=0)
    min_request_interval_seconds: float = Field(default=1.0, ge=0)

    # Holdings persistence
    holdings_file: Path = Field(default=Path.home() / ".cryptofolio" / "holdings.json")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str = "market-gateway"


def get_config(service_name: str = "market-gateway", **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, **overrides)
