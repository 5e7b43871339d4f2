"""
Configuration for Crystal API.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    API configuration settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # API Server
    host: str = Field(
        default="0.0.0.0",
        description="API host",
        alias="HOST",
    )
    # Hosting platforms inject PORT
    port: int = Field(
        default=8080,
        description="API port",
        validation_alias="PORT",
    )
    debug: bool = Field(default=False, description="Enable debug mode (auto-reload)")
    service_name: str = Field(
        default="crystal-api",
        description="Service name reported by /health",
        alias="SERVICE_NAME",
    )
    allowed_origins: list[str] = Field(
        default=["*"],
        description="CORS allowed origins"
    )

    # Accumulate JSON-RPC
    accumulate_rpc_url: str = Field(
        default="https://mainnet.accumulatenetwork.io/v3",
        description="Accumulate node JSON-RPC endpoint",
        alias="ACCUMULATE_RPC_URL",
    )
    # None disables the timeout: a slow node extends request latency
    accumulate_rpc_timeout: Optional[float] = Field(
        default=None,
        description="Upstream request timeout in seconds (unset = no timeout)",
        alias="ACCUMULATE_RPC_TIMEOUT",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
