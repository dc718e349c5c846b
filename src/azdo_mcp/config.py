"""Configuration management for the Azure DevOps MCP server."""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Server settings, read from ``AZDO_*`` environment variables or ``.env``."""

    # Default scope applied when a tool call omits organization/project
    organization: Optional[str] = None
    project: Optional[str] = None

    # Authentication: access_token (Bearer) wins over pat (Basic)
    pat: Optional[str] = None
    access_token: Optional[str] = None

    base_url: str = "https://dev.azure.com"
    vssps_url: str = "https://app.vssps.visualstudio.com"
    timeout: float = 30.0  # seconds

    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="AZDO_", env_file=".env", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
