"""Configuration management for the Huly MCP server."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env" if os.getenv("ENVIRONMENT") != "test" else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_name: str = "huly-mcp-server"
    debug: bool = Field(default=False)
    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Huly connection
    huly_url: str = Field(default="http://huly.local:8087")
    huly_email: Optional[str] = Field(default=None)
    huly_password: Optional[str] = Field(default=None)
    huly_workspace: Optional[str] = Field(default=None)
    huly_timeout: float = Field(
        default=30.0,
        description="Per-request timeout in seconds for store calls",
    )

    # Metrics
    huly_metrics_port: Optional[int] = Field(
        default=None,
        description="Serve Prometheus metrics on this port when set",
    )

    @field_validator("huly_url", mode="before")
    @classmethod
    def validate_huly_url(cls, v):
        url = str(v).strip()
        return url.rstrip("/")

    @field_validator("huly_email", "huly_password", "huly_workspace", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def missing_credentials(self) -> List[str]:
        """Names of required environment variables that are not set."""
        missing = []
        if not self.huly_email:
            missing.append("HULY_EMAIL")
        if not self.huly_password:
            missing.append("HULY_PASSWORD")
        if not self.huly_workspace:
            missing.append("HULY_WORKSPACE")
        return missing

    def ensure_credentials(self) -> None:
        """Raise ConfigurationError unless credentials and workspace are set."""
        missing = self.missing_credentials()
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

    def get_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level.upper()


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
