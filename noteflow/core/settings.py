"""Application settings loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_local_store_uri() -> str:
    """Place the client-local SQLite file under the user's home directory."""
    path = Path.home() / ".noteflow" / "local.db"
    return f"sqlite+aiosqlite:///{path}"


class Settings(BaseSettings):
    """Runtime settings for the client."""

    # Remote operation service
    backend_url: str = Field(default="http://127.0.0.1:3030")
    backend_token: str = Field(default="")
    # Client-local store (mcp_auto_start / mcp_port live here, not in save_config)
    local_store_uri: str = Field(default_factory=_default_local_store_uri)
    # Status polling periods, seconds
    mcp_poll_interval: float = Field(default=5.0, gt=0)
    api_poll_interval: float = Field(default=2.0, gt=0)
    default_mcp_port: int = Field(default=8001)
    default_api_port: int = Field(default=8080)
    locale: str = Field(default="en")
    log_level: str = Field(default="INFO")
    service_name: str = Field(default="noteflow")
    environment: str = Field(default="development")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NOTEFLOW_",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Return application settings instance."""
    return Settings()


__all__ = ["Settings", "get_settings"]
