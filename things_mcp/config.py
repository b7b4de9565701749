from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration for the Things MCP server.

    All values are loaded from environment variables with `THINGS_MCP_` prefix.
    A `.env` file in the working directory is read during development.
    """

    model_config = SettingsConfigDict(
        env_prefix="THINGS_MCP_",
        env_file=".env",
        extra="ignore",
    )

    # General
    env: str = "dev"
    transport: Literal["stdio", "http"] = "stdio"
    server_host: str = "127.0.0.1"
    server_port: int = 8000
    log_level: str = "INFO"

    # Dispatch
    tool_call_timeout_seconds: float = Field(default=300.0, gt=0)

    # Things automation
    things_auth_token: Optional[str] = None
    osascript_path: str = "osascript"
    open_path: str = "open"
    script_timeout_seconds: float = Field(default=30.0, gt=0)


class RuntimeContext(BaseModel):
    """
    Process-wide runtime context for the MCP server.

    This is created once in `main.py` and passed down where needed.
    """

    settings: Settings
    server_name: str = "things-mcp"
    server_version: str = "1.0.0"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache settings from environment."""
    return Settings()
