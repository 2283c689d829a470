"""Application settings using Pydantic BaseSettings."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get absolute path to default SQLite database."""
    config_dir = os.path.dirname(os.path.abspath(__file__))
    package_dir = os.path.dirname(config_dir)
    db_path = os.path.join(package_dir, "data", "kwilt_mcp.db")
    return f"sqlite:///{db_path}"


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    environment: str = Field(default="development")
    # Bind to 127.0.0.1 by default. Use 0.0.0.0 only in containers.
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)

    # Database
    database_url: str = Field(default_factory=_get_default_db_path)
    database_url_postgres: str = Field(default="")
    # Create tables on startup instead of running alembic (dev/test only)
    auto_create_tables: bool = Field(default=False)

    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL (Postgres takes precedence if set)."""
        return self.database_url_postgres or self.database_url

    # MCP server identity
    mcp_server_name: str = Field(default="kwilt-mcp")
    mcp_server_version: str = Field(default="0.1.0")
    mcp_protocol_version: str = Field(default="2024-11-05")
    # Tool names are published as "<namespace>.<tool>"
    tool_namespace: str = Field(default="kwilt")

    # CORS (the MCP endpoint always answers with Allow-Origin: *)
    cors_allow_headers: str = Field(
        default="authorization, x-client-info, apikey, content-type, x-kwilt-install-id, x-kwilt-client",
        description="Comma-separated request headers accepted on preflight.",
    )

    @property
    def cors_allow_headers_list(self) -> List[str]:
        """Parse allowed CORS headers from comma-separated string."""
        if not self.cors_allow_headers:
            return []
        return [h.strip() for h in self.cors_allow_headers.split(",") if h.strip()]

    @property
    def tool_prefix(self) -> str:
        return f"{self.tool_namespace}." if self.tool_namespace else ""

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_prod_like(self) -> bool:
        """Check if running in production or staging mode."""
        return self.environment in {"production", "staging"}

    @property
    def docs_url(self) -> str | None:
        """Return docs URL if not in prod-like environment, else None."""
        return None if self.is_prod_like else "/docs"

    @property
    def openapi_url(self) -> str | None:
        return None if self.is_prod_like else "/openapi.json"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        vv = (v or "").strip().lower()
        if vv not in {"development", "staging", "production", "test"}:
            raise ValueError("ENVIRONMENT must be one of: development, staging, production, test")
        return vv

    @field_validator("tool_namespace")
    @classmethod
    def validate_tool_namespace(cls, v: str) -> str:
        vv = (v or "").strip()
        if "." in vv:
            raise ValueError("TOOL_NAMESPACE must not contain '.'")
        return vv


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
