"""Configuration module."""

from kwilt_mcp.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
