"""API routers."""

from kwilt_mcp.api.health import router as health_router
from kwilt_mcp.api.mcp import router as mcp_router

__all__ = [
    "health_router",
    "mcp_router",
]
