"""Core module with logging, middleware, and exception handling."""

from kwilt_mcp.core.exceptions import setup_exception_handlers
from kwilt_mcp.core.logging import get_logger, setup_logging
from kwilt_mcp.core.middleware import RequestContextMiddleware, mcp_cors_headers

__all__ = [
    "get_logger",
    "setup_logging",
    "RequestContextMiddleware",
    "mcp_cors_headers",
    "setup_exception_handlers",
]
