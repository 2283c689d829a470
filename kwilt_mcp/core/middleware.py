"""Custom middleware and response headers for the Kwilt MCP server."""

import secrets
import time
from typing import Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from kwilt_mcp.config import get_settings
from kwilt_mcp.core.logging import get_logger, request_context

logger = get_logger(__name__)


def mcp_cors_headers() -> Dict[str, str]:
    """CORS headers attached to every MCP endpoint response.

    Executors authenticate with a bearer PAT, never cookies, so any origin
    is accepted.
    """
    settings = get_settings()
    return {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": ", ".join(settings.cors_allow_headers_list),
        "Access-Control-Allow-Methods": "POST, OPTIONS",
    }


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to inject request context for logging."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request with context."""
        request_id = request.headers.get("X-Request-ID") or secrets.token_hex(8)
        start_time = time.perf_counter()

        ctx = {
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
        token = request_context.set(ctx)

        try:
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                data={"duration_ms": round(duration_ms, 2)},
            )

            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            request_context.reset(token)
