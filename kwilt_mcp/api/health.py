"""
Health check endpoints.

Provides liveness and readiness probes for monitoring.
"""

from datetime import UTC, datetime
import os
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from kwilt_mcp.config import get_settings
from kwilt_mcp.db import verify_database_connection

router = APIRouter(tags=["health"])


def _safe_env_string(name: str) -> str:
    raw = (os.getenv(name) or "").strip()
    return raw if raw else "unknown"


@router.get("/health")
@router.get("/healthz")
async def healthcheck() -> dict[str, Any]:
    """
    Liveness probe.

    Does not touch storage; a running process is healthy.
    """
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.mcp_server_name,
        "version": settings.mcp_server_version,
        "timestamp": datetime.now(UTC).isoformat(),
        "build_sha": _safe_env_string("BUILD_SHA"),
        "environment": settings.environment,
    }


@router.get("/readyz")
async def readiness() -> JSONResponse:
    """
    Readiness probe.

    Returns 503 until the database answers, so orchestrators hold traffic
    back from an instance whose MCP endpoint would fail.
    """
    settings = get_settings()
    checks: dict[str, bool] = {
        "config": bool(settings.effective_database_url),
        "database": verify_database_connection(),
    }
    all_ready = all(checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if all_ready else "not_ready",
            "timestamp": datetime.now(UTC).isoformat(),
            "checks": checks,
        },
    )
