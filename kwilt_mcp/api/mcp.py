"""
MCP HTTP endpoint.

A single POST route carrying JSON-RPC 2.0. Transport checks run in a fixed
order (preflight, method, storage, auth, body) so an unauthenticated
caller never reaches the dispatcher and every rejection has a stable
shape.
"""

import json
import math
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from kwilt_mcp.auth import require_pat_owner
from kwilt_mcp.config import get_settings
from kwilt_mcp.core.exceptions import MethodNotAllowedError, ServiceUnavailableError
from kwilt_mcp.core.logging import get_logger
from kwilt_mcp.core.middleware import mcp_cors_headers
from kwilt_mcp.db.database import get_session_local
from kwilt_mcp.mcp import handle_rpc

logger = get_logger(__name__)

router = APIRouter(tags=["mcp"])

_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def _finite_float(literal: str) -> float:
    value = float(literal)
    if not math.isfinite(value):
        raise ValueError(f"Number out of range: {literal}")
    return value


def _decode_body(raw: bytes) -> Any:
    """Parse the request body; anything unparseable becomes None.

    NaN, Infinity and overflowing numbers are rejected since they cannot
    be echoed back as JSON. Nesting deep enough to exhaust the decoder counts as unparseable.
    """
    if not raw:
        return None
    try:
        return json.loads(raw, parse_constant=_reject_constant, parse_float=_finite_float)
    except (ValueError, RecursionError):
        return None


def _serve(request: Request, raw: bytes) -> dict[str, Any]:
    db = get_session_local()()
    try:
        owner = require_pat_owner(request, db)
        return handle_rpc(db, owner, _decode_body(raw))
    finally:
        db.close()


@router.api_route("/mcp", methods=_ALL_METHODS, include_in_schema=False)
async def mcp_endpoint(request: Request) -> Response:
    """JSON-RPC entry point for executors."""
    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=mcp_cors_headers())
    if request.method != "POST":
        raise MethodNotAllowedError()

    settings = get_settings()
    if not settings.effective_database_url:
        raise ServiceUnavailableError()

    raw = await request.body()
    payload = await run_in_threadpool(_serve, request, raw)
    return JSONResponse(status_code=200, content=payload, headers=mcp_cors_headers())
