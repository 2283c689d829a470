"""JSON-RPC 2.0 dispatch for the MCP endpoint.

``handle_rpc`` receives an already authenticated owner and the decoded
request body and always returns a JSON-RPC envelope. Failures below the
transport layer never change the HTTP status; executors inspect
``error`` instead.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from sqlalchemy.orm import Session as DBSession

from kwilt_mcp.auth import PatOwner
from kwilt_mcp.config import Settings, get_settings
from kwilt_mcp.core.coerce import as_string
from kwilt_mcp.core.exceptions import (
    InvalidParamsError,
    InvalidRequestError,
    JsonRpcError,
    MethodNotFoundError,
)
from kwilt_mcp.core.logging import get_logger
from kwilt_mcp.mcp.tools import ToolContext, resolve_tool, tool_catalog
from kwilt_mcp.services.audit_service import record_tool_call

logger = get_logger(__name__)

JSONRPC_VERSION = "2.0"
SERVER_ERROR_CODE = 500

RequestId = Optional[Union[str, int, float]]


def parse_request_id(body: Any) -> RequestId:
    """Echo string or numeric ids only; anything else becomes null."""
    if not isinstance(body, dict):
        return None
    raw = body.get("id")
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (str, int, float)):
        return raw
    return None


def rpc_result(request_id: RequestId, result: Any) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def rpc_error(request_id: RequestId, error: JsonRpcError) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error.to_dict()}


def tool_content(payload: Any) -> dict[str, Any]:
    """Wrap a tool payload as a single MCP ``json`` content part."""
    return {"content": [{"type": "json", "json": payload}]}


def server_error(exc: Exception) -> JsonRpcError:
    """Surface an unexpected failure with its raw message."""
    return JsonRpcError(str(exc) or "Server error", code=SERVER_ERROR_CODE)


def _initialize_result(settings: Settings) -> dict[str, Any]:
    return {
        "protocolVersion": settings.mcp_protocol_version,
        "serverInfo": {
            "name": settings.mcp_server_name,
            "version": settings.mcp_server_version,
        },
        "capabilities": {"tools": {}},
    }


def _call_tool(
    db: DBSession,
    owner: PatOwner,
    params: dict[str, Any],
    settings: Settings,
) -> dict[str, Any]:
    """Run one ``tools/call`` and write exactly one audit row for it."""
    name = as_string(params.get("name"))
    ctx = ToolContext(db, owner.owner_id)

    try:
        if not name:
            raise InvalidParamsError("Missing tool name")
        spec = resolve_tool(name, settings.tool_prefix)
        if spec is None:
            raise MethodNotFoundError(f"Tool not found: {name}")

        args = spec.arguments.parse(params.get("arguments"))
        return tool_content(spec.handler(ctx, args))
    except JsonRpcError as exc:
        db.rollback()
        ctx.summary = f"error={exc.message}"
        logger.info(
            f"Tool call rejected: {exc.message}",
            data={"tool": name, "code": exc.code},
        )
        raise
    except Exception as exc:
        db.rollback()
        error = server_error(exc)
        ctx.summary = f"error={error.message}"
        logger.error(
            f"Tool call failed: {type(exc).__name__}: {exc}",
            data={"tool": name},
            exc_info=True,
        )
        raise error from exc
    finally:
        record_tool_call(
            db,
            owner_id=owner.owner_id,
            tool_name=name or "tools/call",
            execution_target_id=ctx.execution_target_id,
            activity_id=ctx.activity_id,
            summary=ctx.summary,
        )


def handle_rpc(
    db: DBSession,
    owner: PatOwner,
    body: Any,
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """Route one JSON-RPC request and build its response envelope."""
    settings = settings or get_settings()
    request_id = parse_request_id(body)
    method = as_string(body.get("method")) if isinstance(body, dict) else None
    if not method:
        return rpc_error(request_id, InvalidRequestError())

    params = body.get("params")
    if not isinstance(params, dict):
        params = {}

    try:
        if method == "initialize":
            record_tool_call(db, owner_id=owner.owner_id, tool_name=method)
            return rpc_result(request_id, _initialize_result(settings))

        if method == "tools/list":
            tools = tool_catalog(settings.tool_prefix)
            record_tool_call(
                db,
                owner_id=owner.owner_id,
                tool_name=method,
                summary=f"count={len(tools)}",
            )
            return rpc_result(request_id, {"tools": tools})

        if method == "tools/call":
            return rpc_result(request_id, _call_tool(db, owner, params, settings))

        raise MethodNotFoundError(f"Method not found: {method}")
    except JsonRpcError as exc:
        return rpc_error(request_id, exc)
