"""Minimal HTTP client for a Kwilt MCP endpoint.

Used to check an executor's configuration (URL + PAT) end to end: the
same calls an executor makes, with errors reduced to one readable line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

DEFAULT_TIMEOUT_SECONDS = 10.0
_MAX_ERROR_TEXT = 300


class McpClientError(RuntimeError):
    """Transport or JSON-RPC failure reported by the server."""


@dataclass
class ConnectionCheck:
    ok: bool
    message: str
    tools: list[str] = field(default_factory=list)


class KwiltMcpClient:
    def __init__(
        self,
        endpoint_url: str,
        token: str,
        *,
        http: Optional[httpx.Client] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.endpoint_url = endpoint_url
        self.token = token
        self._http = http or httpx.Client(timeout=httpx.Timeout(timeout))
        self._owns_http = http is None
        self._id = 0

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "KwiltMcpClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _next_id(self) -> int:
        self._id += 1
        return self._id

    @staticmethod
    def _error_message(res: httpx.Response) -> str:
        try:
            payload = res.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            error = payload.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        text = res.text.strip()
        if text:
            return text[:_MAX_ERROR_TEXT]
        return f"HTTP {res.status_code}"

    def _rpc(self, method: str, params: Optional[dict[str, Any]] = None) -> Any:
        body: dict[str, Any] = {"jsonrpc": "2.0", "id": self._next_id(), "method": method}
        if params is not None:
            body["params"] = params
        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            res = self._http.post(self.endpoint_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise McpClientError(str(exc) or "Network error") from exc

        if res.status_code >= 400:
            raise McpClientError(self._error_message(res))
        try:
            payload = res.json()
        except ValueError as exc:
            raise McpClientError(self._error_message(res)) from exc
        error = payload.get("error") if isinstance(payload, dict) else None
        if error:
            message = error.get("message") if isinstance(error, dict) else None
            raise McpClientError(str(message or "MCP error"))
        return payload.get("result") if isinstance(payload, dict) else None

    def initialize(self) -> dict[str, Any]:
        return self._rpc(
            "initialize",
            {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "clientInfo": {"name": "kwilt-mcp-client", "version": "0.1.0"},
            },
        ) or {}

    def tools_list(self) -> list[dict[str, Any]]:
        result = self._rpc("tools/list", {}) or {}
        tools = result.get("tools")
        return tools if isinstance(tools, list) else []

    def tools_call(self, name: str, arguments: Optional[dict[str, Any]] = None) -> Any:
        """Call a tool and unwrap its single ``json`` content part."""
        result = self._rpc("tools/call", {"name": name, "arguments": arguments or {}}) or {}
        for part in result.get("content") or []:
            if isinstance(part, dict) and part.get("type") == "json":
                return part.get("json")
        return None

    def test_connection(self) -> ConnectionCheck:
        """Initialize, then list tools; never raises."""
        if not (self.endpoint_url or "").strip():
            return ConnectionCheck(ok=False, message="Missing MCP URL.")
        if not (self.token or "").strip():
            return ConnectionCheck(ok=False, message="Missing token.")

        try:
            self.initialize()
            tools = [str(t.get("name")) for t in self.tools_list() if isinstance(t, dict) and t.get("name")]
        except McpClientError as exc:
            return ConnectionCheck(ok=False, message=str(exc))

        if not tools:
            return ConnectionCheck(ok=False, message="Connected, but no tools were returned.")
        return ConnectionCheck(ok=True, tools=tools, message=f"Connected. {len(tools)} tools available.")
