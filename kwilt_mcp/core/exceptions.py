"""Error taxonomy and FastAPI exception handlers.

Two failure shapes exist on the wire and both are part of the contract:

* Transport errors (auth, method, availability) carry a real HTTP status
  and a plain ``{"error": {"message", "code"}}`` body.
* JSON-RPC errors (malformed envelope, unknown tool, bad params, business
  failures) are returned with HTTP 200 inside the JSON-RPC envelope.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from kwilt_mcp.core.logging import get_logger
from kwilt_mcp.core.middleware import mcp_cors_headers

logger = get_logger(__name__)


class KwiltMcpException(Exception):
    """Base transport-level exception (rendered with a real HTTP status)."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        code: str = "internal_error",
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class AuthenticationError(KwiltMcpException):
    """Missing, unknown, or revoked bearer token."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, code="unauthorized")


class MethodNotAllowedError(KwiltMcpException):
    def __init__(self, message: str = "Method not allowed"):
        super().__init__(
            message, status_code=status.HTTP_405_METHOD_NOT_ALLOWED, code="method_not_allowed"
        )


class ServiceUnavailableError(KwiltMcpException):
    """Backing storage is not configured or not reachable."""

    def __init__(self, message: str = "Service unavailable"):
        super().__init__(
            message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, code="provider_unavailable"
        )


class JsonRpcError(Exception):
    """Failure reported inside the JSON-RPC envelope (HTTP 200)."""

    code: int = -32603

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        self.message = message
        if code is not None:
            self.code = code
        self.data = data
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class InvalidRequestError(JsonRpcError):
    code = -32600

    def __init__(self, message: str = "Invalid Request"):
        super().__init__(message)


class MethodNotFoundError(JsonRpcError):
    """Unknown JSON-RPC method or unknown tool name."""

    code = -32601


class InvalidParamsError(JsonRpcError):
    code = -32602


class NotFoundError(JsonRpcError):
    """Entity missing, not owned by the caller, or not handed off.

    All three cases share this error so that another owner's data can
    never be confirmed to exist.
    """

    code = 404


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(KwiltMcpException)
    async def transport_exception_handler(
        request: Request, exc: KwiltMcpException
    ) -> JSONResponse:
        logger.warning(
            f"Transport error: {exc.message}",
            data={"status_code": exc.status_code, "code": exc.code},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": {"message": exc.message, "code": exc.code}},
            headers=mcp_cors_headers(),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": {"message": "Internal server error", "code": "internal_error"}},
            headers=mcp_cors_headers(),
        )
