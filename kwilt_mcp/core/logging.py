"""Structured logging configuration for the Kwilt MCP server."""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Dict, Optional, Set

# Context variable for request-scoped data
request_context: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})

# Keys whose values are credentials and must never reach a log sink
SENSITIVE_KEYS: Set[str] = {
    "authorization",
    "apikey",
    "x-api-key",
    "token",
    "token_hash",
    "pat",
}

_BEARER_PREFIX = "bearer "


def _is_token_like(value: str) -> bool:
    """Check if a string looks like an opaque credential."""
    if len(value) < 24 or " " in value:
        return False
    return value.replace("-", "").replace("_", "").isalnum()


def _redact_value(value: Any) -> str:
    """Mask a credential, keeping only enough to correlate log lines."""
    if not isinstance(value, str):
        return "[REDACTED]"
    secret = value
    scheme = ""
    if value.lower().startswith(_BEARER_PREFIX):
        scheme, secret = value[: len(_BEARER_PREFIX)], value[len(_BEARER_PREFIX):].strip()
    if len(secret) < 12:
        return f"{scheme}<REDACTED>"
    return f"{scheme}{secret[:3]}***{secret[-3:]}"


def redact_sensitive_data(data: Any) -> Any:
    """Recursively redact credentials from dictionaries, lists, or strings.

    Redacts:
    - Authorization / apikey header values (bearer scheme is kept)
    - Token and token hash fields
    - Free-standing strings that look like opaque tokens
    """
    if isinstance(data, dict):
        redacted = {}
        for key, value in data.items():
            if isinstance(key, str) and key.lower() in SENSITIVE_KEYS:
                redacted[key] = _redact_value(value)
            else:
                redacted[key] = redact_sensitive_data(value)
        return redacted
    if isinstance(data, list):
        return [redact_sensitive_data(item) for item in data]
    if isinstance(data, str) and _is_token_like(data):
        return _redact_value(data)
    return data


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = request_context.get()
        if ctx:
            log_data["request_id"] = ctx.get("request_id")
            log_data["path"] = ctx.get("path")
            if ctx.get("owner_id"):
                log_data["owner_id"] = ctx.get("owner_id")

        if hasattr(record, "data") and record.data:
            log_data["data"] = redact_sensitive_data(record.data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable formatter for console output."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        """Format log record for console."""
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")

        ctx = request_context.get()
        request_id = ctx.get("request_id", "-")[:8] if ctx else "-"

        message = f"{timestamp} | {color}{record.levelname:8}{self.RESET} | {request_id} | {record.name} | {record.getMessage()}"

        if hasattr(record, "data") and record.data:
            message += f" | {redact_sensitive_data(record.data)}"

        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that accepts a ``data=`` payload."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        if "data" in kwargs:
            extra["data"] = kwargs.pop("data")
        kwargs["extra"] = extra
        return msg, kwargs


_loggers: Dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    """Get a context-aware logger."""
    if name not in _loggers:
        logger = logging.getLogger(name)
        _loggers[name] = ContextLogger(logger, {})
    return _loggers[name]


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure application logging."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    if json_output:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(ConsoleFormatter())
    root_logger.addHandler(console_handler)

    # File handler (always JSON)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    # Quiet noisy loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
