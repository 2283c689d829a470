"""
Kwilt MCP server application.

FastAPI application exposing the task-handoff JSON-RPC endpoint with
structured logging and error handling.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI

from kwilt_mcp.api import health_router, mcp_router
from kwilt_mcp.config import get_settings
from kwilt_mcp.core import (
    RequestContextMiddleware,
    get_logger,
    setup_exception_handlers,
    setup_logging,
)
from kwilt_mcp.db import Base, dispose_engine, get_engine, verify_database_connection

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = get_settings()

    # Startup
    setup_logging(
        level=settings.log_level,
        json_output=not settings.debug,
        log_file=settings.log_file or None,
    )
    logger.info(
        "Starting Kwilt MCP server",
        data={
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
            "environment": settings.environment,
            "tool_prefix": settings.tool_prefix,
        },
    )

    # Verify database connectivity (does NOT run migrations)
    if verify_database_connection():
        logger.info("Database connection verified")
        if settings.auto_create_tables:
            Base.metadata.create_all(bind=get_engine())
            logger.info("Database tables ensured")
    else:
        logger.warning(
            "Database connection failed - run 'alembic upgrade head' to initialize"
        )

    if settings.is_production and settings.debug:
        logger.warning("DEBUG is enabled in production - disable it")

    _app.state.start_time = datetime.now(UTC)

    yield

    # Shutdown
    logger.info("Shutting down Kwilt MCP server")
    dispose_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Kwilt MCP",
        description="Task handoff server for external coding executors (JSON-RPC over HTTP)",
        version=settings.mcp_server_version,
        lifespan=lifespan,
        docs_url=settings.docs_url,
        redoc_url=None,
        openapi_url=settings.openapi_url,
    )

    # Setup exception handlers (must be before middleware)
    setup_exception_handlers(app)

    # Request context (inject request ID, log requests)
    app.add_middleware(RequestContextMiddleware)

    # Register routers
    app.include_router(health_router)
    app.include_router(mcp_router)

    return app


# Create application instance
app = create_app()
