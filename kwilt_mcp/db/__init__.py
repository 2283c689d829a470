"""Database module for the Kwilt MCP server."""

from kwilt_mcp.db.database import (
    Base,
    dispose_engine,
    get_engine,
    get_session_local,
    verify_database_connection,
)
from kwilt_mcp.db.models import (
    Activity,
    ActivityArtifact,
    ActivityHandoff,
    ActivityProgress,
    ExecutionTarget,
    McpAuditLog,
    PersonalAccessToken,
)

__all__ = [
    # Database infrastructure
    "Base",
    "get_engine",
    "get_session_local",
    "dispose_engine",
    "verify_database_connection",
    # Credentials
    "PersonalAccessToken",
    # Executors and tasks
    "ExecutionTarget",
    "Activity",
    "ActivityHandoff",
    # Ledger
    "ActivityProgress",
    "ActivityArtifact",
    "McpAuditLog",
]
