"""MCP audit logging service.

One row per tool invocation, written after the outcome is known. Writes
are best-effort: a failure is logged and rolled back but never changes the
response the executor receives. The ledger, by contrast, is durable and
its failures do propagate.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session as DBSession

from kwilt_mcp.core.coerce import truncate
from kwilt_mcp.core.logging import get_logger
from kwilt_mcp.db.models import McpAuditLog

logger = get_logger(__name__)

MAX_SUMMARY_CHARS = 200


def record_tool_call(
    db: Optional[DBSession],
    *,
    owner_id: str,
    tool_name: str,
    execution_target_id: Optional[str] = None,
    activity_id: Optional[str] = None,
    summary: Optional[str] = None,
) -> None:
    """Persist an audit entry for a tool call.

    This should never fail the request path.
    """
    if db is None:
        return

    try:
        entry = McpAuditLog(
            owner_id=owner_id,
            tool_name=tool_name,
            execution_target_id=execution_target_id,
            activity_id=activity_id,
            summary=truncate(summary, MAX_SUMMARY_CHARS) if summary else None,
        )
        db.add(entry)
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.warning(
            "Audit write failed",
            data={"tool_name": tool_name, "error": str(exc)},
        )
