"""Execution target repository (read-only)."""

from __future__ import annotations

from typing import Optional

from kwilt_mcp.db.models import ExecutionTarget
from kwilt_mcp.repositories.base import OwnerScopedRepository


class ExecutionTargetRepository(OwnerScopedRepository):
    def get(self, execution_target_id: str) -> Optional[ExecutionTarget]:
        return (
            self._query(ExecutionTarget)
            .filter(ExecutionTarget.id == execution_target_id)
            .first()
        )

    def list_enabled(self, kind: Optional[str] = None, limit: int = 50) -> list[ExecutionTarget]:
        """Enabled targets, newest-created first."""
        query = self._query(ExecutionTarget).filter(ExecutionTarget.is_enabled.is_(True))
        if kind:
            query = query.filter(ExecutionTarget.kind == kind)
        return (
            query.order_by(ExecutionTarget.created_at.desc(), ExecutionTarget.id.desc())
            .limit(limit)
            .all()
        )
