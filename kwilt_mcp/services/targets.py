"""Execution target registry (read-only)."""

from __future__ import annotations

from typing import Any, Optional

from kwilt_mcp.core.exceptions import NotFoundError
from kwilt_mcp.core.time import isoformat
from kwilt_mcp.db.models import ExecutionTarget
from kwilt_mcp.repositories import ExecutionTargetRepository

DEFAULT_TARGET_LIMIT = 50
MAX_TARGET_LIMIT = 200


def _serialize_target(target: ExecutionTarget) -> dict[str, Any]:
    return {
        "id": target.id,
        "kind": target.kind,
        "display_name": target.display_name,
        "is_enabled": bool(target.is_enabled),
        "config": target.config or {},
        "requirements": target.requirements or {},
        "playbook": target.playbook or {},
        "definition_id": target.definition_id,
        "created_at": isoformat(target.created_at),
        "updated_at": isoformat(target.updated_at),
    }


def list_execution_targets(
    repo: ExecutionTargetRepository,
    kind: Optional[str] = None,
    limit: int = DEFAULT_TARGET_LIMIT,
) -> list[dict[str, Any]]:
    return [_serialize_target(t) for t in repo.list_enabled(kind=kind, limit=limit)]


def get_repo_context(repo: ExecutionTargetRepository, execution_target_id: str) -> dict[str, Any]:
    """Config, requirements and playbook for one of the owner's targets."""
    target = repo.get(execution_target_id)
    if target is None:
        raise NotFoundError("Execution target not found")
    return {
        "id": target.id,
        "kind": target.kind,
        "display_name": target.display_name,
        "config": target.config or {},
        "requirements": target.requirements or {},
        "playbook": target.playbook or {},
    }
