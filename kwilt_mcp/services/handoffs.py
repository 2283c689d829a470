"""Task handoff state machine.

Statuses: READY -> IN_PROGRESS <-> BLOCKED -> DONE. BLOCKED carries a
non-empty reason; any other status clears it. DONE is not terminal and no
version check guards concurrent writers (last write wins).

The same task id may be handed off to several execution targets. Lookups
that omit ``execution_target_id`` must therefore detect more than one
match and refuse to pick one.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Sequence

from kwilt_mcp.core.exceptions import InvalidParamsError, NotFoundError
from kwilt_mcp.core.logging import get_logger
from kwilt_mcp.core.time import isoformat
from kwilt_mcp.db.models import ActivityHandoff
from kwilt_mcp.repositories import ActivityRepository, HandoffRepository
from kwilt_mcp.services.work_packet import build_work_packet

logger = get_logger(__name__)

DEFAULT_TASK_LIMIT = 20
MAX_TASK_LIMIT = 100

TASK_NOT_FOUND = "Task not found"
TASK_NOT_FOUND_FOR_TARGET = "Task not found for execution target"
TASK_AMBIGUOUS = "Task handed off to multiple execution targets; specify execution_target_id"


class TaskStatus(str, Enum):
    """Executor queue status of a handed-off task."""
    READY = "READY"
    IN_PROGRESS = "IN_PROGRESS"
    BLOCKED = "BLOCKED"
    DONE = "DONE"


OPEN_STATUSES = [TaskStatus.READY.value, TaskStatus.IN_PROGRESS.value, TaskStatus.BLOCKED.value]


def parse_status(value: Optional[str]) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise InvalidParamsError("Invalid status") from None


def resolve_handoff(
    repo: HandoffRepository,
    task_id: str,
    execution_target_id: Optional[str] = None,
) -> ActivityHandoff:
    """Find the single handed-off row a task id refers to.

    Raises:
        NotFoundError: no visible row, or more than one when no target
            was given.
    """
    if execution_target_id:
        handoff = repo.get_for_target(task_id, execution_target_id)
        if handoff is None:
            raise NotFoundError(TASK_NOT_FOUND_FOR_TARGET)
        return handoff

    matches = repo.find_by_activity(task_id, limit=2)
    if not matches:
        raise NotFoundError(TASK_NOT_FOUND)
    if len(matches) > 1:
        logger.info("Ambiguous task lookup", data={"task_id": task_id})
        raise NotFoundError(TASK_AMBIGUOUS)
    return matches[0]


def list_tasks(
    repo: HandoffRepository,
    execution_target_id: str,
    statuses: Optional[Sequence[str]] = None,
    limit: int = DEFAULT_TASK_LIMIT,
) -> list[dict[str, Any]]:
    """Queue view for one target, stale work first."""
    rows = repo.list_for_target(
        execution_target_id,
        OPEN_STATUSES if statuses is None else statuses,
        limit,
    )
    return [
        {
            "task_id": str(row.activity_id),
            "execution_target_id": row.execution_target_id,
            "status": str(row.status or TaskStatus.READY.value),
            "handed_off": bool(row.handed_off),
            "handed_off_at": isoformat(row.handed_off_at),
            "updated_at": isoformat(row.updated_at),
            "created_at": isoformat(row.created_at),
        }
        for row in rows
    ]


def get_task(
    handoffs: HandoffRepository,
    activities: ActivityRepository,
    task_id: str,
    execution_target_id: Optional[str] = None,
) -> tuple[ActivityHandoff, dict[str, Any]]:
    """Resolve a task and build its Work Packet."""
    handoff = resolve_handoff(handoffs, task_id, execution_target_id)
    return handoff, build_work_packet(handoff, activities.get_data(task_id))


def set_status(
    repo: HandoffRepository,
    task_id: str,
    status: TaskStatus,
    reason: Optional[str] = None,
    execution_target_id: Optional[str] = None,
) -> ActivityHandoff:
    """Move a task to ``status``; validation happens before any write."""
    if status is TaskStatus.BLOCKED and not reason:
        raise InvalidParamsError("reason is required when status is BLOCKED")

    handoff = resolve_handoff(repo, task_id, execution_target_id)
    blocked_reason = reason if status is TaskStatus.BLOCKED else None
    return repo.update_status(handoff, status.value, blocked_reason)
