"""MCP tool registry.

Every tool is registered once, keyed by ``ToolName``; ``tools/list`` and
``tools/call`` both read from ``TOOLS`` so the advertised catalog and the
dispatchable set cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session as DBSession

from kwilt_mcp.core.coerce import as_string, clamp
from kwilt_mcp.core.exceptions import InvalidParamsError
from kwilt_mcp.mcp.arguments import (
    AttachArtifactArgs,
    GetRepoContextArgs,
    GetTaskArgs,
    ListExecutionTargetsArgs,
    ListTasksArgs,
    PostProgressArgs,
    SetStatusArgs,
    ToolArguments,
)
from kwilt_mcp.repositories import (
    ActivityRepository,
    ExecutionTargetRepository,
    HandoffRepository,
    LedgerRepository,
)
from kwilt_mcp.services import handoffs, ledger, targets


class ToolName(str, Enum):
    LIST_EXECUTION_TARGETS = "list_execution_targets"
    LIST_TASKS = "list_tasks"
    GET_TASK = "get_task"
    GET_REPO_CONTEXT = "get_repo_context"
    POST_PROGRESS = "post_progress"
    ATTACH_ARTIFACT = "attach_artifact"
    SET_STATUS = "set_status"


class ToolContext:
    """Per-call state: owner-scoped repositories plus audit fields.

    Handlers fill ``execution_target_id``, ``activity_id`` and ``summary``
    as soon as they know them so the audit row is useful even when the
    call fails part way.
    """

    def __init__(self, db: DBSession, owner_id: str):
        self.db = db
        self.owner_id = owner_id
        self.execution_target_id: Optional[str] = None
        self.activity_id: Optional[str] = None
        self.summary: Optional[str] = None

    @cached_property
    def targets(self) -> ExecutionTargetRepository:
        return ExecutionTargetRepository(self.db, self.owner_id)

    @cached_property
    def handoffs(self) -> HandoffRepository:
        return HandoffRepository(self.db, self.owner_id)

    @cached_property
    def activities(self) -> ActivityRepository:
        return ActivityRepository(self.db, self.owner_id)

    @cached_property
    def ledger(self) -> LedgerRepository:
        return LedgerRepository(self.db, self.owner_id)


Handler = Callable[[ToolContext, Any], Any]


@dataclass(frozen=True)
class ToolSpec:
    name: ToolName
    description: str
    input_schema: dict[str, Any]
    arguments: type[ToolArguments]
    handler: Handler

    def describe(self, prefix: str) -> dict[str, Any]:
        return {
            "name": f"{prefix}{self.name.value}",
            "description": self.description,
            "inputSchema": self.input_schema,
        }


TOOLS: dict[ToolName, ToolSpec] = {}


def tool(
    name: ToolName,
    description: str,
    input_schema: dict[str, Any],
    arguments: type[ToolArguments],
) -> Callable[[Handler], Handler]:
    """Register ``handler`` under ``name``."""

    def decorator(handler: Handler) -> Handler:
        if name in TOOLS:
            raise RuntimeError(f"Tool registered twice: {name.value}")
        TOOLS[name] = ToolSpec(name, description, input_schema, arguments, handler)
        return handler

    return decorator


def tool_catalog(prefix: str) -> list[dict[str, Any]]:
    return [TOOLS[name].describe(prefix) for name in ToolName]


def resolve_tool(name: str, prefix: str) -> Optional[ToolSpec]:
    """Look up a tool by bare or namespaced name."""
    bare = name[len(prefix):] if prefix and name.startswith(prefix) else name
    try:
        return TOOLS[ToolName(bare)]
    except ValueError:
        return None


# -- schemas ----------------------------------------------------------------

_ARTIFACT_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string", "enum": ledger.ARTIFACT_TYPES},
        "content": {"type": "string"},
    },
    "required": ["type", "content"],
}

_TARGET_ID = {"type": "string"}


# -- handlers ---------------------------------------------------------------

@tool(
    ToolName.LIST_EXECUTION_TARGETS,
    "List installed execution targets available to the authenticated user.",
    {
        "type": "object",
        "properties": {
            "kind": {"type": "string"},
            "limit": {"type": "number"},
        },
    },
    ListExecutionTargetsArgs,
)
def _list_execution_targets(ctx: ToolContext, args: ListExecutionTargetsArgs) -> list[dict[str, Any]]:
    limit = clamp(
        targets.DEFAULT_TARGET_LIMIT if args.limit is None else args.limit,
        1,
        targets.MAX_TARGET_LIMIT,
    )
    rows = targets.list_execution_targets(ctx.targets, kind=args.kind, limit=limit)
    ctx.summary = f"count={len(rows)}"
    return rows


@tool(
    ToolName.LIST_TASKS,
    "List tasks explicitly handed off to the executor for an execution_target_id.",
    {
        "type": "object",
        "properties": {
            "execution_target_id": _TARGET_ID,
            "handed_off_to_cursor": {"type": "boolean"},
            "status": {"type": ["string", "array"]},
            "limit": {"type": "number"},
        },
        "required": ["execution_target_id"],
    },
    ListTasksArgs,
)
def _list_tasks(ctx: ToolContext, args: ListTasksArgs) -> list[dict[str, Any]]:
    if not args.execution_target_id:
        raise InvalidParamsError("Missing execution_target_id")
    ctx.execution_target_id = args.execution_target_id
    # Only handed-off tasks are ever visible.
    if args.handed_off_view_rejected:
        raise InvalidParamsError("handed_off_to_cursor must be true")

    limit = clamp(
        handoffs.DEFAULT_TASK_LIMIT if args.limit is None else args.limit,
        1,
        handoffs.MAX_TASK_LIMIT,
    )
    tasks = handoffs.list_tasks(ctx.handoffs, args.execution_target_id, args.status, limit)
    ctx.summary = f"count={len(tasks)}"
    return tasks


@tool(
    ToolName.GET_TASK,
    "Fetch a full Work Packet for a handed-off task.",
    {
        "type": "object",
        "properties": {
            "task_id": {"type": "string"},
            "execution_target_id": _TARGET_ID,
        },
        "required": ["task_id"],
    },
    GetTaskArgs,
)
def _get_task(ctx: ToolContext, args: GetTaskArgs) -> dict[str, Any]:
    if not args.task_id:
        raise InvalidParamsError("Missing task_id")
    ctx.activity_id = args.task_id
    ctx.execution_target_id = args.execution_target_id

    handoff, packet = handoffs.get_task(
        ctx.handoffs, ctx.activities, args.task_id, args.execution_target_id
    )
    ctx.execution_target_id = handoff.execution_target_id
    return packet


@tool(
    ToolName.GET_REPO_CONTEXT,
    "Fetch executor context (playbook + verification) for an execution target.",
    {
        "type": "object",
        "properties": {"execution_target_id": _TARGET_ID},
        "required": ["execution_target_id"],
    },
    GetRepoContextArgs,
)
def _get_repo_context(ctx: ToolContext, args: GetRepoContextArgs) -> dict[str, Any]:
    if not args.execution_target_id:
        raise InvalidParamsError("Missing execution_target_id")
    ctx.execution_target_id = args.execution_target_id
    return targets.get_repo_context(ctx.targets, args.execution_target_id)


@tool(
    ToolName.POST_PROGRESS,
    "Post a progress update (message + optional percent) to a task. Optionally include small artifacts.",
    {
        "type": "object",
        "properties": {
            "task_id": {"type": "string"},
            "message": {"type": "string"},
            "percent": {"type": "number"},
            "artifacts": {"type": "array", "items": _ARTIFACT_SCHEMA},
            "execution_target_id": _TARGET_ID,
        },
        "required": ["task_id", "message"],
    },
    PostProgressArgs,
)
def _post_progress(ctx: ToolContext, args: PostProgressArgs) -> dict[str, Any]:
    if not args.task_id or not args.message:
        raise InvalidParamsError("Missing task_id or message")
    ctx.activity_id = args.task_id
    ctx.execution_target_id = args.execution_target_id
    ctx.summary = args.message[:160]

    result = ledger.post_progress(
        ctx.handoffs,
        ctx.ledger,
        args.task_id,
        args.message,
        percent=args.percent,
        artifacts=args.artifacts,
        execution_target_id=args.execution_target_id,
    )
    ctx.execution_target_id = result.handoff.execution_target_id
    return {"ok": True, "artifacts_written": result.artifacts_written}


@tool(
    ToolName.ATTACH_ARTIFACT,
    "Attach a small artifact to a task.",
    {
        "type": "object",
        "properties": {
            "task_id": {"type": "string"},
            "artifact": _ARTIFACT_SCHEMA,
            "execution_target_id": _TARGET_ID,
        },
        "required": ["task_id", "artifact"],
    },
    AttachArtifactArgs,
)
def _attach_artifact(ctx: ToolContext, args: AttachArtifactArgs) -> dict[str, Any]:
    if not args.task_id or not isinstance(args.artifact, dict):
        raise InvalidParamsError("Missing task_id or artifact")
    ctx.activity_id = args.task_id
    ctx.execution_target_id = args.execution_target_id

    artifact_type = as_string(args.artifact.get("type"))
    content = as_string(args.artifact.get("content"))
    if not artifact_type or not content:
        raise InvalidParamsError("artifact.type and artifact.content are required")
    ctx.summary = f"type={artifact_type}"

    handoff = ledger.attach_artifact(
        ctx.handoffs,
        ctx.ledger,
        args.task_id,
        artifact_type,
        content,
        execution_target_id=args.execution_target_id,
    )
    ctx.execution_target_id = handoff.execution_target_id
    return {"ok": True}


@tool(
    ToolName.SET_STATUS,
    "Set executor status of a handed-off task.",
    {
        "type": "object",
        "properties": {
            "task_id": {"type": "string"},
            "status": {"type": "string", "enum": [s.value for s in handoffs.TaskStatus]},
            "reason": {"type": "string"},
            "execution_target_id": _TARGET_ID,
        },
        "required": ["task_id", "status"],
    },
    SetStatusArgs,
)
def _set_status(ctx: ToolContext, args: SetStatusArgs) -> dict[str, Any]:
    if not args.task_id or not args.status:
        raise InvalidParamsError("Missing task_id or status")
    ctx.activity_id = args.task_id
    ctx.execution_target_id = args.execution_target_id

    status = handoffs.parse_status(args.status)
    ctx.summary = f"{status.value}: {args.reason[:120]}" if args.reason else status.value

    handoff = handoffs.set_status(
        ctx.handoffs,
        args.task_id,
        status,
        reason=args.reason,
        execution_target_id=args.execution_target_id,
    )
    ctx.execution_target_id = handoff.execution_target_id
    return {"ok": True}


_unregistered = [name.value for name in ToolName if name not in TOOLS]
if _unregistered:
    raise RuntimeError(f"Tools without a handler: {', '.join(_unregistered)}")
