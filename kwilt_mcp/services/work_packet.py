"""Work Packet builder.

A Work Packet is the read-only payload an executor receives for one task:
intent, definition of done, constraints and context, assembled from the
handoff row plus the app's task snapshot. Nothing here touches storage.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from kwilt_mcp.core.coerce import as_string
from kwilt_mcp.core.time import isoformat

UNTITLED = "Untitled"


def _list(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else []


def _field(handoff: Any, name: str) -> Any:
    if isinstance(handoff, Mapping):
        return handoff.get(name)
    return getattr(handoff, name, None)


def _timestamp(value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    return isoformat(value)


def resolve_title(handoff: Any, snapshot: Optional[Mapping[str, Any]]) -> str:
    """title_override, then the snapshot title, then "Untitled"."""
    override = as_string(_field(handoff, "title_override"))
    if override:
        return override
    if isinstance(snapshot, Mapping):
        snapshot_title = as_string(snapshot.get("title"))
        if snapshot_title:
            return snapshot_title
    return UNTITLED


def build_work_packet(handoff: Any, snapshot: Optional[Mapping[str, Any]] = None) -> dict[str, Any]:
    """Project a handoff row (model or mapping) and optional snapshot.

    Array fields are always lists so callers never null-check.
    """
    return {
        "task_id": str(_field(handoff, "activity_id")),
        "title": resolve_title(handoff, snapshot),
        "status": str(_field(handoff, "status") or "READY"),
        "blocked_reason": _field(handoff, "blocked_reason"),
        "priority": None,
        "created_at": _timestamp(_field(handoff, "created_at")),
        "updated_at": _timestamp(_field(handoff, "updated_at")),
        "handed_off_at": _timestamp(_field(handoff, "handed_off_at")),
        "execution_target_id": _field(handoff, "execution_target_id"),
        "intent": {
            "problem_statement": _field(handoff, "problem_statement"),
            "desired_outcome": _field(handoff, "desired_outcome"),
        },
        "definition_of_done": {
            "acceptance_criteria": _list(_field(handoff, "acceptance_criteria")),
            "verification_steps": _list(_field(handoff, "verification_steps")),
        },
        "constraints": {
            "do_not_change": _list(_field(handoff, "do_not_change")),
            "perf_or_security_notes": _field(handoff, "perf_or_security_notes"),
            # Key name used by executors built against the first release
            "performance_or_security_notes": _field(handoff, "perf_or_security_notes"),
        },
        "context": {
            "links": _list(_field(handoff, "links")),
            "relevant_files_hint": _list(_field(handoff, "relevant_files_hint")),
            "examples": _list(_field(handoff, "examples")),
        },
    }
