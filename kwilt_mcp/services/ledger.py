"""Progress and artifact ledger.

Writes are append-only. Oversized input is truncated and out-of-range
percentages are clamped instead of rejected, so an executor's report is
never lost over formatting.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from kwilt_mcp.core.coerce import as_int, as_string, clamp, truncate
from kwilt_mcp.core.exceptions import InvalidParamsError
from kwilt_mcp.db.models import ActivityHandoff
from kwilt_mcp.repositories import HandoffRepository, LedgerRepository
from kwilt_mcp.services.handoffs import resolve_handoff

MAX_MESSAGE_CHARS = 2000
MAX_ARTIFACT_CHARS = 5000
MAX_ARTIFACTS_PER_PROGRESS = 5


class ArtifactType(str, Enum):
    DIFF_SUMMARY = "diff_summary"
    FILE_LIST = "file_list"
    COMMANDS_RUN = "commands_run"
    PR_URL = "pr_url"
    COMMIT_HASH = "commit_hash"
    NOTES = "notes"


ARTIFACT_TYPES = [t.value for t in ArtifactType]


@dataclass
class ProgressResult:
    handoff: ActivityHandoff
    message: str
    percent: Optional[int]
    artifacts_written: int


def normalize_percent(value: Any) -> Optional[int]:
    """None stays None; anything else is floored and clamped to 0..100."""
    if value is None:
        return None
    return clamp(as_int(value) or 0, 0, 100)


def normalize_artifacts(raw: Any) -> list[tuple[str, str]]:
    """Keep well-formed embedded artifacts from the first five entries.

    An entry survives only with a known ``type`` and non-empty ``content``;
    anything else is dropped without failing the progress post.
    """
    if not isinstance(raw, list):
        return []
    kept: list[tuple[str, str]] = []
    for item in raw[:MAX_ARTIFACTS_PER_PROGRESS]:
        if not isinstance(item, dict):
            continue
        artifact_type = as_string(item.get("type"))
        content = as_string(item.get("content"))
        if artifact_type not in ARTIFACT_TYPES or not content:
            continue
        kept.append((artifact_type, truncate(content, MAX_ARTIFACT_CHARS)))
    return kept


def post_progress(
    handoffs: HandoffRepository,
    ledger: LedgerRepository,
    task_id: str,
    message: str,
    percent: Any = None,
    artifacts: Optional[Iterable[Any]] = None,
    execution_target_id: Optional[str] = None,
) -> ProgressResult:
    handoff = resolve_handoff(handoffs, task_id, execution_target_id)

    stored_message = truncate(message, MAX_MESSAGE_CHARS)
    stored_percent = normalize_percent(percent)
    ledger.append_progress(task_id, handoff.execution_target_id, stored_message, stored_percent)

    rows = normalize_artifacts(artifacts)
    if rows:
        ledger.append_artifacts(task_id, handoff.execution_target_id, rows)
    ledger.commit()

    return ProgressResult(
        handoff=handoff,
        message=stored_message,
        percent=stored_percent,
        artifacts_written=len(rows),
    )


def attach_artifact(
    handoffs: HandoffRepository,
    ledger: LedgerRepository,
    task_id: str,
    artifact_type: str,
    content: str,
    execution_target_id: Optional[str] = None,
) -> ActivityHandoff:
    """Append one standalone artifact; the type must be a known one."""
    if artifact_type not in ARTIFACT_TYPES:
        raise InvalidParamsError("Invalid artifact type", data={"allowed": ARTIFACT_TYPES})

    handoff = resolve_handoff(handoffs, task_id, execution_target_id)
    ledger.append_artifacts(
        task_id,
        handoff.execution_target_id,
        [(artifact_type, truncate(content, MAX_ARTIFACT_CHARS))],
    )
    ledger.commit()
    return handoff
