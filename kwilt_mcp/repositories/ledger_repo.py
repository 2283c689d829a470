"""Append-only progress and artifact ledger (no update or delete)."""

from __future__ import annotations

from typing import Iterable, Optional

from kwilt_mcp.core.time import utcnow
from kwilt_mcp.db.models import ActivityArtifact, ActivityProgress
from kwilt_mcp.repositories.base import OwnerScopedRepository


class LedgerRepository(OwnerScopedRepository):
    def append_progress(
        self,
        activity_id: str,
        execution_target_id: str,
        message: str,
        percent: Optional[int],
    ) -> ActivityProgress:
        return self._add(
            ActivityProgress,
            activity_id=activity_id,
            execution_target_id=execution_target_id,
            message=message,
            percent=percent,
            created_at=utcnow(),
        )

    def append_artifacts(
        self,
        activity_id: str,
        execution_target_id: str,
        artifacts: Iterable[tuple[str, str]],
    ) -> list[ActivityArtifact]:
        """Append ``(type, content)`` pairs sharing one timestamp."""
        now = utcnow()
        return [
            self._add(
                ActivityArtifact,
                activity_id=activity_id,
                execution_target_id=execution_target_id,
                type=artifact_type,
                content=content,
                created_at=now,
            )
            for artifact_type, content in artifacts
        ]

    def commit(self) -> None:
        self._db.commit()

