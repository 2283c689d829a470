"""Task handoff repository.

Only rows with ``handed_off = true`` are ever returned; a task that has not
been handed off is invisible to executors.
"""

from __future__ import annotations

from typing import Optional, Sequence

from sqlalchemy.orm import Query

from kwilt_mcp.core.time import utcnow
from kwilt_mcp.db.models import Activity, ActivityHandoff
from kwilt_mcp.repositories.base import OwnerScopedRepository


class HandoffRepository(OwnerScopedRepository):
    def _visible(self) -> Query:
        return self._query(ActivityHandoff).filter(ActivityHandoff.handed_off.is_(True))

    def list_for_target(
        self,
        execution_target_id: str,
        statuses: Sequence[str],
        limit: int,
    ) -> list[ActivityHandoff]:
        """Handed-off tasks for one target, oldest-updated first."""
        return (
            self._visible()
            .filter(
                ActivityHandoff.execution_target_id == execution_target_id,
                ActivityHandoff.status.in_(list(statuses)),
            )
            .order_by(
                ActivityHandoff.updated_at.asc(),
                ActivityHandoff.created_at.asc(),
                ActivityHandoff.id.asc(),
            )
            .limit(limit)
            .all()
        )

    def get_for_target(self, activity_id: str, execution_target_id: str) -> Optional[ActivityHandoff]:
        return (
            self._visible()
            .filter(
                ActivityHandoff.activity_id == activity_id,
                ActivityHandoff.execution_target_id == execution_target_id,
            )
            .first()
        )

    def find_by_activity(self, activity_id: str, limit: int = 2) -> list[ActivityHandoff]:
        """Handed-off rows for a task across all targets.

        Two rows are enough to detect ambiguity.
        """
        return (
            self._visible()
            .filter(ActivityHandoff.activity_id == activity_id)
            .order_by(ActivityHandoff.id.asc())
            .limit(limit)
            .all()
        )

    def update_status(
        self,
        handoff: ActivityHandoff,
        status: str,
        blocked_reason: Optional[str],
    ) -> ActivityHandoff:
        """Persist a status change on one resolved row. Last write wins."""
        handoff.status = status
        handoff.blocked_reason = blocked_reason
        handoff.updated_at = utcnow()
        self._db.commit()
        return handoff


class ActivityRepository(OwnerScopedRepository):
    """Read access to the app-owned task snapshots."""

    def get_data(self, activity_id: str) -> Optional[dict]:
        row = self._query(Activity).filter(Activity.id == activity_id).first()
        if row is None or not isinstance(row.data, dict):
            return None
        return row.data
