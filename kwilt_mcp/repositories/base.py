"""Owner-scoped repository base.

Every repository is constructed for exactly one owner, and all reads go
through ``_query`` which applies the ``owner_id`` filter. Handlers never
build unscoped queries, so cross-owner access cannot be expressed.
"""

from __future__ import annotations

from typing import Any, TypeVar

from sqlalchemy.orm import Query
from sqlalchemy.orm import Session as DBSession

T = TypeVar("T")


class OwnerScopedRepository:
    """Base class for repositories bound to a single owner."""

    def __init__(self, db: DBSession, owner_id: str):
        if not owner_id:
            raise ValueError("owner_id is required")
        self._db = db
        self.owner_id = owner_id

    def _query(self, model: type[T]) -> Query:
        return self._db.query(model).filter(model.owner_id == self.owner_id)

    def _add(self, model: type[T], **fields: Any) -> T:
        row = model(owner_id=self.owner_id, **fields)
        self._db.add(row)
        return row
