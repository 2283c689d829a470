"""Owner-scoped data access."""

from kwilt_mcp.repositories.base import OwnerScopedRepository
from kwilt_mcp.repositories.handoff_repo import ActivityRepository, HandoffRepository
from kwilt_mcp.repositories.ledger_repo import LedgerRepository
from kwilt_mcp.repositories.target_repo import ExecutionTargetRepository

__all__ = [
    "OwnerScopedRepository",
    "ActivityRepository",
    "ExecutionTargetRepository",
    "HandoffRepository",
    "LedgerRepository",
]
