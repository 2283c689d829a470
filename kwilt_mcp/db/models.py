"""SQLAlchemy database models."""

import secrets

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from kwilt_mcp.core.time import utcnow
from kwilt_mcp.db.database import Base

HANDOFF_STATUSES = ("READY", "IN_PROGRESS", "BLOCKED", "DONE")


def generate_id() -> str:
    """Generate a unique ID."""
    return secrets.token_urlsafe(16)


class PersonalAccessToken(Base):
    """Per-owner bearer credential. Only the SHA-256 hash is stored."""

    __tablename__ = "kwilt_pats"

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(64), nullable=False, index=True)
    label = Column(String(255), nullable=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    created_at = Column(DateTime, default=utcnow)
    last_used_at = Column(DateTime, nullable=True)
    revoked_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<PersonalAccessToken {self.id[:8]}...>"


class ExecutionTarget(Base):
    """An installed executor that can pull an owner's handed-off tasks."""

    __tablename__ = "kwilt_execution_targets"
    __table_args__ = (
        Index("ix_kwilt_execution_targets_owner_kind", "owner_id", "kind"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(64), nullable=False, index=True)
    definition_id = Column(String(64), nullable=True)
    kind = Column(String(64), nullable=False)
    display_name = Column(String(255), nullable=False)
    config = Column(JSON, nullable=False, default=dict)
    requirements = Column(JSON, nullable=False, default=dict)
    playbook = Column(JSON, nullable=False, default=dict)
    is_enabled = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<ExecutionTarget {self.kind} {self.id[:8]}...>"


class Activity(Base):
    """Task snapshot owned by the app; read here only for its title."""

    __tablename__ = "kwilt_activities"

    owner_id = Column(String(64), primary_key=True)
    id = Column(String(128), primary_key=True)
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Activity {self.id}>"


class ActivityHandoff(Base):
    """Executor queue state for one (owner, task, execution target)."""

    __tablename__ = "kwilt_activity_handoffs"
    __table_args__ = (
        UniqueConstraint(
            "owner_id", "activity_id", "execution_target_id", name="uq_kwilt_activity_handoffs"
        ),
        CheckConstraint(
            "status in (%s)" % ", ".join(f"'{s}'" for s in HANDOFF_STATUSES),
            name="ck_kwilt_activity_handoffs_status",
        ),
        Index("ix_kwilt_activity_handoffs_owner_target_status", "owner_id", "execution_target_id", "status"),
        Index("ix_kwilt_activity_handoffs_owner_activity", "owner_id", "activity_id"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(64), nullable=False)
    activity_id = Column(String(128), nullable=False)
    execution_target_id = Column(
        String(32), ForeignKey("kwilt_execution_targets.id", ondelete="CASCADE"), nullable=False
    )
    handed_off = Column(Boolean, nullable=False, default=False)
    handed_off_at = Column(DateTime, nullable=True)
    status = Column(String(16), nullable=False, default="READY")
    blocked_reason = Column(Text, nullable=True)
    # Structured work packet fields
    title_override = Column(String(255), nullable=True)
    problem_statement = Column(Text, nullable=True)
    desired_outcome = Column(Text, nullable=True)
    acceptance_criteria = Column(JSON, nullable=False, default=list)
    verification_steps = Column(JSON, nullable=False, default=list)
    do_not_change = Column(JSON, nullable=False, default=list)
    perf_or_security_notes = Column(Text, nullable=True)
    links = Column(JSON, nullable=False, default=list)
    relevant_files_hint = Column(JSON, nullable=False, default=list)
    examples = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<ActivityHandoff {self.activity_id} {self.status}>"


class ActivityProgress(Base):
    """Append-only progress update posted by an executor."""

    __tablename__ = "kwilt_activity_progress"
    __table_args__ = (
        CheckConstraint(
            "percent is null or (percent >= 0 and percent <= 100)",
            name="ck_kwilt_activity_progress_percent",
        ),
        Index("ix_kwilt_activity_progress_owner_activity_created", "owner_id", "activity_id", "created_at"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(64), nullable=False)
    activity_id = Column(String(128), nullable=False)
    execution_target_id = Column(
        String(32), ForeignKey("kwilt_execution_targets.id", ondelete="CASCADE"), nullable=False
    )
    message = Column(Text, nullable=False)
    percent = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class ActivityArtifact(Base):
    """Append-only small text artifact (diff summary, PR url, ...)."""

    __tablename__ = "kwilt_activity_artifacts"
    __table_args__ = (
        Index("ix_kwilt_activity_artifacts_owner_activity_created", "owner_id", "activity_id", "created_at"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(64), nullable=False)
    activity_id = Column(String(128), nullable=False)
    execution_target_id = Column(
        String(32), ForeignKey("kwilt_execution_targets.id", ondelete="CASCADE"), nullable=False
    )
    type = Column(String(32), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)


class McpAuditLog(Base):
    """Best-effort record of one MCP tool invocation."""

    __tablename__ = "kwilt_mcp_audit_log"
    __table_args__ = (
        Index("ix_kwilt_mcp_audit_log_owner_created", "owner_id", "created_at"),
    )

    id = Column(String(32), primary_key=True, default=generate_id)
    owner_id = Column(String(64), nullable=False)
    tool_name = Column(String(128), nullable=False)
    execution_target_id = Column(String(32), nullable=True)
    activity_id = Column(String(128), nullable=True)
    summary = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    def __repr__(self) -> str:
        return f"<McpAuditLog {self.tool_name} {self.id[:8]}...>"
