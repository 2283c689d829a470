"""kwilt mcp schema

Revision ID: 001_kwilt_mcp_schema
Revises:
Create Date: 2026-10-18
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_kwilt_mcp_schema"
down_revision = None
branch_labels = None
depends_on = None


def _owner_activity_columns() -> list:
    return [
        sa.Column("id", sa.String(length=32), primary_key=True),
        sa.Column("owner_id", sa.String(length=64), nullable=False),
        sa.Column("activity_id", sa.String(length=128), nullable=False),
        sa.Column(
            "execution_target_id",
            sa.String(length=32),
            sa.ForeignKey("kwilt_execution_targets.id", ondelete="CASCADE"),
            nullable=False,
        ),
    ]


def _ensure_index(inspector, table: str, name: str, columns: list[str], unique: bool = False) -> None:
    indexes = {idx["name"] for idx in inspector.get_indexes(table)}
    if name not in indexes:
        op.create_index(name, table, columns, unique=unique)


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    if "kwilt_pats" not in tables:
        op.create_table(
            "kwilt_pats",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("owner_id", sa.String(length=64), nullable=False),
            sa.Column("label", sa.String(length=255), nullable=True),
            sa.Column("token_hash", sa.String(length=64), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("last_used_at", sa.DateTime(), nullable=True),
            sa.Column("revoked_at", sa.DateTime(), nullable=True),
        )

    if "kwilt_execution_targets" not in tables:
        op.create_table(
            "kwilt_execution_targets",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("owner_id", sa.String(length=64), nullable=False),
            sa.Column("definition_id", sa.String(length=64), nullable=True),
            sa.Column("kind", sa.String(length=64), nullable=False),
            sa.Column("display_name", sa.String(length=255), nullable=False),
            sa.Column("config", sa.JSON(), nullable=False),
            sa.Column("requirements", sa.JSON(), nullable=False),
            sa.Column("playbook", sa.JSON(), nullable=False),
            sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if "kwilt_activities" not in tables:
        op.create_table(
            "kwilt_activities",
            sa.Column("owner_id", sa.String(length=64), primary_key=True),
            sa.Column("id", sa.String(length=128), primary_key=True),
            sa.Column("data", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
        )

    if "kwilt_activity_handoffs" not in tables:
        op.create_table(
            "kwilt_activity_handoffs",
            *_owner_activity_columns(),
            sa.Column("handed_off", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("handed_off_at", sa.DateTime(), nullable=True),
            sa.Column("status", sa.String(length=16), nullable=False, server_default="READY"),
            sa.Column("blocked_reason", sa.Text(), nullable=True),
            sa.Column("title_override", sa.String(length=255), nullable=True),
            sa.Column("problem_statement", sa.Text(), nullable=True),
            sa.Column("desired_outcome", sa.Text(), nullable=True),
            sa.Column("acceptance_criteria", sa.JSON(), nullable=False),
            sa.Column("verification_steps", sa.JSON(), nullable=False),
            sa.Column("do_not_change", sa.JSON(), nullable=False),
            sa.Column("perf_or_security_notes", sa.Text(), nullable=True),
            sa.Column("links", sa.JSON(), nullable=False),
            sa.Column("relevant_files_hint", sa.JSON(), nullable=False),
            sa.Column("examples", sa.JSON(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.UniqueConstraint(
                "owner_id", "activity_id", "execution_target_id", name="uq_kwilt_activity_handoffs"
            ),
            sa.CheckConstraint(
                "status in ('READY', 'IN_PROGRESS', 'BLOCKED', 'DONE')",
                name="ck_kwilt_activity_handoffs_status",
            ),
        )

    if "kwilt_activity_progress" not in tables:
        op.create_table(
            "kwilt_activity_progress",
            *_owner_activity_columns(),
            sa.Column("message", sa.Text(), nullable=False),
            sa.Column("percent", sa.Integer(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.CheckConstraint(
                "percent is null or (percent >= 0 and percent <= 100)",
                name="ck_kwilt_activity_progress_percent",
            ),
        )

    if "kwilt_activity_artifacts" not in tables:
        op.create_table(
            "kwilt_activity_artifacts",
            *_owner_activity_columns(),
            sa.Column("type", sa.String(length=32), nullable=False),
            sa.Column("content", sa.Text(), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    if "kwilt_mcp_audit_log" not in tables:
        op.create_table(
            "kwilt_mcp_audit_log",
            sa.Column("id", sa.String(length=32), primary_key=True),
            sa.Column("owner_id", sa.String(length=64), nullable=False),
            sa.Column("tool_name", sa.String(length=128), nullable=False),
            sa.Column("execution_target_id", sa.String(length=32), nullable=True),
            sa.Column("activity_id", sa.String(length=128), nullable=True),
            sa.Column("summary", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
        )

    # Indexes (idempotent-ish)
    inspector = sa.inspect(bind)
    _ensure_index(inspector, "kwilt_pats", "ix_kwilt_pats_owner_id", ["owner_id"])
    _ensure_index(inspector, "kwilt_pats", "ix_kwilt_pats_token_hash", ["token_hash"], unique=True)
    _ensure_index(inspector, "kwilt_execution_targets", "ix_kwilt_execution_targets_owner_id", ["owner_id"])
    _ensure_index(
        inspector, "kwilt_execution_targets", "ix_kwilt_execution_targets_owner_kind", ["owner_id", "kind"]
    )
    _ensure_index(
        inspector,
        "kwilt_activity_handoffs",
        "ix_kwilt_activity_handoffs_owner_target_status",
        ["owner_id", "execution_target_id", "status"],
    )
    _ensure_index(
        inspector,
        "kwilt_activity_handoffs",
        "ix_kwilt_activity_handoffs_owner_activity",
        ["owner_id", "activity_id"],
    )
    _ensure_index(
        inspector,
        "kwilt_activity_progress",
        "ix_kwilt_activity_progress_owner_activity_created",
        ["owner_id", "activity_id", "created_at"],
    )
    _ensure_index(
        inspector,
        "kwilt_activity_artifacts",
        "ix_kwilt_activity_artifacts_owner_activity_created",
        ["owner_id", "activity_id", "created_at"],
    )
    _ensure_index(
        inspector, "kwilt_mcp_audit_log", "ix_kwilt_mcp_audit_log_owner_created", ["owner_id", "created_at"]
    )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    tables = inspector.get_table_names()

    # Children first; the ledger and handoff tables reference targets.
    for table in (
        "kwilt_mcp_audit_log",
        "kwilt_activity_artifacts",
        "kwilt_activity_progress",
        "kwilt_activity_handoffs",
        "kwilt_activities",
        "kwilt_execution_targets",
        "kwilt_pats",
    ):
        if table in tables:
            op.drop_table(table)
