"""Create program tables"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "20250319_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "athletes",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=16), nullable=False, server_default="trainee"),
        sa.Column("telegram_id", sa.BigInteger(), nullable=True, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    )

    op.create_table(
        "blocks",
        sa.Column("id", sa.String(length=96), primary_key=True),
        sa.Column("athlete_id", sa.String(length=64), sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("number", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("duration_weeks", sa.Integer(), nullable=False),
        sa.UniqueConstraint("athlete_id", "number", name="uq_blocks_athlete_number"),
    )

    op.create_table(
        "training_sessions",
        sa.Column("id", sa.String(length=128), primary_key=True),
        sa.Column("athlete_id", sa.String(length=64), sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_id", sa.String(length=96), sa.ForeignKey("blocks.id", ondelete="CASCADE"), nullable=False),
        sa.Column("block_number", sa.Integer(), nullable=False),
        sa.Column("week_number", sa.Integer(), nullable=False),
        sa.Column("session_number", sa.Integer(), nullable=False),
        sa.Column("session_type", sa.String(length=16), nullable=False),
        sa.Column("release_date", sa.Date(), nullable=False),
    )
    op.create_index("ix_training_sessions_athlete", "training_sessions", ["athlete_id"])

    op.create_table(
        "session_results",
        sa.Column(
            "session_id",
            sa.String(length=128),
            sa.ForeignKey("training_sessions.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("athlete_id", sa.String(length=64), sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("session_type", sa.String(length=16), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("schema_version", sa.String(length=16), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_session_results_athlete_id", "session_results", ["athlete_id"])

    op.create_table(
        "xp_ledger",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("athlete_id", sa.String(length=64), sa.ForeignKey("athletes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column("reference", sa.String(length=160), nullable=False),
        sa.Column("awarded_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("athlete_id", "source", "reference", name="uq_xp_ledger_award"),
    )
    op.create_index("ix_xp_ledger_athlete_awarded", "xp_ledger", ["athlete_id", "awarded_at"])

    op.create_table(
        "stat_snapshots",
        sa.Column(
            "athlete_id",
            sa.String(length=64),
            sa.ForeignKey("athletes.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("consistency_score", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("completed_sessions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("released_sessions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("stat_snapshots")
    op.drop_index("ix_xp_ledger_athlete_awarded", table_name="xp_ledger")
    op.drop_table("xp_ledger")
    op.drop_index("ix_session_results_athlete_id", table_name="session_results")
    op.drop_table("session_results")
    op.drop_index("ix_training_sessions_athlete", table_name="training_sessions")
    op.drop_table("training_sessions")
    op.drop_table("blocks")
    op.drop_table("athletes")
