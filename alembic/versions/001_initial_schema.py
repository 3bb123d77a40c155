"""Initial schema: trackers and scroll_events

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "trackers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("owner", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_trackers_owner", "trackers", ["owner"])

    op.create_table(
        "scroll_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "tracker_id",
            sa.String(64),
            sa.ForeignKey("trackers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("scroll_depth", sa.Integer(), nullable=False),
        sa.Column("page_url", sa.Text(), nullable=False),
        sa.Column("occurred_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("time_on_page", sa.Integer(), nullable=True),
        sa.Column("total_time_on_page", sa.Integer(), nullable=True),
        sa.Column("max_scroll_depth", sa.Integer(), nullable=True),
        sa.Column("scroll_events_count", sa.Integer(), nullable=True),
        sa.Column("engagement_data", postgresql.JSONB(), nullable=True),
        sa.Column("ua", sa.String(512), nullable=True),
        sa.Column("viewport_w", sa.Integer(), nullable=True),
        sa.Column("viewport_h", sa.Integer(), nullable=True),
        sa.Column("ip_address", sa.String(255), nullable=True),
        sa.CheckConstraint("scroll_depth BETWEEN 0 AND 100", name="ck_scroll_events_depth"),
        sa.CheckConstraint(
            "viewport_w IS NULL OR (viewport_w > 0 AND viewport_w <= 20000)",
            name="ck_scroll_events_viewport_w",
        ),
        sa.CheckConstraint(
            "viewport_h IS NULL OR (viewport_h > 0 AND viewport_h <= 20000)",
            name="ck_scroll_events_viewport_h",
        ),
    )
    op.create_index("ix_scroll_events_tracker_id", "scroll_events", ["tracker_id"])
    op.create_index("ix_scroll_events_occurred_at", "scroll_events", ["occurred_at"])
    op.create_index("ix_scroll_events_time_on_page", "scroll_events", ["time_on_page"])
    op.create_index("ix_scroll_events_max_scroll_depth", "scroll_events", ["max_scroll_depth"])
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_scroll_events_engagement_data "
        "ON scroll_events USING GIN (engagement_data)"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_scroll_events_engagement_data")
    op.drop_index("ix_scroll_events_max_scroll_depth", table_name="scroll_events")
    op.drop_index("ix_scroll_events_time_on_page", table_name="scroll_events")
    op.drop_index("ix_scroll_events_occurred_at", table_name="scroll_events")
    op.drop_index("ix_scroll_events_tracker_id", table_name="scroll_events")
    op.drop_table("scroll_events")
    op.drop_index("ix_trackers_owner", table_name="trackers")
    op.drop_table("trackers")
