"""initial schema - influence tiers, analysts, briefings, scheduling conversations

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-16
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_STATUSES = "status IN ('INITIATED', 'WAITING_RESPONSE', 'NEGOTIATING')"


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "influence_tiers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("level", sa.String(20), nullable=False, unique=True),
        sa.Column("color", sa.String(20), nullable=True),
        sa.Column("briefing_frequency", sa.Integer(), nullable=True),
        sa.Column("touchpoint_frequency", sa.Integer(), nullable=True),
        sa.Column("order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint(
            "level IN ('VERY_HIGH', 'HIGH', 'MEDIUM', 'LOW')", name="ck_influence_tiers_level"
        ),
        sa.CheckConstraint(
            "briefing_frequency IS NULL OR briefing_frequency >= 1",
            name="ck_influence_tiers_briefing_frequency",
        ),
        sa.CheckConstraint(
            "touchpoint_frequency IS NULL OR touchpoint_frequency >= 1",
            name="ck_influence_tiers_touchpoint_frequency",
        ),
    )

    op.create_table(
        "analysts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("first_name", sa.String(255), nullable=False),
        sa.Column("last_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("company", sa.String(255)),
        sa.Column("title", sa.String(255)),
        sa.Column("type", sa.String(50)),
        sa.Column("influence", sa.String(20), nullable=False, server_default="MEDIUM"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("relationship_health", sa.String(20)),
        sa.Column("profile_image_url", sa.String(500)),
        sa.Column("notes", sa.Text()),
        *_timestamps(),
        sa.CheckConstraint(
            "influence IN ('VERY_HIGH', 'HIGH', 'MEDIUM', 'LOW')", name="ck_analysts_influence"
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'ARCHIVED')", name="ck_analysts_status"
        ),
    )
    op.create_index("ix_analysts_status_first_name", "analysts", ["status", "first_name"])

    op.create_table(
        "briefings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("duration_minutes", sa.Integer()),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("location", sa.String(255)),
        sa.Column("meeting_url", sa.String(500)),
        sa.Column("calendar_event_id", sa.String(255)),
        sa.Column("attendee_emails", sa.JSON()),
        sa.Column("ai_summary", sa.Text()),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('SCHEDULED', 'COMPLETED', 'CANCELLED', 'RESCHEDULED')",
            name="ck_briefings_status",
        ),
    )
    op.create_index("ix_briefings_status_scheduled", "briefings", ["status", "scheduled_at"])
    op.create_index("ix_briefings_status_completed", "briefings", ["status", "completed_at"])

    op.create_table(
        "briefing_analysts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "briefing_id", sa.Integer(),
            sa.ForeignKey("briefings.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "analyst_id", sa.Integer(),
            sa.ForeignKey("analysts.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("role", sa.String(20)),
        sa.Column("response_status", sa.String(20)),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("briefing_id", "analyst_id", name="uq_briefing_analysts_pair"),
    )
    op.create_index("ix_briefing_analysts_analyst", "briefing_analysts", ["analyst_id"])

    op.create_table(
        "scheduling_conversations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "analyst_id", sa.Integer(),
            sa.ForeignKey("analysts.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("subject", sa.String(500), nullable=False),
        sa.Column("suggested_times", sa.JSON()),
        sa.Column("status", sa.String(30), nullable=False, server_default="INITIATED"),
        sa.Column("reason", sa.String(500)),
        sa.Column("agreed_time", sa.DateTime()),
        sa.Column(
            "briefing_id", sa.Integer(),
            sa.ForeignKey("briefings.id", ondelete="SET NULL"),
        ),
        sa.Column("webhook_notified_at", sa.DateTime()),
        sa.Column("webhook_error", sa.Text()),
        *_timestamps(),
        sa.CheckConstraint(
            "status IN ('INITIATED', 'WAITING_RESPONSE', 'NEGOTIATING', "
            "'CONFIRMED', 'SCHEDULED', 'CANCELLED')",
            name="ck_scheduling_conversations_status",
        ),
    )
    op.create_index(
        "ix_scheduling_conversations_status", "scheduling_conversations", ["status"]
    )
    # One open conversation per analyst
    op.create_index(
        "uq_scheduling_conversations_one_open",
        "scheduling_conversations",
        ["analyst_id"],
        unique=True,
        postgresql_where=sa.text(OPEN_STATUSES),
    )


def downgrade() -> None:
    op.drop_index("uq_scheduling_conversations_one_open", table_name="scheduling_conversations")
    op.drop_index("ix_scheduling_conversations_status", table_name="scheduling_conversations")
    op.drop_table("scheduling_conversations")
    op.drop_index("ix_briefing_analysts_analyst", table_name="briefing_analysts")
    op.drop_table("briefing_analysts")
    op.drop_index("ix_briefings_status_completed", table_name="briefings")
    op.drop_index("ix_briefings_status_scheduled", table_name="briefings")
    op.drop_table("briefings")
    op.drop_index("ix_analysts_status_first_name", table_name="analysts")
    op.drop_table("analysts")
    op.drop_table("influence_tiers")
