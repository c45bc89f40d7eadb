"""tournament events

Revision ID: 0003_tournament_events
Revises: 0002_player_stats_and_history
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0003_tournament_events"
down_revision = "0002_player_stats_and_history"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Журнал событий турнира.
    op.create_table(
        "tournament_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("event_data", sa.JSON(), nullable=False),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_tournament_events_tournament_id", "tournament_events", ["tournament_id"], unique=False)
    op.create_index("ix_tournament_events_event_type", "tournament_events", ["event_type"], unique=False)
    op.create_index("ix_tournament_events_created_at", "tournament_events", ["created_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tournament_events_created_at", table_name="tournament_events")
    op.drop_index("ix_tournament_events_event_type", table_name="tournament_events")
    op.drop_index("ix_tournament_events_tournament_id", table_name="tournament_events")
    op.drop_table("tournament_events")
