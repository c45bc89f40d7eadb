"""player stats and opponent history

Revision ID: 0002_player_stats_and_history
Revises: 0001_tournament_core
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_player_stats_and_history"
down_revision = "0001_tournament_core"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Агрегаты игрока в турнире, пересчитываются после каждого матча.
    op.create_table(
        "tournament_player_stats",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("match_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("matches_played", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_draws", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("game_wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("game_losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("match_win_percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("game_win_percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("opponent_match_win_percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("opponent_game_win_percentage", sa.Float(), nullable=False, server_default="0"),
        sa.Column("buchholz", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("modified_buchholz", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_standing", sa.Integer(), nullable=True),
        sa.Column("has_received_bye", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_dropped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("opponent_history", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("tournament_id", "profile_id", name="uq_tournament_player_stat"),
    )
    op.create_index(
        "ix_tournament_player_stats_tournament_id", "tournament_player_stats", ["tournament_id"], unique=False
    )
    op.create_index("ix_tournament_player_stats_profile_id", "tournament_player_stats", ["profile_id"], unique=False)

    # История соперников, только дописывается.
    op.create_table(
        "tournament_opponent_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("opponent_id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
    )
    op.create_index(
        "ix_tournament_opponent_history_tournament_id", "tournament_opponent_history", ["tournament_id"], unique=False
    )
    op.create_index(
        "ix_tournament_opponent_history_profile_id", "tournament_opponent_history", ["profile_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_tournament_opponent_history_profile_id", table_name="tournament_opponent_history")
    op.drop_index("ix_tournament_opponent_history_tournament_id", table_name="tournament_opponent_history")
    op.drop_table("tournament_opponent_history")
    op.drop_index("ix_tournament_player_stats_profile_id", table_name="tournament_player_stats")
    op.drop_index("ix_tournament_player_stats_tournament_id", table_name="tournament_player_stats")
    op.drop_table("tournament_player_stats")
