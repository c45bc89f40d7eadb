"""tournament core

Revision ID: 0001_tournament_core
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_tournament_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Создаем таблицу турниров.
    op.create_table(
        "tournaments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("current_round", sa.Integer(), nullable=False),
        sa.Column("current_phase_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_tournaments_status", "tournaments", ["status"], unique=False)

    # Регистрации игроков, не больше одной на игрока в турнире.
    op.create_table(
        "tournament_registrations",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("team_name", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("team_id", sa.Integer(), nullable=True),
        sa.Column("registered_at", sa.DateTime(), nullable=False),
        sa.Column("checked_in_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("tournament_id", "profile_id", name="uq_tournament_registration_profile"),
    )
    op.create_index(
        "ix_tournament_registrations_tournament_id", "tournament_registrations", ["tournament_id"], unique=False
    )
    op.create_index("ix_tournament_registrations_profile_id", "tournament_registrations", ["profile_id"], unique=False)
    op.create_index("ix_tournament_registrations_status", "tournament_registrations", ["status"], unique=False)

    # Фазы, раунды и матчи.
    op.create_table(
        "tournament_phases",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("tournament_id", sa.Integer(), sa.ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("phase_order", sa.Integer(), nullable=False),
        sa.Column("phase_type", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("planned_rounds", sa.Integer(), nullable=False),
        sa.Column("current_round", sa.Integer(), nullable=False),
        sa.Column("match_format", sa.String(length=32), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("tournament_id", "phase_order", name="uq_tournament_phase_order"),
    )
    op.create_index("ix_tournament_phases_tournament_id", "tournament_phases", ["tournament_id"], unique=False)

    op.create_table(
        "tournament_rounds",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("phase_id", sa.Integer(), sa.ForeignKey("tournament_phases.id", ondelete="CASCADE"), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("phase_id", "round_number", name="uq_phase_round_number"),
    )
    op.create_index("ix_tournament_rounds_phase_id", "tournament_rounds", ["phase_id"], unique=False)

    op.create_table(
        "tournament_matches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("round_id", sa.Integer(), sa.ForeignKey("tournament_rounds.id", ondelete="CASCADE"), nullable=False),
        sa.Column("table_number", sa.Integer(), nullable=False),
        sa.Column("profile1_id", sa.Integer(), nullable=True),
        sa.Column("profile2_id", sa.Integer(), nullable=True),
        sa.Column("winner_profile_id", sa.Integer(), nullable=True),
        sa.Column("is_bye", sa.Boolean(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("match_points1", sa.Integer(), nullable=False),
        sa.Column("match_points2", sa.Integer(), nullable=False),
        sa.Column("game_wins1", sa.Integer(), nullable=False),
        sa.Column("game_wins2", sa.Integer(), nullable=False),
        sa.Column("player1_match_confirmed", sa.Boolean(), nullable=False),
        sa.Column("player2_match_confirmed", sa.Boolean(), nullable=False),
        sa.Column("staff_requested", sa.Boolean(), nullable=False),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("round_id", "table_number", name="uq_round_table_number"),
    )
    op.create_index("ix_tournament_matches_round_id", "tournament_matches", ["round_id"], unique=False)
    op.create_index("ix_tournament_matches_profile1_id", "tournament_matches", ["profile1_id"], unique=False)
    op.create_index("ix_tournament_matches_profile2_id", "tournament_matches", ["profile2_id"], unique=False)
    op.create_index("ix_tournament_matches_status", "tournament_matches", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tournament_matches_status", table_name="tournament_matches")
    op.drop_index("ix_tournament_matches_profile2_id", table_name="tournament_matches")
    op.drop_index("ix_tournament_matches_profile1_id", table_name="tournament_matches")
    op.drop_index("ix_tournament_matches_round_id", table_name="tournament_matches")
    op.drop_table("tournament_matches")
    op.drop_index("ix_tournament_rounds_phase_id", table_name="tournament_rounds")
    op.drop_table("tournament_rounds")
    op.drop_index("ix_tournament_phases_tournament_id", table_name="tournament_phases")
    op.drop_table("tournament_phases")
    op.drop_index("ix_tournament_registrations_status", table_name="tournament_registrations")
    op.drop_index("ix_tournament_registrations_profile_id", table_name="tournament_registrations")
    op.drop_index("ix_tournament_registrations_tournament_id", table_name="tournament_registrations")
    op.drop_table("tournament_registrations")
    op.drop_index("ix_tournaments_status", table_name="tournaments")
    op.drop_table("tournaments")
