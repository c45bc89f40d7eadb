from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base


class TournamentStatus(str, Enum):
    DRAFT = "draft"
    UPCOMING = "upcoming"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PhaseStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class PhaseType(str, Enum):
    SWISS = "swiss"
    SINGLE_ELIMINATION = "single_elimination"
    DOUBLE_ELIMINATION = "double_elimination"
    ROUND_ROBIN = "round_robin"


class RoundStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class MatchStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    COMPLETED = "completed"


class Tournament(Base):
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), default="")
    status: Mapped[str] = mapped_column(String(20), default=TournamentStatus.DRAFT.value, index=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_round: Mapped[int] = mapped_column(Integer, default=0)
    current_phase_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    phases: Mapped[list["TournamentPhase"]] = relationship(
        "TournamentPhase",
        back_populates="tournament",
        cascade="all, delete-orphan",
    )


class TournamentPhase(Base):
    __tablename__ = "tournament_phases"
    __table_args__ = (UniqueConstraint("tournament_id", "phase_order", name="uq_tournament_phase_order"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(120), default="Swiss Rounds")
    phase_order: Mapped[int] = mapped_column(Integer, default=1)
    phase_type: Mapped[str] = mapped_column(String(32), default=PhaseType.SWISS.value)
    status: Mapped[str] = mapped_column(String(20), default=PhaseStatus.PENDING.value)
    planned_rounds: Mapped[int] = mapped_column(Integer, default=0)
    current_round: Mapped[int] = mapped_column(Integer, default=0)
    match_format: Mapped[str] = mapped_column(String(32), default="best_of_3")
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    tournament: Mapped[Tournament] = relationship("Tournament", back_populates="phases")


class TournamentRound(Base):
    __tablename__ = "tournament_rounds"
    __table_args__ = (UniqueConstraint("phase_id", "round_number", name="uq_phase_round_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    phase_id: Mapped[int] = mapped_column(ForeignKey("tournament_phases.id", ondelete="CASCADE"), index=True)
    round_number: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(120), default="")
    status: Mapped[str] = mapped_column(String(20), default=RoundStatus.PENDING.value)
    started_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class TournamentMatch(Base):
    __tablename__ = "tournament_matches"
    __table_args__ = (UniqueConstraint("round_id", "table_number", name="uq_round_table_number"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    round_id: Mapped[int] = mapped_column(ForeignKey("tournament_rounds.id", ondelete="CASCADE"), index=True)
    table_number: Mapped[int] = mapped_column(Integer)
    profile1_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    profile2_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    winner_profile_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_bye: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[str] = mapped_column(String(20), default=MatchStatus.PENDING.value, index=True)
    match_points1: Mapped[int] = mapped_column(Integer, default=0)
    match_points2: Mapped[int] = mapped_column(Integer, default=0)
    game_wins1: Mapped[int] = mapped_column(Integer, default=0)
    game_wins2: Mapped[int] = mapped_column(Integer, default=0)
    player1_match_confirmed: Mapped[bool] = mapped_column(Boolean, default=False)
    player2_match_confirmed: Mapped[bool] = mapped_column(Boolean, default=False)
    staff_requested: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)


class PlayerStat(Base):
    __tablename__ = "tournament_player_stats"
    __table_args__ = (UniqueConstraint("tournament_id", "profile_id", name="uq_tournament_player_stat"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"), index=True)
    profile_id: Mapped[int] = mapped_column(Integer, index=True)
    match_points: Mapped[int] = mapped_column(Integer, default=0)
    matches_played: Mapped[int] = mapped_column(Integer, default=0)
    match_wins: Mapped[int] = mapped_column(Integer, default=0)
    match_losses: Mapped[int] = mapped_column(Integer, default=0)
    match_draws: Mapped[int] = mapped_column(Integer, default=0)
    game_wins: Mapped[int] = mapped_column(Integer, default=0)
    game_losses: Mapped[int] = mapped_column(Integer, default=0)
    match_win_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    game_win_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    opponent_match_win_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    opponent_game_win_percentage: Mapped[float] = mapped_column(Float, default=0.0)
    buchholz: Mapped[int] = mapped_column(Integer, default=0)
    modified_buchholz: Mapped[int] = mapped_column(Integer, default=0)
    current_standing: Mapped[int | None] = mapped_column(Integer, nullable=True)
    has_received_bye: Mapped[bool] = mapped_column(Boolean, default=False)
    is_dropped: Mapped[bool] = mapped_column(Boolean, default=False)
    opponent_history: Mapped[list[int]] = mapped_column(JSON, default=list)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class OpponentHistory(Base):
    __tablename__ = "tournament_opponent_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id", ondelete="CASCADE"), index=True)
    profile_id: Mapped[int] = mapped_column(Integer, index=True)
    opponent_id: Mapped[int] = mapped_column(Integer)
    round_number: Mapped[int] = mapped_column(Integer)
