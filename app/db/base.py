"""Регистрирует ORM-модели в метаданных SQLAlchemy."""

from app.models.base import Base
from app.models.event import TournamentEventRecord
from app.models.registration import TournamentRegistration
from app.models.tournament import (
    OpponentHistory,
    PlayerStat,
    Tournament,
    TournamentMatch,
    TournamentPhase,
    TournamentRound,
)

__all__ = [
    "Base",
    "Tournament",
    "TournamentPhase",
    "TournamentRound",
    "TournamentMatch",
    "PlayerStat",
    "OpponentHistory",
    "TournamentRegistration",
    "TournamentEventRecord",
]
