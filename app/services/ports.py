"""Интерфейсы, от которых зависит движок: хранилище, авторизация и журнал событий."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from app.models.registration import TournamentRegistration
from app.models.tournament import (
    OpponentHistory,
    PlayerStat,
    Tournament,
    TournamentMatch,
    TournamentPhase,
    TournamentRound,
)

if TYPE_CHECKING:
    from app.services.events import TournamentEvent


class Action(str, Enum):
    TOURNAMENT_REGISTER = "tournament.register"
    TOURNAMENT_CHECK_IN = "tournament.check_in"
    TOURNAMENT_DROP = "tournament.drop"
    TOURNAMENT_UPDATE = "tournament.update"
    TOURNAMENT_MANAGE = "tournament.manage"
    MATCH_REPORT = "match.report"


@dataclass(frozen=True)
class Actor:
    profile_id: int
    is_staff: bool = False


class AuthorizationPort(Protocol):
    async def has_permission(self, actor: Actor, action: Action, resource_type: str, resource_id: int) -> bool: ...


class EventSink(Protocol):
    async def log_event(self, tournament_id: int, event: TournamentEvent, actor_id: int | None = None) -> None: ...


class TournamentRepo(Protocol):
    async def get(self, tournament_id: int) -> Tournament | None: ...

    async def get_for_update(self, tournament_id: int) -> Tournament | None: ...

    async def save(self, tournament: Tournament) -> None: ...


class RegistrationRepo(Protocol):
    async def get(self, tournament_id: int, profile_id: int) -> TournamentRegistration | None: ...

    async def add(self, registration: TournamentRegistration) -> TournamentRegistration: ...

    async def delete(self, registration: TournamentRegistration) -> None: ...

    async def count(self, tournament_id: int) -> int: ...

    async def list_for_tournament(
        self, tournament_id: int, status: str | None = None
    ) -> list[TournamentRegistration]: ...

    async def save(self, registration: TournamentRegistration) -> None: ...


class RoundRepo(Protocol):
    async def get_phase(self, phase_id: int) -> TournamentPhase | None: ...

    async def first_phase(self, tournament_id: int) -> TournamentPhase | None: ...

    async def add_phase(self, phase: TournamentPhase) -> TournamentPhase: ...

    async def get_round(self, round_id: int) -> TournamentRound | None: ...

    async def list_rounds(self, phase_id: int) -> list[TournamentRound]: ...

    async def add_round(self, round_: TournamentRound) -> TournamentRound: ...

    async def save(self, entity: Any) -> None: ...


class MatchRepo(Protocol):
    async def get(self, match_id: int) -> TournamentMatch | None: ...

    async def add_many(self, matches: list[TournamentMatch]) -> list[TournamentMatch]: ...

    async def list_for_round(self, round_id: int) -> list[TournamentMatch]: ...

    async def list_for_tournament(self, tournament_id: int, status: str | None = None) -> list[TournamentMatch]: ...

    async def complete(self, match: TournamentMatch, values: dict[str, Any]) -> bool: ...

    async def save(self, match: TournamentMatch) -> None: ...


class PlayerStatRepo(Protocol):
    async def list_for_tournament(self, tournament_id: int) -> list[PlayerStat]: ...

    async def get(self, tournament_id: int, profile_id: int) -> PlayerStat | None: ...

    async def add(self, stat: PlayerStat) -> PlayerStat: ...

    async def save(self, stat: PlayerStat) -> None: ...

    async def add_history(self, entries: list[OpponentHistory]) -> None: ...

    async def list_history(self, tournament_id: int) -> list[OpponentHistory]: ...


class UnitOfWork(Protocol):
    tournaments: TournamentRepo
    registrations: RegistrationRepo
    rounds: RoundRepo
    matches: MatchRepo
    player_stats: PlayerStatRepo

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...
