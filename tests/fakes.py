"""In-memory реализации портов движка для тестов без базы."""

import itertools
from typing import Any

from app.models.registration import TournamentRegistration
from app.models.tournament import (
    MatchStatus,
    OpponentHistory,
    PlayerStat,
    Tournament,
    TournamentMatch,
    TournamentPhase,
    TournamentRound,
    TournamentStatus,
)
from app.services.ports import Action, Actor


class FakeStore:
    def __init__(self) -> None:
        self.ids = itertools.count(1)
        self.tournaments: dict[int, Tournament] = {}
        self.registrations: list[TournamentRegistration] = []
        self.phases: dict[int, TournamentPhase] = {}
        self.rounds: dict[int, TournamentRound] = {}
        self.matches: dict[int, TournamentMatch] = {}
        self.stats: list[PlayerStat] = []
        self.history: list[OpponentHistory] = []

    def assign_id(self, entity: Any) -> Any:
        if entity.id is None:
            entity.id = next(self.ids)
        return entity


class FakeTournamentRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store
        self.locked: list[int] = []

    async def get(self, tournament_id: int) -> Tournament | None:
        return self.store.tournaments.get(tournament_id)

    async def get_for_update(self, tournament_id: int) -> Tournament | None:
        self.locked.append(tournament_id)
        return self.store.tournaments.get(tournament_id)

    async def save(self, tournament: Tournament) -> None:
        self.store.tournaments[tournament.id] = tournament


class FakeRegistrationRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def get(self, tournament_id: int, profile_id: int) -> TournamentRegistration | None:
        return next(
            (
                r
                for r in self.store.registrations
                if r.tournament_id == tournament_id and r.profile_id == profile_id
            ),
            None,
        )

    async def add(self, registration: TournamentRegistration) -> TournamentRegistration:
        self.store.assign_id(registration)
        self.store.registrations.append(registration)
        return registration

    async def delete(self, registration: TournamentRegistration) -> None:
        self.store.registrations.remove(registration)

    async def count(self, tournament_id: int) -> int:
        return sum(1 for r in self.store.registrations if r.tournament_id == tournament_id)

    async def list_for_tournament(self, tournament_id: int, status: str | None = None) -> list[TournamentRegistration]:
        return [
            r
            for r in self.store.registrations
            if r.tournament_id == tournament_id and (status is None or r.status == status)
        ]

    async def save(self, registration: TournamentRegistration) -> None:
        return None


class FakeRoundRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def get_phase(self, phase_id: int) -> TournamentPhase | None:
        return self.store.phases.get(phase_id)

    async def first_phase(self, tournament_id: int) -> TournamentPhase | None:
        phases = [p for p in self.store.phases.values() if p.tournament_id == tournament_id]
        return min(phases, key=lambda p: p.phase_order) if phases else None

    async def add_phase(self, phase: TournamentPhase) -> TournamentPhase:
        self.store.assign_id(phase)
        self.store.phases[phase.id] = phase
        return phase

    async def get_round(self, round_id: int) -> TournamentRound | None:
        return self.store.rounds.get(round_id)

    async def list_rounds(self, phase_id: int) -> list[TournamentRound]:
        rounds = [r for r in self.store.rounds.values() if r.phase_id == phase_id]
        return sorted(rounds, key=lambda r: r.round_number)

    async def add_round(self, round_: TournamentRound) -> TournamentRound:
        self.store.assign_id(round_)
        self.store.rounds[round_.id] = round_
        return round_

    async def save(self, entity: Any) -> None:
        return None


class FakeMatchRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def get(self, match_id: int) -> TournamentMatch | None:
        return self.store.matches.get(match_id)

    async def add_many(self, matches: list[TournamentMatch]) -> list[TournamentMatch]:
        for match in matches:
            self.store.assign_id(match)
            self.store.matches[match.id] = match
        return matches

    async def list_for_round(self, round_id: int) -> list[TournamentMatch]:
        matches = [m for m in self.store.matches.values() if m.round_id == round_id]
        return sorted(matches, key=lambda m: m.table_number)

    async def list_for_tournament(self, tournament_id: int, status: str | None = None) -> list[TournamentMatch]:
        round_ids = {
            r.id
            for r in self.store.rounds.values()
            if self.store.phases[r.phase_id].tournament_id == tournament_id
        }
        return [
            m
            for m in self.store.matches.values()
            if m.round_id in round_ids and (status is None or m.status == status)
        ]

    async def complete(self, match: TournamentMatch, values: dict[str, Any]) -> bool:
        if match.status not in (MatchStatus.PENDING.value, MatchStatus.ACTIVE.value):
            return False
        for key, value in values.items():
            setattr(match, key, value)
        return True

    async def save(self, match: TournamentMatch) -> None:
        return None


class FakePlayerStatRepo:
    def __init__(self, store: FakeStore) -> None:
        self.store = store

    async def list_for_tournament(self, tournament_id: int) -> list[PlayerStat]:
        return [s for s in self.store.stats if s.tournament_id == tournament_id]

    async def get(self, tournament_id: int, profile_id: int) -> PlayerStat | None:
        return next(
            (s for s in self.store.stats if s.tournament_id == tournament_id and s.profile_id == profile_id),
            None,
        )

    async def add(self, stat: PlayerStat) -> PlayerStat:
        self.store.assign_id(stat)
        self.store.stats.append(stat)
        return stat

    async def save(self, stat: PlayerStat) -> None:
        return None

    async def add_history(self, entries: list[OpponentHistory]) -> None:
        self.store.history.extend(entries)

    async def list_history(self, tournament_id: int) -> list[OpponentHistory]:
        return [h for h in self.store.history if h.tournament_id == tournament_id]


class FakeUnitOfWork:
    def __init__(self, store: FakeStore | None = None) -> None:
        self.store = store or FakeStore()
        self.tournaments = FakeTournamentRepo(self.store)
        self.registrations = FakeRegistrationRepo(self.store)
        self.rounds = FakeRoundRepo(self.store)
        self.matches = FakeMatchRepo(self.store)
        self.player_stats = FakePlayerStatRepo(self.store)
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rollbacks += 1

    def add_tournament(
        self,
        status: str = TournamentStatus.UPCOMING.value,
        max_participants: int | None = None,
    ) -> Tournament:
        tournament = Tournament(
            name="Test Open",
            status=status,
            max_participants=max_participants,
            current_round=0,
        )
        self.store.assign_id(tournament)
        self.store.tournaments[tournament.id] = tournament
        return tournament

    def add_registration(self, tournament_id: int, profile_id: int, status: str) -> TournamentRegistration:
        registration = TournamentRegistration(tournament_id=tournament_id, profile_id=profile_id, status=status)
        self.store.assign_id(registration)
        self.store.registrations.append(registration)
        return registration


class RecordingSink:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.logged: list[tuple[int, Any, int | None]] = []

    async def log_event(self, tournament_id: int, event: Any, actor_id: int | None = None) -> None:
        if self.fail:
            raise RuntimeError("audit store is down")
        self.logged.append((tournament_id, event, actor_id))

    def types(self) -> list[str]:
        return [event.event_type for _, event, _ in self.logged]


class AllowAll:
    def __init__(self) -> None:
        self.calls: list[tuple[Actor, Action, str, int]] = []

    async def has_permission(self, actor: Actor, action: Action, resource_type: str, resource_id: int) -> bool:
        self.calls.append((actor, action, resource_type, resource_id))
        return True


class DenyAll:
    async def has_permission(self, actor: Actor, action: Action, resource_type: str, resource_id: int) -> bool:
        return False
