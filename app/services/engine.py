"""Фасад движка: одна публичная операция = одна проверка прав и одна единица работы."""

import random
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from app.core.config import Settings, settings as default_settings
from app.core.errors import (
    InsufficientPlayers,
    InvalidTransition,
    NotAuthenticated,
    NotFound,
    PermissionDenied,
    ValidationError,
)
from app.core.logging import setup_logger
from app.models.registration import TournamentRegistration
from app.models.tournament import (
    PlayerStat,
    TournamentMatch,
    TournamentRound,
    TournamentStatus,
)
from app.services.events import EventRecorder
from app.services.lifecycle import LifecycleStateMachine
from app.services.pairing import PairingGenerator
from app.services.ports import Action, Actor, AuthorizationPort, EventSink, UnitOfWork
from app.services.registration import RegistrationLedger
from app.services.results import MatchResult, MatchResultRecorder
from app.services.standings import StandingsCalculator

logger = setup_logger(__name__)

MIN_PLAYERS_FOR_PAIRING = 2


@dataclass(frozen=True)
class GeneratedRound:
    round_id: int
    match_count: int


class TournamentEngine:
    def __init__(
        self,
        uow: UnitOfWork,
        authorization: AuthorizationPort,
        sink: EventSink,
        settings: Settings = default_settings,
        rng: random.Random | None = None,
    ) -> None:
        self.uow = uow
        self.authorization = authorization
        self.sink = sink
        self.settings = settings
        self.events = EventRecorder()
        self.lifecycle = LifecycleStateMachine(uow, self.events)
        self.standings = StandingsCalculator(uow, settings)
        self.ledger = RegistrationLedger(uow, self.events, settings, self.standings)
        self.pairing = PairingGenerator(uow, settings, rng=rng)
        self.results = MatchResultRecorder(uow, self.events, self.lifecycle, self.standings, settings)

    @asynccontextmanager
    async def _transaction(self, actor: Actor | None) -> AsyncIterator[None]:
        try:
            yield
            await self.uow.commit()
        except Exception:
            await self.uow.rollback()
            self.events.discard()
            raise
        await self.events.flush(self.sink, actor.profile_id if actor else None)

    async def _authorize(self, actor: Actor | None, action: Action, resource_type: str, resource_id: int) -> Actor:
        if actor is None:
            raise NotAuthenticated("Authentication required")
        if not await self.authorization.has_permission(actor, action, resource_type, resource_id):
            raise PermissionDenied(f"Not allowed to perform {action.value}")
        return actor

    async def register(
        self,
        tournament_id: int,
        actor: Actor | None,
        team_name: str | None = None,
        notes: str | None = None,
    ) -> TournamentRegistration:
        actor = await self._authorize(actor, Action.TOURNAMENT_REGISTER, "tournament", tournament_id)
        async with self._transaction(actor):
            return await self.ledger.register(tournament_id, actor.profile_id, team_name=team_name, notes=notes)

    async def withdraw(self, tournament_id: int, actor: Actor | None) -> None:
        actor = await self._authorize(actor, Action.TOURNAMENT_REGISTER, "tournament", tournament_id)
        async with self._transaction(actor):
            await self.ledger.withdraw(tournament_id, actor.profile_id)

    async def check_in(self, tournament_id: int, actor: Actor | None) -> TournamentRegistration:
        actor = await self._authorize(actor, Action.TOURNAMENT_CHECK_IN, "tournament", tournament_id)
        async with self._transaction(actor):
            return await self.ledger.check_in(tournament_id, actor.profile_id)

    async def undo_check_in(self, tournament_id: int, actor: Actor | None) -> TournamentRegistration:
        actor = await self._authorize(actor, Action.TOURNAMENT_CHECK_IN, "tournament", tournament_id)
        async with self._transaction(actor):
            return await self.ledger.undo_check_in(tournament_id, actor.profile_id)

    async def drop(self, tournament_id: int, profile_id: int, actor: Actor | None) -> TournamentRegistration:
        # Снять с турнира другого игрока может только организатор.
        self_drop = actor is not None and actor.profile_id == profile_id
        action = Action.TOURNAMENT_DROP if self_drop else Action.TOURNAMENT_MANAGE
        actor = await self._authorize(actor, action, "tournament", tournament_id)
        async with self._transaction(actor):
            return await self.ledger.drop(tournament_id, profile_id)

    async def change_tournament_status(self, tournament_id: int, target: str, actor: Actor | None) -> str:
        actor = await self._authorize(actor, Action.TOURNAMENT_UPDATE, "tournament", tournament_id)
        if target not in {status.value for status in TournamentStatus}:
            raise InvalidTransition(f"Unknown tournament status {target}")
        async with self._transaction(actor):
            tournament = await self.uow.tournaments.get_for_update(tournament_id)
            if tournament is None:
                raise NotFound("Tournament not found")
            await self.lifecycle.transition_tournament(tournament, target)
            return tournament.status

    async def generate_pairings(
        self,
        tournament_id: int,
        actor: Actor | None,
        round_number: int | None = None,
    ) -> GeneratedRound:
        actor = await self._authorize(actor, Action.TOURNAMENT_MANAGE, "tournament", tournament_id)
        if round_number is not None and round_number < 1:
            raise ValidationError("Round number must be positive")
        async with self._transaction(actor):
            tournament = await self.uow.tournaments.get_for_update(tournament_id)
            if tournament is None:
                raise NotFound("Tournament not found")
            if tournament.status not in (TournamentStatus.UPCOMING.value, TournamentStatus.ACTIVE.value):
                raise InvalidTransition(f"Cannot generate pairings for a {tournament.status} tournament")

            eligible = await self.ledger.eligible(tournament_id)
            if len(eligible) < MIN_PLAYERS_FOR_PAIRING:
                raise InsufficientPlayers("Not enough checked-in players to generate pairings")

            phase = await self.lifecycle.ensure_phase(tournament, len(eligible))
            round_ = await self.lifecycle.create_round(tournament, phase, round_number=round_number)
            plan = await self.pairing.plan(tournament_id, phase, eligible)
            matches = await self.uow.matches.add_many(self.pairing.build_matches(round_, plan))
            for event in plan.events:
                self.events.record(tournament_id, event)

            if tournament.status == TournamentStatus.UPCOMING.value:
                await self.lifecycle.transition_tournament(tournament, TournamentStatus.ACTIVE.value)
            await self.lifecycle.activate_round(tournament_id, round_)

            # Баи создаются завершенными, поэтому сразу попадают в таблицу.
            if any(match.is_bye for match in matches):
                await self.standings.recompute(tournament_id)

            logger.info(
                "Generated round %s for tournament %s: %s matches", round_.round_number, tournament_id, len(matches)
            )
            return GeneratedRound(round_id=round_.id, match_count=len(matches))

    async def start_round(self, round_id: int, actor: Actor | None) -> TournamentRound:
        actor = await self._require_actor(actor)
        round_, tournament_id = await self._round_with_tournament(round_id)
        await self._authorize(actor, Action.TOURNAMENT_MANAGE, "tournament", tournament_id)
        async with self._transaction(actor):
            await self.lifecycle.start_round(tournament_id, round_)
            return round_

    async def record_match_result(
        self,
        match_id: int,
        result: MatchResult,
        actor: Actor | None,
        staff_override: bool = False,
    ) -> TournamentMatch:
        actor = await self._require_actor(actor)
        match = await self.uow.matches.get(match_id)
        if match is None:
            raise NotFound("Match not found")
        _, tournament_id = await self._round_with_tournament(match.round_id)

        # Участник матча сообщает результат сам, остальные действуют как организатор.
        is_participant = actor.profile_id in (match.profile1_id, match.profile2_id)
        action = Action.MATCH_REPORT if is_participant and not staff_override else Action.TOURNAMENT_MANAGE
        await self._authorize(actor, action, "match", match_id)
        async with self._transaction(actor):
            return await self.results.record(tournament_id, match, result, staff_override=staff_override)

    async def get_standings(self, tournament_id: int) -> list[PlayerStat]:
        if await self.uow.tournaments.get(tournament_id) is None:
            raise NotFound("Tournament not found")
        return await self.standings.ordered(tournament_id)

    async def get_registration_stats(self, tournament_id: int) -> dict[str, int]:
        return await self.ledger.stats(tournament_id)

    async def _require_actor(self, actor: Actor | None) -> Actor:
        if actor is None:
            raise NotAuthenticated("Authentication required")
        return actor

    async def _round_with_tournament(self, round_id: int) -> tuple[TournamentRound, int]:
        round_ = await self.uow.rounds.get_round(round_id)
        if round_ is None:
            raise NotFound("Round not found")
        phase = await self.uow.rounds.get_phase(round_.phase_id)
        if phase is None:
            raise NotFound("Phase not found")
        return round_, phase.tournament_id
