"""Переходы статусов турнира, фазы, раунда и матча."""

import math
from datetime import datetime

from app.core.errors import DuplicateRound, InvalidTransition, NotFound
from app.core.logging import setup_logger
from app.models.tournament import (
    MatchStatus,
    PhaseStatus,
    PhaseType,
    RoundStatus,
    Tournament,
    TournamentPhase,
    TournamentRound,
    TournamentStatus,
)
from app.services.events import EventRecorder, RoundStatusChanged, TournamentStatusChanged
from app.services.ports import UnitOfWork

logger = setup_logger(__name__)

TOURNAMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    TournamentStatus.DRAFT.value: frozenset({TournamentStatus.UPCOMING.value, TournamentStatus.CANCELLED.value}),
    TournamentStatus.UPCOMING.value: frozenset({TournamentStatus.ACTIVE.value, TournamentStatus.CANCELLED.value}),
    TournamentStatus.ACTIVE.value: frozenset(
        {TournamentStatus.PAUSED.value, TournamentStatus.COMPLETED.value, TournamentStatus.CANCELLED.value}
    ),
    TournamentStatus.PAUSED.value: frozenset({TournamentStatus.ACTIVE.value, TournamentStatus.CANCELLED.value}),
    TournamentStatus.COMPLETED.value: frozenset(),
    TournamentStatus.CANCELLED.value: frozenset(),
}

PHASE_TRANSITIONS: dict[str, frozenset[str]] = {
    PhaseStatus.PENDING.value: frozenset({PhaseStatus.ACTIVE.value}),
    PhaseStatus.ACTIVE.value: frozenset({PhaseStatus.COMPLETED.value}),
    PhaseStatus.COMPLETED.value: frozenset(),
}

ROUND_TRANSITIONS: dict[str, frozenset[str]] = {
    RoundStatus.PENDING.value: frozenset({RoundStatus.ACTIVE.value}),
    RoundStatus.ACTIVE.value: frozenset({RoundStatus.COMPLETED.value}),
    RoundStatus.COMPLETED.value: frozenset(),
}

MATCH_TRANSITIONS: dict[str, frozenset[str]] = {
    MatchStatus.PENDING.value: frozenset({MatchStatus.ACTIVE.value, MatchStatus.COMPLETED.value}),
    MatchStatus.ACTIVE.value: frozenset({MatchStatus.COMPLETED.value}),
    MatchStatus.COMPLETED.value: frozenset(),
}

DEFAULT_PHASE_NAME = "Swiss Rounds"
DEFAULT_MATCH_FORMAT = "best_of_3"


def ensure_transition(table: dict[str, frozenset[str]], entity: str, current: str, target: str) -> None:
    if target not in table.get(current, frozenset()):
        raise InvalidTransition(f"Cannot move {entity} from {current} to {target}")


def planned_swiss_rounds(player_count: int) -> int:
    if player_count < 2:
        return 1
    return math.ceil(math.log2(player_count))


class LifecycleStateMachine:
    """Меняет статусы только по таблицам переходов и пишет события о смене статуса."""

    def __init__(self, uow: UnitOfWork, events: EventRecorder) -> None:
        self.uow = uow
        self.events = events

    async def transition_tournament(self, tournament: Tournament, target: str) -> None:
        current = tournament.status
        ensure_transition(TOURNAMENT_TRANSITIONS, "tournament", current, target)
        tournament.status = target
        await self.uow.tournaments.save(tournament)
        self.events.record(tournament.id, TournamentStatusChanged(from_status=current, to_status=target))
        logger.info("Tournament %s: %s -> %s", tournament.id, current, target)

    async def ensure_phase(self, tournament: Tournament, player_count: int) -> TournamentPhase:
        phase = await self.uow.rounds.first_phase(tournament.id)
        if phase is not None:
            if phase.status == PhaseStatus.COMPLETED.value:
                raise InvalidTransition(f"Phase {phase.name} is already completed")
            if phase.status == PhaseStatus.PENDING.value:
                await self._activate_phase(phase)
            return phase

        phase = await self.uow.rounds.add_phase(
            TournamentPhase(
                tournament_id=tournament.id,
                name=DEFAULT_PHASE_NAME,
                phase_order=1,
                phase_type=PhaseType.SWISS.value,
                status=PhaseStatus.ACTIVE.value,
                planned_rounds=planned_swiss_rounds(player_count),
                current_round=0,
                match_format=DEFAULT_MATCH_FORMAT,
                started_at=datetime.utcnow(),
            )
        )
        tournament.current_phase_id = phase.id
        await self.uow.tournaments.save(tournament)
        logger.info("Created swiss phase %s for tournament %s (%s rounds)", phase.id, tournament.id, phase.planned_rounds)
        return phase

    async def _activate_phase(self, phase: TournamentPhase) -> None:
        ensure_transition(PHASE_TRANSITIONS, "phase", phase.status, PhaseStatus.ACTIVE.value)
        phase.status = PhaseStatus.ACTIVE.value
        phase.started_at = phase.started_at or datetime.utcnow()
        await self.uow.rounds.save(phase)

    async def create_round(
        self,
        tournament: Tournament,
        phase: TournamentPhase,
        round_number: int | None = None,
    ) -> TournamentRound:
        existing = await self.uow.rounds.list_rounds(phase.id)
        if round_number is None:
            round_number = len(existing) + 1
        elif any(round_.round_number == round_number for round_ in existing):
            raise DuplicateRound(f"Round {round_number} already exists")

        # Уникальный индекс (phase_id, round_number) ловит гонку двух генераций.
        round_ = await self.uow.rounds.add_round(
            TournamentRound(
                phase_id=phase.id,
                round_number=round_number,
                name=f"Round {round_number}",
                status=RoundStatus.PENDING.value,
            )
        )
        phase.current_round = round_number
        await self.uow.rounds.save(phase)
        tournament.current_round = round_number
        await self.uow.tournaments.save(tournament)
        return round_

    async def activate_round(self, tournament_id: int, round_: TournamentRound) -> None:
        await self._move_round(tournament_id, round_, RoundStatus.ACTIVE.value)

    async def start_round(self, tournament_id: int, round_: TournamentRound) -> None:
        if round_.status == RoundStatus.COMPLETED.value:
            raise InvalidTransition("Round is already completed")
        if round_.started_at is not None:
            raise InvalidTransition("Round has already been started")

        if round_.status == RoundStatus.PENDING.value:
            await self._move_round(tournament_id, round_, RoundStatus.ACTIVE.value)
        round_.started_at = datetime.utcnow()
        await self.uow.rounds.save(round_)

        for match in await self.uow.matches.list_for_round(round_.id):
            if match.is_bye or match.status != MatchStatus.PENDING.value:
                continue
            ensure_transition(MATCH_TRANSITIONS, "match", match.status, MatchStatus.ACTIVE.value)
            match.status = MatchStatus.ACTIVE.value
            await self.uow.matches.save(match)

    async def complete_round_if_finished(self, tournament_id: int, round_id: int) -> bool:
        round_ = await self.uow.rounds.get_round(round_id)
        if round_ is None:
            raise NotFound("Round not found")
        if round_.status == RoundStatus.COMPLETED.value:
            return False
        matches = await self.uow.matches.list_for_round(round_id)
        if any(match.status != MatchStatus.COMPLETED.value for match in matches):
            return False

        if round_.status == RoundStatus.PENDING.value:
            await self._move_round(tournament_id, round_, RoundStatus.ACTIVE.value)
        await self._move_round(tournament_id, round_, RoundStatus.COMPLETED.value)
        round_.completed_at = datetime.utcnow()
        await self.uow.rounds.save(round_)
        return True

    async def _move_round(self, tournament_id: int, round_: TournamentRound, target: str) -> None:
        current = round_.status
        ensure_transition(ROUND_TRANSITIONS, "round", current, target)
        round_.status = target
        await self.uow.rounds.save(round_)
        self.events.record(
            tournament_id,
            RoundStatusChanged(
                round_id=round_.id,
                round_number=round_.round_number,
                from_status=current,
                to_status=target,
            ),
        )
        logger.info("Round %s (#%s): %s -> %s", round_.id, round_.round_number, current, target)
