"""Запись результата матча: проверка счета, завершение матча и пересчет таблицы."""

from dataclasses import dataclass
from datetime import datetime

from app.core.config import Settings
from app.core.errors import InvalidTransition, NotFound, ValidationError
from app.core.logging import setup_logger
from app.models.tournament import MatchStatus, OpponentHistory, TournamentMatch
from app.services.events import EventRecorder, MatchResultReported
from app.services.lifecycle import LifecycleStateMachine
from app.services.ports import UnitOfWork
from app.services.standings import StandingsCalculator

logger = setup_logger(__name__)


@dataclass(frozen=True)
class MatchResult:
    game_wins1: int
    game_wins2: int
    winner_profile_id: int | None = None


def resolve_winner(
    match: TournamentMatch,
    result: MatchResult,
    settings: Settings,
    staff_override: bool = False,
) -> int | None:
    """Проверяет счет и возвращает победителя; None означает ничью."""
    for score in (result.game_wins1, result.game_wins2):
        if score < 0 or score > settings.max_game_wins:
            raise ValidationError(f"Game wins must be between 0 and {settings.max_game_wins}")

    players = (match.profile1_id, match.profile2_id)
    if result.winner_profile_id is not None:
        if result.winner_profile_id not in players:
            raise ValidationError("Winner must be one of the match players")
        # Назначенный судьей победитель может не совпадать со счетом (например, техническое поражение).
        if not staff_override:
            winner_score, loser_score = (
                (result.game_wins1, result.game_wins2)
                if result.winner_profile_id == match.profile1_id
                else (result.game_wins2, result.game_wins1)
            )
            if winner_score < loser_score:
                raise ValidationError("Winner cannot have fewer game wins than the loser")
            if winner_score == loser_score and not settings.allow_draws:
                raise ValidationError("Draws are not allowed")
        return result.winner_profile_id

    if result.game_wins1 > result.game_wins2:
        return match.profile1_id
    if result.game_wins2 > result.game_wins1:
        return match.profile2_id
    if not settings.allow_draws:
        raise ValidationError("Draws are not allowed")
    return None


class MatchResultRecorder:
    def __init__(
        self,
        uow: UnitOfWork,
        events: EventRecorder,
        lifecycle: LifecycleStateMachine,
        standings: StandingsCalculator,
        settings: Settings,
    ) -> None:
        self.uow = uow
        self.events = events
        self.lifecycle = lifecycle
        self.standings = standings
        self.settings = settings

    def match_points(self, match: TournamentMatch, winner_id: int | None) -> tuple[int, int]:
        if winner_id is None:
            return self.settings.match_draw_points, self.settings.match_draw_points
        if winner_id == match.profile1_id:
            return self.settings.match_win_points, self.settings.match_loss_points
        return self.settings.match_loss_points, self.settings.match_win_points

    async def record(
        self,
        tournament_id: int,
        match: TournamentMatch,
        result: MatchResult,
        staff_override: bool = False,
    ) -> TournamentMatch:
        if match.status == MatchStatus.COMPLETED.value:
            raise InvalidTransition("Match is already completed")
        if match.is_bye:
            raise InvalidTransition("Bye matches have no result to report")
        winner_id = resolve_winner(match, result, self.settings, staff_override=staff_override)
        points1, points2 = self.match_points(match, winner_id)

        completed = await self.uow.matches.complete(
            match,
            {
                "status": MatchStatus.COMPLETED.value,
                "winner_profile_id": winner_id,
                "game_wins1": result.game_wins1,
                "game_wins2": result.game_wins2,
                "match_points1": points1,
                "match_points2": points2,
                "staff_requested": staff_override,
                "completed_at": datetime.utcnow(),
            },
        )
        if not completed:
            # Параллельная отправка уже завершила матч.
            raise InvalidTransition("Match is already completed")

        round_ = await self.uow.rounds.get_round(match.round_id)
        if round_ is None:
            raise NotFound("Round not found")
        await self.uow.player_stats.add_history(
            [
                OpponentHistory(
                    tournament_id=tournament_id,
                    profile_id=match.profile1_id,
                    opponent_id=match.profile2_id,
                    round_number=round_.round_number,
                ),
                OpponentHistory(
                    tournament_id=tournament_id,
                    profile_id=match.profile2_id,
                    opponent_id=match.profile1_id,
                    round_number=round_.round_number,
                ),
            ]
        )

        await self.standings.recompute(tournament_id)
        await self.lifecycle.complete_round_if_finished(tournament_id, match.round_id)

        self.events.record(
            tournament_id,
            MatchResultReported(
                match_id=match.id,
                round_id=match.round_id,
                winner_profile_id=winner_id,
                game_wins1=result.game_wins1,
                game_wins2=result.game_wins2,
            ),
        )
        logger.info(
            "Match %s completed %s-%s, winner %s",
            match.id,
            result.game_wins1,
            result.game_wins2,
            winner_id,
        )
        return match
