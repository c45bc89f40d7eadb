"""Считает очки, проценты и тай-брейки игроков и упорядочивает турнирную таблицу."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from app.core.config import Settings
from app.core.logging import setup_logger
from app.models.tournament import MatchStatus, PlayerStat, TournamentMatch
from app.services.ports import UnitOfWork

logger = setup_logger(__name__)

# Точность, с которой сравниваются проценты при сортировке.
PERCENT_PRECISION = 6


@dataclass(frozen=True)
class ScoringRules:
    match_win_points: int = 3
    percentage_floor: float = 0.33
    default_percentage: float = 0.5
    buchholz_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ScoringRules":
        return cls(
            match_win_points=settings.match_win_points,
            percentage_floor=settings.percentage_floor,
            default_percentage=settings.default_percentage,
            buchholz_enabled=settings.buchholz_enabled,
        )


@dataclass
class StandingLine:
    profile_id: int
    match_points: int = 0
    matches_played: int = 0
    match_wins: int = 0
    match_losses: int = 0
    match_draws: int = 0
    game_wins: int = 0
    game_losses: int = 0
    match_win_percentage: float = 0.0
    game_win_percentage: float = 0.0
    opponent_match_win_percentage: float = 0.0
    opponent_game_win_percentage: float = 0.0
    buchholz: int = 0
    modified_buchholz: int = 0
    has_received_bye: bool = False
    opponents: list[int] = field(default_factory=list)
    rank: int = 0


def match_win_percentage(match_points: int, matches_played: int, rules: ScoringRules) -> float:
    if matches_played == 0:
        return rules.default_percentage
    return max(match_points / (matches_played * rules.match_win_points), rules.percentage_floor)


def game_win_percentage(game_wins: int, game_losses: int, rules: ScoringRules) -> float:
    total = game_wins + game_losses
    if total == 0:
        return rules.default_percentage
    return max(game_wins / total, rules.percentage_floor)


def modified_buchholz(opponent_points: list[int]) -> int:
    # Отбрасываем лучшего и худшего соперника, если соперников хотя бы трое.
    if len(opponent_points) < 3:
        return sum(opponent_points)
    return sum(opponent_points) - max(opponent_points) - min(opponent_points)


def standing_sort_key(line: StandingLine | PlayerStat) -> tuple:
    return (
        -line.match_points,
        -round(line.opponent_match_win_percentage, PERCENT_PRECISION),
        -round(line.opponent_game_win_percentage, PERCENT_PRECISION),
        -line.buchholz,
        line.profile_id,
    )


def _tiebreak_part(line: StandingLine) -> tuple:
    return standing_sort_key(line)[:-1]


def _apply_match(lines: dict[int, StandingLine], match: TournamentMatch) -> None:
    if match.profile1_id is None:
        return
    player1 = lines.setdefault(match.profile1_id, StandingLine(profile_id=match.profile1_id))

    if match.is_bye or match.profile2_id is None:
        # Бай идет в зачет как сыгранная победа без соперника.
        player1.matches_played += 1
        player1.match_wins += 1
        player1.match_points += match.match_points1
        player1.game_wins += match.game_wins1
        player1.game_losses += match.game_wins2
        player1.has_received_bye = True
        return

    player2 = lines.setdefault(match.profile2_id, StandingLine(profile_id=match.profile2_id))
    player1.opponents.append(player2.profile_id)
    player2.opponents.append(player1.profile_id)
    player1.matches_played += 1
    player2.matches_played += 1
    player1.match_points += match.match_points1
    player2.match_points += match.match_points2
    player1.game_wins += match.game_wins1
    player1.game_losses += match.game_wins2
    player2.game_wins += match.game_wins2
    player2.game_losses += match.game_wins1

    if match.winner_profile_id == player1.profile_id:
        player1.match_wins += 1
        player2.match_losses += 1
    elif match.winner_profile_id == player2.profile_id:
        player2.match_wins += 1
        player1.match_losses += 1
    else:
        player1.match_draws += 1
        player2.match_draws += 1


def calculate_standings(
    matches: Iterable[TournamentMatch],
    rules: ScoringRules,
    profile_ids: Iterable[int] = (),
) -> list[StandingLine]:
    """Строит упорядоченную таблицу по завершенным матчам.

    Порядок: очки матчей, OMW%, OGW%, Бухгольц (все по убыванию).
    Полностью равные игроки делят место.
    """
    lines: dict[int, StandingLine] = {pid: StandingLine(profile_id=pid) for pid in profile_ids}
    for match in matches:
        if match.status == MatchStatus.COMPLETED.value:
            _apply_match(lines, match)

    for line in lines.values():
        line.match_win_percentage = match_win_percentage(line.match_points, line.matches_played, rules)
        line.game_win_percentage = game_win_percentage(line.game_wins, line.game_losses, rules)

    for line in lines.values():
        opponents = [lines[opponent_id] for opponent_id in line.opponents]
        if opponents:
            line.opponent_match_win_percentage = sum(o.match_win_percentage for o in opponents) / len(opponents)
            line.opponent_game_win_percentage = sum(o.game_win_percentage for o in opponents) / len(opponents)
        else:
            line.opponent_match_win_percentage = rules.default_percentage
            line.opponent_game_win_percentage = rules.default_percentage
        if rules.buchholz_enabled:
            opponent_points = [o.match_points for o in opponents]
            line.buchholz = sum(opponent_points)
            line.modified_buchholz = modified_buchholz(opponent_points)

    ranked = sorted(lines.values(), key=standing_sort_key)
    for position, line in enumerate(ranked, start=1):
        if position > 1 and _tiebreak_part(line) == _tiebreak_part(ranked[position - 2]):
            line.rank = ranked[position - 2].rank
        else:
            line.rank = position
    return ranked


def empty_player_stat(tournament_id: int, profile_id: int) -> PlayerStat:
    stat = PlayerStat(tournament_id=tournament_id, profile_id=profile_id, is_dropped=False)
    _copy_line(stat, StandingLine(profile_id=profile_id))
    stat.current_standing = None
    return stat


class StandingsCalculator:
    """Единственный компонент, который пишет агрегаты PlayerStat."""

    def __init__(self, uow: UnitOfWork, settings: Settings) -> None:
        self.uow = uow
        self.rules = ScoringRules.from_settings(settings)

    async def recompute(self, tournament_id: int) -> list[PlayerStat]:
        # Пересчитываем турнир целиком: Бухгольц и OMW% зависят от результатов соперников.
        matches = await self.uow.matches.list_for_tournament(tournament_id, status=MatchStatus.COMPLETED.value)
        existing = {stat.profile_id: stat for stat in await self.uow.player_stats.list_for_tournament(tournament_id)}
        lines = calculate_standings(matches, self.rules, profile_ids=existing.keys())

        stats: list[PlayerStat] = []
        for line in lines:
            stat = existing.get(line.profile_id)
            if stat is None:
                stat = await self.uow.player_stats.add(empty_player_stat(tournament_id, line.profile_id))
            _copy_line(stat, line)
            await self.uow.player_stats.save(stat)
            stats.append(stat)
        logger.debug("Recomputed standings for tournament %s: %s players", tournament_id, len(stats))
        return stats

    async def mark_dropped(self, tournament_id: int, profile_id: int) -> PlayerStat:
        stat = await self.uow.player_stats.get(tournament_id, profile_id)
        if stat is None:
            stat = await self.uow.player_stats.add(empty_player_stat(tournament_id, profile_id))
        stat.is_dropped = True
        await self.uow.player_stats.save(stat)
        return stat

    async def ordered(self, tournament_id: int) -> list[PlayerStat]:
        stats = await self.uow.player_stats.list_for_tournament(tournament_id)
        return sorted(stats, key=standing_sort_key)


def _copy_line(stat: PlayerStat, line: StandingLine) -> None:
    stat.match_points = line.match_points
    stat.matches_played = line.matches_played
    stat.match_wins = line.match_wins
    stat.match_losses = line.match_losses
    stat.match_draws = line.match_draws
    stat.game_wins = line.game_wins
    stat.game_losses = line.game_losses
    stat.match_win_percentage = line.match_win_percentage
    stat.game_win_percentage = line.game_win_percentage
    stat.opponent_match_win_percentage = line.opponent_match_win_percentage
    stat.opponent_game_win_percentage = line.opponent_game_win_percentage
    stat.buchholz = line.buchholz
    stat.modified_buchholz = line.modified_buchholz
    stat.current_standing = line.rank
    stat.has_received_bye = line.has_received_bye
    stat.opponent_history = list(line.opponents)
    stat.updated_at = datetime.utcnow()
