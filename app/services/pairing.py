"""Генерирует пары раунда: швейцарка по группам очков, посев для плей-офф и случайные пары."""

import random
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from app.core.config import Settings
from app.core.logging import setup_logger
from app.models.registration import TournamentRegistration
from app.models.tournament import (
    MatchStatus,
    PhaseType,
    PlayerStat,
    TournamentMatch,
    TournamentPhase,
    TournamentRound,
)
from app.services.events import ForcedRematch, MultipleBye, TournamentEvent
from app.services.ports import UnitOfWork
from app.services.standings import standing_sort_key

logger = setup_logger(__name__)

Pairing = tuple[int, int | None]

GROUP_REMATCH_REASON = "No unplayed opponents in point group"
CROSS_GROUP_REMATCH_REASON = "Cross-group pairing rematch"
MULTIPLE_BYE_REASON = "All remaining players have already received byes"


@dataclass
class PairingCandidate:
    profile_id: int
    match_points: int = 0
    opponent_match_win_percentage: float = 0.0
    has_received_bye: bool = False


@dataclass
class PairingPlan:
    pairings: list[Pairing] = field(default_factory=list)
    forced_rematches: list[ForcedRematch] = field(default_factory=list)
    multiple_byes: list[MultipleBye] = field(default_factory=list)

    @property
    def events(self) -> list[TournamentEvent]:
        return [*self.forced_rematches, *self.multiple_byes]


def _candidate(profile_id: int, stat: PlayerStat | None) -> PairingCandidate:
    if stat is None:
        return PairingCandidate(profile_id=profile_id)
    return PairingCandidate(
        profile_id=profile_id,
        match_points=stat.match_points,
        opponent_match_win_percentage=stat.opponent_match_win_percentage,
        has_received_bye=stat.has_received_bye,
    )


def pair_key(player1_id: int, player2_id: int) -> frozenset[int]:
    return frozenset((player1_id, player2_id))


def build_played_pairs(pairs: Iterable[tuple[int | None, int | None]]) -> set[frozenset[int]]:
    # Пары без второго игрока (баи) в историю встреч не попадают.
    return {pair_key(a, b) for a, b in pairs if a is not None and b is not None and a != b}


def _pair_pool(
    pool: list[PairingCandidate],
    played_pairs: set[frozenset[int]],
    paired: set[int],
    plan: PairingPlan,
    rematch_reason: str,
) -> None:
    # Жадно берем первого свободного соперника без общей истории, иначе первого свободного вообще.
    for idx, current in enumerate(pool):
        if current.profile_id in paired:
            continue
        rest = [candidate for candidate in pool[idx + 1 :] if candidate.profile_id not in paired]
        opponent = next(
            (c for c in rest if pair_key(current.profile_id, c.profile_id) not in played_pairs),
            None,
        )
        if opponent is None and rest:
            opponent = rest[0]
            if pair_key(current.profile_id, opponent.profile_id) in played_pairs:
                plan.forced_rematches.append(
                    ForcedRematch(player1_id=current.profile_id, player2_id=opponent.profile_id, reason=rematch_reason)
                )
                logger.info("Forced rematch %s vs %s: %s", current.profile_id, opponent.profile_id, rematch_reason)
        if opponent is None:
            continue
        plan.pairings.append((current.profile_id, opponent.profile_id))
        paired.add(current.profile_id)
        paired.add(opponent.profile_id)


def _pick_bye(ranked: list[PairingCandidate], plan: PairingPlan) -> PairingCandidate:
    # Бай получает самый низкий в таблице игрок без бая; если таких нет, самый низкий из всех.
    without_bye = [player for player in ranked if not player.has_received_bye]
    if without_bye:
        return without_bye[-1]
    recipient = ranked[-1]
    plan.multiple_byes.append(MultipleBye(player_id=recipient.profile_id, reason=MULTIPLE_BYE_REASON))
    logger.warning("Player %s receives another bye: %s", recipient.profile_id, MULTIPLE_BYE_REASON)
    return recipient


def generate_swiss_pairings(
    players: list[PairingCandidate],
    played_pairs: set[frozenset[int]],
) -> PairingPlan:
    """Пары швейцарского раунда.

    Игроки делятся на группы по очкам (от старшей к младшей), внутри группы
    упорядочены по OMW% и сводятся жадно, сначала без повторных встреч.
    Оставшиеся после всех групп сводятся между группами по тем же правилам.
    При нечетном числе игроков бай назначается до сведения пар.
    """
    plan = PairingPlan()
    ranked = sorted(players, key=lambda p: (-p.match_points, -p.opponent_match_win_percentage))

    bye_player = _pick_bye(ranked, plan) if len(ranked) % 2 else None
    pool = [player for player in ranked if player is not bye_player]

    point_groups: dict[int, list[PairingCandidate]] = defaultdict(list)
    for player in pool:
        point_groups[player.match_points].append(player)

    paired: set[int] = set()
    for points in sorted(point_groups, reverse=True):
        group = sorted(point_groups[points], key=lambda p: -p.opponent_match_win_percentage)
        _pair_pool(group, played_pairs, paired, plan, GROUP_REMATCH_REASON)

    leftovers = [player for player in pool if player.profile_id not in paired]
    _pair_pool(leftovers, played_pairs, paired, plan, CROSS_GROUP_REMATCH_REASON)

    if bye_player is not None:
        plan.pairings.append((bye_player.profile_id, None))
    return plan


def generate_elimination_pairings(seeded_ids: list[int]) -> PairingPlan:
    # Посев 1 против последнего, 2 против предпоследнего; средний игрок при нечетном числе проходит без пары.
    plan = PairingPlan()
    count = len(seeded_ids)
    half = (count + 1) // 2
    for idx in range(half):
        opponent_idx = count - 1 - idx
        opponent = seeded_ids[opponent_idx] if opponent_idx >= half else None
        plan.pairings.append((seeded_ids[idx], opponent))
    return plan


def generate_random_pairings(player_ids: list[int], rng: random.Random) -> PairingPlan:
    plan = PairingPlan()
    shuffled = list(player_ids)
    rng.shuffle(shuffled)
    for idx in range(0, len(shuffled), 2):
        opponent = shuffled[idx + 1] if idx + 1 < len(shuffled) else None
        plan.pairings.append((shuffled[idx], opponent))
    return plan


class PairingGenerator:
    """Читает таблицу и историю встреч турнира и строит пары и матчи раунда."""

    def __init__(self, uow: UnitOfWork, settings: Settings, rng: random.Random | None = None) -> None:
        self.uow = uow
        self.settings = settings
        self.rng = rng or random.Random()

    async def played_pairs(self, tournament_id: int) -> set[frozenset[int]]:
        history = await self.uow.player_stats.list_history(tournament_id)
        scheduled = await self.uow.matches.list_for_tournament(tournament_id)
        return build_played_pairs(
            [(entry.profile_id, entry.opponent_id) for entry in history]
            + [(match.profile1_id, match.profile2_id) for match in scheduled if not match.is_bye]
        )

    async def plan(
        self,
        tournament_id: int,
        phase: TournamentPhase,
        registrations: list[TournamentRegistration],
    ) -> PairingPlan:
        player_ids = [registration.profile_id for registration in registrations]

        if phase.phase_type == PhaseType.SWISS.value:
            stats = {stat.profile_id: stat for stat in await self.uow.player_stats.list_for_tournament(tournament_id)}
            candidates = [_candidate(profile_id, stats.get(profile_id)) for profile_id in player_ids]
            return generate_swiss_pairings(candidates, await self.played_pairs(tournament_id))

        if phase.phase_type == PhaseType.SINGLE_ELIMINATION.value:
            stats = {stat.profile_id: stat for stat in await self.uow.player_stats.list_for_tournament(tournament_id)}
            ranked = sorted((stats[pid] for pid in player_ids if pid in stats), key=standing_sort_key)
            unranked = [pid for pid in player_ids if pid not in stats]
            return generate_elimination_pairings([stat.profile_id for stat in ranked] + unranked)

        return generate_random_pairings(player_ids, self.rng)

    def build_matches(self, round_: TournamentRound, plan: PairingPlan) -> list[TournamentMatch]:
        matches = []
        for table_number, (player1_id, player2_id) in enumerate(plan.pairings, start=1):
            is_bye = player2_id is None
            matches.append(
                TournamentMatch(
                    round_id=round_.id,
                    table_number=table_number,
                    profile1_id=player1_id,
                    profile2_id=player2_id,
                    winner_profile_id=player1_id if is_bye else None,
                    is_bye=is_bye,
                    status=MatchStatus.COMPLETED.value if is_bye else MatchStatus.PENDING.value,
                    match_points1=self.settings.match_win_points if is_bye else self.settings.match_loss_points,
                    match_points2=self.settings.match_loss_points,
                    game_wins1=self.settings.bye_game_wins if is_bye else 0,
                    game_wins2=self.settings.bye_game_losses if is_bye else 0,
                    player1_match_confirmed=False,
                    player2_match_confirmed=False,
                    staff_requested=False,
                    completed_at=datetime.utcnow() if is_bye else None,
                )
            )
        return matches
