import asyncio
import random

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.session import SessionLocal
from app.models.tournament import MatchStatus, Tournament, TournamentStatus
from app.services.audit import SqlEventSink
from app.services.engine import TournamentEngine
from app.services.permissions import RoleAuthorization
from app.services.ports import Actor
from app.services.repositories import SqlUnitOfWork
from app.services.results import MatchResult

PLAYER_COUNT = 13
STAFF = Actor(profile_id=1, is_staff=True)
FIRST_PLAYER_ID = 1000


def _random_result(rng: random.Random) -> tuple[int, int]:
    # Лучший из трех: победитель берет 2 игры, проигравший 0 или 1.
    loser_games = rng.randint(0, 1)
    return (2, loser_games) if rng.random() < 0.5 else (loser_games, 2)


async def main() -> None:
    """Создает турнир, регистрирует игроков и отыгрывает все швейцарские раунды со случайными результатами."""
    configure_logging(settings.log_level)
    rng = random.Random()

    async with SessionLocal() as db:
        tournament = Tournament(
            name=f"Swiss simulation {rng.randint(1, 9999)}",
            status=TournamentStatus.UPCOMING.value,
            max_participants=PLAYER_COUNT,
            current_round=0,
        )
        db.add(tournament)
        await db.commit()

        uow = SqlUnitOfWork(db)
        engine = TournamentEngine(uow, RoleAuthorization(), SqlEventSink(SessionLocal), settings=settings, rng=rng)

        players = [Actor(profile_id=FIRST_PLAYER_ID + idx) for idx in range(PLAYER_COUNT)]
        for player in players:
            await engine.register(tournament.id, player, team_name=f"Deck {player.profile_id}")
            await engine.check_in(tournament.id, player)

        generated = await engine.generate_pairings(tournament.id, STAFF)
        phase = await uow.rounds.first_phase(tournament.id)
        for _ in range(phase.planned_rounds):
            if generated is None:
                generated = await engine.generate_pairings(tournament.id, STAFF)
            await engine.start_round(generated.round_id, STAFF)
            for match in await uow.matches.list_for_round(generated.round_id):
                if match.status == MatchStatus.COMPLETED.value:
                    continue
                wins1, wins2 = _random_result(rng)
                await engine.record_match_result(match.id, MatchResult(game_wins1=wins1, game_wins2=wins2), STAFF)
            print(f"Раунд {generated.round_id}: {generated.match_count} матчей сыграно.")
            generated = None

        await engine.change_tournament_status(tournament.id, TournamentStatus.COMPLETED.value, STAFF)

        for stat in await engine.get_standings(tournament.id):
            print(
                f"{stat.current_standing:>3}. {stat.profile_id}  {stat.match_points} pts  "
                f"OMW {stat.opponent_match_win_percentage:.3f}  OGW {stat.opponent_game_win_percentage:.3f}  "
                f"Buchholz {stat.buchholz}"
            )


if __name__ == "__main__":
    # Запускаем симуляцию из CLI.
    asyncio.run(main())
